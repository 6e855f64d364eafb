"""LLM service implementations.

Services receive fully rendered prompts (see
``continuity.infrastructure.llm.prompts``) and only deal with transport.
Provider errors surface as :class:`LLMServiceError`; deciding what the user
sees instead is left to the calling service.
"""

import json
import logging
import re
from typing import Any, Optional

import httpx

from continuity.domain.exceptions import LLMServiceError
from continuity.domain.repositories import ILLMService

logger = logging.getLogger(__name__)

# 1x1 transparent PNG
_PLACEHOLDER_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


# ---------------------------------------------------------------------------
# Mock (development / testing)
# ---------------------------------------------------------------------------
class MockLLMService(ILLMService):
    """Deterministic replies for tests and offline development."""

    _LAST_USER_TURN_RE = re.compile(r"User: (.*?)\n\nArchivist:\s*$", re.DOTALL)

    @property
    def is_configured(self) -> bool:
        return True

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.9,
        max_output_tokens: int = 1024,
    ) -> str:
        logger.debug("MockLLM prompt (%d chars)", len(prompt))

        if '"storySummary"' in prompt:
            return json.dumps(
                {
                    "storySummary": "A self-contained story introducing the series' central conflict.",
                    "spoilerFreeSummary": "An accessible starting point for new readers.",
                    "significance": "minor",
                    "significanceNotes": "Sets up threads that later issues pay off.",
                    "keyEvents": ["The protagonist makes a choice that defines the run"],
                    "firstAppearances": {"characters": [], "items": [], "teams": []},
                    "mustRead": False,
                    "canSkip": False,
                }
            )

        turn = self._LAST_USER_TURN_RE.search(prompt)
        if turn:
            question = turn.group(1).strip()
            return (
                f'The archives have plenty to say about "{question}". '
                "If you enjoy character-driven science fiction, start with **Saga**.\n\n"
                "RECOMMENDATIONS:\n"
                '{"comics": [{"title": "Saga", "writer": "Brian K. Vaughan", '
                '"artist": "Fiona Staples", "publisher": "Image", "year": 2012}]}'
            )

        return "Your reading journey is looking great! Keep it up!"

    async def generate_image(self, prompt: str) -> Optional[str]:
        logger.debug("MockLLM image prompt (%d chars)", len(prompt))
        return f"data:image/png;base64,{_PLACEHOLDER_PNG}"


# ---------------------------------------------------------------------------
# Gemini (remote REST API)
# ---------------------------------------------------------------------------
class GeminiLLMService(ILLMService):
    """Google Gemini provider over the ``generateContent`` REST endpoint.

    Uses **httpx** directly rather than a vendor SDK.

    Constructor args:
        api_key:      Gemini API key; an empty key leaves the service unconfigured.
        model:        text model (default ``gemini-2.0-flash``).
        image_model:  image model used by :meth:`generate_image`.
        base_url:     API root (default ``.../v1beta``).
        timeout:      per-request timeout in seconds.
        transport:    optional httpx transport (tests).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        image_model: str = "gemini-2.5-flash-image",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.image_model = image_model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    # -- internal helpers ---------------------------------------------------

    async def _generate(self, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Call ``POST /models/{model}:generateContent`` and return the JSON body."""
        if not self.is_configured:
            raise LLMServiceError("Gemini API key is not configured")

        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    url, json=payload, headers={"x-goog-api-key": self.api_key}
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as exc:
            raise LLMServiceError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise LLMServiceError(f"Gemini returned invalid JSON: {exc}") from exc

    @staticmethod
    def _parts(data: Any) -> list[dict[str, Any]]:
        """Return the first candidate's content parts, rejecting malformed bodies."""
        if not isinstance(data, dict):
            raise LLMServiceError("Gemini returned an unexpected payload")
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise LLMServiceError("Gemini returned malformed candidates")
        if not candidates:
            return []
        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise LLMServiceError("Gemini returned a malformed candidate")
        # Blocked candidates carry no content.
        content = candidate.get("content") or {}
        if not isinstance(content, dict):
            raise LLMServiceError("Gemini returned malformed content")
        parts = content.get("parts") or []
        if not isinstance(parts, list) or not all(isinstance(part, dict) for part in parts):
            raise LLMServiceError("Gemini returned malformed content parts")
        return parts

    # -- ILLMService interface ----------------------------------------------

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.9,
        max_output_tokens: int = 1024,
    ) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": max_output_tokens,
            },
        }
        logger.info("Gemini: requesting completion (model=%s)", self.model)
        data = await self._generate(self.model, payload)
        texts = [part.get("text") or "" for part in self._parts(data)]
        if not all(isinstance(text, str) for text in texts):
            raise LLMServiceError("Gemini returned non-text content")
        return "".join(texts)

    async def generate_image(self, prompt: str) -> Optional[str]:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": "3:4"},
            },
        }
        logger.info("Gemini: requesting cover image (model=%s)", self.image_model)
        data = await self._generate(self.image_model, payload)
        for part in self._parts(data):
            inline = part.get("inlineData") or {}
            if isinstance(inline, dict) and isinstance(inline.get("data"), str) and inline["data"]:
                mime_type = inline.get("mimeType") or "image/png"
                return f"data:{mime_type};base64,{inline['data']}"
        logger.warning("Gemini returned no image parts for cover generation")
        return None


# ---------------------------------------------------------------------------
# OpenAI (remote API)
# ---------------------------------------------------------------------------
class OpenAILLMService(ILLMService):
    """OpenAI-backed LLM provider.

    Requires ``LLM_API_KEY`` and an OpenAI ``LLM_MODEL`` in env.
    """

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", image_model: str = "gpt-image-1"):
        self.api_key = api_key
        self.model = model
        self.image_model = image_model

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _client(self):
        import openai

        return openai.AsyncOpenAI(api_key=self.api_key)

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.9,
        max_output_tokens: int = 1024,
    ) -> str:
        import openai

        try:
            response = await self._client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
        except openai.OpenAIError as exc:
            raise LLMServiceError(f"OpenAI completion failed: {exc}") from exc
        if not response.choices:
            raise LLMServiceError("OpenAI returned no choices")
        return response.choices[0].message.content or ""

    async def generate_image(self, prompt: str) -> Optional[str]:
        import openai

        try:
            response = await self._client().images.generate(
                model=self.image_model, prompt=prompt, size="1024x1536"
            )
        except openai.OpenAIError as exc:
            raise LLMServiceError(f"OpenAI image generation failed: {exc}") from exc
        if not response.data or not response.data[0].b64_json:
            return None
        return f"data:image/png;base64,{response.data[0].b64_json}"
