# tests/test_llm_services.py

"""Tests for the LLM provider adapters"""

# Standard library imports
import json
from types import SimpleNamespace

# Third party imports
import httpx
import pytest

# Local imports
from continuity.domain.entities import ReadingContext
from continuity.domain.exceptions import LLMServiceError
from continuity.infrastructure.llm.services import GeminiLLMService
from continuity.infrastructure.llm.services import MockLLMService
from continuity.infrastructure.llm.services import OpenAILLMService
from continuity.services.archivist_service import UNAVAILABLE_MESSAGE
from continuity.services.archivist_service import ArchivistService
from continuity.services.conversation_service import ConversationService
from continuity.services.enrichment import EnrichmentService


def gemini_transport(body, status_code=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


def text_body(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


class TestMockLLMService:
    """Deterministic development provider"""

    async def test_chat_reply_has_recommendations(self):
        """Chat prompts get a reply with a recommendation block"""
        reply = await MockLLMService().complete("...\n\nUser: more space opera\n\nArchivist:")
        assert "more space opera" in reply
        assert "RECOMMENDATIONS:" in reply
        assert '"Saga"' in reply

    async def test_insight_prompt_gets_json(self):
        """Insight prompts get a parseable insight object"""
        reply = await MockLLMService().complete('Return {"storySummary": "..."}')
        assert json.loads(reply)["significance"] == "minor"

    async def test_other_prompts(self):
        """Anything else gets plain text"""
        reply = await MockLLMService().complete("Summarize my stats")
        assert "RECOMMENDATIONS:" not in reply

    async def test_image_is_data_url(self):
        """Images come back as PNG data URLs"""
        image = await MockLLMService().generate_image("cover")
        assert image.startswith("data:image/png;base64,")


class TestGeminiLLMService:
    """Gemini generateContent adapter"""

    def test_configured_from_key(self):
        """An empty key means unconfigured"""
        assert GeminiLLMService("key").is_configured
        assert not GeminiLLMService("").is_configured

    async def test_complete_request(self):
        """The prompt and generation settings are posted to the text model"""
        seen = []
        service = GeminiLLMService(
            "key",
            model="gemini-test",
            base_url="https://gemini.test/v1beta",
            transport=gemini_transport(text_body("Hello ", "reader"), seen=seen),
        )
        reply = await service.complete("Hi", temperature=0.3, max_output_tokens=2048)

        assert reply == "Hello reader"
        request = seen[0]
        assert request.url.path == "/v1beta/models/gemini-test:generateContent"
        assert request.headers["x-goog-api-key"] == "key"
        payload = json.loads(request.content)
        assert payload["contents"][0]["parts"][0]["text"] == "Hi"
        assert payload["generationConfig"]["temperature"] == 0.3
        assert payload["generationConfig"]["maxOutputTokens"] == 2048

    async def test_no_candidates(self):
        """A reply without candidates is empty text"""
        service = GeminiLLMService("key", transport=gemini_transport({"candidates": []}))
        assert await service.complete("Hi") == ""

    async def test_http_error(self):
        """Provider errors raise LLMServiceError"""
        service = GeminiLLMService(
            "key", transport=gemini_transport({"error": {"message": "quota"}}, 429)
        )
        with pytest.raises(LLMServiceError):
            await service.complete("Hi")

    async def test_unconfigured_raises(self):
        """Calls without a key fail before any request"""
        seen = []
        service = GeminiLLMService("", transport=gemini_transport(text_body("x"), seen=seen))
        with pytest.raises(LLMServiceError):
            await service.complete("Hi")
        assert seen == []

    async def test_generate_image(self):
        """Inline image data becomes a data URL"""
        seen = []
        body = {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": "Here is your cover"},
                            {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}},
                        ]
                    }
                }
            ]
        }
        service = GeminiLLMService(
            "key", image_model="image-test", transport=gemini_transport(body, seen=seen)
        )
        assert await service.generate_image("a cover") == "data:image/jpeg;base64,QUJD"
        assert "image-test" in seen[0].url.path
        payload = json.loads(seen[0].content)
        assert payload["generationConfig"]["responseModalities"] == ["IMAGE"]

    async def test_generate_image_without_image(self):
        """A text-only reply yields no image"""
        service = GeminiLLMService("key", transport=gemini_transport(text_body("sorry")))
        assert await service.generate_image("a cover") is None

    @pytest.mark.parametrize(
        "body",
        [
            {"candidates": [None]},
            {"candidates": "none"},
            {"candidates": [{"content": "text"}]},
            {"candidates": [{"content": {"parts": [None]}}]},
            {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
            ["not", "an", "object"],
        ],
    )
    async def test_malformed_body_raises(self, body):
        """Well-formed JSON with the wrong shape raises LLMServiceError"""
        service = GeminiLLMService("key", transport=gemini_transport(body))
        with pytest.raises(LLMServiceError):
            await service.complete("Hi")

    async def test_malformed_image_body_raises(self):
        """Malformed image replies raise LLMServiceError"""
        service = GeminiLLMService("key", transport=gemini_transport({"candidates": [None]}))
        with pytest.raises(LLMServiceError):
            await service.generate_image("a cover")

    async def test_blocked_candidate_is_empty(self):
        """A candidate without content is empty text"""
        body = {"candidates": [{"finishReason": "SAFETY"}]}
        service = GeminiLLMService("key", transport=gemini_transport(body))
        assert await service.complete("Hi") == ""

    async def test_archivist_apologizes_on_malformed_body(self, fake_search, result_cache, kv_store):
        """A malformed provider body gives the chat apology"""
        service = GeminiLLMService("key", transport=gemini_transport({"candidates": [None]}))
        archivist = ArchivistService(
            service,
            EnrichmentService(fake_search([]), result_cache, batch_delay=0),
            ConversationService(kv_store),
        )
        assert await archivist.chat("hi", ReadingContext()) == UNAVAILABLE_MESSAGE


class TestOpenAILLMService:
    """OpenAI adapter with a stubbed client"""

    @staticmethod
    def service_returning(monkeypatch, response):
        async def create(**kwargs):
            return response

        client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        service = OpenAILLMService("key")
        monkeypatch.setattr(service, "_client", lambda: client)
        return service

    async def test_complete(self, monkeypatch):
        """The first choice's content is returned"""
        choice = SimpleNamespace(message=SimpleNamespace(content="Read Saga"))
        service = self.service_returning(monkeypatch, SimpleNamespace(choices=[choice]))
        assert await service.complete("Hi") == "Read Saga"

    async def test_no_choices_raises(self, monkeypatch):
        """An empty choices list raises LLMServiceError"""
        service = self.service_returning(monkeypatch, SimpleNamespace(choices=[]))
        with pytest.raises(LLMServiceError):
            await service.complete("Hi")
