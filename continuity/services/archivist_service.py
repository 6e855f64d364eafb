"""The Archivist: conversational comic recommendations.

Wraps the completion provider with the Archivist persona and turns every
provider problem into a fixed, friendly string.  :meth:`ArchivistService.converse`
runs a whole chat turn: context, history, completion, parsing, enrichment and
persistence.
"""

import logging
import time
from typing import Optional
from uuid import uuid4

from continuity.domain.entities import (
    ArchivistReply,
    ComicRecord,
    LibrarianMessage,
    ReadingContext,
)
from continuity.domain.exceptions import LLMServiceError
from continuity.domain.repositories import ILLMService
from continuity.domain.services import (
    IArchivistService,
    IConversationService,
    IEnrichmentService,
)
from continuity.infrastructure.llm.prompts import (
    ARCHIVIST_CHAT_PROMPT,
    QUICK_RECOMMENDATIONS_PROMPT,
    STATS_SUMMARY_PROMPT,
    format_reading_context,
)
from continuity.services.context_builder import build_reading_context
from continuity.services.response_parser import parse_archivist_response

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.9
CHAT_MAX_OUTPUT_TOKENS = 1024

NOT_CONFIGURED_MESSAGE = (
    "I'd love to help, but I need a Gemini API key to access the archives. "
    "Please add your API key to enable The Archivist!"
)
EMPTY_REPLY_MESSAGE = "The archives are momentarily silent..."
UNAVAILABLE_MESSAGE = "The archives are temporarily unavailable. Please try again in a moment."

RECOMMENDATIONS_NOT_CONFIGURED = "API key required for recommendations."
RECOMMENDATIONS_FALLBACK = "Unable to generate recommendations at the moment."
STATS_NOT_CONFIGURED = "API key required for stats summaries."
STATS_FALLBACK = "Your reading journey is looking great! Keep it up!"

DEFAULT_RECOMMENDATION_QUERY = "Based on what I've been reading, what should I read next?"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_message(role: str, content: str, context: Optional[ReadingContext] = None) -> LibrarianMessage:
    now = _now_ms()
    return LibrarianMessage(
        id=f"msg_{now}_{uuid4().hex[:6]}",
        role=role,
        content=content,
        timestamp=now,
        context=context,
    )


def format_transcript(history: list[LibrarianMessage]) -> str:
    return "".join(
        f"{'User' if msg.role == 'user' else 'Archivist'}: {msg.content}\n\n"
        for msg in history
    )


class ArchivistService(IArchivistService):

    def __init__(
        self,
        llm_service: ILLMService,
        enrichment_service: IEnrichmentService,
        conversation_service: IConversationService,
    ):
        self.llm = llm_service
        self.enrichment = enrichment_service
        self.conversations = conversation_service

    async def _complete_or(self, prompt: str, fallback: str, **kwargs) -> str:
        try:
            text = await self.llm.complete(prompt, **kwargs)
        except LLMServiceError as exc:
            logger.warning("Archivist completion failed: %s", exc)
            return fallback
        return text or fallback

    async def chat(
        self,
        user_message: str,
        context: ReadingContext,
        history: Optional[list[LibrarianMessage]] = None,
    ) -> str:
        if not self.llm.is_configured:
            return NOT_CONFIGURED_MESSAGE

        prompt = ARCHIVIST_CHAT_PROMPT.render_flat(
            context_block=format_reading_context(context),
            transcript=format_transcript(history or []),
            message=user_message,
        )
        logger.debug("Archivist chat prompt (%d chars)", len(prompt))
        try:
            reply = await self.llm.complete(
                prompt,
                temperature=CHAT_TEMPERATURE,
                max_output_tokens=CHAT_MAX_OUTPUT_TOKENS,
            )
        except LLMServiceError as exc:
            logger.warning("Archivist chat failed: %s", exc)
            return UNAVAILABLE_MESSAGE
        return reply or EMPTY_REPLY_MESSAGE

    async def get_recommendations(
        self, context: ReadingContext, query: Optional[str] = None
    ) -> str:
        if not self.llm.is_configured:
            return RECOMMENDATIONS_NOT_CONFIGURED
        prompt = QUICK_RECOMMENDATIONS_PROMPT.render_flat(
            context_block=format_reading_context(context),
            query=query or DEFAULT_RECOMMENDATION_QUERY,
        )
        return await self._complete_or(prompt, RECOMMENDATIONS_FALLBACK)

    async def get_stats_summary(self, context: ReadingContext) -> str:
        if not self.llm.is_configured:
            return STATS_NOT_CONFIGURED
        prompt = STATS_SUMMARY_PROMPT.render_flat(context_block=format_reading_context(context))
        return await self._complete_or(prompt, STATS_FALLBACK)

    async def converse(
        self,
        user_id: str,
        collection: list[ComicRecord],
        message: str,
        conversation_id: Optional[str] = None,
    ) -> ArchivistReply:
        context = build_reading_context(collection)

        conversation = None
        if conversation_id:
            conversation = await self.conversations.get_conversation(user_id, conversation_id)
            if conversation is None:
                logger.info("Conversation %s not found; starting a new one", conversation_id)
        if conversation is None:
            conversation = await self.conversations.get_or_create_active_conversation(user_id)

        history = list(conversation.messages)
        await self.conversations.add_message(
            user_id, conversation.id, _new_message("user", message.strip())
        )

        reply = await self.chat(message.strip(), context, history)
        parsed = parse_archivist_response(reply)

        enriched = []
        if parsed.recommendations:
            enriched = await self.enrichment.enrich_batch(parsed.recommendations)

        await self.conversations.add_message(
            user_id, conversation.id, _new_message("assistant", parsed.message, context)
        )

        logger.info(
            "Archivist turn for %s in %s: %d recommendations",
            user_id, conversation.id, len(enriched),
        )
        return ArchivistReply(
            conversation_id=conversation.id,
            message=parsed.message,
            recommendations=enriched,
        )
