"""Archivist conversation persistence.

Conversations live in an :class:`IKeyValueStore` under two fixed keys per
user: the JSON array of all conversations and the plain id of the active one.
Every write replaces the stored value in one step (last writer wins).

Storage read/write failures are logged and treated as empty / no-op so a
broken store never takes the chat down with it.
"""

import logging
import time
from dataclasses import replace
from typing import Optional
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from continuity.domain.entities import Conversation, LibrarianMessage
from continuity.domain.repositories import IKeyValueStore
from continuity.domain.services import IConversationService

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "continuity_archivist_conversations"
ACTIVE_CONVERSATION_KEY = "continuity_archivist_active"

TITLE_MAX_LENGTH = 50

_conversations_adapter = TypeAdapter(list[Conversation])


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_conversation_title(content: str) -> str:
    """Whitespace-collapsed first message, cut to 50 chars with "..."."""
    cleaned = " ".join(content.split())
    if len(cleaned) <= TITLE_MAX_LENGTH:
        return cleaned
    return cleaned[: TITLE_MAX_LENGTH - 3] + "..."


class ConversationService(IConversationService):

    def __init__(self, store: IKeyValueStore):
        self.store = store

    @staticmethod
    def _key(user_id: str, key: str) -> str:
        return f"{user_id}:{key}"

    # ------------------------------------------------------------------
    # Raw storage access
    # ------------------------------------------------------------------

    async def _load(self, user_id: str) -> list[Conversation]:
        try:
            raw = await self.store.get(self._key(user_id, CONVERSATIONS_KEY))
            if not raw:
                return []
            return _conversations_adapter.validate_json(raw)
        except Exception as exc:
            logger.warning("Failed to load conversations for %s: %s", user_id, exc)
            return []

    async def _store(self, user_id: str, conversations: list[Conversation]) -> None:
        try:
            payload = _conversations_adapter.dump_json(conversations).decode()
            await self.store.set(self._key(user_id, CONVERSATIONS_KEY), payload)
        except Exception as exc:
            logger.warning("Failed to save conversations for %s: %s", user_id, exc)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def get_all_conversations(self, user_id: str) -> list[Conversation]:
        return await self._load(user_id)

    async def get_conversation(
        self, user_id: str, conversation_id: str
    ) -> Optional[Conversation]:
        for conversation in await self._load(user_id):
            if conversation.id == conversation_id:
                return conversation
        return None

    async def save_conversation(self, user_id: str, conversation: Conversation) -> None:
        conversations = await self._load(user_id)
        now = _now_ms()
        for index, existing in enumerate(conversations):
            if existing.id == conversation.id:
                conversations[index] = replace(conversation, updated_at=now)
                break
        else:
            conversations.append(replace(conversation, created_at=now, updated_at=now))
        await self._store(user_id, conversations)

    async def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        conversations = await self._load(user_id)
        await self._store(user_id, [c for c in conversations if c.id != conversation_id])
        if await self.get_active_conversation_id(user_id) == conversation_id:
            await self.clear_active_conversation(user_id)

    async def add_message(
        self, user_id: str, conversation_id: str, message: LibrarianMessage
    ) -> None:
        conversation = await self.get_conversation(user_id, conversation_id)
        if conversation is None:
            logger.warning("Conversation %s not found; message dropped", conversation_id)
            return
        conversation.messages.append(message)
        if not conversation.title and message.role == "user":
            conversation.title = generate_conversation_title(message.content)
        await self.save_conversation(user_id, conversation)

    async def create_conversation(self, user_id: str) -> Conversation:
        now = _now_ms()
        conversation = Conversation(
            id=f"conv_{now}_{uuid4().hex[:6]}",
            messages=[],
            created_at=now,
            updated_at=now,
        )
        await self.save_conversation(user_id, conversation)
        await self.set_active_conversation(user_id, conversation.id)
        logger.info("Created conversation %s for %s", conversation.id, user_id)
        return conversation

    async def get_or_create_active_conversation(self, user_id: str) -> Conversation:
        active_id = await self.get_active_conversation_id(user_id)
        if active_id:
            conversation = await self.get_conversation(user_id, active_id)
            if conversation is not None:
                return conversation
        return await self.create_conversation(user_id)

    # ------------------------------------------------------------------
    # Active conversation pointer
    # ------------------------------------------------------------------

    async def set_active_conversation(self, user_id: str, conversation_id: str) -> None:
        try:
            await self.store.set(self._key(user_id, ACTIVE_CONVERSATION_KEY), conversation_id)
        except Exception as exc:
            logger.warning("Failed to set active conversation for %s: %s", user_id, exc)

    async def get_active_conversation_id(self, user_id: str) -> Optional[str]:
        try:
            return await self.store.get(self._key(user_id, ACTIVE_CONVERSATION_KEY))
        except Exception as exc:
            logger.warning("Failed to read active conversation for %s: %s", user_id, exc)
            return None

    async def clear_active_conversation(self, user_id: str) -> None:
        try:
            await self.store.delete(self._key(user_id, ACTIVE_CONVERSATION_KEY))
        except Exception as exc:
            logger.warning("Failed to clear active conversation for %s: %s", user_id, exc)

    async def clear_all_conversations(self, user_id: str) -> None:
        try:
            await self.store.delete(self._key(user_id, CONVERSATIONS_KEY))
        except Exception as exc:
            logger.warning("Failed to clear conversations for %s: %s", user_id, exc)
        await self.clear_active_conversation(user_id)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    async def export_conversations(self, user_id: str) -> str:
        return _conversations_adapter.dump_json(await self._load(user_id)).decode()

    async def import_conversations(self, user_id: str, payload: str) -> int:
        """Replace all stored conversations with ``payload``; returns the count.

        Raises ``ValueError`` when the payload is not a conversation array.
        """
        try:
            conversations = _conversations_adapter.validate_json(payload)
        except ValidationError as exc:
            raise ValueError(f"Invalid conversation export: {exc.error_count()} error(s)") from exc
        await self._store(user_id, conversations)
        logger.info("Imported %d conversations for %s", len(conversations), user_id)
        return len(conversations)
