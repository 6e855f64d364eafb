"""Archivist conversation history routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from continuity.api.schemas import (
    ActiveConversationResponse,
    ConversationResponse,
    ImportResponse,
)
from continuity.core.dependencies import get_conversation_service, get_current_user_id
from continuity.domain.services import IConversationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/archivist/conversations", tags=["conversations"])

UserId = Annotated[str, Depends(get_current_user_id)]
Conversations = Annotated[IConversationService, Depends(get_conversation_service)]


@router.get("/", response_model=list[ConversationResponse])
async def list_conversations(user_id: UserId, conversations: Conversations):
    return [
        ConversationResponse.model_validate(c)
        for c in await conversations.get_all_conversations(user_id)
    ]


@router.post("/", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(user_id: UserId, conversations: Conversations):
    """Start a new conversation and make it the active one."""
    return ConversationResponse.model_validate(await conversations.create_conversation(user_id))


@router.get("/active", response_model=ActiveConversationResponse)
async def get_active_conversation(user_id: UserId, conversations: Conversations):
    return ActiveConversationResponse(
        conversation_id=await conversations.get_active_conversation_id(user_id)
    )


@router.put("/active/{conversation_id}", response_model=ActiveConversationResponse)
async def set_active_conversation(
    conversation_id: str, user_id: UserId, conversations: Conversations
):
    if await conversations.get_conversation(user_id, conversation_id) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    await conversations.set_active_conversation(user_id, conversation_id)
    return ActiveConversationResponse(conversation_id=conversation_id)


@router.get("/export")
async def export_conversations(user_id: UserId, conversations: Conversations) -> Response:
    """All conversations as a JSON array (the format accepted by ``/import``)."""
    return Response(
        content=await conversations.export_conversations(user_id),
        media_type="application/json",
    )


@router.post("/import", response_model=ImportResponse)
async def import_conversations(request: Request, user_id: UserId, conversations: Conversations):
    """Replace all stored conversations with the posted JSON array."""
    payload = (await request.body()).decode("utf-8", errors="replace")
    try:
        imported = await conversations.import_conversations(user_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ImportResponse(imported=imported)


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(conversation_id: str, user_id: UserId, conversations: Conversations):
    conversation = await conversations.get_conversation(user_id, conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ConversationResponse.model_validate(conversation)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(conversation_id: str, user_id: UserId, conversations: Conversations):
    await conversations.delete_conversation(user_id, conversation_id)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_conversations(user_id: UserId, conversations: Conversations):
    await conversations.clear_all_conversations(user_id)
