# agriconnect/routers/chat_router.py
from fastapi import APIRouter, Depends, Query

from ..schemas.chat.chat import (
    OpenConversationRequest, SendMessageRequest, serialize_conversation, serialize_message,
)
from ..application.services.chat_service import ChatService
from ..application.services.token_service import SessionClaims
from ..dependencies import get_chat_service, get_current_claims

router = APIRouter(prefix="/conversations", tags=["Chat"])


@router.post("")
async def open_conversation(
    body: OpenConversationRequest,
    caller: SessionClaims = Depends(get_current_claims),
    chat_service: ChatService = Depends(get_chat_service),
):
    conversation = await chat_service.open_conversation(caller, body.participantId, body.jobId)
    return {"success": True, "data": {"conversation": serialize_conversation(conversation)}}


@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=100),
    skip: int = Query(0, ge=0),
    caller: SessionClaims = Depends(get_current_claims),
    chat_service: ChatService = Depends(get_chat_service),
):
    messages = await chat_service.messages(caller, conversation_id, limit=limit, skip=skip)
    return {"success": True, "data": {"messages": [serialize_message(m) for m in messages]}}


@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: str,
    body: SendMessageRequest,
    caller: SessionClaims = Depends(get_current_claims),
    chat_service: ChatService = Depends(get_chat_service),
):
    message = await chat_service.send_message(
        caller, conversation_id, body.content, language=body.language, message_type=body.messageType,
    )
    return {"success": True, "data": {"message": serialize_message(message)}}
