# agriconnect/schemas/chat/chat.py
from pydantic import BaseModel, Field
from typing import Optional, Literal, Dict, Any

from ...application.ports.chat_repo import ConversationDto, MessageDto


class OpenConversationRequest(BaseModel):
    participantId: str
    jobId: Optional[str] = None


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)
    language: Literal["en", "hi", "mr"] = "en"
    messageType: Literal["text", "voice", "image", "location"] = "text"


def serialize_message(message: MessageDto) -> Dict[str, Any]:
    return {
        "id": message.id,
        "conversationId": message.conversation_id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "content": message.content,
        "originalLanguage": message.original_language,
        "messageType": message.message_type,
        "timestamp": message.timestamp,
        "isRead": message.is_read,
    }


def serialize_conversation(conversation: ConversationDto) -> Dict[str, Any]:
    last = conversation.last_message
    if last is not None and "_id" in last:
        last = {"id": last["_id"], **{k: v for k, v in last.items() if k != "_id"}}
    return {
        "id": conversation.id,
        "participants": conversation.participants,
        "jobId": conversation.job_id,
        "lastMessage": last,
        "createdAt": conversation.created_at,
        "updatedAt": conversation.updated_at,
    }
