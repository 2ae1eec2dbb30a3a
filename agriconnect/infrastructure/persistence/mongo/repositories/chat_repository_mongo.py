import uuid
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from .....application.ports.chat_repo import ChatRepository, ConversationDto, MessageDto
from ..database import CONVERSATIONS, MESSAGES


def message_to_doc(message: MessageDto) -> Dict[str, Any]:
    return {
        "_id": message.id,
        "conversationId": message.conversation_id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "content": message.content,
        "originalLanguage": message.original_language,
        "messageType": message.message_type,
        "timestamp": message.timestamp,
        "isRead": message.is_read,
    }


class MongoChatRepository(ChatRepository):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.conversations = db[CONVERSATIONS]
        self.messages = db[MESSAGES]

    def _conversation(self, doc: Dict[str, Any]) -> ConversationDto:
        return ConversationDto(
            id=doc["_id"],
            participants=list(doc.get("participants", [])),
            job_id=doc.get("jobId"),
            last_message=doc.get("lastMessage"),
            created_at=doc["createdAt"],
            updated_at=doc["updatedAt"],
        )

    def _message(self, doc: Dict[str, Any]) -> MessageDto:
        return MessageDto(
            id=doc["_id"],
            conversation_id=doc["conversationId"],
            sender_id=doc["senderId"],
            receiver_id=doc["receiverId"],
            content=doc["content"],
            original_language=doc.get("originalLanguage", "en"),
            message_type=doc.get("messageType", "text"),
            timestamp=doc["timestamp"],
            is_read=bool(doc.get("isRead", False)),
        )

    async def find_conversation(self, participants: List[str], job_id: Optional[str] = None) -> Optional[ConversationDto]:
        query: Dict[str, Any] = {
            "participants": {"$all": participants, "$size": len(participants)},
            "jobId": job_id,
        }
        doc = await self.conversations.find_one(query)
        return self._conversation(doc) if doc else None

    async def create_conversation(self, participants: List[str], job_id: Optional[str] = None) -> ConversationDto:
        now = datetime.now(timezone.utc)
        doc = {
            "_id": str(uuid.uuid4()),
            "participants": list(participants),
            "jobId": job_id,
            "createdAt": now,
            "updatedAt": now,
        }
        await self.conversations.insert_one(doc)
        return self._conversation(doc)

    async def get_conversation(self, conversation_id: str) -> Optional[ConversationDto]:
        doc = await self.conversations.find_one({"_id": conversation_id})
        return self._conversation(doc) if doc else None

    async def create_message(self, conversation_id: str, sender_id: str, receiver_id: str, content: str, original_language: str, message_type: str) -> MessageDto:
        message = MessageDto(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            original_language=original_language,
            message_type=message_type,
            timestamp=datetime.now(timezone.utc),
        )
        doc = message_to_doc(message)
        await self.messages.insert_one(doc)
        await self.conversations.update_one(
            {"_id": conversation_id},
            {"$set": {"lastMessage": doc, "updatedAt": message.timestamp}},
        )
        return message

    async def list_messages(self, conversation_id: str, limit: int = 50, skip: int = 0) -> List[MessageDto]:
        cursor = self.messages.find({"conversationId": conversation_id}).sort("timestamp", DESCENDING).skip(skip).limit(limit)
        return [self._message(doc) async for doc in cursor]
