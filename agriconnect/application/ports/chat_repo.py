from typing import List, Optional, Dict, Any, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class MessageDto:
    id: str
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    original_language: str
    message_type: str
    timestamp: datetime
    is_read: bool = False


@dataclass
class ConversationDto:
    id: str
    participants: List[str]
    job_id: Optional[str]
    last_message: Optional[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class ChatRepository(Protocol):
    async def find_conversation(self, participants: List[str], job_id: Optional[str] = None) -> Optional[ConversationDto]:
        ...

    async def create_conversation(self, participants: List[str], job_id: Optional[str] = None) -> ConversationDto:
        ...

    async def get_conversation(self, conversation_id: str) -> Optional[ConversationDto]:
        ...

    async def create_message(self, conversation_id: str, sender_id: str, receiver_id: str, content: str, original_language: str, message_type: str) -> MessageDto:
        """Insert a message and update the conversation's lastMessage/updatedAt."""
        ...

    async def list_messages(self, conversation_id: str, limit: int = 50, skip: int = 0) -> List[MessageDto]:
        ...
