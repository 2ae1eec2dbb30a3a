from dataclasses import dataclass
from typing import List, Optional

from ..ports.chat_repo import ChatRepository, ConversationDto, MessageDto
from ..ports.user_repo import UserRepository
from .token_service import SessionClaims
from ...exceptions import NotFoundError, ForbiddenError, ValidationError

MESSAGE_TYPES = ("text", "voice", "image", "location")


@dataclass
class ChatService:
    chat_repo: ChatRepository
    user_repo: UserRepository

    async def open_conversation(self, caller: SessionClaims, participant_id: str, job_id: Optional[str] = None) -> ConversationDto:
        """Find the conversation between the caller and ``participant_id`` or start one."""
        if participant_id == caller.user_id:
            raise ValidationError("Cannot start a conversation with yourself")
        if await self.user_repo.get_by_id(participant_id) is None:
            raise NotFoundError("User not found")
        participants = [caller.user_id, participant_id]
        existing = await self.chat_repo.find_conversation(participants, job_id)
        if existing is not None:
            return existing
        return await self.chat_repo.create_conversation(participants, job_id)

    async def _conversation_for(self, caller: SessionClaims, conversation_id: str) -> ConversationDto:
        conversation = await self.chat_repo.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if caller.user_id not in conversation.participants:
            raise ForbiddenError("You are not part of this conversation")
        return conversation

    async def send_message(self, caller: SessionClaims, conversation_id: str, content: str, language: str = "en", message_type: str = "text") -> MessageDto:
        if not content or not content.strip():
            raise ValidationError("Message cannot be empty")
        if message_type not in MESSAGE_TYPES:
            raise ValidationError(f"Unsupported message type: {message_type}")
        conversation = await self._conversation_for(caller, conversation_id)
        receiver_id = next((p for p in conversation.participants if p != caller.user_id), caller.user_id)
        return await self.chat_repo.create_message(
            conversation_id=conversation.id,
            sender_id=caller.user_id,
            receiver_id=receiver_id,
            content=content.strip(),
            original_language=language,
            message_type=message_type,
        )

    async def messages(self, caller: SessionClaims, conversation_id: str, limit: int = 50, skip: int = 0) -> List[MessageDto]:
        await self._conversation_for(caller, conversation_id)
        return await self.chat_repo.list_messages(conversation_id, limit=limit, skip=skip)
