import uuid
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from .....application.ports.user_repo import (
    UserRepository, UserDto, Profile, profile_to_dict, profile_from_dict,
)
from .....exceptions import DuplicatePhoneError
from ..database import USERS


class MongoUserRepository(UserRepository):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[USERS]

    def _to_dto(self, doc: Dict[str, Any]) -> UserDto:
        return UserDto(
            id=doc["_id"],
            phone=doc["phone"],
            role=doc["role"],
            language=doc.get("language", "en"),
            is_verified=bool(doc.get("isVerified", False)),
            profile=profile_from_dict(doc.get("profile") or {}, doc.get("role")),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    async def create_if_absent(self, phone: str, role: str, language: str, is_verified: bool, profile: Profile) -> UserDto:
        now = datetime.now(timezone.utc)
        doc = {
            "_id": str(uuid.uuid4()),
            "phone": phone,
            "role": role,
            "language": language,
            "isVerified": is_verified,
            "profile": profile_to_dict(profile),
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicatePhoneError(phone) from e
        return self._to_dto(doc)

    async def get_by_phone(self, phone: str) -> Optional[UserDto]:
        doc = await self.collection.find_one({"phone": phone})
        return self._to_dto(doc) if doc else None

    async def get_by_id(self, user_id: str) -> Optional[UserDto]:
        doc = await self.collection.find_one({"_id": user_id})
        return self._to_dto(doc) if doc else None

    async def mark_verified(self, user_id: str) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$set": {"isVerified": True, "updatedAt": datetime.now(timezone.utc)}},
        )

    async def increment_profile_field(self, user_id: str, field: str, amount: float = 1) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$inc": {f"profile.{field}": amount}, "$set": {"updatedAt": datetime.now(timezone.utc)}},
        )

    async def set_rating(self, user_id: str, rating: float, total_ratings: int) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$set": {"profile.rating": rating, "profile.totalRatings": total_ratings}},
        )
