import uuid
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from .....application.ports.rating_repo import RatingRepository, RatingDto
from .....exceptions import DuplicateRatingError
from ..database import RATINGS


class MongoRatingRepository(RatingRepository):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[RATINGS]

    def _to_dto(self, doc: Dict[str, Any]) -> RatingDto:
        return RatingDto(
            id=doc["_id"],
            rater_id=doc["raterId"],
            rated_user_id=doc["ratedUserId"],
            job_id=doc["jobId"],
            rating=doc["rating"],
            comment=doc.get("comment"),
            created_at=doc["createdAt"],
        )

    async def create(self, rater_id: str, rated_user_id: str, job_id: str, rating: int, comment: Optional[str]) -> RatingDto:
        doc = {
            "_id": str(uuid.uuid4()),
            "raterId": rater_id,
            "ratedUserId": rated_user_id,
            "jobId": job_id,
            "rating": rating,
            "comment": comment,
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateRatingError(rater_id, rated_user_id, job_id) from e
        return self._to_dto(doc)

    async def find(self, rater_id: str, rated_user_id: str, job_id: str) -> Optional[RatingDto]:
        doc = await self.collection.find_one({"raterId": rater_id, "ratedUserId": rated_user_id, "jobId": job_id})
        return self._to_dto(doc) if doc else None

    async def list_for_user(self, rated_user_id: str) -> List[RatingDto]:
        cursor = self.collection.find({"ratedUserId": rated_user_id})
        return [self._to_dto(doc) async for doc in cursor]
