import uuid
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from .....application.ports.application_repo import ApplicationRepository, ApplicationDto
from ..database import APPLICATIONS, JOBS


class MongoApplicationRepository(ApplicationRepository):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[APPLICATIONS]
        self.jobs = db[JOBS]

    def _to_dto(self, doc: Dict[str, Any]) -> ApplicationDto:
        return ApplicationDto(
            id=doc["_id"],
            job_id=doc["jobId"],
            labourer_id=doc["labourerId"],
            farmer_id=doc["farmerId"],
            message=doc.get("message"),
            proposed_wage=doc.get("proposedWage"),
            status=doc.get("status", "pending"),
            applied_at=doc["appliedAt"],
            responded_at=doc.get("respondedAt"),
        )

    async def create(self, job_id: str, labourer_id: str, farmer_id: str, message: Optional[str], proposed_wage: Optional[float]) -> ApplicationDto:
        doc = {
            "_id": str(uuid.uuid4()),
            "jobId": job_id,
            "labourerId": labourer_id,
            "farmerId": farmer_id,
            "message": message,
            "proposedWage": proposed_wage,
            "status": "pending",
            "appliedAt": datetime.now(timezone.utc),
        }
        await self.collection.insert_one(doc)
        await self.jobs.update_one({"_id": job_id}, {"$inc": {"applicationsCount": 1}})
        return self._to_dto(doc)

    async def get(self, application_id: str) -> Optional[ApplicationDto]:
        doc = await self.collection.find_one({"_id": application_id})
        return self._to_dto(doc) if doc else None

    async def find_for_job_and_labourer(self, job_id: str, labourer_id: str) -> Optional[ApplicationDto]:
        doc = await self.collection.find_one(
            {"jobId": job_id, "labourerId": labourer_id},
            sort=[("appliedAt", DESCENDING)],
        )
        return self._to_dto(doc) if doc else None

    async def list_for_job(self, job_id: str) -> List[ApplicationDto]:
        cursor = self.collection.find({"jobId": job_id}).sort("appliedAt", DESCENDING)
        return [self._to_dto(doc) async for doc in cursor]

    async def list_for_labourer(self, labourer_id: str) -> List[ApplicationDto]:
        cursor = self.collection.find({"labourerId": labourer_id}).sort("appliedAt", DESCENDING)
        return [self._to_dto(doc) async for doc in cursor]

    async def update_status(self, application_id: str, status: str) -> bool:
        result = await self.collection.update_one(
            {"_id": application_id},
            {"$set": {"status": status, "respondedAt": datetime.now(timezone.utc)}},
        )
        return result.modified_count > 0
