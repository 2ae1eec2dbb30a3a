import uuid
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from .....application.ports.job_repo import JobRepository, JobDto, JobSearchFilters
from ..database import JOBS


def build_job_query(filters: JobSearchFilters) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if filters.status:
        query["status"] = filters.status
    if filters.state:
        query["location.state"] = filters.state
    if filters.district:
        query["location.district"] = filters.district
    if filters.crop_type:
        query["cropType"] = filters.crop_type
    if filters.work_type:
        query["workType"] = filters.work_type
    if filters.experience_level:
        query["requirements.experienceRequired"] = filters.experience_level
    wage: Dict[str, float] = {}
    if filters.min_wage is not None:
        wage["$gte"] = filters.min_wage
    if filters.max_wage is not None:
        wage["$lte"] = filters.max_wage
    if wage:
        query["wages.amount"] = wage
    return query


class MongoJobRepository(JobRepository):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[JOBS]

    def _to_dto(self, doc: Dict[str, Any]) -> JobDto:
        location = dict(doc.get("location") or {})
        location.pop("geo", None)
        return JobDto(
            id=doc["_id"],
            farmer_id=doc["farmerId"],
            title=doc["title"],
            description=doc.get("description", ""),
            crop_type=doc["cropType"],
            work_type=doc["workType"],
            location=location,
            requirements=doc.get("requirements") or {},
            schedule=doc.get("schedule") or {},
            wages=doc.get("wages") or {},
            status=doc.get("status", "open"),
            applications_count=doc.get("applicationsCount", 0),
            hired_workers=list(doc.get("hiredWorkers", [])),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    async def create(self, farmer_id: str, data: Dict[str, Any]) -> JobDto:
        now = datetime.now(timezone.utc)
        location = dict(data.get("location") or {})
        coords = location.get("coordinates")
        if coords:
            location["geo"] = {"type": "Point", "coordinates": [coords["lng"], coords["lat"]]}
        doc = {
            **data,
            "_id": str(uuid.uuid4()),
            "farmerId": farmer_id,
            "location": location,
            "status": "open",
            "applicationsCount": 0,
            "hiredWorkers": [],
            "createdAt": now,
            "updatedAt": now,
        }
        await self.collection.insert_one(doc)
        return self._to_dto(doc)

    async def get(self, job_id: str) -> Optional[JobDto]:
        doc = await self.collection.find_one({"_id": job_id})
        return self._to_dto(doc) if doc else None

    async def list_for_farmer(self, farmer_id: str, limit: int = 10, skip: int = 0) -> List[JobDto]:
        cursor = self.collection.find({"farmerId": farmer_id}).sort("createdAt", DESCENDING).skip(skip).limit(limit)
        return [self._to_dto(doc) async for doc in cursor]

    async def search(self, filters: JobSearchFilters, limit: int = 10, skip: int = 0) -> List[JobDto]:
        cursor = self.collection.find(build_job_query(filters)).sort("createdAt", DESCENDING).skip(skip).limit(limit)
        return [self._to_dto(doc) async for doc in cursor]

    async def update(self, job_id: str, updates: Dict[str, Any]) -> bool:
        result = await self.collection.update_one(
            {"_id": job_id},
            {"$set": {**updates, "updatedAt": datetime.now(timezone.utc)}},
        )
        return result.modified_count > 0

    async def add_hired_worker(self, job_id: str, labourer_id: str) -> None:
        await self.collection.update_one(
            {"_id": job_id},
            {"$addToSet": {"hiredWorkers": labourer_id}, "$set": {"updatedAt": datetime.now(timezone.utc)}},
        )
