from typing import List, Optional, Dict, Any, Protocol
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class JobDto:
    id: str
    farmer_id: str
    title: str
    description: str
    crop_type: str
    work_type: str
    location: Dict[str, Any]
    requirements: Dict[str, Any]
    schedule: Dict[str, Any]
    wages: Dict[str, Any]
    status: str
    applications_count: int
    hired_workers: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class JobSearchFilters:
    state: Optional[str] = None
    district: Optional[str] = None
    crop_type: Optional[str] = None
    work_type: Optional[str] = None
    experience_level: Optional[str] = None
    min_wage: Optional[float] = None
    max_wage: Optional[float] = None
    status: Optional[str] = "open"


class JobRepository(Protocol):
    async def create(self, farmer_id: str, data: Dict[str, Any]) -> JobDto:
        ...

    async def get(self, job_id: str) -> Optional[JobDto]:
        ...

    async def list_for_farmer(self, farmer_id: str, limit: int = 10, skip: int = 0) -> List[JobDto]:
        ...

    async def search(self, filters: JobSearchFilters, limit: int = 10, skip: int = 0) -> List[JobDto]:
        ...

    async def update(self, job_id: str, updates: Dict[str, Any]) -> bool:
        ...

    async def add_hired_worker(self, job_id: str, labourer_id: str) -> None:
        ...
