from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class ApplicationDto:
    id: str
    job_id: str
    labourer_id: str
    farmer_id: str
    message: Optional[str]
    proposed_wage: Optional[float]
    status: str
    applied_at: datetime
    responded_at: Optional[datetime] = None


class ApplicationRepository(Protocol):
    async def create(self, job_id: str, labourer_id: str, farmer_id: str, message: Optional[str], proposed_wage: Optional[float]) -> ApplicationDto:
        """Insert a pending application and bump the job's applicationsCount."""
        ...

    async def get(self, application_id: str) -> Optional[ApplicationDto]:
        ...

    async def find_for_job_and_labourer(self, job_id: str, labourer_id: str) -> Optional[ApplicationDto]:
        ...

    async def list_for_job(self, job_id: str) -> List[ApplicationDto]:
        ...

    async def list_for_labourer(self, labourer_id: str) -> List[ApplicationDto]:
        ...

    async def update_status(self, application_id: str, status: str) -> bool:
        ...
