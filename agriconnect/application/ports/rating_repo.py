from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class RatingDto:
    id: str
    rater_id: str
    rated_user_id: str
    job_id: str
    rating: int
    comment: Optional[str]
    created_at: datetime


class RatingRepository(Protocol):
    async def create(self, rater_id: str, rated_user_id: str, job_id: str, rating: int, comment: Optional[str]) -> RatingDto:
        ...

    async def find(self, rater_id: str, rated_user_id: str, job_id: str) -> Optional[RatingDto]:
        ...

    async def list_for_user(self, rated_user_id: str) -> List[RatingDto]:
        ...
