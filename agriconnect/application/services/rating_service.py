import logging
from dataclasses import dataclass
from typing import List, Optional

from ..ports.rating_repo import RatingRepository, RatingDto
from ..ports.user_repo import UserRepository
from ..ports.job_repo import JobRepository
from .token_service import SessionClaims
from ...exceptions import NotFoundError, ValidationError, ConflictError, ForbiddenError, DuplicateRatingError

logger = logging.getLogger(__name__)


@dataclass
class RatingService:
    rating_repo: RatingRepository
    user_repo: UserRepository
    job_repo: JobRepository

    async def rate(self, rater: SessionClaims, rated_user_id: str, job_id: str, rating: int, comment: Optional[str] = None) -> RatingDto:
        """Record a 1-5 rating and refresh the rated user's average."""
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if rated_user_id == rater.user_id:
            raise ValidationError("You cannot rate yourself")
        if await self.user_repo.get_by_id(rated_user_id) is None:
            raise NotFoundError("User not found")

        job = await self.job_repo.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        involved = {job.farmer_id, *job.hired_workers}
        if rater.user_id not in involved or rated_user_id not in involved:
            raise ForbiddenError("Only the farmer and hired workers of a job can rate each other")

        if await self.rating_repo.find(rater.user_id, rated_user_id, job_id) is not None:
            raise ConflictError("You have already rated this user for this job")

        try:
            created = await self.rating_repo.create(rater.user_id, rated_user_id, job_id, rating, comment)
        except DuplicateRatingError:
            raise ConflictError("You have already rated this user for this job")

        ratings = await self.rating_repo.list_for_user(rated_user_id)
        average = sum(r.rating for r in ratings) / len(ratings)
        await self.user_repo.set_rating(rated_user_id, round(average, 2), len(ratings))
        logger.info(f"User {rated_user_id} rated {rating} for job {job_id}")
        return created

    async def ratings_for(self, user_id: str) -> List[RatingDto]:
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        return await self.rating_repo.list_for_user(user_id)
