import logging
from dataclasses import dataclass
from typing import List, Optional, Dict, Any

from ..ports.job_repo import JobRepository, JobDto, JobSearchFilters
from ..ports.application_repo import ApplicationRepository, ApplicationDto
from ..ports.user_repo import UserRepository
from .token_service import SessionClaims
from ...exceptions import NotFoundError, ForbiddenError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

# allowed job status transitions; completed and cancelled are terminal
JOB_TRANSITIONS = {
    "open": {"in-progress", "cancelled"},
    "in-progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


@dataclass
class JobService:
    job_repo: JobRepository
    application_repo: ApplicationRepository
    user_repo: Optional[UserRepository] = None

    async def post_job(self, farmer: SessionClaims, data: Dict[str, Any]) -> JobDto:
        job = await self.job_repo.create(farmer.user_id, data)
        if self.user_repo is not None:
            await self.user_repo.increment_profile_field(farmer.user_id, "jobsPosted")
        logger.info(f"Farmer {farmer.user_id} posted job {job.id}")
        return job

    async def get_job(self, job_id: str) -> JobDto:
        job = await self.job_repo.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job

    async def search(self, filters: JobSearchFilters, limit: int = 10, skip: int = 0) -> List[JobDto]:
        if filters.min_wage is not None and filters.max_wage is not None and filters.min_wage > filters.max_wage:
            raise ValidationError("minWage cannot exceed maxWage")
        return await self.job_repo.search(filters, limit=limit, skip=skip)

    async def jobs_for_farmer(self, farmer: SessionClaims, limit: int = 10, skip: int = 0) -> List[JobDto]:
        return await self.job_repo.list_for_farmer(farmer.user_id, limit=limit, skip=skip)

    async def _owned_job(self, farmer: SessionClaims, job_id: str) -> JobDto:
        job = await self.get_job(job_id)
        if job.farmer_id != farmer.user_id:
            raise ForbiddenError("You can only manage your own jobs")
        return job

    async def change_status(self, farmer: SessionClaims, job_id: str, status: str) -> JobDto:
        job = await self._owned_job(farmer, job_id)
        if status == job.status:
            return job
        if status not in JOB_TRANSITIONS.get(job.status, set()):
            raise ValidationError(f"Cannot move job from {job.status} to {status}")
        await self.job_repo.update(job_id, {"status": status})
        job.status = status
        return job

    # Applications

    async def apply(self, labourer: SessionClaims, job_id: str, message: Optional[str] = None, proposed_wage: Optional[float] = None) -> ApplicationDto:
        job = await self.get_job(job_id)
        if job.status != "open":
            raise ValidationError("This job is not accepting applications")
        existing = await self.application_repo.find_for_job_and_labourer(job_id, labourer.user_id)
        if existing is not None and existing.status != "withdrawn":
            raise ConflictError("You have already applied for this job")
        application = await self.application_repo.create(
            job_id=job_id,
            labourer_id=labourer.user_id,
            farmer_id=job.farmer_id,
            message=message,
            proposed_wage=proposed_wage,
        )
        logger.info(f"Labourer {labourer.user_id} applied to job {job_id}")
        return application

    async def applications_for_job(self, farmer: SessionClaims, job_id: str) -> List[ApplicationDto]:
        await self._owned_job(farmer, job_id)
        return await self.application_repo.list_for_job(job_id)

    async def applications_for_labourer(self, labourer: SessionClaims) -> List[ApplicationDto]:
        return await self.application_repo.list_for_labourer(labourer.user_id)

    async def respond(self, caller: SessionClaims, application_id: str, status: str) -> ApplicationDto:
        """Farmer accepts/rejects, labourer withdraws; only pending applications change."""
        application = await self.application_repo.get(application_id)
        if application is None:
            raise NotFoundError("Application not found")

        if status in ("accepted", "rejected"):
            if caller.user_id != application.farmer_id:
                raise ForbiddenError("Only the job owner can respond to applications")
        elif status == "withdrawn":
            if caller.user_id != application.labourer_id:
                raise ForbiddenError("Only the applicant can withdraw an application")
        else:
            raise ValidationError(f"Unsupported application status: {status}")

        if application.status != "pending":
            raise ConflictError(f"Application is already {application.status}")

        await self.application_repo.update_status(application_id, status)
        if status == "accepted":
            await self.job_repo.add_hired_worker(application.job_id, application.labourer_id)
        updated = await self.application_repo.get(application_id)
        return updated or application
