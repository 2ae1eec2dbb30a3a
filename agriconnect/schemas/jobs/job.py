# agriconnect/schemas/jobs/job.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any

from ..auth.auth import Coordinates
from ...application.ports.job_repo import JobDto
from ...application.ports.application_repo import ApplicationDto

CropType = Literal["rice", "wheat", "cotton", "sugarcane", "vegetables", "fruits", "other"]
WorkType = Literal["planting", "harvesting", "weeding", "pesticide", "irrigation", "general"]
ExperienceLevel = Literal["beginner", "intermediate", "expert"]
JobStatus = Literal["open", "in-progress", "completed", "cancelled"]


class JobLocation(BaseModel):
    state: str
    district: str
    village: str
    coordinates: Optional[Coordinates] = None


class Requirements(BaseModel):
    workersNeeded: int = Field(1, ge=1)
    experienceRequired: ExperienceLevel = "beginner"
    skillsRequired: List[WorkType] = Field(default_factory=list)


class WorkingHours(BaseModel):
    start: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    end: str = Field(..., pattern=r"^\d{2}:\d{2}$")


class Schedule(BaseModel):
    startDate: datetime
    endDate: Optional[datetime] = None
    estimatedDays: int = Field(..., ge=1)
    workingHours: WorkingHours


class Bonus(BaseModel):
    description: str
    amount: float = Field(..., gt=0)


class Wages(BaseModel):
    type: Literal["daily", "hourly", "contract"]
    amount: float = Field(..., gt=0)
    bonuses: List[Bonus] = Field(default_factory=list)


class JobCreateRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=120)
    description: str = Field("", max_length=2000)
    cropType: CropType
    workType: WorkType
    location: JobLocation
    requirements: Requirements = Field(default_factory=Requirements)
    schedule: Schedule
    wages: Wages


class JobStatusUpdateRequest(BaseModel):
    status: JobStatus


class ApplyRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=1000)
    proposedWage: Optional[float] = Field(None, gt=0)


class ApplicationStatusUpdateRequest(BaseModel):
    status: Literal["accepted", "rejected", "withdrawn"]


def serialize_job(job: JobDto) -> Dict[str, Any]:
    return {
        "id": job.id,
        "farmerId": job.farmer_id,
        "title": job.title,
        "description": job.description,
        "cropType": job.crop_type,
        "workType": job.work_type,
        "location": job.location,
        "requirements": job.requirements,
        "schedule": job.schedule,
        "wages": job.wages,
        "status": job.status,
        "applicationsCount": job.applications_count,
        "hiredWorkers": job.hired_workers,
        "createdAt": job.created_at,
        "updatedAt": job.updated_at,
    }


def serialize_application(application: ApplicationDto) -> Dict[str, Any]:
    return {
        "id": application.id,
        "jobId": application.job_id,
        "labourerId": application.labourer_id,
        "farmerId": application.farmer_id,
        "message": application.message,
        "proposedWage": application.proposed_wage,
        "status": application.status,
        "appliedAt": application.applied_at,
        "respondedAt": application.responded_at,
    }
