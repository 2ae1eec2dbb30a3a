# agriconnect/routers/jobs_router.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..schemas.jobs.job import (
    JobCreateRequest, JobStatusUpdateRequest, ApplyRequest, ApplicationStatusUpdateRequest,
    serialize_job, serialize_application,
)
from ..application.ports.job_repo import JobSearchFilters
from ..application.services.job_service import JobService
from ..application.services.token_service import SessionClaims
from ..dependencies import get_job_service, get_current_claims, require_role
from ..exceptions import create_success_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Jobs"])

farmer_only = require_role("farmer")
labourer_only = require_role("labourer")


@router.post("/jobs")
async def post_job(
    body: JobCreateRequest,
    farmer: SessionClaims = Depends(farmer_only),
    job_service: JobService = Depends(get_job_service),
):
    job = await job_service.post_job(farmer, body.model_dump())
    return create_success_response("Job posted successfully", {"job": serialize_job(job)})


@router.get("/jobs")
async def search_jobs(
    state: Optional[str] = None,
    district: Optional[str] = None,
    cropType: Optional[str] = None,
    workType: Optional[str] = None,
    experienceLevel: Optional[str] = None,
    minWage: Optional[float] = Query(None, ge=0),
    maxWage: Optional[float] = Query(None, ge=0),
    status: str = "open",
    limit: int = Query(10, ge=1, le=50),
    skip: int = Query(0, ge=0),
    _: SessionClaims = Depends(get_current_claims),
    job_service: JobService = Depends(get_job_service),
):
    filters = JobSearchFilters(
        state=state,
        district=district,
        crop_type=cropType,
        work_type=workType,
        experience_level=experienceLevel,
        min_wage=minWage,
        max_wage=maxWage,
        status=status,
    )
    jobs = await job_service.search(filters, limit=limit, skip=skip)
    return {"success": True, "data": {"jobs": [serialize_job(j) for j in jobs], "limit": limit, "skip": skip}}


@router.get("/jobs/mine")
async def my_jobs(
    limit: int = Query(10, ge=1, le=50),
    skip: int = Query(0, ge=0),
    farmer: SessionClaims = Depends(farmer_only),
    job_service: JobService = Depends(get_job_service),
):
    jobs = await job_service.jobs_for_farmer(farmer, limit=limit, skip=skip)
    return {"success": True, "data": {"jobs": [serialize_job(j) for j in jobs]}}


@router.get("/jobs/{job_id}")
async def get_job(
    job_id: str,
    _: SessionClaims = Depends(get_current_claims),
    job_service: JobService = Depends(get_job_service),
):
    job = await job_service.get_job(job_id)
    return {"success": True, "data": {"job": serialize_job(job)}}


@router.patch("/jobs/{job_id}")
async def update_job_status(
    job_id: str,
    body: JobStatusUpdateRequest,
    farmer: SessionClaims = Depends(farmer_only),
    job_service: JobService = Depends(get_job_service),
):
    job = await job_service.change_status(farmer, job_id, body.status)
    return create_success_response("Job updated", {"job": serialize_job(job)})


@router.post("/jobs/{job_id}/applications")
async def apply_to_job(
    job_id: str,
    body: ApplyRequest,
    labourer: SessionClaims = Depends(labourer_only),
    job_service: JobService = Depends(get_job_service),
):
    application = await job_service.apply(labourer, job_id, message=body.message, proposed_wage=body.proposedWage)
    return create_success_response("Application submitted", {"application": serialize_application(application)})


@router.get("/jobs/{job_id}/applications")
async def job_applications(
    job_id: str,
    farmer: SessionClaims = Depends(farmer_only),
    job_service: JobService = Depends(get_job_service),
):
    applications = await job_service.applications_for_job(farmer, job_id)
    return {"success": True, "data": {"applications": [serialize_application(a) for a in applications]}}


@router.get("/applications/mine")
async def my_applications(
    labourer: SessionClaims = Depends(labourer_only),
    job_service: JobService = Depends(get_job_service),
):
    applications = await job_service.applications_for_labourer(labourer)
    return {"success": True, "data": {"applications": [serialize_application(a) for a in applications]}}


@router.patch("/applications/{application_id}")
async def respond_to_application(
    application_id: str,
    body: ApplicationStatusUpdateRequest,
    caller: SessionClaims = Depends(get_current_claims),
    job_service: JobService = Depends(get_job_service),
):
    application = await job_service.respond(caller, application_id, body.status)
    return create_success_response(f"Application {application.status}", {"application": serialize_application(application)})
