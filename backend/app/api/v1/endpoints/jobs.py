"""
Jobs board: listings, saved jobs, applications and job alerts.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from app.core.database import get_db
from app.models.job import JobType, JobLocationType
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_optional_user
from app.schemas.job import (
    JobCreate,
    JobUpdate,
    JobResponse,
    JobListResponse,
    JobApplicationCreate,
    JobApplicationResponse,
    JobApplicationStatusUpdate,
    JobAlertCreate,
    JobAlertResponse,
)
from app.schemas.post import SaveResponse
from app.services.job_service import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


async def _enriched_page(service: JobService, page_data: dict, viewer: Optional[User]) -> dict:
    page_data["items"] = await service.enrich(page_data["items"], viewer)
    return page_data


@router.get("", response_model=JobListResponse)
async def list_jobs(
    search: Optional[str] = None,
    location: Optional[str] = None,
    job_type: Optional[JobType] = None,
    location_type: Optional[JobLocationType] = None,
    include_closed: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """Open jobs, newest first. Search matches title, company, description and skills."""
    service = JobService(db)
    page_data = await service.list_jobs(
        search=search,
        location=location,
        job_type=job_type,
        location_type=location_type,
        include_closed=include_closed,
        page=page,
        page_size=page_size,
    )
    return await _enriched_page(service, page_data, viewer)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = JobService(db)
    job = await service.create_job(current_user, data.model_dump())
    return (await service.enrich([job], current_user))[0]


@router.get("/saved", response_model=JobListResponse)
async def saved_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = JobService(db)
    return await _enriched_page(service, await service.saved_jobs(current_user, page, page_size), current_user)


# ==================== Alerts ====================

@router.get("/alerts", response_model=List[JobAlertResponse])
async def list_alerts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await JobService(db).list_alerts(current_user)


@router.post("/alerts", response_model=JobAlertResponse, status_code=status.HTTP_201_CREATED)
async def create_alert(
    data: JobAlertCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await JobService(db).create_alert(current_user, data.model_dump())


@router.delete("/alerts/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_alert(
    alert_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await JobService(db).delete_alert(alert_id, current_user)


@router.get("/alerts/{alert_id}/matches", response_model=JobListResponse)
async def alert_matches(
    alert_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Open jobs matching one of your alerts"""
    service = JobService(db)
    page_data = await service.alert_matches(alert_id, current_user, page, page_size)
    return await _enriched_page(service, page_data, current_user)


# ==================== Applications ====================

@router.get("/applications/me", response_model=List[JobApplicationResponse])
async def my_applications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await JobService(db).my_applications(current_user)


@router.patch("/applications/{application_id}", response_model=JobApplicationResponse)
async def update_application_status(
    application_id: str,
    data: JobApplicationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Move an application along (job poster only)"""
    return await JobService(db).update_application_status(application_id, current_user, data.status)


# ==================== Single job ====================

@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    service = JobService(db)
    return (await service.enrich([await service.get_job(job_id)], viewer))[0]


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    changes: JobUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = JobService(db)
    job = await service.update_job(job_id, current_user, changes.model_dump(exclude_unset=True))
    return (await service.enrich([job], current_user))[0]


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await JobService(db).delete_job(job_id, current_user)


@router.post("/{job_id}/save", response_model=SaveResponse)
async def save_job(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"saved": await JobService(db).save_job(job_id, current_user)}


@router.delete("/{job_id}/save", response_model=SaveResponse)
async def unsave_job(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"saved": await JobService(db).unsave_job(job_id, current_user)}


@router.post("/{job_id}/apply", response_model=JobApplicationResponse, status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    job_id: str,
    data: Optional[JobApplicationCreate] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    payload = data.model_dump() if data else {}
    return await JobService(db).apply(job_id, current_user, payload)


@router.get("/{job_id}/applications", response_model=List[JobApplicationResponse])
async def job_applications(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Applications received for a job (poster only)"""
    return await JobService(db).applications_for_job(job_id, current_user)
