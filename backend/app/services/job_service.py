"""
Job Service - listings, saved jobs, applications and job alerts.
"""

from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, or_

from app.core.exceptions import (
    JobNotFoundError,
    JobApplicationNotFoundError,
    JobAlertNotFoundError,
    AlreadyAppliedError,
    AuthorizationError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.job import (
    Job, JobType, JobLocationType, SavedJob, JobApplication, ApplicationStatus, JobAlert,
)
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas.user import UserSummary
from app.services.notification_service import NotificationService
from app.utils.pagination import paginate
from app.utils.text_search import contains, contains_any

EDITABLE_FIELDS = (
    "title", "company", "location", "location_type", "job_type", "description",
    "responsibilities", "requirements", "salary", "application_link", "logo",
    "is_easy_apply", "is_active", "expires_at",
)


def join_skills(skills: Optional[Iterable[str]]) -> Optional[str]:
    if not skills:
        return None
    cleaned = [s.strip() for s in skills if s and s.strip()]
    return ",".join(cleaned) or None


class JobService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_job(self, job_id: str) -> Job:
        job = await self.db.get(Job, str(job_id))
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _ensure_can_edit(self, job: Job, user: User) -> None:
        if str(job.user_id) != str(user.id) and not user.is_admin:
            raise AuthorizationError("Only the member who posted this job can change it")

    async def create_job(self, user: User, data: Dict[str, Any]) -> Job:
        data = dict(data)
        skills = data.pop("skills", None)
        job = Job(user_id=str(user.id), skills=join_skills(skills), **data)
        self.db.add(job)
        await self.db.flush()
        await self.db.refresh(job)
        logger.info(f"Job {job.id} '{job.title}' posted by {user.id}")
        return job

    async def update_job(self, job_id: str, user: User, changes: Dict[str, Any]) -> Job:
        job = await self.get_job(job_id)
        self._ensure_can_edit(job, user)
        for field_name in EDITABLE_FIELDS:
            if field_name in changes:
                setattr(job, field_name, changes[field_name])
        if "skills" in changes:
            job.skills = join_skills(changes["skills"])
        await self.db.flush()
        return job

    async def delete_job(self, job_id: str, user: User) -> None:
        job = await self.get_job(job_id)
        self._ensure_can_edit(job, user)
        await self.db.delete(job)
        await self.db.flush()

    def _open_filter(self, query):
        now = utcnow()
        return query.where(
            Job.is_active.is_(True),
            or_(Job.expires_at.is_(None), Job.expires_at > now),
        )

    async def list_jobs(
        self,
        search: Optional[str] = None,
        location: Optional[str] = None,
        job_type: Optional[JobType] = None,
        location_type: Optional[JobLocationType] = None,
        include_closed: bool = False,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> dict:
        query = select(Job)
        if not include_closed:
            query = self._open_filter(query)
        if search and search.strip():
            query = query.where(contains_any(
                search, Job.title, Job.company, Job.description, Job.skills
            ))
        if location and location.strip():
            query = query.where(contains(Job.location, location))
        if job_type:
            query = query.where(Job.job_type == job_type)
        if location_type:
            query = query.where(Job.location_type == location_type)
        query = query.order_by(Job.created_at.desc(), Job.id)
        return await paginate(self.db, query, page, page_size)

    async def jobs_by_user(self, user_id: str) -> List[Job]:
        result = await self.db.execute(
            select(Job).where(Job.user_id == str(user_id)).order_by(Job.created_at.desc())
        )
        return list(result.scalars().all())

    async def enrich(self, jobs: Iterable[Job], viewer: Optional[User]) -> List[Dict[str, Any]]:
        jobs = list(jobs)
        ids = [str(j.id) for j in jobs]
        applicant_counts: Dict[str, int] = {}
        saved, applied = set(), set()

        if ids:
            result = await self.db.execute(
                select(JobApplication.job_id, func.count())
                .where(JobApplication.job_id.in_(ids))
                .group_by(JobApplication.job_id)
            )
            applicant_counts = {str(k): c for k, c in result.all()}

            if viewer is not None:
                result = await self.db.execute(
                    select(SavedJob.job_id).where(SavedJob.user_id == str(viewer.id), SavedJob.job_id.in_(ids))
                )
                saved = {str(r[0]) for r in result.all()}
                result = await self.db.execute(
                    select(JobApplication.job_id).where(
                        JobApplication.user_id == str(viewer.id), JobApplication.job_id.in_(ids)
                    )
                )
                applied = {str(r[0]) for r in result.all()}

        return [
            {
                "id": str(job.id),
                "title": job.title,
                "company": job.company,
                "location": job.location,
                "location_type": job.location_type,
                "job_type": job.job_type,
                "description": job.description,
                "responsibilities": job.responsibilities,
                "requirements": job.requirements,
                "skills": job.skill_list,
                "salary": job.salary,
                "application_link": job.application_link,
                "logo": job.logo,
                "is_easy_apply": job.is_easy_apply,
                "is_active": job.is_active,
                "created_at": job.created_at,
                "expires_at": job.expires_at,
                "poster": UserSummary.model_validate(job.poster),
                "applicant_count": applicant_counts.get(str(job.id), 0),
                "saved_by_me": str(job.id) in saved,
                "applied_by_me": str(job.id) in applied,
            }
            for job in jobs
        ]

    # ==================== Saved jobs ====================

    async def save_job(self, job_id: str, user: User) -> bool:
        job = await self.get_job(job_id)
        existing = await self.db.execute(
            select(SavedJob.id).where(SavedJob.job_id == str(job.id), SavedJob.user_id == str(user.id))
        )
        if existing.first() is None:
            self.db.add(SavedJob(job_id=str(job.id), user_id=str(user.id)))
            await self.db.flush()
        return True

    async def unsave_job(self, job_id: str, user: User) -> bool:
        await self.db.execute(
            delete(SavedJob).where(SavedJob.job_id == str(job_id), SavedJob.user_id == str(user.id))
        )
        await self.db.flush()
        return False

    async def saved_jobs(self, user: User, page: int = 1, page_size: Optional[int] = None) -> dict:
        query = (
            select(Job)
            .join(SavedJob, SavedJob.job_id == Job.id)
            .where(SavedJob.user_id == str(user.id))
            .order_by(SavedJob.created_at.desc())
        )
        return await paginate(self.db, query, page, page_size)

    # ==================== Applications ====================

    async def apply(self, job_id: str, user: User, data: Dict[str, Any]) -> JobApplication:
        job = await self.get_job(job_id)
        if not job.is_open():
            raise ValidationError("This job is no longer accepting applications", field="job_id")
        if str(job.user_id) == str(user.id):
            raise ValidationError("You cannot apply to your own job", field="job_id")

        existing = await self.db.execute(
            select(JobApplication.id).where(
                JobApplication.job_id == str(job.id), JobApplication.user_id == str(user.id)
            )
        )
        if existing.first() is not None:
            raise AlreadyAppliedError(job.id)

        application = JobApplication(
            job_id=str(job.id),
            user_id=str(user.id),
            cover_letter=data.get("cover_letter"),
            resume_url=data.get("resume_url"),
            phone=data.get("phone"),
            status=ApplicationStatus.SUBMITTED,
        )
        self.db.add(application)
        await self.db.flush()
        await self.db.refresh(application)

        await self.notifications.create(
            job.user_id,
            NotificationType.JOB,
            f"{user.name} applied to {job.title}",
            related_id=application.id,
            related_type="job_application",
        )
        logger.info(f"Application {application.id}: user {user.id} -> job {job.id}")
        return application

    async def my_applications(self, user: User) -> List[JobApplication]:
        result = await self.db.execute(
            select(JobApplication)
            .where(JobApplication.user_id == str(user.id))
            .order_by(JobApplication.created_at.desc())
        )
        return list(result.scalars().all())

    async def applications_for_job(self, job_id: str, user: User) -> List[JobApplication]:
        job = await self.get_job(job_id)
        self._ensure_can_edit(job, user)
        result = await self.db.execute(
            select(JobApplication)
            .where(JobApplication.job_id == str(job.id))
            .order_by(JobApplication.created_at.asc())
        )
        return list(result.scalars().all())

    async def update_application_status(
        self, application_id: str, user: User, status: ApplicationStatus
    ) -> JobApplication:
        application = await self.db.get(JobApplication, str(application_id))
        if application is None:
            raise JobApplicationNotFoundError(application_id)
        self._ensure_can_edit(application.job, user)

        application.status = status
        await self.db.flush()

        await self.notifications.create(
            application.user_id,
            NotificationType.JOB,
            f"Your application for {application.job.title} is now {status.value}",
            related_id=application.id,
            related_type="job_application",
        )
        return application

    # ==================== Alerts ====================

    async def create_alert(self, user: User, data: Dict[str, Any]) -> JobAlert:
        if not any(data.get(k) for k in ("keywords", "location", "job_type")):
            raise ValidationError("An alert needs keywords, a location or a job type")
        alert = JobAlert(user_id=str(user.id), **data)
        self.db.add(alert)
        await self.db.flush()
        return alert

    async def list_alerts(self, user: User) -> List[JobAlert]:
        result = await self.db.execute(
            select(JobAlert).where(JobAlert.user_id == str(user.id)).order_by(JobAlert.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_alert(self, alert_id: str, user: User) -> JobAlert:
        alert = await self.db.get(JobAlert, str(alert_id))
        if alert is None or str(alert.user_id) != str(user.id):
            raise JobAlertNotFoundError(alert_id)
        return alert

    async def delete_alert(self, alert_id: str, user: User) -> None:
        alert = await self.get_alert(alert_id, user)
        await self.db.delete(alert)
        await self.db.flush()

    async def alert_matches(self, alert_id: str, user: User, page: int = 1,
                            page_size: Optional[int] = None) -> dict:
        """Open jobs that satisfy the alert's filters"""
        alert = await self.get_alert(alert_id, user)
        return await self.list_jobs(
            search=alert.keywords,
            location=alert.location,
            job_type=alert.job_type,
            page=page,
            page_size=page_size,
        )
