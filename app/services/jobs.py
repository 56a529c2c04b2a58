from datetime import datetime, timezone
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from app.database import session_scope
from app.models.job import (
    JOB_STATUS_CLOSED,
    JOB_STATUS_OPEN,
    JobApplicationEntry,
    JobEntry,
)
from app.schemas.jobs import (
    JobApplicationResponse,
    JobCreate,
    JobDetailResponse,
    JobResponse,
)

LOGGER = logging.getLogger(__name__)


class JobError(ValueError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DuplicateApplicationError(JobError):
    def __init__(self) -> None:
        super().__init__("You have already applied to this job", status_code=409)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def is_job_expired(entry: JobEntry, now: datetime | None = None) -> bool:
    expires_at = _as_utc(entry.expires_at)
    if expires_at is None:
        return False
    return expires_at < (now or datetime.now(timezone.utc))


def is_job_full(entry: JobEntry) -> bool:
    if not entry.max_applications:
        return False
    return (entry.application_count or 0) >= entry.max_applications


def is_job_closed(entry: JobEntry, now: datetime | None = None) -> bool:
    """Closed if marked so, past its expiry, or at its application cap."""
    return (
        entry.status == JOB_STATUS_CLOSED
        or is_job_expired(entry, now)
        or is_job_full(entry)
    )


class JobStore:
    def list_jobs(self, viewer_id: int | None = None) -> list[JobResponse]:
        with session_scope() as session:
            entries = session.execute(
                select(JobEntry).order_by(JobEntry.created_at.desc(), JobEntry.id.desc())
            ).scalars().all()
            applied = self._applied_job_ids(session, viewer_id)
        return [self._to_response(entry, applied, viewer_id) for entry in entries]

    def list_jobs_for_creator(self, creator_id: int) -> list[JobResponse]:
        with session_scope() as session:
            entries = session.execute(
                select(JobEntry)
                .where(JobEntry.creator_id == creator_id)
                .order_by(JobEntry.created_at.desc(), JobEntry.id.desc())
            ).scalars().all()
            applied = self._applied_job_ids(session, creator_id)
        return [self._to_response(entry, applied, creator_id) for entry in entries]

    def get_job(self, job_id: int, viewer_id: int | None = None) -> JobDetailResponse | None:
        with session_scope() as session:
            entry = session.get(JobEntry, job_id)
            if entry is None:
                return None
            applied = self._applied_job_ids(session, viewer_id)
            applications = []
            # Only the creator gets to see who applied.
            if viewer_id is not None and viewer_id == entry.creator_id:
                applications = session.execute(
                    select(JobApplicationEntry)
                    .where(JobApplicationEntry.job_id == job_id)
                    .order_by(JobApplicationEntry.created_at, JobApplicationEntry.id)
                ).scalars().all()
        base = self._to_response(entry, applied, viewer_id)
        return JobDetailResponse(
            **base.model_dump(),
            applications=[self._to_application_response(app) for app in applications],
        )

    def create_job(self, creator_id: int, payload: JobCreate) -> JobResponse:
        now = datetime.now(timezone.utc)
        expires_at = payload.expires_at
        if expires_at is not None:
            expires_at = _as_utc(expires_at).astimezone(timezone.utc)
        with session_scope() as session:
            entry = JobEntry(
                title=payload.title,
                description=payload.description,
                conditions=payload.conditions,
                location=payload.location,
                status=JOB_STATUS_OPEN,
                expires_at=expires_at,
                max_applications=payload.max_applications,
                application_count=0,
                creator_id=creator_id,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
        LOGGER.info("Job %s created by user %s", entry.id, creator_id)
        return self._to_response(entry, set(), creator_id)

    def close_job(self, job_id: int, user_id: int) -> JobResponse:
        with session_scope() as session:
            entry = session.get(JobEntry, job_id)
            if entry is None:
                raise JobError("Job not found", status_code=404)
            if entry.creator_id != user_id:
                raise JobError("Only the job creator can close this job", status_code=403)
            entry.status = JOB_STATUS_CLOSED
            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
        return self._to_response(entry, set(), user_id)

    def apply(
        self, job_id: int, applicant_id: int, message: str | None = None
    ) -> JobApplicationResponse:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            # Re-read right before the insert; the unique constraint is what
            # actually rules out a second application.
            job = session.get(JobEntry, job_id)
            if job is None:
                raise JobError("Job not found", status_code=404)
            if job.status != JOB_STATUS_OPEN:
                raise JobError("This job is no longer accepting applications")
            if is_job_expired(job, now):
                raise JobError("This job has expired")
            if is_job_full(job):
                raise JobError("This job is no longer accepting applications")
            if job.creator_id == applicant_id:
                raise JobError("You cannot apply to your own job")

            entry = JobApplicationEntry(
                job_id=job_id,
                applicant_id=applicant_id,
                message=message,
                created_at=now,
            )
            session.add(entry)
            try:
                session.flush()
            except IntegrityError as exc:
                raise DuplicateApplicationError() from exc
            session.execute(
                update(JobEntry)
                .where(JobEntry.id == job_id)
                .values(application_count=JobEntry.application_count + 1)
                .execution_options(synchronize_session=False)
            )
        LOGGER.info("User %s applied to job %s", applicant_id, job_id)
        return self._to_application_response(entry)

    def _applied_job_ids(self, session, viewer_id: int | None) -> set[int]:
        if viewer_id is None:
            return set()
        result = session.execute(
            select(JobApplicationEntry.job_id).where(
                JobApplicationEntry.applicant_id == viewer_id
            )
        )
        return set(result.scalars().all())

    def _to_response(
        self, entry: JobEntry, applied: set[int], viewer_id: int | None
    ) -> JobResponse:
        return JobResponse(
            id=entry.id,
            title=entry.title,
            description=entry.description,
            conditions=entry.conditions,
            location=entry.location,
            status=entry.status,
            expires_at=_as_utc(entry.expires_at),
            max_applications=entry.max_applications,
            application_count=entry.application_count or 0,
            creator_id=entry.creator_id,
            created_at=_as_utc(entry.created_at),
            is_closed=is_job_closed(entry),
            has_applied=entry.id in applied if viewer_id is not None else None,
        )

    def _to_application_response(
        self, entry: JobApplicationEntry
    ) -> JobApplicationResponse:
        return JobApplicationResponse(
            id=entry.id,
            job_id=entry.job_id,
            applicant_id=entry.applicant_id,
            message=entry.message,
            created_at=_as_utc(entry.created_at),
        )


job_store = JobStore()
