import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.routers.auth import get_current_user_id, get_optional_user_id
from app.schemas.jobs import (
    JobApplicationCreate,
    JobApplicationResponse,
    JobCreate,
    JobDetailResponse,
    JobResponse,
)
from app.services.jobs import JobError, job_store

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=list[JobResponse], response_model_exclude_none=True)
def list_jobs(viewer_id: int | None = Depends(get_optional_user_id)) -> list[JobResponse]:
    return job_store.list_jobs(viewer_id)


@router.get("/mine", response_model=list[JobResponse], response_model_exclude_none=True)
def list_my_jobs(user_id: int = Depends(get_current_user_id)) -> list[JobResponse]:
    return job_store.list_jobs_for_creator(user_id)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
def create_job(payload: JobCreate, user_id: int = Depends(get_current_user_id)) -> JobResponse:
    return job_store.create_job(user_id, payload)


@router.get("/{job_id}", response_model=JobDetailResponse, response_model_exclude_none=True)
def get_job(
    job_id: int, viewer_id: int | None = Depends(get_optional_user_id)
) -> JobDetailResponse:
    job = job_store.get_job(job_id, viewer_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


@router.post(
    "/{job_id}/apply",
    response_model=JobApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def apply_to_job(
    job_id: int,
    payload: JobApplicationCreate,
    user_id: int = Depends(get_current_user_id),
) -> JobApplicationResponse:
    try:
        return job_store.apply(job_id, user_id, payload.message)
    except JobError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        LOGGER.exception("Error applying to job %s", job_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to apply",
        ) from exc


@router.post("/{job_id}/close", response_model=JobResponse)
def close_job(job_id: int, user_id: int = Depends(get_current_user_id)) -> JobResponse:
    try:
        return job_store.close_job(job_id, user_id)
    except JobError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
