from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

JobStatus = Literal["open", "closed"]


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    conditions: Optional[str] = Field(default=None, max_length=5000)
    location: Optional[str] = Field(default=None, max_length=255)
    expires_at: Optional[datetime] = None
    max_applications: Optional[int] = Field(default=None, ge=1)

    @field_validator("title", "description")
    @classmethod
    def normalize_required_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("This field is required")
        return cleaned

    @field_validator("conditions", "location")
    @classmethod
    def normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class JobApplicationCreate(BaseModel):
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("message")
    @classmethod
    def normalize_message(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class JobApplicationResponse(BaseModel):
    id: int
    job_id: int
    applicant_id: int
    message: Optional[str] = None
    created_at: datetime


class JobResponse(BaseModel):
    id: int
    title: str
    description: str
    conditions: Optional[str] = None
    location: Optional[str] = None
    status: JobStatus
    expires_at: Optional[datetime] = None
    max_applications: Optional[int] = None
    application_count: int = 0
    creator_id: int
    created_at: datetime
    is_closed: bool
    has_applied: Optional[bool] = None


class JobDetailResponse(JobResponse):
    applications: list[JobApplicationResponse] = Field(default_factory=list)
