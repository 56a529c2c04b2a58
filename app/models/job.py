from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from app.database import Base

JOB_STATUS_OPEN = "open"
JOB_STATUS_CLOSED = "closed"


class JobEntry(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    conditions = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(16), nullable=False, default=JOB_STATUS_OPEN)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    max_applications = Column(Integer, nullable=True)
    application_count = Column(Integer, nullable=False, default=0)
    creator_id = Column(
        Integer, ForeignKey("user_credentials.id"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class JobApplicationEntry(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    applicant_id = Column(
        Integer, ForeignKey("user_credentials.id"), nullable=False, index=True
    )
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_job_applications_job_applicant"),
    )
