"""Ingestion queue entity."""

import time
import uuid
from enum import Enum
from typing import Any, Dict

from sqlalchemy import JSON, CheckConstraint, Column, Index
from sqlmodel import Field, SQLModel


class JobStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    COMPLETED = "completed"
    FAILED = "failed"


RETRYABLE_STATUSES = (JobStatus.FAILED, JobStatus.QUEUED)


class IngestionJob(SQLModel, table=True):
    """One queue entry per file submitted for processing."""

    __tablename__ = "ingestion_jobs"
    __table_args__ = (
        Index("ix_ingestion_jobs_status", "status"),
        Index("ix_ingestion_jobs_created_at", "created_at"),
        CheckConstraint("(status = 'completed') = (completed_at IS NOT NULL)", name="ck_ingestion_jobs_completed_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    file_id: str = Field(index=True, unique=True)
    status: str = Field(default=JobStatus.QUEUED.value)
    attempts: int = Field(default=0, ge=0)
    max_attempts: int = Field(default=3, ge=1)
    last_attempt_at: int | None = Field(default=None)
    next_retry_at: int | None = Field(default=None)
    error_message: str | None = Field(default=None)
    worker_response: Dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: int = Field(default_factory=lambda: int(time.time()))
    completed_at: int | None = Field(default=None)

    @property
    def is_completed(self) -> bool:
        return self.status == JobStatus.COMPLETED.value
