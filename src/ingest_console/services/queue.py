"""Job store: single-row reads and writes on the ingestion queue."""

import logging
import time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ingest_console.errors import JobCompleted, JobNotFound
from ingest_console.models.jobs import IngestionJob, JobStatus
from ingest_console.services.stats import apply_tenant_filter
from ingest_console.settings import BULK_RETRY_LIMIT

logger = logging.getLogger(__name__)

BACKOFF_BASE = 5


def next_retry_delay(attempts: int) -> int:
    """Seconds to wait before the worker picks the job up again: 5^attempts minutes."""
    return (BACKOFF_BASE ** max(attempts, 0)) * 60


async def get(session: AsyncSession, job_id: str) -> IngestionJob:
    job = await session.get(IngestionJob, job_id)
    if job is None:
        raise JobNotFound(job_id)
    return job


async def get_by_file(session: AsyncSession, file_id: str) -> IngestionJob:
    stmt = select(IngestionJob).where(col(IngestionJob.file_id) == file_id).limit(1)
    result = await session.execute(stmt)
    job = result.scalar_one_or_none()
    if job is None:
        raise JobNotFound(file_id)
    return job


async def list_by_status(
    session: AsyncSession,
    status: JobStatus,
    *,
    app_id: str | None = None,
    org_id: str | None = None,
    limit: int = BULK_RETRY_LIMIT,
) -> list[IngestionJob]:
    """Oldest first. A tenant filter drops jobs whose file is gone."""
    stmt = select(IngestionJob).where(col(IngestionJob.status) == status.value)
    stmt = apply_tenant_filter(stmt, app_id=app_id, org_id=org_id)
    stmt = stmt.order_by(col(IngestionJob.created_at), col(IngestionJob.id)).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def enqueue(session: AsyncSession, file_id: str, max_attempts: int = 3) -> IngestionJob:
    job = IngestionJob(file_id=file_id, status=JobStatus.QUEUED.value, max_attempts=max_attempts)
    session.add(job)
    await session.flush()
    logger.info(f"Job {job.id} queued for file {file_id}")
    return job


async def upsert_status(
    session: AsyncSession,
    file_id: str,
    status: JobStatus,
    *,
    reset_attempts: bool = False,
    error: str | None = None,
    next_retry_at: int | None = None,
    worker_response: dict[str, Any] | None = None,
) -> IngestionJob:
    """Write a new status for the job of `file_id`.

    `error` replaces the stored error message, so passing None clears it.
    `completed_at` follows the status: stamped on entry into completed, cleared
    on any other status.
    """
    job = await get_by_file(session, file_id)
    _apply_status(job, status)
    if reset_attempts:
        job.attempts = 0
    job.error_message = error
    if next_retry_at is not None:
        job.next_retry_at = next_retry_at
    if worker_response is not None:
        job.worker_response = worker_response
    session.add(job)
    await session.flush()
    return job


def _apply_status(job: IngestionJob, status: JobStatus) -> None:
    job.status = status.value
    if status == JobStatus.COMPLETED:
        if job.completed_at is None:
            job.completed_at = int(time.time())
    else:
        job.completed_at = None


async def mark_sent(session: AsyncSession, file_id: str, *, worker_response: dict[str, Any] | None = None) -> IngestionJob:
    job = await get_by_file(session, file_id)
    if job.is_completed:
        raise JobCompleted(job.id)
    job = await upsert_status(session, file_id, JobStatus.SENT, worker_response=worker_response)
    job.last_attempt_at = int(time.time())
    await session.flush()
    return job


async def mark_completed(
    session: AsyncSession, file_id: str, *, worker_response: dict[str, Any] | None = None
) -> IngestionJob:
    job = await get_by_file(session, file_id)
    if job.is_completed:
        raise JobCompleted(job.id)
    return await upsert_status(session, file_id, JobStatus.COMPLETED, worker_response=worker_response)


async def mark_failed(
    session: AsyncSession,
    file_id: str,
    *,
    error: str,
    worker_response: dict[str, Any] | None = None,
) -> IngestionJob:
    job = await get_by_file(session, file_id)
    if job.is_completed:
        raise JobCompleted(job.id)

    now = int(time.time())
    job.attempts += 1
    job.last_attempt_at = now
    if job.attempts < job.max_attempts:
        job.next_retry_at = now + next_retry_delay(job.attempts)
    else:
        job.next_retry_at = None

    return await upsert_status(session, file_id, JobStatus.FAILED, error=error, worker_response=worker_response)


async def delete(session: AsyncSession, job_id: str) -> IngestionJob:
    """Remove a job row. Completed jobs are refused and left untouched."""
    job = await get(session, job_id)
    if job.is_completed:
        raise JobCompleted(job_id)
    await session.delete(job)
    await session.flush()
    return job
