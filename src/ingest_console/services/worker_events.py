"""Status reports written back by the external worker."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ingest_console.models.jobs import IngestionJob
from ingest_console.services import queue, registry

logger = logging.getLogger(__name__)

EVENT_SENT = "job.sent"
EVENT_COMPLETED = "job.completed"
EVENT_FAILED = "job.failed"

WORKER_EVENTS = (EVENT_SENT, EVENT_COMPLETED, EVENT_FAILED)


async def handle_job_sent(session: AsyncSession, file_id: str, response: dict[str, Any] | None) -> IngestionJob:
    job = await queue.mark_sent(session, file_id, worker_response=response)
    await registry.set_processing_status(session, file_id, registry.PROCESSING_RUNNING)
    return job


async def handle_job_completed(
    session: AsyncSession, file_id: str, response: dict[str, Any] | None
) -> IngestionJob:
    job = await queue.mark_completed(session, file_id, worker_response=response)
    await registry.set_processing_status(session, file_id, registry.PROCESSING_COMPLETED)
    return job


async def handle_job_failed(
    session: AsyncSession, file_id: str, error: str | None, response: dict[str, Any] | None
) -> IngestionJob:
    message = error or "Worker reported a failure"
    job = await queue.mark_failed(session, file_id, error=message, worker_response=response)
    await registry.set_processing_status(session, file_id, registry.PROCESSING_FAILED, error=message)
    return job


async def apply_worker_event(
    session: AsyncSession,
    *,
    event: str,
    file_id: str,
    error: str | None = None,
    response: dict[str, Any] | None = None,
) -> IngestionJob:
    if event == EVENT_SENT:
        job = await handle_job_sent(session, file_id, response)
    elif event == EVENT_COMPLETED:
        job = await handle_job_completed(session, file_id, response)
    elif event == EVENT_FAILED:
        job = await handle_job_failed(session, file_id, error, response)
    else:
        raise ValueError(f"Unknown worker event: {event}")

    logger.info(f"Worker event {event} applied to job {job.id} (attempts {job.attempts})")
    return job
