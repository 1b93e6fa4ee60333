"""Operator-initiated retry of ingestion jobs.

A retry resets the job and its file to a retryable state, commits that reset,
then rebuilds the trigger payload from the file's current metadata and hands
it to the worker. The reset is never rolled back when the trigger call fails:
the job stays queued and the failure is reported to the caller.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ingest_console.errors import QueueError, RetryNotAllowed, UpstreamError
from ingest_console.models.files import SourceFile
from ingest_console.models.jobs import RETRYABLE_STATUSES, IngestionJob, JobStatus
from ingest_console.services import queue, registry
from ingest_console.services.worker import WorkerError, trigger_ingestion
from ingest_console.settings import BULK_RETRY_LIMIT, DEFAULT_QUALITY_LEVEL

logger = logging.getLogger(__name__)


@dataclass
class RetryResult:
    job: IngestionJob
    payload: dict[str, Any]
    worker_response: dict[str, Any]


@dataclass
class BulkRetryReport:
    count: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


def build_trigger_payload(
    job: IngestionJob,
    uploaded_file: SourceFile,
    *,
    quality_level: str = DEFAULT_QUALITY_LEVEL,
) -> dict[str, Any]:
    metadata = dict(uploaded_file.meta or {})
    default_projects = [uploaded_file.project_id] if uploaded_file.project_id else []
    return {
        "queue_id": job.id,
        "file_id": uploaded_file.id,
        "filename": uploaded_file.original_filename,
        "storage_bucket": uploaded_file.storage_bucket,
        "storage_path": uploaded_file.storage_path,
        "mime_type": uploaded_file.mime_type,
        "layer": uploaded_file.layer,
        "org_id": uploaded_file.org_id,
        "project_id": uploaded_file.project_id,
        "created_by": uploaded_file.created_by,
        "app_id": uploaded_file.app_id,
        "metadata": {
            **metadata,
            "document_title": metadata.get("document_title") or metadata.get("title") or None,
            "category_slug": metadata.get("category_slug") or metadata.get("category") or None,
            "filename_clean": metadata.get("filename_clean") or uploaded_file.original_filename,
            "quality_level": metadata.get("quality_level") or quality_level,
            "file_size": uploaded_file.file_size,
            "target_project_ids": metadata.get("target_project_ids") or default_projects,
        },
    }


async def retry_job(
    session: AsyncSession,
    client: httpx.AsyncClient,
    trigger_url: str,
    file_id: str,
    *,
    quality_level: str = DEFAULT_QUALITY_LEVEL,
) -> RetryResult:
    job = await queue.get_by_file(session, file_id)
    if JobStatus(job.status) not in RETRYABLE_STATUSES:
        raise RetryNotAllowed(file_id, job.status)
    uploaded_file = await registry.get_file(session, file_id)

    job = await queue.upsert_status(
        session,
        file_id,
        JobStatus.QUEUED,
        reset_attempts=True,
        error=None,
        next_retry_at=int(time.time()),
    )
    await registry.reset_processing(session, uploaded_file)
    await session.commit()
    logger.info(f"Job {job.id} reset to queued for file {file_id}")

    payload = build_trigger_payload(job, uploaded_file, quality_level=quality_level)
    try:
        worker_response = await trigger_ingestion(client, trigger_url, payload)
    except WorkerError as e:
        logger.warning(f"Trigger for file {file_id} failed after reset: {e}")
        raise UpstreamError(file_id, e, job=job) from e

    logger.info(f"Trigger sent for file {file_id} (queue {job.id})")
    return RetryResult(job=job, payload=payload, worker_response=worker_response)


async def retry_all(
    session: AsyncSession,
    client: httpx.AsyncClient,
    trigger_url: str,
    *,
    app_id: str | None = None,
    org_id: str | None = None,
    limit: int = BULK_RETRY_LIMIT,
    quality_level: str = DEFAULT_QUALITY_LEVEL,
) -> BulkRetryReport:
    """Retry every failed and queued job, one at a time.

    `count` is the number of jobs left queued. Jobs whose trigger failed are
    counted and also reported in `errors`; jobs that could not be reset at all
    only appear in `errors`.
    """
    failed = await queue.list_by_status(session, JobStatus.FAILED, app_id=app_id, org_id=org_id, limit=limit)
    queued = await queue.list_by_status(session, JobStatus.QUEUED, app_id=app_id, org_id=org_id, limit=limit)
    targets = [(job.id, job.file_id) for job in failed + queued]

    report = BulkRetryReport()
    for job_id, file_id in targets:
        try:
            await retry_job(session, client, trigger_url, file_id, quality_level=quality_level)
            report.count += 1
        except UpstreamError as e:
            report.count += 1
            report.errors.append({"job_id": job_id, "file_id": file_id, "message": str(e.cause)})
        except QueueError as e:
            report.errors.append({"job_id": job_id, "file_id": file_id, "message": str(e)})
        except Exception as e:
            await session.rollback()
            logger.error(f"Unexpected error retrying job {job_id}: {e}", exc_info=True)
            report.errors.append({"job_id": job_id, "file_id": file_id, "message": str(e)})

    logger.info(f"Bulk retry: {report.count} of {len(targets)} jobs queued, {len(report.errors)} errors")
    return report
