import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ingest_console.dependencies import get_db_session, require_worker
from ingest_console.services.worker_events import apply_worker_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"], dependencies=[Depends(require_worker)])


class WorkerEvent(BaseModel):
    event: Literal["job.sent", "job.completed", "job.failed"]
    file_id: str
    error: str | None = None
    response: dict[str, Any] | None = None


class WorkerEventResponse(BaseModel):
    status: str
    job_id: str
    job_status: str
    attempts: int
    next_retry_at: int | None


@router.post("/ingestion")
async def receive_ingestion_event(
    event: WorkerEvent,
    session: AsyncSession = Depends(get_db_session),
) -> WorkerEventResponse:
    """Receive status reports from the ingestion worker."""
    logger.info(f"Received worker event {event.event} for file {event.file_id}")
    job = await apply_worker_event(
        session,
        event=event.event,
        file_id=event.file_id,
        error=event.error,
        response=event.response,
    )
    return WorkerEventResponse(
        status="accepted",
        job_id=job.id,
        job_status=job.status,
        attempts=job.attempts,
        next_retry_at=job.next_retry_at,
    )
