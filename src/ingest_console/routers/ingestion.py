import logging
from typing import Any

import httpx
from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from ingest_console.dependencies import (
    get_db_session,
    get_readonly_db_session,
    get_settings,
    get_worker_client,
    require_operator,
)
from ingest_console.errors import UpstreamError
from ingest_console.models.jobs import IngestionJob, JobStatus
from ingest_console.services import deletion, queue, registry, retry, stats
from ingest_console.services.jobs_list import DEFAULT_LIMIT, JobRecord, get_job_record, list_jobs
from ingest_console.settings import Settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/ingestion", tags=["ingestion"], dependencies=[Depends(require_operator)])


class FileSummary(BaseModel):
    id: str
    original_filename: str
    mime_type: str | None
    processing_status: str
    org_id: str | None
    app_id: str | None
    project_id: str | None
    created_by: str | None
    file_size: int | None


class UploaderSummary(BaseModel):
    id: str
    email: str | None
    full_name: str | None


class JobResponse(BaseModel):
    id: str
    file_id: str
    status: str
    attempts: int
    max_attempts: int
    last_attempt_at: int | None
    next_retry_at: int | None
    error_message: str | None
    worker_response: dict[str, Any] | None
    created_at: int
    completed_at: int | None
    file: FileSummary | None = None
    user: UploaderSummary | None = None

    @classmethod
    def from_job(cls, job: IngestionJob) -> "JobResponse":
        return cls(**job.model_dump())

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobResponse":
        response = cls.from_job(record.job)
        if record.file is not None:
            response.file = FileSummary(**record.file.model_dump())
        if record.uploader is not None:
            response.user = UploaderSummary(**record.uploader.model_dump())
        return response


class JobListResponse(BaseModel):
    object: str = "list"
    data: list[JobResponse]
    has_more: bool


class RetryResponse(BaseModel):
    status: str
    job: JobResponse
    worker_response: dict[str, Any] | None = None
    warning: str | None = None


class RetryAllRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    app_id: str | None = None
    org_id: str | None = None


class RetryAllResponse(BaseModel):
    count: int
    errors: list[dict[str, Any]]


class DeleteResponse(BaseModel):
    id: str
    object: str = "ingestion.job.deleted"
    deleted: bool = True
    file_id: str | None
    file_deleted: bool


@router.get("/stats")
async def get_stats(
    app_id: str | None = Query(None),
    org_id: str | None = Query(None),
    session: AsyncSession = Depends(get_readonly_db_session),
) -> stats.QueueStats:
    return await stats.get_stats(session, app_id=app_id, org_id=org_id)


@router.get("/jobs")
async def index(
    status: JobStatus | None = Query(None, description="Filter by job status"),
    app_id: str | None = Query(None),
    org_id: str | None = Query(None),
    search: str | None = Query(None, description="Matches filename or uploader email"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=1000),
    session: AsyncSession = Depends(get_readonly_db_session),
) -> JobListResponse:
    page = await list_jobs(session, status=status, app_id=app_id, org_id=org_id, search=search, limit=limit)
    return JobListResponse(
        data=[JobResponse.from_record(record) for record in page.records],
        has_more=page.has_more,
    )


@router.get("/jobs/{file_id}")
async def get_job(file_id: str, session: AsyncSession = Depends(get_readonly_db_session)) -> JobResponse:
    job = await queue.get_by_file(session, file_id)
    return JobResponse.from_record(await get_job_record(session, job))


@router.get("/apps")
async def list_apps(session: AsyncSession = Depends(get_readonly_db_session)) -> dict[str, Any]:
    app_ids = await registry.list_app_ids(session)
    return {"object": "list", "data": [{"id": app_id, "name": app_id.upper()} for app_id in app_ids]}


@router.get("/orgs")
async def list_orgs(session: AsyncSession = Depends(get_readonly_db_session)) -> dict[str, Any]:
    orgs = await registry.list_active_orgs(session)
    return {"object": "list", "data": [{"id": org.id, "name": org.name} for org in orgs]}


@router.post("/jobs/{file_id}/retry", response_model=None)
async def retry_job(
    file_id: str,
    session: AsyncSession = Depends(get_db_session),
    client: httpx.AsyncClient = Depends(get_worker_client),
    settings: Settings = Depends(get_settings),
) -> RetryResponse | JSONResponse:
    try:
        result = await retry.retry_job(
            session,
            client,
            settings.worker_trigger_url,
            file_id,
            quality_level=settings.default_quality_level,
        )
    except UpstreamError as e:
        body = RetryResponse(status="queued", job=JobResponse.from_job(e.job), warning=str(e.cause))
        return JSONResponse(status_code=202, content=body.model_dump())

    return RetryResponse(status="queued", job=JobResponse.from_job(result.job), worker_response=result.worker_response)


@router.post("/retry-all")
async def retry_all(
    request: RetryAllRequest | None = Body(None),
    session: AsyncSession = Depends(get_db_session),
    client: httpx.AsyncClient = Depends(get_worker_client),
    settings: Settings = Depends(get_settings),
) -> RetryAllResponse:
    request = request or RetryAllRequest()
    report = await retry.retry_all(
        session,
        client,
        settings.worker_trigger_url,
        app_id=request.app_id,
        org_id=request.org_id,
        limit=settings.bulk_retry_limit,
        quality_level=settings.default_quality_level,
    )
    return RetryAllResponse(count=report.count, errors=report.errors)


@router.delete("/jobs/{job_id}")
async def delete_job(
    job_id: str,
    file_id: str | None = Query(None, description="Must match the job's file when given"),
    session: AsyncSession = Depends(get_db_session),
) -> DeleteResponse:
    result = await deletion.delete_job(session, job_id, file_id)
    return DeleteResponse(id=result.job_id, file_id=result.file_id, file_deleted=result.file_deleted)
