"""Read path joining queue entries with file metadata and uploader identity."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ingest_console.models.files import SourceFile
from ingest_console.models.jobs import IngestionJob, JobStatus
from ingest_console.models.profiles import Profile
from ingest_console.services.registry import get_profiles

DEFAULT_LIMIT = 50


@dataclass
class JobRecord:
    job: IngestionJob
    file: SourceFile | None
    uploader: Profile | None


@dataclass
class JobPage:
    records: list[JobRecord]
    has_more: bool


def matches_search(record: JobRecord, search: str) -> bool:
    needle = search.lower()
    filename = record.file.original_filename if record.file else None
    email = record.uploader.email if record.uploader else None
    return bool(filename and needle in filename.lower()) or bool(email and needle in email.lower())


async def list_jobs(
    session: AsyncSession,
    *,
    status: JobStatus | None = None,
    app_id: str | None = None,
    org_id: str | None = None,
    search: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> JobPage:
    """Newest jobs first.

    With a tenant filter the file join is inner, so jobs whose file is gone drop
    out; without one the join is outer and such jobs come back with `file=None`.
    Search is applied to the joined rows after the limit; `has_more` is
    computed from the page before search.
    """
    tenant_filtered = bool(app_id or org_id)
    stmt = select(IngestionJob, SourceFile).join(
        SourceFile,
        col(SourceFile.id) == col(IngestionJob.file_id),
        isouter=not tenant_filtered,
    )
    if status is not None:
        stmt = stmt.where(col(IngestionJob.status) == status.value)
    if app_id:
        stmt = stmt.where(col(SourceFile.app_id) == app_id)
    if org_id:
        stmt = stmt.where(col(SourceFile.org_id) == org_id)
    stmt = stmt.order_by(col(IngestionJob.created_at).desc(), col(IngestionJob.id).desc()).limit(limit)

    rows = (await session.execute(stmt)).all()
    profiles = await get_profiles(session, (f.created_by for _, f in rows if f is not None and f.created_by))

    records = [
        JobRecord(
            job=job,
            file=uploaded_file,
            uploader=profiles.get(uploaded_file.created_by) if uploaded_file and uploaded_file.created_by else None,
        )
        for job, uploaded_file in rows
    ]

    has_more = len(rows) == limit
    if search:
        records = [record for record in records if matches_search(record, search)]
    return JobPage(records=records, has_more=has_more)


async def get_job_record(session: AsyncSession, job: IngestionJob) -> JobRecord:
    uploaded_file = await session.get(SourceFile, job.file_id)
    uploader = None
    if uploaded_file is not None and uploaded_file.created_by:
        uploader = await session.get(Profile, uploaded_file.created_by)
    return JobRecord(job=job, file=uploaded_file, uploader=uploader)
