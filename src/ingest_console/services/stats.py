from typing import Any

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlmodel import col, select

from ingest_console.models.files import SourceFile
from ingest_console.models.jobs import IngestionJob, JobStatus


class QueueStats(BaseModel):
    queued: int = 0
    sent: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0


def apply_tenant_filter(stmt: Select[Any], *, app_id: str | None, org_id: str | None) -> Select[Any]:
    """Inner-join the file registry and keep rows matching every given filter."""
    if not app_id and not org_id:
        return stmt
    stmt = stmt.join(SourceFile, col(SourceFile.id) == col(IngestionJob.file_id))
    if app_id:
        stmt = stmt.where(col(SourceFile.app_id) == app_id)
    if org_id:
        stmt = stmt.where(col(SourceFile.org_id) == org_id)
    return stmt


async def get_stats(session: AsyncSession, *, app_id: str | None = None, org_id: str | None = None) -> QueueStats:
    stmt = select(IngestionJob.status, func.count()).select_from(IngestionJob)
    stmt = apply_tenant_filter(stmt, app_id=app_id, org_id=org_id)
    stmt = stmt.group_by(col(IngestionJob.status))

    result = await session.execute(stmt)
    stats = QueueStats()
    known = {status.value for status in JobStatus}
    for status, count in result.all():
        stats.total += count
        if status in known:
            setattr(stats, status, getattr(stats, status) + count)
    return stats
