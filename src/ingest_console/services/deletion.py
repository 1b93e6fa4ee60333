import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ingest_console.errors import FileMismatch
from ingest_console.services import queue, registry

logger = logging.getLogger(__name__)


@dataclass
class DeletionResult:
    job_id: str
    file_id: str | None
    file_deleted: bool


async def delete_job(session: AsyncSession, job_id: str, file_id: str | None = None) -> DeletionResult:
    """Delete a non-completed job, then try to delete its file.

    Only the job's own file can be named; any other `file_id` is refused
    before anything changes. The job deletion is committed before the file is
    touched; a failed file deletion is logged and reported but leaves the job
    deleted.
    """
    job = await queue.get(session, job_id)
    if file_id and file_id != job.file_id:
        raise FileMismatch(job_id, file_id)

    job = await queue.delete(session, job_id)
    await session.commit()
    logger.info(f"Deleted job {job_id} (status {job.status})")

    target_file_id = job.file_id
    if not target_file_id:
        return DeletionResult(job_id=job_id, file_id=None, file_deleted=False)

    try:
        file_deleted = await registry.delete_file(session, target_file_id)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.warning(f"Could not delete file {target_file_id} for job {job_id}: {e}")
        return DeletionResult(job_id=job_id, file_id=target_file_id, file_deleted=False)

    if not file_deleted:
        logger.warning(f"File {target_file_id} for job {job_id} was already gone")
    return DeletionResult(job_id=job_id, file_id=target_file_id, file_deleted=file_deleted)
