"""File registry adapter."""

import logging
import time
from typing import Iterable, Sequence

from sqlalchemy import delete as sa_delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ingest_console.errors import SourceFileNotFound
from ingest_console.models.files import SourceFile
from ingest_console.models.organizations import Organization
from ingest_console.models.profiles import Profile

logger = logging.getLogger(__name__)

PROCESSING_PENDING = "pending"
PROCESSING_RUNNING = "processing"
PROCESSING_COMPLETED = "completed"
PROCESSING_FAILED = "failed"


async def get_file(session: AsyncSession, file_id: str) -> SourceFile:
    uploaded_file = await session.get(SourceFile, file_id)
    if uploaded_file is None:
        raise SourceFileNotFound(file_id)
    return uploaded_file


async def reset_processing(session: AsyncSession, uploaded_file: SourceFile) -> SourceFile:
    uploaded_file.processing_status = PROCESSING_PENDING
    uploaded_file.processing_error = None
    uploaded_file.updated_at = int(time.time())
    session.add(uploaded_file)
    await session.flush()
    return uploaded_file


async def set_processing_status(
    session: AsyncSession, file_id: str, status: str, error: str | None = None
) -> SourceFile | None:
    """Mirror a worker transition onto the file. Missing files are skipped."""
    uploaded_file = await session.get(SourceFile, file_id)
    if uploaded_file is None:
        logger.warning(f"File {file_id} missing while mirroring status {status}")
        return None
    uploaded_file.processing_status = status
    uploaded_file.processing_error = error
    uploaded_file.updated_at = int(time.time())
    session.add(uploaded_file)
    await session.flush()
    return uploaded_file


async def delete_file(session: AsyncSession, file_id: str) -> bool:
    result = await session.execute(sa_delete(SourceFile).where(col(SourceFile.id) == file_id))
    return bool(result.rowcount)


async def list_app_ids(session: AsyncSession) -> list[str]:
    stmt = select(SourceFile.app_id).where(col(SourceFile.app_id).is_not(None)).distinct()
    result = await session.execute(stmt)
    return sorted(result.scalars().all())


async def list_active_orgs(session: AsyncSession) -> list[Organization]:
    stmt = select(Organization).where(col(Organization.is_active).is_(True)).order_by(col(Organization.name))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_profiles(session: AsyncSession, user_ids: Iterable[str]) -> dict[str, Profile]:
    ids = {user_id for user_id in user_ids if user_id}
    if not ids:
        return {}
    result = await session.execute(select(Profile).where(col(Profile.id).in_(ids)))
    profiles: Sequence[Profile] = result.scalars().all()
    return {profile.id: profile for profile in profiles}
