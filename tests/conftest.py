from typing import Any, AsyncGenerator, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, select

from ingest_console import database
from ingest_console.dependencies import get_db_session, get_readonly_db_session, get_settings, get_worker_client
from ingest_console.models import IngestionJob, Organization, Profile, SourceFile
from ingest_console.settings import Settings

OPERATOR_TOKEN = "operator-test-token"
WORKER_SECRET = "worker-test-secret"
TRIGGER_URL = "http://worker.local/webhook/ingest"


class DummyWorkerClient:
    """Records trigger calls; files listed in `fail_for` get an HTTP 500, in `unreachable_for` a connect error."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_for: set[str] = set()
        self.unreachable_for: set[str] = set()

    async def post(self, url: str, *args: Any, **kwargs: Any) -> httpx.Response:
        request = httpx.Request("POST", url)
        payload = kwargs.get("json") or {}
        self.calls.append({"url": url, "payload": payload})

        file_id = payload.get("file_id")
        if file_id in self.unreachable_for:
            raise httpx.ConnectError("worker unreachable", request=request)
        if file_id in self.fail_for:
            return httpx.Response(500, request=request, json={"error": "ingest pipeline down"})
        return httpx.Response(200, request=request, json={"accepted": True, "file_id": file_id})

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [call["payload"] for call in self.calls]


class Seeder:
    """Writes and reads rows through a synchronous session on the test database."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def _save(self, row: Any) -> Any:
        with Session(self.engine, expire_on_commit=False) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def file(self, file_id: str, **overrides: Any) -> SourceFile:
        values: dict[str, Any] = {
            "id": file_id,
            "original_filename": f"{file_id}.pdf",
            "storage_bucket": "documents",
            "storage_path": f"uploads/{file_id}.pdf",
            "mime_type": "application/pdf",
            "layer": "project",
            "org_id": "org-1",
            "app_id": "legal",
            "project_id": "proj-1",
            "created_by": "user-1",
            "processing_status": "failed",
            "file_size": 2048,
            "meta": {},
        }
        values.update(overrides)
        return self._save(SourceFile(**values))

    def job(self, file_id: str, status: str = "failed", **overrides: Any) -> IngestionJob:
        values: dict[str, Any] = {"file_id": file_id, "status": status}
        if status == "completed":
            values["completed_at"] = 1_700_000_500
        values.update(overrides)
        return self._save(IngestionJob(**values))

    def profile(self, user_id: str, email: str, full_name: str | None = None) -> Profile:
        return self._save(Profile(id=user_id, email=email, full_name=full_name))

    def org(self, org_id: str, name: str, is_active: bool = True) -> Organization:
        return self._save(Organization(id=org_id, name=name, is_active=is_active))

    def get_job(self, file_id: str) -> IngestionJob | None:
        with Session(self.engine) as session:
            return session.exec(select(IngestionJob).where(IngestionJob.file_id == file_id)).first()

    def get_file(self, file_id: str) -> SourceFile | None:
        with Session(self.engine) as session:
            return session.get(SourceFile, file_id)


@pytest.fixture
def worker() -> DummyWorkerClient:
    return DummyWorkerClient()


@pytest.fixture
def shared_memory_uri() -> str:
    import uuid

    db_name = f"ingest_test_{uuid.uuid4().hex}"
    return f"file:{db_name}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def sync_engine(shared_memory_uri: str) -> Generator[Engine, None, None]:
    from sqlalchemy import create_engine

    engine = create_engine(f"sqlite+pysqlite:///{shared_memory_uri}", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed(sync_engine: Engine) -> Seeder:
    return Seeder(sync_engine)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        OPERATOR_TOKEN=OPERATOR_TOKEN,
        WORKER_SECRET=WORKER_SECRET,
        WORKER_TRIGGER_URL=TRIGGER_URL,
    )


@pytest.fixture
def client(
    sync_engine: Engine, shared_memory_uri: str, worker: DummyWorkerClient, test_settings: Settings
) -> Generator[TestClient, None, None]:
    from starlette.routing import _DefaultLifespan

    from ingest_console.app import create_app

    engine = create_async_engine(f"sqlite+aiosqlite:///{shared_memory_uri}", echo=False, poolclass=StaticPool)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with database.get_session(session_maker) as session:
            yield session

    async def override_readonly_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with database.get_session(session_maker, read_only=True) as session:
            yield session

    app = create_app()

    app.router.lifespan_context = _DefaultLifespan(app.router)

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_readonly_db_session] = override_readonly_db_session
    app.dependency_overrides[get_worker_client] = lambda: worker
    app.dependency_overrides[get_settings] = lambda: test_settings

    headers = {"Authorization": f"Bearer {OPERATOR_TOKEN}"}
    with TestClient(app, headers=headers) as test_client:
        yield test_client
