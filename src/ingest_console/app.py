import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from yoyo import get_backend, read_migrations

from ingest_console.database import create_session_maker, get_session
from ingest_console.errors import Conflict, NotFound, QueueError
from ingest_console.router import router
from ingest_console.services.worker import create_worker_client
from ingest_console.settings import Settings

logger = logging.getLogger("ingest_console")


def migration_url(database_url: str) -> str:
    """yoyo speaks plain DB-API URLs, not SQLAlchemy async dialects."""
    scheme, sep, rest = database_url.partition("://")
    return f"{scheme.split('+', 1)[0]}{sep}{rest}"


def apply_migrations(database_url: str, migrations_dir: str) -> None:
    backend = get_backend(migration_url(database_url))
    migrations = read_migrations(migrations_dir)
    with backend.lock():
        backend.apply_migrations(backend.to_apply(migrations))


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    settings = Settings()
    app.state.settings = settings

    try:
        app.state.engine, app.state.db_session_maker = create_session_maker(settings.database_url)
        app.state.get_db_session = lambda read_only=False: get_session(app.state.db_session_maker, read_only)
        apply_migrations(settings.database_url, settings.db_migrations)
    except Exception as e:
        logger.warning(f"Failed to create database session: {e}")
        raise

    app.state.worker_client = create_worker_client(settings.worker_secret, timeout=settings.worker_timeout)
    logger.info(f"WORKER_TRIGGER_URL: {settings.worker_trigger_url}")

    yield

    await app.state.worker_client.aclose()
    await app.state.engine.dispose()
    logger.info("Application shutdown completed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ingest Console",
        description="Operator API for the document ingestion queue",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, e: HTTPException) -> JSONResponse:
        logger.error(f"HTTP {e.status_code}: {e.detail} - {request.method} {request.url}")
        return JSONResponse(status_code=e.status_code, content={"detail": e.detail}, headers=e.headers)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, e: NotFound) -> JSONResponse:
        logger.warning(f"Not found on {request.method} {request.url}: {e}")
        return JSONResponse(status_code=404, content={"detail": str(e)})

    @app.exception_handler(Conflict)
    async def conflict_handler(request: Request, e: Conflict) -> JSONResponse:
        logger.warning(f"Rejected {request.method} {request.url}: {e}")
        return JSONResponse(status_code=409, content={"detail": str(e)})

    @app.exception_handler(QueueError)
    async def queue_error_handler(request: Request, e: QueueError) -> JSONResponse:
        logger.error(f"Queue error on {request.method} {request.url}: {e}")
        return JSONResponse(status_code=502, content={"detail": str(e)})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, e: ValueError) -> JSONResponse:
        logger.error(f"ValueError on {request.method} {request.url}: {e}")
        return JSONResponse(status_code=400, content={"detail": str(e)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, e: Exception) -> JSONResponse:
        logger.error(f"Unhandled exception on {request.method} {request.url}:")
        logger.error(traceback.format_exc())
        return JSONResponse(status_code=500, content={"detail": "Internal server error", "error": str(e)})

    app.include_router(router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
