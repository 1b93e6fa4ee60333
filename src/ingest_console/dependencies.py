import secrets
from collections.abc import AsyncIterator
from typing import Protocol, cast

import httpx
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ingest_console.services.worker import SECRET_HEADER
from ingest_console.settings import Settings

bearer = HTTPBearer(auto_error=False)


class HasWorkerClient(Protocol):
    worker_client: httpx.AsyncClient


class HasSettings(Protocol):
    settings: Settings


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.get_db_session() as session:
        yield session


async def get_readonly_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.get_db_session(read_only=True) as session:
        yield session


def get_worker_client(request: Request) -> httpx.AsyncClient:
    state = cast(HasWorkerClient, request.app.state)
    return state.worker_client


def get_settings(request: Request) -> Settings:
    state = cast(HasSettings, request.app.state)
    return getattr(state, "settings", Settings())


def require_operator(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.operator_token
    supplied = credentials.credentials if credentials else ""
    if not expected or not secrets.compare_digest(supplied, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Operator credentials required",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_worker(
    worker_secret: str | None = Header(default=None, alias=SECRET_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.worker_secret
    if expected and not secrets.compare_digest(worker_secret or "", expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid worker secret")
