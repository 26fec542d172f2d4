from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tubely.core.auth import AuthContext, get_auth_context
from tubely.core.config import Settings, get_settings
from tubely.core.storage import ObjectStorage
from tubely.ingest.tools import ToolRunner
from tubely.services.ingest_service import IngestService
from tubely.services.video_store import VideoStore


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):  # pragma: no cover - defensive
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_object_storage(request: Request) -> ObjectStorage:
    storage: ObjectStorage = request.app.state.storage
    return storage


def get_tool_runner(request: Request) -> ToolRunner:
    runner: ToolRunner = request.app.state.tool_runner
    return runner


def get_app_settings() -> Settings:
    return get_settings()


def get_video_store(session: AsyncSession = Depends(get_session)) -> VideoStore:
    return VideoStore(session)


def get_ingest_service(
    store: VideoStore = Depends(get_video_store),
    storage: ObjectStorage = Depends(get_object_storage),
    runner: ToolRunner = Depends(get_tool_runner),
    settings: Settings = Depends(get_app_settings),
) -> IngestService:
    return IngestService(settings, store, storage, runner)


IngestDependency = Annotated[IngestService, Depends(get_ingest_service)]
StoreDependency = Annotated[VideoStore, Depends(get_video_store)]
AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]


__all__ = [
    "get_session",
    "get_object_storage",
    "get_tool_runner",
    "get_app_settings",
    "get_video_store",
    "get_ingest_service",
    "IngestDependency",
    "StoreDependency",
    "AuthDependency",
]
