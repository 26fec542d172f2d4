from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from tubely.api.v1 import get_api_router
from tubely.core.config import get_settings
from tubely.core.db import create_engine, create_session_factory
from tubely.core.logging import configure_logging
from tubely.core.storage import get_object_storage
from tubely.ingest.tools import SubprocessToolRunner


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(level=settings.log_level, environment=settings.environment_lower)
    storage = get_object_storage(settings)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    assets_root = Path(settings.assets_root)
    assets_root.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.storage = storage
        app.state.tool_runner = SubprocessToolRunner()
        app.state.engine = engine
        app.state.session_factory = session_factory
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    app.include_router(get_api_router())
    app.mount(settings.assets_url_prefix, StaticFiles(directory=assets_root), name="assets")
    return app


__all__ = ["create_app"]
