import asyncio
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

from tubely.api import deps
from tubely.core.config import get_settings
from tubely.core.db import Base, create_engine
from tubely.main import create_app

from tests.fakes import FakeToolRunner, InMemoryObjectStorage

TEST_SECRET = "test-secret"
TEST_ISSUER = "tubely-test"
TEST_AUDIENCE = "tubely"


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path):
    db_path = tmp_path / "tubely_test.db"

    monkeypatch.setenv("TUBELY_ENV", "test")
    monkeypatch.setenv("TUBELY_ENVIRONMENT", "test")
    monkeypatch.setenv("TUBELY_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUBELY_DB_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("TUBELY_DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("TUBELY_ASSETS_ROOT", str(tmp_path / "assets"))
    monkeypatch.setenv("TUBELY_STAGING_ROOT", str(tmp_path / "staging"))
    monkeypatch.setenv("TUBELY_STORAGE_BACKEND", "local")
    monkeypatch.setenv("TUBELY_LOCAL_STORAGE_BASE_PATH", str(tmp_path / "objects"))
    monkeypatch.setenv("TUBELY_S3_BUCKET", "tubely-test")
    monkeypatch.setenv("TUBELY_S3_REGION", "us-east-2")
    monkeypatch.delenv("TUBELY_S3_CDN_DOMAIN", raising=False)
    monkeypatch.setenv("TUBELY_JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("TUBELY_JWT_ISSUER", TEST_ISSUER)
    monkeypatch.setenv("TUBELY_JWT_AUDIENCE", TEST_AUDIENCE)

    get_settings.cache_clear()
    settings = get_settings()
    engine = create_engine(settings)

    async def _setup() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_setup())

    yield

    async def _teardown() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()

    asyncio.run(_teardown())
    get_settings.cache_clear()


@pytest.fixture()
def tool_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture()
def object_storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture()
def client(configure_environment, tool_runner, object_storage):
    app = create_app()
    app.dependency_overrides[deps.get_tool_runner] = lambda: tool_runner
    app.dependency_overrides[deps.get_object_storage] = lambda: object_storage
    with TestClient(app) as client:
        yield client


def build_token(user_id: str | None, *, scopes: list[str] | None = None) -> str:
    payload: dict[str, object] = {"iss": TEST_ISSUER, "aud": TEST_AUDIENCE}
    if user_id:
        payload["sub"] = user_id
    if scopes:
        payload["scopes"] = scopes
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth_headers(user_id: str | None, *, scopes: list[str] | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token(user_id, scopes=scopes)}"}


@pytest.fixture()
def owner_headers() -> dict[str, str]:
    return auth_headers("user-owner")


@pytest.fixture()
def staging_root(tmp_path) -> Path:
    return tmp_path / "staging"
