from __future__ import annotations

import pytest

from tubely.core.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_follow_upload_limits(monkeypatch):
    monkeypatch.delenv("TUBELY_STAGING_ROOT", raising=False)
    settings = get_settings()
    assert settings.max_video_upload_bytes == 1 << 30
    assert settings.max_thumbnail_upload_bytes == 10 << 20
    assert settings.classify_orientation is True
    assert settings.staging_root is None


def test_env_aliases_are_applied(monkeypatch):
    monkeypatch.setenv("TUBELY_ENV", "staging")
    settings = get_settings()
    assert settings.environment == "staging"


def test_production_requires_real_jwt_secret(monkeypatch):
    monkeypatch.setenv("TUBELY_ENV", "production")
    monkeypatch.setenv("TUBELY_JWT_SECRET", "change-me")
    with pytest.raises(ValueError):
        get_settings()


def test_s3_backend_requires_bucket(monkeypatch):
    monkeypatch.setenv("TUBELY_STORAGE_BACKEND", "s3")
    monkeypatch.delenv("TUBELY_S3_BUCKET", raising=False)
    with pytest.raises(ValueError):
        get_settings()
