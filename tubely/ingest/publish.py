from __future__ import annotations

import asyncio
import secrets
from dataclasses import dataclass

from tubely.core.config import Settings
from tubely.core.errors import PublishFailed
from tubely.core.logging import get_logger
from tubely.core.storage import ObjectStorage, ObjectStorageError

from .probe import Orientation
from .staging import StagedFile

NAME_BYTES = 32


def generate_object_name() -> str:
    return secrets.token_urlsafe(NAME_BYTES)


def build_object_key(name: str, extension: str, orientation: Orientation | None = None) -> str:
    if orientation is None:
        return f"{name}.{extension}"
    return f"{orientation.value}/{name}.{extension}"


@dataclass(slots=True, frozen=True)
class PublishedObject:
    key: str
    url: str


class Publisher:
    """Pushes staged files to object storage and derives their public URLs."""

    def __init__(self, storage: ObjectStorage, settings: Settings):
        self.storage = storage
        self.settings = settings
        self.logger = get_logger(component="publisher")

    def public_url(self, key: str) -> str:
        cdn_domain = self.settings.s3_cdn_domain
        if cdn_domain:
            host = cdn_domain.removeprefix("https://").removeprefix("http://").rstrip("/")
            return f"https://{host}/{key}"
        return f"https://{self.settings.s3_bucket}.s3.{self.settings.s3_region}.amazonaws.com/{key}"

    async def publish(self, staged: StagedFile, key: str) -> PublishedObject:
        try:
            await asyncio.to_thread(
                self.storage.put_object,
                key,
                staged.path,
                content_type=staged.content_type,
            )
        except ObjectStorageError as exc:
            self.logger.error("object_put_failed", key=key, error=str(exc))
            raise PublishFailed(f"Upload of {key} failed: {exc}") from exc

        url = self.public_url(key)
        self.logger.info("object_put", key=key, size_bytes=staged.size_bytes)
        return PublishedObject(key=key, url=url)


__all__ = ["PublishedObject", "Publisher", "build_object_key", "generate_object_name"]
