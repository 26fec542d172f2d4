from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings


class ObjectStorageError(RuntimeError):
    """Raised by storage backends when an object cannot be written."""


class ObjectStorage(ABC):
    @abstractmethod
    def put_object(self, key: str, source: Path, *, content_type: str) -> None:
        """Store ``source`` under ``key``, replacing any existing object."""


class LocalObjectStorage(ObjectStorage):
    """Filesystem-backed object storage suitable for development."""

    def __init__(self, base_path: Path):
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        target = (self.base_path / key).resolve()
        if self.base_path.resolve() not in target.parents:
            raise ObjectStorageError(f"Key escapes storage root: {key}")
        return target

    def put_object(self, key: str, source: Path, *, content_type: str) -> None:
        target = self._resolve(key)
        partial = target.with_name(f".{target.name}.partial")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, partial)
            os.replace(partial, target)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise ObjectStorageError(str(exc)) from exc


class S3Storage(ObjectStorage):
    """Uploads objects with a single PutObject request."""

    def __init__(self, bucket: str, client: Any):
        self.bucket = bucket
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Storage":
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.secrets.aws_access_key_id,
            aws_secret_access_key=settings.secrets.aws_secret_access_key,
        )
        return cls(bucket=settings.s3_bucket or "", client=client)

    def put_object(self, key: str, source: Path, *, content_type: str) -> None:
        try:
            with source.open("rb") as body:
                self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError, OSError) as exc:
            raise ObjectStorageError(str(exc)) from exc


def get_object_storage(settings: Settings) -> ObjectStorage:
    if settings.storage_backend == "local":
        return LocalObjectStorage(base_path=Path(settings.local_storage_base_path))
    if settings.storage_backend == "s3":
        return S3Storage.from_settings(settings)
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "ObjectStorage",
    "ObjectStorageError",
    "LocalObjectStorage",
    "S3Storage",
    "get_object_storage",
]
