"""Failure taxonomy shared by the ingest pipelines and the HTTP layer."""

from __future__ import annotations

from fastapi import status


class IngestError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "ingest_failed"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        self.message = message or self.detail
        super().__init__(self.message)


class BadInput(IngestError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "bad_input"


class NotFound(IngestError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "video_not_found"


class Forbidden(IngestError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "not_video_owner"


class ProbeFailed(IngestError):
    status_code = 422
    detail = "probe_failed"


class RemuxFailed(IngestError):
    status_code = 422
    detail = "remux_failed"

    def __init__(self, message: str | None = None, *, stderr: str = ""):
        self.stderr = stderr
        super().__init__(message or stderr.strip() or None)


class PublishFailed(IngestError):
    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "publish_failed"


class StoreError(IngestError):
    """Metadata persistence failed.

    When raised after a successful publish, ``object_key`` and ``video_url``
    identify the uploaded object that is now not referenced by any record.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "metadata_store_failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        object_key: str | None = None,
        video_url: str | None = None,
    ):
        self.object_key = object_key
        self.video_url = video_url
        super().__init__(message)


__all__ = [
    "IngestError",
    "BadInput",
    "NotFound",
    "Forbidden",
    "ProbeFailed",
    "RemuxFailed",
    "PublishFailed",
    "StoreError",
]
