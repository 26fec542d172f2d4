from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Protocol
from uuid import uuid4

from tubely.core.errors import BadInput
from tubely.core.logging import get_logger

CHUNK_SIZE = 1024 * 1024

VIDEO_CONTENT_TYPES: Mapping[str, str] = {"video/mp4": "mp4"}
THUMBNAIL_CONTENT_TYPES: Mapping[str, str] = {"image/png": "png", "image/jpeg": "jpg"}


class UploadSource(Protocol):
    """The subset of ``fastapi.UploadFile`` the stager relies on."""

    @property
    def content_type(self) -> Optional[str]: ...

    @property
    def size(self) -> Optional[int]: ...

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(slots=True, frozen=True)
class StagedFile:
    """A request-scoped file on local disk handed from one pipeline stage to the next."""

    path: Path
    size_bytes: int
    content_type: str


@dataclass(frozen=True)
class UploadPolicy:
    kind: str
    max_bytes: int
    content_types: Mapping[str, str] = field(default_factory=dict)

    def extension_for(self, content_type: Optional[str]) -> str:
        normalised = (content_type or "").split(";", 1)[0].strip().lower()
        extension = self.content_types.get(normalised)
        if extension is None:
            allowed = ", ".join(sorted(self.content_types))
            raise BadInput(f"{self.kind} must be one of: {allowed}", detail="unsupported_content_type")
        return extension

    def check_size(self, size_bytes: Optional[int]) -> None:
        if size_bytes is not None and size_bytes > self.max_bytes:
            raise BadInput(
                f"{self.kind} of {size_bytes} bytes exceeds the {self.max_bytes} byte limit",
                detail="upload_too_large",
            )

    def validate(self, size_bytes: Optional[int], content_type: Optional[str]) -> str:
        """Check declared metadata and return the file extension for ``content_type``."""
        self.check_size(size_bytes)
        return self.extension_for(content_type)


def video_policy(max_bytes: int) -> UploadPolicy:
    return UploadPolicy(kind="video", max_bytes=max_bytes, content_types=VIDEO_CONTENT_TYPES)


def thumbnail_policy(max_bytes: int) -> UploadPolicy:
    return UploadPolicy(kind="thumbnail", max_bytes=max_bytes, content_types=THUMBNAIL_CONTENT_TYPES)


class StagingArea:
    """Private scratch directory owning every artifact created for one request.

    Use as a context manager; leaving the block removes all tracked files and
    the directory itself, whatever the exit path.
    """

    def __init__(self, root: Path | None = None, *, prefix: str = "tubely-"):
        self.root = root
        self.prefix = prefix
        self.directory: Path | None = None
        self._artifacts: list[Path] = []
        self.logger = get_logger(component="staging")

    def __enter__(self) -> "StagingArea":
        if self.root is not None:
            self.root.mkdir(parents=True, exist_ok=True)
        self.directory = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root))
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    def new_path(self, suffix: str = "") -> Path:
        if self.directory is None:
            raise RuntimeError("staging_area_not_open")
        path = self.directory / f"{uuid4().hex}{suffix}"
        self.track(path)
        return path

    def track(self, path: Path) -> Path:
        if path not in self._artifacts:
            self._artifacts.append(path)
        return path

    @property
    def artifacts(self) -> tuple[Path, ...]:
        return tuple(self._artifacts)

    def cleanup(self) -> None:
        for path in reversed(self._artifacts):
            try:
                if path.exists():
                    path.unlink()
                    self.logger.info("staged_file_removed", path=str(path))
            except OSError as cleanup_error:
                self.logger.warning("staged_file_cleanup_failed", path=str(path), error=str(cleanup_error))
        self._artifacts.clear()

        if self.directory is not None:
            shutil.rmtree(self.directory, ignore_errors=True)
            if self.directory.exists():
                self.logger.warning("staging_dir_cleanup_failed", path=str(self.directory))
            self.directory = None


async def stage_upload(
    source: UploadSource,
    area: StagingArea,
    policy: UploadPolicy,
    *,
    chunk_size: int = CHUNK_SIZE,
) -> StagedFile:
    """Copy ``source`` into ``area`` after validating it against ``policy``.

    The declared size and content type are checked before anything touches
    the disk. The byte count is enforced again while streaming, because the
    declared size is client supplied; an overrun removes the partial file.
    """
    extension = policy.validate(source.size, source.content_type)
    content_type = (source.content_type or "").split(";", 1)[0].strip().lower()

    path = area.new_path(f".{extension}")
    written = 0
    try:
        with path.open("wb") as handle:
            while True:
                chunk = await source.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > policy.max_bytes:
                    raise BadInput(
                        f"{policy.kind} exceeds the {policy.max_bytes} byte limit",
                        detail="upload_too_large",
                    )
                handle.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    if written == 0:
        path.unlink(missing_ok=True)
        raise BadInput(f"{policy.kind} upload is empty", detail="empty_upload")

    return StagedFile(path=path, size_bytes=written, content_type=content_type)


__all__ = [
    "StagedFile",
    "StagingArea",
    "UploadPolicy",
    "UploadSource",
    "VIDEO_CONTENT_TYPES",
    "THUMBNAIL_CONTENT_TYPES",
    "stage_upload",
    "thumbnail_policy",
    "video_policy",
]
