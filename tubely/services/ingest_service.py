from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path
from typing import Protocol

from tubely.core.config import Settings
from tubely.core.errors import BadInput, Forbidden, NotFound, StoreError
from tubely.core.logging import get_logger
from tubely.core.storage import ObjectStorage
from tubely.db.models import Video
from tubely.ingest.probe import probe_video
from tubely.ingest.publish import Publisher, build_object_key, generate_object_name
from tubely.ingest.remux import faststart_output_path, remux_faststart
from tubely.ingest.staging import StagingArea, UploadSource, stage_upload, thumbnail_policy, video_policy
from tubely.ingest.tools import ToolRunner


class RecordStore(Protocol):
    async def get(self, video_id: str) -> Video | None: ...

    async def update(self, video: Video) -> Video: ...


class IngestService:
    """Runs the upload pipelines for a single video record.

    Each call is self-contained: the record is read once at the start,
    written at most once at the end, and every local artifact created along
    the way is removed before the call returns or raises.
    """

    def __init__(
        self,
        settings: Settings,
        store: RecordStore,
        storage: ObjectStorage,
        runner: ToolRunner,
    ):
        self.settings = settings
        self.store = store
        self.runner = runner
        self.publisher = Publisher(storage, settings)
        self.logger = get_logger(component="ingest_service")

    async def ingest_video(self, video_id: str, user_id: str, upload: UploadSource) -> Video:
        logger = self.logger.bind(video_id=video_id, user_id=user_id)
        video = await self._owned_video(video_id, user_id)

        policy = video_policy(self.settings.max_video_upload_bytes)
        extension = policy.validate(upload.size, upload.content_type)

        with StagingArea(self.settings.staging_root) as area:
            staged = await stage_upload(upload, area, policy)
            logger.info("video_staged", path=str(staged.path), size_bytes=staged.size_bytes)

            processed = await remux_faststart(
                staged,
                self.runner,
                binary=self.settings.ffmpeg_binary,
                output=area.track(faststart_output_path(staged.path)),
            )
            logger.info("video_remuxed", path=str(processed.path), size_bytes=processed.size_bytes)

            geometry = await probe_video(processed.path, self.runner, binary=self.settings.ffprobe_binary)
            logger.info(
                "video_probed",
                width=geometry.width,
                height=geometry.height,
                ratio=round(geometry.ratio, 4),
                orientation=geometry.orientation.value,
            )

            orientation = geometry.orientation if self.settings.classify_orientation else None
            key = build_object_key(generate_object_name(), extension, orientation)
            published = await self.publisher.publish(processed, key)
            logger.info("video_published", key=published.key, url=published.url)

        video.video_url = published.url
        try:
            updated = await self.store.update(video)
        except StoreError as exc:
            logger.error("published_object_unindexed", key=published.key, url=published.url, error=str(exc))
            raise StoreError(
                f"Video published to {published.key} but the record update failed: {exc.message}",
                object_key=published.key,
                video_url=published.url,
            ) from exc

        logger.info("video_record_updated", video_url=updated.video_url)
        return updated

    async def ingest_thumbnail(self, video_id: str, user_id: str, upload: UploadSource) -> Video:
        logger = self.logger.bind(video_id=video_id, user_id=user_id)
        video = await self._owned_video(video_id, user_id)

        policy = thumbnail_policy(self.settings.max_thumbnail_upload_bytes)
        extension = policy.validate(upload.size, upload.content_type)

        assets_root = Path(self.settings.assets_root)
        target = assets_root / f"{video_id}.{extension}"
        stale = [assets_root / f"{video_id}.{other}" for other in policy.content_types.values() if other != extension]

        with StagingArea(self.settings.staging_root) as area:
            staged = await stage_upload(upload, area, policy)
            logger.info("thumbnail_staged", path=str(staged.path), size_bytes=staged.size_bytes)
            await asyncio.to_thread(_install_asset, staged.path, target)
            logger.info("thumbnail_stored", path=str(target))

        previous_url = video.thumbnail_url
        thumbnail_url = f"{self.settings.assets_url_prefix.rstrip('/')}/{target.name}"
        video.thumbnail_url = thumbnail_url
        try:
            updated = await self.store.update(video)
        except StoreError:
            video.thumbnail_url = previous_url
            # The record still references the old asset; drop the one nothing points at.
            if previous_url != thumbnail_url:
                target.unlink(missing_ok=True)
            logger.error("thumbnail_record_update_failed", path=str(target))
            raise

        for path in stale:
            path.unlink(missing_ok=True)
        logger.info("thumbnail_record_updated", thumbnail_url=updated.thumbnail_url)
        return updated

    async def _owned_video(self, video_id: str, user_id: str) -> Video:
        if not video_id:
            raise BadInput("Invalid video ID", detail="missing_video_id")
        video = await self.store.get(video_id)
        if video is None:
            raise NotFound(f"Video {video_id} does not exist")
        if video.user_id != user_id:
            self.logger.warning("video_owner_mismatch", video_id=video_id, user_id=user_id)
            raise Forbidden("User is not the owner of this video")
        return video


def _install_asset(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(f".{target.name}.partial")
    try:
        shutil.copyfile(source, partial)
        os.replace(partial, target)
    finally:
        partial.unlink(missing_ok=True)


__all__ = ["IngestService", "RecordStore"]
