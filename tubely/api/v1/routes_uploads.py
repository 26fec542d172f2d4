from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile

from tubely.api import deps
from tubely.core.errors import IngestError

from . import schemas


router = APIRouter(tags=["uploads"])


@router.post("/video_upload/{video_id}", response_model=schemas.VideoResponse)
async def upload_video(
    video_id: str,
    service: deps.IngestDependency,
    context: deps.AuthDependency,
    video: UploadFile = File(...),
) -> schemas.VideoResponse:
    try:
        updated = await service.ingest_video(video_id, context.user_id, video)
    except IngestError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    finally:
        await video.close()
    return schemas.VideoResponse.model_validate(updated)


@router.post("/thumbnail_upload/{video_id}", response_model=schemas.VideoResponse)
async def upload_thumbnail(
    video_id: str,
    service: deps.IngestDependency,
    context: deps.AuthDependency,
    thumbnail: UploadFile = File(...),
) -> schemas.VideoResponse:
    try:
        updated = await service.ingest_thumbnail(video_id, context.user_id, thumbnail)
    except IngestError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    finally:
        await thumbnail.close()
    return schemas.VideoResponse.model_validate(updated)


__all__ = ["router"]
