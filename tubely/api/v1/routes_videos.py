from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from tubely.api import deps
from tubely.core.errors import StoreError

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=schemas.VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: schemas.VideoCreateRequest,
    store: deps.StoreDependency,
    context: deps.AuthDependency,
) -> schemas.VideoResponse:
    try:
        video = await store.create(user_id=context.user_id, title=payload.title, description=payload.description)
    except StoreError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return schemas.VideoResponse.model_validate(video)


@router.get("", response_model=list[schemas.VideoResponse])
async def list_videos(store: deps.StoreDependency, context: deps.AuthDependency) -> list[schemas.VideoResponse]:
    videos = await store.list_for_user(context.user_id)
    return [schemas.VideoResponse.model_validate(video) for video in videos]


@router.get("/{video_id}", response_model=schemas.VideoResponse)
async def get_video(video_id: str, store: deps.StoreDependency, context: deps.AuthDependency) -> schemas.VideoResponse:
    video = await store.get(video_id)
    if not video or video.user_id != context.user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video_not_found")
    return schemas.VideoResponse.model_validate(video)


__all__ = ["router"]
