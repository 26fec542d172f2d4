from __future__ import annotations

from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.core.errors import StoreError
from tubely.db.models import Video


class VideoStore:
    """Key-by-id access to video records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, video_id: str) -> Video | None:
        return await self.session.get(Video, video_id)

    async def list_for_user(self, user_id: str) -> list[Video]:
        stmt = select(Video).where(Video.user_id == user_id).order_by(Video.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, *, user_id: str, title: str, description: str | None) -> Video:
        video = Video(id=str(uuid4()), user_id=user_id, title=title, description=description)
        return await self._persist(video)

    async def update(self, video: Video) -> Video:
        return await self._persist(video)

    async def _persist(self, video: Video) -> Video:
        self.session.add(video)
        try:
            await self.session.commit()
            await self.session.refresh(video)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StoreError(f"Failed to persist video record: {exc}") from exc
        return video


__all__ = ["VideoStore"]
