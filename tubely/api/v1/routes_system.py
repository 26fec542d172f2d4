from __future__ import annotations

from fastapi import APIRouter, Depends

from tubely.api.deps import get_app_settings
from tubely.core.config import Settings

from .schemas import HealthResponse


router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(environment=settings.environment_lower, storage_backend=settings.storage_backend)


__all__ = ["router"]
