from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_service
from ..schemas import CacheStatsResponse
from ...core import ConversionService

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("", summary="Cache statistics", response_model=CacheStatsResponse)
def cache_stats(service: ConversionService = Depends(get_service)) -> CacheStatsResponse:
    return CacheStatsResponse.from_stats(service.cache.stats())


@router.delete("", summary="Drop every cached conversion")
def clear_cache(service: ConversionService = Depends(get_service)) -> dict[str, str]:
    service.clear_cache()
    return {"status": "cleared"}


__all__ = ["router"]
