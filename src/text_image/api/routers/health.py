from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_service
from ...core import ConversionService

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
def health(service: ConversionService = Depends(get_service)) -> dict[str, str]:
    return {"status": "ok", "converter": service.converter_binary}


__all__ = ["router"]
