"""FastAPI dependency providers for application services."""

from __future__ import annotations

from fastapi import HTTPException, Query, Request

from ..config import AppConfig
from ..core import ConversionService
from ..errors import ConversionError
from ..models import ConversionOptions

ERROR_STATUS: dict[str, int] = {
    "INVALID_OPTION": 422,
    "BINARY_NOT_FOUND": 503,
    "FETCH_FAILED": 502,
    "NOT_FOUND": 404,
    "IO_ERROR": 500,
}


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(status_code=503, detail="CONFIG_UNAVAILABLE")
    return config


def get_service(request: Request) -> ConversionService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="SERVICE_UNAVAILABLE")
    return service


def upload_options(
    color: bool = False,
    negative: bool = False,
    grayscale: bool = False,
    complex: bool = False,
    braille: bool = False,
    dither: bool = False,
    threshold: int | None = Query(None, ge=0, le=255),
    width: int | None = Query(None, gt=0),
    height: int | None = Query(None, gt=0),
) -> ConversionOptions:
    return ConversionOptions(
        color=color,
        negative=negative,
        grayscale=grayscale,
        complex=complex,
        braille=braille,
        dither=dither,
        threshold=threshold,
        width=width,
        height=height,
        suppress_display=True,
    )


def http_error(exc: ConversionError) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS.get(exc.code, 400), detail=exc.code)


__all__ = ["get_config", "get_service", "upload_options", "http_error"]
