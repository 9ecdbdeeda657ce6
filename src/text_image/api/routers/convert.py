from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..dependencies import get_config, get_service, http_error, upload_options
from ..schemas import ConversionResponse, UrlConversionRequest
from ...config import AppConfig
from ...core import ConversionService
from ...errors import ConversionError
from ...models import BytesSource, ConversionOptions, UrlSource, is_url

router = APIRouter(prefix="/convert", tags=["conversion"])


@router.post("", summary="Convert an uploaded image", response_model=ConversionResponse)
async def convert_upload(
    file: UploadFile = File(...),
    options: ConversionOptions = Depends(upload_options),
    service: ConversionService = Depends(get_service),
    config: AppConfig = Depends(get_config),
) -> ConversionResponse:
    content = await file.read()
    _enforce_size_limit(content, config)
    try:
        result = await asyncio.to_thread(service.convert, BytesSource(content), options)
    except ConversionError as exc:
        raise http_error(exc) from exc
    return ConversionResponse.from_result(result)


@router.post("/url", summary="Fetch and convert a remote image", response_model=ConversionResponse)
async def convert_url(
    request: UrlConversionRequest,
    service: ConversionService = Depends(get_service),
) -> ConversionResponse:
    if not is_url(request.url):
        raise HTTPException(status_code=422, detail="INVALID_URL")
    options = request.options.to_conversion_options()
    try:
        result = await asyncio.to_thread(service.convert, UrlSource(request.url), options)
    except ConversionError as exc:
        raise http_error(exc) from exc
    return ConversionResponse.from_result(result)


def _enforce_size_limit(payload: bytes, config: AppConfig) -> None:
    max_bytes = config.api.max_upload_mb * 1024 * 1024
    if len(payload) > max_bytes:
        raise HTTPException(status_code=413, detail="SIZE_LIMIT")
    if not payload:
        raise HTTPException(status_code=422, detail="EMPTY_UPLOAD")


__all__ = ["router"]
