from __future__ import annotations

from fastapi import FastAPI

from .. import __version__
from ..config import AppConfig
from ..core import ConversionService
from ..settings import resolve_config
from .routers import cache, convert, health


def create_app(
    config: AppConfig | None = None,
    *,
    require_enabled: bool = True,
    service: ConversionService | None = None,
) -> FastAPI:
    config = config or resolve_config()
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via configuration or environment.")

    app = FastAPI(title="Text Image Converter", version=__version__)
    app.state.config = config
    app.state.service = service or ConversionService(config)

    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(cache.router)
    return app


__all__ = ["create_app"]
