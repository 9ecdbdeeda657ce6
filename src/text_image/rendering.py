"""Pluggable strategies for rendering images embedded in documents.

A host renderer owns an :class:`ImageRenderer` and asks it for a text
rendition of every embedded image. Switching between text images and the
host's own image handling is a matter of setting the active strategy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .config import HookConfig
from .core import ConversionService
from .errors import ConversionError
from .models import BytesSource, ConversionOptions, TextArtifact, UrlSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImageSpec:
    """An image embedded in a rendered document."""

    data: bytes = b""
    url: str | None = None
    alt: str = ""


@runtime_checkable
class ImageStrategy(Protocol):
    def render(self, image: ImageSpec) -> TextArtifact | None:  # pragma: no cover - interface
        ...


class OriginalImageStrategy:
    """Leaves images to the host renderer."""

    def render(self, image: ImageSpec) -> TextArtifact | None:
        return None


class TextImageStrategy:
    """Renders embedded images as text through the conversion service."""

    def __init__(self, service: ConversionService, options: ConversionOptions | None = None) -> None:
        self._service = service
        self._options = options or HookConfig().to_options()

    @property
    def options(self) -> ConversionOptions:
        return self._options

    def render(self, image: ImageSpec) -> TextArtifact | None:
        if image.data:
            source = BytesSource(image.data)
        elif image.url:
            source = UrlSource(image.url)
        else:
            return None
        cached = self._service.cached(source)
        if cached is not None:
            return cached
        try:
            return self._service.convert(source, self._options).artifact
        except ConversionError as exc:
            logger.warning("Falling back to the original image for %s: %s", image.alt or source.describe(), exc)
            return None


class ImageRenderer:
    def __init__(self, strategy: ImageStrategy | None = None) -> None:
        self._strategy: ImageStrategy = strategy or OriginalImageStrategy()

    @property
    def strategy(self) -> ImageStrategy:
        return self._strategy

    def set_strategy(self, strategy: ImageStrategy) -> ImageStrategy:
        """Activate *strategy* and return the one it replaces."""

        previous = self._strategy
        self._strategy = strategy
        return previous

    def render_image(self, image: ImageSpec) -> TextArtifact | None:
        return self._strategy.render(image)


__all__ = [
    "ImageSpec",
    "ImageStrategy",
    "OriginalImageStrategy",
    "TextImageStrategy",
    "ImageRenderer",
]
