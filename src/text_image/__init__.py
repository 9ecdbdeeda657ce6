"""Render images as plain or Braille text through an external converter."""

__version__ = "0.1.0"

from .cache import ContentCache
from .config import AppConfig, load_config
from .core import ConversionService
from .errors import ConversionError
from .models import (
    BatchConversionResult,
    BytesSource,
    ConversionOptions,
    ConversionResult,
    PathSource,
    StyledRun,
    TextArtifact,
    UrlSource,
)

__all__ = [
    "__version__",
    "AppConfig",
    "load_config",
    "ContentCache",
    "ConversionService",
    "ConversionError",
    "ConversionOptions",
    "ConversionResult",
    "BatchConversionResult",
    "BytesSource",
    "PathSource",
    "UrlSource",
    "StyledRun",
    "TextArtifact",
]
