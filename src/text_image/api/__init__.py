"""Local HTTP API for text image conversion."""

from .app import create_app

__all__ = ["create_app"]
