"""Turn in-memory and remote images into local files the converter can read."""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import httpx
from PIL import Image, UnidentifiedImageError

from .detection import ImageType, identify, sniff_file
from .errors import ConversionFailedError, ConversionIOError, FetchError
from .models import BytesSource, ImageSource, PathSource, UrlSource
from .utils import TempFiles

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "text-image/0.1"
CHUNK_SIZE = 64 * 1024

# Errors Pillow raises for corrupt, truncated or oversized image data.
UNREADABLE_ERRORS: tuple[type[BaseException], ...] = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    EOFError,
    ValueError,
    SyntaxError,
)


@dataclass(slots=True)
class MaterializedSource:
    path: Path
    image_type: ImageType | None


class SourceMaterializer:
    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        fetch_timeout_s: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._client = client
        self._timeout = httpx.Timeout(fetch_timeout_s)
        self._user_agent = user_agent

    def materialize(self, source: ImageSource, temps: TempFiles) -> MaterializedSource:
        if isinstance(source, BytesSource):
            return self.from_bytes(source.payload, temps)
        if isinstance(source, UrlSource):
            return self.from_url(source.url, temps)
        if isinstance(source, PathSource):
            return MaterializedSource(path=Path(source.path).expanduser().resolve(), image_type=None)
        raise TypeError(f"Unsupported image source: {source!r}")

    def from_bytes(self, payload: bytes, temps: TempFiles) -> MaterializedSource:
        image_type = identify(payload)
        target = self._create(temps, image_type.extension)
        try:
            target.write_bytes(payload)
        except OSError as exc:
            raise ConversionIOError(f"Could not write image data to {target}: {exc}") from exc
        if image_type.animated:
            return MaterializedSource(path=self._extract_first_frame(target, temps), image_type=image_type)
        return MaterializedSource(path=target, image_type=image_type)

    def from_url(self, url: str, temps: TempFiles) -> MaterializedSource:
        download = self._create(temps, "")
        size = self._download(url, download)
        if size == 0:
            raise FetchError(f"Empty response from {url}")

        image_type = sniff_file(download)
        path = download
        if image_type.extension:
            path = temps.adopt(download.with_name(download.name + image_type.extension))
            try:
                os.replace(download, path)
            except OSError as exc:
                raise ConversionIOError(f"Could not rename {download}: {exc}") from exc
        if image_type.animated:
            path = self._extract_first_frame(path, temps)
        return MaterializedSource(path=self._normalize_depth(path, temps), image_type=image_type)

    @contextlib.contextmanager
    def _http_client(self) -> Iterator[httpx.Client]:
        if self._client is not None:
            yield self._client
            return
        with httpx.Client(follow_redirects=True) as client:
            yield client

    def _download(self, url: str, destination: Path) -> int:
        size = 0
        headers = {"User-Agent": self._user_agent}
        try:
            with self._http_client() as client:
                with client.stream("GET", url, headers=headers, timeout=self._timeout) as response:
                    response.raise_for_status()
                    with destination.open("wb") as handle:
                        for chunk in response.iter_bytes(CHUNK_SIZE):
                            handle.write(chunk)
                            size += len(chunk)
        except httpx.HTTPError as exc:
            raise FetchError(f"Could not fetch {url}: {exc}") from exc
        except OSError as exc:
            raise ConversionIOError(f"Could not store download from {url}: {exc}") from exc
        logger.debug("Fetched %d bytes from %s into %s", size, url, destination)
        return size

    def _create(self, temps: TempFiles, suffix: str) -> Path:
        try:
            return temps.create(suffix)
        except OSError as exc:
            raise ConversionIOError(f"Could not create temporary file: {exc}") from exc

    def _extract_first_frame(self, source: Path, temps: TempFiles) -> Path:
        try:
            with Image.open(source) as image:
                image.seek(0)
                frame = image.convert("RGBA")
        except UNREADABLE_ERRORS as exc:
            raise ConversionFailedError(
                f"Unreadable animated image {source.name}: {exc}", code="UNREADABLE_IMAGE"
            ) from exc
        target = self._create(temps, ImageType.PNG.extension)
        try:
            frame.save(target, format="PNG")
        except OSError as exc:
            raise ConversionIOError(f"Could not write first frame to {target}: {exc}") from exc
        temps.discard(source)
        return target

    def _normalize_depth(self, source: Path, temps: TempFiles) -> Path:
        """Re-encode *source* as 24-bit RGB so the converter always sees the same depth."""

        try:
            with Image.open(source) as image:
                image.load()
                image_format = image.format
                if image.mode == "RGB":
                    return source
                rgb = image.convert("RGB")
        except UNREADABLE_ERRORS as exc:
            raise ConversionFailedError(
                f"Fetched data is not a readable image: {exc}", code="UNREADABLE_IMAGE"
            ) from exc

        target = source
        if image_format is None or image_format == "GIF":
            image_format = "PNG"
            target = self._create(temps, ImageType.PNG.extension)
        try:
            rgb.save(target, format=image_format)
        except (OSError, ValueError) as exc:
            raise ConversionIOError(f"Could not normalise {source.name}: {exc}") from exc
        return target


__all__ = ["MaterializedSource", "SourceMaterializer"]
