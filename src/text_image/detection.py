from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ImageType(str, Enum):
    PNG = "png"
    APNG = "apng"
    JPEG = "jpeg"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"
    TIFF = "tiff"
    ICO = "ico"
    UNKNOWN = "unknown"

    @property
    def extension(self) -> str:
        return EXTENSION_MAP[self]

    @property
    def mime_type(self) -> str:
        return MIME_MAP[self]

    @property
    def pillow_format(self) -> str | None:
        return PILLOW_FORMATS.get(self)

    @property
    def animated(self) -> bool:
        return self in ANIMATED_TYPES


@dataclass(slots=True)
class DetectionResult:
    image_type: ImageType
    mime_type: str
    extension: str


EXTENSION_MAP: dict[ImageType, str] = {
    ImageType.PNG: ".png",
    ImageType.APNG: ".png",
    ImageType.JPEG: ".jpg",
    ImageType.GIF: ".gif",
    ImageType.BMP: ".bmp",
    ImageType.WEBP: ".webp",
    ImageType.TIFF: ".tiff",
    ImageType.ICO: ".ico",
    ImageType.UNKNOWN: "",
}

MIME_MAP: dict[ImageType, str] = {
    ImageType.PNG: "image/png",
    ImageType.APNG: "image/apng",
    ImageType.JPEG: "image/jpeg",
    ImageType.GIF: "image/gif",
    ImageType.BMP: "image/bmp",
    ImageType.WEBP: "image/webp",
    ImageType.TIFF: "image/tiff",
    ImageType.ICO: "image/vnd.microsoft.icon",
    ImageType.UNKNOWN: "application/octet-stream",
}

PILLOW_FORMATS: dict[ImageType, str] = {
    ImageType.PNG: "PNG",
    ImageType.APNG: "PNG",
    ImageType.JPEG: "JPEG",
    ImageType.GIF: "GIF",
    ImageType.BMP: "BMP",
    ImageType.WEBP: "WEBP",
    ImageType.TIFF: "TIFF",
    ImageType.ICO: "ICO",
}

ANIMATED_TYPES = frozenset({ImageType.GIF, ImageType.APNG})

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SNIFF_BYTES = 4096


def _is_apng(data: bytes) -> bool:
    # acTL must precede the first IDAT chunk in an animated PNG.
    offset = len(PNG_SIGNATURE)
    while offset + 8 <= len(data):
        (length,) = struct.unpack(">I", data[offset : offset + 4])
        chunk_type = data[offset + 4 : offset + 8]
        if chunk_type == b"acTL":
            return True
        if chunk_type in {b"IDAT", b"IEND"}:
            return False
        offset += 12 + length
    return False


def identify(data: bytes) -> ImageType:
    if data.startswith(PNG_SIGNATURE):
        return ImageType.APNG if _is_apng(data) else ImageType.PNG
    if data.startswith(b"\xff\xd8\xff"):
        return ImageType.JPEG
    if data[:6] in {b"GIF87a", b"GIF89a"}:
        return ImageType.GIF
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ImageType.WEBP
    if data[:4] in {b"II*\x00", b"MM\x00*"}:
        return ImageType.TIFF
    if data[:4] == b"\x00\x00\x01\x00":
        return ImageType.ICO
    if data[:2] == b"BM" and len(data) >= 14:
        return ImageType.BMP
    return ImageType.UNKNOWN


def sniff_file(path: Path) -> ImageType:
    with path.open("rb") as handle:
        header = handle.read(SNIFF_BYTES)
    return identify(header)


def describe(data: bytes) -> DetectionResult:
    image_type = identify(data)
    return DetectionResult(
        image_type=image_type,
        mime_type=image_type.mime_type,
        extension=image_type.extension,
    )


__all__ = [
    "ImageType",
    "DetectionResult",
    "identify",
    "sniff_file",
    "describe",
]
