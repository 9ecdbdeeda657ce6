"""Domain models for image-to-text conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Union
from urllib.parse import urlparse

from rich.style import Style
from rich.text import Text

from .detection import ImageType
from .errors import InvalidOptionError

MIN_THRESHOLD = 0
MAX_THRESHOLD = 255


@dataclass(frozen=True, slots=True)
class BytesSource:
    """Raw image bytes held in memory."""

    kind: ClassVar[str] = "bytes"

    payload: bytes

    def describe(self) -> str:
        return f"<{len(self.payload)} bytes>"


@dataclass(frozen=True, slots=True)
class PathSource:
    """An image that already lives on the local filesystem."""

    kind: ClassVar[str] = "path"

    path: Path

    def describe(self) -> str:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class UrlSource:
    """A remote image fetched over HTTP(S)."""

    kind: ClassVar[str] = "url"

    url: str

    def describe(self) -> str:
        return self.url


ImageSource = Union[BytesSource, PathSource, UrlSource]


def is_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def source_from_string(value: str) -> ImageSource:
    value = value.strip()
    if is_url(value):
        return UrlSource(value)
    return PathSource(Path(value))


@dataclass(slots=True)
class ConversionOptions:
    """Flags forwarded to the external converter for a single conversion."""

    color: bool = False
    negative: bool = False
    grayscale: bool = False
    complex: bool = False
    braille: bool = False
    dither: bool = False
    threshold: int | None = None
    width: int | None = None
    height: int | None = None
    save_to_file: Path | None = None
    suppress_display: bool = False

    def validate(self) -> None:
        if self.threshold is not None:
            if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
                raise InvalidOptionError(f"threshold must be an integer, got {self.threshold!r}")
            if not MIN_THRESHOLD <= self.threshold <= MAX_THRESHOLD:
                raise InvalidOptionError(
                    f"threshold must lie in [{MIN_THRESHOLD}, {MAX_THRESHOLD}], got {self.threshold}"
                )
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidOptionError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True, slots=True)
class RunAttributes:
    foreground: str | None = None
    background: str | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    blink: bool = False
    reverse: bool = False
    strike: bool = False

    @classmethod
    def from_style(cls, style: Style) -> RunAttributes:
        return cls(
            foreground=style.color.name if style.color is not None else None,
            background=style.bgcolor.name if style.bgcolor is not None else None,
            bold=bool(style.bold),
            dim=bool(style.dim),
            italic=bool(style.italic),
            underline=bool(style.underline),
            blink=bool(style.blink),
            reverse=bool(style.reverse),
            strike=bool(style.strike),
        )

    def to_style(self) -> Style:
        return Style(
            color=self.foreground,
            bgcolor=self.background,
            bold=self.bold or None,
            dim=self.dim or None,
            italic=self.italic or None,
            underline=self.underline or None,
            blink=self.blink or None,
            reverse=self.reverse or None,
            strike=self.strike or None,
        )

    @property
    def is_plain(self) -> bool:
        return self == PLAIN


PLAIN = RunAttributes()


@dataclass(frozen=True, slots=True)
class StyledRun:
    text: str
    attributes: RunAttributes = PLAIN


@dataclass(frozen=True, slots=True)
class TextArtifact:
    """Decoded converter output: ordered runs whose text concatenates to the display output."""

    runs: tuple[StyledRun, ...] = ()

    @classmethod
    def from_plain(cls, text: str) -> TextArtifact:
        return cls(runs=(StyledRun(text),) if text else ())

    @property
    def plain(self) -> str:
        return "".join(run.text for run in self.runs)

    def lines(self) -> list[str]:
        return self.plain.splitlines()

    def to_text(self) -> Text:
        text = Text()
        for run in self.runs:
            text.append(run.text, style=None if run.attributes.is_plain else run.attributes.to_style())
        return text


@dataclass(slots=True)
class ConversionResult:
    """Result metadata for an individual conversion."""

    artifact: TextArtifact
    cache_key: str
    cached: bool
    run_id: str
    image_type: ImageType | None = None
    warnings: list[str] = field(default_factory=list)
    saved_to: Path | None = None


@dataclass(slots=True)
class BatchSummary:
    total: int = 0
    successes: int = 0
    failures: int = 0
    cache_hits: int = 0


@dataclass(slots=True)
class BatchConversionResult:
    """Aggregate results for a batch conversion request."""

    results: list[ConversionResult]
    errors: dict[str, str]
    summary: BatchSummary


__all__ = [
    "BytesSource",
    "PathSource",
    "UrlSource",
    "ImageSource",
    "is_url",
    "source_from_string",
    "ConversionOptions",
    "RunAttributes",
    "StyledRun",
    "TextArtifact",
    "ConversionResult",
    "BatchSummary",
    "BatchConversionResult",
]
