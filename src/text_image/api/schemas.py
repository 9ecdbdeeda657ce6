from __future__ import annotations

from pydantic import BaseModel, Field

from ..cache import CacheStats
from ..models import ConversionOptions, ConversionResult, StyledRun


class OptionsPayload(BaseModel):
    color: bool = False
    negative: bool = False
    grayscale: bool = False
    complex: bool = False
    braille: bool = False
    dither: bool = False
    threshold: int | None = Field(default=None, ge=0, le=255)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)

    def to_conversion_options(self) -> ConversionOptions:
        return ConversionOptions(
            color=self.color,
            negative=self.negative,
            grayscale=self.grayscale,
            complex=self.complex,
            braille=self.braille,
            dither=self.dither,
            threshold=self.threshold,
            width=self.width,
            height=self.height,
            suppress_display=True,
        )


class UrlConversionRequest(BaseModel):
    url: str
    options: OptionsPayload = Field(default_factory=OptionsPayload)


class RunPayload(BaseModel):
    text: str
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
    def from_run(cls, run: StyledRun) -> RunPayload:
        attributes = run.attributes
        return cls(
            text=run.text,
            foreground=attributes.foreground,
            background=attributes.background,
            bold=attributes.bold,
            dim=attributes.dim,
            italic=attributes.italic,
            underline=attributes.underline,
            blink=attributes.blink,
            reverse=attributes.reverse,
            strike=attributes.strike,
        )


class ConversionResponse(BaseModel):
    run_id: str
    cache_key: str
    cached: bool
    image_type: str | None = None
    text: str
    runs: list[RunPayload]
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ConversionResult) -> ConversionResponse:
        return cls(
            run_id=result.run_id,
            cache_key=result.cache_key,
            cached=result.cached,
            image_type=result.image_type.value if result.image_type else None,
            text=result.artifact.plain,
            runs=[RunPayload.from_run(run) for run in result.artifact.runs],
            warnings=list(result.warnings),
        )


class CacheStatsResponse(BaseModel):
    size: int
    capacity: int
    hits: int
    misses: int
    in_flight: int
    over_capacity: bool

    @classmethod
    def from_stats(cls, stats: CacheStats) -> CacheStatsResponse:
        return cls(
            size=stats.size,
            capacity=stats.capacity,
            hits=stats.hits,
            misses=stats.misses,
            in_flight=stats.in_flight,
            over_capacity=stats.over_capacity,
        )
