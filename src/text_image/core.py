from __future__ import annotations

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import httpx

from .cache import ContentCache, key_for, key_for_path
from .config import AppConfig
from .decoder import StyleDecoder
from .detection import ImageType
from .display import DisplaySurface, deliver
from .errors import ConversionError, ConversionIOError
from .invoker import ConverterInvoker
from .logging import RunLogEntry, RunLogger, StageTimings
from .models import (
    BatchConversionResult,
    BatchSummary,
    ConversionOptions,
    ConversionResult,
    ImageSource,
    PathSource,
    TextArtifact,
)
from .sources import SourceMaterializer
from .utils import TempFiles, generate_run_id

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _ConversionContext:
    run_id: str
    source: ImageSource
    options: ConversionOptions
    source_key: str
    temps: TempFiles
    timings: StageTimings = field(default_factory=StageTimings)
    warnings: list[str] = field(default_factory=list)
    image_type: ImageType | None = None


class ConversionService:
    """Converts images to styled text, reusing earlier results through a content cache."""

    def __init__(
        self,
        config: AppConfig,
        *,
        cache: ContentCache | None = None,
        surface: DisplaySurface | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._cache = cache if cache is not None else ContentCache(config.cache.capacity)
        self._surface = surface
        self._invoker = ConverterInvoker(config.converter.binary, config.converter.env)
        self._materializer = SourceMaterializer(
            client=http_client,
            fetch_timeout_s=config.runtime.fetch_timeout_s,
            user_agent=config.runtime.user_agent,
        )
        self._decoder = StyleDecoder()
        self._run_logger = RunLogger(config.runtime.log_file) if config.runtime.log_file else None

    @property
    def cache(self) -> ContentCache:
        return self._cache

    @property
    def surface(self) -> DisplaySurface | None:
        return self._surface

    @property
    def converter_binary(self) -> str:
        return self._invoker.binary

    def cached(self, source: ImageSource) -> TextArtifact | None:
        return self._cache.lookup(key_for(source))

    def clear_cache(self) -> None:
        self._cache.clear()

    def convert(
        self,
        source: ImageSource,
        options: ConversionOptions | None = None,
        *,
        run_id: str | None = None,
    ) -> ConversionResult:
        opts = options or ConversionOptions()
        run_id = run_id or generate_run_id()
        opts.validate()
        self._invoker.locate()

        source_key = key_for(source)
        cached = self._cache.lookup(source_key)
        if cached is not None:
            return self._cached_result(run_id, source, source_key, cached, opts)

        future, owner = self._cache.reserve(source_key)
        if not owner:
            logger.debug("Waiting on in-flight conversion for %s", source.describe())
            return self._cached_result(run_id, source, source_key, future.result(), opts)

        context = _ConversionContext(
            run_id=run_id,
            source=source,
            options=opts,
            source_key=source_key,
            temps=TempFiles(self._config.runtime.temp_dir),
        )
        try:
            result = self._convert_internal(context)
        except ConversionError as exc:
            self._cache.settle(source_key, error=exc)
            self._log_failure(context, exc)
            raise
        except BaseException as exc:
            self._cache.settle(source_key, error=exc)
            raise
        self._cache.settle(source_key, artifact=result.artifact)
        self._log_result(context, result)
        return result

    def _convert_internal(self, context: _ConversionContext) -> ConversionResult:
        try:
            path = self._materialize(context)
            cache_key = key_for_path(path)
            if cache_key != context.source_key:
                hit = self._cache.lookup(cache_key)
                if hit is not None:
                    stored = self._cache.insert(context.source_key, hit)
                    if context.options.save_to_file is not None:
                        self._decoder.persist(stored, context.options.save_to_file)
                    return self._build_result(context, stored, cache_key, cached=True)

            raw = self._invoke(path, context)
            artifact = self._decode(raw, context)
            if not context.options.suppress_display and self._surface is not None:
                deliver(self._surface, artifact)

            stored = self._cache.insert(cache_key, artifact)
            if cache_key != context.source_key:
                self._cache.insert(context.source_key, stored)
            return self._build_result(context, stored, cache_key, cached=False)
        finally:
            self._cleanup(context)

    def _materialize(self, context: _ConversionContext) -> Path:
        start = time.perf_counter()
        materialized = self._materializer.materialize(context.source, context.temps)
        context.image_type = materialized.image_type
        context.timings.materialize_ms = (time.perf_counter() - start) * 1000
        return materialized.path

    def _invoke(self, path: Path, context: _ConversionContext) -> bytes:
        if isinstance(context.source, PathSource) and not path.exists():
            raise ConversionIOError(f"Source file does not exist: {path}", code="NOT_FOUND")
        start = time.perf_counter()
        raw = self._invoker.invoke(path, context.options)
        context.timings.invoke_ms = (time.perf_counter() - start) * 1000
        return raw

    def _decode(self, raw: bytes, context: _ConversionContext) -> TextArtifact:
        start = time.perf_counter()
        artifact = self._decoder.decode(raw, save_to=context.options.save_to_file)
        context.timings.decode_ms = (time.perf_counter() - start) * 1000
        return artifact

    def _cleanup(self, context: _ConversionContext) -> None:
        for path in context.temps.cleanup():
            context.warnings.append(f"CLEANUP_FAILED:{path}")

    def _build_result(
        self, context: _ConversionContext, artifact: TextArtifact, cache_key: str, *, cached: bool
    ) -> ConversionResult:
        return ConversionResult(
            artifact=artifact,
            cache_key=cache_key,
            cached=cached,
            run_id=context.run_id,
            image_type=context.image_type,
            warnings=context.warnings,
            saved_to=context.options.save_to_file,
        )

    def _cached_result(
        self,
        run_id: str,
        source: ImageSource,
        cache_key: str,
        artifact: TextArtifact,
        options: ConversionOptions,
    ) -> ConversionResult:
        logger.debug("Cache hit for %s", source.describe())
        saved_to = options.save_to_file
        if saved_to is not None:
            self._decoder.persist(artifact, saved_to)
        if self._run_logger is not None:
            self._run_logger.append(
                RunLogEntry(
                    run_id=run_id,
                    source=source.describe(),
                    status="cached",
                    image_type="unknown",
                    cache_key=cache_key,
                    warnings=[],
                    error_code=None,
                    timings=StageTimings(),
                    output_path=str(saved_to) if saved_to else None,
                )
            )
        return ConversionResult(
            artifact=artifact, cache_key=cache_key, cached=True, run_id=run_id, saved_to=saved_to
        )

    def _log_result(self, context: _ConversionContext, result: ConversionResult) -> None:
        if self._run_logger is None:
            return
        self._run_logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=context.source.describe(),
                status="cached" if result.cached else "success",
                image_type=context.image_type.value if context.image_type else "unknown",
                cache_key=result.cache_key,
                warnings=list(result.warnings),
                error_code=None,
                timings=context.timings,
                output_path=str(result.saved_to) if result.saved_to else None,
            )
        )

    def _log_failure(self, context: _ConversionContext, exc: ConversionError) -> None:
        logger.info("Conversion of %s failed: %s %s", context.source.describe(), exc.code, exc)
        if self._run_logger is None:
            return
        self._run_logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=context.source.describe(),
                status="failure",
                image_type=context.image_type.value if context.image_type else "unknown",
                cache_key=context.source_key,
                warnings=list(context.warnings),
                error_code=exc.code,
                timings=context.timings,
                output_path=None,
            )
        )

    def convert_batch(
        self,
        sources: Sequence[ImageSource],
        options: ConversionOptions | None = None,
        *,
        parallelism: int | None = None,
    ) -> BatchConversionResult:
        parallelism = max(1, parallelism or self._config.runtime.parallelism)
        summary = BatchSummary(total=len(sources))
        results: list[ConversionResult] = []
        errors: dict[str, str] = {}

        def _record(source: ImageSource, outcome: ConversionResult | ConversionError) -> None:
            if isinstance(outcome, ConversionError):
                summary.failures += 1
                errors[source.describe()] = outcome.code
                return
            summary.successes += 1
            if outcome.cached:
                summary.cache_hits += 1
            results.append(outcome)

        if parallelism == 1:
            for source in sources:
                try:
                    _record(source, self.convert(source, options))
                except ConversionError as exc:
                    _record(source, exc)
        else:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=parallelism, thread_name_prefix="text-image"
            ) as executor:
                future_map = {executor.submit(self.convert, source, options): source for source in sources}
                for future in concurrent.futures.as_completed(future_map):
                    source = future_map[future]
                    try:
                        _record(source, future.result())
                    except ConversionError as exc:
                        _record(source, exc)
        return BatchConversionResult(results=results, errors=errors, summary=summary)


__all__ = [
    "ConversionService",
    "ConversionResult",
    "ConversionOptions",
    "ConversionError",
    "BatchConversionResult",
]
