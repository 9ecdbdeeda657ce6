from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path

from .models import BytesSource, ImageSource, PathSource, TextArtifact, UrlSource

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 256


def _digest(namespace: str, payload: bytes) -> str:
    hasher = sha256(namespace.encode("utf-8") + b"\0")
    hasher.update(payload)
    return hasher.hexdigest()


def key_for_bytes(payload: bytes) -> str:
    return _digest("bytes", payload)


def key_for_url(url: str) -> str:
    return _digest("url", url.encode("utf-8"))


def key_for_path(path: Path | str) -> str:
    resolved = Path(path).expanduser().resolve()
    return _digest("path", str(resolved).encode("utf-8"))


def key_for(source: ImageSource) -> str:
    if isinstance(source, BytesSource):
        return key_for_bytes(source.payload)
    if isinstance(source, UrlSource):
        return key_for_url(source.url)
    if isinstance(source, PathSource):
        return key_for_path(source.path)
    raise TypeError(f"Unsupported image source: {source!r}")


@dataclass(slots=True)
class CacheStats:
    size: int
    capacity: int
    hits: int
    misses: int
    in_flight: int

    @property
    def over_capacity(self) -> bool:
        return self.size > self.capacity


class ContentCache:
    """Insert-if-absent mapping from cache key to decoded artifact.

    The capacity is advisory: nothing is evicted when it is exceeded. Misses can
    be reserved so that concurrent requests for one key share a single
    computation instead of racing.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = capacity
        self._entries: dict[str, TextArtifact] = {}
        self._in_flight: dict[str, Future[TextArtifact]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def lookup(self, key: str) -> TextArtifact | None:
        with self._lock:
            artifact = self._entries.get(key)
            if artifact is None:
                self._misses += 1
            else:
                self._hits += 1
            return artifact

    def insert(self, key: str, artifact: TextArtifact) -> TextArtifact:
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                return existing
            self._entries[key] = artifact
            if len(self._entries) > self._capacity:
                logger.debug("Cache holds %d entries, above advisory capacity %d", len(self._entries), self._capacity)
            return artifact

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def reserve(self, key: str) -> tuple[Future[TextArtifact], bool]:
        """Return a future for *key* and whether the caller owns its computation."""

        with self._lock:
            artifact = self._entries.get(key)
            if artifact is not None:
                future: Future[TextArtifact] = Future()
                future.set_result(artifact)
                return future, False
            pending = self._in_flight.get(key)
            if pending is not None:
                return pending, False
            future = Future()
            future.set_running_or_notify_cancel()
            self._in_flight[key] = future
            return future, True

    def settle(
        self,
        key: str,
        *,
        artifact: TextArtifact | None = None,
        error: BaseException | None = None,
    ) -> None:
        with self._lock:
            future = self._in_flight.pop(key, None)
        if future is None:
            return
        if error is not None:
            future.set_exception(error)
        elif artifact is not None:
            future.set_result(artifact)
        else:
            future.set_exception(RuntimeError(f"Computation for {key} settled without a result"))

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                capacity=self._capacity,
                hits=self._hits,
                misses=self._misses,
                in_flight=len(self._in_flight),
            )


__all__ = [
    "ContentCache",
    "CacheStats",
    "DEFAULT_CAPACITY",
    "key_for",
    "key_for_bytes",
    "key_for_path",
    "key_for_url",
]
