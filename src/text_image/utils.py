from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_PREFIX = "text-image-"


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


class TempFiles:
    """Temporary files owned by a single conversion in flight.

    Every path handed out (or adopted) is removed by :meth:`cleanup`. Removal
    failures are logged and returned instead of raised.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def create(self, suffix: str = "") -> Path:
        if self._directory is not None:
            self._directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=suffix, dir=self._directory)
        os.close(fd)
        path = Path(name)
        self._paths.append(path)
        return path

    def adopt(self, path: Path) -> Path:
        if path not in self._paths:
            self._paths.append(path)
        return path

    def discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove temporary file %s early: %s", path, exc)
            return
        if path in self._paths:
            self._paths.remove(path)

    def cleanup(self) -> list[Path]:
        failed: list[Path] = []
        for path in self._paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove temporary file %s: %s", path, exc)
                failed.append(path)
        self._paths = failed
        return failed

    def __enter__(self) -> TempFiles:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
