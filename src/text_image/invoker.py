from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path

from .errors import BinaryNotFoundError, ConversionFailedError
from .models import ConversionOptions

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "ascii-image-converter"
DEFAULT_ENV: dict[str, str] = {"COLORTERM": "truecolor"}

# (option attribute, flag) in the order the converter receives them.
BOOLEAN_FLAGS: tuple[tuple[str, str], ...] = (
    ("color", "--color"),
    ("negative", "--negative"),
    ("grayscale", "--grayscale"),
    ("complex", "--complex"),
)
VALUE_FLAGS: tuple[tuple[str, str], ...] = (
    ("width", "--width"),
    ("height", "--height"),
    ("threshold", "--threshold"),
)
TRAILING_FLAGS: tuple[tuple[str, str], ...] = (
    ("braille", "--braille"),
    ("dither", "--dither"),
)


def build_arguments(options: ConversionOptions) -> list[str]:
    arguments: list[str] = []
    for attribute, flag in BOOLEAN_FLAGS:
        if getattr(options, attribute):
            arguments.append(flag)
    for attribute, flag in VALUE_FLAGS:
        value = getattr(options, attribute)
        if value is not None:
            arguments.extend([flag, str(value)])
    for attribute, flag in TRAILING_FLAGS:
        if getattr(options, attribute):
            arguments.append(flag)
    return arguments


class ConverterInvoker:
    """Runs the external image-to-text converter as a child process."""

    def __init__(self, binary: str = DEFAULT_BINARY, env: Mapping[str, str] | None = None) -> None:
        self._binary = binary
        self._env = dict(DEFAULT_ENV if env is None else env)

    @property
    def binary(self) -> str:
        return self._binary

    def locate(self) -> str:
        executable = shutil.which(self._binary)
        if executable is None:
            raise BinaryNotFoundError(f"Converter binary not found: {self._binary}")
        return executable

    def command(self, executable: str, path: Path, options: ConversionOptions) -> list[str]:
        return [executable, str(path), *build_arguments(options)]

    def environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self._env)
        return env

    def invoke(self, path: Path, options: ConversionOptions) -> bytes:
        executable = self.locate()
        cmd = self.command(executable, path, options)
        logger.debug("Running converter: %s", cmd)
        try:
            completed = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                env=self.environment(),
            )
        except OSError as exc:
            raise ConversionFailedError(f"Failed to invoke {self._binary} for {path.name}: {exc}") from exc
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip() or "unknown converter error"
            raise ConversionFailedError(
                f"{self._binary} exited with status {completed.returncode} for {path.name}: {stderr}"
            )
        if not completed.stdout.strip():
            raise ConversionFailedError(f"{self._binary} produced no output for {path.name}")
        return completed.stdout


__all__ = ["ConverterInvoker", "build_arguments", "DEFAULT_BINARY", "DEFAULT_ENV"]
