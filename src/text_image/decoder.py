"""Decode the converter's ANSI output into styled text runs."""

from __future__ import annotations

import io
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from rich.console import Console
from rich.text import Text

from .errors import ConversionIOError
from .models import PLAIN, RunAttributes, StyledRun, TextArtifact
from .utils import atomic_write

# Progress and status lines that download tools interleave with real output.
TRANSPORT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        # curl progress meter
        r"^\s*% Total\s+% Received\s+% Xferd\b.*$",
        r"^\s*Dload\s+Upload\s+Total\s+Spent\s+Left\s+Speed\s*$",
        r"^\s*\d{1,3}\s+[\d.]+[kMGT]?\s+\d{1,3}\s+[\d.]+[kMGT]?\s+\d{1,3}\s+[\d.]+[kMGT]?"
        r"\s+[\d.]+[kMGT]?\s+[\d.]+[kMGT]?\s+[-\d:]+\s+[-\d:]+\s+[-\d:]+\s+[\d.]+[kMGT]?\s*$",
        # wget status
        r"^--\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}--\s+\S+\s*$",
        r"^(?:Resolving|Connecting to) \S.*\.\.\. .*$",
        r"^HTTP request sent, awaiting response\.\.\. .*$",
        r"^Length: \d+.*$",
        r"^Saving to: .*$",
        r"^\s*\d+K[ .]+\d{1,3}%.*$",
        r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \(.*\) - .* saved \[.*\]\s*$",
    )
)


def is_transport_noise(line: str) -> bool:
    return any(pattern.match(line) for pattern in TRANSPORT_PATTERNS)


def sanitize(text: str) -> str:
    kept: list[str] = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if "\r" in line:
            # keep only the final redraw of a progress line
            line = line.rsplit("\r", 1)[-1]
        if is_transport_noise(line):
            continue
        kept.append(line)
    return "\n".join(kept)


def _merge(runs: Iterable[StyledRun]) -> Iterator[StyledRun]:
    pending: StyledRun | None = None
    for run in runs:
        if not run.text:
            continue
        if pending is not None and pending.attributes == run.attributes:
            pending = StyledRun(pending.text + run.text, pending.attributes)
            continue
        if pending is not None:
            yield pending
        pending = run
    if pending is not None:
        yield pending


class StyleDecoder:
    def __init__(self) -> None:
        # Only used to resolve span styles; nothing is printed.
        self._console = Console(file=io.StringIO(), color_system="truecolor", force_terminal=True)

    def to_runs(self, text: Text) -> tuple[StyledRun, ...]:
        segments = text.render(self._console)
        runs = (
            StyledRun(segment.text, RunAttributes.from_style(segment.style) if segment.style else PLAIN)
            for segment in segments
        )
        return tuple(_merge(runs))

    def decode(self, raw: bytes, *, save_to: Path | None = None) -> TextArtifact:
        # Trailing row terminators are dropped here rather than left to rich.
        text = sanitize(raw.decode("utf-8", errors="replace")).rstrip("\n")
        artifact = TextArtifact(runs=self.to_runs(Text.from_ansi(text)))
        if save_to is not None:
            self.persist(artifact, save_to)
        return artifact

    def persist(self, artifact: TextArtifact, path: Path) -> None:
        """Write the plain text of *artifact* to *path*; colour is not kept."""

        try:
            atomic_write(Path(path).expanduser(), artifact.plain.rstrip("\n") + "\n")
        except OSError as exc:
            raise ConversionIOError(f"Could not save output to {path}: {exc}") from exc


__all__ = ["StyleDecoder", "TRANSPORT_PATTERNS", "is_transport_noise", "sanitize"]
