"""Display surfaces that receive decoded text images."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from rich.console import Console

from .models import StyledRun, TextArtifact


@runtime_checkable
class DisplaySurface(Protocol):
    name: str

    def clear(self) -> None:  # pragma: no cover - interface
        ...

    def insert_styled(self, runs: Sequence[StyledRun]) -> None:  # pragma: no cover - interface
        ...

    def refresh_styling(self) -> None:  # pragma: no cover - interface
        ...


class BufferSurface:
    """In-memory named text region, the shape an editor buffer exposes."""

    def __init__(self, name: str = "text-image") -> None:
        self.name = name
        self.runs: list[StyledRun] = []
        self.refresh_count = 0

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def lines(self) -> list[str]:
        return self.text.splitlines()

    def clear(self) -> None:
        self.runs.clear()

    def insert_styled(self, runs: Sequence[StyledRun]) -> None:
        self.runs.extend(runs)

    def refresh_styling(self) -> None:
        self.refresh_count += 1


class ConsoleSurface:
    """Prints text images to a terminal through rich."""

    def __init__(self, console: Console | None = None, *, name: str = "console", clear_screen: bool = False) -> None:
        self.name = name
        self._console = console or Console()
        self._clear_screen = clear_screen

    def clear(self) -> None:
        if self._clear_screen:
            self._console.clear()

    def insert_styled(self, runs: Sequence[StyledRun]) -> None:
        self._console.print(TextArtifact(runs=tuple(runs)).to_text(), soft_wrap=True, highlight=False)

    def refresh_styling(self) -> None:
        pass


def deliver(surface: DisplaySurface, artifact: TextArtifact) -> None:
    surface.clear()
    surface.insert_styled(artifact.runs)
    surface.refresh_styling()


__all__ = ["DisplaySurface", "BufferSurface", "ConsoleSurface", "deliver"]
