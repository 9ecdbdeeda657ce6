from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, dump_config
from ..core import ConversionService
from ..detection import SNIFF_BYTES, describe
from ..display import ConsoleSurface
from ..errors import ConversionError
from ..models import BytesSource, ConversionOptions, ImageSource, source_from_string
from ..settings import resolve_config

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Render images as plain or Braille text in the terminal")


def _load_config(path: Path | None) -> AppConfig:
    return resolve_config(path)


def _read_source(value: str) -> ImageSource:
    if value == "-":
        return BytesSource(sys.stdin.buffer.read())
    return source_from_string(value)


@app.command()
def convert(
    source: str = typer.Argument(..., help="Image path, http(s) URL, or '-' to read image bytes from stdin"),
    color: bool = typer.Option(False, "--color", help="Emit 24-bit colour"),
    negative: bool = typer.Option(False, "--negative", help="Invert the image"),
    grayscale: bool = typer.Option(False, "--grayscale", help="Grayscale colour output"),
    complex_glyphs: bool = typer.Option(False, "--complex", help="Use the extended character set"),
    braille: bool = typer.Option(False, "--braille", help="Render with Braille glyphs"),
    dither: bool = typer.Option(False, "--dither", help="Dither Braille output"),
    threshold: int | None = typer.Option(None, "--threshold", help="Braille threshold (0-255)"),
    width: int | None = typer.Option(None, "--width", help="Output width in characters"),
    height: int | None = typer.Option(None, "--height", help="Output height in characters"),
    save: Path | None = typer.Option(None, "--save", help="Also write the plain text to this file"),
    quiet: bool = typer.Option(False, "--quiet", help="Do not print the rendered image"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    service = ConversionService(cfg, surface=ConsoleSurface(console))
    options = ConversionOptions(
        color=color,
        negative=negative,
        grayscale=grayscale,
        complex=complex_glyphs,
        braille=braille,
        dither=dither,
        threshold=threshold,
        width=width,
        height=height,
        save_to_file=save,
        suppress_display=quiet,
    )
    try:
        result = service.convert(_read_source(source), options)
    except ConversionError as exc:
        err_console.print(f"[red]Conversion failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning[/yellow]: {warning}")
    if result.saved_to:
        err_console.print(f"[green]Saved[/green]: {result.saved_to}")


@app.command()
def batch(
    sources: list[str] = typer.Argument(..., help="Image paths or URLs"),
    braille: bool = typer.Option(False, "--braille", help="Render with Braille glyphs"),
    color: bool = typer.Option(False, "--color", help="Emit 24-bit colour"),
    width: int | None = typer.Option(None, "--width", help="Output width in characters"),
    parallel: int | None = typer.Option(None, "--parallel", min=1, help="Parallel workers"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    service = ConversionService(cfg)
    options = ConversionOptions(braille=braille, color=color, width=width, suppress_display=True)
    batch_result = service.convert_batch(
        [source_from_string(value) for value in sources], options, parallelism=parallel
    )
    table = Table(title="Batch summary")
    table.add_column("Run ID")
    table.add_column("Cache key")
    table.add_column("Rows")
    table.add_column("Cached")
    for result in batch_result.results:
        table.add_row(
            result.run_id,
            result.cache_key[:12],
            str(len(result.artifact.lines())),
            "yes" if result.cached else "-",
        )
    for source, code in batch_result.errors.items():
        table.add_row("-", source, f"[red]{code}[/red]", "-")
    console.print(table)
    summary = batch_result.summary
    console.print(
        f"Processed {summary.total} images: "
        f"{summary.successes} succeeded, {summary.failures} failed, {summary.cache_hits} from cache."
    )
    if summary.failures:
        raise typer.Exit(1)


@app.command()
def sniff(file: Path) -> None:
    with file.open("rb") as handle:
        detection = describe(handle.read(SNIFF_BYTES))
    table = Table(title=str(file))
    table.add_column("Type")
    table.add_column("MIME")
    table.add_column("Extension")
    table.add_column("Animated")
    table.add_row(
        detection.image_type.value,
        detection.mime_type,
        detection.extension or "-",
        "yes" if detection.image_type.animated else "no",
    )
    console.print(table)


@app.command()
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    console.print_json(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()
