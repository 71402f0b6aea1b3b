"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import encode, image_format, save
from tile_mosaic.pipeline import generate_mosaic, make_pile, make_tile

app = typer.Typer(
    name="tile-mosaic",
    help="Build photomosaics out of a directory of tile images.",
    add_completion=False,
    rich_markup_mode="rich",
)
# Logs and messages go to stderr so the image can be piped from stdout.
console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _emit(image: np.ndarray, output: Path | None, fmt: str) -> None:
    """Write to *output*, or the encoded bytes to stdout when it is None."""
    if output is None:
        sys.stdout.buffer.write(encode(image, fmt))
        sys.stdout.buffer.flush()
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    save(image, output)
    console.print(f"[green]✓[/green] Saved to {output}")


def _check_format(fmt: str) -> str:
    try:
        return image_format(fmt)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--format") from exc


def _fail(exc: MosaicError) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(1) from exc


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- mosaic command ------------------------------------------------------

@app.command()
def mosaic(
    target: Path = typer.Argument(..., help="Image to rebuild out of tiles"),
    tiles: Path = typer.Argument(..., help="Folder with tile images"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file (default: stdout)",
    ),
    cell_size: int = typer.Option(
        _DEFAULTS.cell_size, "--cell-size", "-c", help="Grid cell side in pixels",
    ),
    signature_size: int = typer.Option(
        _DEFAULTS.signature_size, "--signature-size",
        help="Signature thumbnail side (1 = average colour)",
    ),
    tile_size: int = typer.Option(
        _DEFAULTS.tile_size, "--tile-size", help="Prepared tile side in pixels",
    ),
    color_space: str = typer.Option(
        _DEFAULTS.color_space, "--color-space", help="'rgb' or 'lab'",
    ),
    matcher: str = typer.Option(
        _DEFAULTS.matcher, "--matcher", help="'kdtree' or 'brute'",
    ),
    resample: str = typer.Option(
        _DEFAULTS.resample, "--resample", help="'bilinear' or 'nearest'",
    ),
    scale: int = typer.Option(
        _DEFAULTS.output_scale, "--scale", "-u", help="Output upscale factor",
    ),
    workers: int | None = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Worker threads (default: CPUs)",
    ),
    no_repeat: bool = typer.Option(
        _DEFAULTS.repeat_penalty, "--no-repeat/--allow-repeat",
        help="Penalise the same tile in nearby cells",
    ),
    repeat_radius: int = typer.Option(
        _DEFAULTS.repeat_radius, "--repeat-radius", help="Penalty reach in cells",
    ),
    fmt: str = typer.Option(
        _DEFAULTS.output_format, "--format", "-f", help="Format for stdout output",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Rebuild TARGET out of the images found in TILES."""
    _setup_logging(verbose)

    try:
        cfg = MosaicConfig(
            cell_size=cell_size,
            signature_size=signature_size,
            tile_size=tile_size,
            color_space=color_space,
            matcher=matcher,
            resample=resample,
            output_scale=scale,
            workers=workers,
            repeat_penalty=no_repeat,
            repeat_radius=repeat_radius,
            output_format=fmt,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    console.print(Panel.fit(
        f"[bold]TILE MOSAIC[/bold]\n"
        f"Cell: {cfg.cell_size}px  |  Signature: {cfg.signature_size}x{cfg.signature_size}"
        f" ({cfg.color_space})\n"
        f"Matcher: {cfg.matcher}  |  Resample: {cfg.resample}  |  No-repeat: {cfg.repeat_penalty}",
        border_style="cyan",
    ))

    t0 = time.perf_counter()
    try:
        image = generate_mosaic(target, tiles, cfg=cfg)
        _emit(image, output, cfg.output_format)
    except MosaicError as exc:
        _fail(exc)

    h, w = image.shape[:2]
    console.print(f"[dim]{w}x{h} px  time={time.perf_counter() - t0:.1f}s[/dim]")


# -- tile command --------------------------------------------------------

@app.command()
def tile(
    source: Path = typer.Argument(..., help="Image to turn into a square tile"),
    output: Path | None = typer.Option(None, "--output", "-o"),
    size: int = typer.Option(128, "--size", "-s", help="Tile side in pixels"),
    fmt: str = typer.Option(_DEFAULTS.output_format, "--format", "-f"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Crop SOURCE to its centred square and resize it."""
    _setup_logging(verbose)
    fmt = _check_format(fmt)
    try:
        _emit(make_tile(source, size), output, fmt)
    except MosaicError as exc:
        _fail(exc)


# -- pile command --------------------------------------------------------

@app.command()
def pile(
    tiles: Path = typer.Argument(..., help="Folder with tile images"),
    output: Path | None = typer.Option(None, "--output", "-o"),
    thumbnail_size: int = typer.Option(256, "--thumbnail-size", "-t"),
    size: int = typer.Option(1024, "--size", "-s", help="Output side in pixels"),
    min_tiles: int = typer.Option(4, "--min-tiles", "-n"),
    seed: int | None = typer.Option(None, "--seed"),
    fmt: str = typer.Option(_DEFAULTS.output_format, "--format", "-f"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Scatter thumbnails of every image in TILES into a random pile."""
    _setup_logging(verbose)
    fmt = _check_format(fmt)
    try:
        image = make_pile(tiles, thumbnail_size, size, min_tiles, seed)
        _emit(image, output, fmt)
    except MosaicError as exc:
        _fail(exc)


if __name__ == "__main__":
    app()
