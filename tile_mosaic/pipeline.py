"""End-to-end operations: mosaic, single tile and tile pile."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

import numpy as np

from tile_mosaic.compositor import composite, new_canvas
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import InvalidDimensionError
from tile_mosaic.grid import Cell, partition
from tile_mosaic.image_io import FileSystemSource, build_tile, decode
from tile_mosaic.library import TileLibrary, build_library
from tile_mosaic.matcher import MatchResult, match_cell, match_with_repeat_penalty
from tile_mosaic.pile import MIN_TILES, paste_clipped, random_pile

logger = logging.getLogger(__name__)


def build_mosaic(
    target: np.ndarray,
    library: TileLibrary,
    cfg: MosaicConfig | None = None,
) -> tuple[np.ndarray, list[MatchResult]]:
    """Match and composite every cell of *target* against *library*.

    Cells are independent work units handed to a thread pool; each one
    writes only its own rectangle of the canvas. With
    ``cfg.repeat_penalty`` matching is sequential and only composition
    runs in parallel.

    Returns:
        The ``(H * scale, W * scale, 3)`` canvas and one
        :class:`MatchResult` per cell in row-major order.
    """
    cfg = cfg or MosaicConfig()
    h, w = target.shape[:2]
    grid = partition(w, h, cfg.cell_size)
    scale = cfg.output_scale
    canvas = new_canvas(w * scale, h * scale)
    logger.info(
        "Target %dx%d → %dx%d grid (%d cells, cell=%d px)",
        w, h, grid.cols, grid.rows, len(grid), cfg.cell_size,
    )

    workers = cfg.workers or os.cpu_count() or 1
    t0 = time.perf_counter()

    def _place(result: MatchResult) -> MatchResult:
        composite(canvas, result.cell, library[result.tile_index], cfg.resample, scale)
        return result

    def _match_and_place(cell: Cell) -> MatchResult:
        return _place(match_cell(target, cell, library))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        if cfg.repeat_penalty:
            matches = match_with_repeat_penalty(target, grid, library, cfg.repeat_radius)
            results = list(pool.map(_place, matches))
        else:
            results = list(pool.map(_match_and_place, grid.cells))

    logger.info(
        "Mosaic built: %d cells, %d distinct tiles  (%.1f s)",
        len(results), len({r.tile_index for r in results}), time.perf_counter() - t0,
    )
    return canvas, results


def generate_mosaic(
    target_path: str | Path,
    tile_directory_path: str | Path,
    cell_size: int | None = None,
    cfg: MosaicConfig | None = None,
    source: FileSystemSource | None = None,
) -> np.ndarray:
    """Build a photomosaic of *target_path* from the images in a directory.

    *cell_size* overrides ``cfg.cell_size`` when given. The tile library is
    fully built before the target is decoded and matching begins.

    Raises:
        IoError, DecodeError: the target or the tile directory is unusable.
        EmptyLibraryError: no tile in the directory could be decoded.
        InvalidDimensionError: *cell_size* is not positive.
    """
    cfg = cfg or MosaicConfig()
    if cell_size is not None:
        cfg = replace(cfg, cell_size=cell_size)
    source = source or FileSystemSource()

    library = build_library(tile_directory_path, cfg, source)
    target = source.decode(target_path)
    canvas, _ = build_mosaic(target, library, cfg)
    return canvas


def make_tile(source_path: str | Path, size: int = 128, resample: str = "bilinear") -> np.ndarray:
    """Decode an image and return its centred square at *size* x *size*."""
    if size <= 0:
        msg = f"Tile size must be positive, got {size}"
        raise InvalidDimensionError(msg)
    return build_tile(decode(source_path), size, resample)


def make_pile(
    tile_directory_path: str | Path,
    thumbnail_size: int = 256,
    output_size: int = 1024,
    min_tiles: int = MIN_TILES,
    seed: int | None = None,
    cfg: MosaicConfig | None = None,
    source: FileSystemSource | None = None,
) -> np.ndarray:
    """Scatter square thumbnails of every tile over an *output_size* canvas."""
    if output_size <= 0:
        msg = f"output_size must be positive, got {output_size}"
        raise InvalidDimensionError(msg)
    cfg = cfg or MosaicConfig()
    cfg = replace(cfg, tile_size=thumbnail_size, crop_square=True)
    library = build_library(tile_directory_path, cfg, source)

    canvas = new_canvas(output_size, output_size)
    sizes = [(t.width, t.height) for t in library]
    placements = random_pile(sizes, min_tiles, (output_size, output_size), seed)
    for tile_index, x, y in placements:
        paste_clipped(canvas, library[tile_index].pixels, x, y)
    logger.info("Pile built: %d placements of %d tiles", len(placements), len(library))
    return canvas
