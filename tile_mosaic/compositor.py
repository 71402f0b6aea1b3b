"""Write resampled tiles into the output canvas."""

from __future__ import annotations

import numpy as np

from tile_mosaic.grid import Cell
from tile_mosaic.image_io import resize
from tile_mosaic.library import TileRecord


def new_canvas(width: int, height: int) -> np.ndarray:
    """Allocate an empty (H, W, 3) uint8 canvas."""
    return np.zeros((height, width, 3), dtype=np.uint8)


def resample_tile(tile: TileRecord, width: int, height: int, resample: str = "bilinear") -> np.ndarray:
    """The tile's pixels resampled to exactly *width* x *height*."""
    return resize(tile.pixels, width, height, resample)


def composite(
    canvas: np.ndarray,
    cell: Cell,
    tile: TileRecord,
    resample: str = "bilinear",
    scale: int = 1,
) -> None:
    """Resample *tile* to *cell* (times *scale*) and write it into *canvas*.

    Only the cell's own rectangle is touched, so calls for different cells
    of the same grid can run concurrently.
    """
    rows, cols = cell.slices(scale)
    canvas[rows, cols] = resample_tile(tile, cell.width * scale, cell.height * scale, resample)
