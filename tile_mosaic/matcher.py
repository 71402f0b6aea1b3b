"""Choose a library tile for every grid cell."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from tile_mosaic.grid import Cell, Grid
from tile_mosaic.library import TileLibrary, TileRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """The tile chosen for one cell and its squared signature distance."""

    cell: Cell
    tile_index: int
    distance: float


def match(cell_signature: np.ndarray, library: TileLibrary) -> TileRecord:
    """Return the tile whose signature is nearest to *cell_signature*.

    Squared Euclidean distance; ties go to the lowest library index.
    """
    return library.nearest(cell_signature)


def match_cell(target: np.ndarray, cell: Cell, library: TileLibrary) -> MatchResult:
    """Signature the cell's pixels of *target* and match it."""
    rows, cols = cell.slices()
    signature = library.signature_of(target[rows, cols])
    tile, dist = library.nearest_with_distance(signature)
    return MatchResult(cell, tile.index, dist)


# -- Optional no-repeat policy -------------------------------------------


def penalty_by_distance(signature_size: int, radius: int) -> Callable[[int], float]:
    """Penalty for reusing a tile *dist* cells away; zero at *radius* or beyond.

    The maximum (at distance 0) is a twentieth of the largest possible
    squared RGB signature distance.
    """
    max_penalty = 255 * 255 * 3 * signature_size * signature_size / 20

    def penalty(dist: int) -> float:
        return max(0.0, max_penalty / radius * (radius - dist))

    return penalty


def match_with_repeat_penalty(
    target: np.ndarray,
    grid: Grid,
    library: TileLibrary,
    radius: int = 3,
    penalty: Callable[[int], float] | None = None,
) -> list[MatchResult]:
    """Match cells in row-major order, discouraging nearby repeats.

    Every tile already chosen for an earlier cell within *radius* cells
    (Manhattan distance on the grid) has ``penalty(dist)`` added to its
    distance before the minimum is taken. The distance recorded in each
    :class:`MatchResult` is the raw, unpenalised one.
    """
    if penalty is None:
        penalty = penalty_by_distance(library.signature_size, radius)

    logger.info("Matching %d cells with repeat penalty (radius=%d) …", len(grid), radius)
    t0 = time.perf_counter()

    chosen: dict[tuple[int, int], int] = {}
    results: list[MatchResult] = []
    for cell in grid:
        rows, cols = cell.slices()
        raw = library.distances(library.signature_of(target[rows, cols]))
        weights = raw.copy()
        for r in range(max(0, cell.row - radius + 1), cell.row + 1):
            for c in range(cell.col - radius + 1, cell.col + radius):
                tile_index = chosen.get((r, c))
                dist = abs(cell.row - r) + abs(cell.col - c)
                if tile_index is not None and dist < radius:
                    weights[tile_index] += penalty(dist)
        best = int(np.argmin(weights))
        chosen[(cell.row, cell.col)] = best
        results.append(MatchResult(cell, best, float(raw[best])))

    logger.info("Matching done  (%.1f s)", time.perf_counter() - t0)
    return results
