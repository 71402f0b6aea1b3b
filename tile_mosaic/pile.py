"""Random "pile" of tile thumbnails scattered over a canvas."""

from __future__ import annotations

from collections.abc import Sequence
from itertools import cycle, islice

import numpy as np

# Minimum number of placements (tiles repeat if there are fewer)
MIN_TILES = 128


def random_pile(
    tile_sizes: Sequence[tuple[int, int]],
    min_tiles: int = MIN_TILES,
    size: tuple[int, int] = (1024, 1024),
    seed: int | None = None,
) -> list[tuple[int, int, int]]:
    """Scatter tiles randomly over a canvas of *size* ``(width, height)``.

    Tiles are cycled until ``max(min_tiles, len(tile_sizes))`` placements
    exist. A w x h tile lands at ``x`` in ``[-w, width)`` and ``y`` in
    ``[-h, height)``, so it may hang off any edge.

    Returns:
        ``(tile_index, x, y)`` placements in drawing order.
    """
    if not tile_sizes:
        return []
    width, height = size
    rng = np.random.default_rng(seed)
    count = max(min_tiles, len(tile_sizes))
    placements = []
    for i in islice(cycle(range(len(tile_sizes))), count):
        w, h = tile_sizes[i]
        x = int(rng.integers(-w, width))
        y = int(rng.integers(-h, height))
        placements.append((i, x, y))
    return placements


def paste_clipped(canvas: np.ndarray, tile: np.ndarray, x: int, y: int) -> None:
    """Copy *tile* onto *canvas* at ``(x, y)``, dropping what falls outside."""
    ch, cw = canvas.shape[:2]
    th, tw = tile.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + tw, cw), min(y + th, ch)
    if x0 >= x1 or y0 >= y1:
        return
    canvas[y0:y1, x0:x1] = tile[y0 - y:y1 - y, x0 - x:x1 - x]
