"""Partition a target image into a grid of non-overlapping cells."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from tile_mosaic.errors import InvalidDimensionError


@dataclass(frozen=True)
class Cell:
    """A rectangle of the target image; ``x``/``y`` is its top-left pixel."""

    row: int
    col: int
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def slices(self, scale: int = 1) -> tuple[slice, slice]:
        """Numpy ``(rows, cols)`` slices of this cell, optionally scaled."""
        return (
            slice(self.y * scale, (self.y + self.height) * scale),
            slice(self.x * scale, (self.x + self.width) * scale),
        )


@dataclass(frozen=True)
class Grid:
    """Row-major cells covering a ``width`` x ``height`` canvas exactly."""

    width: int
    height: int
    cell_size: int
    rows: int
    cols: int
    cells: tuple[Cell, ...]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def cell_at(self, row: int, col: int) -> Cell:
        return self.cells[row * self.cols + col]


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def partition(width: int, height: int, cell_size: int) -> Grid:
    """Split a *width* x *height* area into *cell_size* squares.

    Cells are produced in row-major order. The last column and row are
    clipped to the remaining pixels when the dimensions are not multiples
    of *cell_size*, so the cells cover the area with no gap or overlap.

    Raises:
        InvalidDimensionError: any argument is not positive.
    """
    for name, value in (("width", width), ("height", height), ("cell_size", cell_size)):
        if value <= 0:
            msg = f"{name} must be positive, got {value}"
            raise InvalidDimensionError(msg)

    cols = _ceil_div(width, cell_size)
    rows = _ceil_div(height, cell_size)
    cells = tuple(
        Cell(
            row=r,
            col=c,
            x=c * cell_size,
            y=r * cell_size,
            width=min(cell_size, width - c * cell_size),
            height=min(cell_size, height - r * cell_size),
        )
        for r in range(rows)
        for c in range(cols)
    )
    return Grid(width, height, cell_size, rows, cols, cells)
