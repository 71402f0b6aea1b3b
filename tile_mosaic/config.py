"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass

from tile_mosaic.errors import InvalidDimensionError
from tile_mosaic.image_io import image_format

COLOR_SPACES = ("rgb", "lab")
MATCHERS = ("kdtree", "brute")
RESAMPLERS = ("bilinear", "nearest")


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        cell_size:      Side of a grid cell on the target, in pixels.
        signature_size: Tiles and cells are reduced to an n x n thumbnail
                        whose pixels form the signature (1 = average colour).
        tile_size:      Side of the prepared square copy kept per tile.
        crop_square:    Crop each tile to its centred square before resizing.
        color_space:    Signature colour space - "rgb" or "lab".
        matcher:        Signature index - "kdtree" or "brute".
        resample:       Tile resampling - "bilinear" or "nearest".
        output_scale:   Each target pixel becomes n x n in the output.
        workers:        Worker pool size (None = one per CPU).
        repeat_penalty: Penalise tiles already used by nearby cells.
        repeat_radius:  Grid distance (in cells) the penalty reaches.
        output_format:  Pillow format name or extension used when encoding.
    """

    # Grid
    cell_size: int = 20

    # Signatures
    signature_size: int = 5
    color_space: str = "rgb"
    matcher: str = "kdtree"

    # Tile preparation
    tile_size: int = 100
    crop_square: bool = True

    # Composition
    resample: str = "bilinear"
    output_scale: int = 1

    # Scheduling
    workers: int | None = None

    # Optional no-repeat policy
    repeat_penalty: bool = False
    repeat_radius: int = 3

    # Output
    output_format: str = "jpeg"

    def __post_init__(self) -> None:
        for name in ("cell_size", "signature_size", "tile_size",
                     "output_scale", "repeat_radius"):
            value = getattr(self, name)
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise InvalidDimensionError(msg)
        if self.workers is not None and self.workers <= 0:
            msg = f"workers must be positive, got {self.workers}"
            raise ValueError(msg)
        _check_choice("color_space", self.color_space, COLOR_SPACES)
        _check_choice("matcher", self.matcher, MATCHERS)
        _check_choice("resample", self.resample, RESAMPLERS)
        image_format(self.output_format)


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        available = ", ".join(choices)
        msg = f"Unknown {name} '{value}'. Available: {available}"
        raise ValueError(msg)
