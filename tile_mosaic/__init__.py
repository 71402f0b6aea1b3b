"""
Tile Mosaic
===========

Rebuild a target image out of a library of tile images. The target is cut
into a grid of cells; each cell is replaced by the tile whose signature
(a small thumbnail of its colours) is nearest.

- **Library**: tiles decoded in parallel, signatures indexed in a KD tree
- **Grid**: row-major cells, edge cells clipped to the image
- **Compositor**: tiles resampled to each cell and written in place
"""

__version__ = "0.3.0"

from tile_mosaic.compositor import composite, new_canvas, resample_tile
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import (
    DecodeError,
    EmptyLibraryError,
    InvalidDimensionError,
    IoError,
    MosaicError,
)
from tile_mosaic.grid import Cell, Grid, partition
from tile_mosaic.image_io import decode, encode, list_files
from tile_mosaic.library import TileLibrary, TileRecord, build_library
from tile_mosaic.matcher import MatchResult, match, match_with_repeat_penalty
from tile_mosaic.pipeline import build_mosaic, generate_mosaic, make_pile, make_tile

__all__ = [
    "Cell",
    "DecodeError",
    "EmptyLibraryError",
    "Grid",
    "InvalidDimensionError",
    "IoError",
    "MatchResult",
    "MosaicConfig",
    "MosaicError",
    "TileLibrary",
    "TileRecord",
    "build_library",
    "build_mosaic",
    "composite",
    "decode",
    "encode",
    "generate_mosaic",
    "list_files",
    "make_pile",
    "make_tile",
    "match",
    "match_with_repeat_penalty",
    "new_canvas",
    "partition",
    "resample_tile",
]
