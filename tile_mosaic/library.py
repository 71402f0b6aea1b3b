"""Tile library: decoded tiles, their signatures and a lookup index."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from tile_mosaic.color_utils import compute_signature, squared_distances
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import DecodeError, EmptyLibraryError
from tile_mosaic.image_io import FileSystemSource, build_tile
from tile_mosaic.index import BruteForceIndex, KDTreeIndex, build_index

logger = logging.getLogger(__name__)


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class TileRecord:
    """One usable tile: where it came from, its pixels and its signature."""

    index: int
    path: Path | None
    pixels: np.ndarray
    signature: np.ndarray

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass(frozen=True, eq=False)
class TileLibrary:
    """Ordered, immutable collection of tiles.

    Tiles keep their insertion order; ``index`` of each record equals its
    position. The signature index is built once, here, so that every
    worker shares it read-only.
    """

    tiles: tuple[TileRecord, ...]
    signature_size: int = 5
    color_space: str = "rgb"
    matcher: str = "kdtree"
    signatures: np.ndarray = field(init=False, repr=False)
    index: KDTreeIndex | BruteForceIndex = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.tiles:
            msg = "Tile library is empty"
            raise EmptyLibraryError(msg)
        for i, tile in enumerate(self.tiles):
            if tile.index != i:
                msg = f"Tile at position {i} carries index {tile.index}"
                raise ValueError(msg)
        signatures = _frozen(np.stack([t.signature for t in self.tiles]).astype(np.float64))
        object.__setattr__(self, "signatures", signatures)
        object.__setattr__(self, "index", build_index(signatures, self.matcher))

    @classmethod
    def from_images(
        cls,
        images: Iterable[np.ndarray],
        paths: Sequence[Path | None] | None = None,
        signature_size: int = 5,
        color_space: str = "rgb",
        matcher: str = "kdtree",
    ) -> TileLibrary:
        """Build a library from already prepared pixel arrays."""
        images = list(images)
        if paths is None:
            paths = [None] * len(images)
        tiles = tuple(
            TileRecord(
                index=i,
                path=Path(p) if p is not None else None,
                pixels=_frozen(img),
                signature=_frozen(compute_signature(img, signature_size, color_space)),
            )
            for i, (img, p) in enumerate(zip(images, paths, strict=True))
        )
        return cls(tiles, signature_size, color_space, matcher)

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[TileRecord]:
        return iter(self.tiles)

    def __getitem__(self, i: int) -> TileRecord:
        return self.tiles[i]

    def signature_of(self, image: np.ndarray) -> np.ndarray:
        """Signature of *image* computed the same way as the tiles'."""
        return compute_signature(image, self.signature_size, self.color_space)

    def nearest(self, signature: np.ndarray) -> TileRecord:
        """The tile closest to *signature* (lowest index wins ties)."""
        best, _ = self.index.nearest(self._check(signature))
        return self.tiles[best]

    def nearest_with_distance(self, signature: np.ndarray) -> tuple[TileRecord, float]:
        best, dist = self.index.nearest(self._check(signature))
        return self.tiles[best], dist

    def distances(self, signature: np.ndarray) -> np.ndarray:
        """Squared distance from *signature* to every tile, in library order."""
        return squared_distances(self.signatures, self._check(signature))

    def _check(self, signature: np.ndarray) -> np.ndarray:
        signature = np.asarray(signature, dtype=np.float64).reshape(-1)
        if signature.shape[0] != self.signatures.shape[1]:
            msg = (
                f"Signature has {signature.shape[0]} components, "
                f"library signatures have {self.signatures.shape[1]}"
            )
            raise ValueError(msg)
        return signature


# -- Construction from a directory ---------------------------------------


def _load_tile(
    source: FileSystemSource,
    path: Path,
    cfg: MosaicConfig,
) -> tuple[np.ndarray, np.ndarray] | None:
    """Decode and prepare one tile; ``None`` if it cannot be decoded."""
    try:
        image = source.decode(path)
    except DecodeError as exc:
        logger.warning("Skipping tile %s: %s", path, exc)
        return None
    if cfg.crop_square:
        image = build_tile(image, cfg.tile_size, cfg.resample)
    signature = compute_signature(image, cfg.signature_size, cfg.color_space)
    return image, signature


def build_library(
    source_directory: str | Path,
    cfg: MosaicConfig | None = None,
    source: FileSystemSource | None = None,
) -> TileLibrary:
    """Decode every image in *source_directory* into a :class:`TileLibrary`.

    Every file is offered to the decoder; those that fail to decode are
    logged and dropped. Decoding runs on a
    thread pool; results are merged in directory order before the library
    is built, so repeated builds are identical.

    Raises:
        IoError: the directory cannot be listed.
        EmptyLibraryError: no file produced a usable tile.
    """
    cfg = cfg or MosaicConfig()
    source = source or FileSystemSource()

    paths = source.list_files(source_directory)
    logger.info("Analysing %d candidate tiles in %s …", len(paths), source_directory)
    t0 = time.perf_counter()

    workers = cfg.workers or os.cpu_count() or 1
    with ThreadPoolExecutor(max_workers=workers) as pool:
        loaded = list(pool.map(lambda p: _load_tile(source, Path(p), cfg), paths))

    tiles: list[TileRecord] = []
    for path, result in zip(paths, loaded, strict=True):
        if result is None:
            continue
        pixels, signature = result
        tiles.append(TileRecord(len(tiles), Path(path), _frozen(pixels), _frozen(signature)))

    skipped = len(paths) - len(tiles)
    if not tiles:
        raise EmptyLibraryError("No usable tiles found", source_directory)

    library = TileLibrary(tuple(tiles), cfg.signature_size, cfg.color_space, cfg.matcher)
    logger.info(
        "Library ready: %d tiles, %d skipped  (%.1f s)",
        len(library), skipped, time.perf_counter() - t0,
    )
    return library
