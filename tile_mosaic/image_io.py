"""Image loading, saving, directory listing and tile preparation.

This module is the only place that talks to Pillow's codecs or the
filesystem.  Everything else works on ``(H, W, 3)`` uint8 arrays.
"""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from tile_mosaic.errors import DecodeError, InvalidDimensionError, IoError

RESAMPLE_FILTERS = {
    "nearest": Image.NEAREST,
    "bilinear": Image.BILINEAR,
    "box": Image.BOX,
    "lanczos": Image.LANCZOS,
}


def decode(path: str | Path) -> np.ndarray:
    """Load an image file as an (H, W, 3) uint8 RGB array.

    Raises:
        IoError: the file does not exist or cannot be read.
        DecodeError: the file is not an image Pillow understands.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            arr = np.array(img.convert("RGB"), dtype=np.uint8)
    except FileNotFoundError as exc:
        raise IoError("Image not found", path) from exc
    except (PermissionError, IsADirectoryError) as exc:
        raise IoError("Image not readable", path) from exc
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image ({exc})", path) from exc
    if arr.size == 0:
        raise DecodeError("Image has no pixels", path)
    return arr


def image_format(fmt: str) -> str:
    """Pillow's name for an output format (``"jpg"`` → ``"JPEG"``).

    Accepts a format name or a file extension, with or without the dot.

    Raises:
        ValueError: Pillow cannot write the format.
    """
    extensions = Image.registered_extensions()
    name = extensions.get("." + fmt.lower().lstrip("."), fmt.upper())
    if name not in Image.SAVE:
        available = ", ".join(sorted(Image.SAVE))
        msg = f"Unknown output format '{fmt}'. Available: {available}"
        raise ValueError(msg)
    return name


def encode(array: np.ndarray, fmt: str = "jpeg") -> bytes:
    """Encode an (H, W, 3) uint8 array into the given Pillow format."""
    buf = io.BytesIO()
    Image.fromarray(array.astype(np.uint8)).save(buf, format=image_format(fmt))
    return buf.getvalue()


def save(array: np.ndarray, path: str | Path, fmt: str | None = None) -> None:
    """Write *array* to *path*; the format defaults to the file suffix."""
    try:
        Image.fromarray(array.astype(np.uint8)).save(
            path, format=image_format(fmt) if fmt else None,
        )
    except OSError as exc:
        raise IoError(f"Cannot write image ({exc})", path) from exc


def list_files(path: str | Path) -> list[Path]:
    """Regular files directly inside *path*, sorted by name.

    Raises:
        IoError: *path* is missing, not a directory, or unreadable.
    """
    folder = Path(path)
    if not folder.is_dir():
        raise IoError("Tile directory not found", folder)
    try:
        return sorted(f for f in folder.iterdir() if f.is_file())
    except OSError as exc:
        raise IoError(f"Cannot list directory ({exc})", folder) from exc


class FileSystemSource:
    """Reads tile images from disk.

    Library construction only needs ``list_files`` and ``decode``; tests swap
    in an in-memory object with the same two methods.
    """

    def list_files(self, path: str | Path) -> list[Path]:
        return list_files(path)

    def decode(self, path: str | Path) -> np.ndarray:
        return decode(path)


# -- Geometry helpers --------------------------------------------------


def choose_tile_area(width: int, height: int) -> tuple[int, int, int]:
    """Return ``(x, y, side)`` of the centred square inside a w x h image."""
    if width < height:
        return 0, (height - width) // 2, width
    return (width - height) // 2, 0, height


def resize(array: np.ndarray, width: int, height: int, resample: str = "bilinear") -> np.ndarray:
    """Resample an (H, W, 3) array to exactly *width* x *height*."""
    if width <= 0 or height <= 0:
        msg = f"Cannot resize to {width}x{height}"
        raise InvalidDimensionError(msg)
    h, w = array.shape[:2]
    if (w, h) == (width, height):
        return array
    img = Image.fromarray(array).resize((width, height), RESAMPLE_FILTERS[resample])
    return np.asarray(img, dtype=np.uint8)


def build_tile(array: np.ndarray, size: int, resample: str = "bilinear") -> np.ndarray:
    """Crop the centred square of *array* and resize it to *size* x *size*."""
    h, w = array.shape[:2]
    x, y, side = choose_tile_area(w, h)
    square = array[y:y + side, x:x + side]
    return resize(square, size, size, resample)
