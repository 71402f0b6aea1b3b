"""Colour-space conversion, image signatures and distance computation."""

from __future__ import annotations

import numpy as np
from PIL import Image
from skimage.color import rgb2lab

from tile_mosaic.errors import InvalidDimensionError


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert flat (N, 3) 0-255 RGB → (N, 3) float64 CIELAB."""
    return rgb2lab(rgb.astype(np.float64).reshape(1, -1, 3) / 255.0).reshape(-1, 3)


def compute_signature(
    image: np.ndarray,
    size: int = 5,
    color_space: str = "rgb",
) -> np.ndarray:
    """Reduce an image to a fixed-length descriptor.

    The image is box-resampled to a *size* x *size* thumbnail (an area
    average, so ``size=1`` yields the mean colour) and flattened.

    Args:
        image: (H, W, 3) uint8 RGB.
        size: Thumbnail side; the signature has ``size * size * 3`` entries.
        color_space: ``"rgb"`` or ``"lab"``.

    Returns:
        (size * size * 3,) float64 vector.
    """
    if size <= 0:
        msg = f"Signature size must be positive, got {size}"
        raise InvalidDimensionError(msg)
    h, w = image.shape[:2]
    if h == 0 or w == 0:
        msg = f"Cannot compute a signature of a {w}x{h} image"
        raise InvalidDimensionError(msg)

    if size == 1:
        # Exact mean rather than Pillow's rounded box filter.
        colors = image.reshape(-1, 3).astype(np.float64).mean(axis=0, keepdims=True)
    else:
        thumb = Image.fromarray(image).resize((size, size), Image.BOX)
        colors = np.asarray(thumb, dtype=np.float64).reshape(-1, 3)

    if color_space == "lab":
        colors = rgb_to_lab(colors)
    return colors.reshape(-1)


def squared_distances(
    signatures: np.ndarray,
    query: np.ndarray,
    chunk_size: int = 4096,
) -> np.ndarray:
    """Squared Euclidean distance from *query* to every row of *signatures*.

    Args:
        signatures: (N, D) float64.
        query: (D,) float64.
        chunk_size: Rows computed per batch (controls peak RAM).

    Returns:
        (N,) float64.
    """
    n = len(signatures)
    out = np.empty(n, dtype=np.float64)
    for i in range(0, n, chunk_size):
        j = min(i + chunk_size, n)
        diff = signatures[i:j] - query[np.newaxis, :]
        out[i:j] = np.einsum("ij,ij->i", diff, diff)
    return out
