"""Nearest-signature lookup structures.

Both indexes answer the same question (which row of the signature matrix is
closest to a query, by squared Euclidean distance) and break ties toward
the lowest row index, so they are interchangeable.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.spatial import cKDTree

from tile_mosaic.color_utils import squared_distances


class BruteForceIndex:
    """Linear scan over all signatures, chunked with numpy."""

    def __init__(self, signatures: np.ndarray) -> None:
        self.signatures = signatures

    def nearest(self, query: np.ndarray) -> tuple[int, float]:
        dist = squared_distances(self.signatures, query)
        best = int(np.argmin(dist))  # first occurrence = lowest index
        return best, float(dist[best])


class KDTreeIndex:
    """Spatial index over a low-dimensional key of each signature.

    A signature is ``P`` RGB (or CIELAB) samples; its key is the mean
    sample scaled by ``sqrt(P)``. By Cauchy-Schwarz the key distance never
    exceeds the full signature distance, so a ``cKDTree`` over the 3-D keys
    prunes exactly:

    1. the *k* nearest keys give an upper bound on the best full distance;
    2. a ball query at that bound in key space returns every tile that
       could still beat or tie it;
    3. those candidates are reranked on the full signature, lowest index
       first among equals.
    """

    def __init__(self, signatures: np.ndarray, k: int = 8, leafsize: int = 16) -> None:
        if signatures.shape[1] % 3:
            msg = f"Signature length {signatures.shape[1]} is not a multiple of 3"
            raise ValueError(msg)
        self.signatures = signatures
        self.k = min(k, len(signatures))
        self._scale = math.sqrt(signatures.shape[1] // 3)
        self.tree = cKDTree(self._keys(signatures), leafsize=leafsize)

    def _keys(self, signatures: np.ndarray) -> np.ndarray:
        return signatures.reshape(len(signatures), -1, 3).mean(axis=1) * self._scale

    def candidates(self, query: np.ndarray) -> np.ndarray:
        """Sorted indices of every tile that may be nearest to *query*."""
        key = self._keys(query[np.newaxis, :])[0]
        _, near = self.tree.query(key, k=self.k)
        near = np.atleast_1d(near)
        bound = float(squared_distances(self.signatures[near], query).min())
        radius = math.sqrt(bound) * (1.0 + 1e-9) + 1e-9
        return np.sort(np.asarray(self.tree.query_ball_point(key, radius), dtype=np.intp))

    def nearest(self, query: np.ndarray) -> tuple[int, float]:
        candidates = self.candidates(query)
        exact = squared_distances(self.signatures[candidates], query)
        best = int(np.argmin(exact))  # candidates are sorted, so lowest index wins
        return int(candidates[best]), float(exact[best])


def build_index(signatures: np.ndarray, kind: str = "kdtree") -> KDTreeIndex | BruteForceIndex:
    """Build the signature index named by *kind* (``"kdtree"`` or ``"brute"``)."""
    if kind == "kdtree":
        return KDTreeIndex(signatures)
    if kind == "brute":
        return BruteForceIndex(signatures)
    msg = f"Unknown matcher '{kind}'. Available: brute, kdtree"
    raise ValueError(msg)
