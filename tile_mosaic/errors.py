"""Error kinds raised by the mosaic core."""

from __future__ import annotations

from pathlib import Path


class MosaicError(Exception):
    """Base class for every error the mosaic core raises."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message}: {self.path}"
        super().__init__(message)


class IoError(MosaicError, OSError):
    """A path could not be read (missing file or directory, no permission)."""


class DecodeError(MosaicError, ValueError):
    """A file is not a supported or well-formed image."""


class EmptyLibraryError(MosaicError):
    """No usable tiles remained after scanning the tile directory."""


class InvalidDimensionError(MosaicError, ValueError):
    """A width, height or size that must be positive was not."""
