#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

    python main.py mosaic photo.jpg tiles/ -o mosaic.jpg

Or use the full CLI:

    python -m tile_mosaic.cli mosaic --help
    python -m tile_mosaic.cli pile tiles/ > pile.jpg
"""

from tile_mosaic.cli import app

if __name__ == "__main__":
    app()
