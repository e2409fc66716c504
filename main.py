#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

Put overlay images into ``library/`` and targets into ``images/``, then run:

    python main.py batch

Or collage one image:

    python -m collage_annealer.cli single my_photo.jpg library/
"""

from collage_annealer.cli import app

if __name__ == "__main__":
    app()
