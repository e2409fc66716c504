"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from collage_annealer.parameters import LayerFeatures


@dataclass(frozen=True)
class CollageConfig:
    """All tuneable parameters for a collage run.

    Attributes:
        steps:                 Annealing steps per run (background and each layer restart).
        amount:                Number of library layers placed on top of the background.
        starts:                Independent annealing restarts per layer; the best one wins.
        starting_temperature:  Initial temperature of every layer search.
        background_temperature: Initial temperature of the background colour search.
        enable_scaling:        Let layers be resized.
        enable_rotation:       Let layers be rotated.
        enable_hue:            Let layers have their Lab channels shifted.
        enable_transparency:   Let layers have their alpha shifted.
        debug_snapshots:       Save the canvas after every layer to ``debug_dir``.
        debug_dir:             Folder for debug snapshots (created on demand).
        max_side:              Longest side of the downscaled target (None = keep size).
        seed:                  Random seed (None = non-deterministic).
        pixel_upscale:         Each collage pixel becomes n x n in the saved image.
        output_format:         Image format for saved files.
        save_comparison:       Generate a side-by-side comparison grid.
        input_dir:             Folder of target images for batch runs.
        library_dir:           Folder of overlay images.
        output_dir:            Folder for batch results.
    """

    # Search
    steps: int = 200
    amount: int = 40
    starts: int = 3
    starting_temperature: float = 1.0
    background_temperature: float = 100.0

    # Layer transforms
    enable_scaling: bool = True
    enable_rotation: bool = True
    enable_hue: bool = True
    enable_transparency: bool = True

    # Debugging
    debug_snapshots: bool = False
    debug_dir: Path = field(default_factory=lambda: Path("debug"))

    # Image scaling
    max_side: int | None = 128
    seed: int | None = None

    # Output
    pixel_upscale: int = 1
    output_format: str = "png"
    save_comparison: bool = False

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    library_dir: Path = field(default_factory=lambda: Path("library"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )

    @property
    def features(self) -> LayerFeatures:
        return LayerFeatures(
            scaling=self.enable_scaling,
            rotation=self.enable_rotation,
            hue=self.enable_hue,
            transparency=self.enable_transparency,
        )
