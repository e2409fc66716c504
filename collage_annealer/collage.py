"""Collage driver: a flat background followed by annealed library layers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from collage_annealer.annealing import Annealer, StateEnergy
from collage_annealer.candidates import (
    BackgroundCandidate,
    LayerCandidate,
    image_difference,
)
from collage_annealer.color import lab_to_rgb, no_alpha, rgb_to_lab, rgba_to_laba
from collage_annealer.config import CollageConfig
from collage_annealer.errors import PreconditionViolation
from collage_annealer.image_io import save_debug_snapshot
from collage_annealer.pixel_grid import PixelGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CollageResult:
    """Output of one collage run.

    Attributes:
        image:  (H, W, 3) float32 RGB in [0, 1].
        canvas: Final Laba canvas.
        error:  Mean perceptual distance per pixel to the target.
    """

    image: np.ndarray
    canvas: PixelGrid
    error: float


class Collager:
    """Approximates a target image with a background colour and library layers.

    Args:
        config: Search settings.
        target: (H, W, 3) float RGB in [0, 1].
        rng:    Random source; built from ``config.seed`` when omitted.
    """

    def __init__(
        self,
        config: CollageConfig,
        target: np.ndarray,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config
        self.target = rgb_to_lab(target)
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

    @property
    def pixel_count(self) -> int:
        return self.target.shape[0] * self.target.shape[1]

    def collage(self, images: Sequence[np.ndarray]) -> CollageResult:
        """Build the collage from RGBA library images ((H, W, 4) floats in [0, 1]).

        Raises:
            PreconditionViolation: if the library is empty, ``starts`` is below
                one or ``steps`` is zero.
        """
        cfg = self.config
        if not images:
            raise PreconditionViolation("overlay library is empty")
        if cfg.starts < 1:
            raise PreconditionViolation("at least one annealing start is required")
        if cfg.steps < 1:
            raise PreconditionViolation("annealing needs at least one step")

        library = [PixelGrid(rgba_to_laba(img)) for img in images]
        height, width = self.target.shape[:2]
        logger.info(
            "Collage   | %dx%d  library=%d  layers=%d  steps=%d  starts=%d",
            width, height, len(library), cfg.amount, cfg.steps, cfg.starts,
        )

        t0 = time.perf_counter()
        canvas = self._background()

        interval = max(1, cfg.amount // 10)
        for i in range(cfg.amount):
            if i % interval == 0:
                logger.info("progress: %.1f%%", i / cfg.amount * 100)

            best = self._layer(canvas, library)
            canvas = best.state.applied()
            logger.debug("layer %d  energy=%.3f", i, best.energy)

            if cfg.debug_snapshots:
                save_debug_snapshot(
                    lab_to_rgb(no_alpha(canvas.data)), i, cfg.debug_dir,
                )

        error = image_difference(self.target, canvas) / self.pixel_count
        logger.info(
            "final error: %.3f  (%.1f s)", error, time.perf_counter() - t0,
        )
        return CollageResult(
            image=lab_to_rgb(no_alpha(canvas.data)),
            canvas=canvas,
            error=error,
        )

    def _background(self) -> PixelGrid:
        start = BackgroundCandidate.random(self.target, self.rng)
        annealer = Annealer(start, self.config.background_temperature, self.rng)
        best = annealer.anneal(self.config.steps)
        logger.debug("background %s  energy=%.3f", best.state.color, best.energy)
        return best.state.applied()

    def _layer(
        self, canvas: PixelGrid, library: Sequence[PixelGrid],
    ) -> StateEnergy[LayerCandidate]:
        cfg = self.config
        runs = []
        for _ in range(cfg.starts):
            start = LayerCandidate.random(
                self.target, canvas, library, cfg.features, self.rng,
            )
            annealer = Annealer(start, cfg.starting_temperature, self.rng)
            runs.append(annealer.anneal(cfg.steps))
        return min(runs, key=lambda run: run.energy)
