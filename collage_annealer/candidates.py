"""Annealable candidates: the flat background colour and one transformed layer."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Sequence

import numpy as np

from collage_annealer.color import Lab, Laba, distance, no_alpha, random_color
from collage_annealer.parameters import LayerFeatures, ParameterChain, uniform_noise
from collage_annealer.pixel_grid import PixelGrid

LIGHTNESS_BOUNDS = (0.0, 100.0)
CHROMA_BOUNDS = (-128.0, 127.0)


def image_difference(target: np.ndarray, canvas: PixelGrid) -> float:
    """Summed perceptual distance between a Lab target and a Laba canvas."""
    return float(np.sum(distance(target, no_alpha(canvas.data)), dtype=np.float64))


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    return min(max(value, bounds[0]), bounds[1])


@dataclass(frozen=True, eq=False)
class BackgroundCandidate:
    """A single flat colour covering the whole canvas."""

    target: np.ndarray
    color: Lab

    @classmethod
    def random(cls, target: np.ndarray, rng: np.random.Generator) -> BackgroundCandidate:
        return cls(target, random_color(rng))

    def applied(self) -> PixelGrid:
        height, width = self.target.shape[:2]
        return PixelGrid.filled(width, height, Laba(*self.color, alpha=1.0))

    @cached_property
    def _energy(self) -> float:
        flat = np.asarray(self.color, dtype=np.float32)
        return float(np.sum(distance(self.target, flat), dtype=np.float64))

    def energy(self) -> float:
        return self._energy

    def random_neighbor(
        self, temperature: float, rng: np.random.Generator,
    ) -> BackgroundCandidate:
        l, a, b = (c + uniform_noise(rng, temperature) for c in self.color)  # noqa: E741
        color = Lab(
            _clamp(l, LIGHTNESS_BOUNDS),
            _clamp(a, CHROMA_BOUNDS),
            _clamp(b, CHROMA_BOUNDS),
        )
        return BackgroundCandidate(self.target, color)


@dataclass(frozen=True, eq=False)
class LayerCandidate:
    """One library image, transformed by a parameter chain, over the canvas."""

    target: np.ndarray
    canvas: PixelGrid
    library: Sequence[PixelGrid]
    chain: ParameterChain

    @classmethod
    def random(
        cls,
        target: np.ndarray,
        canvas: PixelGrid,
        library: Sequence[PixelGrid],
        features: LayerFeatures,
        rng: np.random.Generator,
    ) -> LayerCandidate:
        chain = ParameterChain.random(len(library), features, rng)
        return cls(target, canvas, library, chain)

    def applied(self) -> PixelGrid:
        return self.chain.apply(self.canvas, self.library)

    @cached_property
    def _energy(self) -> float:
        return image_difference(self.target, self.applied())

    def energy(self) -> float:
        return self._energy

    def random_neighbor(
        self, temperature: float, rng: np.random.Generator,
    ) -> LayerCandidate:
        chain = self.chain.perturbed(temperature, rng)
        return LayerCandidate(self.target, self.canvas, self.library, chain)
