"""Transform parameters that turn one library image into one collage layer.

A :class:`ParameterChain` holds one of each parameter in a fixed order:

    Index -> Scale -> Hue -> Transparency -> Angle -> Position

Applying the chain threads an :class:`ImageState` through every parameter.
``Index`` stages a library image, the next three reshape or recolour it,
``Angle`` stages a rotation and ``Position`` composites the result onto a
copy of the canvas. Optional parameters hold ``None`` when their feature is
switched off; they then leave the state alone and draw no random numbers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Protocol, Sequence

import numpy as np

from collage_annealer.color import Lab
from collage_annealer.errors import PreconditionViolation
from collage_annealer.pixel_grid import PixelGrid

TAU = 2.0 * math.pi

SCALE_RANGE = (0.5, 1.5)
MIN_SCALE = 0.05
SCALE_NOISE = 0.5

HUE_LIGHTNESS_RANGE = 25.0
HUE_CHROMA_RANGE = 50.0
HUE_NOISE = 20.0

ALPHA_FLOOR = 0.05
TRANSPARENCY_NOISE = 0.01

ANGLE_NOISE = 0.01


def uniform_noise(rng: np.random.Generator, amplitude: float) -> float:
    """Uniform value in ``[-amplitude, amplitude)``."""
    return (rng.random() * 2.0 - 1.0) * amplitude


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class LayerFeatures:
    """Which optional transforms the search may use."""

    scaling: bool = True
    rotation: bool = True
    hue: bool = True
    transparency: bool = True


@dataclass(frozen=True)
class ImageState:
    """Scratch state passed along the chain while building one layer."""

    canvas: PixelGrid
    library: Sequence[PixelGrid]
    overlay: PixelGrid | None = None
    angle: float | None = None


class Parameter(Protocol):
    def apply(self, state: ImageState) -> ImageState: ...

    def perturb(self, temperature: float, rng: np.random.Generator) -> Parameter: ...


@dataclass(frozen=True)
class IndexParameter:
    """Which library image the layer uses."""

    index: int
    count: int

    @classmethod
    def random(cls, count: int, rng: np.random.Generator) -> IndexParameter:
        if count <= 0:
            raise PreconditionViolation("overlay library is empty")
        return cls(int(rng.integers(0, count)), count)

    def apply(self, state: ImageState) -> ImageState:
        return replace(state, overlay=state.library[self.index].copy())

    def perturb(self, temperature: float, rng: np.random.Generator) -> IndexParameter:
        if rng.random() < temperature:
            return replace(self, index=int(rng.integers(0, self.count)))
        return self


@dataclass(frozen=True)
class ScaleParameter:
    """Per-axis size factor applied to the staged image."""

    scale: tuple[float, float] | None

    @classmethod
    def random(cls, enabled: bool, rng: np.random.Generator) -> ScaleParameter:
        if not enabled:
            return cls(None)
        low, high = SCALE_RANGE
        return cls((
            low + rng.random() * (high - low),
            low + rng.random() * (high - low),
        ))

    def apply(self, state: ImageState) -> ImageState:
        if self.scale is None or state.overlay is None:
            return state
        overlay = state.overlay
        size = (
            max(1, _round_half_away(overlay.width * self.scale[0])),
            max(1, _round_half_away(overlay.height * self.scale[1])),
        )
        return replace(state, overlay=overlay.resized_nearest(size))

    def perturb(self, temperature: float, rng: np.random.Generator) -> ScaleParameter:
        if self.scale is None:
            return self
        amplitude = temperature * SCALE_NOISE
        return ScaleParameter(tuple(
            max(MIN_SCALE, s + uniform_noise(rng, amplitude)) for s in self.scale
        ))


@dataclass(frozen=True)
class HueParameter:
    """Offset added to the Lab channels of the staged image."""

    offset: Lab | None

    @classmethod
    def random(cls, enabled: bool, rng: np.random.Generator) -> HueParameter:
        if not enabled:
            return cls(None)
        return cls(Lab(
            uniform_noise(rng, HUE_LIGHTNESS_RANGE),
            uniform_noise(rng, HUE_CHROMA_RANGE),
            uniform_noise(rng, HUE_CHROMA_RANGE),
        ))

    def apply(self, state: ImageState) -> ImageState:
        if self.offset is None or state.overlay is None:
            return state
        data = state.overlay.data.copy()
        data[..., :3] += np.asarray(self.offset, dtype=np.float32)
        return replace(state, overlay=PixelGrid(data))

    def perturb(self, temperature: float, rng: np.random.Generator) -> HueParameter:
        if self.offset is None:
            return self
        amplitude = temperature * HUE_NOISE
        return HueParameter(Lab(*(c + uniform_noise(rng, amplitude) for c in self.offset)))


@dataclass(frozen=True)
class TransparencyParameter:
    """Offset added to the alpha of the staged image's visible pixels."""

    offset: float | None

    @classmethod
    def random(cls, enabled: bool, rng: np.random.Generator) -> TransparencyParameter:
        if not enabled:
            return cls(None)
        return cls(uniform_noise(rng, 1.0))

    def apply(self, state: ImageState) -> ImageState:
        if self.offset is None or state.overlay is None:
            return state
        data = state.overlay.data.copy()
        alpha = data[..., 3]
        # Pixels at or below the floor stay as they are (cut-out backgrounds).
        visible = alpha > np.float32(ALPHA_FLOOR)
        alpha[visible] = np.clip(alpha[visible] + self.offset, ALPHA_FLOOR, 1.0)
        return replace(state, overlay=PixelGrid(data))

    def perturb(
        self, temperature: float, rng: np.random.Generator,
    ) -> TransparencyParameter:
        if self.offset is None:
            return self
        offset = self.offset + uniform_noise(rng, temperature * TRANSPARENCY_NOISE)
        return TransparencyParameter(min(max(offset, -1.0), 1.0))


@dataclass(frozen=True)
class AngleParameter:
    """Rotation in radians, staged for the final compositing step."""

    angle: float | None

    @classmethod
    def random(cls, enabled: bool, rng: np.random.Generator) -> AngleParameter:
        if not enabled:
            return cls(None)
        return cls(rng.random() * TAU)

    def apply(self, state: ImageState) -> ImageState:
        if self.angle is None:
            return state
        return replace(state, angle=self.angle)

    def perturb(self, temperature: float, rng: np.random.Generator) -> AngleParameter:
        if self.angle is None:
            return self
        return AngleParameter((self.angle + uniform_noise(rng, temperature * ANGLE_NOISE)) % TAU)


@dataclass(frozen=True)
class PositionParameter:
    """Top-left corner of the layer as a fraction of the canvas size."""

    position: tuple[float, float]

    @classmethod
    def random(cls, rng: np.random.Generator) -> PositionParameter:
        return cls((rng.random(), rng.random()))

    def pixel_offset(self, canvas: PixelGrid, overlay: PixelGrid) -> tuple[int, int]:
        """Pixel offset of the layer, kept so the layer starts inside the canvas."""
        nx, ny = self.position
        max_x = max(canvas.width - overlay.width, 0)
        max_y = max(canvas.height - overlay.height, 0)
        x = min(max(_round_half_away(nx * canvas.width), 0), max_x)
        y = min(max(_round_half_away(ny * canvas.height), 0), max_y)
        return x, y

    def apply(self, state: ImageState) -> ImageState:
        if state.overlay is None:
            return state
        offset = self.pixel_offset(state.canvas, state.overlay)
        canvas = state.canvas.copy()
        if state.angle is None:
            canvas.overlay(state.overlay, offset)
        else:
            canvas.overlay_rotated(state.overlay, offset, state.angle)
        return replace(state, canvas=canvas)

    def perturb(self, temperature: float, rng: np.random.Generator) -> PositionParameter:
        return PositionParameter(tuple(
            p + uniform_noise(rng, temperature) for p in self.position
        ))


@dataclass(frozen=True)
class ParameterChain:
    """All transform parameters of one candidate layer, in application order."""

    parameters: tuple[Parameter, ...]

    @classmethod
    def random(
        cls,
        library_size: int,
        features: LayerFeatures,
        rng: np.random.Generator,
    ) -> ParameterChain:
        return cls((
            IndexParameter.random(library_size, rng),
            ScaleParameter.random(features.scaling, rng),
            HueParameter.random(features.hue, rng),
            TransparencyParameter.random(features.transparency, rng),
            AngleParameter.random(features.rotation, rng),
            PositionParameter.random(rng),
        ))

    def apply(self, canvas: PixelGrid, library: Sequence[PixelGrid]) -> PixelGrid:
        """Composite the layer described by this chain onto a copy of *canvas*."""
        state = ImageState(canvas=canvas, library=library)
        for parameter in self.parameters:
            state = parameter.apply(state)
        return state.canvas

    def perturbed(self, temperature: float, rng: np.random.Generator) -> ParameterChain:
        return ParameterChain(tuple(
            parameter.perturb(temperature, rng) for parameter in self.parameters
        ))
