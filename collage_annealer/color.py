"""Perceptual colour model: CIELAB values, distance and alpha blending.

Pixels are stored as numpy arrays whose last axis holds the channels, so
every function here works equally on a single colour and on whole images.
A Lab pixel has three channels ``(l, a, b)``; a Laba pixel adds a fourth,
the alpha in ``[0, 1]``.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from skimage.color import lab2rgb, rgb2lab


class Lab(NamedTuple):
    l: float  # noqa: E741
    a: float
    b: float


class Laba(NamedTuple):
    l: float  # noqa: E741
    a: float
    b: float
    alpha: float


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert float RGB in ``[0, 1]`` (shape ``(..., 3)``) to float32 CIELAB."""
    rgb = np.asarray(rgb, dtype=np.float64)
    return rgb2lab(rgb.reshape(1, -1, 3)).reshape(rgb.shape).astype(np.float32)


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """Convert CIELAB (shape ``(..., 3)``) back to float32 RGB in ``[0, 1]``.

    Colours outside the sRGB gamut are clipped.
    """
    lab = np.asarray(lab, dtype=np.float64)
    rgb = lab2rgb(lab.reshape(1, -1, 3)).reshape(lab.shape)
    return np.clip(rgb, 0.0, 1.0).astype(np.float32)


def rgba_to_laba(rgba: np.ndarray) -> np.ndarray:
    """Convert float RGBA in ``[0, 1]`` to Laba, carrying alpha over unchanged."""
    rgba = np.asarray(rgba, dtype=np.float32)
    lab = rgb_to_lab(rgba[..., :3])
    return np.concatenate([lab, rgba[..., 3:4]], axis=-1)


def distance(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Euclidean distance between Lab colours along the last axis."""
    d = np.asarray(x, dtype=np.float32) - np.asarray(y, dtype=np.float32)
    return np.sqrt(np.sum(d * d, axis=-1))


def no_alpha(pixels: np.ndarray) -> np.ndarray:
    """Drop the alpha channel of Laba pixels."""
    return np.asarray(pixels)[..., :3]


def blend(base: np.ndarray, top: np.ndarray) -> np.ndarray:
    """Composite *top* over *base* (Porter-Duff "over") directly in Lab space.

    Args:
        base: ``(..., 4)`` Laba pixels underneath.
        top:  ``(..., 4)`` Laba pixels drawn on top, broadcastable to *base*.

    Returns:
        ``(..., 4)`` float32 Laba. Fully transparent results get zero channels.
    """
    base = np.asarray(base, dtype=np.float32)
    top = np.asarray(top, dtype=np.float32)

    top_alpha = top[..., 3:4]
    base_alpha = base[..., 3:4]
    under = base_alpha * (1.0 - top_alpha)
    out_alpha = top_alpha + under

    weighted = top[..., :3] * top_alpha + base[..., :3] * under
    channels = np.divide(
        weighted, out_alpha,
        out=np.zeros_like(weighted), where=out_alpha > 0.0,
    )
    return np.concatenate([channels, out_alpha], axis=-1)


def random_color(rng: np.random.Generator) -> Lab:
    """Uniformly random sRGB colour, expressed in Lab."""
    l, a, b = rgb_to_lab(rng.random(3))  # noqa: E741
    return Lab(float(l), float(a), float(b))
