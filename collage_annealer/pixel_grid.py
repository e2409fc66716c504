"""Two-dimensional pixel buffer with nearest-neighbour resizing and compositing."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from collage_annealer.color import blend
from collage_annealer.errors import PreconditionViolation


class PixelGrid:
    """Row-major image of ``width * height`` pixels with ``channels`` floats each.

    The pixels live in ``data`` with shape ``(height, width, channels)``.
    Positions are ``(x, y)`` tuples; x grows to the right, y downwards.
    Compositing methods expect Laba pixels (four channels).
    """

    __slots__ = ("data",)

    def __init__(self, data: np.ndarray) -> None:
        data = np.asarray(data, dtype=np.float32)
        if data.ndim != 3 or data.shape[0] == 0 or data.shape[1] == 0:
            raise PreconditionViolation(
                f"pixel grid needs a non-empty (h, w, c) array, got {data.shape}"
            )
        self.data = data

    @classmethod
    def from_raw(
        cls, data: Sequence[Sequence[float]] | np.ndarray, width: int, height: int,
    ) -> PixelGrid:
        """Build a grid from a flat row-major sequence of pixels.

        Raises:
            PreconditionViolation: if ``len(data) != width * height``.
        """
        pixels = np.asarray(data, dtype=np.float32)
        if pixels.ndim == 1:
            pixels = pixels[:, np.newaxis]
        if width <= 0 or height <= 0 or len(pixels) != width * height:
            raise PreconditionViolation(
                f"{len(pixels)} pixels cannot fill a {width}x{height} grid"
            )
        return cls(pixels.reshape(height, width, -1))

    @classmethod
    def filled(cls, width: int, height: int, pixel: Sequence[float]) -> PixelGrid:
        pixel = np.asarray(pixel, dtype=np.float32)
        return cls(np.broadcast_to(pixel, (height, width, len(pixel))).copy())

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def copy(self) -> PixelGrid:
        return PixelGrid(self.data.copy())

    def _contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, position: tuple[int, int]) -> np.ndarray | None:
        """Copy of the pixel at *position*, or ``None`` outside the grid."""
        x, y = position
        if not self._contains(x, y):
            return None
        return self.data[y, x].copy()

    def put(self, position: tuple[int, int], pixel: Sequence[float]) -> bool:
        """Overwrite the pixel at *position*; returns ``False`` outside the grid."""
        x, y = position
        if not self._contains(x, y):
            return False
        self.data[y, x] = pixel
        return True

    def resized_nearest(self, size: tuple[int, int]) -> PixelGrid:
        """Nearest-neighbour resize to exactly ``size = (width, height)``.

        Source pixels may be duplicated or skipped; nothing is antialiased.
        """
        new_w, new_h = size
        if new_w <= 0 or new_h <= 0:
            raise PreconditionViolation(f"cannot resize to {new_w}x{new_h}")

        scale_x = self.width / new_w
        scale_y = self.height / new_h
        xs = np.clip((np.arange(new_w) * scale_x).astype(np.int64), 0, self.width - 1)
        ys = np.clip((np.arange(new_h) * scale_y).astype(np.int64), 0, self.height - 1)
        return PixelGrid(self.data[ys[:, np.newaxis], xs[np.newaxis, :]])

    def overlay(self, other: PixelGrid, position: tuple[int, int]) -> None:
        """Alpha-blend *other* onto this grid with its top-left at *position*.

        Pixels landing outside this grid are dropped.
        """
        x, y = position
        x0, y0 = max(x, 0), max(y, 0)
        x1 = min(x + other.width, self.width)
        y1 = min(y + other.height, self.height)
        if x0 >= x1 or y0 >= y1:
            return

        src = other.data[y0 - y:y1 - y, x0 - x:x1 - x]
        dst = self.data[y0:y1, x0:x1]
        self.data[y0:y1, x0:x1] = blend(dst, src)

    def overlay_rotated(
        self, other: PixelGrid, position: tuple[int, int], angle: float,
    ) -> None:
        """Alpha-blend *other* rotated by *angle* radians about its own centre.

        The unrotated placement rectangle has its top-left at *position*.
        Every destination pixel inside the rotated bounding box is mapped back
        into *other* by the inverse rotation, pixel centre to pixel centre, and
        rounded to the nearest source pixel, so each destination gets at most
        one sample. Positive angles turn counter-clockwise in mathematical
        axes, which looks clockwise with y pointing down.
        """
        half_w = other.width / 2.0
        half_h = other.height / 2.0
        pivot_x = position[0] + half_w
        pivot_y = position[1] + half_h
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)

        corners = np.array(
            [(-half_w, -half_h), (half_w, -half_h), (half_w, half_h), (-half_w, half_h)]
        )
        rot_x = corners[:, 0] * cos_a - corners[:, 1] * sin_a + pivot_x
        rot_y = corners[:, 0] * sin_a + corners[:, 1] * cos_a + pivot_y

        x0 = max(math.floor(rot_x.min()), 0)
        y0 = max(math.floor(rot_y.min()), 0)
        x1 = min(math.ceil(rot_x.max()), self.width - 1)
        y1 = min(math.ceil(rot_y.max()), self.height - 1)
        if x0 > x1 or y0 > y1:
            return

        ys, xs = np.mgrid[y0:y1 + 1, x0:x1 + 1]
        dx = xs + 0.5 - pivot_x
        dy = ys + 0.5 - pivot_y
        local_x = np.floor(dx * cos_a + dy * sin_a + half_w).astype(np.int64)
        local_y = np.floor(-dx * sin_a + dy * cos_a + half_h).astype(np.int64)

        inside = (
            (local_x >= 0) & (local_x < other.width)
            & (local_y >= 0) & (local_y < other.height)
        )
        if not inside.any():
            return

        dst_x = xs[inside]
        dst_y = ys[inside]
        samples = other.data[local_y[inside], local_x[inside]]
        self.data[dst_y, dst_x] = blend(self.data[dst_y, dst_x], samples)

    def __repr__(self) -> str:
        return f"PixelGrid({self.width}x{self.height}x{self.data.shape[2]})"
