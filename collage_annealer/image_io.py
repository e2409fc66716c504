"""Image loading, saving, library scanning and comparison-grid generation."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from collage_annealer.errors import DecodeFailure

logger = logging.getLogger(__name__)


def compute_target_size(
    original_width: int,
    original_height: int,
    max_side: int,
) -> tuple[int, int]:
    """Compute scaled (w, h) preserving aspect ratio.

    The longest side becomes *max_side*; the other is scaled
    proportionally (rounded to the nearest integer, minimum 1).
    """
    if original_width >= original_height:
        w = max_side
        h = max(1, round(original_height * max_side / original_width))
    else:
        h = max_side
        w = max(1, round(original_width * max_side / original_height))
    return w, h


def _open(path: str | Path, mode: str) -> Image.Image:
    try:
        with Image.open(path) as img:
            return img.convert(mode)
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeFailure(f"cannot decode image {path}: {exc}") from exc


def load_rgba(path: str | Path) -> np.ndarray:
    """Decode any image file.

    Returns:
        (H, W, 4) float32 array with channels in [0, 1].
    """
    img = _open(path, "RGBA")
    return np.asarray(img, dtype=np.float32) / 255.0


def load_target(path: str | Path, max_side: int | None = None) -> np.ndarray:
    """Load the image to approximate, optionally resized so its longest side is *max_side*.

    Returns:
        (H, W, 3) float32 array with channels in [0, 1].
    """
    img = _open(path, "RGB")
    if max_side is not None:
        w, h = compute_target_size(img.width, img.height, max_side)
        img = img.resize((w, h), Image.LANCZOS)
    return np.asarray(img, dtype=np.float32) / 255.0


def list_library(directory: str | Path) -> list[Path]:
    """Regular files in *directory*, sorted by name."""
    return sorted(f for f in Path(directory).iterdir() if f.is_file())


def load_library(directory: str | Path) -> list[np.ndarray]:
    """Decode every file in *directory* as an RGBA overlay image.

    Raises:
        DecodeFailure: on the first file Pillow cannot read.
    """
    paths = list_library(directory)
    images = [load_rgba(p) for p in paths]
    logger.info("Library: %d images from %s", len(images), directory)
    return images


def _to_uint8(array: np.ndarray) -> np.ndarray:
    if array.dtype == np.uint8:
        return array
    return np.clip(np.rint(array * 255.0), 0, 255).astype(np.uint8)


def save_upscaled(
    array: np.ndarray,
    path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Save an RGB array (float in [0, 1] or uint8), nearest-neighbour upscaled."""
    img = Image.fromarray(_to_uint8(array))
    if pixel_upscale > 1:
        h, w = array.shape[:2]
        img = img.resize((w * pixel_upscale, h * pixel_upscale), Image.NEAREST)
    img.save(path)


def save_debug_snapshot(array: np.ndarray, index: int, debug_dir: str | Path) -> Path:
    """Write ``image{index}.png`` into *debug_dir*, creating the folder if needed."""
    debug_dir = Path(debug_dir)
    debug_dir.mkdir(parents=True, exist_ok=True)
    path = debug_dir / f"image{index}.png"
    save_upscaled(array, path)
    return path


def make_comparison_grid(
    target: np.ndarray,
    collage: np.ndarray,
    output_path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Create a 2-panel comparison: Target | Collage.

    Both panels are upscaled to the same pixel dimensions based on the
    target shape and *pixel_upscale*.
    """
    th, tw = target.shape[:2]
    panel_w = tw * pixel_upscale
    panel_h = th * pixel_upscale
    label_height = 36

    panels = [
        Image.fromarray(_to_uint8(target)).resize((panel_w, panel_h), Image.NEAREST),
        Image.fromarray(_to_uint8(collage)).resize((panel_w, panel_h), Image.NEAREST),
    ]
    labels = [f"Target {tw}x{th}", "Collage"]

    gap = 8
    total_w = len(panels) * panel_w + (len(panels) - 1) * gap
    total_h = panel_h + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=False)):
        x = i * (panel_w + gap)
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel_w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    canvas.save(output_path)
