"""
Collage Annealer
================

Approximate a target image by layering transformed copies of library
images over a flat background colour. Every layer's placement, size,
rotation, hue and transparency is found by simulated annealing in
CIELAB space.
"""

__version__ = "0.1.0"

from collage_annealer.annealing import Annealable, Annealer, StateEnergy
from collage_annealer.collage import Collager, CollageResult
from collage_annealer.color import Lab, Laba, blend, distance, lab_to_rgb, rgb_to_lab
from collage_annealer.config import CollageConfig
from collage_annealer.errors import DecodeFailure, PreconditionViolation
from collage_annealer.image_io import load_library, load_rgba, load_target, save_upscaled
from collage_annealer.parameters import LayerFeatures, ParameterChain
from collage_annealer.pixel_grid import PixelGrid

__all__ = [
    "Annealable",
    "Annealer",
    "CollageConfig",
    "CollageResult",
    "Collager",
    "DecodeFailure",
    "Lab",
    "Laba",
    "LayerFeatures",
    "ParameterChain",
    "PixelGrid",
    "PreconditionViolation",
    "StateEnergy",
    "blend",
    "distance",
    "lab_to_rgb",
    "load_library",
    "load_rgba",
    "load_target",
    "rgb_to_lab",
    "save_upscaled",
]
