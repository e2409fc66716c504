"""Exceptions raised by the collage core and its image I/O."""

from __future__ import annotations


class PreconditionViolation(ValueError):
    """An input the optimiser cannot work with (empty library, zero steps, ...)."""


class DecodeFailure(OSError):
    """An image file could not be opened or decoded."""
