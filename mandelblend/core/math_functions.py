"""
Core mathematical functions for fractal iteration.

This module provides the escape-time iteration and the mapping from raster
pixels to points of the complex plane. Both are pure functions over plain
Python floats so that every driver (sequential loop, thread pool, process
pool) computes bit-identical results.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from .config import RenderConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComplexPoint:
    """A point c = real + imag*i of the complex plane."""
    real: float
    imag: float


class ComplexPlane:
    """Represents the fixed plane window with pixel-to-point mapping."""

    def __init__(self, config: RenderConfig):
        """
        Initialize the plane window for a raster.

        Args:
            config: Render configuration holding raster size and divisors
        """
        self.width = config.width
        self.height = config.height

        # Integer offsets and scales, truncated like the reference mapping
        self.x_offset = config.width // config.center_divisor
        self.y_offset = config.height // config.center_divisor
        self.x_scale = config.width // config.scale_divisor
        self.y_scale = config.height // config.scale_divisor

    def pixel_to_complex(self, px: int, py: int) -> ComplexPoint:
        """Convert pixel coordinates to a complex point."""
        return ComplexPoint(
            (px - self.x_offset) / self.x_scale,
            (py - self.y_offset) / self.y_scale,
        )

    def __repr__(self):
        return (f"ComplexPlane({self.width}x{self.height}, offset=({self.x_offset}, {self.y_offset}), "
                f"scale=({self.x_scale}, {self.y_scale}))")


@dataclass(frozen=True)
class EscapeResult:
    """
    Escape classification of a point.

    ``iteration`` is the index of the iteration at which |z|^2 first exceeded
    the bailout, or None when the orbit stayed bounded.
    """
    iteration: Optional[int]

    @property
    def escaped(self) -> bool:
        return self.iteration is not None

    def __repr__(self):
        if self.iteration is None:
            return "Bounded"
        return f"Escaped({self.iteration})"


BOUNDED = EscapeResult(None)


def escape_time(c: ComplexPoint, max_iterations: int, bailout: float = 4.0) -> EscapeResult:
    """
    Classify ``c`` with the Mandelbrot escape-time iteration.

    Iterates z <- z^2 + c from z = 0 and tests |z|^2 > bailout after each
    update.

    Args:
        c: Point to classify
        max_iterations: Iteration cap
        bailout: Squared escape radius

    Returns:
        ``EscapeResult(i)`` for the first iteration i whose result escaped,
        otherwise ``BOUNDED``
    """
    cr = c.real
    ci = c.imag
    zr = 0.0
    zi = 0.0
    for i in range(max_iterations):
        zr, zi = zr * zr - zi * zi + cr, 2 * zr * zi + ci
        if zr * zr + zi * zi > bailout:
            return EscapeResult(i)
    return BOUNDED
