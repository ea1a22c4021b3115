"""
Mandelbrot fractal definition.

Binds the escape-time iteration to a concrete plane window so that a
renderer can ask for the classification of a raster pixel directly.
"""

from dataclasses import dataclass
import logging

from .config import RenderConfig
from .math_functions import ComplexPlane, ComplexPoint, EscapeResult, escape_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MandelbrotParameters:
    """Parameters for Mandelbrot set evaluation."""

    max_iterations: int
    bailout: float = 4.0


class MandelbrotSet:
    """Mandelbrot set sampled on a fixed raster."""

    name = "Mandelbrot"

    def __init__(self, config: RenderConfig):
        """
        Initialize Mandelbrot set for a raster.

        Args:
            config: Render configuration (raster size, window, iteration cap)
        """
        self.parameters = MandelbrotParameters(config.max_iterations, config.bailout)
        self.plane = ComplexPlane(config)

    def point(self, x: int, y: int) -> ComplexPoint:
        return self.plane.pixel_to_complex(x, y)

    def classify(self, x: int, y: int) -> EscapeResult:
        """Escape classification of raster pixel (x, y)."""
        return escape_time(self.point(x, y),
                           self.parameters.max_iterations,
                           self.parameters.bailout)

    def get_description(self) -> str:
        """Get description of Mandelbrot set."""
        return ("Mandelbrot set: z_{n+1} = z_n^2 + c, z_0 = 0, "
                f"{self.parameters.max_iterations} iterations on {self.plane!r}")
