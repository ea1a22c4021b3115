"""
Per-pixel computation shared by every renderer.

Both the sequential and the parallel drivers go through ``PixelKernel`` so
that they compute the same complex point, the same escape classification
and the same composited colour for every pixel.
"""

from functools import lru_cache
from typing import List, Sequence
import logging

import numpy as np

from ..core.config import RenderConfig
from ..core.fractal_types import MandelbrotSet
from ..rendering.coloring import ColorRGBA, escape_color, get_compositor

logger = logging.getLogger(__name__)


class PixelKernel:
    """Mandelbrot colour plus compositing for one raster configuration."""

    def __init__(self, config: RenderConfig):
        self.config = config
        self.fractal = MandelbrotSet(config)
        self.compositor = get_compositor(config.composite_mode, config.overlay_opacity)

    def shade(self, x: int, y: int, source64: Sequence[int]) -> ColorRGBA:
        """Final colour of pixel (x, y) given the source colour at that pixel."""
        fractal_color = escape_color(self.fractal.classify(x, y))
        return self.compositor.composite(fractal_color, source64)

    def shade_column(self, x: int, source_column: Sequence[Sequence[int]]) -> List[ColorRGBA]:
        """Colours of column ``x``, top to bottom."""
        return [self.shade(x, y, source_column[y]) for y in range(self.config.height)]


@lru_cache(maxsize=8)
def get_kernel(config: RenderConfig) -> PixelKernel:
    """Kernel for ``config``, reused across units of work in one worker."""
    return PixelKernel(config)


def check_raster(raster, config: RenderConfig) -> None:
    """Raise ValueError unless ``raster`` is an RGBA8 array of the configured size."""
    expected = (config.height, config.width, 4)
    if raster.shape != expected:
        raise ValueError(f"Raster shape {raster.shape} does not match configuration {expected}")
    if raster.dtype != np.uint8:
        raise ValueError(f"Expected 8-bit raster, got {raster.dtype}")
