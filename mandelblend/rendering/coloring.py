"""
Escape-time colouring and compositing with the source image.

The fractal is coloured with a single grayscale-by-iteration rule. The
compositor then decides what ends up in the raster: the reference
behaviour keeps only the re-quantized source pixel, the overlay mode blends
the fractal over it.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple, Union
import logging

from ..core.config import CompositeMode
from ..core.math_functions import EscapeResult

logger = logging.getLogger(__name__)

ColorRGBA = Tuple[int, int, int, int]

OPAQUE = 255
BLACK: ColorRGBA = (0, 0, 0, OPAQUE)


def escape_color(result: EscapeResult) -> ColorRGBA:
    """
    Grayscale colour for an escape classification.

    Escaped points get ``iteration % 256`` on every channel, bounded points
    are black. Both are fully opaque.
    """
    if result.iteration is None:
        return BLACK
    level = result.iteration % 256
    return (level, level, level, OPAQUE)


def requantize(rgba64: Sequence[int]) -> ColorRGBA:
    """Drop a 16-bit colour to 8 bits per channel with alpha forced opaque."""
    return (rgba64[0] >> 8, rgba64[1] >> 8, rgba64[2] >> 8, OPAQUE)


class Compositor(ABC):
    """Merges the fractal colour of a pixel with the source colour."""

    mode: CompositeMode

    @abstractmethod
    def composite(self, fractal: ColorRGBA, source64: Sequence[int]) -> ColorRGBA:
        """
        Produce the final stored pixel.

        Args:
            fractal: Escape-time colour of the pixel
            source64: Premultiplied 16-bit source colour of the same pixel

        Returns:
            Final RGBA8 colour
        """


class SourceCompositor(Compositor):
    """
    Reference compositing: the source pixel overwrites the fractal colour.

    The fractal colour is written first and immediately replaced, so the
    result is the source re-quantized to 8 bits with full opacity.
    """

    mode = CompositeMode.SOURCE

    def composite(self, fractal: ColorRGBA, source64: Sequence[int]) -> ColorRGBA:
        return requantize(source64)


class OverlayCompositor(Compositor):
    """Alpha-blends the fractal colour over the re-quantized source."""

    mode = CompositeMode.OVERLAY

    def __init__(self, opacity: int = 128):
        """
        Initialize overlay compositor.

        Args:
            opacity: Fractal opacity, 0 (source only) to 255 (fractal only)
        """
        if not 0 <= opacity <= 255:
            raise ValueError("opacity must be between 0 and 255")
        self.opacity = opacity

    def composite(self, fractal: ColorRGBA, source64: Sequence[int]) -> ColorRGBA:
        a = self.opacity
        inv = 255 - a
        src = requantize(source64)
        return (
            (fractal[0] * a + src[0] * inv + 127) // 255,
            (fractal[1] * a + src[1] * inv + 127) // 255,
            (fractal[2] * a + src[2] * inv + 127) // 255,
            OPAQUE,
        )


def get_compositor(mode: Union[CompositeMode, str], opacity: int = 128) -> Compositor:
    """Create the compositor for ``mode``."""
    mode = CompositeMode(mode)
    if mode is CompositeMode.SOURCE:
        return SourceCompositor()
    if mode is CompositeMode.OVERLAY:
        return OverlayCompositor(opacity)
    raise ValueError(f"Unknown composite mode: {mode}")
