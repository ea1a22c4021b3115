"""
Raster and source-image containers.

A raster is a plain ``(height, width, 4)`` uint8 numpy array indexed
``raster[y, x]``. The source image is wrapped read-only and sampled with
16-bit alpha-premultiplied channels, the same values an NRGBA colour
reports, so that re-quantizing with ``>> 8`` reproduces the reference
pixels exactly.
"""

from typing import List, Tuple
import logging

import numpy as np

from .config import RenderConfig

logger = logging.getLogger(__name__)

TRANSPARENT64 = (0, 0, 0, 0)


def premultiply16(pixels: np.ndarray) -> np.ndarray:
    """
    Expand straight RGBA8 pixels to alpha-premultiplied RGBA16.

    Args:
        pixels: Array (..., 4) of uint8 straight-alpha colours

    Returns:
        Array (..., 4) of uint16 with c16 = c8 * 0x101 * a8 // 0xff and
        a16 = a8 * 0x101
    """
    wide = pixels.astype(np.uint32)
    alpha = wide[..., 3:4]
    out = np.empty_like(wide)
    out[..., :3] = (wide[..., :3] * 0x101 * alpha) // 0xFF
    out[..., 3:4] = alpha * 0x101
    return out.astype(np.uint16)


class SourceImage:
    """Read-only decoded source image."""

    def __init__(self, pixels: np.ndarray):
        """
        Wrap decoded pixels.

        Args:
            pixels: Straight-alpha RGBA array of shape (height, width, 4), uint8
        """
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected RGBA image array (H, W, 4), got {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")

        self.pixels = pixels.copy()
        self.pixels.setflags(write=False)
        self._rgba64 = premultiply16(self.pixels)
        self._rgba64.setflags(write=False)

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def premultiplied(self) -> np.ndarray:
        """Read-only (height, width, 4) uint16 array of premultiplied colours."""
        return self._rgba64

    def rgba64(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Premultiplied 16-bit colour at (x, y); transparent black outside the bounds."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return tuple(self._rgba64[y, x].tolist())
        return TRANSPARENT64

    def column64(self, x: int, height: int) -> List[Tuple[int, int, int, int]]:
        """
        Premultiplied 16-bit colours of column ``x`` for rows 0..height-1.

        Rows (or a whole column) outside the image sample as transparent black.
        """
        if not 0 <= x < self.width:
            return [TRANSPARENT64] * height
        column = [tuple(p) for p in self._rgba64[:height, x].tolist()]
        if len(column) < height:
            column.extend([TRANSPARENT64] * (height - len(column)))
        return column


def new_raster(config: RenderConfig) -> np.ndarray:
    """Allocate a zeroed raster for ``config``."""
    return np.zeros((config.height, config.width, 4), dtype=np.uint8)


def seed_raster(source: SourceImage, config: RenderConfig) -> np.ndarray:
    """
    Allocate a raster and copy the source image into it.

    Each pixel is stored as premultiplied RGBA8 (the 16-bit channels shifted
    right by 8, alpha kept), which is how an RGBA raster stores a colour
    assigned from another image.
    """
    raster = new_raster(config)
    h = min(config.height, source.height)
    w = min(config.width, source.width)
    raster[:h, :w] = (source.premultiplied[:h, :w] >> 8).astype(np.uint8)
    return raster
