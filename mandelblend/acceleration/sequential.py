"""Single-threaded renderer."""

import logging

import numpy as np

from ..core.config import RenderConfig
from ..core.raster import SourceImage
from .kernel import check_raster, get_kernel

logger = logging.getLogger(__name__)


class SequentialRenderer:
    """Visits every pixel in raster order on the calling thread."""

    strategy = "sequential"

    def render(self, raster: np.ndarray, source: SourceImage, config: RenderConfig) -> np.ndarray:
        """
        Render into ``raster`` in place.

        Columns are scanned left to right, each column top to bottom.

        Args:
            raster: RGBA8 array of shape (height, width, 4), mutated in place
            source: Source image sampled for compositing
            config: Render configuration

        Returns:
            The same raster, fully written
        """
        check_raster(raster, config)
        kernel = get_kernel(config)

        for x in range(config.width):
            for y in range(config.height):
                raster[y, x] = kernel.shade(x, y, source.rgba64(x, y))

        logger.debug(f"Sequential render complete: {config.width}x{config.height}")
        return raster

    def describe(self) -> dict:
        return {"strategy": self.strategy}
