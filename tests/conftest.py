import numpy as np
import pytest
from PIL import Image

from mandelblend.core.config import RenderConfig
from mandelblend.core.raster import SourceImage

SOLID = (10, 200, 30, 255)


def gradient_pixels(height, width):
    """Deterministic RGBA8 pattern with varying alpha."""
    y, x = np.mgrid[0:height, 0:width]
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = (x * 13) % 256
    pixels[..., 1] = (y * 29) % 256
    pixels[..., 2] = (x * y + 7) % 256
    pixels[..., 3] = 255 - (x + y) % 4 * 60
    return pixels


def write_png(path, pixels):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels).save(path, "PNG")
    return path


@pytest.fixture
def small_config():
    # Non-square on purpose so width/height mix-ups show up
    return RenderConfig(width=20, height=12, max_iterations=40)


@pytest.fixture
def solid_pixels(small_config):
    return np.full((small_config.height, small_config.width, 4), SOLID, dtype=np.uint8)


@pytest.fixture
def solid_source(solid_pixels):
    return SourceImage(solid_pixels)


@pytest.fixture
def gradient_source(small_config):
    return SourceImage(gradient_pixels(small_config.height, small_config.width))
