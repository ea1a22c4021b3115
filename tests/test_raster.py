import numpy as np
import pytest

from mandelblend.core.config import RenderConfig
from mandelblend.core.raster import SourceImage, new_raster, premultiply16, seed_raster


def test_premultiply_opaque_expands_channels():
    out = premultiply16(np.array([[200, 0, 255, 255]], dtype=np.uint8))
    assert out.tolist() == [[200 * 257, 0, 0xFFFF, 0xFFFF]]


def test_premultiply_translucent():
    out = premultiply16(np.array([200, 10, 0, 128], dtype=np.uint8))
    # 200 * 257 * 128 // 255 == 25800
    assert out.tolist() == [25800, 1290, 0, 128 * 257]


def test_source_sampling(gradient_source):
    expected = premultiply16(gradient_source.pixels[3, 5])
    assert gradient_source.rgba64(5, 3) == tuple(expected.tolist())
    assert gradient_source.rgba64(-1, 0) == (0, 0, 0, 0)
    assert gradient_source.rgba64(0, gradient_source.height) == (0, 0, 0, 0)


def test_source_column_pads_outside_rows(gradient_source):
    column = gradient_source.column64(2, gradient_source.height + 3)
    assert len(column) == gradient_source.height + 3
    assert column[0] == gradient_source.rgba64(2, 0)
    assert column[-1] == (0, 0, 0, 0)
    assert gradient_source.column64(gradient_source.width, 4) == [(0, 0, 0, 0)] * 4


def test_source_is_read_only(solid_pixels):
    source = SourceImage(solid_pixels)
    solid_pixels[0, 0] = 0
    assert source.rgba64(0, 0) != (0, 0, 0, 0)
    with pytest.raises(ValueError):
        source.pixels[0, 0, 0] = 1


def test_premultiplied_view_is_read_only(gradient_source):
    view = gradient_source.premultiplied
    assert view.dtype == np.uint16
    assert tuple(view[3, 5].tolist()) == gradient_source.rgba64(5, 3)
    with pytest.raises(ValueError):
        view[0, 0, 0] = 1


@pytest.mark.parametrize("pixels", [
    np.zeros((4, 4, 3), dtype=np.uint8),
    np.zeros((4, 4, 4), dtype=np.float32),
])
def test_source_rejects_bad_arrays(pixels):
    with pytest.raises(ValueError):
        SourceImage(pixels)


def test_new_raster_shape(small_config):
    raster = new_raster(small_config)
    assert raster.shape == (12, 20, 4)
    assert raster.dtype == np.uint8
    assert not raster.any()


def test_seed_raster_copies_premultiplied_source():
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[:] = (200, 10, 0, 128)
    raster = seed_raster(SourceImage(pixels), RenderConfig(width=4, height=4))
    assert raster[0, 0].tolist() == [100, 5, 0, 128]


def test_seed_rasters_are_independent(gradient_source, small_config):
    first = seed_raster(gradient_source, small_config)
    second = seed_raster(gradient_source, small_config)
    first[:] = 0
    assert second.any()
