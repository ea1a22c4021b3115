from concurrent.futures import ThreadPoolExecutor
from concurrent.futures.process import BrokenProcessPool

import numpy as np
import pytest

import mandelblend.acceleration.parallel as parallel_module
from mandelblend.acceleration.kernel import PixelKernel
from mandelblend.acceleration.parallel import ParallelRenderer, create_column_grid
from mandelblend.acceleration.sequential import SequentialRenderer
from mandelblend.core.config import RenderConfig
from mandelblend.core.errors import RenderError
from mandelblend.core.raster import SourceImage, new_raster, seed_raster

from conftest import SOLID, gradient_pixels


def render_sequential(source, config):
    return SequentialRenderer().render(seed_raster(source, config), source, config)


def test_solid_source_survives_unchanged(solid_source, small_config):
    raster = render_sequential(solid_source, small_config)
    assert (raster == np.array(SOLID, dtype=np.uint8)).all()


def test_source_mode_is_requantized_source(gradient_source, small_config):
    raster = render_sequential(gradient_source, small_config)
    expected = (gradient_source.premultiplied >> 8).astype(np.uint8)
    expected[..., 3] = 255
    np.testing.assert_array_equal(raster, expected)


def test_sequential_is_idempotent(gradient_source, small_config):
    first = render_sequential(gradient_source, small_config)
    second = render_sequential(gradient_source, small_config)
    assert first.tobytes() == second.tobytes()


@pytest.mark.parametrize("mode", ["source", "overlay"])
def test_thread_parallel_matches_sequential(gradient_source, mode):
    config = RenderConfig(width=20, height=12, max_iterations=40, composite_mode=mode)
    expected = render_sequential(gradient_source, config)
    raster = ParallelRenderer(backend="thread", max_workers=4).render(
        seed_raster(gradient_source, config), gradient_source, config)
    np.testing.assert_array_equal(raster, expected)


def test_process_parallel_matches_sequential():
    config = RenderConfig(width=8, height=8, max_iterations=30, composite_mode="overlay")
    source = SourceImage(gradient_pixels(8, 8))
    expected = render_sequential(source, config)
    raster = ParallelRenderer(backend="process", max_workers=2).render(new_raster(config), source, config)
    np.testing.assert_array_equal(raster, expected)


def test_parallel_writes_every_pixel(solid_source, small_config):
    raster = new_raster(small_config)
    ParallelRenderer(backend="thread").render(raster, solid_source, small_config)
    assert (raster == np.array(SOLID, dtype=np.uint8)).all()


def test_overlay_shows_the_fractal(solid_source):
    config = RenderConfig(width=20, height=12, max_iterations=40,
                          composite_mode="overlay", overlay_opacity=255)
    raster = render_sequential(solid_source, config)
    # Pixel (10, 6) is the origin: bounded, black
    assert raster[6, 10].tolist() == [0, 0, 0, 255]
    # Pixel (0, 0) is -2-2i: escapes at iteration 0
    assert raster[0, 0].tolist() == [0, 0, 0, 255]
    kernel = PixelKernel(config)
    assert raster[3, 7].tolist() == list(kernel.shade(7, 3, solid_source.rgba64(7, 3)))


def test_column_grid_covers_raster(small_config):
    columns = create_column_grid(small_config)
    assert [c.column for c in columns] == list(range(small_config.width))
    assert {c.height for c in columns} == {small_config.height}


def test_failed_unit_releases_barrier(monkeypatch, solid_source, small_config):
    original = parallel_module.render_column

    def flaky(spec, source_column, config):
        if spec.column in (3, 11):
            raise RuntimeError("unit failed")
        return original(spec, source_column, config)

    monkeypatch.setattr(parallel_module, "render_column", flaky)
    raster = new_raster(small_config)

    with pytest.raises(RenderError) as excinfo:
        ParallelRenderer(backend="thread", max_workers=3).render(raster, solid_source, small_config)

    error = excinfo.value
    assert error.failed_columns == [3, 11]
    assert error.raster is raster
    assert not raster[:, 3].any()
    assert (raster[:, 4] == np.array(SOLID, dtype=np.uint8)).all()


def test_pool_breaking_during_submit_raises_render_error(monkeypatch, solid_source, small_config):
    class DyingPool(ThreadPoolExecutor):
        def submit(self, fn, *args, **kwargs):
            if args[1].column == 5:
                raise BrokenProcessPool("worker killed")
            return super().submit(fn, *args, **kwargs)

    renderer = ParallelRenderer(backend="thread", max_workers=2)
    monkeypatch.setattr(renderer, "_executor", lambda: DyingPool(max_workers=2))
    raster = new_raster(small_config)

    with pytest.raises(RenderError) as excinfo:
        renderer.render(raster, solid_source, small_config)

    assert excinfo.value.raster is raster
    assert isinstance(excinfo.value.__cause__, BrokenProcessPool)


def test_raster_shape_checked(solid_source, small_config):
    with pytest.raises(ValueError):
        SequentialRenderer().render(np.zeros((5, 5, 4), dtype=np.uint8), solid_source, small_config)
    with pytest.raises(ValueError):
        ParallelRenderer(backend="thread").render(np.zeros((5, 5, 4), dtype=np.uint8),
                                                  solid_source, small_config)


@pytest.mark.parametrize("kwargs", [{"backend": "gpu"}, {"max_workers": 0}])
def test_parallel_renderer_rejects_bad_options(kwargs):
    with pytest.raises(ValueError):
        ParallelRenderer(**kwargs)


def test_describe():
    renderer = ParallelRenderer(backend="thread", max_workers=2)
    assert renderer.describe() == {"strategy": "parallel", "backend": "thread", "workers": 2}
    assert SequentialRenderer().describe() == {"strategy": "sequential"}
