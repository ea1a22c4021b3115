import dataclasses
from pathlib import Path

import pytest

from mandelblend.core.config import DEFAULT_PRESETS, CompositeMode, Preset, RenderConfig, default_presets


def test_defaults_match_reference_constants():
    config = RenderConfig()
    assert (config.width, config.height, config.max_iterations) == (800, 800, 200)
    assert config.composite_mode is CompositeMode.SOURCE
    assert config.shape == (800, 800)


def test_config_is_frozen():
    config = RenderConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.width = 10


def test_mode_accepts_string():
    assert RenderConfig(composite_mode="overlay").composite_mode is CompositeMode.OVERLAY


@pytest.mark.parametrize("kwargs", [
    {"width": 0},
    {"height": -1},
    {"max_iterations": 0},
    {"width": 3},
    {"overlay_opacity": 256},
    {"bailout": 0.0},
])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        RenderConfig(**kwargs)


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        RenderConfig(composite_mode="multiply")


def test_to_dict_is_json_friendly():
    data = RenderConfig(composite_mode="overlay").to_dict()
    assert data["composite_mode"] == "overlay"
    assert data["width"] == 800


def test_default_presets_are_ordered():
    assert [p.name for p in DEFAULT_PRESETS] == ["easy", "normal", "hard"]
    assert DEFAULT_PRESETS[0].source_path == Path("photos") / "easy.png"


def test_output_paths():
    preset = default_presets(Path("in"))[2]
    assert preset == Preset("hard", Path("in") / "hard.png")
    assert preset.output_path(Path("out"), "parallel") == Path("out") / "hard" / "mandelbrot_parallel.png"
    assert preset.output_path(Path("out"), "sequential") == Path("out") / "hard" / "mandelbrot_sequential.png"
