"""
Mandelbrot blend benchmark.

This library renders a Mandelbrot fractal into a fixed-size raster,
composites it with an existing image, and measures the wall-clock cost of a
single-threaded scan against a one-unit-per-column parallel fan-out.

Key Features:
- Escape-time evaluation with a grayscale-by-iteration colour rule
- Sequential and column-parallel renderers producing identical rasters
- Reference (source overwrite) and alpha-blended overlay compositing
- Lossless PNG output with embedded render metadata
- Concurrent preset processing with per-preset failure isolation

Example usage:
    >>> from mandelblend import PresetProcessor, RenderConfig, run_presets
    >>> processor = PresetProcessor(RenderConfig())
    >>> results = run_presets(processor)
"""

__version__ = "1.0.0"
__author__ = "Mandelblend Team"

from mandelblend.core.config import RenderConfig, CompositeMode, Preset, DEFAULT_PRESETS
from mandelblend.core.errors import (
    MandelblendError, InputOpenError, DecodeError, EncodeError, WriteError, RenderError,
)
from mandelblend.core.math_functions import ComplexPoint, ComplexPlane, EscapeResult, BOUNDED, escape_time
from mandelblend.core.raster import SourceImage, new_raster, seed_raster
from mandelblend.rendering.coloring import escape_color, get_compositor
from mandelblend.rendering.image_output import ImageExporter, RenderMetadata, load_source_image
from mandelblend.acceleration.sequential import SequentialRenderer
from mandelblend.acceleration.parallel import ParallelRenderer

# Main API classes
from mandelblend.api import PresetProcessor, PresetResult, RenderTiming, timed_render, run_presets

__all__ = [
    "RenderConfig",
    "CompositeMode",
    "Preset",
    "DEFAULT_PRESETS",
    "MandelblendError",
    "InputOpenError",
    "DecodeError",
    "EncodeError",
    "WriteError",
    "RenderError",
    "ComplexPoint",
    "ComplexPlane",
    "EscapeResult",
    "BOUNDED",
    "escape_time",
    "SourceImage",
    "new_raster",
    "seed_raster",
    "escape_color",
    "get_compositor",
    "ImageExporter",
    "RenderMetadata",
    "load_source_image",
    "SequentialRenderer",
    "ParallelRenderer",
    "PresetProcessor",
    "PresetResult",
    "RenderTiming",
    "timed_render",
    "run_presets",
]
