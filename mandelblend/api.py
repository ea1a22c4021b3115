"""
Main API for blending and benchmarking.

This module provides the high-level interface: the timing harness that
brackets one renderer invocation, the per-preset pipeline (decode, seed two
independent rasters, render sequentially and in parallel, save both) and
the orchestration that runs several presets side by side with per-preset
failure isolation.
"""

import numpy as np
from typing import Optional, Dict, List, Sequence, Tuple
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import logging
import math
import time

from .core.config import RenderConfig, Preset, DEFAULT_PRESETS, DEFAULT_RESULT_ROOT
from .core.errors import DecodeError, MandelblendError
from .core.raster import SourceImage, seed_raster
from .acceleration.sequential import SequentialRenderer
from .acceleration.parallel import ParallelRenderer
from .rendering.image_output import ImageExporter, RenderMetadata, load_source_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderTiming:
    """Elapsed wall-clock time of one renderer invocation."""
    strategy: str
    elapsed_seconds: float

    def __post_init__(self):
        if not math.isfinite(self.elapsed_seconds) or self.elapsed_seconds < 0:
            raise ValueError(f"Invalid elapsed time: {self.elapsed_seconds}")


def timed_render(renderer, raster: np.ndarray, source: SourceImage,
                 config: RenderConfig) -> Tuple[np.ndarray, RenderTiming]:
    """
    Run ``renderer`` and measure how long it takes.

    The clock is read immediately before the call and immediately after it
    returns, using a monotonic counter, so the measurement covers the render
    and nothing else.

    Args:
        renderer: Object with a ``strategy`` name and a ``render`` method
        raster: Freshly seeded raster, mutated in place
        source: Source image
        config: Render configuration

    Returns:
        Tuple of (rendered raster, timing)
    """
    start_time = time.perf_counter()
    raster = renderer.render(raster, source, config)
    elapsed = time.perf_counter() - start_time
    return raster, RenderTiming(renderer.strategy, max(0.0, elapsed))


@dataclass
class PresetResult:
    """Outcome of processing one preset."""
    preset: Preset
    sequential: Optional[RenderTiming] = None
    parallel: Optional[RenderTiming] = None
    outputs: Dict[str, Path] = field(default_factory=dict)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def speedup(self) -> Optional[float]:
        if not self.ok or not self.parallel.elapsed_seconds:
            return None
        return self.sequential.elapsed_seconds / self.parallel.elapsed_seconds


class PresetProcessor:
    """Runs the full pipeline for one preset at a time."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 result_root: Path = DEFAULT_RESULT_ROOT,
                 parallel: Optional[ParallelRenderer] = None,
                 exporter: Optional[ImageExporter] = None):
        """
        Initialize preset processor.

        Args:
            config: Render configuration (uses defaults if None)
            result_root: Directory under which per-preset outputs are written
            parallel: Parallel renderer (process backend, CPU count workers if None)
            exporter: Image exporter
        """
        self.config = config or RenderConfig()
        self.result_root = Path(result_root)
        self.sequential = SequentialRenderer()
        self.parallel = parallel or ParallelRenderer()
        self.exporter = exporter or ImageExporter()

    def _load(self, preset: Preset) -> SourceImage:
        source = load_source_image(preset.source_path)
        if source.shape != self.config.shape:
            raise DecodeError(
                f"Image {preset.source_path} is {source.width}x{source.height}, "
                f"expected {self.config.width}x{self.config.height}"
            )
        return source

    def _metadata(self, preset: Preset, renderer, timing: RenderTiming) -> RenderMetadata:
        details = renderer.describe()
        return RenderMetadata(
            preset=preset.name,
            strategy=timing.strategy,
            elapsed_seconds=timing.elapsed_seconds,
            resolution=(self.config.width, self.config.height),
            max_iterations=self.config.max_iterations,
            composite_mode=self.config.composite_mode.value,
            backend=details.get("backend"),
            workers=details.get("workers"),
            config=self.config.to_dict(),
        )

    @staticmethod
    def _failed(result: PresetResult, error: Exception) -> PresetResult:
        for path in result.outputs.values():
            path.unlink(missing_ok=True)
        return PresetResult(result.preset, error=error)

    def process(self, preset: Preset) -> PresetResult:
        """
        Process one preset.

        Errors from decoding, rendering or saving are logged and returned in
        the result; any output already written for the preset is removed.

        Args:
            preset: Preset to process

        Returns:
            PresetResult with timings and output paths, or the error
        """
        logger.info(f"Processing {preset.name} image...")
        result = PresetResult(preset)

        try:
            source = self._load(preset)

            # Independent rasters so the two runs share no mutable state
            sequential_raster = seed_raster(source, self.config)
            parallel_raster = seed_raster(source, self.config)

            for renderer, raster in ((self.sequential, sequential_raster),
                                     (self.parallel, parallel_raster)):
                raster, timing = timed_render(renderer, raster, source, self.config)
                path = preset.output_path(self.result_root, timing.strategy)
                result.outputs[timing.strategy] = self.exporter.save_raster(
                    raster, path, self._metadata(preset, renderer, timing)
                )
                setattr(result, timing.strategy, timing)

        except MandelblendError as e:
            logger.error(f"{preset.name}: {e}")
            return self._failed(result, e)
        except Exception as e:
            logger.exception(f"{preset.name}: unexpected failure")
            return self._failed(result, e)

        logger.debug(f"{preset.name} Sequential: Elapsed time: {result.sequential.elapsed_seconds:.3f}s")
        logger.debug(f"{preset.name} Parallel: Elapsed time: {result.parallel.elapsed_seconds:.3f}s")
        return result


def _process_guarded(processor: PresetProcessor, preset: Preset) -> PresetResult:
    try:
        return processor.process(preset)
    except Exception as e:
        logger.exception(f"{preset.name}: processing failed")
        return PresetResult(preset, error=e)


def run_presets(processor: PresetProcessor, presets: Sequence[Preset] = DEFAULT_PRESETS,
                concurrent: bool = True, max_workers: Optional[int] = None) -> List[PresetResult]:
    """
    Process several presets, each with its own rasters and source image.

    A failing preset never stops the others.

    Args:
        processor: Pipeline to run for every preset
        presets: Presets in reporting order
        concurrent: Run presets side by side on a thread pool
        max_workers: Thread pool size (one per preset if None)

    Returns:
        One PresetResult per preset, in the order given
    """
    presets = list(presets)
    if not concurrent or len(presets) <= 1:
        results = [_process_guarded(processor, preset) for preset in presets]
    else:
        with ThreadPoolExecutor(max_workers=max_workers or len(presets)) as executor:
            futures = [executor.submit(_process_guarded, processor, preset) for preset in presets]
            results = [future.result() for future in futures]

    failed = [r.preset.name for r in results if not r.ok]
    if failed:
        logger.warning(f"{len(failed)} of {len(results)} presets failed: {', '.join(failed)}")
    return results
