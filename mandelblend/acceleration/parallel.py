"""
Column-parallel renderer.

This module fans the raster out into one unit of work per column and joins
on a completion barrier before the raster is considered valid. Units never
share a column, so no locking is needed: the partitioning itself keeps the
writes disjoint.

Two executor backends are available. The ``process`` backend runs units on
a ``ProcessPoolExecutor`` for true multi-core execution and copies each
returned column into the raster after the barrier. The ``thread`` backend
runs units on a ``ThreadPoolExecutor`` and each unit writes its own column
of the shared raster in place.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ALL_COMPLETED, BrokenExecutor, ProcessPoolExecutor, ThreadPoolExecutor, wait

from ..core.config import RenderConfig
from ..core.errors import RenderError
from ..core.raster import SourceImage
from .kernel import check_raster, get_kernel

logger = logging.getLogger(__name__)

BACKENDS = ("process", "thread")


@dataclass(frozen=True)
class ColumnSpec:
    """Specification for a single column in parallel rendering."""
    column: int
    height: int


@dataclass
class ColumnResult:
    """Result from processing a single column."""
    column: int
    pixels: np.ndarray
    processing_time: float


def create_column_grid(config: RenderConfig) -> List[ColumnSpec]:
    """
    Partition the raster into one unit of work per column.

    Args:
        config: Render configuration

    Returns:
        List of ColumnSpec objects, left to right
    """
    columns = [ColumnSpec(column=x, height=config.height) for x in range(config.width)]
    logger.debug(f"Created {len(columns)} column units of height {config.height}")
    return columns


def render_column(spec: ColumnSpec, source_column: Sequence[Sequence[int]],
                  config: RenderConfig) -> ColumnResult:
    """
    Compute every pixel of one column, top to bottom.

    Args:
        spec: Column to render
        source_column: Premultiplied 16-bit source colours of that column
        config: Render configuration

    Returns:
        ColumnResult holding an (height, 4) uint8 array
    """
    start_time = time.perf_counter()
    kernel = get_kernel(config)
    pixels = np.array(kernel.shade_column(spec.column, source_column), dtype=np.uint8)
    return ColumnResult(
        column=spec.column,
        pixels=pixels.reshape(spec.height, 4),
        processing_time=time.perf_counter() - start_time,
    )


def process_column(args: Tuple[ColumnSpec, list, RenderConfig]) -> ColumnResult:
    """Process a single column in a worker process."""
    spec, source_column, config = args
    return render_column(spec, source_column, config)


def get_optimal_worker_count() -> int:
    """Get the number of workers for column rendering."""
    return max(1, mp.cpu_count())


class ParallelRenderer:
    """One-unit-per-column fan-out with a join barrier."""

    strategy = "parallel"

    def __init__(self, backend: str = "process", max_workers: Optional[int] = None):
        """
        Initialize parallel renderer.

        Args:
            backend: 'process' or 'thread'
            max_workers: Number of workers (None for CPU count)
        """
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{backend}'. Supported: {', '.join(BACKENDS)}")
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be positive")

        self.backend = backend
        self.max_workers = max_workers or get_optimal_worker_count()
        logger.debug(f"Parallel renderer: {self.backend} backend, {self.max_workers} workers")

    def _executor(self):
        if self.backend == "process":
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers)

    @staticmethod
    def _fill_column(raster: np.ndarray, spec: ColumnSpec, source_column: list,
                     config: RenderConfig) -> ColumnResult:
        result = render_column(spec, source_column, config)
        raster[:, spec.column] = result.pixels
        return result

    def render(self, raster: np.ndarray, source: SourceImage, config: RenderConfig) -> np.ndarray:
        """
        Render into ``raster`` with one unit of work per column.

        All units are submitted at once; the call blocks until every unit has
        completed, whether it succeeded or not.

        Args:
            raster: RGBA8 array of shape (height, width, 4), mutated in place
            source: Source image sampled for compositing (read-only)
            config: Render configuration

        Returns:
            The same raster, fully written

        Raises:
            RenderError: one or more units failed, or the executor broke;
                carries the partial raster
        """
        check_raster(raster, config)
        columns = create_column_grid(config)
        start_time = time.perf_counter()

        try:
            with self._executor() as executor:
                if self.backend == "process":
                    future_to_column = {
                        executor.submit(process_column, (spec, source.column64(spec.column, spec.height), config)): spec
                        for spec in columns
                    }
                else:
                    future_to_column = {
                        executor.submit(self._fill_column, raster, spec,
                                        source.column64(spec.column, spec.height), config): spec
                        for spec in columns
                    }

                # Join barrier
                done, _ = wait(future_to_column, return_when=ALL_COMPLETED)
        except (BrokenExecutor, OSError) as e:
            # Pool died or could not start before every unit was submitted
            logger.error(f"{self.backend} executor failed: {e}")
            raise RenderError(f"{self.backend} executor failed: {e}", raster=raster) from e

        failed = []
        total_processing_time = 0.0
        for future in done:
            spec = future_to_column[future]
            error = future.exception()
            if error is not None:
                logger.error(f"Column {spec.column} failed: {error}")
                failed.append(spec.column)
                continue

            result = future.result()
            total_processing_time += result.processing_time
            if self.backend == "process":
                raster[:, result.column] = result.pixels

        if failed:
            failed.sort()
            raise RenderError(f"{len(failed)} of {len(columns)} columns failed", failed, raster)

        total_time = time.perf_counter() - start_time
        logger.debug(f"Parallel render complete: {len(columns)} columns, {total_time:.3f}s wall, "
                     f"{total_processing_time:.3f}s in units")
        return raster

    def describe(self) -> dict:
        return {"strategy": self.strategy, "backend": self.backend, "workers": self.max_workers}
