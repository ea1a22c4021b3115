"""
Command-line interface for the Mandelbrot blend benchmark.

Renders each preset sequentially and in parallel, writes both results and
reports how long each strategy took.
"""

import click
import sys
from pathlib import Path
from typing import List
import logging

from .. import __version__
from ..api import PresetProcessor, PresetResult, run_presets
from ..acceleration.parallel import BACKENDS, ParallelRenderer, get_optimal_worker_count
from ..core.config import (
    CompositeMode, Preset, RenderConfig, PRESET_NAMES,
    DEFAULT_PHOTOS_DIR, DEFAULT_RESULT_ROOT, default_presets,
)
from ..core.fractal_types import MandelbrotSet
from ..rendering.image_output import ImageExporter

logger = logging.getLogger(__name__)

MODE_CHOICES = [mode.value for mode in CompositeMode]


def _build_processor(result_root, mode, backend, workers) -> PresetProcessor:
    config = RenderConfig(composite_mode=mode)
    return PresetProcessor(
        config=config,
        result_root=Path(result_root),
        parallel=ParallelRenderer(backend=backend, max_workers=workers),
    )


def _report(results: List[PresetResult]) -> None:
    for result in results:
        name = result.preset.name
        if not result.ok:
            click.echo(f"{name}: FAILED ({result.error})", err=True)
            continue
        click.echo(f"{name} Sequential: Elapsed time: {result.sequential.elapsed_seconds:.3f}s")
        click.echo(f"{name} Parallel: Elapsed time: {result.parallel.elapsed_seconds:.3f}s")
        if result.speedup is not None:
            click.echo(f"{name} Speedup: {result.speedup:.2f}x")


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    Mandelblend - sequential vs. parallel Mandelbrot blend benchmark.

    Renders an 800x800 Mandelbrot raster blended with each preset image,
    once on a single thread and once with one unit of work per column.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"mandelblend v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@main.command()
@click.option('--photos-dir', type=click.Path(file_okay=False), default=str(DEFAULT_PHOTOS_DIR),
              show_default=True, help='Directory holding <preset>.png inputs')
@click.option('--result-root', '-o', type=click.Path(file_okay=False), default=str(DEFAULT_RESULT_ROOT),
              show_default=True, help='Output root; results go to <root>/<preset>/')
@click.option('--preset', 'preset_names', multiple=True, type=click.Choice(PRESET_NAMES),
              help='Preset to process (repeatable, default: all)')
@click.option('--mode', type=click.Choice(MODE_CHOICES), default=CompositeMode.SOURCE.value,
              show_default=True, help='How the fractal is composited with the source')
@click.option('--backend', type=click.Choice(BACKENDS), default='process', show_default=True,
              help='Executor used by the parallel renderer')
@click.option('--workers', type=int, help='Workers for the parallel renderer (default: CPU count)')
@click.option('--serial', is_flag=True, help='Process presets one after another instead of concurrently')
@click.pass_context
def run(ctx, photos_dir, result_root, preset_names, mode, backend, workers, serial):
    """Process the easy/normal/hard presets."""
    presets = default_presets(Path(photos_dir))
    if preset_names:
        presets = tuple(p for p in presets if p.name in preset_names)

    try:
        processor = _build_processor(result_root, mode, backend, workers)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    results = run_presets(processor, presets, concurrent=not serial)
    _report(results)

    if not all(result.ok for result in results):
        sys.exit(1)


@main.command()
@click.argument('source', type=click.Path(dir_okay=False))
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default=str(DEFAULT_RESULT_ROOT),
              show_default=True, help='Output root; results go to <dir>/<source name>/')
@click.option('--mode', type=click.Choice(MODE_CHOICES), default=CompositeMode.SOURCE.value,
              show_default=True, help='How the fractal is composited with the source')
@click.option('--backend', type=click.Choice(BACKENDS), default='process', show_default=True,
              help='Executor used by the parallel renderer')
@click.option('--workers', type=int, help='Workers for the parallel renderer (default: CPU count)')
@click.pass_context
def render(ctx, source, output_dir, mode, backend, workers):
    """
    Blend a single image through both strategies.

    SOURCE: Input image, same size as the raster
    """
    try:
        processor = _build_processor(output_dir, mode, backend, workers)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    preset = Preset(Path(source).stem, Path(source))
    result = processor.process(preset)
    _report([result])

    if not result.ok:
        sys.exit(1)
    for strategy, path in result.outputs.items():
        click.echo(f"Saved {strategy}: {path}")


@main.command()
@click.option('--photos-dir', type=click.Path(file_okay=False), default=str(DEFAULT_PHOTOS_DIR),
              show_default=True, help='Directory holding <preset>.png inputs')
@click.option('--result-root', '-o', type=click.Path(file_okay=False), default=str(DEFAULT_RESULT_ROOT),
              show_default=True, help='Output root')
def list_presets(photos_dir, result_root):
    """List the presets with their input and output paths."""
    for preset in default_presets(Path(photos_dir)):
        status = "" if preset.source_path.exists() else "  (missing)"
        click.echo(f"{preset.name}: {preset.source_path}{status}")
        for strategy in ("sequential", "parallel"):
            click.echo(f"  {strategy}: {preset.output_path(Path(result_root), strategy)}")


@main.command(name='inspect')
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
def inspect_image(image):
    """Show the render metadata embedded in an output image."""
    info = ImageExporter().get_image_info(Path(image))
    if 'error' in info:
        click.echo(f"Error: {info['error']}", err=True)
        sys.exit(1)

    click.echo(f"{info['filepath']}: {info['format']} {info['mode']} "
               f"{info['dimensions'][0]}x{info['dimensions'][1]}")

    metadata = info['render_metadata']
    if metadata is None:
        click.echo("No render metadata")
        return

    for key in ('preset', 'strategy', 'elapsed_seconds', 'composite_mode',
                'backend', 'workers', 'max_iterations', 'timestamp', 'software_version'):
        click.echo(f"  {key}: {metadata[key]}")


@main.command()
def system_info():
    """Display parallel rendering capabilities."""
    click.echo("System Information:")
    click.echo(f"  CPU cores: {get_optimal_worker_count()}")
    click.echo(f"  Backends: {', '.join(BACKENDS)}")
    config = RenderConfig()
    click.echo(f"  Raster: {config.width}x{config.height}, {config.max_iterations} iterations")
    click.echo(f"  Fractal: {MandelbrotSet(config).get_description()}")


if __name__ == '__main__':
    main()
