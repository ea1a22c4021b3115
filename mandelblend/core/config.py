"""
Render configuration and preset definitions.

The raster size and iteration cap are fixed for a run. ``RenderConfig`` is
frozen and passed explicitly into every renderer call instead of living in
module-level globals.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 800
DEFAULT_MAX_ITERATIONS = 200

DEFAULT_PHOTOS_DIR = Path("photos")
DEFAULT_RESULT_ROOT = DEFAULT_PHOTOS_DIR / "result"
PRESET_NAMES = ("easy", "normal", "hard")


class CompositeMode(str, Enum):
    """How the fractal colour is merged with the source pixel."""

    SOURCE = "source"
    OVERLAY = "overlay"


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for one blend run."""

    # Raster
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT

    # Escape-time parameters
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    bailout: float = 4.0  # squared escape radius

    # Plane window: real = (x - W // center_divisor) / (W // scale_divisor)
    center_divisor: int = 2
    scale_divisor: int = 4

    # Compositing
    composite_mode: CompositeMode = CompositeMode.SOURCE
    overlay_opacity: int = 128

    def __post_init__(self):
        # Accept plain strings for the mode, e.g. straight from the CLI.
        object.__setattr__(self, "composite_mode", CompositeMode(self.composite_mode))
        self.validate()

    def validate(self):
        """Validate configuration parameters."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive")

        if self.bailout <= 0:
            raise ValueError("bailout must be positive")

        if self.center_divisor <= 0 or self.scale_divisor <= 0:
            raise ValueError("center_divisor and scale_divisor must be positive")

        if self.width // self.scale_divisor == 0 or self.height // self.scale_divisor == 0:
            raise ValueError(
                f"Raster {self.width}x{self.height} is too small for scale divisor {self.scale_divisor}"
            )

        if not 0 <= self.overlay_opacity <= 255:
            raise ValueError("overlay_opacity must be between 0 and 255")

    @property
    def shape(self) -> Tuple[int, int]:
        """Raster shape as (height, width)."""
        return (self.height, self.width)

    def to_dict(self) -> dict:
        """Convert configuration to a JSON-friendly dictionary."""
        return {
            "width": self.width,
            "height": self.height,
            "max_iterations": self.max_iterations,
            "bailout": self.bailout,
            "center_divisor": self.center_divisor,
            "scale_divisor": self.scale_divisor,
            "composite_mode": self.composite_mode.value,
            "overlay_opacity": self.overlay_opacity,
        }


@dataclass(frozen=True)
class Preset:
    """A named rendering job bound to one input image."""

    name: str
    source_path: Path

    def output_path(self, result_root: Path, strategy: str, ext: str = "png") -> Path:
        """Path of the rendered image for ``strategy`` under ``result_root``."""
        return Path(result_root) / self.name / f"mandelbrot_{strategy}.{ext}"


def default_presets(photos_dir: Path = DEFAULT_PHOTOS_DIR) -> Tuple[Preset, ...]:
    """The easy/normal/hard presets, in a fixed order."""
    photos_dir = Path(photos_dir)
    return tuple(Preset(name, photos_dir / f"{name}.png") for name in PRESET_NAMES)


DEFAULT_PRESETS = default_presets()
