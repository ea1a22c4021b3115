"""
Image decoding and export for the blend pipeline.

This module is the persistence boundary: it decodes source images into
``SourceImage`` objects and writes finished rasters as lossless 8-bit RGBA
PNG files with the render metadata embedded as text chunks.
"""

import numpy as np
from typing import Dict, Any, Optional, Union
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from ..core.errors import DecodeError, EncodeError, InputOpenError, WriteError
from ..core.raster import SourceImage

logger = logging.getLogger(__name__)

METADATA_KEY = "MandelblendMetadata"
SOFTWARE_VERSION = "1.0.0"


@dataclass
class RenderMetadata:
    """Metadata for one rendered raster."""

    preset: str
    strategy: str
    elapsed_seconds: float
    resolution: tuple  # width, height
    max_iterations: int
    composite_mode: str

    # Parallel strategy details
    backend: Optional[str] = None
    workers: Optional[int] = None

    # Generation info
    timestamp: str = ""
    software_version: str = SOFTWARE_VERSION
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        self.resolution = tuple(self.resolution)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


def load_source_image(filepath: Union[str, Path]) -> SourceImage:
    """
    Open and decode a source image.

    Args:
        filepath: Path of any image format Pillow can read

    Returns:
        Decoded image as straight-alpha RGBA

    Raises:
        InputOpenError: the file is missing or unreadable
        DecodeError: the file is not a decodable image
    """
    filepath = Path(filepath)
    try:
        fh = open(filepath, "rb")
    except OSError as e:
        raise InputOpenError(f"Error opening file {filepath}: {e}") from e

    with fh:
        try:
            with Image.open(fh) as img:
                img.load()
                pixels = np.array(img.convert("RGBA"), dtype=np.uint8)
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Error decoding image {filepath}: {e}") from e

    logger.debug(f"Decoded {filepath}: {pixels.shape[1]}x{pixels.shape[0]}")
    return SourceImage(pixels)


class ImageExporter:
    """Lossless PNG export with metadata support."""

    def __init__(self, compression: Optional[str] = None):
        """
        Initialize image exporter.

        Args:
            compression: PNG compression hint ('none', 'fast', 'high'); default level 6
        """
        self.compress_level = self._compress_level(compression)

    @staticmethod
    def _compress_level(compression: Optional[str]) -> int:
        # PNG compression levels: 0 (no compression) to 9 (max compression)
        if not compression:
            return 6
        compression = compression.lower()
        if compression in ['none', '0']:
            return 0
        if compression in ['fast', 'low']:
            return 1
        if compression in ['high', 'max']:
            return 9
        raise ValueError(f"Unknown compression setting: {compression}")

    def save_raster(self, raster: np.ndarray, filepath: Union[str, Path],
                    metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save an RGBA raster as PNG with metadata.

        Args:
            raster: RGBA8 array (height, width, 4)
            filepath: Output file path; parent directories are created
            metadata: Render metadata to embed

        Returns:
            The written path

        Raises:
            WriteError: the file or its directory cannot be created
            EncodeError: the raster cannot be encoded
        """
        filepath = Path(filepath)
        if filepath.suffix.lower() != '.png':
            raise ValueError(f"Unsupported format '{filepath.suffix}'. Supported: .png")

        pil_image = Image.fromarray(self._prepare_raster(raster))

        pnginfo = PngImagePlugin.PngInfo()
        if metadata:
            pnginfo.add_text("Title", f"Mandelbrot blend: {metadata.preset} ({metadata.strategy})")
            pnginfo.add_text("Software", f"mandelblend v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            fh = open(filepath, "wb")
        except OSError as e:
            raise WriteError(f"Error creating file {filepath}: {e}") from e

        try:
            with fh:
                pil_image.save(fh, "PNG", pnginfo=pnginfo, compress_level=self.compress_level)
        except (OSError, ValueError) as e:
            filepath.unlink(missing_ok=True)
            raise EncodeError(f"Error encoding PNG {filepath}: {e}") from e

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    def _prepare_raster(self, raster: np.ndarray) -> np.ndarray:
        """Validate raster array for export."""
        if raster.ndim != 3 or raster.shape[2] != 4:
            raise ValueError(f"Expected RGBA raster (H, W, 4), got {raster.shape}")
        if raster.dtype != np.uint8:
            raise ValueError(f"Expected uint8 raster, got {raster.dtype}")
        return np.ascontiguousarray(raster)

    def extract_metadata(self, filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None
        """
        filepath = Path(filepath)

        try:
            with Image.open(filepath) as img:
                text = getattr(img, 'text', {})
                if METADATA_KEY in text:
                    return RenderMetadata.from_json(text[METADATA_KEY])
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Could not extract metadata from {filepath}: {e}")

        return None

    def get_image_info(self, filepath: Union[str, Path]) -> Dict[str, Any]:
        """
        Get information about a rendered image file.

        Args:
            filepath: Path to image file

        Returns:
            Dictionary with image information
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Image file not found: {filepath}")

        info = {
            'filepath': str(filepath),
            'size_bytes': filepath.stat().st_size,
            'format': None,
            'dimensions': None,
            'mode': None,
            'render_metadata': None,
        }

        try:
            with Image.open(filepath) as img:
                info['format'] = img.format
                info['dimensions'] = img.size
                info['mode'] = img.mode
        except OSError as e:
            logger.error(f"Error reading image {filepath}: {e}")
            info['error'] = str(e)
            return info

        metadata = self.extract_metadata(filepath)
        if metadata:
            info['render_metadata'] = metadata.to_dict()

        return info
