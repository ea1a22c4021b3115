"""
Exception hierarchy for the blend pipeline.

Every error raised here is local to the processing of one preset: the
orchestration layer catches ``MandelblendError`` and reports the failure
without disturbing the other presets.
"""

from typing import List, Optional

import numpy as np


class MandelblendError(Exception):
    """Base class for all pipeline errors."""


class InputOpenError(MandelblendError):
    """Source image file is missing or cannot be opened."""


class DecodeError(MandelblendError):
    """Source image data is malformed or has unexpected dimensions."""


class EncodeError(MandelblendError):
    """Raster could not be encoded to the output format."""


class WriteError(MandelblendError):
    """Output file or its directory could not be created."""


class RenderError(MandelblendError):
    """
    One or more parallel units of work failed.

    The join barrier still releases when a unit fails; the partially
    filled raster is attached so callers can inspect what was computed.
    """

    def __init__(self, message: str, failed_columns: Optional[List[int]] = None,
                 raster: Optional[np.ndarray] = None):
        super().__init__(message)
        self.failed_columns = failed_columns or []
        self.raster = raster
