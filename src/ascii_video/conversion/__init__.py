"""
Conversion Module
=================

Frame-to-ASCII conversion pipeline.

Components:
    - CharacterRamp: Brightness -> character lookup (+ named presets)
    - sample_cell / sample_grid: Sparse per-cell brightness and color
    - FrameConverter: Raster -> AsciiFrame
    - ConversionDriver: Batch job over a VideoSource with progress,
      previews and cooperative cancellation
    - CancellationToken: Polled cancellation flag
    - PreviewEncoder: Low-quality JPEG data URLs
"""

from ascii_video.conversion.cancellation import CancellationToken
from ascii_video.conversion.converter import FrameConverter, derive_target_height
from ascii_video.conversion.driver import ConversionDriver, estimate_total_steps
from ascii_video.conversion.preview import PreviewEncoder, PreviewEncodeError
from ascii_video.conversion.ramp import PRESETS, CharacterRamp
from ascii_video.conversion.sampler import sample_cell, sample_grid

__all__ = [
    "PRESETS",
    "CharacterRamp",
    "sample_cell",
    "sample_grid",
    "FrameConverter",
    "derive_target_height",
    "ConversionDriver",
    "estimate_total_steps",
    "CancellationToken",
    "PreviewEncoder",
    "PreviewEncodeError",
]
