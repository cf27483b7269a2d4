"""
Frame Converter
===============

Turns one decoded raster into one AsciiFrame.

For each cell in row-major order:
    1. Cell origin in source space = (x * x_step, y * y_step)
    2. Sample brightness and color (see sampler)
    3. Map brightness to a character (see ramp)
    4. Store character and color at index y * width + x

Grid height is derived once per job from the source aspect ratio,
halved because terminal/monospace cells are about twice as tall as
they are wide.
"""

import math

import numpy as np

from ascii_video.conversion.ramp import CharacterRamp
from ascii_video.conversion.sampler import sample_grid
from ascii_video.models.frame import AsciiFrame


CHARACTER_ASPECT = 0.5


def derive_target_height(target_width: int, source_width: int, source_height: int) -> int:
    """
    Grid height for a grid width, preserving the source aspect ratio.

    Never less than 1 so very wide sources still produce a row.
    """
    if source_width <= 0 or source_height <= 0:
        raise ValueError(f"Invalid source dimensions: {source_width}x{source_height}")

    aspect_ratio = source_height / source_width
    return max(1, math.floor(target_width * aspect_ratio * CHARACTER_ASPECT))


class FrameConverter:
    """
    Raster to AsciiFrame conversion with a fixed character ramp.

    Example:
        converter = FrameConverter(CharacterRamp(" .#"))
        frame = converter.to_ascii(raster, 80, 22)
    """

    def __init__(self, ramp: CharacterRamp) -> None:
        self.ramp = ramp

    def to_ascii(self, raster: np.ndarray, target_width: int, target_height: int) -> AsciiFrame:
        """
        Convert one raster.

        Args:
            raster: RGB(A) image, shape (H, W, C), dtype uint8
            target_width: Grid width in cells (>= 1)
            target_height: Grid height in cells (>= 1)

        Returns:
            AsciiFrame of exactly target_width * target_height cells
        """
        if target_width < 1 or target_height < 1:
            raise ValueError(f"Invalid grid size: {target_width}x{target_height}")
        if raster.ndim != 3 or raster.shape[2] < 3:
            raise ValueError(f"Expected an RGB(A) raster, got shape {raster.shape}")

        brightness, colors = sample_grid(raster, target_width, target_height)
        characters = self.ramp.chars_for(brightness).ravel().tolist()
        color_triples = [tuple(rgb) for rgb in colors.reshape(-1, 3).tolist()]

        return AsciiFrame(
            width=target_width,
            height=target_height,
            characters=tuple(characters),
            colors=tuple(color_triples),
        )
