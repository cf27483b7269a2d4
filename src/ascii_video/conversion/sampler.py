"""
Frame Sampler
=============

Per-cell brightness and color aggregation over a decoded raster.

Sampling:
    - Each cell covers a footprint of floor(W / tw) x floor(H / th) pixels
    - Only every 2nd pixel in both axes is read (accuracy/speed tradeoff)
    - Brightness = mean luminance, 0.299 R + 0.587 G + 0.114 B
    - Color = per-channel mean, floored to integers

Edge policy:
    A footprint with zero samples resolves to brightness 0 and white.
    Integer division leaves the last row/column of source pixels
    under-sampled; this is accepted, not corrected.

Luminance is accumulated with integer weights (299, 587, 114) / 1000,
so solid black and solid white land exactly on 0 and 255.

Rasters are numpy arrays of shape (H, W, 3) or (H, W, 4) in RGB(A)
channel order, dtype uint8. Alpha is ignored.
"""

import logging
from typing import Tuple

import numpy as np

from ascii_video.models.frame import WHITE, CellSample


logger = logging.getLogger(__name__)


SAMPLE_STRIDE = 2

LUMA_WEIGHTS = np.array([299, 587, 114], dtype=np.int64)
LUMA_SCALE = 1000


def cell_steps(raster: np.ndarray, target_width: int, target_height: int) -> Tuple[int, int]:
    """Footprint size (x_step, y_step) of one cell in source pixels."""
    height, width = raster.shape[:2]
    return width // target_width, height // target_height


def sample_cell(
    raster: np.ndarray,
    origin_x: int,
    origin_y: int,
    cell_width: int,
    cell_height: int,
) -> CellSample:
    """
    Aggregate one cell's footprint.

    Args:
        raster: RGB(A) image, shape (H, W, C)
        origin_x: Left edge of the footprint in source pixels
        origin_y: Top edge of the footprint in source pixels
        cell_width: Footprint width in source pixels
        cell_height: Footprint height in source pixels

    Returns:
        CellSample with mean brightness and floored mean color
    """
    height, width = raster.shape[:2]
    block = raster[
        origin_y:min(origin_y + cell_height, height):SAMPLE_STRIDE,
        origin_x:min(origin_x + cell_width, width):SAMPLE_STRIDE,
        :3,
    ]

    count = block.shape[0] * block.shape[1]
    if count == 0:
        return CellSample(brightness=0.0, color=WHITE)

    totals = block.reshape(-1, 3).astype(np.int64).sum(axis=0)
    brightness = int(totals @ LUMA_WEIGHTS) / (LUMA_SCALE * count)
    r, g, b = (int(total) // count for total in totals)

    return CellSample(brightness=brightness, color=(r, g, b))


def sample_grid(
    raster: np.ndarray,
    target_width: int,
    target_height: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Aggregate every cell of a target grid at once.

    Produces exactly what sample_cell would for each cell origin
    (x * x_step, y * y_step), using one gather instead of a Python
    loop per cell.

    Args:
        raster: RGB(A) image, shape (H, W, C)
        target_width: Grid width in cells
        target_height: Grid height in cells

    Returns:
        Tuple of (brightness, colors):
            brightness: float64 array (target_height, target_width)
            colors: int64 array (target_height, target_width, 3)
    """
    x_step, y_step = cell_steps(raster, target_width, target_height)

    if x_step == 0 or y_step == 0:
        logger.debug(
            f"Degenerate cell footprint {x_step}x{y_step}, "
            f"falling back to defaults for all cells"
        )
        brightness = np.zeros((target_height, target_width), dtype=np.float64)
        colors = np.full((target_height, target_width, 3), 255, dtype=np.int64)
        return brightness, colors

    # (target_height, samples_y) and (target_width, samples_x) source coordinates
    rows = (
        np.arange(target_height)[:, None] * y_step
        + np.arange(0, y_step, SAMPLE_STRIDE)[None, :]
    )
    cols = (
        np.arange(target_width)[:, None] * x_step
        + np.arange(0, x_step, SAMPLE_STRIDE)[None, :]
    )

    # Gather -> (target_height, samples_y, target_width, samples_x, 3)
    block = raster[rows[:, :, None, None], cols[None, None, :, :], :3]
    count = rows.shape[1] * cols.shape[1]

    totals = block.astype(np.int64).sum(axis=(1, 3))
    brightness = (totals @ LUMA_WEIGHTS) / (LUMA_SCALE * count)
    colors = totals // count

    return brightness, colors
