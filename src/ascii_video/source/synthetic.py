"""
Synthetic Video Source
======================

Deterministic in-memory video source.

Generates rasters from a time -> raster function (or a solid color)
without any decoding. This ensures:
    - Reproducible conversion results across runs
    - Fast, dependency-free driver tests
    - Controlled failure injection at a chosen timestamp

Also backs the 'synthetic' source backend of the service, useful for
exercising the API without real media.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

import numpy as np

from ascii_video.errors import FrameDecodeError, SourceLoadError
from ascii_video.models.audio import AudioTrack


logger = logging.getLogger(__name__)


RasterFn = Callable[[float], np.ndarray]


def solid_raster(width: int, height: int, color: Tuple[int, int, int]) -> np.ndarray:
    """RGBA raster filled with one opaque color."""
    raster = np.empty((height, width, 4), dtype=np.uint8)
    raster[:, :, :3] = color
    raster[:, :, 3] = 255
    return raster


def horizontal_gradient(width: int, height: int) -> np.ndarray:
    """RGBA grey ramp from black (left) to white (right)."""
    ramp = np.linspace(0, 255, width).round().astype(np.uint8)
    raster = np.empty((height, width, 4), dtype=np.uint8)
    raster[:, :, :3] = ramp[None, :, None]
    raster[:, :, 3] = 255
    return raster


class SyntheticVideoSource:
    """
    In-memory VideoSource with deterministic content.

    Attributes:
        seek_history: Every timestamp passed to seek(), in order
        closed: Whether close() has been called

    Example:
        source = SyntheticVideoSource(width=64, height=48, duration=2.0)
        video = await driver.convert(source, target_width=4)
    """

    def __init__(
        self,
        width: int = 64,
        height: int = 48,
        duration: float = 2.0,
        native_frame_rate: float = 30.0,
        color: Tuple[int, int, int] = (0, 0, 0),
        raster_fn: Optional[RasterFn] = None,
        fail_at: Optional[float] = None,
        seek_delay: float = 0.0,
        audio: Optional[AudioTrack] = None,
    ) -> None:
        """
        Initialize synthetic source.

        Args:
            width: Raster width in pixels
            height: Raster height in pixels
            duration: Length in seconds
            native_frame_rate: Reported container frame rate
            color: Solid color used when raster_fn is None
            raster_fn: Optional time -> RGBA raster function
            fail_at: Seeks at or beyond this time raise FrameDecodeError
            seek_delay: Seconds each seek suspends for
            audio: Audio handle to report
        """
        if width <= 0 or height <= 0:
            raise SourceLoadError(f"Invalid dimensions: {width}x{height}")
        if duration <= 0:
            raise SourceLoadError(f"Invalid duration: {duration}")

        self._width = width
        self._height = height
        self._duration = duration
        self._native_frame_rate = native_frame_rate
        self._raster_fn = raster_fn or (lambda _t: solid_raster(width, height, color))
        self._fail_at = fail_at
        self._seek_delay = seek_delay
        self._audio = audio

        self._current_time = 0.0
        self._raster: Optional[np.ndarray] = None
        self.seek_history: List[float] = []
        self.closed = False

    @property
    def native_width(self) -> int:
        return self._width

    @property
    def native_height(self) -> int:
        return self._height

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def native_frame_rate(self) -> float:
        return self._native_frame_rate

    @property
    def current_time(self) -> float:
        return self._current_time

    async def seek(self, timestamp: float) -> None:
        self.seek_history.append(timestamp)
        await asyncio.sleep(self._seek_delay)

        if self._fail_at is not None and timestamp >= self._fail_at:
            raise FrameDecodeError(
                f"Synthetic decode failure at {timestamp:.3f}s",
                timestamp=timestamp,
            )

        self._current_time = min(timestamp, self._duration)
        self._raster = None

    def current_raster(self) -> np.ndarray:
        if self._raster is None:
            raster = self._raster_fn(self._current_time)
            if raster.shape[:2] != (self._height, self._width):
                raise FrameDecodeError(
                    f"Synthetic raster has shape {raster.shape[:2]}, "
                    f"expected {(self._height, self._width)}",
                    timestamp=self._current_time,
                )
            self._raster = raster
        return self._raster

    def audio_handle(self) -> Optional[AudioTrack]:
        return self._audio

    def close(self) -> None:
        self._raster = None
        self.closed = True
