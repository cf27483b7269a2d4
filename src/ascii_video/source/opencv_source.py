"""
OpenCV Video Source
===================

VideoSource backed by cv2.VideoCapture.

This is the ONLY place in the codebase that decodes video.

Design Rules:
    - Blocking decoder calls run in a worker thread (asyncio.to_thread)
    - A seek settles only once the frame visible at that time is decoded
    - Sequential seeks read forward without repositioning the decoder
    - Rasters are returned as RGBA uint8, matching the sampler's input
    - Load failures raise SourceLoadError, step failures FrameDecodeError

Duration is CAP_PROP_FRAME_COUNT / CAP_PROP_FPS. Some containers only
estimate the frame count, so a failed read within the last second of
the reported count ends the stream early instead of failing the job.
"""

import asyncio
import logging
import math
import mimetypes
import os
import tempfile
from typing import Optional

import cv2
import numpy as np

from ascii_video.errors import FrameDecodeError, SourceLoadError
from ascii_video.models.audio import AudioTrack


logger = logging.getLogger(__name__)


class OpenCVVideoSource:
    """
    Decode cursor over a video file.

    Use `open()` for a file on disk or `load()` for uploaded bytes.
    Bytes are spooled to a temporary file that close() removes.

    Example:
        source = OpenCVVideoSource.open("clip.mp4")
        try:
            await source.seek(1.5)
            raster = source.current_raster()
        finally:
            source.close()
    """

    def __init__(
        self,
        path: str,
        data: Optional[bytes] = None,
        owns_file: bool = False,
    ) -> None:
        """
        Open a video file. Prefer the open()/load() constructors.

        Args:
            path: Video file path
            data: Original bytes when loaded from memory (kept for audio)
            owns_file: Delete path on close()

        Raises:
            SourceLoadError: If the file cannot be opened or has no frames
        """
        self._path = path
        self._data = data
        self._owns_file = owns_file
        self._capture = cv2.VideoCapture(path)

        if not self._capture.isOpened():
            self.close()
            raise SourceLoadError(f"Failed to load video: cannot open {os.path.basename(path)}")

        self._width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._fps = float(self._capture.get(cv2.CAP_PROP_FPS))
        self._frame_count = int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT))

        if self._width <= 0 or self._height <= 0:
            self.close()
            raise SourceLoadError(f"Failed to load video: invalid dimensions {self._width}x{self._height}")
        if self._fps <= 0 or self._frame_count <= 0:
            self.close()
            raise SourceLoadError(
                f"Failed to load video: no frames (fps={self._fps}, frames={self._frame_count})"
            )

        self._duration = self._frame_count / self._fps
        self._current_time = 0.0
        self._next_index = 0
        self._frame: Optional[np.ndarray] = None

        logger.info(
            f"Video loaded: {self._width}x{self._height}, "
            f"{self._fps:.2f}fps, {self._frame_count} frames, "
            f"duration={self._duration:.2f}s"
        )

    @classmethod
    def open(cls, path: str) -> "OpenCVVideoSource":
        """Open a video file on disk."""
        if not os.path.isfile(path):
            raise SourceLoadError(f"Failed to load video: {path} does not exist")
        return cls(path)

    @classmethod
    def load(
        cls,
        data: bytes,
        suffix: str = ".mp4",
        work_dir: Optional[str] = None,
    ) -> "OpenCVVideoSource":
        """
        Load a video from bytes.

        Args:
            data: Encoded video bytes
            suffix: File suffix hinting the container format
            work_dir: Directory for the spooled file (None = system temp)
        """
        if not data:
            raise SourceLoadError("Failed to load video: empty input")

        fd, path = tempfile.mkstemp(suffix=suffix, dir=work_dir)
        with os.fdopen(fd, "wb") as f:
            f.write(data)

        return cls(path, data=data, owns_file=True)

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
        return self._fps

    @property
    def current_time(self) -> float:
        return self._current_time

    async def seek(self, timestamp: float) -> None:
        """
        Move to timestamp and decode the frame visible there.

        Seeking to or past the end settles immediately at duration, and
        so does a seek that runs off the real end of a stream whose
        container overstated its frame count.
        """
        if timestamp >= self._duration:
            self._current_time = self._duration
            return

        frame = await asyncio.to_thread(self._decode_at, timestamp)
        if frame is None:
            logger.warning(
                f"Stream ended at {timestamp:.3f}s, before the reported "
                f"duration of {self._duration:.3f}s"
            )
            self._current_time = self._duration
            return

        self._frame = frame
        self._current_time = timestamp

    def _decode_at(self, timestamp: float) -> Optional[np.ndarray]:
        """
        Blocking decode of the frame visible at timestamp.

        Returns None when the read fails within the last second of the
        reported frame count, after at least one frame was decoded.
        """
        if self._capture is None:
            raise FrameDecodeError("Video source is closed", timestamp=timestamp)

        index = min(math.floor(timestamp * self._fps + 1e-6), self._frame_count - 1)
        index = max(index, 0)

        # Reposition only when the wanted frame is not the next one in the stream
        if index != self._next_index:
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, index)
            self._next_index = index

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            tail_frames = max(1, round(self._fps))
            if self._frame is not None and index >= self._frame_count - tail_frames:
                return None
            raise FrameDecodeError(
                f"Failed to decode frame {index} at {timestamp:.3f}s",
                timestamp=timestamp,
            )
        self._next_index = index + 1

        if bgr.ndim != 3 or bgr.shape[2] != 3:
            raise FrameDecodeError(
                f"Invalid frame shape at {timestamp:.3f}s: {bgr.shape}",
                timestamp=timestamp,
            )

        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)

    def current_raster(self) -> np.ndarray:
        if self._frame is None:
            raise FrameDecodeError(
                f"No decoded frame at {self._current_time:.3f}s",
                timestamp=self._current_time,
            )
        return self._frame

    def audio_handle(self) -> Optional[AudioTrack]:
        mime_type = mimetypes.guess_type(self._path)[0] or "application/octet-stream"
        if self._data is not None:
            return AudioTrack(mime_type=mime_type, data=self._data)
        return AudioTrack(mime_type=mime_type, path=self._path)

    def close(self) -> None:
        if getattr(self, "_capture", None) is not None:
            self._capture.release()
            self._capture = None
        self._frame = None

        if self._owns_file and os.path.exists(self._path):
            try:
                os.remove(self._path)
            except OSError as e:
                logger.warning(f"Failed to remove spooled video {self._path}: {e}")
            self._owns_file = False
