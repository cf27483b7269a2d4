"""
Video Source Protocol
=====================

Capability interface over a stateful, order-sensitive decode cursor.

The conversion driver only talks to this protocol, so its algorithm
can run against a deterministic in-memory source as well as a real
media pipeline.

Contract:
    - seek(t) suspends until the frame visible at t is decoded
    - current_time reflects the last settled seek
    - current_raster() returns the frame at current_time, RGBA uint8
    - seek/current_raster raise FrameDecodeError on per-frame failure
    - Opening a source raises SourceLoadError (never FrameDecodeError)

Design Rules:
    - One owner at a time; no concurrent readers
    - Seeks are strictly sequential, never overlapping
    - There is no timeout on a seek; a decoder that never settles stalls the job
"""

from pathlib import Path
from typing import Iterable, Optional, Protocol

import numpy as np

from ascii_video.errors import SourceLoadError
from ascii_video.models.audio import AudioTrack


class VideoSource(Protocol):
    """
    Protocol for decode cursors consumed by the ConversionDriver.

    Implemented by:
        - OpenCVVideoSource (files and uploaded bytes)
        - SyntheticVideoSource (deterministic, in-memory)
    """

    @property
    def native_width(self) -> int:
        ...

    @property
    def native_height(self) -> int:
        ...

    @property
    def duration(self) -> float:
        ...

    @property
    def native_frame_rate(self) -> float:
        ...

    @property
    def current_time(self) -> float:
        ...

    async def seek(self, timestamp: float) -> None:
        """Move the cursor and wait until the frame at timestamp is decoded."""
        ...

    def current_raster(self) -> np.ndarray:
        """Frame visible at current_time, shape (H, W, 4) RGBA uint8."""
        ...

    def audio_handle(self) -> Optional[AudioTrack]:
        """Passthrough audio of the same media, if any."""
        ...

    def close(self) -> None:
        """Release decoder resources. Idempotent."""
        ...


def validate_upload(
    filename: str,
    size_bytes: int,
    max_file_size_mb: float,
    allowed_extensions: Iterable[str],
) -> None:
    """
    Reject uploads before any decoding is attempted.

    Args:
        filename: Client-supplied file name
        size_bytes: Upload size in bytes
        max_file_size_mb: Size limit in megabytes
        allowed_extensions: Accepted suffixes, e.g. [".mp4"]

    Raises:
        SourceLoadError: Empty, oversized, or unsupported file
    """
    if size_bytes <= 0:
        raise SourceLoadError("Uploaded file is empty.")

    suffix = Path(filename).suffix.lower()
    allowed = {ext.lower() for ext in allowed_extensions}
    if suffix not in allowed:
        raise SourceLoadError(
            f"Unsupported file type '{suffix or filename}'. "
            f"Allowed: {', '.join(sorted(allowed))}."
        )

    if size_bytes > max_file_size_mb * 1024 * 1024:
        raise SourceLoadError(f"File size exceeds {max_file_size_mb:g}MB limit.")
