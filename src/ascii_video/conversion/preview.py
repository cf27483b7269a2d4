"""
Preview Encoder
===============

Cheap, low-fidelity previews of the raster currently being converted.

Previews are downscaled and JPEG-encoded at low quality, then returned
as a data URL so any caller (browser, API client) can display them
without a second request.
"""

import base64
import logging

import cv2
import numpy as np

from ascii_video.errors import AsciiVideoError


logger = logging.getLogger(__name__)


class PreviewEncodeError(AsciiVideoError):
    """Raised when a preview image cannot be encoded."""
    pass


class PreviewEncoder:
    """
    Raster to JPEG data URL.

    Attributes:
        quality: JPEG quality 1..100
        max_width: Rasters wider than this are downscaled first
    """

    def __init__(self, quality: int = 30, max_width: int = 320) -> None:
        if not 1 <= quality <= 100:
            raise ValueError("quality must be in [1, 100]")
        if max_width < 1:
            raise ValueError("max_width must be >= 1")

        self.quality = quality
        self.max_width = max_width

    def encode(self, raster: np.ndarray) -> str:
        """
        Encode a raster as a JPEG data URL.

        Args:
            raster: RGB(A) image, shape (H, W, C), dtype uint8

        Returns:
            "data:image/jpeg;base64,..." string
        """
        if raster.shape[2] == 4:
            bgr = cv2.cvtColor(raster, cv2.COLOR_RGBA2BGR)
        else:
            bgr = cv2.cvtColor(raster, cv2.COLOR_RGB2BGR)

        height, width = bgr.shape[:2]
        if width > self.max_width:
            scale = self.max_width / width
            size = (self.max_width, max(1, int(round(height * scale))))
            bgr = cv2.resize(bgr, size, interpolation=cv2.INTER_AREA)

        ok, buffer = cv2.imencode(
            ".jpg",
            bgr,
            [int(cv2.IMWRITE_JPEG_QUALITY), self.quality],
        )
        if not ok:
            raise PreviewEncodeError(f"cv2.imencode failed for raster {width}x{height}")

        return "data:image/jpeg;base64," + base64.b64encode(buffer.tobytes()).decode()
