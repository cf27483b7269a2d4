"""
Source Module
=============

Video/audio source adapters consumed by the conversion driver.

Components:
    - VideoSource: Protocol for decode cursors
    - OpenCVVideoSource: cv2.VideoCapture-backed source (production)
    - SyntheticVideoSource: Deterministic in-memory source (testing)
    - validate_upload: Size and type checks before decoding

Design Philosophy:
    Decoding is a pluggable black box. The driver steps a cursor and
    reads rasters; it never touches containers or codecs.
"""

from ascii_video.source.base import VideoSource, validate_upload
from ascii_video.source.opencv_source import OpenCVVideoSource
from ascii_video.source.synthetic import (
    SyntheticVideoSource,
    horizontal_gradient,
    solid_raster,
)

__all__ = [
    "VideoSource",
    "validate_upload",
    "OpenCVVideoSource",
    "SyntheticVideoSource",
    "solid_raster",
    "horizontal_gradient",
]
