"""
Test Configuration
==================

Pytest fixtures and test configuration for the ASCII video converter.
"""

from pathlib import Path

import numpy as np
import pytest


@pytest.fixture
def ramp():
    """Provide a three-character ramp."""
    from ascii_video.conversion.ramp import CharacterRamp

    return CharacterRamp(" .#")


@pytest.fixture
def black_raster():
    """Provide a solid black 64x48 RGBA raster."""
    from ascii_video.source.synthetic import solid_raster

    return solid_raster(64, 48, (0, 0, 0))


@pytest.fixture
def white_raster():
    """Provide a solid white 64x48 RGBA raster."""
    from ascii_video.source.synthetic import solid_raster

    return solid_raster(64, 48, (255, 255, 255))


@pytest.fixture
def random_raster():
    """Provide a reproducible noisy 37x53 RGBA raster."""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(37, 53, 4), dtype=np.uint8)


@pytest.fixture
def conversion_config():
    """Provide default conversion settings."""
    from ascii_video.config import ConversionConfig

    return ConversionConfig()


@pytest.fixture
def source_config():
    """Provide default source settings."""
    from ascii_video.config import SourceConfig

    return SourceConfig()


@pytest.fixture
def sample_video_path(tmp_path) -> Path:
    """
    Write a 1-second, 30fps, 64x48 solid grey MJPG video.

    Skips the test if the local OpenCV build cannot encode it.
    """
    import cv2

    path = tmp_path / "grey.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 30.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")

    frame = np.full((48, 64, 3), 128, dtype=np.uint8)
    for _ in range(30):
        writer.write(frame)
    writer.release()

    if not path.exists() or path.stat().st_size == 0:
        pytest.skip("OpenCV build produced no video file")
    return path
