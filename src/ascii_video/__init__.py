"""
ASCII Video
===========

Converts video files into colored character-art animations.

Each sampled frame is downsampled to a coarse grid; every cell gets a
character picked by luminance from a darkest-to-lightest ramp, plus the
cell's average color. The result is an ordered frame list, a nominal
fps and the original audio track, ready for a player.

Components:
    - conversion: Ramp, sampler, frame converter and batch driver
    - source: Decode cursor adapters (OpenCV, synthetic)
    - models: Frames, videos, job state and status
    - rendering: Text / ANSI / HTML render boundary
    - jobs: Background job manager with progress and cancellation
    - main: FastAPI service

Example:
    from ascii_video.conversion import CharacterRamp, ConversionDriver
    from ascii_video.source import OpenCVVideoSource

    driver = ConversionDriver(CharacterRamp.from_config("simple"))
    video = await driver.convert(OpenCVVideoSource.open("clip.mp4"), target_width=80)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
