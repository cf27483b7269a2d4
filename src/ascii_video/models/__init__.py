"""
Data Models
===========

Models for the ASCII video converter.

This module re-exports all data models for convenient access.

Models:
    Frames:
        - CellSample: Aggregate brightness and color of one cell
        - AsciiFrame: Grid of characters and colors
        - AsciiVideo: Ordered frames, nominal fps, audio handle

    Audio:
        - AudioTrack: Passthrough handle to the source audio

    Job:
        - JobState: Driver lifecycle (NOT_STARTED ... COMPLETED)
        - ConversionJob: Transient per-run bookkeeping

    Status:
        - ConversionStatus: Caller-facing status values
        - JobStatus: Progress snapshot served by the API
"""

from ascii_video.models.audio import AudioTrack
from ascii_video.models.frame import RGB, AsciiFrame, AsciiVideo, CellSample, format_rgb
from ascii_video.models.job import ConversionJob, JobState
from ascii_video.models.status import ConversionStatus, JobStatus

__all__ = [
    # Frames
    "RGB",
    "CellSample",
    "AsciiFrame",
    "AsciiVideo",
    "format_rgb",
    # Audio
    "AudioTrack",
    # Job
    "JobState",
    "ConversionJob",
    # Status
    "ConversionStatus",
    "JobStatus",
]
