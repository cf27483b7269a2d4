"""
Error Types
===========

Exception hierarchy for the conversion pipeline.

Taxonomy:
    - SourceLoadError: the source could not be opened at all
    - FrameDecodeError: one timestamp could not be sampled
    - ConversionError: a job aborted because a step failed
    - InvalidRampError: an empty character set was supplied
    - JobNotFoundError: unknown job id
    - JobNotReadyError: result requested before completion

Cancellation is NOT an error. A cancelled job returns an empty
AsciiVideo and never raises.
"""

from typing import Optional


class AsciiVideoError(Exception):
    """Base class for all converter errors."""
    pass


class SourceLoadError(AsciiVideoError):
    """Raised when a video source cannot be opened or decoded at all."""
    pass


class FrameDecodeError(AsciiVideoError):
    """Raised when the frame visible at a timestamp cannot be decoded."""

    def __init__(self, message: str, timestamp: Optional[float] = None) -> None:
        super().__init__(message)
        self.timestamp = timestamp


class ConversionError(AsciiVideoError):
    """Raised when a conversion job aborts. No partial frames are returned."""
    pass


class InvalidRampError(AsciiVideoError, ValueError):
    """Raised when a character ramp is empty."""
    pass


class JobNotFoundError(AsciiVideoError, KeyError):
    """Raised when a job id is unknown to the job manager."""

    def __str__(self) -> str:
        return f"Unknown job: {self.args[0]}" if self.args else "Unknown job"


class JobNotReadyError(AsciiVideoError):
    """Raised when a job's result is requested before it completed."""
    pass
