"""
Job Status Schema
=================

Pydantic model reported to callers of the job manager and the HTTP API.

Status Contract:
    {
        "job_id": "3f2a...",
        "status": "converting",
        "progress": 42.5,
        "error": null,
        "preview": "data:image/jpeg;base64,...",
        "frames": null
    }

Status values:
    idle        - not running (never started, or cancelled)
    loading     - source is being opened
    converting  - frames are being sampled
    completed   - result available
    error       - load or conversion failed, see `error`
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ConversionStatus(str, Enum):
    """Caller-facing status of a conversion job."""

    IDLE = "idle"
    LOADING = "loading"
    CONVERTING = "converting"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ConversionStatus.IDLE,
            ConversionStatus.COMPLETED,
            ConversionStatus.ERROR,
        )


class JobStatus(BaseModel):
    """
    Snapshot of one job's progress.

    Attributes:
        job_id: Identifier returned when the job was started
        status: Current status
        progress: Percent complete (may exceed 100)
        error: Human-readable failure message
        preview: Most recent preview image as a data URL
        frames: Number of frames, once completed
    """

    job_id: str = Field(..., description="Job identifier")
    status: ConversionStatus = Field(
        default=ConversionStatus.IDLE,
        description="Current job status",
    )
    progress: float = Field(
        default=0.0,
        ge=0,
        description="Percent complete against the estimate, not clamped",
    )
    error: Optional[str] = Field(
        default=None,
        description="Failure message when status is 'error'",
    )
    preview: Optional[str] = Field(
        default=None,
        description="Latest low-quality preview as a data URL",
    )
    frames: Optional[int] = Field(
        default=None,
        ge=0,
        description="Frame count when status is 'completed'",
    )
