"""
Conversion Job Models
=====================

Transient state of one conversion run, owned by the ConversionDriver.

State machine:
    NOT_STARTED -> SAMPLING -> {COMPLETED | CANCELLED | FAILED}

Terminal states are final. Any other transition is a programming
error and raises ValueError.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class JobState(str, Enum):
    """
    Lifecycle states of a conversion job.

    Attributes:
        NOT_STARTED: Created, cursor not yet positioned
        SAMPLING: Stepping through the source
        COMPLETED: Cursor reached the end of the source
        CANCELLED: Stopped by the cancellation token, partial work discarded
        FAILED: A step failed, no frames returned
    """

    NOT_STARTED = "NOT_STARTED"
    SAMPLING = "SAMPLING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED)


_TRANSITIONS = {
    JobState.NOT_STARTED: {JobState.SAMPLING, JobState.FAILED},
    JobState.SAMPLING: {JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED},
}


@dataclass
class ConversionJob:
    """
    Mutable bookkeeping for one conversion run.

    Attributes:
        total_steps: Estimated number of steps, used only for progress
        cursor: Current decode position in seconds
        processed_frames: Frames converted so far
        state: Current lifecycle state
    """

    total_steps: int
    cursor: float = 0.0
    processed_frames: int = 0
    state: JobState = JobState.NOT_STARTED
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def progress(self) -> float:
        """
        Percent complete against the estimate.

        Not clamped: exceeds 100 when the estimate undershoots.
        """
        return self.processed_frames / self.total_steps * 100

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    def transition(self, new_state: JobState) -> None:
        """Move to a new state, rejecting illegal transitions."""
        allowed = _TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(f"Illegal job transition: {self.state.value} -> {new_state.value}")

        self.state = new_state
        if new_state == JobState.SAMPLING:
            self.started_at = time.time()
        elif new_state.is_terminal:
            self.finished_at = time.time()
