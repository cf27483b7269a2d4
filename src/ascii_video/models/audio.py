"""
Audio Track Model
=================

Handle to the original audio of a converted video.

The audio is never decoded or re-encoded. The handle points at the
same media the frames were sampled from, so a player can start it
alongside frame 0 and stay on the same timeline.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True, slots=True)
class AudioTrack:
    """
    Playable reference to the source media's audio.

    Attributes:
        mime_type: Container MIME type (e.g. "video/mp4")
        path: Media file on disk, when the source was opened from a file
        data: Media bytes, when the source was loaded from memory
    """

    mime_type: str
    path: Optional[str] = None
    data: Optional[bytes] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.path is None and self.data is None:
            raise ValueError("AudioTrack needs a path or data")

    def read_bytes(self) -> bytes:
        """Raw media bytes containing the audio stream."""
        if self.data is not None:
            return self.data
        return Path(self.path).read_bytes()

    def to_dict(self) -> dict:
        return {
            "mime_type": self.mime_type,
            "path": self.path,
            "in_memory": self.data is not None,
        }
