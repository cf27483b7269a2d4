"""
ASCII Frame Models
==================

Data models for converted frames and the finished ASCII video.

Output Contract (per frame):
    {
        "width": 4,
        "height": 1,
        "characters": [" ", ".", "#", "@"],
        "colors": ["rgb(0, 0, 0)", "rgb(80, 80, 80)", ...]
    }

Design Rules:
    - characters and colors are flat and row-major (index = y * width + x)
    - Colors are kept as RGB triples and formatted only at the boundary
    - Frames are immutable once produced
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ascii_video.models.audio import AudioTrack


RGB = Tuple[int, int, int]

WHITE: RGB = (255, 255, 255)


def format_rgb(color: RGB) -> str:
    """Format an RGB triple as a CSS color string."""
    r, g, b = color
    return f"rgb({r}, {g}, {b})"


@dataclass(frozen=True, slots=True)
class CellSample:
    """
    Aggregate of the sparse pixel subsample inside one cell.

    Attributes:
        brightness: Mean luminance in [0, 255]
        color: Mean RGB, each channel floored to an integer
    """

    brightness: float
    color: RGB


@dataclass(frozen=True, slots=True)
class AsciiFrame:
    """
    One converted frame: a grid of characters plus a grid of colors.

    Attributes:
        width: Grid width in cells
        height: Grid height in cells
        characters: width * height characters, row-major
        colors: width * height RGB triples, same indexing
    """

    width: int
    height: int
    characters: Tuple[str, ...]
    colors: Tuple[RGB, ...]

    def __post_init__(self) -> None:
        expected = self.width * self.height
        if len(self.characters) != expected or len(self.colors) != expected:
            raise ValueError(
                f"AsciiFrame {self.width}x{self.height} needs {expected} cells, "
                f"got {len(self.characters)} characters and {len(self.colors)} colors"
            )

    def __repr__(self) -> str:
        return f"AsciiFrame(width={self.width}, height={self.height})"

    def cell(self, x: int, y: int) -> Tuple[str, RGB]:
        """Character and color at grid position (x, y)."""
        index = y * self.width + x
        return self.characters[index], self.colors[index]

    def color_at(self, index: int) -> str:
        return format_rgb(self.colors[index])

    def css_colors(self) -> List[str]:
        return [format_rgb(color) for color in self.colors]

    def lines(self) -> List[str]:
        """Rows of the character grid as plain strings."""
        return [
            "".join(self.characters[y * self.width:(y + 1) * self.width])
            for y in range(self.height)
        ]

    def to_dict(self) -> dict:
        """Export with string colors, the format a player consumes."""
        return {
            "width": self.width,
            "height": self.height,
            "characters": list(self.characters),
            "colors": self.css_colors(),
        }


@dataclass(frozen=True, slots=True)
class AsciiVideo:
    """
    Finished conversion result handed to the player.

    fps is nominal (native rate / frame skip), never measured.
    frames is empty only when the job was cancelled.

    Attributes:
        frames: Frames in playback order
        fps: Playback rate of the frame sequence
        audio: Original audio track, passed through unmodified
    """

    frames: Tuple[AsciiFrame, ...]
    fps: float
    audio: Optional[AudioTrack] = None

    def __repr__(self) -> str:
        return (
            f"AsciiVideo(frames={len(self.frames)}, fps={self.fps:.2f}, "
            f"audio={'yes' if self.audio else 'no'})"
        )

    @property
    def duration(self) -> float:
        """Playback duration in seconds."""
        return len(self.frames) / self.fps

    def frame_at(self, seconds: float) -> Optional[AsciiFrame]:
        """Frame visible at a playback time, None past the end."""
        index = math.floor(seconds * self.fps)
        if index < 0 or index >= len(self.frames):
            return None
        return self.frames[index]

    def to_dict(self) -> dict:
        return {
            "fps": self.fps,
            "frames": [frame.to_dict() for frame in self.frames],
            "audio": self.audio.to_dict() if self.audio else None,
        }
