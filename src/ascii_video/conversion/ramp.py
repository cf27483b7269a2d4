"""
Character Ramp
==============

Ordered darkest-to-lightest character lookup table.

Mapping:
    index = floor(brightness / 255 * (N - 1)), clamped to [0, N - 1]

A ramp is immutable for the lifetime of a conversion job. A single
character ramp is allowed and always returns that character.
"""

import math
from typing import Dict

import numpy as np

from ascii_video.errors import InvalidRampError


PRESETS: Dict[str, str] = {
    "simple": " .,:;=+*#@",
    "standard": " .`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
    "extended": " .'`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
}


class CharacterRamp:
    """
    Brightness-to-character lookup.

    Attributes:
        characters: Ramp string, index 0 = darkest

    Example:
        ramp = CharacterRamp(" .#")
        ramp.char_at(0)    # " "
        ramp.char_at(255)  # "#"
    """

    __slots__ = ("_characters", "_lookup")

    def __init__(self, characters: str) -> None:
        if not characters:
            raise InvalidRampError("Character ramp must not be empty")

        self._characters = characters
        self._lookup = np.array(list(characters))

    @classmethod
    def from_config(cls, value: str) -> "CharacterRamp":
        """Resolve a preset name, otherwise use the value as a literal ramp."""
        return cls(PRESETS.get(value, value))

    @property
    def characters(self) -> str:
        return self._characters

    def __len__(self) -> int:
        return len(self._characters)

    def __repr__(self) -> str:
        return f"CharacterRamp({self._characters!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CharacterRamp):
            return NotImplemented
        return self._characters == other._characters

    def __hash__(self) -> int:
        return hash(self._characters)

    def index_at(self, brightness: float) -> int:
        last = len(self._characters) - 1
        index = math.floor(brightness / 255 * last)
        return min(max(index, 0), last)

    def char_at(self, brightness: float) -> str:
        """Character for a brightness in [0, 255]."""
        return self._characters[self.index_at(brightness)]

    def indices_for(self, brightness: np.ndarray) -> np.ndarray:
        """Vectorized index_at over an array of brightness values."""
        last = len(self._characters) - 1
        indices = np.floor(brightness / 255 * last).astype(np.int64)
        return np.clip(indices, 0, last)

    def chars_for(self, brightness: np.ndarray) -> np.ndarray:
        """Vectorized char_at, same shape as the input."""
        return self._lookup[self.indices_for(brightness)]
