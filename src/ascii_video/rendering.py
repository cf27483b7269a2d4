"""
Frame Rendering
===============

Render boundary between converted frames and a display.

Each cell i is drawn as characters[i] in colors[i] at grid position
(i % width, i // width). Playback (timing, transport, fullscreen) is
the player's concern, not this module's.

Formats:
    - text: plain rows, no color
    - ansi: 24-bit terminal color escapes, reset at end of each row
    - html: one <span> per cell, one <div> per row
"""

import html
from typing import List

from ascii_video.models.frame import AsciiFrame, format_rgb


ANSI_RESET = "\x1b[0m"


def render_text(frame: AsciiFrame) -> str:
    return "\n".join(frame.lines())


def render_ansi(frame: AsciiFrame) -> str:
    """Frame as truecolor ANSI text, one line per grid row."""
    rows: List[str] = []
    for y in range(frame.height):
        parts = []
        previous = None
        for x in range(frame.width):
            char, color = frame.cell(x, y)
            # Only emit an escape when the color changes along the row
            if color != previous:
                r, g, b = color
                parts.append(f"\x1b[38;2;{r};{g};{b}m")
                previous = color
            parts.append(char)
        parts.append(ANSI_RESET)
        rows.append("".join(parts))
    return "\n".join(rows)


def render_html(frame: AsciiFrame) -> str:
    """Frame as HTML rows of colored spans."""
    rows: List[str] = []
    for y in range(frame.height):
        spans = []
        for x in range(frame.width):
            char, color = frame.cell(x, y)
            spans.append(
                f'<span style="color: {format_rgb(color)}">{html.escape(char)}</span>'
            )
        rows.append(f'<div class="ascii-row" style="white-space: pre">{"".join(spans)}</div>')
    return f'<div class="ascii-frame">{"".join(rows)}</div>'
