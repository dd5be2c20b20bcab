"""
Terminal display for the Wordle grid.
Clears the screen and redraws the 6x5 tile every frame.
"""

import os
import sys
from typing import Optional, Sequence, TextIO


class Colors:
    """ANSI codes used by the display."""

    RESET = "\033[0m"
    DIM = "\033[2m"
    YELLOW = "\033[33m"
    GREEN = "\033[32m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_GREEN = "\033[92m"

    # Cursor control
    HIDE_CURSOR = "\033[?25l"
    SHOW_CURSOR = "\033[?25h"
    CLEAR_SCREEN = "\033[2J"
    HOME = "\033[H"


# Glyph per palette index: blank, partial, full
PALETTES = {
    "emoji": ("⬛", "\U0001f7e8", "\U0001f7e9"),  # black, yellow, green squares
    "ascii": (".", "+", "#"),
}

# Only applied to the ascii palette, emoji carry their own color
ASCII_COLORS = (Colors.DIM, Colors.BRIGHT_YELLOW, Colors.BRIGHT_GREEN)

DEFAULT_INDENT = "\t\t"


def format_grid(grid: Sequence[Sequence[int]], palette: str = "emoji", color: bool = False) -> str:
    """Render the grid as plain text lines, top row first."""
    glyphs = PALETTES[palette]
    lines = []
    for row in grid:
        if color and palette == "ascii":
            cells = [f"{ASCII_COLORS[int(i)]}{glyphs[int(i)]}{Colors.RESET}" for i in row]
        else:
            cells = [glyphs[int(i)] for i in row]
        lines.append("".join(cells))
    return "\n".join(lines)


class WordleDisplay:
    """Full-screen redraw of the grid on a text stream."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        palette: str = "emoji",
        indent: str = DEFAULT_INDENT,
        color: bool = False,
    ):
        if palette not in PALETTES:
            raise ValueError(f"Unknown palette: {palette} (choose from {', '.join(PALETTES)})")
        self.stream = stream if stream is not None else sys.stdout
        self.palette = palette
        self.indent = indent
        self.color = color
        self._frames = 0

        # Enable ANSI on Windows
        if sys.platform == "win32":
            os.system("")  # Enables ANSI escape sequences

    @property
    def frames(self) -> int:
        """Frames drawn so far."""
        return self._frames

    def render(self, grid: Sequence[Sequence[int]]):
        """Clear the terminal and draw one frame."""
        body = format_grid(grid, self.palette, self.color)

        out = [Colors.CLEAR_SCREEN, Colors.HOME]
        if self._frames == 0:
            out.append(Colors.HIDE_CURSOR)
        # Vaguely center the tile so a small terminal still works
        for line in body.split("\n"):
            out.append(f"\n{self.indent}{line}")
        out.append("\n\n\n")

        self.stream.write("".join(out))
        self.stream.flush()
        self._frames += 1

    def clear(self):
        """Restore the cursor; the last frame stays on screen."""
        self.stream.write(Colors.SHOW_CURSOR)
        self.stream.flush()
