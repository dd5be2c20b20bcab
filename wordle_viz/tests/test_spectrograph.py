"""Tests for the terminal Wordle display."""

import io

import numpy as np
import pytest

from wordle_viz.spectrograph import Colors, PALETTES, WordleDisplay, format_grid


def _grid():
    grid = np.zeros((6, 5), dtype=np.int8)
    grid[5, :] = [0, 1, 2, 1, 0]
    grid[4, 2] = 1
    return grid


class TestFormatGrid:
    def test_ascii(self):
        text = format_grid(_grid(), "ascii")
        lines = text.split("\n")
        assert len(lines) == 6
        assert lines[0] == "....."
        assert lines[4] == "..+.."
        assert lines[5] == ".+#+."

    def test_emoji(self):
        lines = format_grid(_grid(), "emoji").split("\n")
        black, yellow, green = PALETTES["emoji"]
        assert lines[0] == black * 5
        assert lines[5] == black + yellow + green + yellow + black

    def test_ascii_color(self):
        text = format_grid(_grid(), "ascii", color=True)
        assert Colors.BRIGHT_GREEN + "#" + Colors.RESET in text

    def test_color_ignored_for_emoji(self):
        assert format_grid(_grid(), "emoji", color=True) == format_grid(_grid(), "emoji")


class TestWordleDisplay:
    def test_frame_layout(self):
        """Test a frame is a screen clear followed by 6 indented rows."""
        stream = io.StringIO()
        display = WordleDisplay(stream=stream, palette="ascii")
        display.render(_grid())

        out = stream.getvalue()
        assert out.startswith(Colors.CLEAR_SCREEN)
        rows = [line for line in out.split("\n") if line.startswith("\t\t")]
        assert len(rows) == 6
        assert rows[5] == "\t\t.+#+."
        assert out.endswith("\n\n\n")

    def test_clear_precedes_every_frame(self):
        stream = io.StringIO()
        display = WordleDisplay(stream=stream, palette="ascii")
        for _ in range(3):
            display.render(_grid())
        assert stream.getvalue().count(Colors.CLEAR_SCREEN) == 3
        assert display.frames == 3

    def test_custom_indent(self):
        stream = io.StringIO()
        WordleDisplay(stream=stream, palette="ascii", indent="").render(_grid())
        assert "\n.+#+." in stream.getvalue()

    def test_cursor_hidden_then_restored(self):
        stream = io.StringIO()
        display = WordleDisplay(stream=stream, palette="ascii")
        display.render(_grid())
        display.render(_grid())
        display.clear()
        out = stream.getvalue()
        assert out.count(Colors.HIDE_CURSOR) == 1
        assert out.endswith(Colors.SHOW_CURSOR)

    def test_unknown_palette(self):
        with pytest.raises(ValueError):
            WordleDisplay(stream=io.StringIO(), palette="braille")
