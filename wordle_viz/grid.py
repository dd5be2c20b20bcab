"""
Quantization of smoothed column amplitudes into the 6x5 Wordle grid.

Each row scales the column amplitude by (row + 1) / rows before
quantizing, so lower rows cross the thresholds first and the grid
reads as a vertical bar graph.
"""

from typing import Sequence

import numpy as np

# Palette indices
BLANK = 0  # black square
PARTIAL = 1  # yellow square
FULL = 2  # green square

DEFAULT_THRESHOLDS = (0.0, 0.5, 1.0)


def quantize(value: float, thresholds: Sequence[float] = DEFAULT_THRESHOLDS) -> int:
    """Map one amplitude to a palette index. -inf and NaN map to BLANK."""
    if not value >= thresholds[1]:
        return BLANK
    if value < thresholds[2]:
        return PARTIAL
    return FULL


def row_attenuation(rows: int = 6) -> np.ndarray:
    """Per-row scale factors, top row first: 1/rows ... 1."""
    return np.arange(1, rows + 1, dtype=np.float64) / rows


def quantize_grid(
    amplitudes: Sequence[float],
    rows: int = 6,
    thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
) -> np.ndarray:
    """
    Build the rows x columns grid of palette indices.

    Cell (r, c) is quantize(row_attenuation[r] * amplitudes[c]).
    """
    amplitudes = np.asarray(amplitudes, dtype=np.float64)
    scaled = row_attenuation(rows)[:, np.newaxis] * amplitudes[np.newaxis, :]
    # Comparisons with NaN are False, so NaN cells stay BLANK like in quantize()
    grid = (scaled >= thresholds[1]).astype(np.int8)
    grid += (scaled >= thresholds[2]).astype(np.int8)
    return grid
