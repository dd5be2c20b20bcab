"""
Wordle visualizer configuration.

Provides:
- The capture/analysis constants as a frozen dataclass
- Validation of the constants against the fixed 5x6 grid
- Loading from JSON files and WORDLE_* environment variables
"""

import json
import logging
import math
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from wordle_viz.errors import ConfigError
from wordle_viz.fft_analyzer import build_column_bins

logger = logging.getLogger(__name__)

# As defined by the game: 5 letters, 6 guesses
WORDLE_COLUMNS = 5
WORDLE_ROWS = 6


def _is_int(value) -> bool:
    # bool is an int subclass but never a valid count
    return isinstance(value, int) and not isinstance(value, bool)


def _is_finite_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class WordleConfig:
    """Capture and analysis settings. Fixed for the lifetime of a session."""

    capture_seconds: float = 10.0  # Total session length
    sample_rate: int = 44100  # Input rate (Hz)
    block_size: int = 1024  # Samples per DFT
    smoothing: float = 0.9  # Decay factor for the envelope follower
    columns: int = WORDLE_COLUMNS
    rows: int = WORDLE_ROWS
    dft_scaling: float = 0.5  # Bias towards the audible low end when picking bins
    thresholds: Tuple[float, float, float] = (0.0, 0.5, 1.0)  # Palette cut points

    @property
    def iteration_count(self) -> int:
        """Number of blocks captured in one session."""
        return int((self.sample_rate * self.capture_seconds) // self.block_size)

    @property
    def nyquist_bin(self) -> int:
        return self.block_size // 2

    @property
    def column_bins(self) -> Tuple[int, ...]:
        return build_column_bins(self.block_size, self.columns, self.dft_scaling)

    def validate(self) -> "WordleConfig":
        """Check the settings, raising ConfigError on the first problem found."""
        for name in ("sample_rate", "block_size", "columns", "rows"):
            if not _is_int(getattr(self, name)):
                raise ConfigError(f"{name} must be an integer, got: {getattr(self, name)!r}")
        for name in ("capture_seconds", "smoothing", "dft_scaling"):
            if not _is_finite_number(getattr(self, name)):
                raise ConfigError(f"{name} must be a finite number, got: {getattr(self, name)!r}")
        if not isinstance(self.thresholds, (tuple, list)) or not all(
            _is_finite_number(t) for t in self.thresholds
        ):
            raise ConfigError(f"Palette thresholds must be finite numbers: {self.thresholds!r}")

        if self.columns != WORDLE_COLUMNS or self.rows != WORDLE_ROWS:
            raise ConfigError(
                f"Grid must be {WORDLE_COLUMNS}x{WORDLE_ROWS}, got {self.columns}x{self.rows}"
            )
        if self.sample_rate <= 0:
            raise ConfigError(f"Sample rate must be positive, got: {self.sample_rate}")
        if self.block_size <= 0 or self.block_size % 2:
            raise ConfigError(f"Block size must be a positive even number, got: {self.block_size}")
        if self.capture_seconds <= 0:
            raise ConfigError(f"Capture length must be positive, got: {self.capture_seconds}")
        if not 0.0 <= self.smoothing < 1.0:
            raise ConfigError(f"Smoothing must be in [0, 1), got: {self.smoothing}")
        if self.dft_scaling <= 0:
            raise ConfigError(f"DFT scaling must be positive, got: {self.dft_scaling}")

        if len(self.thresholds) != 3:
            raise ConfigError(f"Expected 3 palette thresholds, got {len(self.thresholds)}")
        if list(self.thresholds) != sorted(self.thresholds):
            raise ConfigError(f"Palette thresholds must be ascending: {self.thresholds}")

        # The DFT is only valid up to the Nyquist frequency
        bins = self.column_bins
        if max(bins) >= self.nyquist_bin:
            raise ConfigError(f"Column bins {bins} exceed the Nyquist bin {self.nyquist_bin}")

        if self.iteration_count < 1:
            raise ConfigError("Capture length is shorter than a single block")
        return self

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["thresholds"] = list(self.thresholds)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WordleConfig":
        """Create from dictionary, ignoring unknown keys."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "thresholds" in values:
            values["thresholds"] = tuple(float(t) for t in values["thresholds"])
        return cls(**values)

    @classmethod
    def from_env(cls, base: Optional["WordleConfig"] = None) -> "WordleConfig":
        """Apply WORDLE_* environment overrides on top of ``base``."""
        config = base or cls()
        overrides = {}
        try:
            if "WORDLE_CAPTURE_SECONDS" in os.environ:
                overrides["capture_seconds"] = float(os.environ["WORDLE_CAPTURE_SECONDS"])
            if "WORDLE_SAMPLE_RATE" in os.environ:
                overrides["sample_rate"] = int(os.environ["WORDLE_SAMPLE_RATE"])
            if "WORDLE_BLOCK_SIZE" in os.environ:
                overrides["block_size"] = int(os.environ["WORDLE_BLOCK_SIZE"])
            if "WORDLE_SMOOTHING" in os.environ:
                overrides["smoothing"] = float(os.environ["WORDLE_SMOOTHING"])
        except ValueError as e:
            raise ConfigError(f"Invalid WORDLE_* environment value: {e}") from e

        if overrides:
            logger.debug(f"Environment overrides: {overrides}")
            config = replace(config, **overrides)
        return config

    def save(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "WordleConfig":
        """Load configuration from JSON file (defaults if it does not exist)."""
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a JSON object")
        try:
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e


def load_config(path: Optional[Path] = None) -> WordleConfig:
    """Load, apply environment overrides and validate."""
    config = WordleConfig.load(path) if path is not None else WordleConfig()
    return WordleConfig.from_env(config).validate()
