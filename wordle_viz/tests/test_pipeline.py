"""
End-to-end tests for the block pipeline and capture loop.

Run with: python -m pytest wordle_viz/tests/test_pipeline.py -v
"""

import numpy as np
import pytest

from wordle_viz.capture import ArraySource, ThreadedBlockSource
from wordle_viz.config import WordleConfig
from wordle_viz.errors import AudioSourceError, ConfigError
from wordle_viz.grid import BLANK, FULL
from wordle_viz.pipeline import SessionResult, WordlePipeline

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

BLOCK_SIZE = 1024
SAMPLE_RATE = 44100


def _silence(count):
    return [np.zeros(BLOCK_SIZE, dtype=np.float32) for _ in range(count)]


def _tone_for_bin(bin_index, count, amplitude=0.5):
    """Sinusoid centered exactly on ``bin_index``, continuous across blocks."""
    n = np.arange(BLOCK_SIZE * count)
    freq_hz = bin_index * SAMPLE_RATE / BLOCK_SIZE
    signal = amplitude * np.sin(2 * np.pi * freq_hz * n / SAMPLE_RATE)
    return ArraySource.from_signal(signal.astype(np.float32), BLOCK_SIZE)


class FrameRecorder:
    """Collects every grid handed to the display callback."""

    def __init__(self):
        self.grids = []

    def __call__(self, grid):
        self.grids.append(grid.copy())


@pytest.fixture
def pipeline():
    return WordlePipeline(WordleConfig(), fft_backend="scipy")


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestWordlePipeline:
    def test_default_bins(self, pipeline):
        assert pipeline.bins == (25, 76, 128, 179, 230)

    def test_invalid_config_rejected(self):
        with pytest.raises(ConfigError):
            WordlePipeline(WordleConfig(dft_scaling=2.5))

    def test_silence_gives_blank_grid(self, pipeline):
        """Test all-zero input leaves every cell blank."""
        recorder = FrameRecorder()
        source = ArraySource(_silence(20))
        result = pipeline.run(source, recorder, iterations=20)

        assert result.frames == 20
        assert result.completed
        assert np.all(result.grid == BLANK)
        assert all(np.all(g == BLANK) for g in recorder.grids)
        np.testing.assert_array_equal(result.amplitudes, np.zeros(5))

    def test_tone_lights_its_column(self, pipeline):
        """Test a tone on column 2's bin fills that column only."""
        source = _tone_for_bin(pipeline.bins[2], 8)
        result = pipeline.run(source, FrameRecorder(), iterations=8)

        grid = result.grid
        assert grid[5, 2] == FULL
        for c in (0, 1, 3, 4):
            assert np.all(grid[:, c] == BLANK), f"column {c} should stay blank"
        # Bottom row is never dimmer than the top row
        assert grid[5, 2] >= grid[0, 2]

    def test_tone_then_silence_decays(self, pipeline):
        """Test the column fades geometrically once the tone stops."""
        tone = pipeline.process_block(
            np.sin(2 * np.pi * 128 * np.arange(BLOCK_SIZE) / BLOCK_SIZE).astype(np.float32)
        )
        assert tone[5, 2] == FULL
        peak = pipeline.amplitudes[2]

        for i in range(1, 6):
            pipeline.process_block(np.zeros(BLOCK_SIZE, dtype=np.float32))
            assert pipeline.amplitudes[2] == pytest.approx(peak * 0.9**i)

    def test_read_failure_ends_loop(self, pipeline):
        """Test a read failure stops the session without raising."""
        recorder = FrameRecorder()
        source = ArraySource(_silence(10), fail_at=3)
        result = pipeline.run(source, recorder, iterations=10)

        assert result.frames == 3
        assert len(recorder.grids) == 3
        assert isinstance(result.error, AudioSourceError)
        assert result.stopped_early
        assert not result.completed

    def test_failure_on_first_block(self, pipeline):
        result = pipeline.run(ArraySource([], fail_at=0), FrameRecorder(), iterations=5)
        assert result.frames == 0
        assert result.grid is None
        assert result.error is not None

    def test_stop_request(self, pipeline):
        """Test stop() ends the loop at the next block boundary."""
        frames = []

        def on_frame(grid):
            frames.append(grid)
            if len(frames) == 2:
                pipeline.stop()

        result = pipeline.run(ArraySource(_silence(10)), on_frame, iterations=10)

        assert result.frames == 2
        assert result.stopped
        assert result.error is None

    def test_reset_clears_state_and_stop(self, pipeline):
        pipeline.process_block(np.ones(BLOCK_SIZE, dtype=np.float32) * 0.1)
        pipeline.stop()
        pipeline.reset()

        np.testing.assert_array_equal(pipeline.amplitudes, np.zeros(5))
        result = pipeline.run(ArraySource(_silence(2)), FrameRecorder(), iterations=2)
        assert result.frames == 2

    def test_default_iteration_count(self, pipeline):
        """Test a default session runs floor(44100 * 10 / 1024) blocks."""
        source = ArraySource(_silence(430))
        result = pipeline.run(source, FrameRecorder())

        assert result.planned == 430
        assert result.frames == 430
        assert result.completed

    def test_sessions_do_not_share_state(self):
        loud = WordlePipeline(WordleConfig(), fft_backend="scipy")
        quiet = WordlePipeline(WordleConfig(), fft_backend="scipy")

        loud.process_block(np.sin(2 * np.pi * 25 * np.arange(BLOCK_SIZE) / BLOCK_SIZE))

        assert loud.amplitudes[0] > 0
        np.testing.assert_array_equal(quiet.amplitudes, np.zeros(5))

    def test_threaded_source_matches_direct(self):
        """Test the threaded handoff produces the same frames as direct reads."""
        direct = WordlePipeline(WordleConfig(), fft_backend="scipy")
        threaded = WordlePipeline(WordleConfig(), fft_backend="scipy")

        direct_frames = FrameRecorder()
        direct.run(_tone_for_bin(128, 6), direct_frames, iterations=6)

        threaded_frames = FrameRecorder()
        with ThreadedBlockSource(_tone_for_bin(128, 6)) as source:
            result = threaded.run(source, threaded_frames, iterations=6)

        assert result.frames == 6
        for a, b in zip(direct_frames.grids, threaded_frames.grids):
            np.testing.assert_array_equal(a, b)


class TestSessionResult:
    def test_completed(self):
        assert SessionResult(frames=430, planned=430).completed
        assert not SessionResult(frames=3, planned=430).completed

    def test_stopped_early(self):
        assert not SessionResult(frames=430, planned=430).stopped_early
        assert SessionResult(frames=3, planned=430, error=AudioSourceError("x")).stopped_early
        assert SessionResult(frames=3, planned=430, stopped=True).stopped_early
