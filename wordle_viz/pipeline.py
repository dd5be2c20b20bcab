"""
Per-block pipeline and capture loop.

    block -> FrameTransformer -> sample_bins -> AmplitudeSmoother -> quantize_grid -> display

The only state carried between blocks is the smoother's amplitudes, owned by
the WordlePipeline instance, so independent sessions never share it.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from wordle_viz.capture import AudioSource
from wordle_viz.config import WordleConfig
from wordle_viz.errors import AudioSourceError
from wordle_viz.fft_analyzer import AmplitudeSmoother, FrameTransformer, sample_bins
from wordle_viz.grid import quantize_grid

logger = logging.getLogger(__name__)


@dataclass
class SessionResult:
    """Outcome of one capture session."""

    frames: int  # Frames rendered
    planned: int  # Iterations the session was sized for
    grid: Optional[np.ndarray] = None  # Last grid drawn
    error: Optional[AudioSourceError] = None  # Read failure that ended the loop
    stopped: bool = False  # Stopped on request before the planned count
    elapsed: float = 0.0
    amplitudes: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def completed(self) -> bool:
        return self.frames == self.planned

    @property
    def stopped_early(self) -> bool:
        return self.error is not None or self.stopped


class WordlePipeline:
    """
    Turns audio blocks into Wordle grids.

    Usage:
        pipeline = WordlePipeline(WordleConfig())
        with source:
            result = pipeline.run(source, display.render)
    """

    def __init__(self, config: Optional[WordleConfig] = None, fft_backend: Optional[str] = None):
        """
        Args:
            config: Validated settings (defaults if None)
            fft_backend: Force 'pyfftw' or 'scipy' (None = best available)
        """
        self.config = (config or WordleConfig()).validate()

        # Expensive, built once and reused for every block
        self.transformer = FrameTransformer(self.config.block_size, backend=fft_backend)
        self.bins = self.config.column_bins
        self.smoother = AmplitudeSmoother(self.config.columns, self.config.smoothing)
        self._stop = threading.Event()

        logger.debug(
            f"Pipeline ready: bins={self.bins}, smoothing={self.config.smoothing}, "
            f"fft={self.transformer.backend}"
        )

    @property
    def amplitudes(self) -> np.ndarray:
        return self.smoother.state

    def process_block(self, block: np.ndarray) -> np.ndarray:
        """Run one block through the pipeline and return its grid."""
        spectrum = self.transformer.transform(block)
        raw = sample_bins(spectrum, self.bins)
        amplitudes = self.smoother.update(raw)
        return quantize_grid(amplitudes, self.config.rows, self.config.thresholds)

    def reset(self):
        """Start a fresh session: zero amplitudes, clear a pending stop."""
        self.smoother.reset()
        self._stop.clear()

    def stop(self):
        """Ask run() to return after the current block."""
        self._stop.set()

    def run(
        self,
        source: AudioSource,
        on_frame: Callable[[np.ndarray], None],
        iterations: Optional[int] = None,
    ) -> SessionResult:
        """
        Capture and render a fixed number of blocks.

        A read failure ends the loop without raising; frames already drawn
        stand and the error is reported on the result. The source must
        already be open; closing it is the caller's job.
        """
        planned = self.config.iteration_count if iterations is None else iterations
        result = SessionResult(frames=0, planned=planned)
        start = time.monotonic()

        logger.info(f"Capturing {planned} blocks ({self.config.capture_seconds}s)")
        for _ in range(planned):
            if self._stop.is_set():
                result.stopped = True
                logger.info("Stop requested, ending capture")
                break

            try:
                block = source.read()
            except AudioSourceError as e:
                logger.warning(f"Audio read failed after {result.frames} frames: {e}")
                result.error = e
                break

            grid = self.process_block(block)
            on_frame(grid)
            result.grid = grid
            result.frames += 1

        result.elapsed = time.monotonic() - start
        result.amplitudes = self.amplitudes
        logger.info(f"Session finished: {result.frames}/{planned} frames in {result.elapsed:.1f}s")
        return result
