"""
Block FFT analysis for the Wordle visualizer.

One block of mono samples goes through:
1. FrameTransformer - real-to-complex DFT with a plan built once per session
2. sample_bins - log-power of one representative bin per column
3. AmplitudeSmoother - instant attack, exponential release envelope per column

FFT backends, in priority order: pyfftw (FFTW plan) > scipy.fft (fallback).
"""

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import fft as scipy_fft

from wordle_viz.errors import TransformError

logger = logging.getLogger(__name__)

# Try pyfftw (FFTW backend with reusable plans)
try:
    import pyfftw

    HAS_PYFFTW = True
except ImportError:
    HAS_PYFFTW = False
    pyfftw = None


def build_column_bins(block_size: int, columns: int, scaling: float) -> Tuple[int, ...]:
    """
    Pick one frequency bin per visual column.

    The DFT is only valid up to the Nyquist frequency, so bins come from the
    lower half of the spectrum: the midpoint of ``columns`` equally spaced
    ranges, scaled by ``scaling`` to favour the more audible low end.

    Callers must check the result against ``block_size // 2``.
    """
    width = (block_size / 2) / columns
    return tuple(int(math.floor(width * (i + 0.5) * scaling)) for i in range(columns))


class FrameTransformer:
    """
    Real-to-complex DFT over fixed-size blocks with a reusable plan.

    The plan owns an input buffer that execution is allowed to destroy
    (FFTW_DESTROY_INPUT). Every ``execute()`` must be preceded by a fresh
    ``load()``; executing twice on the same load raises TransformError.

    Usage:
        transformer = FrameTransformer(1024)
        spectrum = transformer.transform(block)  # load() + execute()
    """

    BACKENDS = ("pyfftw", "scipy")

    def __init__(self, block_size: int = 1024, backend: Optional[str] = None):
        """
        Prepare the FFT plan.

        Args:
            block_size: Samples per block (positive, even)
            backend: 'pyfftw' or 'scipy' (None = best available)
        """
        if block_size <= 0 or block_size % 2:
            raise TransformError(f"Block size must be a positive even number, got: {block_size}")
        if backend is not None and backend not in self.BACKENDS:
            raise TransformError(f"Unknown FFT backend: {backend}")
        if backend == "pyfftw" and not HAS_PYFFTW:
            raise TransformError("pyfftw backend requested but pyfftw is not installed")

        self.block_size = block_size
        self.spectrum_size = block_size // 2 + 1
        self._loaded = False
        self._plan = None

        if backend is None:
            backend = "pyfftw" if HAS_PYFFTW else "scipy"

        if backend == "pyfftw":
            self._init_pyfftw_planner()
        else:
            self._input = np.zeros(block_size, dtype=np.float64)
            self._output = np.zeros(self.spectrum_size, dtype=np.complex128)

        self._backend = backend
        logger.debug(f"FFT plan ready: backend={backend}, block_size={block_size}")

    def _init_pyfftw_planner(self):
        """Build the FFTW plan once; planning is the expensive part."""
        self._input = pyfftw.empty_aligned(self.block_size, dtype="float64")
        self._output = pyfftw.empty_aligned(self.spectrum_size, dtype="complex128")
        self._plan = pyfftw.FFTW(
            self._input,
            self._output,
            direction="FFTW_FORWARD",
            flags=["FFTW_MEASURE", "FFTW_DESTROY_INPUT"],
            threads=1,
        )

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def loaded(self) -> bool:
        """True while the input buffer holds a block that has not been transformed."""
        return self._loaded

    def load(self, block: np.ndarray):
        """Copy (whilst casting) one block into the plan's input buffer."""
        block = np.asarray(block)
        if block.shape != (self.block_size,):
            raise TransformError(
                f"Expected a mono block of {self.block_size} samples, got shape {block.shape}"
            )
        self._input[:] = block
        self._loaded = True

    def execute(self) -> np.ndarray:
        """
        Run the DFT on the loaded block.

        Returns the block_size // 2 + 1 complex bins. The array is owned by
        the plan and is overwritten by the next execution.
        """
        if not self._loaded:
            raise TransformError("Input buffer must be reloaded before every execution")
        # Input contents are undefined from here on
        self._loaded = False

        if self._plan is not None:
            self._plan()
        else:
            self._output[:] = scipy_fft.rfft(self._input, overwrite_x=True)
        return self._output

    def transform(self, block: np.ndarray) -> np.ndarray:
        """Load one block and execute the plan on it."""
        self.load(block)
        return self.execute()


def sample_bins(spectrum: np.ndarray, bins: Sequence[int]) -> np.ndarray:
    """
    Log-power of each column's bin: log10(re^2 + im^2).

    Unnormalized. A silent bin gives -inf, which is returned as is.
    """
    samples = spectrum[np.asarray(bins, dtype=np.intp)]
    power = samples.real * samples.real + samples.imag * samples.imag
    with np.errstate(divide="ignore"):
        return np.log10(power)


class AmplitudeSmoother:
    """
    Per-column envelope follower.

    state[c] = fmax(state[c] * smoothing, raw[c])

    A rising value is adopted immediately, a falling one decays by
    ``smoothing`` per block. State starts at zero, so it never goes negative
    and -inf inputs from silent bins are absorbed. fmax ignores NaN inputs.
    """

    def __init__(self, columns: int = 5, smoothing: float = 0.9):
        self.columns = columns
        self.smoothing = smoothing
        self._state = np.zeros(columns, dtype=np.float64)

    @property
    def state(self) -> np.ndarray:
        """Copy of the current smoothed amplitudes."""
        return self._state.copy()

    def update(self, raw: np.ndarray) -> np.ndarray:
        """Fold one block's raw amplitudes into the state, in place."""
        raw = np.asarray(raw, dtype=np.float64)
        if raw.shape != self._state.shape:
            raise ValueError(f"Expected {self.columns} amplitudes, got shape {raw.shape}")
        np.fmax(self._state * self.smoothing, raw, out=self._state)
        return self.state

    def reset(self):
        self._state.fill(0.0)
