"""
Audio sources for the Wordle visualizer.

Every source hands out mono float32 blocks of exactly ``block_size``
samples and raises AudioSourceError when it cannot:

1. SoundDeviceSource - blocking capture from a sounddevice input stream
2. ArraySource - replays in-memory blocks (tests, offline rendering)
3. ThreadedBlockSource - moves another source onto a capture thread with a
   single-slot handoff (one block in flight)
"""

import logging
import queue
import threading
from typing import Iterable, List, Optional, Union

import numpy as np

from wordle_viz.errors import AudioSourceError

logger = logging.getLogger(__name__)


class AudioSource:
    """Base class for block sources. Usable as a context manager."""

    block_size: int = 1024

    def open(self):
        """Acquire the underlying device."""

    def read(self) -> np.ndarray:
        """Block until one full block is available and return it."""
        raise NotImplementedError

    def close(self):
        """Release the underlying device. Safe to call more than once."""

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _parse_device(device: Union[str, int, None]) -> Union[str, int, None]:
    """Numeric device strings select by index, anything else by name."""
    if isinstance(device, str) and device.strip().isdigit():
        return int(device)
    return device


class SoundDeviceSource(AudioSource):
    """Blocking mono float32 capture through sounddevice."""

    def __init__(
        self,
        device: Union[str, int, None],
        sample_rate: int = 44100,
        block_size: int = 1024,
    ):
        """
        Args:
            device: Input device name or index (as listed by --list-devices)
            sample_rate: Capture rate in Hz
            block_size: Samples returned by each read()
        """
        self.device = _parse_device(device)
        self.sample_rate = sample_rate
        self.block_size = block_size
        self._stream = None
        self._overflows = 0

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def overflows(self) -> int:
        """Reads that reported dropped input."""
        return self._overflows

    def open(self):
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise AudioSourceError(f"sounddevice unavailable: {e}") from e

        try:
            # Single channel float so it feeds the FFT without conversion
            stream = sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                dtype="float32",
            )
        except (sd.PortAudioError, ValueError) as e:
            raise AudioSourceError(f"Could not open input device {self.device!r}: {e}") from e

        try:
            stream.start()
        except sd.PortAudioError as e:
            stream.close()
            raise AudioSourceError(f"Could not start input device {self.device!r}: {e}") from e

        self._stream = stream
        logger.info(
            f"Capture started: device={self.device!r} @ {self.sample_rate}Hz, "
            f"block_size={self.block_size}"
        )

    def read(self) -> np.ndarray:
        if self._stream is None:
            raise AudioSourceError("Input stream is not open")

        import sounddevice as sd

        try:
            data, overflowed = self._stream.read(self.block_size)
        except sd.PortAudioError as e:
            raise AudioSourceError(f"Read failed: {e}") from e

        if overflowed:
            self._overflows += 1
            logger.debug(f"Input overflow ({self._overflows} so far)")

        # NOTE: single channel, so no de-interleaving
        block = np.asarray(data, dtype=np.float32).reshape(-1)
        if block.shape[0] != self.block_size:
            raise AudioSourceError(f"Short read: {block.shape[0]} of {self.block_size} samples")
        return block

    def close(self):
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            logger.debug(f"Error stopping stream: {e}")
        self._stream = None
        logger.debug("Capture stopped")


class ArraySource(AudioSource):
    """
    Replays a fixed list of blocks.

    Raises AudioSourceError once the blocks run out, or when the block at
    ``fail_at`` is requested.
    """

    def __init__(self, blocks: Iterable[np.ndarray], block_size: int = 1024, fail_at: Optional[int] = None):
        self.block_size = block_size
        self._blocks: List[np.ndarray] = [np.asarray(b, dtype=np.float32) for b in blocks]
        self._fail_at = fail_at
        self._position = 0
        self.opened = False
        self.closed = False

        for i, block in enumerate(self._blocks):
            if block.shape != (block_size,):
                raise ValueError(f"Block {i} has shape {block.shape}, expected ({block_size},)")

    @classmethod
    def from_signal(cls, samples: np.ndarray, block_size: int = 1024, **kwargs) -> "ArraySource":
        """Split a long signal into whole blocks (a trailing partial block is dropped)."""
        samples = np.asarray(samples, dtype=np.float32).reshape(-1)
        count = len(samples) // block_size
        blocks = [samples[i * block_size : (i + 1) * block_size] for i in range(count)]
        return cls(blocks, block_size=block_size, **kwargs)

    @property
    def position(self) -> int:
        """Number of blocks handed out so far."""
        return self._position

    def open(self):
        self.opened = True

    def read(self) -> np.ndarray:
        if self._fail_at is not None and self._position == self._fail_at:
            raise AudioSourceError(f"Simulated read failure at block {self._position}")
        if self._position >= len(self._blocks):
            raise AudioSourceError("End of input")
        block = self._blocks[self._position]
        self._position += 1
        # Hand out a copy so consumers can never alias the replay buffer
        return block.copy()

    def close(self):
        self.closed = True


class ThreadedBlockSource(AudioSource):
    """
    Runs another source's reads on a capture thread.

    Handoff is a single-slot queue: the capture thread blocks until the
    consumer has taken the previous block (backpressure). Cancellation is
    cooperative and only checked between blocks. A read failure on the
    capture thread is re-raised from the consumer's read().
    """

    # How often a producer blocked on a full slot looks at the cancel flag
    _POLL_INTERVAL = 0.05

    def __init__(self, source: AudioSource):
        self.source = source
        self.block_size = source.block_size
        self._handoff: "queue.Queue" = queue.Queue(maxsize=1)
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[AudioSourceError] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def open(self):
        self.source.open()
        self._cancel.clear()
        self._error = None
        self._thread = threading.Thread(target=self._capture_loop, name="wordle-capture", daemon=True)
        self._thread.start()
        logger.debug("Capture thread started")

    def _put(self, item) -> bool:
        """Hand one item to the consumer, giving up only if cancelled."""
        while not self._cancel.is_set():
            try:
                self._handoff.put(item, timeout=self._POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _capture_loop(self):
        while not self._cancel.is_set():
            try:
                block = self.source.read()
            except AudioSourceError as e:
                self._put(e)
                return
            except Exception as e:
                logger.exception("Capture thread crashed")
                self._put(AudioSourceError(f"Capture thread failed: {e}"))
                return
            if not self._put(block):
                return

    def read(self) -> np.ndarray:
        if self._error is not None:
            raise self._error
        if self._thread is None:
            raise AudioSourceError("Capture thread is not running")
        item = self._handoff.get()
        if isinstance(item, AudioSourceError):
            # The capture thread has exited, later reads fail the same way
            self._error = item
            raise item
        return item

    def _drain(self):
        try:
            while True:
                self._handoff.get_nowait()
        except queue.Empty:
            pass

    def close(self):
        self._cancel.set()
        # Unblock a producer waiting on a full slot
        self._drain()

        if self._thread is not None:
            self._thread.join()
            self._thread = None
            logger.debug("Capture thread stopped")
        # The producer may have filled the slot between the drain and join
        self._drain()
        self.source.close()


def list_input_devices() -> List[dict]:
    """Input-capable devices as reported by sounddevice."""
    try:
        import sounddevice as sd
    except (ImportError, OSError) as e:
        raise AudioSourceError(f"sounddevice unavailable: {e}") from e

    devices = []
    for i, dev in enumerate(sd.query_devices()):
        if dev["max_input_channels"] > 0:
            devices.append(
                {
                    "index": i,
                    "name": dev["name"],
                    "channels": dev["max_input_channels"],
                    "sample_rate": int(dev["default_samplerate"]),
                }
            )
    return devices
