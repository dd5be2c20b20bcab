"""Exception types raised by the Wordle visualizer."""


class WordleVizError(Exception):
    """Base class for all wordle_viz errors."""


class ConfigError(WordleVizError):
    """Invalid configuration (caught at startup, never mid-session)."""


class AudioSourceError(WordleVizError):
    """Audio device could not be opened or a block could not be read."""


class TransformError(WordleVizError):
    """Invalid FFT plan or misuse of the plan's input buffer."""
