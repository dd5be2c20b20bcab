"""
Wordle Visualizer
Live audio spectrum drawn as a 6x5 Wordle result grid.
"""

from .config import WordleConfig
from .pipeline import SessionResult, WordlePipeline
from .spectrograph import WordleDisplay

__version__ = "0.1.0"

__all__ = [
    'WordleConfig',
    'WordlePipeline',
    'SessionResult',
    'WordleDisplay',
]
