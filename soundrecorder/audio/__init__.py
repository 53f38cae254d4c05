"""Audio capture and playback module."""

from .capture import AudioCapture
from .player import AudioPlayer

__all__ = [
    'AudioCapture',
    'AudioPlayer'
]
