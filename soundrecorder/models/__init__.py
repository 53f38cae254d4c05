"""Data models for the SoundRecorder application."""

from .audio import AudioStats
from .session import SessionState, SavedRecording
from .events import (
    Control,
    ControlUpdate,
    Command,
    CaptureFailed,
    PlaybackFinished,
    PlaybackFailed,
    initial_controls,
)
from .ui import DisplayState

__all__ = [
    "AudioStats",
    "SessionState",
    "SavedRecording",
    "Control",
    "ControlUpdate",
    "Command",
    "CaptureFailed",
    "PlaybackFinished",
    "PlaybackFailed",
    "initial_controls",
    "DisplayState",
]
