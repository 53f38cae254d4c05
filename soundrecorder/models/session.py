"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SessionState(Enum):
    """State of the recorder/player session."""
    IDLE = "idle"
    RECORDING = "recording"
    PLAYING = "playing"


@dataclass(frozen=True)
class SavedRecording:
    """A take that was stopped and saved successfully."""
    file_path: str
    saved_at: datetime = field(default_factory=datetime.now)
