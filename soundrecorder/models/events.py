"""Event models exchanged between the UI, the session controller and its activities."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from ..errors import RecorderError


class Control(Enum):
    """The two toggle controls of the recorder."""
    RECORD = "record"
    PLAY = "play"


@dataclass(frozen=True)
class ControlUpdate:
    """Presentation of one control: whether it is enabled and its label."""
    control: Control
    enabled: bool
    label: str  # "Record" | "Stop" | "Play"

    @property
    def is_active(self) -> bool:
        """True when the control shows its "Stop" presentation."""
        return self.label == "Stop"


class Command(Enum):
    """User commands posted to the session controller."""
    TOGGLE_RECORD = "toggle_record"
    TOGGLE_PLAY = "toggle_play"
    QUIT = "quit"


@dataclass(frozen=True)
class CaptureFailed:
    """The capture activity of a session ended with an error."""
    generation: int
    error: RecorderError


@dataclass(frozen=True)
class PlaybackFinished:
    """The playback activity of a session returned from ``play()``."""
    generation: int


@dataclass(frozen=True)
class PlaybackFailed:
    """The playback activity of a session ended with an error."""
    generation: int
    error: RecorderError


def initial_controls() -> Dict[Control, ControlUpdate]:
    """Presentation of both controls before anything has been recorded."""
    return {
        Control.RECORD: ControlUpdate(Control.RECORD, True, "Record"),
        Control.PLAY: ControlUpdate(Control.PLAY, False, "Play"),
    }
