"""UI-related data models."""

from dataclasses import dataclass, field
from typing import Dict

from .events import Control, ControlUpdate, initial_controls


@dataclass
class DisplayState:
    """What the terminal screen currently shows."""
    time_text: str = "Record Time: 00:00:00"
    controls: Dict[Control, ControlUpdate] = field(default_factory=initial_controls)
    last_message: str = ""
