"""Terminal user interface."""

from .keyboard_input import KeyboardInputHandler
from .recorder_screen import RecorderScreen, ConsoleNotifier, COMMAND_TOPIC, KEY_COMMANDS

__all__ = [
    "KeyboardInputHandler",
    "RecorderScreen",
    "ConsoleNotifier",
    "COMMAND_TOPIC",
    "KEY_COMMANDS",
]
