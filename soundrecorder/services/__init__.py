"""Session services and collaborator contracts."""

from .interfaces import AudioCaptureService, AudioPlaybackService, Notifier
from .session_controller import SessionController, SessionContext

__all__ = [
    "AudioCaptureService",
    "AudioPlaybackService",
    "Notifier",
    "SessionController",
    "SessionContext",
]
