"""Error hierarchy for SoundRecorder.

Every failure the recorder reports to the user is a ``RecorderError``. The
audio services wrap library errors (PyAudio ``OSError``, ``wave.Error``) in one
of the subclasses below so the session controller only has to handle this
taxonomy.
"""

from typing import Optional


class RecorderError(Exception):
    """Base exception for recorder and player failures."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Args:
            message: Human-readable error message
            original_exception: Library exception this error wraps, if any
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def get_user_message(self) -> str:
        """Get the message shown to the user, including the underlying cause."""
        if self.original_exception is not None:
            return f"{self.message}\n({self.original_exception})"
        return self.message


class DeviceUnavailable(RecorderError):
    """The capture or playback device could not be acquired."""


class IOFailure(RecorderError):
    """A stream could not be closed cleanly or a file could not be written/read."""


class UnsupportedFormat(RecorderError):
    """The file to play back could not be decoded."""
