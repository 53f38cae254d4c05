"""Abstract contracts of the collaborators driven by the session controller."""

from abc import ABC, abstractmethod
from typing import Optional


class AudioCaptureService(ABC):
    """Captures audio from an input device into an internal buffer."""

    @abstractmethod
    def start(self) -> None:
        """Capture from the input device until ``stop()`` is requested.

        Blocks for the whole take, so it runs on its own activity.

        Raises:
            DeviceUnavailable: If the input device cannot be acquired
            IOFailure: If reading from the device fails mid-take
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Halt the capture and wait for ``start()`` to acknowledge.

        Raises:
            IOFailure: If the stream cannot be closed cleanly
        """
        pass

    @abstractmethod
    def save(self, path: str) -> None:
        """Write the captured buffer to a linear-PCM audio file.

        Raises:
            IOFailure: If the file cannot be written
        """
        pass


class AudioPlaybackService(ABC):
    """Decodes and plays back an audio file."""

    @abstractmethod
    def play(self, path: str, session: Optional[int] = None) -> None:
        """Play the file at ``path``; blocks until it ends or ``stop()`` is called.

        Args:
            path: Audio file to play
            session: Identifies this playback to ``stop()``

        Raises:
            UnsupportedFormat: If the file cannot be decoded
            DeviceUnavailable: If the output device cannot be acquired
            IOFailure: If the file cannot be read
        """
        pass

    @abstractmethod
    def stop(self, session: Optional[int] = None) -> None:
        """Request an immediate halt of the ``play()`` of ``session``.

        Must not carry over into a later playback once that ``play()`` returned.
        """
        pass


class Notifier(ABC):
    """Blocking user notifications."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Show an informational message and wait for acknowledgement."""
        pass

    @abstractmethod
    def error(self, title: str, message: str) -> None:
        """Show an error message and wait for acknowledgement."""
        pass
