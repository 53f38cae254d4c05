"""Audio playback of saved WAV recordings."""

import wave
import logging
import threading
from typing import Optional

import pyaudio

from ..errors import DeviceUnavailable, IOFailure, UnsupportedFormat
from ..services.interfaces import AudioPlaybackService

logger = logging.getLogger(__name__)


class AudioPlayer(AudioPlaybackService):
    """Plays a WAV file on the output device, chunk by chunk."""

    def __init__(self, chunk_size: int = 1024, output_device_index: Optional[int] = None):
        """Initialize audio player.

        Args:
            chunk_size: Frames written to the output stream per iteration
            output_device_index: PyAudio output device, None for the default device
        """
        self.chunk_size = chunk_size
        self.output_device_index = output_device_index

        self._lock = threading.Lock()
        self._stop_requested = False
        self._stop_session: Optional[int] = None
        self._finished_session: Optional[int] = None
        self.is_playing = False
        self.frames_played = 0

    def play(self, path: str, session: Optional[int] = None) -> None:
        """Play the WAV file at ``path`` until it ends or ``stop()`` is called.

        A stop requested for the same ``session`` before this call begins ends
        it immediately. A pending stop of another session is discarded.

        Raises:
            UnsupportedFormat: If the file is not a readable WAV file
            DeviceUnavailable: If the output stream cannot be opened
            IOFailure: If the file cannot be read or written to the device
        """
        with self._lock:
            if self.is_playing:
                logger.warning("Playback already in progress")
                return
            if self._stop_requested:
                honoured = self._stop_session is None or self._stop_session == session
                self._stop_requested = False
                self._stop_session = None
                if honoured:
                    logger.info("Stop requested before playback began")
                    self._finished_session = session
                    return
                logger.debug("Discarding stop request of an earlier playback")
            self.is_playing = True
            self.frames_played = 0

        logger.info(f"Starting playback of {path}")
        try:
            with self.__open_wave(path) as wf:
                self.__play_wave(wf)
        finally:
            with self._lock:
                self.is_playing = False
                self._stop_requested = False
                self._stop_session = None
                self._finished_session = session
            logger.info(f"Playback ended after {self.frames_played} frames")

    def stop(self, session: Optional[int] = None) -> None:
        """Request the playback of ``session`` to stop at the next chunk boundary.

        A stop for a session whose playback already returned is ignored.
        """
        with self._lock:
            if session is not None and session == self._finished_session:
                logger.debug(f"Playback {session} already ended; stop ignored")
                return
            self._stop_requested = True
            self._stop_session = session
        logger.info("Stop playback requested")

    def _should_stop(self) -> bool:
        with self._lock:
            return self._stop_requested

    def __open_wave(self, path: str) -> wave.Wave_read:
        try:
            return wave.open(str(path), 'rb')
        except (wave.Error, EOFError) as e:
            raise UnsupportedFormat(f"Unsupported audio file: {path}", e) from e
        except OSError as e:
            raise IOFailure(f"Could not read audio file: {path}", e) from e

    def __play_wave(self, wf: wave.Wave_read) -> None:
        pyaudio_instance = pyaudio.PyAudio()
        stream = None
        try:
            try:
                stream = pyaudio_instance.open(
                    format=pyaudio_instance.get_format_from_width(wf.getsampwidth()),
                    channels=wf.getnchannels(),
                    rate=wf.getframerate(),
                    output=True,
                    output_device_index=self.output_device_index,
                    frames_per_buffer=self.chunk_size,
                )
            except ValueError as e:
                raise UnsupportedFormat("Unsupported sample width", e) from e
            except OSError as e:
                raise DeviceUnavailable("Could not open the audio output device", e) from e

            logger.debug(f"Output stream opened: {wf.getframerate()}Hz, "
                         f"{wf.getnchannels()} channels, {wf.getnframes()} frames")

            while not self._should_stop():
                try:
                    data = wf.readframes(self.chunk_size)
                except (wave.Error, EOFError) as e:
                    raise UnsupportedFormat("Corrupt audio data", e) from e
                if not data:
                    break
                try:
                    stream.write(data)
                except OSError as e:
                    raise IOFailure("Error writing to the audio output device", e) from e
                self.frames_played += len(data) // (wf.getsampwidth() * wf.getnchannels())
        finally:
            if stream is not None:
                try:
                    stream.stop_stream()
                    stream.close()
                except OSError as e:
                    logger.error(f"Error closing output stream: {e}")
            pyaudio_instance.terminate()
