"""Audio capture module recording one take at a time into memory."""

import pyaudio
import wave
import logging
import threading
from datetime import datetime
from typing import Optional, List
import numpy as np

from ..errors import DeviceUnavailable, IOFailure
from ..models.audio import AudioStats
from ..services.interfaces import AudioCaptureService


logger = logging.getLogger(__name__)


class AudioCapture(AudioCaptureService):
    """Captures audio from the input device until asked to stop."""

    def __init__(
        self,
        sample_rate: int = 44100,
        chunk_size: int = 1024,
        channels: int = 2,
        format: int = pyaudio.paInt16,
        input_device_index: Optional[int] = None,
        stop_timeout: float = 2.0,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate
            chunk_size: Size of each audio chunk in frames
            channels: Number of audio channels
            format: Audio format (16-bit signed int)
            input_device_index: PyAudio input device, None for the default device
            stop_timeout: Seconds ``stop()`` waits for the capture loop to finish
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        self.input_device_index = input_device_index
        self.stop_timeout = stop_timeout

        # Capture loop management
        self._condition = threading.Condition()
        self._stop_requested = False
        self.is_recording = False
        self._close_error: Optional[Exception] = None

        # Current take
        self.audio_data: List[bytes] = []
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        # PyAudio instance
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def start(self) -> None:
        """Capture until ``stop()`` is requested.

        A stop requested before this call begins ends the take immediately,
        without opening the device.

        Raises:
            DeviceUnavailable: If the input stream cannot be opened
            IOFailure: If reading from the stream fails
        """
        with self._condition:
            if self.is_recording:
                logger.warning("Recording already in progress")
                return
            self.audio_data = []
            self.total_chunks = 0
            self.peak_level = 0.0
            self._close_error = None
            self.start_time = datetime.now()
            self.end_time = None

            if self._stop_requested:
                logger.info("Stop requested before capture began; nothing captured")
                self._stop_requested = False
                self.end_time = self.start_time
                self._condition.notify_all()
                return

            self.is_recording = True

        logger.info("Starting audio recording")
        stream = None
        try:
            stream = self.__open_audio_stream()
            while not self._should_stop():
                audio_chunk = self.__read_audio_chunk(stream)
                self.__store_audio_chunk(audio_chunk)
        finally:
            self.__close_audio_stream(stream)
            with self._condition:
                self.is_recording = False
                self._stop_requested = False
                self.end_time = datetime.now()
                self._condition.notify_all()
            stats = self.get_recording_stats()
            logger.info(f"Recording stopped. Total chunks: {stats.total_chunks}, "
                        f"duration: {stats.duration_seconds:.1f}s, peak level: {stats.peak_level:.3f}")

    def stop(self) -> None:
        """Request the capture loop to stop and wait for it to finish.

        Raises:
            IOFailure: If the loop does not acknowledge in time or the stream
                did not close cleanly
        """
        logger.info("Stopping audio recording")
        with self._condition:
            self._stop_requested = True
            self._condition.notify_all()
            acknowledged = self._condition.wait_for(
                lambda: not self._stop_requested, timeout=self.stop_timeout
            )
            if not acknowledged:
                self._stop_requested = False
                raise IOFailure(f"Recording did not stop within {self.stop_timeout}s")
            close_error = self._close_error

        if close_error is not None:
            raise IOFailure("Error stopping sound recording", close_error)

    def _should_stop(self) -> bool:
        with self._condition:
            return self._stop_requested

    def __open_audio_stream(self) -> pyaudio.Stream:
        # Open audio stream
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.input_device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except OSError as e:
            self.__terminate_pyaudio()
            raise DeviceUnavailable("Could not open the audio input device", e) from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.channels} channels, {self.chunk_size} frames/chunk")
        return stream

    def __read_audio_chunk(self, stream: pyaudio.Stream) -> bytes:
        try:
            audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        except OSError as e:
            raise IOFailure("Error reading from the audio input device", e) from e

        self.total_chunks += 1
        return audio_chunk

    def __store_audio_chunk(self, audio_chunk: bytes) -> None:
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0
        else:
            level = 0.0

        with self._condition:
            self.audio_data.append(audio_chunk)
            self.peak_level = max(self.peak_level, level)

    def __close_audio_stream(self, stream: Optional[pyaudio.Stream]) -> None:
        # Clean up audio resources
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except OSError as e:
                logger.error(f"Error closing audio stream: {e}")
                self._close_error = e
        self.__terminate_pyaudio()

    def __terminate_pyaudio(self) -> None:
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def save(self, path: str) -> None:
        """Save the captured take to a WAV file.

        Args:
            path: Path to save the WAV file

        Raises:
            IOFailure: If the file cannot be written
        """
        with self._condition:
            frames = list(self.audio_data)

        if not frames:
            logger.warning("No audio data to save; writing an empty recording")

        try:
            with wave.open(str(path), 'wb') as wf:
                wf.setnchannels(self.channels)
                wf.setsampwidth(pyaudio.get_sample_size(self.format))
                wf.setframerate(self.sample_rate)

                # Write all audio data
                for chunk in frames:
                    wf.writeframes(chunk)
        except (OSError, wave.Error) as e:
            logger.error(f"Error saving audio file: {e}")
            raise IOFailure(f"Error saving to sound file {path}", e) from e

        logger.info(f"Audio saved to {path}")

    def get_audio_data_size(self) -> int:
        """Get the number of captured bytes in the current take."""
        with self._condition:
            return sum(len(chunk) for chunk in self.audio_data)

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            end = self.end_time or datetime.now()
            duration = (end - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            channels=self.channels,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            total_bytes=self.get_audio_data_size(),
            peak_level=self.peak_level,
        )
