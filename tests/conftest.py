"""Pytest configuration and fixtures for SoundRecorder tests."""

import pytest
import tempfile
import itertools
import logging
import threading
import time
import wave
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np
from pubsub import pub

from soundrecorder.display.sink import DisplaySink
from soundrecorder.models.events import Control, initial_controls
from soundrecorder.services.interfaces import AudioCaptureService, AudioPlaybackService, Notifier
from soundrecorder.services.session_controller import SessionController, SessionContext
from soundrecorder.storage.file_manager import FileManager
from soundrecorder.timing.elapsed_timer import ElapsedTimer


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without audio hardware")
    config.addinivalue_line("markers", "integration: controller driving the PyAudio services")


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop every pubsub listener a test registered."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a sample mono 16 kHz WAV file of 100 chunks."""
    file_path = Path(temp_data_dir) / "test_audio.wav"

    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        for _ in range(100):
            wf.writeframes(sample_audio_chunk)

    return str(file_path)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read(frames, exception_on_overflow=True):
            time.sleep(0.001)
            return b'\x00' * 4096

        # Configure mock stream
        mock_stream.read.side_effect = read
        mock_stream.write.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_format_from_width.return_value = 8

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def wait_for():
    """Poll ``predicate`` until it holds or ``timeout`` expires."""
    def _wait_for(predicate, timeout=2.0, interval=0.005):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()
    return _wait_for


def capped_clock(limit):
    """Logical clock advancing one second per reading, stopping at ``limit``."""
    counter = itertools.count()
    return lambda: min(next(counter), limit)


@pytest.fixture
def logical_clock():
    return capped_clock


class RecordingSink(DisplaySink):
    """Display sink remembering every write and checking control exclusivity."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events = []
        self.controls = initial_controls()
        self.both_active_seen = False

    def set_time_text(self, text):
        with self._lock:
            self.events.append(("time", text))

    def update_control(self, update):
        with self._lock:
            self.events.append(("control", update))
            self.controls[update.control] = update
            if all(c.is_active for c in self.controls.values()):
                self.both_active_seen = True

    @property
    def time_texts(self):
        with self._lock:
            return [value for kind, value in self.events if kind == "time"]

    @property
    def last_time(self):
        texts = self.time_texts
        return texts[-1] if texts else None

    def distinct_times(self):
        """Time texts with consecutive repeats collapsed."""
        return [text for text, _ in itertools.groupby(self.time_texts)]

    def clear(self):
        with self._lock:
            self.events = []

    def control(self, control: Control):
        with self._lock:
            return self.controls[control]


class FakeCapture(AudioCaptureService):
    """Capture service whose take lasts until ``stop()``."""

    def __init__(self):
        self.start_error = None
        self.stop_error = None
        self.save_error = None
        self.started = threading.Event()
        self._stop = threading.Event()
        self.calls = []
        self.saved_paths = []

    def start(self):
        self.calls.append("start")
        self.started.set()
        if self.start_error:
            raise self.start_error
        self._stop.wait(5.0)
        self._stop.clear()

    def stop(self):
        self.calls.append("stop")
        self._stop.set()
        if self.stop_error:
            raise self.stop_error

    def save(self, path):
        self.calls.append("save")
        if self.save_error:
            raise self.save_error
        self.saved_paths.append(path)


class FakePlayer(AudioPlaybackService):
    """Playback service playing until ``finish()`` or ``stop()``.

    ``linger`` seconds pass between the end of the sound and ``play()`` returning.
    """

    def __init__(self):
        self.play_error = None
        self.linger = 0.0
        self.playing = threading.Event()
        self.stopped = threading.Event()
        self._end = threading.Event()
        self.played_paths = []
        self.stop_sessions = []

    def play(self, path, session=None):
        self.played_paths.append(path)
        if self.play_error:
            raise self.play_error
        self.playing.set()
        self._end.wait(5.0)
        self._end.clear()
        self.playing.clear()
        time.sleep(self.linger)

    def stop(self, session=None):
        self.stop_sessions.append(session)
        self.stopped.set()
        self._end.set()

    def finish(self):
        self._end.set()


class FakeNotifier(Notifier):
    def __init__(self):
        self.infos = []
        self.errors = []

    def info(self, message):
        self.infos.append(message)

    def error(self, title, message):
        self.errors.append((title, message))


class SavePrompt:
    """Stand-in for the save dialog, answering with ``answer``."""

    def __init__(self, answer="take"):
        self.answer = answer
        self.suggestions = []

    def __call__(self, suggested):
        self.suggestions.append(suggested)
        return self.answer


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def fake_player():
    return FakePlayer()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def save_prompt():
    return SavePrompt()


@pytest.fixture
def make_controller(temp_data_dir, executor, sink, notifier, save_prompt):
    """Build a SessionController over the given services."""
    controllers = []

    def _make(capture, player, timer_factory=None):
        context = SessionContext(
            capture=capture,
            player=player,
            display=sink,
            notifier=notifier,
            prompt_save_path=save_prompt,
            file_manager=FileManager(temp_data_dir),
            executor=executor,
            timer_interval=0.01,
            join_timeout=2.0,
            timer_factory=timer_factory,
        )
        controller = SessionController(context)
        controllers.append(controller)
        return controller

    yield _make

    for controller in controllers:
        controller.shutdown()


@pytest.fixture
def controller(make_controller, fake_capture, fake_player):
    return make_controller(fake_capture, fake_player)


@pytest.fixture
def timer_factory():
    """Factory of fast timers counting one logical second per tick up to ``limit``."""
    def _factory(limit):
        return lambda: ElapsedTimer(interval=0.002, clock=capped_clock(limit))
    return _factory
