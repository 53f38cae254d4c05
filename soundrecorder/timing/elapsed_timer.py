"""Elapsed-time counter that publishes HH:MM:SS text to a display sink."""

import time
import logging
import threading
from concurrent.futures import Executor, Future, wait
from typing import Callable, Optional

from ..display.sink import DisplaySink

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Record Time"


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as HH:MM:SS on a UTC calendar base.

    Uses ``time.gmtime`` so no local-time or DST offset leaks into the
    result. Like a clock face, the hours wrap after 24 hours.
    """
    return time.strftime("%H:%M:%S", time.gmtime(max(0, int(seconds))))


class ElapsedTimer:
    """Periodic task counting elapsed time for one recording or playback.

    The counting loop runs on an executor supplied to ``start()``. A single
    wake event serves as its cancellation token: ``cancel()`` and ``reset()``
    set their flag and wake the loop, which then exits right away instead of
    finishing its sleep. Instances are single-use.
    """

    def __init__(self,
                 label: str = DEFAULT_LABEL,
                 interval: float = 1.0,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize elapsed timer.

        Args:
            label: Text shown before the elapsed time
            interval: Seconds between two ticks
            clock: Source of the instants elapsed time is measured with
        """
        self.label = label
        self.interval = interval
        self._clock = clock

        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._running = False
        self._reset_requested = False
        self._started = False
        self._start_instant: Optional[float] = None
        self._sink: Optional[DisplaySink] = None
        self._future: Optional[Future] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def elapsed(self) -> float:
        """Seconds elapsed since ``start()``."""
        if self._start_instant is None:
            return 0.0
        return self._clock() - self._start_instant

    @property
    def future(self) -> Optional[Future]:
        return self._future

    def text(self, seconds: float) -> str:
        """Label text for ``seconds`` of elapsed time."""
        return f"{self.label}: {format_elapsed(seconds)}"

    def start(self, sink: DisplaySink, executor: Executor) -> Future:
        """Show 00:00:00 on ``sink`` and start counting on ``executor``.

        Args:
            sink: Display receiving the formatted time
            executor: Executor the counting loop is submitted to

        Returns:
            Future completing when the counting loop terminates
        """
        with self._lock:
            if self._started:
                raise RuntimeError("ElapsedTimer instances cannot be restarted")
            self._started = True
            self._running = True
            self._sink = sink
            self._start_instant = self._clock()
            sink.set_time_text(self.text(0))

        self._future = executor.submit(self._run)
        logger.debug(f"Elapsed timer started ({self.label})")
        return self._future

    def cancel(self) -> None:
        """Stop counting; the displayed text keeps its last value."""
        with self._lock:
            self._running = False
        self._wake.set()

    def reset(self) -> None:
        """Stop counting and show 00:00:00."""
        with self._lock:
            self._reset_requested = True
            self._running = False
        self._wake.set()

    def interrupt(self) -> None:
        """Wake the loop without cancelling it; counting goes on."""
        self._wake.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the counting loop to terminate.

        Returns:
            True if the loop has terminated (or was never started)
        """
        if self._future is None:
            return True
        done, _ = wait([self._future], timeout=timeout)
        return bool(done)

    def _run(self) -> None:
        """Counting loop: wait for the next tick, then publish elapsed time."""
        deadline = time.monotonic() + self.interval

        while True:
            remaining = deadline - time.monotonic()
            woke = self._wake.wait(remaining) if remaining > 0 else False

            with self._lock:
                if self._reset_requested:
                    self._running = False
                    self._sink.set_time_text(self.text(0))
                    logger.debug("Elapsed timer reset")
                    return
                if not self._running:
                    logger.debug("Elapsed timer cancelled")
                    return
                if woke:
                    # Interrupted without a reset: wait out the rest of this tick
                    self._wake.clear()
                    continue

                text = self.text(self.elapsed)
                self._sink.set_time_text(text)
            logger.debug(f"Tick: {text}")

            deadline += self.interval
            now = time.monotonic()
            if deadline <= now:
                # Fell behind (suspended process); resume one interval from now
                deadline = now + self.interval
