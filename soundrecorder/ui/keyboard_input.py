"""Cross-platform single-key input for the terminal UI."""

import sys
import threading
import time
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)


class KeyboardInputHandler:
    """Read single key presses on a background thread.

    The reader can be paused while another component (a prompt) owns stdin.
    """

    def __init__(self, callback: Callable[[str], bool], poll_interval: float = 0.05):
        """Initialize keyboard handler.

        Args:
            callback: Function that takes a key and returns True to continue, False to quit
            poll_interval: Seconds between two polls of the keyboard
        """
        self.callback = callback
        self.poll_interval = poll_interval
        self.running = False
        self.thread: Optional[threading.Thread] = None

        self._paused = threading.Event()
        self._idle = threading.Event()

    def start(self) -> None:
        """Start the keyboard input handler."""
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        """Stop the keyboard input handler."""
        self.running = False
        self._paused.clear()
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def pause(self, timeout: float = 1.0) -> bool:
        """Stop reading keys until ``resume()``.

        Returns:
            True once the reader has let go of stdin
        """
        self._idle.clear()
        self._paused.set()
        if not self.running or self.thread is threading.current_thread():
            return True
        return self._idle.wait(timeout)

    def resume(self) -> None:
        """Resume reading keys after ``pause()``."""
        self._paused.clear()

    def _input_loop(self) -> None:
        """Main input handling loop."""
        logger.info("Starting keyboard input loop")
        while self.running:
            if self._paused.is_set():
                self._idle.set()
                time.sleep(self.poll_interval)
                continue

            key = self._get_key()
            if key:
                logger.debug(f"Key detected: {key!r}")
                if not self.callback(key):
                    logger.info("Callback returned False, ending input loop")
                    self.running = False
                    break
            time.sleep(self.poll_interval)
        logger.info("Keyboard input loop ended")

    def _get_key(self) -> Optional[str]:
        """Get a single keypress in a cross-platform way."""
        try:
            if sys.platform == "win32":
                return self._get_key_windows()
            return self._get_key_unix()
        except OSError as e:
            logger.error(f"Error getting key: {e}")
            return None

    def _get_key_windows(self) -> Optional[str]:
        """Get key on Windows."""
        import msvcrt

        if msvcrt.kbhit():
            return msvcrt.getch().decode('utf-8', errors='ignore').lower()
        return None

    def _get_key_unix(self) -> Optional[str]:
        """Get key on Unix/Linux/macOS."""
        import select
        import tty
        import termios

        # Check if input is available
        if not select.select([sys.stdin], [], [], 0.1)[0]:
            return None

        # Set terminal to raw mode to get single characters
        try:
            old_settings = termios.tcgetattr(sys.stdin)
        except termios.error as e:
            logger.error(f"stdin is not a terminal: {e}")
            self.running = False
            return None
        try:
            tty.setraw(sys.stdin.fileno())
            return sys.stdin.read(1).lower()
        finally:
            termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
