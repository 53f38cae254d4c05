"""Session controller driving recording, playback and the elapsed-time display."""

import queue
import logging
import threading
from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from ..display.sink import DisplaySink
from ..errors import RecorderError
from ..models.events import (
    Command,
    Control,
    ControlUpdate,
    CaptureFailed,
    PlaybackFailed,
    PlaybackFinished,
    initial_controls,
)
from ..models.session import SessionState, SavedRecording
from ..storage.file_manager import FileManager
from ..timing.elapsed_timer import ElapsedTimer, DEFAULT_LABEL
from .interfaces import AudioCaptureService, AudioPlaybackService, Notifier

logger = logging.getLogger(__name__)

Message = Union[Command, CaptureFailed, PlaybackFinished, PlaybackFailed]


@dataclass
class SessionContext:
    """Everything a session controller needs, owned by the application."""
    capture: AudioCaptureService
    player: AudioPlaybackService
    display: DisplaySink
    notifier: Notifier
    prompt_save_path: Callable[[str], Optional[str]]  # suggested path -> chosen path or None
    file_manager: FileManager
    executor: Executor
    timer_label: str = DEFAULT_LABEL
    timer_interval: float = 1.0
    join_timeout: float = 5.0
    timer_factory: Optional[Callable[[], ElapsedTimer]] = None


class SessionController:
    """State machine binding capture, playback and the elapsed timer together.

    All operations run on the coordinating thread. Background activities
    (capture, playback) report back by posting messages to the inbox, which
    ``process_next()`` drains on the coordinating thread. Every session start
    bumps a generation counter so messages of an earlier session are ignored.

    An activity enters its service call only while its generation is admitted.
    Stopping a session withdraws the admission and learns, under the same
    lock, whether the service call is running and needs a ``stop()``.
    """

    def __init__(self, context: SessionContext):
        """Initialize session controller.

        Args:
            context: Services, display, prompt and executor of this session
        """
        self.context = context

        # Never held across a blocking service call, a join or a prompt
        self._lock = threading.RLock()
        self._inbox: "queue.Queue[Message]" = queue.Queue()
        self._state = SessionState.IDLE
        self._generation = 0

        # The only lock activity threads take
        self._service_lock = threading.RLock()
        self._admitted: Optional[int] = None
        self._in_service = False

        self._timer: Optional[ElapsedTimer] = None
        self._activity: Optional[Future] = None
        self._saved: Optional[SavedRecording] = None

        self._controls: Dict[Control, ControlUpdate] = initial_controls()
        self._pre_record_controls: Dict[Control, ControlUpdate] = dict(self._controls)

    # ------------------------------------------------------------------
    # Observed state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def saved_recording(self) -> Optional[SavedRecording]:
        with self._lock:
            return self._saved

    @property
    def controls(self) -> Dict[Control, ControlUpdate]:
        """Snapshot of the current control presentation."""
        with self._lock:
            return dict(self._controls)

    @property
    def timer(self) -> Optional[ElapsedTimer]:
        return self._timer

    def refresh_display(self) -> None:
        """Republish the presentation of both controls."""
        with self._lock:
            for update in self._controls.values():
                self.context.display.update_control(update)

    # ------------------------------------------------------------------
    # Message queue
    # ------------------------------------------------------------------

    def post(self, message: Message) -> None:
        """Queue a command or activity message for the coordinating thread."""
        self._inbox.put(message)

    def on_command(self, command: Command) -> None:
        """Pub/sub listener for user commands."""
        logger.debug(f"Command received: {command}")
        self.post(command)

    def process_next(self, timeout: Optional[float] = None) -> bool:
        """Handle one queued message.

        Args:
            timeout: Seconds to wait for a message, None to block

        Returns:
            False once a QUIT command has been handled, True otherwise
        """
        try:
            message = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return True

        try:
            return self._dispatch(message)
        finally:
            self._inbox.task_done()

    def process_pending(self) -> bool:
        """Handle every message already queued, without waiting."""
        while True:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                return True
            try:
                if not self._dispatch(message):
                    return False
            finally:
                self._inbox.task_done()

    def _dispatch(self, message: Message) -> bool:
        if message is Command.QUIT:
            logger.info("Quit requested")
            return False
        if message is Command.TOGGLE_RECORD:
            self.toggle_record()
        elif message is Command.TOGGLE_PLAY:
            self.toggle_play()
        elif isinstance(message, CaptureFailed):
            self._on_capture_failed(message)
        elif isinstance(message, PlaybackFinished):
            self._on_playback_finished(message)
        elif isinstance(message, PlaybackFailed):
            self._on_playback_failed(message)
        else:
            logger.warning(f"Ignoring unknown message: {message!r}")
        return True

    # ------------------------------------------------------------------
    # Toggle controls
    # ------------------------------------------------------------------

    def toggle_record(self) -> bool:
        """Record/Stop button: start or stop recording."""
        state = self.state
        if state is SessionState.RECORDING:
            return self.stop_recording()
        if state is SessionState.IDLE:
            return self.start_recording()
        logger.warning("Record pressed while playing; ignored")
        return False

    def toggle_play(self) -> bool:
        """Play/Stop button: start or stop playback."""
        state = self.state
        if state is SessionState.PLAYING:
            return self.stop_playback()
        if state is SessionState.IDLE:
            return self.start_playback()
        logger.warning("Play pressed while recording; ignored")
        return False

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self) -> bool:
        """Idle -> Recording: start the timer and the capture activity.

        Returns:
            True if recording was started
        """
        if not self._can_start("recording"):
            return False
        if not self._quiesce():
            return False

        with self._lock:
            if not self._can_start("recording"):
                return False

            self._generation += 1
            generation = self._generation
            self._pre_record_controls = dict(self._controls)
            self._state = SessionState.RECORDING

            self._timer = self._new_timer()
            self._timer.start(self.context.display, self.context.executor)
            self._set_control(Control.RECORD, True, "Stop")
            self._set_control(Control.PLAY, False, "Play")

            self._admit(generation)
            self._activity = self.context.executor.submit(self._capture_activity, generation)
            logger.info(f"Recording started (session {generation})")
            return True

    def stop_recording(self) -> bool:
        """Recording -> Idle: stop the capture, then run the save flow.

        Returns:
            True if the take was saved
        """
        with self._lock:
            if self._state is not SessionState.RECORDING:
                logger.warning(f"Cannot stop recording while {self._state.value}")
                return False

            generation = self._generation
            activity = self._activity
            self._timer.cancel()
            self._set_control(Control.RECORD, True, "Record")
            self._state = SessionState.IDLE

        if self._withdraw_admission():
            try:
                self.context.capture.stop()
            except RecorderError as e:
                if self._wait_activity(activity) and activity.result() is False:
                    logger.info(f"Capture of session {generation} failed while stopping")
                    return False
                logger.error(f"Error stopping sound recording: {e}")
                self._restore_play_control()
                self.context.notifier.error("Error stopping sound recording!", e.get_user_message())
                return False
        elif not activity.done():
            # The capture activity is no longer admitted and skips the device
            logger.warning("Recording stopped before capture was running; nothing to save")
            self._restore_play_control()
            return False

        if not self._wait_activity(activity):
            logger.error("Capture activity did not finish after stop")
            self._restore_play_control()
            return False

        outcome = activity.result()
        if outcome is None:
            logger.warning("Recording stopped before capture began; nothing to save")
            self._restore_play_control()
            return False
        if not outcome:
            # The queued CaptureFailed message reconciles the controls
            logger.info(f"Capture of session {generation} failed; nothing to save")
            return False

        return self._save_take()

    def _save_take(self) -> bool:
        """Prompt for a destination and save the take there."""
        file_manager = self.context.file_manager
        chosen = self.context.prompt_save_path(file_manager.suggest_recording_path())
        if not chosen:
            logger.info("Save cancelled; take discarded")
            self._restore_play_control()
            return False

        try:
            path = file_manager.resolve_save_path(chosen)
            self.context.capture.save(path)
        except OSError as e:
            logger.error(f"Error preparing save location: {e}")
            self._restore_play_control()
            self.context.notifier.error("Error saving to sound file!", str(e))
            return False
        except RecorderError as e:
            logger.error(f"Error saving to sound file: {e}")
            self._restore_play_control()
            self.context.notifier.error("Error saving to sound file!", e.get_user_message())
            return False

        with self._lock:
            self._saved = SavedRecording(file_path=path)
            self._set_control(Control.PLAY, True, "Play")
        logger.info(f"Recording saved to {path}")
        self.context.notifier.info(f"Saved recorded sound to:\n{path}")
        return True

    def _capture_activity(self, generation: int) -> Optional[bool]:
        """Runs on the executor: capture until stopped.

        Returns:
            True if the capture ended normally, False if it failed, None if the
            session was stopped before the capture began
        """
        if not self._enter_service(generation):
            return None
        try:
            self.context.capture.start()
        except RecorderError as e:
            logger.error(f"Capture failed: {e}")
            self.post(CaptureFailed(generation, e))
            return False
        finally:
            self._leave_service()
        return True

    def _on_capture_failed(self, message: CaptureFailed) -> None:
        with self._lock:
            if message.generation != self._generation:
                logger.debug(f"Ignoring capture failure of stale session {message.generation}")
                return
            if self._state is SessionState.RECORDING:
                self._timer.reset()
                self._state = SessionState.IDLE
            for update in self._pre_record_controls.values():
                self._set_control(update.control, update.enabled, update.label)
        self._withdraw_admission()
        self.context.notifier.error("Could not start recording sound!",
                                    message.error.get_user_message())

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def start_playback(self) -> bool:
        """Idle -> Playing: play the saved recording with a fresh timer.

        Returns:
            True if playback was started
        """
        if not self._can_start("playback"):
            return False
        if not self._quiesce():
            return False

        with self._lock:
            if not self._can_start("playback"):
                return False

            self._generation += 1
            generation = self._generation
            self._state = SessionState.PLAYING

            self._timer = self._new_timer()
            self._timer.start(self.context.display, self.context.executor)
            self._set_control(Control.RECORD, False, "Record")
            self._set_control(Control.PLAY, True, "Stop")

            self._admit(generation)
            self._activity = self.context.executor.submit(
                self._playback_activity, generation, self._saved.file_path
            )
            logger.info(f"Playback of {self._saved.file_path} started (session {generation})")
            return True

    def stop_playback(self) -> bool:
        """Playing -> Idle on user request.

        Resets the timer and signals the player, then returns without waiting
        for the playback activity to terminate. The next session start joins it.

        Returns:
            True if playback was playing
        """
        with self._lock:
            if self._state is not SessionState.PLAYING:
                logger.warning(f"Cannot stop playback while {self._state.value}")
                return False

            generation = self._generation
            self._timer.reset()
            with self._service_lock:
                if self._withdraw_admission():
                    self.context.player.stop(generation)
            self._state = SessionState.IDLE
            self._restore_after_playback()
            logger.info(f"Playback stopped (session {generation})")
            return True

    def _playback_activity(self, generation: int, path: str) -> None:
        """Runs on the executor: play the file and report the outcome."""
        if not self._enter_service(generation):
            return
        try:
            self.context.player.play(path, generation)
        except RecorderError as e:
            logger.error(f"Playback failed: {e}")
            self.post(PlaybackFailed(generation, e))
            return
        finally:
            self._leave_service()
        self.post(PlaybackFinished(generation))

    def _on_playback_finished(self, message: PlaybackFinished) -> None:
        with self._lock:
            if message.generation != self._generation or self._state is not SessionState.PLAYING:
                logger.debug(f"Ignoring end of stopped or stale playback {message.generation}")
                return
            self._timer.reset()
            self._state = SessionState.IDLE
            self._restore_after_playback()
            logger.info(f"Playback finished (session {message.generation})")

    def _on_playback_failed(self, message: PlaybackFailed) -> None:
        with self._lock:
            if message.generation != self._generation or self._state is not SessionState.PLAYING:
                logger.debug(f"Ignoring failure of stopped or stale playback {message.generation}")
                return
            self._timer.reset()
            self._state = SessionState.IDLE
            self._restore_after_playback()
        self.context.notifier.error("Could not play back the recording!",
                                    message.error.get_user_message())

    def _restore_after_playback(self) -> None:
        self._set_control(Control.PLAY, True, "Play")
        self._set_control(Control.RECORD, True, "Record")

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def _can_start(self, kind: str) -> bool:
        with self._lock:
            if self._state is not SessionState.IDLE:
                logger.warning(f"Cannot start {kind} while {self._state.value}")
                return False
            if kind == "playback" and self._saved is None:
                logger.warning("Nothing has been saved yet; playback unavailable")
                return False
            return True

    def _admit(self, generation: int) -> None:
        with self._service_lock:
            self._admitted = generation

    def _withdraw_admission(self) -> bool:
        """Close the current session to its activity.

        Returns:
            True if the activity is inside its service call
        """
        with self._service_lock:
            self._admitted = None
            return self._in_service

    def _enter_service(self, generation: int) -> bool:
        """Mark the activity as inside its service call, unless its session ended."""
        with self._service_lock:
            if generation != self._admitted:
                logger.debug(f"Session {generation} ended before its activity began")
                return False
            self._in_service = True
            return True

    def _leave_service(self) -> None:
        with self._service_lock:
            self._in_service = False

    def _wait_activity(self, activity: Optional[Future]) -> bool:
        if activity is None:
            return True
        done, _ = wait([activity], timeout=self.context.join_timeout)
        return bool(done)

    def _pending(self) -> List[Future]:
        with self._lock:
            return [f for f in (self._activity, self._timer and self._timer.future) if f is not None]

    def _quiesce(self) -> bool:
        """Wait for the previous session's activity and timer to terminate."""
        pending = self._pending()
        if not pending:
            return True

        _, not_done = wait(pending, timeout=self.context.join_timeout)
        if not_done:
            logger.error("Previous session is still running; new session refused")
            self.context.notifier.error("Busy", "The previous recording or playback is still stopping.")
            return False
        return True

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until the current activity and timer have terminated.

        Returns:
            True if both terminated within ``timeout``
        """
        pending = self._pending()
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        """Stop whatever is running; an unsaved take is discarded."""
        state = self.state
        if state is SessionState.PLAYING:
            self.stop_playback()
        elif state is SessionState.RECORDING:
            with self._lock:
                self._timer.cancel()
                self._state = SessionState.IDLE
            if self._withdraw_admission():
                try:
                    self.context.capture.stop()
                except RecorderError as e:
                    logger.error(f"Error stopping capture on shutdown: {e}")

        if not self.join(self.context.join_timeout):
            logger.warning("Activities did not terminate during shutdown")
        logger.info("SessionController shut down")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _new_timer(self) -> ElapsedTimer:
        if self.context.timer_factory is not None:
            return self.context.timer_factory()
        return ElapsedTimer(label=self.context.timer_label, interval=self.context.timer_interval)

    def _set_control(self, control: Control, enabled: bool, label: str) -> None:
        update = ControlUpdate(control, enabled, label)
        with self._lock:
            self._controls[control] = update
            self.context.display.update_control(update)

    def _restore_play_control(self) -> None:
        """Play is available again only if an earlier take was saved."""
        with self._lock:
            self._set_control(Control.PLAY, self._saved is not None, "Play")
