"""Terminal recorder screen: elapsed-time label, Record/Play controls, prompts."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.text import Text

from ..display.sink import TIME_TOPIC, CONTROL_TOPIC
from ..models.events import Command, Control, ControlUpdate
from ..models.ui import DisplayState
from ..services.interfaces import Notifier
from .keyboard_input import KeyboardInputHandler

logger = logging.getLogger(__name__)

COMMAND_TOPIC = "recorder_command"

KEY_COMMANDS = {
    "r": Command.TOGGLE_RECORD,
    " ": Command.TOGGLE_RECORD,
    "p": Command.TOGGLE_PLAY,
    "q": Command.QUIT,
    "\x03": Command.QUIT,  # Ctrl+C in raw mode
}


class RecorderScreen:
    """Terminal view of a recorder session.

    Listens to the display topics and keeps a ``DisplayState`` that the
    coordinating thread renders. Key presses are published as commands.
    """

    def __init__(self,
                 console: Optional[Console] = None,
                 time_topic: str = TIME_TOPIC,
                 control_topic: str = CONTROL_TOPIC,
                 command_topic: str = COMMAND_TOPIC):
        """Initialize recorder screen.

        Args:
            console: Rich console to draw on
            time_topic: Pub/sub topic carrying elapsed-time text
            control_topic: Pub/sub topic carrying control updates
            command_topic: Pub/sub topic commands are published on
        """
        self.console = console or Console()
        self.time_topic = time_topic
        self.control_topic = control_topic
        self.command_topic = command_topic

        self._lock = threading.Lock()
        self._state = DisplayState()
        self.live: Optional[Live] = None
        self.input_handler: Optional[KeyboardInputHandler] = None

    # Display topic listeners

    def subscribe(self) -> None:
        pub.subscribe(self.on_time_text, self.time_topic)
        pub.subscribe(self.on_control_update, self.control_topic)
        logger.debug(f"RecorderScreen subscribed to {self.time_topic}, {self.control_topic}")

    def unsubscribe(self) -> None:
        pub.unsubscribe(self.on_time_text, self.time_topic)
        pub.unsubscribe(self.on_control_update, self.control_topic)

    def on_time_text(self, text: str) -> None:
        with self._lock:
            self._state.time_text = text

    def on_control_update(self, update: ControlUpdate) -> None:
        with self._lock:
            self._state.controls[update.control] = update

    def show_message(self, message: str) -> None:
        with self._lock:
            self._state.last_message = message

    @property
    def state(self) -> DisplayState:
        """Copy of what the screen currently shows."""
        with self._lock:
            return replace(self._state, controls=dict(self._state.controls))

    # Keyboard

    def handle_key(self, key: str) -> bool:
        """Translate a key press into a command.

        Returns:
            False once the quit key was pressed
        """
        command = KEY_COMMANDS.get(key)
        if command is None:
            logger.debug(f"Unhandled key: {key!r}")
            return True

        logger.info(f"Key {key!r} -> {command.name}")
        pub.sendMessage(self.command_topic, command=command)
        return command is not Command.QUIT

    # Rendering

    def create_layout(self) -> Layout:
        """Create the main UI layout."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main", ratio=1),
            Layout(name="footer", size=3)
        )
        return layout

    def update_display(self, layout: Layout) -> None:
        """Redraw every panel from the current display state."""
        state = self.state

        header = Text("SoundRecorder", style="bold blue")
        layout["header"].update(Panel(Align.center(header), style="bright_blue"))

        body = Text.assemble(
            (state.time_text, "bold white"),
            "\n\n",
            self._render_control(state.controls[Control.RECORD], "R"),
            "    ",
            self._render_control(state.controls[Control.PLAY], "P"),
        )
        if state.last_message:
            body.append(f"\n\n{state.last_message}", style="dim")
        layout["main"].update(Panel(Align.center(body, vertical="middle"), border_style="green"))

        controls = Text.assemble(
            ("Controls: ", "bold"),
            ("R/SPACE", "bold green"), " Record/Stop  ",
            ("P", "bold yellow"), " Play/Stop  ",
            ("Q", "bold red"), " Quit",
        )
        layout["footer"].update(Panel(Align.center(controls), style="bright_black"))

    @staticmethod
    def _render_control(update: ControlUpdate, key: str) -> Text:
        if not update.enabled:
            style = "dim strike"
        elif update.is_active:
            style = "bold red"
        else:
            style = "bold green"
        return Text(f"[{key}] {update.label}", style=style)

    # Modal interaction

    def attach(self, live: Optional[Live], input_handler: Optional[KeyboardInputHandler]) -> None:
        """Give the screen the live display and key reader it suspends for prompts."""
        self.live = live
        self.input_handler = input_handler

    @contextmanager
    def suspended(self):
        """Hand the terminal over to a prompt, then restore the live view."""
        if self.input_handler:
            self.input_handler.pause()
        if self.live:
            self.live.stop()
        try:
            yield self.console
        finally:
            if self.live:
                self.live.start(refresh=True)
            if self.input_handler:
                self.input_handler.resume()

    def prompt_save_path(self, suggested: str) -> Optional[str]:
        """Ask where to save the take.

        Args:
            suggested: Path offered as the default answer

        Returns:
            The chosen path, or None if the user declined to save
        """
        with self.suspended() as console:
            if not Confirm.ask("Save the recording?", default=True, console=console):
                logger.info("User declined to save the recording")
                return None
            path = Prompt.ask("Save as", default=suggested, console=console).strip()
        return path or None


class ConsoleNotifier(Notifier):
    """Shows notifications on the recorder screen and waits for Enter."""

    def __init__(self, screen: RecorderScreen):
        self.screen = screen

    def info(self, message: str) -> None:
        logger.info(message.replace("\n", " "))
        self.screen.show_message(message.replace("\n", " "))
        with self.screen.suspended() as console:
            console.print(Panel(message, title="SoundRecorder", border_style="green"))
            console.input("Press Enter to continue...")

    def error(self, title: str, message: str) -> None:
        logger.error(f"{title} {message}")
        self.screen.show_message(title)
        with self.screen.suspended() as console:
            console.print(Panel(message, title=title, border_style="red"))
            console.input("Press Enter to continue...")
