"""Main application entry point for SoundRecorder."""

import sys
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import click
from pubsub import pub
from rich.live import Live

from . import __version__
from .audio import AudioCapture, AudioPlayer
from .config import SoundRecorderConfig
from .display import DisplayPublisher
from .services import SessionController, SessionContext
from .storage import FileManager
from .ui import RecorderScreen, ConsoleNotifier, KeyboardInputHandler, COMMAND_TOPIC

logger = logging.getLogger(__name__)


class App:
    """Wires configuration, audio services, the screen and the session controller."""

    def __init__(self, config: SoundRecorderConfig):
        self.config = config
        self.executor: Optional[ThreadPoolExecutor] = None
        self.controller: Optional[SessionController] = None
        self.screen: Optional[RecorderScreen] = None
        self.input_handler: Optional[KeyboardInputHandler] = None

    def init(self) -> None:
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 44100)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 2)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} frames/chunk, {channels} channels")

        capture = AudioCapture(
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
            input_device_index=self.config.get('audio.input_device_index'),
            stop_timeout=self.config.get('audio.stop_timeout_seconds', 2.0),
        )
        player = AudioPlayer(
            chunk_size=self.config.get('playback.chunk_size', 1024),
            output_device_index=self.config.get('playback.output_device_index'),
        )

        file_manager = FileManager(self.config.get_save_directory(), self.config.get_file_suffix())
        file_manager.ensure_save_directory()
        stats = file_manager.get_storage_stats()
        logger.info(f"Save directory {stats['save_directory']}: {stats['audio_files']} recordings, "
                    f"{stats['total_size_mb']} MB")

        self.screen = RecorderScreen()
        self.screen.subscribe()

        # Capture, playback and the timer loop each hold a worker
        self.executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="soundrecorder")

        context = SessionContext(
            capture=capture,
            player=player,
            display=DisplayPublisher(),
            notifier=ConsoleNotifier(self.screen),
            prompt_save_path=self.screen.prompt_save_path,
            file_manager=file_manager,
            executor=self.executor,
            timer_label=self.config.get('timer.label', 'Record Time'),
            timer_interval=self.config.get('timer.interval_seconds', 1.0),
            join_timeout=self.config.get('session.join_timeout_seconds', 5.0),
        )
        self.controller = SessionController(context)
        pub.subscribe(self.controller.on_command, COMMAND_TOPIC)

    def run(self) -> None:
        """Run the screen loop on this thread until the user quits."""
        layout = self.screen.create_layout()
        self.input_handler = KeyboardInputHandler(self.screen.handle_key)

        try:
            with Live(layout, console=self.screen.console, refresh_per_second=10, screen=True) as live:
                self.screen.attach(live, self.input_handler)
                self.controller.refresh_display()
                self.screen.update_display(layout)
                self.input_handler.start()

                while self.controller.process_next(timeout=0.1):
                    self.screen.update_display(layout)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.input_handler:
            self.input_handler.stop()
        if self.controller:
            self.controller.shutdown()
            pub.unsubscribe(self.controller.on_command, COMMAND_TOPIC)
        if self.screen:
            self.screen.attach(None, None)
            self.screen.unsubscribe()
        if self.executor:
            self.executor.shutdown(wait=False)
        logger.info("SoundRecorder shut down")


def setup_logging(config: SoundRecorderConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'logs/soundrecorder.log')
    console_output = config.get('logging.console_output', False)

    # Create logs directory if it doesn't exist
    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("SoundRecorder application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


@click.command(epilog="Keys: r/space = Record/Stop, p = Play/Stop, q = Quit")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to configuration YAML file (default: built-in settings)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Set logging level (default: from config, INFO)")
@click.option("--save-dir", type=click.Path(file_okay=False),
              help="Directory suggested for saved recordings (overrides config)")
@click.version_option(__version__, prog_name="SoundRecorder")
def main(config_path: Optional[str], log_level: Optional[str], save_dir: Optional[str]) -> None:
    """SoundRecorder - record sound, save it as WAV and play it back."""
    try:
        config = SoundRecorderConfig(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    if save_dir:
        config.set('storage.save_directory', save_dir)
    setup_logging(config, log_level or config.get('logging.level', 'INFO'))

    app = App(config)
    try:
        app.init()
        app.run()
    except OSError as e:
        logger.error(f"Application error: {e}")
        raise click.ClickException(str(e))


if __name__ == "__main__":
    main()
