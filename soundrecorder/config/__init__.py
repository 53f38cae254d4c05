"""Simple YAML configuration loader for SoundRecorder."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "audio": {
        "sample_rate": 44100,
        "channels": 2,
        "chunk_size": 1024,
        "input_device_index": None,
        "stop_timeout_seconds": 2.0,
    },
    "playback": {
        "chunk_size": 1024,
        "output_device_index": None,
    },
    "timer": {
        "label": "Record Time",
        "interval_seconds": 1.0,
    },
    "session": {
        "join_timeout_seconds": 5.0,
    },
    "storage": {
        "save_directory": "recordings",
        "file_suffix": ".wav",
    },
    "logging": {
        "level": "INFO",
        "file_path": "logs/soundrecorder.log",
        "console_output": False,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into ``base`` recursively, returning ``base``."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


class SoundRecorderConfig:
    """SoundRecorder configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, the built-in defaults
                        are used and relative paths resolve against the working
                        directory.
        """
        self.config_file: Optional[Path] = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            self._resolve_paths(self.config, Path.cwd())
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file over the defaults."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        config = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), loaded)

        # Resolve relative paths
        self._resolve_paths(config, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any], base_dir: Path) -> None:
        """Resolve relative paths in configuration relative to ``base_dir``."""
        # Resolve save directory
        if 'storage' in config and config['storage'].get('save_directory'):
            save_dir = config['storage']['save_directory']
            if not os.path.isabs(save_dir):
                config['storage']['save_directory'] = str(base_dir / save_dir)

        # Resolve log file path
        if 'logging' in config and config['logging'].get('file_path'):
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(base_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

        Args:
            key_path: Dot-separated key path (e.g., 'timer.interval_seconds')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'storage.save_directory')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_save_directory(self) -> str:
        """Get the directory recordings are suggested to be saved in."""
        save_dir = self.get('storage.save_directory', 'recordings')
        return str(Path(save_dir).absolute())

    def get_file_suffix(self) -> str:
        """Get the audio file suffix enforced on saved recordings."""
        suffix = self.get('storage.file_suffix', '.wav') or '.wav'
        return suffix if suffix.startswith('.') else f".{suffix}"
