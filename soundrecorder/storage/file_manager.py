"""File management module for saved recordings."""

import logging
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List, Optional


logger = logging.getLogger(__name__)


def normalize_audio_path(file_path: str, suffix: str = ".wav") -> str:
    """Append ``suffix`` to ``file_path`` unless it already ends with it.

    The check is case-insensitive, so ``take.WAV`` is kept as is.

    Args:
        file_path: Path chosen by the user
        suffix: Audio file suffix including the dot

    Returns:
        Path guaranteed to end with the suffix
    """
    if not file_path.lower().endswith(suffix.lower()):
        file_path += suffix
    return file_path


class FileManager:
    """Manages where recordings are saved and how they are named."""

    def __init__(self, save_dir: str = "./recordings", suffix: str = ".wav"):
        """Initialize file manager with the save directory.

        Args:
            save_dir: Directory suggested for new recordings
            suffix: Audio file suffix enforced on saved recordings
        """
        self.save_dir = Path(save_dir)
        self.suffix = suffix

        logger.info(f"FileManager initialized with save_dir: {self.save_dir}")

    def ensure_save_directory(self) -> Path:
        """Ensure the save directory exists."""
        self.save_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {self.save_dir}")
        return self.save_dir

    def suggest_recording_path(self, now: Optional[datetime] = None) -> str:
        """Suggest a timestamped file name in the save directory.

        Returns:
            Absolute path such as ``.../recording_20240101_120000.wav``
        """
        timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        path = self.save_dir / f"recording_{timestamp}{self.suffix}"
        return str(path.absolute())

    def resolve_save_path(self, file_path: str) -> str:
        """Turn the user's answer into the final path of the recording.

        Relative paths are placed in the save directory, ``~`` is expanded, the
        audio suffix is enforced and missing parent directories are created.

        Args:
            file_path: Path entered by the user

        Returns:
            Absolute path ending with the audio suffix
        """
        path = Path(file_path).expanduser()
        if not path.is_absolute():
            path = self.save_dir / path

        resolved = normalize_audio_path(str(path.absolute()), self.suffix)
        Path(resolved).parent.mkdir(parents=True, exist_ok=True)
        return resolved

    def list_recordings(self) -> List[str]:
        """List recordings in the save directory.

        Returns:
            File paths sorted by name (timestamped names sort chronologically)
        """
        if not self.save_dir.exists():
            return []

        recordings = [
            str(path) for path in self.save_dir.iterdir()
            if path.is_file() and path.suffix.lower() == self.suffix.lower()
        ]
        recordings.sort()
        logger.debug(f"Found {len(recordings)} recordings")
        return recordings

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics for the save directory.

        Returns:
            Dictionary with storage statistics
        """
        recordings = self.list_recordings()
        total_size = sum(Path(path).stat().st_size for path in recordings)

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "audio_files": len(recordings),
            "save_directory": str(self.save_dir)
        }
