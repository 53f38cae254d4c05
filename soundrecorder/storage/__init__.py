"""Storage of saved recordings."""

from .file_manager import FileManager, normalize_audio_path

__all__ = [
    "FileManager",
    "normalize_audio_path",
]
