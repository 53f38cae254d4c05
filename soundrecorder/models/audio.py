"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    channels: int
    chunk_size: int
    total_chunks: int
    total_bytes: int
    peak_level: float = 0.0  # 0.0 - 1.0 of full scale
