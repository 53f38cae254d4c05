"""Elapsed-time counting."""

from .elapsed_timer import ElapsedTimer, format_elapsed, DEFAULT_LABEL

__all__ = [
    "ElapsedTimer",
    "format_elapsed",
    "DEFAULT_LABEL",
]
