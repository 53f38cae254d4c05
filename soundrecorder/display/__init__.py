"""Display sink for elapsed time and control presentation."""

from .sink import DisplaySink, DisplayPublisher, TIME_TOPIC, CONTROL_TOPIC

__all__ = [
    "DisplaySink",
    "DisplayPublisher",
    "TIME_TOPIC",
    "CONTROL_TOPIC",
]
