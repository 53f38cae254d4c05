"""Display sink contract and its pub/sub publisher."""

import logging
import threading
from abc import ABC, abstractmethod

from pubsub import pub

from ..models.events import ControlUpdate

logger = logging.getLogger(__name__)

TIME_TOPIC = "display_time"
CONTROL_TOPIC = "display_control"


class DisplaySink(ABC):
    """Receiver of elapsed-time text and control presentation updates."""

    @abstractmethod
    def set_time_text(self, text: str) -> None:
        """Replace the elapsed-time label with ``text``."""
        pass

    @abstractmethod
    def update_control(self, update: ControlUpdate) -> None:
        """Apply the presentation of one control."""
        pass


class DisplayPublisher(DisplaySink):
    """Publishes display updates using pubsub.pub, one writer at a time.

    The elapsed timer writes from its own thread while the session controller
    writes from the coordinating thread; every message is sent under one lock so
    listeners always see whole values in a single order.
    """

    def __init__(self, time_topic: str = TIME_TOPIC, control_topic: str = CONTROL_TOPIC):
        """Initialize display publisher.

        Args:
            time_topic: Pub/sub topic name for elapsed-time text
            control_topic: Pub/sub topic name for control updates
        """
        self.time_topic = time_topic
        self.control_topic = control_topic
        self._lock = threading.Lock()
        logger.info(f"DisplayPublisher initialized with topics: {time_topic}, {control_topic}")

    def set_time_text(self, text: str) -> None:
        """Publish elapsed-time text to the time topic.

        Args:
            text: Complete label text, e.g. "Record Time: 00:01:05"
        """
        with self._lock:
            pub.sendMessage(self.time_topic, text=text)

    def update_control(self, update: ControlUpdate) -> None:
        """Publish a control presentation to the control topic.

        Args:
            update: New presentation of one control
        """
        with self._lock:
            pub.sendMessage(self.control_topic, update=update)
        logger.debug(f"Published control update: {update}")
