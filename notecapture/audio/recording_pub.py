"""Recording publisher for pub/sub delivery of finished recordings."""

import logging
from pubsub import pub
from ..models.events import RecordingEvent, SessionEvent

logger = logging.getLogger(__name__)

RECORDING_COMPLETED_TOPIC = "recording.completed"
RECORDING_FAILED_TOPIC = "recording.failed"


class RecordingPublisher:
    """Publishes recording outcomes using pubsub.pub."""

    def __init__(self,
                 completed_topic: str = RECORDING_COMPLETED_TOPIC,
                 failed_topic: str = RECORDING_FAILED_TOPIC):
        """Initialize recording publisher.

        Args:
            completed_topic: Topic receiving a RecordingEvent per finished recording
            failed_topic: Topic receiving a SessionEvent when a recording fails
        """
        self.completed_topic = completed_topic
        self.failed_topic = failed_topic
        logger.info(f"RecordingPublisher initialized with topics: {completed_topic}, {failed_topic}")

    def publish_recorded(self, event: RecordingEvent) -> None:
        pub.sendMessage(self.completed_topic, event=event)
        logger.debug(f"Published recording {event.session_id} at {event.locator}")

    def publish_failed(self, event: SessionEvent) -> None:
        pub.sendMessage(self.failed_topic, event=event)
        logger.debug(f"Published failure of session {event.event_id}")
