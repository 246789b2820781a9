"""Session event publisher module for pub/sub event publishing."""

import logging
from typing import Optional
from pubsub import pub
from ..models.events import SessionEvent

logger = logging.getLogger(__name__)

SESSION_TOPIC = "transcript.session"


class SessionEventPublisher:
    """Publishes session lifecycle events using pubsub.pub."""

    def __init__(self, topic: str = SESSION_TOPIC):
        """Initialize session event publisher.

        Args:
            topic: Pub/sub topic name for session events
        """
        self.topic = topic
        logger.info(f"SessionEventPublisher initialized with topic: {topic}")

    def publish(self, event_type: str, session_id: Optional[str] = None,
                message: str = "", **metadata) -> SessionEvent:
        """Build a SessionEvent and publish it to the pub/sub topic."""
        event = SessionEvent(
            event_type=event_type,
            session_id=session_id,
            message=message,
            metadata=metadata,
        )
        self.publish_session_event(event)
        return event

    def publish_session_event(self, event: SessionEvent) -> None:
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published session event: {event.event_type} ({event.session_id})")
