# app/utils/kafka_helpers.py
"""
Booking notification dispatcher.

Notifications are fire-and-forget: a failure to publish is logged and
never rolls back the state transition that triggered it.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from app.core.config import settings
from app.core.kafka_producer import get_kafka_singleton

logger = logging.getLogger(__name__)


class BookingNotification(str, Enum):
    REQUESTED = "BOOKING_REQUESTED"
    ALLOWED = "BOOKING_ALLOWED"
    REJECTED = "BOOKING_REJECTED"
    CHANGED = "BOOKING_CHANGED"
    APPROVALS_RESET = "BOOKING_APPROVALS_RESET"
    CONFIRMED = "BOOKING_CONFIRMED"
    APPROVED_BY_BOTH = "BOOKING_APPROVED_BY_BOTH"
    PUBLISHED = "BOOKING_PUBLISHED"
    COMPLETED = "BOOKING_COMPLETED"
    CANCELLED = "BOOKING_CANCELLED"
    DELETED = "BOOKING_DELETED"


class NotificationDispatcher:
    def __init__(self, topic: Optional[str] = None):
        self.topic = topic or settings.BOOKING_NOTIFICATIONS_TOPIC

    def notify(
        self,
        party_id: str,
        event_type: BookingNotification,
        booking_id: str,
        metadata: Optional[dict] = None,
    ) -> bool:
        """Publish one notification. Returns True if the broker accepted it."""
        if not settings.NOTIFICATIONS_ENABLED:
            return False
        try:
            producer = get_kafka_singleton()
            if producer is None:
                logger.warning("Kafka producer unavailable, skipping notification")
                return False

            event_data = {
                "type": event_type.value,
                "userId": party_id,
                "bookingId": booking_id,
                "metadata": metadata or {},
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            future = producer.send(self.topic, value=event_data)
            future.get(timeout=5)

            logger.info(f"Published {event_type.value} for booking {booking_id} to {party_id}")
            return True

        except Exception as e:
            logger.error(
                f"Failed to publish {event_type.value} for booking {booking_id}: {e}",
                exc_info=True,
            )
            return False


notifier = NotificationDispatcher()


def get_notifier() -> NotificationDispatcher:
    """FastAPI dependency."""
    return notifier
