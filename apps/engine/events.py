"""
Booking Engine Events

Event definitions and publishing for the notification collaborator.
Delivery is best effort: a broker failure is logged and never undoes
the booking state change that produced the event.
"""

import json
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from django.conf import settings
from django.utils import timezone
from django_redis import get_redis_connection
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class EventType:
    """Event type constants for the booking engine."""

    RESERVATION_CREATED = 'reservation_created'
    RESERVATION_CANCELLED = 'reservation_cancelled'
    RESERVATION_COMPLETED = 'reservation_completed'
    RESERVATION_NO_SHOW = 'reservation_no_show'
    WAITLIST_PROMOTED = 'waitlist_promoted'


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for event payloads."""

    def default(self, obj):
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date, time)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


class EventPublisher:
    """
    Event publisher for the booking engine.

    Backends, chosen by ``settings.EVENT_BACKEND``:
    - log: write the event to the application log (default)
    - redis: Redis pub/sub on ``events:<event_type>``
    - memory: keep events in process (for testing)
    """

    # In-memory event store for testing
    _memory_events: List[Dict[str, Any]] = []

    def __init__(self, backend: Optional[str] = None):
        self.service_name = getattr(settings, 'SERVICE_NAME', 'booking-engine')
        self.backend = backend or getattr(settings, 'EVENT_BACKEND', 'log')
        self.enabled = getattr(settings, 'EVENT_PUBLISHING_ENABLED', True)

    def publish(
        self,
        event_type: str,
        payload: Dict[str, Any],
        correlation_id: str = None,
    ) -> bool:
        """
        Publish an event.

        Args:
            event_type: One of the EventType constants
            payload: Event data, ids of the affected records
            correlation_id: Optional correlation ID for tracing

        Returns:
            True if the backend accepted the event, False otherwise
        """
        if not self.enabled:
            logger.debug(f"Event publishing disabled, skipping: {event_type}")
            return False

        event = {
            'event_type': event_type,
            'service': self.service_name,
            'timestamp': timezone.now().isoformat(),
            'correlation_id': correlation_id,
            'payload': payload,
        }
        event_json = json.dumps(event, cls=JSONEncoder)

        logger.info(f"Publishing event: {event_type}", extra={
            'event_type': event_type,
            'backend': self.backend,
        })

        if self.backend == 'redis':
            return self._publish_redis(event_type, event_json)
        if self.backend == 'memory':
            return self._publish_memory(event_type, event_json)

        logger.debug(f"Event payload: {event_json[:500]}")
        return True

    def _publish_redis(self, event_type: str, event_json: str) -> bool:
        """Publish to Redis pub/sub."""
        try:
            connection = get_redis_connection('default')
            connection.publish(f"events:{event_type}", event_json)
            return True
        except RedisError as e:
            logger.error(f"Redis publish error for {event_type}: {e}")
            return False

    def _publish_memory(self, event_type: str, event_json: str) -> bool:
        """Store event in memory (for testing)."""
        self._memory_events.append(json.loads(event_json))
        return True

    @classmethod
    def get_memory_events(cls, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get events from memory store (for testing)."""
        if event_type:
            return [e for e in cls._memory_events if e['event_type'] == event_type]
        return list(cls._memory_events)

    @classmethod
    def clear_memory_events(cls):
        """Clear memory event store (for testing)."""
        cls._memory_events.clear()


# Convenience functions for publishing specific events
def publish_reservation_created(publisher: EventPublisher, reservation):
    """Publish reservation created event."""
    publisher.publish(
        EventType.RESERVATION_CREATED,
        payload={
            'reservation_id': reservation.id,
            'resource_id': reservation.resource_id,
            'requester_id': reservation.requester_id,
            'date': reservation.date,
            'start_time': reservation.start_time,
            'end_time': reservation.end_time,
            'total_charged': reservation.total_charged,
            'payment_status': reservation.payment_status,
            'recurring_rule_id': reservation.recurring_rule_id,
        }
    )


def publish_reservation_cancelled(publisher: EventPublisher, reservation, cancelled_by=None):
    """Publish reservation cancelled event."""
    publisher.publish(
        EventType.RESERVATION_CANCELLED,
        payload={
            'reservation_id': reservation.id,
            'resource_id': reservation.resource_id,
            'requester_id': reservation.requester_id,
            'date': reservation.date,
            'start_time': reservation.start_time,
            'end_time': reservation.end_time,
            'cancelled_by': cancelled_by,
            'payment_status': reservation.payment_status,
        }
    )


def publish_reservation_completed(publisher: EventPublisher, reservation):
    """Publish reservation completed event."""
    publisher.publish(
        EventType.RESERVATION_COMPLETED,
        payload={
            'reservation_id': reservation.id,
            'resource_id': reservation.resource_id,
            'requester_id': reservation.requester_id,
        }
    )


def publish_reservation_no_show(publisher: EventPublisher, reservation, reported_by=None):
    """Publish reservation no-show event."""
    publisher.publish(
        EventType.RESERVATION_NO_SHOW,
        payload={
            'reservation_id': reservation.id,
            'resource_id': reservation.resource_id,
            'requester_id': reservation.requester_id,
            'reported_by': reported_by,
        }
    )


def publish_waitlist_promoted(publisher: EventPublisher, entry):
    """Publish waitlist promoted event."""
    publisher.publish(
        EventType.WAITLIST_PROMOTED,
        payload={
            'waitlist_entry_id': entry.id,
            'resource_id': entry.resource_id,
            'requester_id': entry.requester_id,
            'date': entry.date,
            'time_slot': entry.time_slot,
        }
    )
