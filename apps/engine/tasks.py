"""
Celery Tasks for the Booking Engine

Out-of-band work:
- Retrying waitlist promotion after a failed synchronous attempt
- Expiring stale waitlist entries
- Completing reservations whose date has passed
- Rolling recurring rules forward
"""

import logging
from typing import Any, Dict

from celery import shared_task
from django.db import DatabaseError

logger = logging.getLogger(__name__)


def _engine():
    from .services import BookingEngine
    return BookingEngine.default()


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def promote_waitlist(self, reservation_id: str) -> Dict[str, Any]:
    """
    Promote the waitlist for a cancelled reservation's interval.

    Args:
        reservation_id: UUID of the cancelled reservation

    Returns:
        Dict with the promoted entry ids
    """
    from .models import Reservation
    from .services import BookingNotFoundError

    engine = _engine()

    try:
        reservation = engine.store.get(reservation_id)
    except BookingNotFoundError:
        logger.error(f"Reservation not found for waitlist promotion: {reservation_id}")
        return {'success': False, 'error': 'Reservation not found'}

    if reservation.status != Reservation.Status.CANCELLED:
        logger.info(f"Reservation {reservation_id} is {reservation.status}, nothing to promote")
        return {'success': True, 'promoted': []}

    try:
        promoted = engine.store.promote_freed_interval(reservation)
    except DatabaseError as exc:
        logger.warning(f"Waitlist promotion for {reservation_id} failed, retrying: {exc}")
        raise self.retry(exc=exc)

    return {'success': True, 'promoted': [str(e.id) for e in promoted]}


@shared_task
def expire_waitlist_entries() -> Dict[str, Any]:
    """Expire waitlist entries whose date has passed."""
    count = _engine().waitlist.expire_stale_entries()
    return {'success': True, 'expired': count}


@shared_task
def complete_past_reservations() -> Dict[str, Any]:
    """Complete confirmed reservations dated before today."""
    count = _engine().store.complete_past_reservations()
    return {'success': True, 'completed': count}


@shared_task(bind=True, max_retries=3, default_retry_delay=300)
def materialize_recurring_rules(self) -> Dict[str, Any]:
    """Roll every active recurring rule's booking window forward."""
    from .services import StorageTransientError

    try:
        totals = _engine().recurring.extend_active_rules()
    except StorageTransientError as exc:
        logger.warning(f"Recurring materialization interrupted, retrying: {exc}")
        raise self.retry(exc=exc)

    logger.info(
        f"Recurring materialization: attempted={totals.attempted} "
        f"created={totals.created} skipped={totals.skipped}"
    )
    return {
        'success': True,
        'attempted': totals.attempted,
        'created': totals.created,
        'skipped': totals.skipped,
    }
