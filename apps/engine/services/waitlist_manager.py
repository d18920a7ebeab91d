"""
Waitlist Manager

Players queue for a full slot and are promoted strictly in arrival
order when a cancellation frees it. Promotion only notifies; the
promoted player still books through the reservation store.
"""

import logging
import uuid
from datetime import date, time
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.engine.events import EventPublisher, publish_waitlist_promoted
from apps.engine.models import WaitlistEntry
from . import (
    BookingValidationError,
    BookingNotFoundError,
    BookingForbiddenError,
    WaitlistError,
)
from .calendar import ResourceCalendar
from .slots import SLOT_MINUTES, SlotGenerator, intervals_overlap, shift_time

logger = logging.getLogger(__name__)


class WaitlistManager:
    """
    Service for managing the waitlist.

    Handles:
    - Joining and leaving
    - FIFO promotion on cancellation
    - Booked marking and expiry sweeps
    """

    def __init__(self, calendar: ResourceCalendar, slot_generator: SlotGenerator, publisher: EventPublisher):
        self.calendar = calendar
        self.slot_generator = slot_generator
        self.publisher = publisher

    # ==========================================================================
    # Entry Management
    # ==========================================================================

    def join(self, resource_id, target_date: date, time_slot: time, requester_id: uuid.UUID) -> WaitlistEntry:
        """Add a requester to the waitlist for one slot."""
        resource = self.calendar.get_resource(resource_id)

        if not resource.is_active:
            raise BookingValidationError(f"Resource {resource.id} is not active")

        if target_date < timezone.localdate():
            raise BookingValidationError("Cannot join the waitlist for a past date")

        slot_starts = [s.start for s in self.slot_generator.for_resource(resource, target_date)]
        if time_slot not in slot_starts:
            raise BookingValidationError(
                f"{time_slot:%H:%M} is not a bookable slot on {target_date}"
            )

        if self._has_active_entry(resource, target_date, time_slot, requester_id):
            raise WaitlistError("Already on the waitlist for this slot")

        try:
            with transaction.atomic():
                entry = WaitlistEntry.objects.create(
                    resource=resource,
                    date=target_date,
                    time_slot=time_slot,
                    requester_id=requester_id,
                )
        except IntegrityError:
            # a concurrent join for the same slot committed first
            raise WaitlistError("Already on the waitlist for this slot")

        logger.info(f"User {requester_id} joined waitlist for {resource.id} {target_date} {time_slot:%H:%M}")
        return entry

    def _has_active_entry(self, resource, target_date: date, time_slot: time, requester_id) -> bool:
        return WaitlistEntry.objects.filter(
            resource=resource,
            date=target_date,
            time_slot=time_slot,
            requester_id=requester_id,
            status__in=WaitlistEntry.get_active_statuses(),
        ).exists()

    def get(self, entry_id) -> WaitlistEntry:
        """Get a waitlist entry by ID."""
        try:
            return WaitlistEntry.objects.get(id=entry_id)
        except (WaitlistEntry.DoesNotExist, ValidationError):
            raise BookingNotFoundError(f"Waitlist entry {entry_id} not found")

    def leave(self, entry_id, requester_id):
        """Remove the requester's own entry."""
        entry = self.get(entry_id)

        if not entry.is_owner(requester_id):
            raise BookingForbiddenError(f"User {requester_id} does not own waitlist entry {entry_id}")

        entry.delete()
        logger.info(f"User {requester_id} left waitlist entry {entry_id}")

    # ==========================================================================
    # Promotion
    # ==========================================================================

    def promote_on_cancellation(self, resource_id, target_date: date, time_slot: time) -> Optional[WaitlistEntry]:
        """
        Notify the longest-waiting entry for the exact slot.

        Returns the promoted entry, or None when nobody is waiting.
        """
        with transaction.atomic():
            entry = (
                WaitlistEntry.objects.select_for_update()
                .filter(
                    resource_id=resource_id,
                    date=target_date,
                    time_slot=time_slot,
                    status=WaitlistEntry.Status.WAITING,
                )
                .order_by('created_at', 'id')
                .first()
            )
            if entry is None:
                return None

            entry.mark_notified()

        transaction.on_commit(lambda: publish_waitlist_promoted(self.publisher, entry))
        logger.info(
            f"Promoted waitlist entry {entry.id} for {resource_id} {target_date} {time_slot:%H:%M}"
        )
        return entry

    def waiting_slots_between(self, resource_id, target_date: date, start: time, end: time) -> List[time]:
        """Slot starts with waiting entries whose slot overlaps [start, end)."""
        slot_starts = (
            WaitlistEntry.objects.filter(
                resource_id=resource_id,
                date=target_date,
                status=WaitlistEntry.Status.WAITING,
                time_slot__lt=end,
            )
            .order_by('time_slot')
            .values_list('time_slot', flat=True)
            .distinct()
        )
        return [
            slot_start for slot_start in slot_starts
            if intervals_overlap(slot_start, shift_time(slot_start, SLOT_MINUTES), start, end)
        ]

    def mark_booked(self, resource_id, target_date: date, start: time, end: time, requester_id) -> int:
        """Mark the requester's active entries inside [start, end) as booked."""
        count = WaitlistEntry.objects.filter(
            resource_id=resource_id,
            date=target_date,
            requester_id=requester_id,
            status__in=WaitlistEntry.get_active_statuses(),
            time_slot__gte=start,
            time_slot__lt=end,
        ).update(status=WaitlistEntry.Status.BOOKED, updated_at=timezone.now())

        if count:
            logger.info(f"Marked {count} waitlist entries booked for {requester_id}")
        return count

    # ==========================================================================
    # Queries
    # ==========================================================================

    def list_for_slot(self, resource_id, target_date: date, time_slot: time):
        """Waiting entries for a slot in FIFO order."""
        return WaitlistEntry.objects.filter(
            resource_id=resource_id,
            date=target_date,
            time_slot=time_slot,
            status=WaitlistEntry.Status.WAITING,
        ).order_by('created_at', 'id')

    def count_for_slot(self, resource_id, target_date: date, time_slot: time) -> int:
        return self.list_for_slot(resource_id, target_date, time_slot).count()

    def list_for_requester(self, requester_id, active_only: bool = True):
        queryset = WaitlistEntry.objects.filter(requester_id=requester_id)
        if active_only:
            queryset = queryset.filter(status__in=WaitlistEntry.get_active_statuses())
        return queryset.order_by('date', 'time_slot')

    # ==========================================================================
    # Sweeps
    # ==========================================================================

    def expire_stale_entries(self, today: date = None) -> int:
        """Expire waiting and notified entries whose date has passed."""
        today = today or timezone.localdate()
        count = WaitlistEntry.objects.filter(
            status__in=WaitlistEntry.get_active_statuses(),
            date__lt=today,
        ).update(status=WaitlistEntry.Status.EXPIRED, updated_at=timezone.now())

        if count:
            logger.info(f"Expired {count} stale waitlist entries")
        return count
