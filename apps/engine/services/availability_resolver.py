"""
Availability Resolver

Combines candidate slots with the store's booked intervals. Read-only;
the store stays the source of truth, so a slot shown as available can
still come back as SlotTaken on create.
"""

import logging
from datetime import date
from typing import List

from .calendar import ResourceCalendar
from .reservation_store import ReservationStore
from .slots import Slot, SlotGenerator, intervals_overlap

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Service for resolving slot availability."""

    def __init__(self, calendar: ResourceCalendar, slot_generator: SlotGenerator, store: ReservationStore):
        self.calendar = calendar
        self.slot_generator = slot_generator
        self.store = store

    def get_available_slots(self, resource_id, target_date: date) -> List[Slot]:
        """All candidate slots for the date, each flagged available or not."""
        resource = self.calendar.get_resource(resource_id)
        if not resource.is_active:
            return []

        candidates = self.slot_generator.for_resource(resource, target_date)
        if not candidates:
            return []

        booked = [
            (r.start_time, r.end_time)
            for r in self.store.list_for_resource_and_date(resource.id, target_date)
        ]

        return [
            Slot(
                start=slot.start,
                end=slot.end,
                available=not any(
                    intervals_overlap(slot.start, slot.end, start, end)
                    for start, end in booked
                ),
            )
            for slot in candidates
        ]
