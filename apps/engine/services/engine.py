"""
Booking Engine

Facade wiring the calendar, store, resolver, waitlist and recurring
generator together. Views and tasks talk to this class only.
"""

import logging
import uuid
from datetime import date, time
from typing import List, Optional

from django.core.exceptions import ValidationError

from apps.engine.events import EventPublisher
from shared.common.validators import validate_uuid
from . import BookingValidationError
from .availability_resolver import AvailabilityResolver
from .calendar import ResourceCalendar
from .recurring_generator import RecurringGenerator
from .reservation_store import BookingResult, ReservationStore
from .slots import Slot, SlotGenerator
from .waitlist_manager import WaitlistManager

logger = logging.getLogger(__name__)


class BookingEngine:
    """
    Inbound surface of the booking engine.

    All collaborators are passed in; ``BookingEngine.default()`` builds
    the standard wiring.
    """

    def __init__(
        self,
        calendar: ResourceCalendar,
        store: ReservationStore,
        resolver: AvailabilityResolver,
        waitlist: WaitlistManager,
        recurring: RecurringGenerator,
    ):
        self.calendar = calendar
        self.store = store
        self.resolver = resolver
        self.waitlist = waitlist
        self.recurring = recurring

    @classmethod
    def default(cls, publisher: EventPublisher = None, max_retries: int = None) -> 'BookingEngine':
        publisher = publisher or EventPublisher()
        calendar = ResourceCalendar()
        slot_generator = SlotGenerator(calendar)
        waitlist = WaitlistManager(calendar, slot_generator, publisher)
        store = ReservationStore(calendar, publisher, waitlist=waitlist, max_retries=max_retries)
        resolver = AvailabilityResolver(calendar, slot_generator, store)
        recurring = RecurringGenerator(calendar, store)
        return cls(calendar, store, resolver, waitlist, recurring)

    # ==========================================================================
    # Availability
    # ==========================================================================

    def get_available_slots(self, resource_id, target_date: date) -> List[Slot]:
        return self.resolver.get_available_slots(resource_id, target_date)

    # ==========================================================================
    # Reservations
    # ==========================================================================

    def create_reservation(
        self,
        resource_id,
        target_date: date,
        start: time,
        end: time,
        requester,
        payment_reference: Optional[str] = None,
    ) -> BookingResult:
        return self.store.create(
            resource_id,
            target_date,
            start,
            end,
            self._requester(requester),
            payment_reference=payment_reference,
        )

    def cancel_reservation(self, reservation_id, requester):
        return self.store.cancel(reservation_id, self._requester(requester))

    def complete_reservation(self, reservation_id):
        return self.store.complete(reservation_id)

    def mark_no_show(self, reservation_id, reported_by=None):
        if reported_by is not None:
            reported_by = self._requester(reported_by)
        return self.store.mark_no_show(reservation_id, reported_by=reported_by)

    def get_reservation(self, reservation_id):
        return self.store.get(reservation_id)

    def list_reservations_for_requester(self, requester, upcoming_only: bool = False):
        return self.store.list_for_requester(self._requester(requester), upcoming_only=upcoming_only)

    def list_reservations_for_facility(self, facility_id, target_date: date = None):
        return self.store.list_for_facility(facility_id, target_date)

    # ==========================================================================
    # Waitlist
    # ==========================================================================

    def join_waitlist(self, resource_id, target_date: date, time_slot: time, requester):
        return self.waitlist.join(resource_id, target_date, time_slot, self._requester(requester))

    def leave_waitlist(self, entry_id, requester):
        return self.waitlist.leave(entry_id, self._requester(requester))

    def waitlist_count(self, resource_id, target_date: date, time_slot: time) -> int:
        return self.waitlist.count_for_slot(resource_id, target_date, time_slot)

    def list_waitlist_for_requester(self, requester):
        return self.waitlist.list_for_requester(self._requester(requester))

    # ==========================================================================
    # Recurring
    # ==========================================================================

    def create_recurring_rule(self, resource_id, requester, day_of_week: int, start_time: time, **kwargs):
        return self.recurring.create_rule(
            resource_id,
            self._requester(requester),
            day_of_week,
            start_time,
            **kwargs
        )

    def pause_recurring_rule(self, rule_id, requester):
        return self.recurring.pause(rule_id, self._requester(requester))

    def resume_recurring_rule(self, rule_id, requester):
        return self.recurring.resume(rule_id, self._requester(requester))

    def cancel_recurring_rule(self, rule_id, requester):
        return self.recurring.cancel(rule_id, self._requester(requester))

    def list_recurring_rules_for_requester(self, requester):
        return self.recurring.list_for_requester(self._requester(requester))

    # ==========================================================================
    # Private Methods
    # ==========================================================================

    def _requester(self, requester) -> uuid.UUID:
        try:
            return validate_uuid(requester, 'requester')
        except ValidationError as e:
            raise BookingValidationError(e.messages[0])
