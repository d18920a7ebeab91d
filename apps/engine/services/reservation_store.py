"""
Reservation Store

The authoritative reservation ledger. Conflict check and insert run as
one atomic unit per (resource, date); a lost race is retried a bounded
number of times before surfacing as SlotTaken.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, DatabaseError, OperationalError
from django.db.models import F
from django.utils import timezone
from kombu.exceptions import OperationalError as BrokerError

from apps.engine.events import (
    EventPublisher,
    publish_reservation_created,
    publish_reservation_cancelled,
    publish_reservation_completed,
    publish_reservation_no_show,
)
from apps.engine.models import Reservation, ReservationLedger, Resource
from shared.common.validators import validate_time_range
from . import (
    BookingValidationError,
    SlotTakenError,
    BookingNotFoundError,
    BookingForbiddenError,
    BookingStateError,
    StorageTransientError,
    StorageFatalError,
)
from .calendar import ResourceCalendar
from .pricing import PriceBreakdown, RateInfo, calculate_pricing
from .slots import SLOT_MINUTES, minutes_of_day, shift_time

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class LostRaceError(Exception):
    """Another writer bumped the ledger between read and conditional write."""
    pass


@dataclass
class BookingResult:
    """
    Outcome of a create call.

    Exactly one of ``reservation`` and ``error`` is set. SlotTaken is an
    expected outcome, so callers branch on ``ok`` instead of catching.
    """

    reservation: Optional[Reservation] = None
    error: Optional[SlotTakenError] = None

    @property
    def ok(self) -> bool:
        return self.reservation is not None

    @property
    def slot_taken(self) -> bool:
        return isinstance(self.error, SlotTakenError)


class ReservationStore:
    """
    Reservation ledger operations.

    Handles:
    - Conflict-checked creation
    - Status transitions (cancel, complete, no-show)
    - Reads for availability and listings
    """

    def __init__(
        self,
        calendar: ResourceCalendar,
        publisher: EventPublisher,
        waitlist=None,
        max_retries: int = None,
    ):
        self.calendar = calendar
        self.publisher = publisher
        self.waitlist = waitlist
        if max_retries is None:
            max_retries = getattr(settings, 'BOOKING_CREATE_MAX_RETRIES', DEFAULT_MAX_RETRIES)
        if max_retries < 1:
            raise ValueError("max_retries must allow at least one attempt")
        self.max_retries = max_retries

    # ==========================================================================
    # Create
    # ==========================================================================

    def create(
        self,
        resource_id,
        target_date: date,
        start: time,
        end: time,
        requester_id: uuid.UUID,
        rate_info: RateInfo = None,
        payment_reference: str = None,
        recurring_rule=None,
    ) -> BookingResult:
        """Create a confirmed reservation, or report SlotTaken."""
        try:
            validate_time_range(start, end)
        except ValidationError as e:
            raise BookingValidationError(e.messages[0])

        if target_date < timezone.localdate():
            raise BookingValidationError("Cannot book a date in the past")

        if Reservation.start_datetime(target_date, start) < timezone.now():
            raise BookingValidationError("Cannot book a slot that has already started")

        resource = self.calendar.get_resource(resource_id)
        self.calendar.validate_window(resource, target_date, start, end)
        pricing = self._price(resource, start, end, rate_info)

        for attempt in range(1, self.max_retries + 1):
            try:
                reservation = self._insert(
                    resource, target_date, start, end, requester_id,
                    pricing, payment_reference, recurring_rule,
                )
            except SlotTakenError as e:
                logger.info(
                    f"Slot taken on {resource.id} {target_date} {start:%H:%M}-{end:%H:%M}"
                )
                return BookingResult(error=e)
            except LostRaceError:
                logger.warning(
                    f"Lost reservation race on {resource.id} {target_date}, attempt {attempt}"
                )
                continue
            except OperationalError as e:
                raise StorageTransientError(f"Reservation storage unavailable: {e}") from e
            except DatabaseError as e:
                raise StorageFatalError(f"Reservation could not be stored: {e}") from e

            transaction.on_commit(
                lambda: publish_reservation_created(self.publisher, reservation)
            )
            logger.info(
                f"Created reservation {reservation.id} on {resource.id} "
                f"{target_date} {start:%H:%M}-{end:%H:%M}"
            )
            return BookingResult(reservation=reservation)

        logger.warning(
            f"Gave up on {resource.id} {target_date} after {self.max_retries} attempts"
        )
        return BookingResult(error=SlotTakenError())

    def _insert(
        self,
        resource: Resource,
        target_date: date,
        start: time,
        end: time,
        requester_id,
        pricing: PriceBreakdown,
        payment_reference: Optional[str],
        recurring_rule,
    ) -> Reservation:
        with transaction.atomic():
            ledger, _ = ReservationLedger.objects.get_or_create(
                resource=resource,
                date=target_date,
            )
            version = ledger.version

            conflicts = list(
                Reservation.get_conflicts(resource.id, target_date, start, end)
            )
            if conflicts:
                raise SlotTakenError(conflicts=[c.id for c in conflicts])

            claimed = ReservationLedger.objects.filter(
                pk=ledger.pk,
                version=version,
            ).update(version=F('version') + 1)
            if not claimed:
                raise LostRaceError()

            reservation = Reservation.objects.create(
                resource=resource,
                date=target_date,
                start_time=start,
                end_time=end,
                requester_id=requester_id,
                hourly_rate=pricing.hourly_rate,
                base_amount=pricing.base_amount,
                take_rate_percent=pricing.take_rate_percent,
                take_amount=pricing.take_amount,
                platform_fee=pricing.platform_fee,
                owner_payout=pricing.owner_payout,
                total_charged=pricing.total_charged,
                payment_reference=payment_reference or None,
                payment_status=(
                    Reservation.PaymentStatus.PAID if payment_reference
                    else Reservation.PaymentStatus.PENDING
                ),
                recurring_rule=recurring_rule,
            )

            if self.waitlist is not None:
                self.waitlist.mark_booked(resource.id, target_date, start, end, requester_id)

        return reservation

    def _price(self, resource: Resource, start: time, end: time, rate_info: Optional[RateInfo]) -> PriceBreakdown:
        rate_info = rate_info or RateInfo()
        hourly_rate = rate_info.hourly_rate
        if hourly_rate is None:
            hourly_rate = resource.hourly_rate
        take_rate = rate_info.take_rate_percent
        if take_rate is None:
            take_rate = resource.facility.take_rate_percent

        duration = minutes_of_day(end) - minutes_of_day(start)
        return calculate_pricing(
            hourly_rate,
            duration,
            take_rate_percent=take_rate,
            platform_fee=rate_info.platform_fee,
        )

    # ==========================================================================
    # Status Transitions
    # ==========================================================================

    def cancel(self, reservation_id, requester_id) -> Reservation:
        """
        Cancel a confirmed reservation and promote the waitlist.

        Promotion runs after the cancellation is stored; a storage error
        while promoting is queued for retry and does not undo the cancel.
        """
        reservation = self.get(reservation_id)
        facility = reservation.resource.facility

        is_owner = facility.is_owner(requester_id)
        if str(reservation.requester_id) != str(requester_id) and not is_owner:
            raise BookingForbiddenError(
                f"User {requester_id} cannot cancel reservation {reservation_id}"
            )

        # players cancel before the start; the facility owner can cancel any time
        if not is_owner and reservation.has_started:
            raise BookingStateError(
                f"Reservation {reservation_id} has already started and can no longer be cancelled"
            )

        now = timezone.now()
        self._transition(
            reservation,
            Reservation.Status.CANCELLED,
            status=Reservation.Status.CANCELLED,
            payment_status=Reservation.PaymentStatus.REFUNDED,
            cancelled_at=now,
            cancelled_by=requester_id,
            updated_at=now,
        )

        transaction.on_commit(
            lambda: publish_reservation_cancelled(self.publisher, reservation, cancelled_by=requester_id)
        )
        logger.info(f"Cancelled reservation {reservation.id} by {requester_id}")

        try:
            with transaction.atomic():
                self.promote_freed_interval(reservation)
        except DatabaseError as e:
            logger.error(f"Waitlist promotion failed for reservation {reservation.id}: {e}")
            self._queue_promotion(reservation)

        return reservation

    def complete(self, reservation_id) -> Reservation:
        """Mark a confirmed reservation as completed."""
        reservation = self.get(reservation_id)
        self._transition(
            reservation,
            Reservation.Status.COMPLETED,
            status=Reservation.Status.COMPLETED,
            updated_at=timezone.now(),
        )
        transaction.on_commit(
            lambda: publish_reservation_completed(self.publisher, reservation)
        )
        logger.info(f"Completed reservation {reservation.id}")
        return reservation

    def mark_no_show(self, reservation_id, reported_by=None) -> Reservation:
        """Mark a confirmed reservation as a no-show (owner reported)."""
        reservation = self.get(reservation_id)

        if reported_by is not None and not reservation.resource.facility.is_owner(reported_by):
            raise BookingForbiddenError(
                f"Only the facility owner can report a no-show for {reservation_id}"
            )

        self._transition(
            reservation,
            Reservation.Status.NO_SHOW,
            status=Reservation.Status.NO_SHOW,
            updated_at=timezone.now(),
        )
        transaction.on_commit(
            lambda: publish_reservation_no_show(self.publisher, reservation, reported_by=reported_by)
        )
        logger.info(f"Reservation {reservation.id} marked as no-show")
        return reservation

    def _transition(self, reservation: Reservation, target_status: str, **changes):
        """Conditionally move a confirmed reservation to ``target_status``."""
        try:
            with transaction.atomic():
                updated = Reservation.objects.filter(
                    pk=reservation.pk,
                    status=Reservation.Status.CONFIRMED,
                ).update(**changes)
        except OperationalError as e:
            raise StorageTransientError(f"Reservation storage unavailable: {e}") from e
        except DatabaseError as e:
            raise StorageFatalError(f"Reservation could not be updated: {e}") from e

        if not updated:
            reservation.refresh_from_db(fields=['status'])
            raise BookingStateError(
                f"Cannot move reservation from {reservation.status} to {target_status}"
            )

        reservation.refresh_from_db()

    # ==========================================================================
    # Waitlist Promotion
    # ==========================================================================

    def promote_freed_interval(self, reservation: Reservation) -> list:
        """Promote the waitlist for every free slot inside a freed interval."""
        if self.waitlist is None:
            return []

        promoted = []
        slot_starts = self.waitlist.waiting_slots_between(
            reservation.resource_id,
            reservation.date,
            reservation.start_time,
            reservation.end_time,
        )
        for slot_start in slot_starts:
            slot_end = shift_time(slot_start, SLOT_MINUTES)
            if Reservation.get_conflicts(
                reservation.resource_id, reservation.date, slot_start, slot_end
            ).exists():
                continue

            entry = self.waitlist.promote_on_cancellation(
                reservation.resource_id,
                reservation.date,
                slot_start,
            )
            if entry is not None:
                promoted.append(entry)

        return promoted

    def _queue_promotion(self, reservation: Reservation):
        from apps.engine.tasks import promote_waitlist

        try:
            promote_waitlist.delay(str(reservation.id))
        except BrokerError as e:
            logger.error(f"Could not queue waitlist promotion for {reservation.id}: {e}")

    # ==========================================================================
    # Reads
    # ==========================================================================

    def get(self, reservation_id) -> Reservation:
        """Get a reservation by ID."""
        try:
            return Reservation.objects.select_related('resource__facility').get(id=reservation_id)
        except (Reservation.DoesNotExist, ValidationError):
            raise BookingNotFoundError(f"Reservation {reservation_id} not found")

    def list_for_resource_and_date(self, resource_id, target_date: date) -> List[Reservation]:
        """All non-cancelled reservations for a resource on a date."""
        return list(Reservation.get_for_resource_and_date(resource_id, target_date))

    def list_for_requester(self, requester_id, upcoming_only: bool = False):
        queryset = Reservation.objects.filter(requester_id=requester_id).select_related('resource')
        if upcoming_only:
            queryset = queryset.filter(
                date__gte=timezone.localdate(),
                status=Reservation.Status.CONFIRMED,
            )
        return queryset.order_by('date', 'start_time')

    def list_for_facility(self, facility_id, target_date: date = None):
        queryset = Reservation.objects.filter(
            resource__facility_id=facility_id
        ).select_related('resource')
        if target_date:
            queryset = queryset.filter(date=target_date)
        return queryset.order_by('date', 'start_time')

    # ==========================================================================
    # Sweeps
    # ==========================================================================

    def complete_past_reservations(self, today: date = None) -> int:
        """Move confirmed reservations dated before today to completed."""
        today = today or timezone.localdate()
        count = Reservation.objects.filter(
            status=Reservation.Status.CONFIRMED,
            date__lt=today,
        ).update(status=Reservation.Status.COMPLETED, updated_at=timezone.now())

        if count:
            logger.info(f"Completed {count} past reservations")
        return count
