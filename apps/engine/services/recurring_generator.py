"""
Recurring Booking Generator

Materializes a bounded window of occurrences for a recurring rule.
Each occurrence goes through the same conflict-checked create path as
a one-off booking, so re-running a window never double-books.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.engine.models import RecurringRule
from . import (
    BookingValidationError,
    BookingNotFoundError,
    BookingForbiddenError,
    BookingStateError,
)
from .calendar import ResourceCalendar
from .pricing import RateInfo
from .reservation_store import ReservationStore
from .slots import minutes_of_day

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = 4
SKIP_SLOT_TAKEN = 'slot_taken'


@dataclass
class MaterializationResult:
    attempted: int = 0
    created: int = 0
    skipped: int = 0
    reservations: list = field(default_factory=list)
    skipped_dates: List[Tuple[date, str]] = field(default_factory=list)

    def skip(self, occurrence: date, reason: str):
        self.skipped += 1
        self.skipped_dates.append((occurrence, reason))

    def to_dict(self) -> dict:
        return {
            'attempted': self.attempted,
            'created': self.created,
            'skipped': self.skipped,
            'reservation_ids': [str(r.id) for r in self.reservations],
            'skipped_dates': [
                {'date': d.isoformat(), 'reason': reason}
                for d, reason in self.skipped_dates
            ],
        }


class RecurringGenerator:
    """
    Service for recurring rules and their occurrences.

    Handles:
    - Rule creation with rate capture
    - Bounded materialization
    - Pause / resume / cancel
    """

    def __init__(self, calendar: ResourceCalendar, store: ReservationStore):
        self.calendar = calendar
        self.store = store

    # ==========================================================================
    # Rule Lifecycle
    # ==========================================================================

    def create_rule(
        self,
        resource_id,
        requester_id: uuid.UUID,
        day_of_week: int,
        start_time: time,
        duration_minutes: int = 60,
        frequency: str = RecurringRule.Frequency.WEEKLY,
        start_date: date = None,
        end_date: date = None,
        horizon: int = None,
    ) -> Tuple[RecurringRule, MaterializationResult]:
        """Create a rule, capturing the current rate, and materialize its first window."""
        resource = self.calendar.get_resource(resource_id)
        start_date = start_date or timezone.localdate()

        self._validate_rule(resource, day_of_week, start_time, duration_minutes, frequency, start_date, end_date)

        # a storage failure while materializing leaves neither the rule nor its occurrences
        with transaction.atomic():
            rule = RecurringRule.objects.create(
                resource=resource,
                requester_id=requester_id,
                day_of_week=day_of_week,
                start_time=start_time,
                duration_minutes=duration_minutes,
                frequency=frequency,
                start_date=start_date,
                end_date=end_date,
                hourly_rate=resource.hourly_rate,
            )
            logger.info(f"Created recurring rule {rule.id} for {requester_id} on {resource.id}")
            result = self.materialize(rule, horizon)

        return rule, result

    def get(self, rule_id) -> RecurringRule:
        """Get a recurring rule by ID."""
        try:
            return RecurringRule.objects.select_related('resource').get(id=rule_id)
        except (RecurringRule.DoesNotExist, ValidationError):
            raise BookingNotFoundError(f"Recurring rule {rule_id} not found")

    def pause(self, rule_id, requester_id) -> RecurringRule:
        """Pause an active rule. Existing reservations are kept."""
        rule = self._get_owned(rule_id, requester_id)

        if rule.status != RecurringRule.Status.ACTIVE:
            raise BookingStateError(f"Cannot pause rule in {rule.status} status")

        rule.status = RecurringRule.Status.PAUSED
        rule.save(update_fields=['status', 'updated_at'])
        logger.info(f"Paused recurring rule {rule.id}")
        return rule

    def resume(self, rule_id, requester_id, horizon: int = None) -> Tuple[RecurringRule, MaterializationResult]:
        """Resume a paused rule and materialize a fresh window from today."""
        rule = self._get_owned(rule_id, requester_id)

        if rule.status != RecurringRule.Status.PAUSED:
            raise BookingStateError(f"Cannot resume rule in {rule.status} status")

        with transaction.atomic():
            rule.status = RecurringRule.Status.ACTIVE
            rule.save(update_fields=['status', 'updated_at'])
            result = self.materialize(rule, horizon, from_date=timezone.localdate())

        logger.info(f"Resumed recurring rule {rule.id}")
        return rule, result

    def cancel(self, rule_id, requester_id) -> RecurringRule:
        """Stop the rule. Already materialized reservations stay booked."""
        rule = self._get_owned(rule_id, requester_id)

        if rule.status == RecurringRule.Status.CANCELLED:
            raise BookingStateError("Recurring rule is already cancelled")

        rule.status = RecurringRule.Status.CANCELLED
        rule.save(update_fields=['status', 'updated_at'])
        logger.info(f"Cancelled recurring rule {rule.id}")
        return rule

    def list_for_requester(self, requester_id):
        return RecurringRule.objects.filter(requester_id=requester_id).select_related('resource')

    # ==========================================================================
    # Materialization
    # ==========================================================================

    def materialize(
        self,
        rule: RecurringRule,
        horizon: int = None,
        from_date: Optional[date] = None,
    ) -> MaterializationResult:
        """
        Create up to ``horizon`` occurrences through the reservation store.

        A taken or invalid occurrence is skipped and generation continues.
        """
        horizon = horizon or getattr(settings, 'BOOKING_RECURRING_HORIZON', DEFAULT_HORIZON)
        result = MaterializationResult()

        # pause or cancel may have gone through another instance of the rule
        rule.refresh_from_db(fields=['status'])
        if not rule.is_active:
            logger.info(f"Skipping materialization of {rule.status} rule {rule.id}")
            return result

        today = timezone.localdate()
        occurrence = rule.first_occurrence(not_before=max(from_date or today, today))
        step = timedelta(days=rule.step_days)
        rate_info = RateInfo(hourly_rate=rule.hourly_rate)

        for _ in range(horizon):
            if rule.end_date and occurrence > rule.end_date:
                break

            result.attempted += 1
            try:
                booking = self.store.create(
                    rule.resource_id,
                    occurrence,
                    rule.start_time,
                    rule.end_time,
                    rule.requester_id,
                    rate_info=rate_info,
                    recurring_rule=rule,
                )
            except BookingValidationError as e:
                result.skip(occurrence, str(e))
            else:
                if booking.ok:
                    result.created += 1
                    result.reservations.append(booking.reservation)
                    self._record_occurrence(rule, occurrence)
                else:
                    result.skip(occurrence, SKIP_SLOT_TAKEN)

            occurrence += step

        if result.created:
            rule.refresh_from_db(fields=['occurrences_created', 'last_materialized_date', 'updated_at'])

        logger.info(
            f"Materialized rule {rule.id}: attempted={result.attempted} "
            f"created={result.created} skipped={result.skipped}"
        )
        return result

    def extend_active_rules(self, today: date = None, horizon: int = None) -> MaterializationResult:
        """Roll every active rule's window forward from today."""
        today = today or timezone.localdate()
        totals = MaterializationResult()

        active_rules = RecurringRule.objects.filter(
            status=RecurringRule.Status.ACTIVE
        ).exclude(end_date__lt=today)

        for rule in active_rules:
            result = self.materialize(rule, horizon, from_date=today)
            totals.attempted += result.attempted
            totals.created += result.created
            totals.skipped += result.skipped

        return totals

    # ==========================================================================
    # Private Methods
    # ==========================================================================

    def _record_occurrence(self, rule: RecurringRule, occurrence: date):
        """Count one created occurrence."""
        RecurringRule.objects.filter(pk=rule.pk).update(
            occurrences_created=F('occurrences_created') + 1,
            last_materialized_date=occurrence,
            updated_at=timezone.now(),
        )

    def _get_owned(self, rule_id, requester_id) -> RecurringRule:
        rule = self.get(rule_id)
        if not rule.is_owner(requester_id):
            raise BookingForbiddenError(f"User {requester_id} does not own recurring rule {rule_id}")
        return rule

    def _validate_rule(self, resource, day_of_week, start_time, duration_minutes, frequency, start_date, end_date):
        if not resource.is_active:
            raise BookingValidationError(f"Resource {resource.id} is not active")

        if day_of_week not in range(7):
            raise BookingValidationError("Day of week must be between 0 (Monday) and 6 (Sunday)")

        if frequency not in RecurringRule.Frequency.values:
            raise BookingValidationError(f"Unsupported frequency: {frequency}")

        if duration_minutes <= 0:
            raise BookingValidationError("Duration must be positive")

        if minutes_of_day(start_time) + duration_minutes > 24 * 60 - 1:
            raise BookingValidationError("Recurring booking must end on the same day")

        if end_date and end_date < start_date:
            raise BookingValidationError("End date must not be before start date")
