"""
Resource Calendar

Read-only lookups over a facility's operating hours and blocked dates.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError

from apps.engine.models import Resource, OperatingHours, BlockedDate
from . import BookingNotFoundError, BookingValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayHours:
    """Calendar entry for one weekday."""

    open_time: time
    close_time: time
    is_closed: bool = False

    def contains(self, start: time, end: time) -> bool:
        return not self.is_closed and self.open_time <= start and end <= self.close_time


class ResourceCalendar:
    """
    Calendar lookups for resources.

    A weekday without configured hours falls back to the default
    window from settings.
    """

    def get_resource(self, resource_id) -> Resource:
        try:
            return Resource.objects.select_related('facility').get(id=resource_id)
        except (Resource.DoesNotExist, ValidationError):
            raise BookingNotFoundError(f"Resource {resource_id} not found")

    def default_hours(self) -> DayHours:
        return DayHours(
            open_time=time(getattr(settings, 'BOOKING_DEFAULT_OPEN_HOUR', 6)),
            close_time=time(getattr(settings, 'BOOKING_DEFAULT_CLOSE_HOUR', 22)),
        )

    def hours_for(self, resource: Resource, target_date: date) -> DayHours:
        """Operating hours entry for the date's weekday."""
        entry = OperatingHours.get_for_date(resource.facility_id, target_date)
        if entry is None:
            return self.default_hours()
        return DayHours(
            open_time=entry.open_time,
            close_time=entry.close_time,
            is_closed=entry.is_closed,
        )

    def is_blocked(self, resource: Resource, target_date: date) -> bool:
        return BlockedDate.objects.filter(
            facility_id=resource.facility_id,
            date=target_date
        ).exists()

    def day_for(self, resource: Resource, target_date: date) -> Optional[DayHours]:
        """Hours for a bookable day, or None when blocked or closed."""
        if self.is_blocked(resource, target_date):
            return None
        hours = self.hours_for(resource, target_date)
        if hours.is_closed:
            return None
        return hours

    def validate_window(self, resource: Resource, target_date: date, start: time, end: time):
        """Raise BookingValidationError unless [start, end) is bookable."""
        if not resource.is_active:
            raise BookingValidationError(f"Resource {resource.id} is not active")

        if self.is_blocked(resource, target_date):
            raise BookingValidationError(f"{target_date} is blocked for bookings")

        hours = self.hours_for(resource, target_date)
        if hours.is_closed:
            raise BookingValidationError(f"Facility is closed on {target_date:%A}")

        if not hours.contains(start, end):
            raise BookingValidationError(
                f"Requested time {start:%H:%M}-{end:%H:%M} is outside operating hours "
                f"{hours.open_time:%H:%M}-{hours.close_time:%H:%M}"
            )
