"""
Slot Generator

Candidate one-hour slots for a resource on a date, derived from the
calendar alone. Occupancy is applied later by the availability resolver.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from .calendar import DayHours, ResourceCalendar

SLOT_MINUTES = 60


@dataclass(frozen=True)
class Slot:
    start: time
    end: time
    available: bool = True

    def to_dict(self) -> dict:
        return {
            'start': self.start.strftime('%H:%M'),
            'end': self.end.strftime('%H:%M'),
            'available': self.available,
        }


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """[start_a, end_a) and [start_b, end_b) overlap."""
    return start_a < end_b and start_b < end_a


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def shift_time(value: time, minutes: int) -> time:
    """Add minutes to a time of day, clamped to the same day."""
    moved = datetime.combine(date.min, value) + timedelta(minutes=minutes)
    if moved.date() != date.min:
        return time.max
    return moved.time()


def generate_slots(
    target_date: date,
    hours: Optional[DayHours],
    is_blocked: bool = False,
) -> List[Slot]:
    """
    Build the ordered candidate slots between open and close.

    A trailing partial hour before close is not offered.
    """
    if is_blocked or hours is None or hours.is_closed:
        return []

    step = timedelta(minutes=SLOT_MINUTES)
    current = datetime.combine(target_date, hours.open_time)
    day_end = datetime.combine(target_date, hours.close_time)

    slots = []
    while current + step <= day_end:
        slots.append(Slot(start=current.time(), end=(current + step).time()))
        current += step

    return slots


class SlotGenerator:
    """Calendar-backed slot generation for a resource."""

    def __init__(self, calendar: ResourceCalendar):
        self.calendar = calendar

    def for_resource(self, resource, target_date: date) -> List[Slot]:
        if self.calendar.is_blocked(resource, target_date):
            return []
        return generate_slots(target_date, self.calendar.hours_for(resource, target_date))
