"""
Booking Engine Models
"""

from .facility import Facility, Resource
from .calendar import OperatingHours, BlockedDate
from .reservation import Reservation, ReservationLedger
from .recurring_rule import RecurringRule
from .waitlist import WaitlistEntry

__all__ = [
    'Facility',
    'Resource',
    'OperatingHours',
    'BlockedDate',
    'Reservation',
    'ReservationLedger',
    'RecurringRule',
    'WaitlistEntry',
]
