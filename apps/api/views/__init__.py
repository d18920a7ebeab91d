"""
Booking API Views
"""

from .availability_views import AvailableSlotsView
from .reservation_views import ReservationViewSet, FacilityReservationsView
from .recurring_views import RecurringRuleViewSet
from .waitlist_views import WaitlistViewSet

__all__ = [
    'AvailableSlotsView',
    'ReservationViewSet',
    'FacilityReservationsView',
    'RecurringRuleViewSet',
    'WaitlistViewSet',
]
