"""
Booking API Serializers
"""

from .reservation_serializers import (
    ReservationSerializer,
    ReservationListSerializer,
    ReservationCreateSerializer,
    FacilityReservationQuerySerializer,
)

from .availability_serializers import (
    AvailableSlotsRequestSerializer,
    SlotSerializer,
)

from .recurring_serializers import (
    RecurringRuleSerializer,
    RecurringRuleCreateSerializer,
)

from .waitlist_serializers import (
    WaitlistEntrySerializer,
    WaitlistJoinSerializer,
    WaitlistCountQuerySerializer,
)

__all__ = [
    # Reservation
    'ReservationSerializer',
    'ReservationListSerializer',
    'ReservationCreateSerializer',
    'FacilityReservationQuerySerializer',
    # Availability
    'AvailableSlotsRequestSerializer',
    'SlotSerializer',
    # Recurring
    'RecurringRuleSerializer',
    'RecurringRuleCreateSerializer',
    # Waitlist
    'WaitlistEntrySerializer',
    'WaitlistJoinSerializer',
    'WaitlistCountQuerySerializer',
]
