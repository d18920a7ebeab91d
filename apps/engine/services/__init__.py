"""
Booking Engine Business Logic
"""


# Custom Exceptions
class BookingEngineError(Exception):
    """Base exception for booking engine errors."""
    pass


class BookingValidationError(BookingEngineError):
    """Malformed input or a request outside the resource's calendar."""
    pass


class SlotTakenError(BookingEngineError):
    """The requested interval overlaps an existing reservation."""

    def __init__(self, message: str = "Slot no longer available", conflicts=None):
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class BookingNotFoundError(BookingEngineError):
    """Reservation, resource, rule or waitlist entry not found."""
    pass


class BookingForbiddenError(BookingEngineError):
    """Requester does not own the target."""
    pass


class BookingStateError(BookingEngineError):
    """Invalid status transition."""
    pass


class WaitlistError(BookingEngineError):
    """Waitlist operation error."""
    pass


class StorageTransientError(BookingEngineError):
    """Temporary storage failure; the caller may retry with backoff."""
    pass


class StorageFatalError(BookingEngineError):
    """Storage failure; the operation did not happen."""
    pass


from .pricing import PriceBreakdown, RateInfo, calculate_pricing  # noqa: E402
from .calendar import DayHours, ResourceCalendar  # noqa: E402
from .slots import Slot, SlotGenerator, generate_slots, intervals_overlap  # noqa: E402
from .reservation_store import BookingResult, ReservationStore  # noqa: E402
from .availability_resolver import AvailabilityResolver  # noqa: E402
from .waitlist_manager import WaitlistManager  # noqa: E402
from .recurring_generator import MaterializationResult, RecurringGenerator  # noqa: E402
from .engine import BookingEngine  # noqa: E402


__all__ = [
    # Components
    'PriceBreakdown',
    'RateInfo',
    'calculate_pricing',
    'DayHours',
    'ResourceCalendar',
    'Slot',
    'SlotGenerator',
    'generate_slots',
    'intervals_overlap',
    'BookingResult',
    'ReservationStore',
    'AvailabilityResolver',
    'WaitlistManager',
    'MaterializationResult',
    'RecurringGenerator',
    'BookingEngine',

    # Exceptions
    'BookingEngineError',
    'BookingValidationError',
    'SlotTakenError',
    'BookingNotFoundError',
    'BookingForbiddenError',
    'BookingStateError',
    'WaitlistError',
    'StorageTransientError',
    'StorageFatalError',
]
