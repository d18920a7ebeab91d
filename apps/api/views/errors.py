# apps/api/views/errors.py
"""
Engine Error Translation

Maps booking engine errors onto the shared API exceptions so every
endpoint answers with the same status codes and error envelope.
"""

import logging
from contextlib import contextmanager

from apps.engine.services import (
    BookingEngineError,
    BookingValidationError,
    SlotTakenError,
    BookingNotFoundError,
    BookingForbiddenError,
    BookingStateError,
    WaitlistError,
    StorageTransientError,
    StorageFatalError,
)
from shared.common.exceptions import (
    ValidationException,
    SlotTakenException,
    NotFoundException,
    ForbiddenException,
    InvalidStateException,
    WaitlistConflictException,
    ServiceUnavailableException,
    InternalServerException,
)

logger = logging.getLogger(__name__)

ERROR_MAP = [
    (BookingValidationError, ValidationException),
    (BookingNotFoundError, NotFoundException),
    (BookingForbiddenError, ForbiddenException),
    (BookingStateError, InvalidStateException),
    (WaitlistError, WaitlistConflictException),
    (StorageTransientError, ServiceUnavailableException),
    (StorageFatalError, InternalServerException),
]


def slot_taken_exception(error: SlotTakenError) -> SlotTakenException:
    return SlotTakenException(
        str(error),
        extra_data={'conflicts': [str(c) for c in error.conflicts]}
    )


@contextmanager
def engine_errors():
    """Re-raise engine errors as API exceptions."""
    try:
        yield
    except SlotTakenError as e:
        raise slot_taken_exception(e) from e
    except BookingEngineError as e:
        for error_class, api_exception in ERROR_MAP:
            if isinstance(e, error_class):
                if api_exception is InternalServerException:
                    logger.error(f"Booking storage failure: {e}")
                raise api_exception(str(e)) from e
        raise InternalServerException(str(e)) from e
