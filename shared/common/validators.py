"""
Shared Validators Module.

Common validation utilities used by the engine and the API layer.
"""
from datetime import time
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.core.exceptions import ValidationError


# =============================================================================
# UUID VALIDATORS
# =============================================================================

def validate_uuid(value: Any, field_name: str = "value") -> UUID:
    """Validate and convert a value to UUID."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid UUID format for {field_name}")


# =============================================================================
# DATE/TIME VALIDATORS
# =============================================================================

def validate_time_range(start: time, end: time, field_name: str = "time range") -> None:
    """Validate a same-day [start, end) range."""
    if start is None or end is None:
        raise ValidationError(f"{field_name} requires both start and end")

    if start >= end:
        raise ValidationError("Start time must be before end time")


# =============================================================================
# NUMERIC VALIDATORS
# =============================================================================

def validate_percentage(value: Any, field_name: str = "percentage") -> Decimal:
    """Validate a percentage value between 0 and 100."""
    try:
        value = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(f"{field_name} must be a number")

    if value < 0 or value > 100:
        raise ValidationError(f"{field_name} must be between 0 and 100")

    return value
