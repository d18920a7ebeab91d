"""
Pricing Calculator

Pure fee breakdown for a booking. All amounts are integer minor
currency units; rounding is half away from zero.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Union

from django.conf import settings
from django.core.exceptions import ValidationError

from shared.common.validators import validate_percentage
from . import BookingValidationError

Number = Union[int, Decimal]

DEFAULT_TAKE_RATE_PERCENT = 8
DEFAULT_PLATFORM_FEE = 300


@dataclass(frozen=True)
class RateInfo:
    """Rate inputs for one booking; unset fields fall back to current values."""

    hourly_rate: Optional[int] = None
    take_rate_percent: Optional[Number] = None
    platform_fee: Optional[int] = None


@dataclass(frozen=True)
class PriceBreakdown:
    hourly_rate: int
    duration_minutes: int
    take_rate_percent: Decimal
    base_amount: int
    platform_fee: int
    take_amount: int
    owner_payout: int
    total_charged: int

    def to_dict(self) -> Dict:
        return asdict(self)


def round_half_away_from_zero(value: Decimal) -> int:
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def calculate_pricing(
    hourly_rate: int,
    duration_minutes: int,
    take_rate_percent: Number = None,
    platform_fee: int = None,
) -> PriceBreakdown:
    """
    Calculate the fee breakdown for a booking.

    ``ownerPayout + takeAmount == baseAmount`` and
    ``totalCharged == baseAmount + platformFee`` hold for every input.
    """
    if take_rate_percent is None:
        take_rate_percent = getattr(settings, 'BOOKING_DEFAULT_TAKE_RATE', DEFAULT_TAKE_RATE_PERCENT)
    if platform_fee is None:
        platform_fee = getattr(settings, 'BOOKING_PLATFORM_FEE', DEFAULT_PLATFORM_FEE)

    if hourly_rate < 0 or duration_minutes < 0 or platform_fee < 0:
        raise BookingValidationError("Rate, duration and fee must not be negative")

    try:
        take_rate = validate_percentage(take_rate_percent, 'take rate')
    except ValidationError as e:
        raise BookingValidationError(e.messages[0])

    base_amount = round_half_away_from_zero(
        Decimal(hourly_rate) * Decimal(duration_minutes) / Decimal(60)
    )
    take_amount = round_half_away_from_zero(
        Decimal(base_amount) * take_rate / Decimal(100)
    )

    return PriceBreakdown(
        hourly_rate=hourly_rate,
        duration_minutes=duration_minutes,
        take_rate_percent=take_rate,
        base_amount=base_amount,
        platform_fee=platform_fee,
        take_amount=take_amount,
        owner_payout=base_amount - take_amount,
        total_charged=base_amount + platform_fee,
    )
