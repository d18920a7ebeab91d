# tests/unit/test_pricing.py
"""
Unit Tests for the Pricing Calculator
"""

from decimal import Decimal

import pytest

from apps.engine.services import BookingValidationError, calculate_pricing
from apps.engine.services.pricing import round_half_away_from_zero


class TestCalculatePricing:
    """Tests for calculate_pricing."""

    def test_one_hour_standard_breakdown(self):
        breakdown = calculate_pricing(4000, 60, take_rate_percent=8, platform_fee=300)

        assert breakdown.base_amount == 4000
        assert breakdown.take_amount == 320
        assert breakdown.owner_payout == 3680
        assert breakdown.total_charged == 4300
        assert breakdown.platform_fee == 300

    def test_partial_hour_is_prorated(self):
        breakdown = calculate_pricing(4000, 90, take_rate_percent=5, platform_fee=300)

        assert breakdown.base_amount == 6000
        assert breakdown.take_amount == 300
        assert breakdown.owner_payout == 5700

    def test_halves_round_away_from_zero(self):
        # 1 * 30 / 60 = 0.5
        assert calculate_pricing(1, 30, take_rate_percent=0, platform_fee=0).base_amount == 1
        # 10 * 5% = 0.5
        assert calculate_pricing(10, 60, take_rate_percent=5, platform_fee=0).take_amount == 1

    def test_defaults_come_from_settings(self, settings):
        settings.BOOKING_DEFAULT_TAKE_RATE = 10
        settings.BOOKING_PLATFORM_FEE = 150

        breakdown = calculate_pricing(2000, 60)

        assert breakdown.take_rate_percent == Decimal('10')
        assert breakdown.take_amount == 200
        assert breakdown.total_charged == 2150

    def test_zero_duration_charges_only_the_fee(self):
        breakdown = calculate_pricing(4000, 0, take_rate_percent=8, platform_fee=300)

        assert breakdown.base_amount == 0
        assert breakdown.owner_payout == 0
        assert breakdown.total_charged == 300

    @pytest.mark.parametrize('hourly_rate,duration,take_rate,fee', [
        (4000, 60, 8, 300),
        (3333, 45, 5, 300),
        (1999, 135, Decimal('7.5'), 250),
        (1, 1, 99, 0),
        (250000, 600, 100, 0),
    ])
    def test_payout_and_take_sum_to_base(self, hourly_rate, duration, take_rate, fee):
        breakdown = calculate_pricing(hourly_rate, duration, take_rate_percent=take_rate, platform_fee=fee)

        assert breakdown.owner_payout + breakdown.take_amount == breakdown.base_amount
        assert breakdown.total_charged == breakdown.base_amount + breakdown.platform_fee
        assert breakdown.owner_payout >= 0

    @pytest.mark.parametrize('kwargs', [
        {'hourly_rate': -1, 'duration_minutes': 60},
        {'hourly_rate': 4000, 'duration_minutes': -30},
        {'hourly_rate': 4000, 'duration_minutes': 60, 'platform_fee': -5},
        {'hourly_rate': 4000, 'duration_minutes': 60, 'take_rate_percent': 101},
        {'hourly_rate': 4000, 'duration_minutes': 60, 'take_rate_percent': -1},
    ])
    def test_invalid_inputs_rejected(self, kwargs):
        with pytest.raises(BookingValidationError):
            calculate_pricing(**kwargs)

    def test_to_dict(self):
        data = calculate_pricing(4000, 60, take_rate_percent=8, platform_fee=300).to_dict()

        assert data['base_amount'] == 4000
        assert data['duration_minutes'] == 60


def test_round_half_away_from_zero():
    assert round_half_away_from_zero(Decimal('2.5')) == 3
    assert round_half_away_from_zero(Decimal('2.4999')) == 2
    assert round_half_away_from_zero(Decimal('-2.5')) == -3
