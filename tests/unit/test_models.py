# tests/unit/test_models.py
"""
Unit Tests for Booking Engine Models
"""

import uuid
from datetime import date, time, timedelta
from unittest.mock import patch

import pytest
from django.db import IntegrityError

from apps.engine.models import (
    Facility,
    OperatingHours,
    RecurringRule,
    Reservation,
    WaitlistEntry,
)


@pytest.mark.django_db
class TestFacility:

    def test_take_rate_follows_tier(self, create_facility):
        assert create_facility().take_rate_percent == 8
        assert create_facility(subscription_tier=Facility.SubscriptionTier.PREMIUM).take_rate_percent == 5

    def test_is_owner(self, facility, owner_id):
        assert facility.is_owner(owner_id)
        assert facility.is_owner(str(owner_id))
        assert not facility.is_owner(uuid.uuid4())
        assert not facility.is_owner(None)

    def test_resource_owner_is_facility_owner(self, resource, owner_id):
        assert resource.owner_id == owner_id

    def test_deactivate_and_activate(self, resource):
        resource.deactivate()
        resource.refresh_from_db()
        assert not resource.is_active

        resource.activate()
        resource.refresh_from_db()
        assert resource.is_active


@pytest.mark.django_db
class TestOperatingHours:

    def test_get_for_date(self, facility, set_hours, booking_date):
        hours = set_hours(booking_date.weekday())

        assert OperatingHours.get_for_date(facility.id, booking_date) == hours
        assert OperatingHours.get_for_date(facility.id, booking_date + timedelta(days=1)) is None

    def test_open_must_precede_close(self, facility):
        with pytest.raises(IntegrityError):
            OperatingHours.objects.create(
                facility=facility, day_of_week=0, open_time=time(20), close_time=time(8)
            )

    def test_closed_day_ignores_times(self, facility):
        hours = OperatingHours.objects.create(
            facility=facility, day_of_week=6, open_time=time(0), close_time=time(0), is_closed=True
        )

        assert str(hours) == 'Sunday: closed'


@pytest.mark.django_db
class TestReservation:

    def test_duration_and_terminal(self, create_reservation):
        reservation = create_reservation(start=time(10), end=time(11, 30))

        assert reservation.duration_minutes == 90
        assert not reservation.is_terminal
        assert reservation.starts_at.time() == time(10)

    def test_has_started(self, create_reservation):
        reservation = create_reservation(start=time(10), end=time(11))
        assert not reservation.has_started

        with patch('django.utils.timezone.now', return_value=reservation.starts_at):
            assert reservation.has_started

    def test_end_must_follow_start(self, resource, booking_date, requester_id):
        with pytest.raises(IntegrityError):
            Reservation.objects.create(
                resource=resource, date=booking_date,
                start_time=time(11), end_time=time(10),
                requester_id=requester_id,
                hourly_rate=0, base_amount=0, take_rate_percent=0, take_amount=0,
                platform_fee=0, owner_payout=0, total_charged=0,
            )

    def test_get_conflicts_ignores_cancelled(self, engine, create_reservation, requester_id, resource, booking_date):
        reservation = create_reservation()

        assert Reservation.get_conflicts(resource.id, booking_date, time(10, 30), time(11, 30)).count() == 1

        engine.cancel_reservation(reservation.id, requester_id)

        assert not Reservation.get_conflicts(resource.id, booking_date, time(10, 30), time(11, 30)).exists()


class TestRecurringRuleSchedule:
    """first_occurrence keeps the rule on its cadence."""

    def _rule(self, **kwargs):
        defaults = {
            'day_of_week': 0,
            'start_time': time(18),
            'duration_minutes': 90,
            'frequency': RecurringRule.Frequency.WEEKLY,
            'start_date': date(2030, 1, 2),  # Wednesday
        }
        defaults.update(kwargs)
        return RecurringRule(**defaults)

    def test_anchor_is_first_matching_weekday(self):
        assert self._rule().first_occurrence() == date(2030, 1, 7)

    def test_not_before_rounds_up_to_cadence(self):
        rule = self._rule()

        assert rule.first_occurrence(not_before=date(2030, 1, 7)) == date(2030, 1, 7)
        assert rule.first_occurrence(not_before=date(2030, 1, 8)) == date(2030, 1, 14)

    def test_biweekly_cadence(self):
        rule = self._rule(frequency=RecurringRule.Frequency.BIWEEKLY)

        assert rule.step_days == 14
        assert rule.first_occurrence(not_before=date(2030, 1, 8)) == date(2030, 1, 21)

    def test_end_time(self):
        assert self._rule().end_time == time(19, 30)

    def test_is_owner(self):
        requester = uuid.uuid4()
        rule = self._rule(requester_id=requester)

        assert rule.is_owner(str(requester))
        assert not rule.is_owner(uuid.uuid4())


@pytest.mark.django_db
class TestWaitlistEntry:

    def test_mark_notified(self, create_waitlist_entry):
        entry = create_waitlist_entry()

        entry.mark_notified()
        entry.refresh_from_db()

        assert entry.status == WaitlistEntry.Status.NOTIFIED
        assert entry.notified_at is not None

    def test_mark_notified_requires_waiting(self, create_waitlist_entry):
        entry = create_waitlist_entry(status=WaitlistEntry.Status.BOOKED)

        with pytest.raises(ValueError):
            entry.mark_notified()

    def test_one_active_entry_per_requester_and_slot(self, create_waitlist_entry):
        create_waitlist_entry()

        with pytest.raises(IntegrityError):
            create_waitlist_entry(status=WaitlistEntry.Status.NOTIFIED)

    def test_finished_entries_do_not_block_a_new_one(self, create_waitlist_entry):
        create_waitlist_entry(status=WaitlistEntry.Status.EXPIRED)
        create_waitlist_entry(status=WaitlistEntry.Status.BOOKED)

        assert create_waitlist_entry().status == WaitlistEntry.Status.WAITING
