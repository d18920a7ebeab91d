# tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for booking engine tests.
"""

import uuid
from datetime import time, timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from shared.common.authentication import JWTTokenGenerator


@pytest.fixture(autouse=True)
def clear_events():
    """Start every test with an empty in-memory event store."""
    from apps.engine.events import EventPublisher

    EventPublisher.clear_memory_events()
    yield
    EventPublisher.clear_memory_events()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def owner_id():
    """Provide a facility owner ID."""
    return uuid.uuid4()


@pytest.fixture
def requester_id():
    """Provide a player ID."""
    return uuid.uuid4()


@pytest.fixture
def other_requester_id():
    """Provide a second player ID."""
    return uuid.uuid4()


@pytest.fixture
def booking_date():
    """A Monday at least a week ahead."""
    today = timezone.localdate()
    return today + timedelta(days=7 + (7 - today.weekday()) % 7)


@pytest.fixture
def engine():
    """Provide a booking engine with the default wiring."""
    from apps.engine.services import BookingEngine
    return BookingEngine.default()


@pytest.fixture
def create_facility(owner_id):
    """Factory fixture for creating facilities."""
    from apps.engine.models import Facility

    def _create_facility(**kwargs):
        defaults = {
            'owner_id': owner_id,
            'name': 'Riverside Padel Club',
            'subscription_tier': Facility.SubscriptionTier.FREE,
        }
        defaults.update(kwargs)

        return Facility.objects.create(**defaults)

    return _create_facility


@pytest.fixture
def facility(create_facility):
    return create_facility()


@pytest.fixture
def create_resource(facility):
    """Factory fixture for creating resources."""
    from apps.engine.models import Resource

    def _create_resource(**kwargs):
        defaults = {
            'facility': facility,
            'name': 'Court 1',
            'resource_type': Resource.ResourceType.COURT,
            'hourly_rate': 4000,
        }
        defaults.update(kwargs)

        return Resource.objects.create(**defaults)

    return _create_resource


@pytest.fixture
def resource(create_resource):
    return create_resource()


@pytest.fixture
def set_hours(facility):
    """Configure a facility's hours for one weekday."""
    from apps.engine.models import OperatingHours

    def _set_hours(day_of_week, open_time=None, close_time=None, is_closed=False, target=None):
        return OperatingHours.objects.create(
            facility=target or facility,
            day_of_week=day_of_week,
            open_time=open_time or time(8, 0),
            close_time=close_time or time(20, 0),
            is_closed=is_closed,
        )

    return _set_hours


@pytest.fixture
def create_reservation(engine, resource, booking_date, requester_id):
    """Factory fixture booking through the engine."""

    def _create_reservation(start=time(10, 0), end=time(11, 0), **kwargs):
        booking = engine.create_reservation(
            kwargs.pop('resource_id', resource.id),
            kwargs.pop('target_date', booking_date),
            start,
            end,
            kwargs.pop('requester', requester_id),
            **kwargs
        )
        assert booking.ok, booking.error
        return booking.reservation

    return _create_reservation


@pytest.fixture
def create_waitlist_entry(resource, booking_date, requester_id):
    """Factory fixture for creating waitlist entries directly."""
    from apps.engine.models import WaitlistEntry

    def _create_entry(**kwargs):
        defaults = {
            'resource': resource,
            'date': booking_date,
            'time_slot': time(10, 0),
            'requester_id': requester_id,
            'status': WaitlistEntry.Status.WAITING,
        }
        defaults.update(kwargs)

        return WaitlistEntry.objects.create(**defaults)

    return _create_entry


@pytest.fixture
def authenticate(api_client):
    """Attach a bearer token for the given user to the API client."""

    def _authenticate(user_id):
        token = JWTTokenGenerator.generate_access_token(user_id=str(user_id))
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return api_client

    return _authenticate
