# tests/integration/test_api.py
"""
Integration Tests for the Booking API

End-to-end tests through the HTTP layer.
"""

import uuid
from datetime import time, timedelta
from unittest.mock import patch

import pytest
from django.db import OperationalError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.engine.events import EventPublisher, EventType
from apps.engine.models import RecurringRule, Reservation, WaitlistEntry
from shared.common.authentication import JWTTokenGenerator


@pytest.mark.django_db
class TestAuthentication:

    def test_missing_token(self, api_client):
        response = api_client.get(reverse('api:reservation-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_invalid_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not.a.token')

        response = api_client.get(reverse('api:reservation-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_expired_token(self, api_client, requester_id):
        token = JWTTokenGenerator.generate_access_token(
            user_id=str(requester_id), lifetime=timedelta(seconds=-1)
        )
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = api_client.get(reverse('api:reservation-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_non_uuid_subject_is_rejected(self, authenticate):
        client = authenticate('player-one')

        response = client.get(reverse('api:reservation-list'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestHealth:

    def test_health(self, client):
        response = client.get('/health/')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    def test_ready(self, client):
        response = client.get('/ready/')

        assert response.status_code == 200
        assert response.json()['checks']['database'] == 'connected'

    def test_request_id_is_echoed(self, client):
        response = client.get('/health/', HTTP_X_REQUEST_ID='req-123')

        assert response['X-Request-ID'] == 'req-123'


@pytest.mark.django_db
class TestAvailableSlotsAPI:

    def _url(self, resource):
        return reverse('api:available-slots', kwargs={'resource_id': resource.id})

    def test_slots_for_date(self, authenticate, requester_id, resource, booking_date, create_reservation):
        create_reservation(start=time(10), end=time(11))
        client = authenticate(requester_id)

        response = client.get(self._url(resource), {'date': booking_date.isoformat()})

        assert response.status_code == status.HTTP_200_OK
        slots = {s['start']: s['available'] for s in response.data['slots']}
        assert len(slots) == 16
        assert slots['06:00'] is True
        assert slots['10:00'] is False

    def test_date_required(self, authenticate, requester_id, resource):
        response = authenticate(requester_id).get(self._url(resource))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'

    def test_unknown_resource(self, authenticate, requester_id, booking_date):
        url = reverse('api:available-slots', kwargs={'resource_id': uuid.uuid4()})

        response = authenticate(requester_id).get(url, {'date': booking_date.isoformat()})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error']['code'] == 'NOT_FOUND'


@pytest.mark.django_db
class TestReservationAPI:

    def _payload(self, resource, booking_date, start='10:00', end='11:00', **extra):
        payload = {
            'resource': str(resource.id),
            'date': booking_date.isoformat(),
            'start_time': start,
            'end_time': end,
        }
        payload.update(extra)
        return payload

    def test_create(self, authenticate, requester_id, resource, booking_date, django_capture_on_commit_callbacks):
        client = authenticate(requester_id)

        with django_capture_on_commit_callbacks(execute=True):
            response = client.post(
                reverse('api:reservation-list'),
                self._payload(resource, booking_date, payment_reference='pi_42'),
                format='json'
            )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == Reservation.Status.CONFIRMED
        assert response.data['requester_id'] == str(requester_id)
        assert response.data['total_charged'] == 4300
        assert response.data['owner_payout'] == 3680
        assert response.data['payment_status'] == Reservation.PaymentStatus.PAID
        assert len(EventPublisher.get_memory_events(EventType.RESERVATION_CREATED)) == 1

    def test_create_conflict_returns_409(self, authenticate, other_requester_id, resource, booking_date, create_reservation):
        existing = create_reservation(start=time(10), end=time(12))
        client = authenticate(other_requester_id)

        response = client.post(
            reverse('api:reservation-list'),
            self._payload(resource, booking_date, start='11:00', end='12:00'),
            format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'SLOT_TAKEN'
        assert response.data['error']['message'] == 'Slot no longer available'
        assert response.data['error']['details']['conflicts'] == [str(existing.id)]

    def test_create_invalid_range(self, authenticate, requester_id, resource, booking_date):
        response = authenticate(requester_id).post(
            reverse('api:reservation-list'),
            self._payload(resource, booking_date, start='11:00', end='10:00'),
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'end_time' in response.data['error']['details']

    def test_create_outside_hours(self, authenticate, requester_id, resource, booking_date):
        response = authenticate(requester_id).post(
            reverse('api:reservation-list'),
            self._payload(resource, booking_date, start='21:30', end='22:30'),
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'

    def test_create_in_the_past(self, authenticate, requester_id, resource):
        yesterday = timezone.localdate() - timedelta(days=1)

        response = authenticate(requester_id).post(
            reverse('api:reservation-list'),
            self._payload(resource, yesterday),
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_only_own_reservations(self, authenticate, requester_id, other_requester_id, create_reservation):
        mine = create_reservation(start=time(10), end=time(11))
        create_reservation(start=time(12), end=time(13), requester=other_requester_id)

        response = authenticate(requester_id).get(reverse('api:reservation-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['id'] == str(mine.id)

    def test_list_filters_by_status(self, authenticate, engine, requester_id, create_reservation):
        kept = create_reservation(start=time(10), end=time(11))
        cancelled = create_reservation(start=time(12), end=time(13))
        engine.cancel_reservation(cancelled.id, requester_id)

        response = authenticate(requester_id).get(
            reverse('api:reservation-list'), {'status': Reservation.Status.CONFIRMED}
        )

        assert [r['id'] for r in response.data['results']] == [str(kept.id)]

    def test_retrieve_as_owner(self, authenticate, owner_id, create_reservation):
        reservation = create_reservation()

        response = authenticate(owner_id).get(
            reverse('api:reservation-detail', kwargs={'pk': reservation.id})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['base_amount'] == 4000

    def test_retrieve_as_stranger(self, authenticate, create_reservation):
        reservation = create_reservation()

        response = authenticate(uuid.uuid4()).get(
            reverse('api:reservation-detail', kwargs={'pk': reservation.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cancel(self, authenticate, requester_id, create_reservation):
        reservation = create_reservation()

        response = authenticate(requester_id).post(
            reverse('api:reservation-cancel', kwargs={'pk': reservation.id})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == Reservation.Status.CANCELLED
        assert response.data['payment_status'] == Reservation.PaymentStatus.REFUNDED

    def test_cancel_twice(self, authenticate, requester_id, create_reservation):
        reservation = create_reservation()
        client = authenticate(requester_id)
        url = reverse('api:reservation-cancel', kwargs={'pk': reservation.id})
        client.post(url)

        response = client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'INVALID_STATE'

    def test_cancel_by_stranger(self, authenticate, create_reservation):
        reservation = create_reservation()

        response = authenticate(uuid.uuid4()).post(
            reverse('api:reservation-cancel', kwargs={'pk': reservation.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cancel_unknown(self, authenticate, requester_id):
        response = authenticate(requester_id).post(
            reverse('api:reservation-cancel', kwargs={'pk': uuid.uuid4()})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_complete_requires_owner(self, authenticate, requester_id, owner_id, create_reservation):
        reservation = create_reservation()
        url = reverse('api:reservation-complete', kwargs={'pk': reservation.id})

        assert authenticate(requester_id).post(url).status_code == status.HTTP_403_FORBIDDEN

        response = authenticate(owner_id).post(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == Reservation.Status.COMPLETED

    def test_no_show(self, authenticate, requester_id, owner_id, create_reservation):
        reservation = create_reservation()
        url = reverse('api:reservation-no-show', kwargs={'pk': reservation.id})

        assert authenticate(requester_id).post(url).status_code == status.HTTP_403_FORBIDDEN

        response = authenticate(owner_id).post(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == Reservation.Status.NO_SHOW

    def test_storage_outage_returns_503(self, authenticate, requester_id, resource, booking_date):
        with patch.object(Reservation.objects, 'create', side_effect=OperationalError('gone away')):
            response = authenticate(requester_id).post(
                reverse('api:reservation-list'),
                self._payload(resource, booking_date),
                format='json'
            )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['error']['code'] == 'SERVICE_UNAVAILABLE'


@pytest.mark.django_db
class TestFacilityReservationsAPI:

    def test_owner_lists_facility_reservations(self, authenticate, owner_id, facility, booking_date, create_reservation):
        first = create_reservation(start=time(10), end=time(11))
        create_reservation(start=time(10), end=time(11), target_date=booking_date + timedelta(days=1))

        response = authenticate(owner_id).get(
            reverse('api:facility-reservations', kwargs={'facility_id': facility.id}),
            {'date': booking_date.isoformat()}
        )

        assert response.status_code == status.HTTP_200_OK
        assert [r['id'] for r in response.data['results']] == [str(first.id)]

    def test_non_owner_forbidden(self, authenticate, requester_id, facility):
        response = authenticate(requester_id).get(
            reverse('api:facility-reservations', kwargs={'facility_id': facility.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_facility(self, authenticate, owner_id):
        response = authenticate(owner_id).get(
            reverse('api:facility-reservations', kwargs={'facility_id': uuid.uuid4()})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestRecurringAPI:

    def _create(self, client, resource, booking_date, **extra):
        payload = {
            'resource': str(resource.id),
            'day_of_week': booking_date.weekday(),
            'start_time': '18:00',
            'start_date': booking_date.isoformat(),
        }
        payload.update(extra)
        return client.post(reverse('api:recurring-list'), payload, format='json')

    def test_create_rule(self, authenticate, requester_id, resource, booking_date):
        response = self._create(authenticate(requester_id), resource, booking_date)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == RecurringRule.Status.ACTIVE
        assert response.data['hourly_rate'] == 4000
        assert response.data['materialization']['created'] == 4
        assert len(response.data['materialization']['reservation_ids']) == 4

    def test_create_rule_reports_skips(self, authenticate, requester_id, other_requester_id, resource, booking_date, create_reservation):
        create_reservation(start=time(18), end=time(19), requester=other_requester_id)

        response = self._create(authenticate(requester_id), resource, booking_date)

        materialization = response.data['materialization']
        assert materialization['created'] == 3
        assert materialization['skipped_dates'] == [
            {'date': booking_date.isoformat(), 'reason': 'slot_taken'}
        ]

    def test_invalid_day_of_week(self, authenticate, requester_id, resource, booking_date):
        response = self._create(authenticate(requester_id), resource, booking_date, day_of_week=9)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_pause_resume_cancel(self, authenticate, requester_id, resource, booking_date):
        client = authenticate(requester_id)
        rule_id = self._create(client, resource, booking_date).data['id']

        paused = client.post(reverse('api:recurring-pause', kwargs={'pk': rule_id}))
        assert paused.status_code == status.HTTP_200_OK
        assert paused.data['status'] == RecurringRule.Status.PAUSED

        resumed = client.post(reverse('api:recurring-resume', kwargs={'pk': rule_id}))
        assert resumed.status_code == status.HTTP_200_OK
        assert resumed.data['status'] == RecurringRule.Status.ACTIVE
        assert 'materialization' in resumed.data

        cancelled = client.post(reverse('api:recurring-cancel', kwargs={'pk': rule_id}))
        assert cancelled.data['status'] == RecurringRule.Status.CANCELLED

        again = client.post(reverse('api:recurring-pause', kwargs={'pk': rule_id}))
        assert again.status_code == status.HTTP_400_BAD_REQUEST

    def test_other_user_cannot_manage_rule(self, authenticate, requester_id, resource, booking_date):
        rule_id = self._create(authenticate(requester_id), resource, booking_date).data['id']
        stranger = authenticate(uuid.uuid4())

        assert stranger.post(reverse('api:recurring-pause', kwargs={'pk': rule_id})).status_code == 403
        assert stranger.get(reverse('api:recurring-detail', kwargs={'pk': rule_id})).status_code == 403

    def test_list_own_rules(self, authenticate, requester_id, resource, booking_date):
        client = authenticate(requester_id)
        self._create(client, resource, booking_date)

        response = client.get(reverse('api:recurring-list'))

        assert response.data['count'] == 1


@pytest.mark.django_db
class TestWaitlistAPI:

    def _join(self, client, resource, booking_date, time_slot='10:00'):
        return client.post(
            reverse('api:waitlist-list'),
            {
                'resource': str(resource.id),
                'date': booking_date.isoformat(),
                'time_slot': time_slot,
            },
            format='json'
        )

    def test_join_and_count(self, authenticate, requester_id, resource, booking_date):
        client = authenticate(requester_id)

        joined = self._join(client, resource, booking_date)

        assert joined.status_code == status.HTTP_201_CREATED
        assert joined.data['status'] == WaitlistEntry.Status.WAITING
        assert joined.data['position'] == 1

        count = client.get(reverse('api:waitlist-count'), {
            'resource': str(resource.id),
            'date': booking_date.isoformat(),
            'time_slot': '10:00',
        })
        assert count.status_code == status.HTTP_200_OK
        assert count.data['count'] == 1

    def test_duplicate_join_conflicts(self, authenticate, requester_id, resource, booking_date):
        client = authenticate(requester_id)
        self._join(client, resource, booking_date)

        response = self._join(client, resource, booking_date)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'WAITLIST_CONFLICT'

    def test_join_off_slot_time(self, authenticate, requester_id, resource, booking_date):
        response = self._join(authenticate(requester_id), resource, booking_date, time_slot='10:15')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_own_entries(self, authenticate, requester_id, resource, booking_date, create_waitlist_entry):
        create_waitlist_entry(requester_id=uuid.uuid4())
        mine = create_waitlist_entry(time_slot=time(11))

        response = authenticate(requester_id).get(reverse('api:waitlist-list'))

        assert [e['id'] for e in response.data['results']] == [str(mine.id)]

    def test_leave(self, authenticate, requester_id, create_waitlist_entry):
        entry = create_waitlist_entry()

        response = authenticate(requester_id).delete(
            reverse('api:waitlist-detail', kwargs={'pk': entry.id})
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not WaitlistEntry.objects.filter(pk=entry.pk).exists()

    def test_leave_other_users_entry(self, authenticate, create_waitlist_entry):
        entry = create_waitlist_entry()

        response = authenticate(uuid.uuid4()).delete(
            reverse('api:waitlist-detail', kwargs={'pk': entry.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cancellation_promotes_waiting_player(
        self, authenticate, requester_id, other_requester_id, resource, booking_date,
        create_reservation, django_capture_on_commit_callbacks
    ):
        reservation = create_reservation()
        self._join(authenticate(other_requester_id), resource, booking_date)

        with django_capture_on_commit_callbacks(execute=True):
            authenticate(requester_id).post(
                reverse('api:reservation-cancel', kwargs={'pk': reservation.id})
            )

        entry = WaitlistEntry.objects.get(requester_id=other_requester_id)
        assert entry.status == WaitlistEntry.Status.NOTIFIED
        promoted = EventPublisher.get_memory_events(EventType.WAITLIST_PROMOTED)
        assert promoted[0]['payload']['requester_id'] == str(other_requester_id)
