# apps/api/views/reservation_views.py
"""
Reservation API Views

Create, list and move reservations through their lifecycle. All writes
go through the booking engine; the store decides conflicts.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import mixins, viewsets, generics, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend

from apps.engine.models import Facility, Reservation
from apps.engine.services import BookingEngine
from apps.api.serializers import (
    ReservationSerializer,
    ReservationListSerializer,
    ReservationCreateSerializer,
    FacilityReservationQuerySerializer,
)
from shared.common.exceptions import ForbiddenException
from shared.common.pagination import StandardPagination
from .errors import engine_errors, slot_taken_exception
from .filters import ReservationFilter

logger = logging.getLogger(__name__)


class ReservationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for a requester's reservations.

    list:     the caller's reservations
    create:   book an interval (409 when the slot is taken)
    retrieve: one reservation, visible to its requester and the facility owner
    """

    queryset = Reservation.objects.all()
    serializer_class = ReservationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = ReservationFilter
    ordering_fields = ['date', 'start_time', 'created_at', 'status']
    ordering = ['date', 'start_time']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.engine = BookingEngine.default()

    def get_queryset(self):
        upcoming = self.request.query_params.get('upcoming', '').lower() == 'true'
        with engine_errors():
            return self.engine.list_reservations_for_requester(
                self.request.user.id,
                upcoming_only=upcoming
            )

    def get_serializer_class(self):
        if self.action == 'list':
            return ReservationListSerializer
        if self.action == 'create':
            return ReservationCreateSerializer
        return ReservationSerializer

    def get_object(self):
        with engine_errors():
            reservation = self.engine.get_reservation(self.kwargs['pk'])

        user_id = self.request.user.id
        if (
            str(reservation.requester_id) != str(user_id)
            and not reservation.resource.facility.is_owner(user_id)
        ):
            raise ForbiddenException('You cannot access this reservation')
        return reservation

    def create(self, request, *args, **kwargs):
        """Create a reservation for the caller."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with engine_errors():
            result = self.engine.create_reservation(
                data['resource'],
                data['date'],
                data['start_time'],
                data['end_time'],
                request.user.id,
                payment_reference=data.get('payment_reference'),
            )

        if not result.ok:
            raise slot_taken_exception(result.error)

        return Response(
            ReservationSerializer(result.reservation).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a reservation (requester or facility owner)."""
        with engine_errors():
            reservation = self.engine.cancel_reservation(pk, request.user.id)
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Mark a reservation as completed (facility owner)."""
        reservation = self._get_owned_by_facility(pk)
        with engine_errors():
            reservation = self.engine.complete_reservation(reservation.id)
        return Response(ReservationSerializer(reservation).data)

    @action(detail=True, methods=['post'], url_path='no-show')
    def no_show(self, request, pk=None):
        """Report a no-show (facility owner)."""
        with engine_errors():
            reservation = self.engine.mark_no_show(pk, reported_by=request.user.id)
        return Response(ReservationSerializer(reservation).data)

    def _get_owned_by_facility(self, pk) -> Reservation:
        with engine_errors():
            reservation = self.engine.get_reservation(pk)
        if not reservation.resource.facility.is_owner(self.request.user.id):
            raise ForbiddenException('Only the facility owner can perform this action')
        return reservation


class FacilityReservationsView(generics.ListAPIView):
    """
    Reservations across a facility's resources. Owner only.

    GET /facilities/{id}/reservations/?date=YYYY-MM-DD
    """

    serializer_class = ReservationListSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = ReservationFilter
    ordering_fields = ['date', 'start_time', 'status']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.engine = BookingEngine.default()

    def get_queryset(self):
        facility = get_object_or_404(Facility, id=self.kwargs['facility_id'])
        if not facility.is_owner(self.request.user.id):
            raise ForbiddenException('Only the facility owner can list its reservations')

        params = FacilityReservationQuerySerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)

        return self.engine.list_reservations_for_facility(
            facility.id,
            params.validated_data.get('date')
        )
