# apps/api/views/waitlist_views.py
"""
Waitlist API Views
"""

import logging

from rest_framework import mixins, viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend

from apps.engine.models import WaitlistEntry
from apps.engine.services import BookingEngine
from apps.api.serializers import (
    WaitlistEntrySerializer,
    WaitlistJoinSerializer,
    WaitlistCountQuerySerializer,
)
from shared.common.pagination import StandardPagination
from .errors import engine_errors
from .filters import WaitlistEntryFilter

logger = logging.getLogger(__name__)


class WaitlistViewSet(
    mixins.ListModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for the caller's waitlist entries.

    list:    active entries (waiting or notified)
    create:  join the queue for one slot
    destroy: leave the queue
    count:   number of players waiting for a slot
    """

    queryset = WaitlistEntry.objects.all()
    serializer_class = WaitlistEntrySerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = WaitlistEntryFilter
    ordering_fields = ['date', 'time_slot', 'created_at']
    ordering = ['date', 'time_slot']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.engine = BookingEngine.default()

    def get_queryset(self):
        with engine_errors():
            return self.engine.list_waitlist_for_requester(self.request.user.id)

    def get_serializer_class(self):
        if self.action == 'create':
            return WaitlistJoinSerializer
        return WaitlistEntrySerializer

    def create(self, request, *args, **kwargs):
        """Join the waitlist for a slot."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with engine_errors():
            entry = self.engine.join_waitlist(
                data['resource'],
                data['date'],
                data['time_slot'],
                request.user.id,
            )

        return Response(
            WaitlistEntrySerializer(entry).data,
            status=status.HTTP_201_CREATED
        )

    def destroy(self, request, pk=None):
        """Leave the waitlist."""
        with engine_errors():
            self.engine.leave_waitlist(pk, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def count(self, request):
        """Players waiting for one slot."""
        params = WaitlistCountQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        waiting = self.engine.waitlist_count(data['resource'], data['date'], data['time_slot'])

        return Response({
            'resource': str(data['resource']),
            'date': data['date'].isoformat(),
            'time_slot': data['time_slot'].strftime('%H:%M'),
            'count': waiting,
        })
