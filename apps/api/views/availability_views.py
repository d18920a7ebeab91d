# apps/api/views/availability_views.py
"""
Availability API Views
"""

import logging

from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated

from apps.engine.services import BookingEngine
from apps.api.serializers import AvailableSlotsRequestSerializer, SlotSerializer
from .errors import engine_errors

logger = logging.getLogger(__name__)


class AvailableSlotsView(APIView):
    """
    Slots for one resource on one date, each flagged available or not.

    GET /resources/{id}/slots/?date=YYYY-MM-DD
    """

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.engine = BookingEngine.default()

    def get(self, request, resource_id):
        params = AvailableSlotsRequestSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        target_date = params.validated_data['date']

        with engine_errors():
            slots = self.engine.get_available_slots(resource_id, target_date)

        return Response({
            'resource_id': str(resource_id),
            'date': target_date.isoformat(),
            'slots': SlotSerializer(slots, many=True).data,
        })
