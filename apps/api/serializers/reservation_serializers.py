# apps/api/serializers/reservation_serializers.py
"""
Reservation Serializers
"""

from rest_framework import serializers

from apps.engine.models import Reservation


class ReservationSerializer(serializers.ModelSerializer):
    """Full reservation representation including the frozen price breakdown."""

    resource_name = serializers.CharField(source='resource.name', read_only=True)
    facility_id = serializers.UUIDField(source='resource.facility_id', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    duration_minutes = serializers.IntegerField(read_only=True)

    class Meta:
        model = Reservation
        fields = [
            'id', 'resource', 'resource_name', 'facility_id',
            'date', 'start_time', 'end_time', 'duration_minutes',
            'requester_id',
            'hourly_rate', 'base_amount', 'take_rate_percent', 'take_amount',
            'platform_fee', 'owner_payout', 'total_charged',
            'payment_reference', 'payment_status',
            'status', 'status_display',
            'recurring_rule',
            'cancelled_at', 'cancelled_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ReservationListSerializer(serializers.ModelSerializer):
    """Compact serializer for reservation lists."""

    resource_name = serializers.CharField(source='resource.name', read_only=True)

    class Meta:
        model = Reservation
        fields = [
            'id', 'resource', 'resource_name',
            'date', 'start_time', 'end_time',
            'requester_id', 'total_charged',
            'payment_status', 'status', 'recurring_rule',
        ]
        read_only_fields = fields


class ReservationCreateSerializer(serializers.Serializer):
    """Input for creating a reservation."""

    resource = serializers.UUIDField()
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    payment_reference = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        allow_null=True
    )

    def validate(self, attrs):
        if attrs['start_time'] >= attrs['end_time']:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time'
            })
        return attrs


class FacilityReservationQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
