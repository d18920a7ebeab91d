# apps/api/serializers/availability_serializers.py
"""
Availability Serializers
"""

from rest_framework import serializers


class AvailableSlotsRequestSerializer(serializers.Serializer):
    """Query parameters for the slot listing."""

    date = serializers.DateField()


class SlotSerializer(serializers.Serializer):
    """One candidate slot and whether it can still be booked."""

    start = serializers.TimeField(format='%H:%M')
    end = serializers.TimeField(format='%H:%M')
    available = serializers.BooleanField()
