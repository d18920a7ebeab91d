# apps/api/serializers/waitlist_serializers.py
"""
Waitlist Serializers
"""

from rest_framework import serializers

from apps.engine.models import WaitlistEntry


class WaitlistEntrySerializer(serializers.ModelSerializer):
    """Base waitlist entry serializer."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    position = serializers.SerializerMethodField()

    class Meta:
        model = WaitlistEntry
        fields = [
            'id', 'resource', 'date', 'time_slot', 'requester_id',
            'status', 'status_display', 'is_active', 'position',
            'notified_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_position(self, obj) -> int | None:
        """1-based place in the queue while waiting."""
        if obj.status != WaitlistEntry.Status.WAITING:
            return None

        ahead = WaitlistEntry.objects.filter(
            resource_id=obj.resource_id,
            date=obj.date,
            time_slot=obj.time_slot,
            status=WaitlistEntry.Status.WAITING,
            created_at__lt=obj.created_at,
        ).count()
        return ahead + 1


class WaitlistJoinSerializer(serializers.Serializer):
    """Input for joining the waitlist for one slot."""

    resource = serializers.UUIDField()
    date = serializers.DateField()
    time_slot = serializers.TimeField()


class WaitlistCountQuerySerializer(WaitlistJoinSerializer):
    """Query parameters for the per-slot waiting count."""
    pass
