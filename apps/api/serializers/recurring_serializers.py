# apps/api/serializers/recurring_serializers.py
"""
Recurring Rule Serializers
"""

from rest_framework import serializers

from apps.engine.models import RecurringRule


class RecurringRuleSerializer(serializers.ModelSerializer):
    """Recurring rule with its captured rate and progress."""

    resource_name = serializers.CharField(source='resource.name', read_only=True)
    frequency_display = serializers.CharField(source='get_frequency_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    end_time = serializers.TimeField(read_only=True)

    class Meta:
        model = RecurringRule
        fields = [
            'id', 'resource', 'resource_name', 'requester_id',
            'day_of_week', 'start_time', 'end_time', 'duration_minutes',
            'frequency', 'frequency_display',
            'start_date', 'end_date',
            'hourly_rate',
            'status', 'status_display',
            'occurrences_created', 'last_materialized_date',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class RecurringRuleCreateSerializer(serializers.Serializer):
    """Input for creating a recurring rule."""

    resource = serializers.UUIDField()
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_time = serializers.TimeField()
    duration_minutes = serializers.IntegerField(min_value=1, default=60)
    frequency = serializers.ChoiceField(
        choices=RecurringRule.Frequency.choices,
        default=RecurringRule.Frequency.WEEKLY
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({
                'end_date': 'End date must not be before start date'
            })
        return attrs
