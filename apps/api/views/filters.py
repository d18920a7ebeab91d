# apps/api/views/filters.py
"""
API Filters

Django Filter classes for the booking API.
"""

import django_filters

from apps.engine.models import Reservation, RecurringRule, WaitlistEntry


class ReservationFilter(django_filters.FilterSet):
    """Filter for reservation listings."""

    date = django_filters.DateFilter()
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')
    status = django_filters.ChoiceFilter(choices=Reservation.Status.choices)
    payment_status = django_filters.ChoiceFilter(choices=Reservation.PaymentStatus.choices)
    resource = django_filters.UUIDFilter(field_name='resource_id')
    is_recurring = django_filters.BooleanFilter(method='filter_is_recurring')

    class Meta:
        model = Reservation
        fields = ['date', 'status', 'payment_status', 'resource']

    def filter_is_recurring(self, queryset, name, value):
        """Filter for recurring vs one-off reservations."""
        return queryset.filter(recurring_rule__isnull=not value)


class RecurringRuleFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=RecurringRule.Status.choices)
    frequency = django_filters.ChoiceFilter(choices=RecurringRule.Frequency.choices)
    resource = django_filters.UUIDFilter(field_name='resource_id')

    class Meta:
        model = RecurringRule
        fields = ['status', 'frequency', 'resource']


class WaitlistEntryFilter(django_filters.FilterSet):
    date = django_filters.DateFilter()
    resource = django_filters.UUIDFilter(field_name='resource_id')

    class Meta:
        model = WaitlistEntry
        fields = ['date', 'resource']
