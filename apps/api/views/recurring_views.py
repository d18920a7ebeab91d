# apps/api/views/recurring_views.py
"""
Recurring Rule API Views
"""

import logging

from rest_framework import mixins, viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend

from apps.engine.models import RecurringRule
from apps.engine.services import BookingEngine
from apps.api.serializers import RecurringRuleSerializer, RecurringRuleCreateSerializer
from shared.common.exceptions import ForbiddenException
from shared.common.pagination import StandardPagination
from .errors import engine_errors
from .filters import RecurringRuleFilter

logger = logging.getLogger(__name__)


class RecurringRuleViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for a requester's recurring rules.

    Creating or resuming a rule materializes its next window of
    occurrences; the response reports what was created and skipped.
    """

    queryset = RecurringRule.objects.all()
    serializer_class = RecurringRuleSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = RecurringRuleFilter
    ordering_fields = ['created_at', 'start_date', 'day_of_week']
    ordering = ['-created_at']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.engine = BookingEngine.default()

    def get_queryset(self):
        with engine_errors():
            return self.engine.list_recurring_rules_for_requester(self.request.user.id)

    def get_serializer_class(self):
        if self.action == 'create':
            return RecurringRuleCreateSerializer
        return RecurringRuleSerializer

    def get_object(self):
        with engine_errors():
            rule = self.engine.recurring.get(self.kwargs['pk'])
        if not rule.is_owner(self.request.user.id):
            raise ForbiddenException('You cannot access this recurring rule')
        return rule

    def create(self, request, *args, **kwargs):
        """Create a rule and materialize its first window."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        with engine_errors():
            rule, result = self.engine.create_recurring_rule(
                data.pop('resource'),
                request.user.id,
                data.pop('day_of_week'),
                data.pop('start_time'),
                **data
            )

        return Response(
            self._rule_response(rule, result),
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def pause(self, request, pk=None):
        with engine_errors():
            rule = self.engine.pause_recurring_rule(pk, request.user.id)
        return Response(RecurringRuleSerializer(rule).data)

    @action(detail=True, methods=['post'])
    def resume(self, request, pk=None):
        """Resume a paused rule and materialize a fresh window."""
        with engine_errors():
            rule, result = self.engine.resume_recurring_rule(pk, request.user.id)
        return Response(self._rule_response(rule, result))

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Stop the rule; reservations already made are kept."""
        with engine_errors():
            rule = self.engine.cancel_recurring_rule(pk, request.user.id)
        return Response(RecurringRuleSerializer(rule).data)

    def _rule_response(self, rule, result) -> dict:
        data = RecurringRuleSerializer(rule).data
        data['materialization'] = result.to_dict()
        return data
