"""
Recurring Rule Model

Template for a weekly or biweekly standing reservation.
"""

from datetime import date, datetime, time, timedelta

from django.db import models

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class RecurringRule(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    A standing booking owned by a requester.

    Occurrences are materialized a bounded number at a time; the rule
    itself never holds the slot.
    """

    class Frequency(models.TextChoices):
        WEEKLY = 'weekly', 'Weekly'
        BIWEEKLY = 'biweekly', 'Biweekly'

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        PAUSED = 'paused', 'Paused'
        CANCELLED = 'cancelled', 'Cancelled'

    resource = models.ForeignKey(
        'engine.Resource',
        on_delete=models.PROTECT,
        related_name='recurring_rules'
    )
    requester_id = models.UUIDField(db_index=True)

    # Recurrence
    day_of_week = models.IntegerField(
        help_text="0=Monday through 6=Sunday"
    )
    start_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    frequency = models.CharField(
        max_length=20,
        choices=Frequency.choices,
        default=Frequency.WEEKLY
    )
    start_date = models.DateField()
    end_date = models.DateField(blank=True, null=True)

    # Rate captured at creation
    hourly_rate = models.PositiveIntegerField()

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True
    )

    # Tracking
    occurrences_created = models.PositiveIntegerField(default=0)
    last_materialized_date = models.DateField(blank=True, null=True)

    class Meta:
        db_table = 'recurring_rules'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['requester_id', 'status']),
            models.Index(fields=['status', 'start_date']),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(day_of_week__gte=0) & models.Q(day_of_week__lte=6),
                name='valid_rule_day_of_week'
            ),
        ]

    def __str__(self):
        return f"{self.get_frequency_display()} {self.start_time:%H:%M} on day {self.day_of_week}"

    # ==========================================================================
    # Schedule
    # ==========================================================================

    @property
    def step_days(self) -> int:
        return 14 if self.frequency == self.Frequency.BIWEEKLY else 7

    @property
    def end_time(self) -> time:
        start = datetime.combine(date.min, self.start_time)
        return (start + timedelta(minutes=self.duration_minutes)).time()

    def first_occurrence(self, not_before: date = None) -> date:
        """
        First occurrence on or after ``not_before``.

        The anchor is the first matching weekday on or after start_date;
        later occurrences stay on the rule's cadence from that anchor.
        """
        anchor = self.start_date + timedelta(
            days=(self.day_of_week - self.start_date.weekday()) % 7
        )
        if not_before is None or not_before <= anchor:
            return anchor

        steps = -(-(not_before - anchor).days // self.step_days)
        return anchor + timedelta(days=steps * self.step_days)

    # ==========================================================================
    # Status
    # ==========================================================================

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    def is_owner(self, user_id) -> bool:
        return user_id is not None and str(self.requester_id) == str(user_id)
