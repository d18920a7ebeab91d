"""
Operating Calendar Models

Weekly opening hours and blocked dates for a facility.
"""

from datetime import date

from django.db import models

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class OperatingHours(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Opening hours of a facility for one weekday.

    Weekdays follow ``date.weekday()``: 0 is Monday, 6 is Sunday.
    """

    class DayOfWeek(models.IntegerChoices):
        MONDAY = 0, 'Monday'
        TUESDAY = 1, 'Tuesday'
        WEDNESDAY = 2, 'Wednesday'
        THURSDAY = 3, 'Thursday'
        FRIDAY = 4, 'Friday'
        SATURDAY = 5, 'Saturday'
        SUNDAY = 6, 'Sunday'

    facility = models.ForeignKey(
        'engine.Facility',
        on_delete=models.CASCADE,
        related_name='operating_hours'
    )
    day_of_week = models.IntegerField(choices=DayOfWeek.choices)
    open_time = models.TimeField()
    close_time = models.TimeField()
    is_closed = models.BooleanField(default=False)

    class Meta:
        db_table = 'operating_hours'
        ordering = ['facility', 'day_of_week']
        unique_together = [['facility', 'day_of_week']]
        constraints = [
            models.CheckConstraint(
                check=models.Q(is_closed=True) | models.Q(open_time__lt=models.F('close_time')),
                name='valid_operating_hours'
            ),
        ]

    def __str__(self):
        if self.is_closed:
            return f"{self.get_day_of_week_display()}: closed"
        return f"{self.get_day_of_week_display()}: {self.open_time} - {self.close_time}"

    @classmethod
    def get_for_date(cls, facility_id, target_date: date):
        """Get the hours entry for a date's weekday, if one is configured."""
        return cls.objects.filter(
            facility_id=facility_id,
            day_of_week=target_date.weekday()
        ).first()


class BlockedDate(UUIDPrimaryKeyMixin, TimestampMixin):
    """A date on which the facility takes no bookings (holiday, maintenance)."""

    facility = models.ForeignKey(
        'engine.Facility',
        on_delete=models.CASCADE,
        related_name='blocked_dates'
    )
    date = models.DateField(db_index=True)
    reason = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = 'blocked_dates'
        ordering = ['date']
        unique_together = [['facility', 'date']]

    def __str__(self):
        return f"{self.facility_id} blocked on {self.date}"
