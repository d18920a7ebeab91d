"""
Reservation Models

The authoritative booking ledger. For a given resource and date no two
confirmed reservations may overlap on [start_time, end_time).
"""

from datetime import date, datetime, time

from django.db import models
from django.db.models import Q
from django.utils import timezone

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class Reservation(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    A reservation of one resource for a time range on a date.

    Monetary fields are captured when the reservation is created and
    never recomputed afterwards.
    """

    class Status(models.TextChoices):
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'
        NO_SHOW = 'no-show', 'No Show'

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    resource = models.ForeignKey(
        'engine.Resource',
        on_delete=models.PROTECT,
        related_name='reservations'
    )
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    requester_id = models.UUIDField(db_index=True)

    # Pricing (minor currency units)
    hourly_rate = models.PositiveIntegerField()
    base_amount = models.PositiveIntegerField()
    take_rate_percent = models.DecimalField(max_digits=5, decimal_places=2)
    take_amount = models.PositiveIntegerField()
    platform_fee = models.PositiveIntegerField()
    owner_payout = models.PositiveIntegerField()
    total_charged = models.PositiveIntegerField()

    # Payment
    payment_reference = models.CharField(max_length=255, blank=True, null=True)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
        db_index=True
    )

    # Recurring
    recurring_rule = models.ForeignKey(
        'engine.RecurringRule',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='reservations'
    )

    # Cancellation
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by = models.UUIDField(blank=True, null=True)

    class Meta:
        db_table = 'reservations'
        ordering = ['date', 'start_time']
        indexes = [
            models.Index(fields=['resource', 'date']),
            models.Index(fields=['requester_id', 'date']),
            models.Index(fields=['status', 'date']),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(end_time__gt=models.F('start_time')),
                name='valid_reservation_times'
            ),
        ]

    def __str__(self):
        return f"{self.resource_id} {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def duration_minutes(self) -> int:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)

    @property
    def is_terminal(self) -> bool:
        return self.status != self.Status.CONFIRMED

    @property
    def starts_at(self) -> datetime:
        return self.start_datetime(self.date, self.start_time)

    @property
    def has_started(self) -> bool:
        return timezone.now() >= self.starts_at

    @staticmethod
    def start_datetime(target_date: date, start: time) -> datetime:
        """Aware datetime for a start time in the facility time zone."""
        return timezone.make_aware(datetime.combine(target_date, start))

    # ==========================================================================
    # Query Methods
    # ==========================================================================

    @classmethod
    def get_blocking_statuses(cls) -> list:
        """Statuses that occupy a slot."""
        return [
            cls.Status.CONFIRMED,
            cls.Status.COMPLETED,
            cls.Status.NO_SHOW,
        ]

    @classmethod
    def get_for_resource_and_date(cls, resource_id, target_date: date):
        """Non-cancelled reservations for a resource on a date."""
        return cls.objects.filter(
            resource_id=resource_id,
            date=target_date,
            status__in=cls.get_blocking_statuses()
        ).order_by('start_time')

    @classmethod
    def get_conflicts(cls, resource_id, target_date: date, start: time, end: time):
        """Reservations whose interval overlaps [start, end)."""
        return cls.get_for_resource_and_date(resource_id, target_date).filter(
            Q(start_time__lt=end) & Q(end_time__gt=start)
        )


class ReservationLedger(models.Model):
    """
    Concurrency key for one resource on one date.

    Every successful reservation insert bumps ``version`` with a
    conditional update, so concurrent writers for the same key
    serialize while other keys proceed independently.
    """

    resource = models.ForeignKey(
        'engine.Resource',
        on_delete=models.CASCADE,
        related_name='ledgers'
    )
    date = models.DateField()
    version = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'reservation_ledger'
        unique_together = [['resource', 'date']]

    def __str__(self):
        return f"{self.resource_id}@{self.date} v{self.version}"
