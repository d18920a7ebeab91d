"""
Waitlist Model

Players waiting for a full slot, served strictly in arrival order.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class WaitlistEntry(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Waitlist entry for one slot of one resource on one date.

    ``created_at`` is the FIFO key; ties are broken by id.
    """

    class Status(models.TextChoices):
        WAITING = 'waiting', 'Waiting'
        NOTIFIED = 'notified', 'Notified'
        BOOKED = 'booked', 'Booked'
        EXPIRED = 'expired', 'Expired'

    resource = models.ForeignKey(
        'engine.Resource',
        on_delete=models.CASCADE,
        related_name='waitlist_entries'
    )
    date = models.DateField()
    time_slot = models.TimeField(help_text="Start time of the desired slot")
    requester_id = models.UUIDField(db_index=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.WAITING,
        db_index=True
    )
    notified_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'waitlist'
        ordering = ['created_at', 'id']
        verbose_name_plural = 'waitlist entries'
        indexes = [
            models.Index(fields=['resource', 'date', 'time_slot', 'status']),
            models.Index(fields=['requester_id', 'status']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['resource', 'date', 'time_slot', 'requester_id'],
                condition=Q(status__in=['waiting', 'notified']),
                name='unique_active_waitlist_entry'
            ),
        ]

    def __str__(self):
        return f"Waitlist: {self.requester_id} for {self.date} {self.time_slot:%H:%M}"

    @classmethod
    def get_active_statuses(cls) -> list:
        return [cls.Status.WAITING, cls.Status.NOTIFIED]

    @property
    def is_active(self) -> bool:
        return self.status in self.get_active_statuses()

    def is_owner(self, user_id) -> bool:
        return user_id is not None and str(self.requester_id) == str(user_id)

    def mark_notified(self):
        """Mark the entry as promoted."""
        if self.status != self.Status.WAITING:
            raise ValueError(f"Cannot notify waitlist entry in {self.status} status")

        self.status = self.Status.NOTIFIED
        self.notified_at = timezone.now()
        self.save(update_fields=['status', 'notified_at', 'updated_at'])
