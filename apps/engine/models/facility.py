"""
Facility and Resource Models

Facilities own bookable resources (courts, studios) and the
operating calendar those resources share.
"""

import uuid

from django.conf import settings
from django.db import models

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin, ActiveMixin


class Facility(UUIDPrimaryKeyMixin, TimestampMixin, ActiveMixin):
    """
    A venue listed on the marketplace.

    The subscription tier decides the take rate applied to new
    reservations on the facility's resources.
    """

    class SubscriptionTier(models.TextChoices):
        FREE = 'free', 'Free'
        PREMIUM = 'premium', 'Premium'

    owner_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=255)
    subscription_tier = models.CharField(
        max_length=20,
        choices=SubscriptionTier.choices,
        default=SubscriptionTier.FREE
    )

    class Meta:
        db_table = 'facilities'
        ordering = ['name']
        verbose_name_plural = 'facilities'

    def __str__(self):
        return self.name

    @property
    def take_rate_percent(self) -> int:
        """Current platform take rate for this facility's tier."""
        rates = getattr(settings, 'BOOKING_TAKE_RATES', {})
        default = getattr(settings, 'BOOKING_DEFAULT_TAKE_RATE', 8)
        return rates.get(self.subscription_tier, default)

    def is_owner(self, user_id) -> bool:
        return user_id is not None and str(self.owner_id) == str(user_id)


class Resource(UUIDPrimaryKeyMixin, TimestampMixin, ActiveMixin):
    """
    A bookable unit.

    Resources are deactivated rather than deleted so that historical
    reservations keep their reference.
    """

    class ResourceType(models.TextChoices):
        COURT = 'court', 'Court'
        STUDIO = 'studio', 'Studio'

    facility = models.ForeignKey(
        Facility,
        on_delete=models.PROTECT,
        related_name='resources'
    )
    name = models.CharField(max_length=255)
    resource_type = models.CharField(
        max_length=20,
        choices=ResourceType.choices,
        default=ResourceType.COURT
    )
    hourly_rate = models.PositiveIntegerField(
        help_text="Hourly rate in minor currency units"
    )

    class Meta:
        db_table = 'resources'
        ordering = ['facility', 'name']
        indexes = [
            models.Index(fields=['facility', 'is_active']),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_resource_type_display()})"

    @property
    def owner_id(self) -> uuid.UUID:
        return self.facility.owner_id
