from django.contrib import admin
from .models import (
    Facility,
    Resource,
    OperatingHours,
    BlockedDate,
    Reservation,
    RecurringRule,
    WaitlistEntry,
)


class OperatingHoursInline(admin.TabularInline):
    model = OperatingHours
    extra = 0


class BlockedDateInline(admin.TabularInline):
    model = BlockedDate
    extra = 0


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'owner_id', 'subscription_tier', 'is_active']
    list_filter = ['subscription_tier', 'is_active']
    inlines = [OperatingHoursInline, BlockedDateInline]


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'facility', 'resource_type', 'hourly_rate', 'is_active']
    list_filter = ['resource_type', 'is_active']


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ['id', 'resource', 'date', 'start_time', 'end_time', 'status', 'payment_status']
    list_filter = ['status', 'payment_status']


@admin.register(RecurringRule)
class RecurringRuleAdmin(admin.ModelAdmin):
    list_display = ['id', 'resource', 'day_of_week', 'start_time', 'frequency', 'status']
    list_filter = ['status', 'frequency']


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(admin.ModelAdmin):
    list_display = ['id', 'resource', 'date', 'time_slot', 'requester_id', 'status']
    list_filter = ['status']
