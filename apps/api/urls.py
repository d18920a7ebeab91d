"""
Booking API URL Configuration
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AvailableSlotsView,
    ReservationViewSet,
    FacilityReservationsView,
    RecurringRuleViewSet,
    WaitlistViewSet,
)

app_name = 'api'

router = DefaultRouter()
router.register(r'reservations', ReservationViewSet, basename='reservation')
router.register(r'recurring', RecurringRuleViewSet, basename='recurring')
router.register(r'waitlist', WaitlistViewSet, basename='waitlist')

urlpatterns = [
    path('', include(router.urls)),

    # Availability
    path(
        'resources/<uuid:resource_id>/slots/',
        AvailableSlotsView.as_view(),
        name='available-slots'
    ),

    # Facility owner views
    path(
        'facilities/<uuid:facility_id>/reservations/',
        FacilityReservationsView.as_view(),
        name='facility-reservations'
    ),
]
