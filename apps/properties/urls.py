"""URL routing for the properties domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AvailabilityCheckView,
    DiscountRuleViewSet,
    PropertyCalendarExportView,
    PropertyViewSet,
    RoomAvailabilitySummaryView,
    RoomCalendarUpdateView,
    RoomCalendarView,
    RoomMonthAvailabilityView,
    RoomQuoteView,
    RoomTypeViewSet,
    SearchPropertiesView,
    SeasonalPricingViewSet,
    SpecialEventPricingViewSet,
)

router = DefaultRouter()
router.register(r"", PropertyViewSet, basename="property")

crud_list = {"get": "list", "post": "create"}
crud_detail = {"get": "retrieve", "put": "update", "patch": "partial_update", "delete": "destroy"}

urlpatterns = [
    path("search/", SearchPropertiesView.as_view(), name="property-search"),
    # Room types
    path("<int:property_id>/rooms/", RoomTypeViewSet.as_view(crud_list), name="property-room-list"),
    path("<int:property_id>/rooms/<int:pk>/", RoomTypeViewSet.as_view(crud_detail), name="property-room-detail"),
    # Pricing rules
    path(
        "<int:property_id>/seasonal-pricing/",
        SeasonalPricingViewSet.as_view(crud_list),
        name="property-seasonal-pricing-list",
    ),
    path(
        "<int:property_id>/seasonal-pricing/<int:pk>/",
        SeasonalPricingViewSet.as_view(crud_detail),
        name="property-seasonal-pricing-detail",
    ),
    path(
        "<int:property_id>/event-pricing/",
        SpecialEventPricingViewSet.as_view(crud_list),
        name="property-event-pricing-list",
    ),
    path(
        "<int:property_id>/event-pricing/<int:pk>/",
        SpecialEventPricingViewSet.as_view(crud_detail),
        name="property-event-pricing-detail",
    ),
    path("<int:property_id>/discounts/", DiscountRuleViewSet.as_view(crud_list), name="property-discount-list"),
    path(
        "<int:property_id>/discounts/<int:pk>/",
        DiscountRuleViewSet.as_view(crud_detail),
        name="property-discount-detail",
    ),
    # Calendar feed
    path("<int:property_id>/calendar.ics", PropertyCalendarExportView.as_view(), name="property-calendar-export"),
    path("", include(router.urls)),
]

room_urlpatterns = [
    path("<int:room_id>/calendar/", RoomCalendarView.as_view(), name="room-calendar"),
    path("<int:room_id>/calendar/update/", RoomCalendarUpdateView.as_view(), name="room-calendar-update"),
    path(
        "<int:room_id>/availability/month/",
        RoomMonthAvailabilityView.as_view(),
        name="room-month-availability",
    ),
    path(
        "<int:room_id>/availability/summary/",
        RoomAvailabilitySummaryView.as_view(),
        name="room-availability-summary",
    ),
    path("<int:room_id>/quote/", RoomQuoteView.as_view(), name="room-quote"),
]

availability_urlpatterns = [
    path("check/", AvailabilityCheckView.as_view(), name="availability-check"),
]
