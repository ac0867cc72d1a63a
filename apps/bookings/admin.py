"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import PropertyBooking


@admin.register(PropertyBooking)
class PropertyBookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "property",
        "room_type",
        "user",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "number_of_rooms",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method", "check_in")
    search_fields = ("booking_number", "property__name", "user__email", "guest_email")
    readonly_fields = (
        "booking_number",
        "subtotal",
        "cleaning_fee",
        "service_fee",
        "tax_amount",
        "total_price",
        "price_breakdown",
        "refund_amount",
        "refund_percentage",
        "created_at",
        "updated_at",
    )
