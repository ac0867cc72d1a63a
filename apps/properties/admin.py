"""Admin registrations for properties domain."""

from __future__ import annotations

from django.contrib import admin

from .models import (
    DiscountRule,
    Property,
    RoomAvailability,
    RoomType,
    SeasonalPricing,
    SpecialEventPricing,
)


class RoomTypeInline(admin.TabularInline):
    model = RoomType
    extra = 0
    fields = ("name", "base_price", "currency", "total_units", "max_occupancy", "available")


class SeasonalPricingInline(admin.TabularInline):
    model = SeasonalPricing
    extra = 0
    fields = ("name", "room_type", "start_date", "end_date", "price_adjustment", "adjustment_value", "priority", "is_active")


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "city", "status", "property_type", "created_at")
    list_filter = ("status", "property_type", "city")
    search_fields = ("name", "city", "owner__email")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [RoomTypeInline, SeasonalPricingInline]


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "property", "base_price", "total_units", "available")
    list_filter = ("available",)
    search_fields = ("name", "property__name")


@admin.register(RoomAvailability)
class RoomAvailabilityAdmin(admin.ModelAdmin):
    list_display = ("room_type", "date", "is_available", "available_units", "custom_price", "min_stay", "max_stay")
    list_filter = ("is_available",)
    date_hierarchy = "date"


@admin.register(SpecialEventPricing)
class SpecialEventPricingAdmin(admin.ModelAdmin):
    list_display = ("event_name", "property", "room_type", "start_date", "end_date", "price_multiplier", "is_active")
    list_filter = ("is_active",)


@admin.register(DiscountRule)
class DiscountRuleAdmin(admin.ModelAdmin):
    list_display = ("name", "discount_type", "discount_percent", "property", "room_type", "is_active")
    list_filter = ("discount_type", "is_active")
