"""Serializers for the properties domain."""

from __future__ import annotations

from datetime import date

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import (
    DiscountRule,
    Property,
    RoomType,
    SeasonalPricing,
    SpecialEventPricing,
)
from .services import CalendarAction

MAX_CALENDAR_WINDOW_DAYS = 366
MIN_CALENDAR_YEAR = 2020
MAX_CALENDAR_YEAR = 2035
LAST_CALENDAR_DATE = date(MAX_CALENDAR_YEAR, 12, 31)
MAX_STAY_NIGHTS = MAX_CALENDAR_WINDOW_DAYS


def _validate_range(attrs, start_field: str, end_field: str, *, allow_same_day: bool = True):  # type: ignore
    start = attrs.get(start_field)
    end = attrs.get(end_field)
    if start and end and (start > end or (not allow_same_day and start == end)):
        raise serializers.ValidationError({end_field: f"{end_field} must be after {start_field}."})
    return attrs


def validate_stay_window(check_in: date, check_out: date) -> None:
    """Reject stays past the calendar horizon or longer than `MAX_STAY_NIGHTS`."""

    if check_out > LAST_CALENDAR_DATE:
        raise serializers.ValidationError({"check_out": f"Dates after {LAST_CALENDAR_DATE} cannot be booked."})
    if (check_out - check_in).days > MAX_STAY_NIGHTS:
        raise serializers.ValidationError({"check_out": f"Stays are limited to {MAX_STAY_NIGHTS} nights."})


class RoomTypeSerializer(serializers.ModelSerializer):
    property_id = serializers.ReadOnlyField(source="property.id")

    class Meta:
        model = RoomType
        fields = [
            "id",
            "property_id",
            "name",
            "description",
            "base_price",
            "currency",
            "total_units",
            "max_occupancy",
            "bed_type",
            "available",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["property_id", "created_at", "updated_at"]


class PropertySerializer(serializers.ModelSerializer):
    """Read serializer with nested room types."""

    owner_id = serializers.ReadOnlyField(source="owner.id")
    room_types = RoomTypeSerializer(many=True, read_only=True)

    class Meta:
        model = Property
        fields = [
            "id",
            "owner_id",
            "name",
            "slug",
            "description",
            "status",
            "property_type",
            "address",
            "city",
            "country",
            "latitude",
            "longitude",
            "cleaning_fee",
            "service_fee",
            "tax_rate",
            "currency",
            "check_in_time",
            "check_out_time",
            "room_types",
            "published_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PropertyWriteSerializer(serializers.ModelSerializer):
    """Serializer for create/update operations."""

    class Meta:
        model = Property
        fields = [
            "name",
            "slug",
            "description",
            "property_type",
            "address",
            "city",
            "country",
            "latitude",
            "longitude",
            "cleaning_fee",
            "service_fee",
            "tax_rate",
            "currency",
            "check_in_time",
            "check_out_time",
        ]
        extra_kwargs = {
            "slug": {"required": False, "allow_blank": True},
        }

    def create(self, validated_data):  # type: ignore
        return Property.objects.create(owner=self.context["request"].user, **validated_data)


class PropertyRoomScopedSerializer(serializers.ModelSerializer):
    """Base for rules whose optional room type must belong to the property in context."""

    def validate_room_type(self, value):  # type: ignore
        property_obj = self.context.get("property")
        if value is not None and property_obj is not None and value.property_id != property_obj.pk:
            raise serializers.ValidationError("Room type belongs to another property.")
        return value


class SeasonalPricingSerializer(PropertyRoomScopedSerializer):
    created_by = serializers.ReadOnlyField(source="created_by_id")

    class Meta:
        model = SeasonalPricing
        fields = [
            "id",
            "room_type",
            "name",
            "description",
            "start_date",
            "end_date",
            "price_adjustment",
            "adjustment_value",
            "days_of_week",
            "priority",
            "min_stay",
            "max_stay",
            "is_active",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_by", "created_at", "updated_at"]

    def validate_days_of_week(self, value):  # type: ignore
        if not isinstance(value, list):
            raise serializers.ValidationError("Expected a list of weekdays.")
        for item in value:
            if not isinstance(item, int) or isinstance(item, bool) or item not in range(0, 7):
                raise serializers.ValidationError("Weekdays go from 0 (Monday) to 6 (Sunday).")
        return sorted(set(value))

    def validate(self, attrs):  # type: ignore
        attrs = _validate_range(attrs, "start_date", "end_date")
        min_stay = attrs.get("min_stay", getattr(self.instance, "min_stay", None))
        max_stay = attrs.get("max_stay", getattr(self.instance, "max_stay", None))
        if min_stay and max_stay and max_stay < min_stay:
            raise serializers.ValidationError({"max_stay": "max_stay cannot be lower than min_stay."})
        return attrs


class SpecialEventPricingSerializer(PropertyRoomScopedSerializer):
    class Meta:
        model = SpecialEventPricing
        fields = [
            "id",
            "room_type",
            "event_name",
            "description",
            "start_date",
            "end_date",
            "price_multiplier",
            "min_stay",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        return _validate_range(attrs, "start_date", "end_date")


class DiscountRuleSerializer(PropertyRoomScopedSerializer):
    REQUIRED_THRESHOLD = {
        DiscountRule.DiscountType.LONG_STAY.value: "min_nights",
        DiscountRule.DiscountType.WEEKLY.value: "min_nights",
        DiscountRule.DiscountType.MONTHLY.value: "min_nights",
        DiscountRule.DiscountType.EARLY_BIRD.value: "days_in_advance",
        DiscountRule.DiscountType.LAST_MINUTE.value: "days_before_check_in",
    }

    class Meta:
        model = DiscountRule
        fields = [
            "id",
            "room_type",
            "name",
            "discount_type",
            "discount_percent",
            "min_nights",
            "days_in_advance",
            "days_before_check_in",
            "valid_from",
            "valid_until",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        attrs = _validate_range(attrs, "valid_from", "valid_until")
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        threshold = self.REQUIRED_THRESHOLD.get(discount_type)
        if threshold and not attrs.get(threshold, getattr(self.instance, threshold, None)):
            raise serializers.ValidationError({threshold: f"Required for {discount_type} discounts."})
        return attrs


# ============================================================================
# Calendar requests
# ============================================================================


class CalendarUpdateSerializer(serializers.Serializer):
    dates = serializers.ListField(
        child=serializers.CharField(),
        min_length=1,
        max_length=MAX_CALENDAR_WINDOW_DAYS,
    )
    action = serializers.ChoiceField(choices=CalendarAction.choices)
    price = serializers.CharField(required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True)
    min_stay = serializers.CharField(required=False, allow_blank=True)
    max_stay = serializers.CharField(required=False, allow_blank=True)


class DateWindowQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        attrs = _validate_range(attrs, "start", "end")
        if attrs["end"] > LAST_CALENDAR_DATE:
            raise serializers.ValidationError({"end": f"Calendar ends on {LAST_CALENDAR_DATE}."})
        if (attrs["end"] - attrs["start"]).days >= MAX_CALENDAR_WINDOW_DAYS:
            raise serializers.ValidationError({"end": f"Window is limited to {MAX_CALENDAR_WINDOW_DAYS} days."})
        return attrs


class RuleWindowQuerySerializer(serializers.Serializer):
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)

    def validate(self, attrs):  # type: ignore
        return _validate_range(attrs, "start", "end")


class MonthQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=MIN_CALENDAR_YEAR, max_value=MAX_CALENDAR_YEAR, required=False)
    month = serializers.IntegerField(min_value=1, max_value=12, required=False)

    def validate(self, attrs):  # type: ignore
        today = timezone.localdate()
        attrs.setdefault("year", today.year)
        attrs.setdefault("month", today.month)
        return attrs


class StayQuerySerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    rooms = serializers.IntegerField(min_value=1, default=1)

    def validate(self, attrs):  # type: ignore
        attrs = _validate_range(attrs, "check_in", "check_out", allow_same_day=False)
        if attrs["check_in"] < timezone.localdate():
            raise serializers.ValidationError({"check_in": "Cannot book dates in the past."})
        validate_stay_window(attrs["check_in"], attrs["check_out"])
        return attrs


class AvailabilityCheckQuerySerializer(StayQuerySerializer):
    room = serializers.IntegerField(min_value=1)


# ============================================================================
# Calendar responses
# ============================================================================


class NightPriceSerializer(serializers.Serializer):
    date = serializers.DateField()
    price = serializers.DecimalField(source="final_price", max_digits=12, decimal_places=2)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    source = serializers.CharField()
    applied_rules = serializers.ListField(child=serializers.CharField())


class StayPriceSerializer(serializers.Serializer):
    number_of_nights = serializers.IntegerField()
    nights = NightPriceSerializer(many=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    cleaning_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    service_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    average_price_per_night = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()


class NightAvailabilitySerializer(serializers.Serializer):
    date = serializers.DateField()
    is_available = serializers.BooleanField()
    available_units = serializers.IntegerField()
    total_units = serializers.IntegerField()
    booked_units = serializers.IntegerField()
    is_blocked = serializers.BooleanField()
    reason = serializers.CharField(allow_blank=True)


class AvailabilitySummarySerializer(serializers.Serializer):
    room_type_id = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    dates = NightAvailabilitySerializer(many=True)
    total_dates = serializers.IntegerField()
    available_dates = serializers.IntegerField()
    blocked_dates = serializers.IntegerField()
    fully_booked_dates = serializers.IntegerField()
    min_available_units = serializers.IntegerField()
    max_available_units = serializers.IntegerField()


class AvailabilityResultSerializer(serializers.Serializer):
    is_available = serializers.BooleanField()
    reason = serializers.CharField(allow_blank=True)
    available_units = serializers.IntegerField(allow_null=True)
    unavailable_dates = serializers.ListField(child=serializers.DateField())
    nights = NightAvailabilitySerializer(many=True)
    min_stay = serializers.IntegerField(allow_null=True)
    max_stay = serializers.IntegerField(allow_null=True)
    requested_nights = serializers.IntegerField(allow_null=True)


class AlternativeStaySerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    average_price_per_night = serializers.DecimalField(max_digits=12, decimal_places=2)
    days_different = serializers.IntegerField()


class CalendarBookingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    booking_number = serializers.CharField()
    guest_name = serializers.CharField()
    status = serializers.CharField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    number_of_rooms = serializers.IntegerField()


class RoomCalendarDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    price_source = serializers.CharField()
    applied_rules = serializers.ListField(child=serializers.CharField())
    is_available = serializers.BooleanField()
    is_blocked = serializers.BooleanField()
    reason = serializers.CharField(allow_blank=True)
    available_units = serializers.IntegerField()
    total_units = serializers.IntegerField()
    booked_units = serializers.IntegerField()
    occupancy_percent = serializers.FloatField()
    min_stay = serializers.IntegerField(allow_null=True)
    max_stay = serializers.IntegerField(allow_null=True)
    notes = serializers.CharField(allow_blank=True)
    bookings = CalendarBookingSerializer(many=True)


class MonthDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    day_of_week = serializers.CharField()
    is_available = serializers.BooleanField()
    available_units = serializers.IntegerField()
    total_units = serializers.IntegerField()
    occupancy_percent = serializers.FloatField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_price_custom = serializers.BooleanField()
    price_rules = serializers.ListField(child=serializers.CharField())
    is_blocked = serializers.BooleanField()
    block_reason = serializers.CharField(allow_blank=True)
    min_stay = serializers.IntegerField(allow_null=True)
    max_stay = serializers.IntegerField(allow_null=True)
    is_fully_booked = serializers.BooleanField()


class MonthRoomSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_units = serializers.IntegerField()


class MonthCalendarSerializer(serializers.Serializer):
    room = MonthRoomSerializer()
    month = serializers.CharField()
    availability = MonthDaySerializer(many=True)
    message = serializers.CharField(required=False)

