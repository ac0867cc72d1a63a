"""Serializers for the booking domain."""

from __future__ import annotations

from datetime import date

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.properties.models import Property, RoomType
from apps.properties.serializers import validate_stay_window

from .models import PropertyBooking
from .services import BookingConflictError, create_booking


class BookingCreateSerializer(serializers.Serializer):
    """Booking request from a customer."""

    room_type = serializers.PrimaryKeyRelatedField(
        queryset=RoomType.objects.select_related("property").filter(property__status=Property.Status.ACTIVE)
    )
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    number_of_rooms = serializers.IntegerField(min_value=1, default=1)
    guests_count = serializers.IntegerField(min_value=1, default=1)
    guest_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    guest_email = serializers.EmailField(required=False, allow_blank=True)
    guest_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    special_requests = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):  # type: ignore
        check_in: date = attrs["check_in"]
        check_out: date = attrs["check_out"]
        if check_in >= check_out:
            raise serializers.ValidationError({"check_out": "Check-out must be after check-in."})
        if check_in < timezone.localdate():
            raise serializers.ValidationError({"check_in": "Cannot book dates in the past."})
        validate_stay_window(check_in, check_out)
        return attrs

    def create(self, validated_data):  # type: ignore
        request = self.context["request"]
        data = dict(validated_data)
        try:
            return create_booking(
                request.user,
                data.pop("room_type"),
                data.pop("check_in"),
                data.pop("check_out"),
                data.pop("number_of_rooms"),
                data.pop("guests_count"),
                **data,
            )
        except BookingConflictError as exc:
            raise serializers.ValidationError({"non_field_errors": [str(exc)]})


class BookingSerializer(serializers.ModelSerializer):
    """Booking with its price snapshot."""

    user_id = serializers.ReadOnlyField(source="user.id")
    property_id = serializers.ReadOnlyField(source="property.id")
    property_name = serializers.ReadOnlyField(source="property.name")
    room_type_id = serializers.ReadOnlyField(source="room_type.id")
    room_type_name = serializers.ReadOnlyField(source="room_type.name")
    number_of_nights = serializers.ReadOnlyField()

    class Meta:
        model = PropertyBooking
        fields = [
            "id",
            "booking_number",
            "user_id",
            "property_id",
            "property_name",
            "room_type_id",
            "room_type_name",
            "check_in",
            "check_out",
            "number_of_nights",
            "number_of_rooms",
            "guests_count",
            "guest_name",
            "guest_email",
            "guest_phone",
            "special_requests",
            "status",
            "payment_status",
            "payment_method",
            "subtotal",
            "cleaning_fee",
            "service_fee",
            "tax_amount",
            "total_price",
            "currency",
            "price_breakdown",
            "refund_amount",
            "refund_percentage",
            "expires_at",
            "confirmed_at",
            "cancelled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingConfirmSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(
        choices=PropertyBooking.PaymentMethod.choices,
        default=PropertyBooking.PaymentMethod.CARD,
    )


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
