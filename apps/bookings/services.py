"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.properties.models import Property, RoomType
from apps.properties.services import calculate_stay_price, check_room_availability
from shared.domain.value_objects import quantize_money

from .models import PropertyBooking

logger = logging.getLogger(__name__)

FULL_REFUND_HOURS = 48
PARTIAL_REFUND_HOURS = 24
PARTIAL_REFUND_PERCENT = 50


class BookingConflictError(Exception):
    """Raised when a room type cannot be sold for the requested stay."""


class BookingStateError(Exception):
    """Raised when a booking cannot move to the requested status."""


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def refund_percentage_for(hours_until_check_in: float) -> int:
    """Cancellation policy: full refund beyond 48h, half beyond 24h, nothing later."""

    if hours_until_check_in > FULL_REFUND_HOURS:
        return 100
    if hours_until_check_in > PARTIAL_REFUND_HOURS:
        return PARTIAL_REFUND_PERCENT
    return 0


def _serialize_nights(stay_price) -> list[dict]:
    return [
        {
            "date": night.date.isoformat(),
            "price": str(night.final_price),
            "source": night.source,
            "applied_rules": list(night.applied_rules),
        }
        for night in stay_price.nights
    ]


def create_booking(
    user,
    room_type: RoomType,
    check_in: date,
    check_out: date,
    number_of_rooms: int = 1,
    guests_count: int = 1,
    *,
    guest_name: str = "",
    guest_email: str = "",
    guest_phone: str = "",
    special_requests: str = "",
) -> PropertyBooking:
    """
    Create a pending booking holding `number_of_rooms` units.

    The room type row is locked for the duration of the transaction, so two
    concurrent requests for the last unit are serialized and the second one
    sees the first booking when it re-runs the availability check.
    """

    today = timezone.localdate()
    if check_in >= check_out:
        raise BookingConflictError("Check-out must be after check-in.")
    if check_in < today:
        raise BookingConflictError("Cannot book dates in the past.")

    with transaction.atomic():
        room = _lock_queryset_if_possible(
            RoomType.objects.select_related("property").filter(pk=room_type.pk)
        ).get()

        if room.property.status != Property.Status.ACTIVE:
            raise BookingConflictError("Property is not accepting bookings.")
        if guests_count > room.max_occupancy * number_of_rooms:
            raise BookingConflictError(
                f"{number_of_rooms} room(s) of this type host at most {room.max_occupancy * number_of_rooms} guest(s)."
            )

        availability = check_room_availability(room, check_in, check_out, number_of_rooms)
        if not availability.is_available:
            raise BookingConflictError(availability.reason)

        quote = calculate_stay_price(room, check_in, check_out, booking_date=today, number_of_rooms=number_of_rooms)

        booking = PropertyBooking.objects.create(
            user=user,
            property=room.property,
            room_type=room,
            check_in=check_in,
            check_out=check_out,
            number_of_rooms=number_of_rooms,
            guests_count=guests_count,
            guest_name=guest_name or user.display_name,
            guest_email=guest_email or user.email,
            guest_phone=guest_phone or (user.phone or ""),
            special_requests=special_requests,
            subtotal=quote.subtotal,
            cleaning_fee=quote.cleaning_fee,
            service_fee=quote.service_fee,
            tax_amount=quote.tax_amount,
            total_price=quote.total,
            currency=quote.currency,
            price_breakdown=_serialize_nights(quote),
            expires_at=timezone.now() + timedelta(minutes=settings.BOOKING_HOLD_MINUTES),
        )

    logger.info(
        "Booking %s created for room type %s (%s - %s, %s room(s), total %s %s)",
        booking.booking_number,
        room.pk,
        check_in,
        check_out,
        number_of_rooms,
        booking.total_price,
        booking.currency,
    )
    return booking


def confirm_booking(booking: PropertyBooking, payment_method: str = PropertyBooking.PaymentMethod.CARD) -> PropertyBooking:
    """Confirm a pending booking. Cash bookings stay unpaid until check-in."""

    from .tasks import notify_booking_confirmed

    with transaction.atomic():
        booking = _lock_queryset_if_possible(PropertyBooking.objects.filter(pk=booking.pk)).get()
        if booking.status != PropertyBooking.Status.PENDING:
            raise BookingStateError("Booking is not in pending status.")
        if booking.hold_expired():
            raise BookingStateError("Booking hold has expired.")

        booking.status = PropertyBooking.Status.CONFIRMED
        booking.payment_method = payment_method
        if payment_method != PropertyBooking.PaymentMethod.CASH:
            booking.payment_status = PropertyBooking.PaymentStatus.PAID
        booking.confirmed_at = timezone.now()
        booking.expires_at = None
        booking.save(
            update_fields=[
                "status",
                "payment_method",
                "payment_status",
                "confirmed_at",
                "expires_at",
                "updated_at",
            ]
        )
        transaction.on_commit(lambda: notify_booking_confirmed.delay(booking.pk))

    logger.info("Booking %s confirmed (%s)", booking.booking_number, payment_method)
    return booking


def cancel_booking(
    booking: PropertyBooking,
    reason: str = "",
    *,
    now: datetime | None = None,
    notify: bool = True,
) -> PropertyBooking:
    """Cancel a booking and record the refund owed under the cancellation policy."""

    from .tasks import notify_booking_cancelled

    now = now or timezone.now()
    with transaction.atomic():
        booking = _lock_queryset_if_possible(
            PropertyBooking.objects.select_related("property").filter(pk=booking.pk)
        ).get()
        if booking.status in (PropertyBooking.Status.CANCELLED, PropertyBooking.Status.REFUNDED):
            raise BookingStateError("Booking is already cancelled.")
        if booking.status == PropertyBooking.Status.COMPLETED:
            raise BookingStateError("Completed bookings cannot be cancelled.")

        percentage = refund_percentage_for(booking.hours_until_check_in(now))
        booking.refund_percentage = percentage
        booking.refund_amount = quantize_money(booking.total_price * Decimal(percentage) / Decimal(100))
        booking.status = PropertyBooking.Status.CANCELLED
        if booking.payment_status == PropertyBooking.PaymentStatus.PAID and booking.refund_amount > 0:
            booking.payment_status = PropertyBooking.PaymentStatus.REFUNDED
        booking.cancelled_at = now
        booking.cancellation_reason = reason[:255]
        booking.save(
            update_fields=[
                "refund_percentage",
                "refund_amount",
                "status",
                "payment_status",
                "cancelled_at",
                "cancellation_reason",
                "updated_at",
            ]
        )
        if notify:
            transaction.on_commit(lambda: notify_booking_cancelled.delay(booking.pk))

    logger.info(
        "Booking %s cancelled, refund %s%% (%s %s)",
        booking.booking_number,
        booking.refund_percentage,
        booking.refund_amount,
        booking.currency,
    )
    return booking
