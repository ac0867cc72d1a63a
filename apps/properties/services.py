"""Database-backed pricing, availability and calendar services.

Every entry point loads the calendar rows, pricing rules and bookings of a
room type once for the requested window and hands them to the pure rules in
``apps.properties.domain``.
"""

from __future__ import annotations

import calendar as month_calendar
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange, quantize_money

from .domain.availability import (
    INACTIVE_BOOKING_STATUSES,
    AlternativeStay,
    AvailabilityResult,
    NightAvailability,
    evaluate_night,
    evaluate_stay,
    rank_alternatives,
    resolve_maximum_stay,
    resolve_minimum_stay,
    summarize_nights,
)
from .domain.pricing import (
    NightPrice,
    PricingRules,
    StayPrice,
    aggregate_stay,
    resolve_night_price,
)
from .models import (
    DiscountRule,
    Property,
    RoomAvailability,
    RoomType,
    SeasonalPricing,
    SpecialEventPricing,
)

logger = logging.getLogger(__name__)


class RoomTypeNotFound(Exception):
    """Raised when a room type id does not exist."""


class CalendarAction:
    SET_PRICE = "set_price"
    BLOCK = "block"
    UNBLOCK = "unblock"
    SET_MIN_STAY = "set_min_stay"
    SET_MAX_STAY = "set_max_stay"

    choices = [SET_PRICE, BLOCK, UNBLOCK, SET_MIN_STAY, SET_MAX_STAY]


@dataclass
class RoomWindow:
    """Calendar rows, pricing rules and bookings of a room type for a date window."""

    room: RoomType
    start: date
    end: date
    rules: PricingRules
    bookings: list = field(default_factory=list)

    @property
    def overrides(self) -> dict:
        return self.rules.overrides

    def bookings_on(self, night: date) -> list:
        return [
            booking
            for booking in self.bookings
            if booking.status not in INACTIVE_BOOKING_STATUSES and booking.check_in <= night < booking.check_out
        ]


def get_room_type(room_type: RoomType | int | str) -> RoomType:
    if isinstance(room_type, RoomType):
        return room_type
    try:
        return RoomType.objects.select_related("property").get(pk=room_type)
    except (RoomType.DoesNotExist, ValueError, TypeError):
        raise RoomTypeNotFound(f"Room type {room_type} not found") from None


def _rule_scope(room: RoomType) -> Q:
    return Q(room_type=room) | Q(room_type__isnull=True, property_id=room.property_id)


def active_bookings(room: RoomType, start: date, end: date, *, exclude_booking_id=None):
    """Bookings of `room` holding at least one night in [start, end).

    Pending bookings only hold units until `expires_at`.
    """

    from apps.bookings.models import PropertyBooking  # Local import to prevent circular dependency

    qs = (
        PropertyBooking.objects.filter(room_type=room, check_in__lt=end, check_out__gt=start)
        .exclude(status__in=INACTIVE_BOOKING_STATUSES)
        .exclude(status=PropertyBooking.Status.PENDING, expires_at__lte=timezone.now())
        .select_related("user")
    )
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def load_pricing_rules(room: RoomType, start: date, end: date) -> PricingRules:
    """Pricing records touching the nights [start, end)."""

    last_night = end - timedelta(days=1)
    scope = _rule_scope(room)
    overrides = {
        row.date: row
        for row in RoomAvailability.objects.filter(room_type=room, date__gte=start, date__lt=end)
    }
    seasons = list(
        SeasonalPricing.objects.filter(scope, is_active=True, start_date__lte=last_night, end_date__gte=start)
    )
    events = list(
        SpecialEventPricing.objects.filter(scope, is_active=True, start_date__lte=last_night, end_date__gte=start)
    )
    discounts = list(DiscountRule.objects.filter(scope, is_active=True))
    return PricingRules(overrides=overrides, seasons=seasons, events=events, discounts=discounts)


def load_room_window(room: RoomType, start: date, end: date, *, exclude_booking_id=None) -> RoomWindow:
    return RoomWindow(
        room=room,
        start=start,
        end=end,
        rules=load_pricing_rules(room, start, end),
        bookings=list(active_bookings(room, start, end, exclude_booking_id=exclude_booking_id)),
    )


def _price_stay(
    window: RoomWindow,
    stay: DateRange,
    booking_date: date,
    cleaning_fee=None,
    service_fee_rate=None,
    tax_rate=None,
    number_of_rooms: int = 1,
) -> StayPrice:
    room = window.room
    property_obj = room.property
    nights = [
        resolve_night_price(room, night, window.rules, len(stay), booking_date)
        for night in stay.days()
    ]
    if number_of_rooms > 1:
        nights = [replace(night, final_price=quantize_money(night.final_price * number_of_rooms)) for night in nights]
    return aggregate_stay(
        nights,
        cleaning_fee=property_obj.cleaning_fee if cleaning_fee is None else cleaning_fee,
        service_fee=property_obj.service_fee,
        tax_rate=property_obj.tax_rate if tax_rate is None else tax_rate,
        service_fee_rate=service_fee_rate,
        default_service_fee_rate=Decimal(str(settings.DEFAULT_SERVICE_FEE_RATE)),
    )


def calculate_room_price(
    room_type: RoomType | int,
    night: date,
    number_of_nights: int | None = None,
    booking_date: date | None = None,
) -> NightPrice:
    """Resolve the price of a single night."""

    room = get_room_type(room_type)
    rules = load_pricing_rules(room, night, night + timedelta(days=1))
    return resolve_night_price(room, night, rules, number_of_nights, booking_date)


def calculate_stay_price(
    room_type: RoomType | int,
    check_in: date,
    check_out: date,
    booking_date: date | None = None,
    cleaning_fee=None,
    service_fee_rate=None,
    tax_rate=None,
    number_of_rooms: int = 1,
) -> StayPrice:
    """Price every night of a stay for `number_of_rooms` units and add the property's fees.

    `booking_date` defaults to today so advance-booking discounts apply to
    quotes the same way they apply to bookings.
    """

    room = get_room_type(room_type)
    stay = DateRange(check_in, check_out)
    window = RoomWindow(room=room, start=check_in, end=check_out, rules=load_pricing_rules(room, check_in, check_out))
    return _price_stay(
        window,
        stay,
        booking_date or timezone.localdate(),
        cleaning_fee=cleaning_fee,
        service_fee_rate=service_fee_rate,
        tax_rate=tax_rate,
        number_of_rooms=number_of_rooms,
    )


def _evaluate_window_stay(window: RoomWindow, stay: DateRange, number_of_rooms: int) -> AvailabilityResult:
    return evaluate_stay(
        window.room,
        stay,
        number_of_rooms,
        window.overrides,
        window.bookings,
        seasons=window.rules.seasons,
        events=window.rules.events,
    )


def check_room_availability(
    room_type: RoomType | int,
    check_in: date,
    check_out: date,
    number_of_rooms: int = 1,
    *,
    exclude_booking_id=None,
) -> AvailabilityResult:
    """Check that `number_of_rooms` units are free for every night of the stay."""

    try:
        room = get_room_type(room_type)
    except RoomTypeNotFound:
        return AvailabilityResult(is_available=False, reason="Room type not found")

    stay = DateRange(check_in, check_out)
    window = load_room_window(room, check_in, check_out, exclude_booking_id=exclude_booking_id)
    result = _evaluate_window_stay(window, stay, number_of_rooms)
    if not result.is_available:
        logger.info(
            "Room type %s unavailable for %s x%s: %s",
            room.pk,
            stay,
            number_of_rooms,
            result.reason,
        )
    return result


def get_minimum_stay(room_type: RoomType | int, night: date) -> int | None:
    room = get_room_type(room_type)
    rules = load_pricing_rules(room, night, night + timedelta(days=1))
    return resolve_minimum_stay(night, rules.overrides.get(night), rules.seasons, rules.events, room.pk)


def get_maximum_stay(room_type: RoomType | int, night: date) -> int | None:
    room = get_room_type(room_type)
    rules = load_pricing_rules(room, night, night + timedelta(days=1))
    return resolve_maximum_stay(night, rules.overrides.get(night), rules.seasons, room.pk)


def get_availability_summary(room_type: RoomType | int, start: date, end: date) -> dict[str, Any]:
    """Per-night availability for [start, end) with counters."""

    room = get_room_type(room_type)
    window = load_room_window(room, start, end)
    nights: list[NightAvailability] = [
        evaluate_night(night, room.total_units, window.overrides.get(night), window.bookings)
        for night in DateRange(start, end).days()
    ]
    return {
        "room_type_id": room.pk,
        "start_date": start,
        "end_date": end,
        "dates": nights,
        **summarize_nights(nights),
    }


def suggest_alternative_dates(
    room_type: RoomType | int,
    check_in: date,
    nights: int,
    number_of_rooms: int = 1,
    search_radius: int | None = None,
    limit: int = 5,
    today: date | None = None,
) -> list[AlternativeStay]:
    """Offer available stays of the same length shifted up to `search_radius` days."""

    room = get_room_type(room_type)
    radius = search_radius if search_radius is not None else settings.ALTERNATIVE_DATES_RADIUS
    today = today or timezone.localdate()
    if nights < 1:
        return []

    requested = DateRange(check_in, check_in + timedelta(days=nights))
    window_start = max(today, check_in - timedelta(days=radius))
    window_end = requested.end_date + timedelta(days=radius)
    window = load_room_window(room, window_start, window_end)

    offsets = [-offset for offset in range(1, radius + 1)] + list(range(1, radius + 1))
    alternatives: list[AlternativeStay] = []
    for offset in offsets:
        candidate = requested.shift(offset)
        if candidate.start_date < today:
            continue
        if not _evaluate_window_stay(window, candidate, number_of_rooms):
            continue
        price = _price_stay(window, candidate, today, number_of_rooms=number_of_rooms)
        alternatives.append(
            AlternativeStay(
                check_in=candidate.start_date,
                check_out=candidate.end_date,
                total_price=price.total,
                average_price_per_night=price.average_price_per_night,
                days_different=offset,
            )
        )
    return rank_alternatives(alternatives, limit)


def _parse_calendar_date(value) -> date | None:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def _positive_int(value) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def apply_calendar_action(
    room_type: RoomType,
    dates: Iterable,
    action: str,
    values: dict[str, Any] | None,
    user,
) -> list[dict[str, Any]]:
    """Apply one owner action to many calendar days.

    Returns one entry per requested date: the applied change or an `error`.
    """

    values = values or {}
    results: list[dict[str, Any]] = []

    price = None
    if action == CalendarAction.SET_PRICE:
        try:
            price = Decimal(str(values.get("price")))
        except InvalidOperation:
            price = None
        if price is not None and (not price.is_finite() or price < 0):
            price = None

    with transaction.atomic():
        for raw_date in dates:
            label = str(raw_date)
            night = _parse_calendar_date(raw_date)
            if night is None:
                results.append({"date": label, "error": "Invalid date"})
                continue

            if action == CalendarAction.SET_PRICE:
                if price is None:
                    results.append({"date": label, "error": "Invalid price"})
                    continue
                RoomAvailability.objects.update_or_create(
                    room_type=room_type,
                    date=night,
                    defaults={"custom_price": price},
                    create_defaults={"custom_price": price, "is_available": True, "created_by": user},
                )
                results.append({"date": label, "action": "price_set", "price": price})

            elif action == CalendarAction.BLOCK:
                reason = values.get("reason") or "Blocked by owner"
                notes = values.get("notes") or ""
                RoomAvailability.objects.update_or_create(
                    room_type=room_type,
                    date=night,
                    defaults={"is_available": False, "available_units": 0, "reason": reason, "notes": notes},
                    create_defaults={
                        "is_available": False,
                        "available_units": 0,
                        "reason": reason,
                        "notes": notes,
                        "created_by": user,
                    },
                )
                results.append({"date": label, "action": "blocked", "reason": reason})

            elif action == CalendarAction.UNBLOCK:
                RoomAvailability.objects.update_or_create(
                    room_type=room_type,
                    date=night,
                    defaults={"is_available": True, "available_units": None, "reason": "", "notes": ""},
                    create_defaults={"is_available": True, "created_by": user},
                )
                results.append({"date": label, "action": "unblocked"})

            elif action in (CalendarAction.SET_MIN_STAY, CalendarAction.SET_MAX_STAY):
                field_name = "min_stay" if action == CalendarAction.SET_MIN_STAY else "max_stay"
                nights = _positive_int(values.get(field_name))
                if nights is None:
                    results.append({"date": label, "error": f"Invalid {field_name}"})
                    continue
                RoomAvailability.objects.update_or_create(
                    room_type=room_type,
                    date=night,
                    defaults={field_name: nights},
                    create_defaults={field_name: nights, "is_available": True, "created_by": user},
                )
                results.append({"date": label, "action": f"{field_name}_set", field_name: nights})

            else:
                results.append({"date": label, "error": f"Unknown action: {action}"})

    logger.info(
        "Calendar action %s applied to room type %s by user %s on %s date(s)",
        action,
        room_type.pk,
        getattr(user, "pk", None),
        len(results),
    )
    return results


def _occupancy_percent(booked_units: int, total_units: int) -> float:
    if total_units <= 0:
        return 0.0
    return round(booked_units * 100 / total_units, 1)


def build_room_calendar(room_type: RoomType, start: date, end: date) -> list[dict[str, Any]]:
    """Owner view of [start, end]: prices, inventory and the bookings of every night."""

    window_end = end + timedelta(days=1)
    window = load_room_window(room_type, start, window_end)
    days: list[dict[str, Any]] = []

    for night in DateRange(start, window_end).days():
        override = window.overrides.get(night)
        availability = evaluate_night(night, room_type.total_units, override, window.bookings)
        price = resolve_night_price(room_type, night, window.rules)
        days.append(
            {
                "date": night,
                "price": price.final_price,
                "base_price": price.base_price,
                "price_source": price.source,
                "applied_rules": list(price.applied_rules),
                "is_available": availability.is_available,
                "is_blocked": availability.is_blocked,
                "reason": availability.reason,
                "available_units": availability.available_units,
                "total_units": room_type.total_units,
                "booked_units": availability.booked_units,
                "occupancy_percent": _occupancy_percent(availability.booked_units, room_type.total_units),
                "min_stay": getattr(override, "min_stay", None),
                "max_stay": getattr(override, "max_stay", None),
                "notes": getattr(override, "notes", ""),
                "bookings": window.bookings_on(night),
            }
        )
    return days


def build_month_calendar(room_type: RoomType, year: int, month: int) -> dict[str, Any]:
    """Public month view of a room type."""

    first_day = date(year, month, 1)
    last_day = date(year, month, month_calendar.monthrange(year, month)[1])
    payload: dict[str, Any] = {
        "room": room_type,
        "month": first_day.strftime("%B %Y"),
        "availability": [],
    }
    if not room_type.available:
        payload["message"] = "Room is not available for booking"
        return payload

    stay = DateRange.inclusive(first_day, last_day)
    window = load_room_window(room_type, stay.start_date, stay.end_date)
    for night in stay.days():
        override = window.overrides.get(night)
        availability = evaluate_night(night, room_type.total_units, override, window.bookings)
        price = resolve_night_price(room_type, night, window.rules)
        payload["availability"].append(
            {
                "date": night,
                "day_of_week": night.strftime("%A"),
                "is_available": availability.is_available,
                "available_units": availability.available_units,
                "total_units": room_type.total_units,
                "occupancy_percent": _occupancy_percent(availability.booked_units, room_type.total_units),
                "price": price.final_price,
                "base_price": price.base_price,
                "is_price_custom": price.is_adjusted,
                "price_rules": list(price.applied_rules),
                "is_blocked": availability.is_blocked,
                "block_reason": availability.reason if availability.is_blocked else "",
                "min_stay": getattr(override, "min_stay", None),
                "max_stay": getattr(override, "max_stay", None),
                "is_fully_booked": not availability.is_blocked and availability.available_units == 0,
            }
        )
    return payload


def available_property_ids(queryset, check_in: date, check_out: date, guests: int | None = None, rooms: int = 1) -> list[int]:
    """Ids of properties in `queryset` with at least one room type free for the stay."""

    stay = DateRange(check_in, check_out)
    room_types = RoomType.objects.filter(property__in=queryset, available=True).select_related("property")
    if guests:
        room_types = room_types.filter(max_occupancy__gte=guests)

    matched: set[int] = set()
    for room in room_types:
        if room.property_id in matched:
            continue
        window = load_room_window(room, stay.start_date, stay.end_date)
        if _evaluate_window_stay(window, stay, rooms):
            matched.add(room.property_id)
    return sorted(matched)


def _escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def export_property_calendar(property_obj: Property) -> str:
    """Bookings of a property as an iCalendar feed."""

    from apps.bookings.models import PropertyBooking  # Local import to prevent circular dependency

    bookings = (
        PropertyBooking.objects.filter(property=property_obj)
        .exclude(status__in=INACTIVE_BOOKING_STATUSES)
        .select_related("room_type")
        .order_by("check_in")
    )
    stamp = timezone.now().strftime("%Y%m%dT%H%M%SZ")
    location = _escape_ics_text(", ".join(filter(None, [property_obj.address, property_obj.city, property_obj.country])))

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//FindoTrip//Booking Calendar//EN",
        "CALSCALE:GREGORIAN",
    ]
    for booking in bookings:
        summary = f"{booking.guest_name or 'Guest'} - {booking.room_type.name}"
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{booking.booking_number}@findotrip.com",
                f"DTSTAMP:{stamp}",
                f"DTSTART;VALUE=DATE:{booking.check_in.strftime('%Y%m%d')}",
                f"DTEND;VALUE=DATE:{booking.check_out.strftime('%Y%m%d')}",
                f"SUMMARY:{_escape_ics_text(summary)}",
                f"DESCRIPTION:{_escape_ics_text(f'Booking {booking.booking_number}, {booking.number_of_rooms} room(s)')}",
                f"LOCATION:{location}",
                "STATUS:CONFIRMED" if booking.status != "pending" else "STATUS:TENTATIVE",
                "END:VEVENT",
            ]
        )
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"
