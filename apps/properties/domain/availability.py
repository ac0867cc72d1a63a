"""
Room Availability Rules

Decides whether a room type can sell `number_of_rooms` units for every night
of a stay.

A booking occupies night `d` when check_in <= d < check_out, so a guest
leaving on the 5th never collides with a guest arriving on the 5th.
Cancelled and refunded bookings release their units.

Per night:
- a blocked calendar day sells nothing
- otherwise units = (calendar available_units or total_units) - booked units

Stay limits are evaluated on the check-in night:
- minimum stay: calendar day > seasonal pricing > event pricing
- maximum stay: calendar day > seasonal pricing
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional

from shared.domain.value_objects import DateRange

from .pricing import select_event, select_season

INACTIVE_BOOKING_STATUSES = frozenset({"cancelled", "refunded"})
PRICE_GAP_FOR_SORTING = Decimal("50")


@dataclass(frozen=True)
class NightAvailability:
    date: date
    is_available: bool
    available_units: int
    total_units: int
    booked_units: int = 0
    is_blocked: bool = False
    reason: str = ""


@dataclass
class AvailabilityResult:
    """Outcome of an availability check for a whole stay."""
    is_available: bool
    reason: str = ""
    available_units: Optional[int] = None
    unavailable_dates: List[date] = field(default_factory=list)
    nights: List[NightAvailability] = field(default_factory=list)
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    requested_nights: Optional[int] = None

    def __bool__(self) -> bool:
        return self.is_available


@dataclass(frozen=True)
class AlternativeStay:
    """A shifted stay offered when the requested dates are taken."""
    check_in: date
    check_out: date
    total_price: Decimal
    average_price_per_night: Decimal
    days_different: int


def is_active_booking(booking) -> bool:
    return booking.status not in INACTIVE_BOOKING_STATUSES


def occupies(booking, night: date) -> bool:
    return booking.check_in <= night < booking.check_out


def count_booked_units(bookings: Iterable, night: date) -> int:
    """Sum the rooms held by active bookings on `night`."""
    return sum(
        booking.number_of_rooms
        for booking in bookings
        if is_active_booking(booking) and occupies(booking, night)
    )


def evaluate_night(night: date, total_units: int, override, bookings: Iterable, number_of_rooms: int = 1) -> NightAvailability:
    """
    Availability of one night.

    Args:
        night: The night to evaluate
        total_units: Inventory of the room type
        override: RoomAvailability row for the night, or None
        bookings: Bookings of the room type (any status, any dates)
        number_of_rooms: Units the caller needs
    """
    booked = count_booked_units(bookings, night)

    if override is not None and not override.is_available:
        return NightAvailability(
            date=night,
            is_available=False,
            available_units=0,
            total_units=total_units,
            booked_units=booked,
            is_blocked=True,
            reason=override.reason or "Date is blocked",
        )

    capacity = total_units
    if override is not None and override.available_units is not None:
        capacity = override.available_units
    remaining = max(0, capacity - booked)

    if remaining < number_of_rooms:
        return NightAvailability(
            date=night,
            is_available=False,
            available_units=remaining,
            total_units=total_units,
            booked_units=booked,
            reason=f"Only {remaining} room(s) available, need {number_of_rooms}",
        )

    return NightAvailability(
        date=night,
        is_available=True,
        available_units=remaining,
        total_units=total_units,
        booked_units=booked,
    )


def resolve_minimum_stay(night: date, override, seasons: Iterable, events: Iterable, room_type_id) -> Optional[int]:
    if override is not None and override.min_stay:
        return override.min_stay

    season = select_season(seasons, night, room_type_id, check_weekday=False)
    if season is not None and season.min_stay:
        return season.min_stay

    event = select_event(events, night, room_type_id)
    if event is not None and event.min_stay:
        return event.min_stay
    return None


def resolve_maximum_stay(night: date, override, seasons: Iterable, room_type_id) -> Optional[int]:
    if override is not None and override.max_stay:
        return override.max_stay

    season = select_season(seasons, night, room_type_id, check_weekday=False)
    if season is not None and season.max_stay:
        return season.max_stay
    return None


def evaluate_stay(
    room,
    stay: DateRange,
    number_of_rooms: int,
    overrides: Dict[date, object],
    bookings: Iterable,
    seasons: Iterable = (),
    events: Iterable = (),
) -> AvailabilityResult:
    """
    Check every night of `stay`, then the stay length limits.

    Returns an AvailabilityResult whose available_units is the smallest
    remaining inventory across the nights.
    """
    if not room.available:
        return AvailabilityResult(is_available=False, reason="Room type is not available for booking")

    bookings = list(bookings)
    nights = [
        evaluate_night(night, room.total_units, overrides.get(night), bookings, number_of_rooms)
        for night in stay.days()
    ]
    unavailable = [night.date for night in nights if not night.is_available]
    requested_nights = len(stay)

    if unavailable:
        return AvailabilityResult(
            is_available=False,
            reason=f"Room not available for {len(unavailable)} date(s)",
            unavailable_dates=unavailable,
            nights=nights,
            requested_nights=requested_nights,
        )

    check_in_override = overrides.get(stay.start_date)
    min_stay = resolve_minimum_stay(stay.start_date, check_in_override, seasons, events, room.pk)
    if min_stay and requested_nights < min_stay:
        return AvailabilityResult(
            is_available=False,
            reason=f"Minimum {min_stay} night(s) required for these dates",
            nights=nights,
            min_stay=min_stay,
            requested_nights=requested_nights,
        )

    max_stay = resolve_maximum_stay(stay.start_date, check_in_override, seasons, room.pk)
    if max_stay and requested_nights > max_stay:
        return AvailabilityResult(
            is_available=False,
            reason=f"Maximum {max_stay} night(s) allowed for these dates",
            nights=nights,
            max_stay=max_stay,
            requested_nights=requested_nights,
        )

    return AvailabilityResult(
        is_available=True,
        available_units=min(night.available_units for night in nights),
        nights=nights,
        min_stay=min_stay,
        max_stay=max_stay,
        requested_nights=requested_nights,
    )


def summarize_nights(nights: List[NightAvailability]) -> dict:
    """Counters for a calendar window."""
    units = [night.available_units for night in nights]
    return {
        "total_dates": len(nights),
        "available_dates": sum(1 for night in nights if night.is_available),
        "blocked_dates": sum(1 for night in nights if night.is_blocked),
        "fully_booked_dates": sum(
            1 for night in nights if not night.is_blocked and night.available_units == 0
        ),
        "min_available_units": min(units) if units else 0,
        "max_available_units": max(units) if units else 0,
    }


def _compare_alternatives(first: AlternativeStay, second: AlternativeStay) -> int:
    price_gap = first.total_price - second.total_price
    if abs(price_gap) > PRICE_GAP_FOR_SORTING:
        return -1 if price_gap < 0 else 1
    return abs(first.days_different) - abs(second.days_different)


def rank_alternatives(alternatives: Iterable[AlternativeStay], limit: int) -> List[AlternativeStay]:
    """Cheapest first when prices clearly differ, otherwise closest to the request."""
    ranked = sorted(alternatives, key=cmp_to_key(_compare_alternatives))
    return ranked[:limit]
