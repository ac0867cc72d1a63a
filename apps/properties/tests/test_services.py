"""ORM-level tests for pricing and availability services."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.bookings.models import PropertyBooking
from apps.bookings.services import create_booking
from apps.properties.models import Property, RoomAvailability, RoomType, SeasonalPricing, SpecialEventPricing
from apps.properties.services import (
    RoomTypeNotFound,
    calculate_room_price,
    calculate_stay_price,
    check_room_availability,
    get_availability_summary,
    get_maximum_stay,
    get_minimum_stay,
    suggest_alternative_dates,
)
from apps.users.models import User


@pytest.fixture
def owner(db):
    return User.objects.create_user(
        email="owner-pricing@example.com",
        password="OwnerPass123",
        role=User.RoleChoices.PROPERTY_OWNER,
    )


@pytest.fixture
def property_obj(owner):
    return Property.objects.create(
        owner=owner,
        name="Fairy Meadows Camp",
        address="Raikot Bridge",
        city="Gilgit",
        status=Property.Status.ACTIVE,
    )


@pytest.fixture
def room(property_obj):
    return RoomType.objects.create(
        property=property_obj,
        name="Cabin",
        base_price=Decimal("100.00"),
        total_units=3,
        max_occupancy=2,
    )


@pytest.fixture
def today():
    return timezone.localdate()


def test_property_defaults_come_from_settings(owner, settings):
    settings.DEFAULT_CURRENCY = "USD"
    settings.DEFAULT_TAX_RATE = 5

    property_obj = Property.objects.create(owner=owner, name="Lake Lodge", address="Shore", city="Skardu")
    room = RoomType.objects.create(property=property_obj, name="Twin", base_price=Decimal("100"))

    assert property_obj.currency == "USD"
    assert property_obj.tax_rate == Decimal("5")
    assert room.currency == "USD"


def test_calculate_room_price_uses_calendar_override(room, today):
    night = today + timedelta(days=4)
    RoomAvailability.objects.create(room_type=room, date=night, custom_price=Decimal("80.00"))

    assert calculate_room_price(room, night).final_price == Decimal("80.00")
    assert calculate_room_price(room.pk, night + timedelta(days=1)).final_price == Decimal("100.00")


def test_calculate_room_price_unknown_room(db, today):
    with pytest.raises(RoomTypeNotFound):
        calculate_room_price(9999, today)


def test_minimum_and_maximum_stay_precedence(room, property_obj, today):
    night = today + timedelta(days=6)
    SeasonalPricing.objects.create(
        property=property_obj,
        name="Summer",
        start_date=night,
        end_date=night + timedelta(days=10),
        price_adjustment=SeasonalPricing.PriceAdjustment.PERCENTAGE_INCREASE,
        adjustment_value=Decimal("10"),
        min_stay=3,
        max_stay=7,
    )
    SpecialEventPricing.objects.create(
        property=property_obj,
        event_name="Festival",
        start_date=night,
        end_date=night,
        price_multiplier=Decimal("1.2"),
        min_stay=2,
    )

    assert get_minimum_stay(room, night) == 3
    assert get_maximum_stay(room, night) == 7

    RoomAvailability.objects.create(room_type=room, date=night, min_stay=5, max_stay=5)

    assert get_minimum_stay(room, night) == 5
    assert get_maximum_stay(room, night) == 5
    assert get_minimum_stay(room, today + timedelta(days=30)) is None


def test_availability_summary_counts_nights(room, owner, today):
    start = today + timedelta(days=2)
    PropertyBooking.objects.create(
        user=owner,
        property=room.property,
        room_type=room,
        check_in=start,
        check_out=start + timedelta(days=1),
        number_of_rooms=3,
        status=PropertyBooking.Status.CONFIRMED,
    )
    RoomAvailability.objects.create(room_type=room, date=start + timedelta(days=1), is_available=False)
    RoomAvailability.objects.create(room_type=room, date=start + timedelta(days=2), available_units=1)

    summary = get_availability_summary(room, start, start + timedelta(days=4))

    assert summary["total_dates"] == 4
    assert summary["available_dates"] == 2
    assert summary["blocked_dates"] == 1
    assert summary["fully_booked_dates"] == 1
    assert summary["min_available_units"] == 0
    assert summary["max_available_units"] == 3
    assert [night.available_units for night in summary["dates"]] == [0, 0, 1, 3]


def test_expired_hold_releases_units_before_cleanup(room, owner, today):
    check_in = today + timedelta(days=5)
    check_out = check_in + timedelta(days=2)
    hold = create_booking(owner, room, check_in, check_out, number_of_rooms=3)

    assert not check_room_availability(room, check_in, check_out)

    PropertyBooking.objects.filter(pk=hold.pk).update(expires_at=timezone.now() - timedelta(hours=3))

    result = check_room_availability(room, check_in, check_out)
    assert result.is_available
    assert result.available_units == 3
    create_booking(owner, room, check_in, check_out, number_of_rooms=3)


def test_pending_booking_without_expiry_still_holds_units(room, owner, today):
    check_in = today + timedelta(days=5)
    PropertyBooking.objects.create(
        user=owner,
        property=room.property,
        room_type=room,
        check_in=check_in,
        check_out=check_in + timedelta(days=1),
        number_of_rooms=3,
        status=PropertyBooking.Status.PENDING,
    )

    assert not check_room_availability(room, check_in, check_in + timedelta(days=1))


def test_alternatives_are_priced_for_every_room(room, owner, today):
    check_in = today + timedelta(days=10)
    PropertyBooking.objects.create(
        user=owner,
        property=room.property,
        room_type=room,
        check_in=check_in,
        check_out=check_in + timedelta(days=2),
        status=PropertyBooking.Status.CONFIRMED,
    )

    alternatives = suggest_alternative_dates(room, check_in, 2, number_of_rooms=3, today=today)

    assert alternatives
    first = alternatives[0]
    quote = calculate_stay_price(room, first.check_in, first.check_out, booking_date=today, number_of_rooms=3)
    assert first.total_price == quote.total
    assert first.total_price == Decimal("712.80")
