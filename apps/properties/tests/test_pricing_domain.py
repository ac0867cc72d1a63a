"""Unit tests for nightly price resolution and stay aggregation."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from apps.properties.domain.pricing import (
    SOURCE_BASE,
    SOURCE_CUSTOM,
    SOURCE_EVENT,
    SOURCE_SEASONAL,
    NightPrice,
    PricingRules,
    aggregate_stay,
    apply_price_adjustment,
    best_discount,
    resolve_night_price,
)

NIGHT = date(2026, 12, 18)  # Friday


@pytest.fixture
def room():
    return SimpleNamespace(pk=1, base_price=Decimal("10000.00"), currency="PKR")


def make_override(custom_price=None, **extra):
    values = {
        "custom_price": custom_price,
        "is_available": True,
        "available_units": None,
        "min_stay": None,
        "max_stay": None,
        "reason": "",
    }
    values.update(extra)
    return SimpleNamespace(**values)


def make_season(pk=1, **extra):
    values = {
        "pk": pk,
        "room_type_id": None,
        "name": "Winter",
        "start_date": date(2026, 12, 1),
        "end_date": date(2026, 12, 31),
        "price_adjustment": "percentage_increase",
        "adjustment_value": Decimal("20"),
        "days_of_week": [],
        "priority": 0,
        "min_stay": None,
        "max_stay": None,
        "is_active": True,
    }
    values.update(extra)
    return SimpleNamespace(**values)


def make_event(pk=1, **extra):
    values = {
        "pk": pk,
        "room_type_id": None,
        "event_name": "New Year",
        "start_date": date(2026, 12, 15),
        "end_date": date(2026, 12, 20),
        "price_multiplier": Decimal("1.50"),
        "min_stay": None,
        "is_active": True,
    }
    values.update(extra)
    return SimpleNamespace(**values)


def make_discount(**extra):
    values = {
        "room_type_id": None,
        "discount_type": "weekly",
        "discount_percent": Decimal("10.00"),
        "min_nights": 7,
        "days_in_advance": None,
        "days_before_check_in": None,
        "valid_from": None,
        "valid_until": None,
        "is_active": True,
    }
    values.update(extra)
    return SimpleNamespace(**values)


def test_base_price_without_rules(room):
    price = resolve_night_price(room, NIGHT, PricingRules())

    assert price.final_price == Decimal("10000.00")
    assert price.source == SOURCE_BASE
    assert price.applied_rules == ()
    assert not price.is_adjusted


def test_custom_price_beats_event_and_season(room):
    rules = PricingRules(
        overrides={NIGHT: make_override(custom_price=Decimal("8000"))},
        seasons=[make_season()],
        events=[make_event()],
    )

    price = resolve_night_price(room, NIGHT, rules)

    assert price.final_price == Decimal("8000.00")
    assert price.source == SOURCE_CUSTOM
    assert price.applied_rules == ("Custom price set for Dec 18",)


def test_override_without_price_falls_through(room):
    rules = PricingRules(overrides={NIGHT: make_override(min_stay=3)}, seasons=[make_season()])

    price = resolve_night_price(room, NIGHT, rules)

    assert price.source == SOURCE_SEASONAL
    assert price.final_price == Decimal("12000.00")


def test_event_beats_season_and_highest_multiplier_wins(room):
    rules = PricingRules(
        seasons=[make_season(priority=10)],
        events=[
            make_event(pk=1, event_name="Festival", price_multiplier=Decimal("1.25")),
            make_event(pk=2, event_name="New Year", price_multiplier=Decimal("1.50")),
        ],
    )

    price = resolve_night_price(room, NIGHT, rules)

    assert price.source == SOURCE_EVENT
    assert price.final_price == Decimal("15000.00")
    assert price.applied_rules == ("New Year: 1.5x multiplier",)


def test_event_outside_its_dates_is_ignored(room):
    rules = PricingRules(events=[make_event(start_date=date(2026, 12, 24), end_date=date(2026, 12, 26))])

    assert resolve_night_price(room, NIGHT, rules).source == SOURCE_BASE


def test_inactive_rules_are_ignored(room):
    rules = PricingRules(seasons=[make_season(is_active=False)], events=[make_event(is_active=False)])

    assert resolve_night_price(room, NIGHT, rules).final_price == Decimal("10000.00")


def test_season_respects_weekdays(room):
    weekend = make_season(name="Weekend", days_of_week=[4, 5], adjustment_value=Decimal("30"))

    friday = resolve_night_price(room, NIGHT, PricingRules(seasons=[weekend]))
    monday = resolve_night_price(room, date(2026, 12, 21), PricingRules(seasons=[weekend]))

    assert friday.final_price == Decimal("13000.00")
    assert friday.applied_rules == ("Seasonal: Weekend",)
    assert monday.source == SOURCE_BASE


def test_highest_priority_season_wins(room):
    rules = PricingRules(
        seasons=[
            make_season(pk=1, name="Winter", priority=1),
            make_season(
                pk=2,
                name="Holidays",
                priority=5,
                price_adjustment="fixed_price",
                adjustment_value=Decimal("9000"),
            ),
        ]
    )

    price = resolve_night_price(room, NIGHT, rules)

    assert price.final_price == Decimal("9000.00")
    assert price.applied_rules == ("Seasonal: Holidays",)


def test_room_specific_season_wins_priority_tie(room):
    rules = PricingRules(
        seasons=[
            make_season(pk=1, name="Property wide"),
            make_season(pk=2, name="Suite only", room_type_id=room.pk, adjustment_value=Decimal("50")),
        ]
    )

    assert resolve_night_price(room, NIGHT, rules).applied_rules == ("Seasonal: Suite only",)


def test_season_for_another_room_is_ignored(room):
    rules = PricingRules(seasons=[make_season(room_type_id=99)])

    assert resolve_night_price(room, NIGHT, rules).source == SOURCE_BASE


@pytest.mark.parametrize(
    "adjustment,value,expected",
    [
        ("percentage_increase", "10", Decimal("110")),
        ("percentage_decrease", "10", Decimal("90")),
        ("fixed_increase", "15", Decimal("115")),
        ("fixed_decrease", "15", Decimal("85")),
        ("fixed_price", "70", Decimal("70")),
        ("unknown", "70", Decimal("100")),
    ],
)
def test_apply_price_adjustment(adjustment, value, expected):
    assert apply_price_adjustment(Decimal("100"), adjustment, value) == expected


def test_price_is_never_negative(room):
    rules = PricingRules(
        seasons=[make_season(price_adjustment="fixed_decrease", adjustment_value=Decimal("20000"))]
    )

    assert resolve_night_price(room, NIGHT, rules).final_price == Decimal("0.00")


def test_rounding_is_half_up():
    odd_room = SimpleNamespace(pk=1, base_price=Decimal("99.99"), currency="PKR")
    rules = PricingRules(seasons=[make_season(adjustment_value=Decimal("12.5"))])

    # 99.99 * 1.125 = 112.48875
    assert resolve_night_price(odd_room, NIGHT, rules).final_price == Decimal("112.49")


def test_discount_needs_stay_length_and_booking_date(room):
    rules = PricingRules(discounts=[make_discount()])

    without_date = resolve_night_price(room, NIGHT, rules, number_of_nights=7)
    with_both = resolve_night_price(room, NIGHT, rules, number_of_nights=7, booking_date=date(2026, 12, 1))

    assert without_date.final_price == Decimal("10000.00")
    assert with_both.final_price == Decimal("9000.00")
    assert with_both.applied_rules == ("weekly discount: -10%",)


def test_discount_applies_on_top_of_event(room):
    rules = PricingRules(events=[make_event()], discounts=[make_discount()])

    price = resolve_night_price(room, NIGHT, rules, number_of_nights=7, booking_date=date(2026, 12, 1))

    assert price.final_price == Decimal("13500.00")
    assert price.applied_rules == ("New Year: 1.5x multiplier", "weekly discount: -10%")


def test_best_discount_wins_without_stacking():
    discounts = [
        make_discount(discount_type="weekly", discount_percent=Decimal("10"), min_nights=7),
        make_discount(discount_type="monthly", discount_percent=Decimal("25"), min_nights=28),
        make_discount(
            discount_type="early_bird",
            discount_percent=Decimal("15"),
            min_nights=None,
            days_in_advance=30,
        ),
    ]

    chosen = best_discount(discounts, NIGHT, 7, date(2026, 11, 1))

    assert chosen.discount_type == "early_bird"


def test_last_minute_discount_window():
    last_minute = make_discount(
        discount_type="last_minute",
        discount_percent=Decimal("20"),
        min_nights=None,
        days_before_check_in=3,
    )

    assert best_discount([last_minute], NIGHT, 1, date(2026, 12, 16)) is last_minute
    assert best_discount([last_minute], NIGHT, 1, date(2026, 12, 10)) is None


def test_discount_validity_window():
    expired = make_discount(valid_until=date(2026, 11, 30))

    assert best_discount([expired], NIGHT, 10, date(2026, 11, 1)) is None


def _night(day, price):
    return NightPrice(
        date=date(2026, 12, day),
        base_price=Decimal(price),
        final_price=Decimal(price),
        currency="PKR",
    )


def test_aggregate_stay_with_default_service_fee():
    stay = aggregate_stay([_night(1, "100.00"), _night(2, "150.00")], cleaning_fee=Decimal("20"), tax_rate=8)

    assert stay.subtotal == Decimal("250.00")
    assert stay.cleaning_fee == Decimal("20.00")
    assert stay.service_fee == Decimal("25.00")
    assert stay.tax_amount == Decimal("22.00")
    assert stay.total == Decimal("317.00")
    assert stay.average_price_per_night == Decimal("125.00")
    assert stay.number_of_nights == 2


def test_aggregate_stay_with_fixed_service_fee():
    stay = aggregate_stay([_night(1, "100.00")], service_fee=Decimal("30"), tax_rate=0)

    assert stay.service_fee == Decimal("30.00")
    assert stay.total == Decimal("130.00")


def test_aggregate_stay_explicit_rate_beats_fixed_fee():
    stay = aggregate_stay([_night(1, "200.00")], service_fee=Decimal("30"), service_fee_rate="0.05", tax_rate=0)

    assert stay.service_fee == Decimal("10.00")


def test_total_is_sum_of_rounded_parts():
    stay = aggregate_stay([_night(1, "33.33"), _night(2, "33.33"), _night(3, "33.34")], tax_rate=Decimal("7.5"))

    assert stay.total == stay.subtotal + stay.cleaning_fee + stay.service_fee + stay.tax_amount


def test_aggregate_stay_rejects_empty_stay():
    with pytest.raises(ValueError):
        aggregate_stay([])
