"""
Nightly Price Resolution

Resolves the price of one room type for one night, then aggregates nights
into a stay quote with cleaning fee, service fee and tax.

Resolution order (first match wins):
1. Per-date custom price from the room calendar
2. Special event pricing: highest multiplier
3. Seasonal pricing: highest priority matching the weekday
4. Base price of the room type

A discount is applied on top only when both the stay length and the booking
date are known. The best eligible discount wins, they never stack.

Rules are duck-typed records (model instances in production) exposing the
attributes of SeasonalPricing, SpecialEventPricing, DiscountRule and
RoomAvailability.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from shared.domain.value_objects import quantize_money

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_SERVICE_FEE_RATE = Decimal("0.10")

SOURCE_CUSTOM = "custom"
SOURCE_EVENT = "event"
SOURCE_SEASONAL = "seasonal"
SOURCE_BASE = "base"

PERCENTAGE_INCREASE = "percentage_increase"
PERCENTAGE_DECREASE = "percentage_decrease"
FIXED_INCREASE = "fixed_increase"
FIXED_DECREASE = "fixed_decrease"
FIXED_PRICE = "fixed_price"

LENGTH_OF_STAY_DISCOUNTS = frozenset({"long_stay", "weekly", "monthly"})
EARLY_BIRD = "early_bird"
LAST_MINUTE = "last_minute"


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _format_number(value: Decimal) -> str:
    """10.00 -> '10', 1.50 -> '1.5'."""
    text = format(to_decimal(value), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass
class PricingRules:
    """
    Pricing records for one room type, fetched once per quote.

    overrides maps a night to its RoomAvailability row. Seasonal, event and
    discount lists may still contain inactive rules or rules for other
    dates; the resolver filters per night.
    """
    overrides: Dict[date, object] = field(default_factory=dict)
    seasons: List[object] = field(default_factory=list)
    events: List[object] = field(default_factory=list)
    discounts: List[object] = field(default_factory=list)


@dataclass(frozen=True)
class NightPrice:
    """Resolved price of a single night."""
    date: date
    base_price: Decimal
    final_price: Decimal
    currency: str
    source: str = SOURCE_BASE
    applied_rules: tuple = ()

    @property
    def is_adjusted(self) -> bool:
        return bool(self.applied_rules)


@dataclass(frozen=True)
class StayPrice:
    """Priced stay: every night plus fees and tax, all rounded to cents."""
    nights: tuple
    subtotal: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    tax_amount: Decimal
    total: Decimal
    average_price_per_night: Decimal
    currency: str

    @property
    def number_of_nights(self) -> int:
        return len(self.nights)


def apply_price_adjustment(price: Decimal, adjustment: str, value) -> Decimal:
    """Apply a seasonal adjustment to a price. Unknown types leave it as is."""
    value = to_decimal(value)
    if adjustment == PERCENTAGE_INCREASE:
        return price * (1 + value / HUNDRED)
    if adjustment == PERCENTAGE_DECREASE:
        return price * (1 - value / HUNDRED)
    if adjustment == FIXED_INCREASE:
        return price + value
    if adjustment == FIXED_DECREASE:
        return price - value
    if adjustment == FIXED_PRICE:
        return value
    return price


def applies_to_room(rule, room_type_id) -> bool:
    """Room-specific rules match their room, property-wide rules match every room."""
    rule_room_id = getattr(rule, "room_type_id", None)
    return rule_room_id is None or rule_room_id == room_type_id


def covers(rule, night: date) -> bool:
    return bool(getattr(rule, "is_active", True)) and rule.start_date <= night <= rule.end_date


def matches_weekday(rule, night: date) -> bool:
    days = getattr(rule, "days_of_week", None) or []
    return not days or night.weekday() in {int(day) for day in days}


def _scope_rank(rule) -> int:
    return 0 if getattr(rule, "room_type_id", None) is not None else 1


def select_event(events: Iterable, night: date, room_type_id):
    """Highest multiplier wins; ties favour room-specific, then the oldest rule."""
    candidates = [
        event for event in events
        if covers(event, night) and applies_to_room(event, room_type_id)
    ]
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda event: (-to_decimal(event.price_multiplier), _scope_rank(event), getattr(event, "pk", None) or 0),
    )


def select_season(seasons: Iterable, night: date, room_type_id, *, check_weekday: bool = True):
    """Highest priority wins; ties favour room-specific, then the oldest rule."""
    candidates = [
        season for season in seasons
        if covers(season, night)
        and applies_to_room(season, room_type_id)
        and (not check_weekday or matches_weekday(season, night))
    ]
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda season: (-season.priority, _scope_rank(season), getattr(season, "pk", None) or 0),
    )


def is_discount_eligible(discount, night: date, number_of_nights: int, days_in_advance: int) -> bool:
    if not getattr(discount, "is_active", True):
        return False
    if discount.valid_from and discount.valid_from > night:
        return False
    if discount.valid_until and discount.valid_until < night:
        return False

    if discount.discount_type in LENGTH_OF_STAY_DISCOUNTS:
        return bool(discount.min_nights) and number_of_nights >= discount.min_nights
    if discount.discount_type == EARLY_BIRD:
        return bool(discount.days_in_advance) and days_in_advance >= discount.days_in_advance
    if discount.discount_type == LAST_MINUTE:
        return bool(discount.days_before_check_in) and days_in_advance <= discount.days_before_check_in
    return False


def best_discount(discounts: Iterable, night: date, number_of_nights: int, booking_date: date, room_type_id=None):
    """Return the eligible discount with the highest percentage, or None."""
    days_in_advance = (night - booking_date).days
    best = None
    for discount in discounts:
        if not applies_to_room(discount, room_type_id):
            continue
        if not is_discount_eligible(discount, night, number_of_nights, days_in_advance):
            continue
        if best is None or to_decimal(discount.discount_percent) > to_decimal(best.discount_percent):
            best = discount
    return best


def resolve_night_price(
    room,
    night: date,
    rules: PricingRules,
    number_of_nights: Optional[int] = None,
    booking_date: Optional[date] = None,
) -> NightPrice:
    """
    Resolve the final price of `room` for `night`.

    Args:
        room: RoomType-like record (pk, base_price, currency)
        night: The night being priced
        rules: Pricing records of the room type
        number_of_nights: Stay length, enables length-of-stay discounts
        booking_date: Day the booking is made, enables advance discounts

    Returns:
        NightPrice with the final price rounded to cents (never negative)
    """
    base_price = to_decimal(room.base_price)
    price = base_price
    applied: List[str] = []
    source = SOURCE_BASE

    override = rules.overrides.get(night)
    if override is not None and override.custom_price is not None:
        price = to_decimal(override.custom_price)
        source = SOURCE_CUSTOM
        applied.append(f"Custom price set for {night.strftime('%b')} {night.day}")
    else:
        event = select_event(rules.events, night, room.pk)
        if event is not None:
            price = base_price * to_decimal(event.price_multiplier)
            source = SOURCE_EVENT
            applied.append(f"{event.event_name}: {_format_number(event.price_multiplier)}x multiplier")
        else:
            season = select_season(rules.seasons, night, room.pk)
            if season is not None:
                price = apply_price_adjustment(base_price, season.price_adjustment, season.adjustment_value)
                source = SOURCE_SEASONAL
                applied.append(f"Seasonal: {season.name}")

    if number_of_nights and booking_date:
        discount = best_discount(rules.discounts, night, number_of_nights, booking_date, room.pk)
        if discount is not None:
            percent = to_decimal(discount.discount_percent)
            price = price * (1 - percent / HUNDRED)
            applied.append(f"{discount.discount_type} discount: -{_format_number(percent)}%")

    return NightPrice(
        date=night,
        base_price=quantize_money(base_price),
        final_price=quantize_money(max(price, ZERO)),
        currency=room.currency,
        source=source,
        applied_rules=tuple(applied),
    )


def aggregate_stay(
    nights: List[NightPrice],
    cleaning_fee=ZERO,
    service_fee=ZERO,
    tax_rate=ZERO,
    service_fee_rate=None,
    default_service_fee_rate=DEFAULT_SERVICE_FEE_RATE,
) -> StayPrice:
    """
    Sum nightly prices and add fees.

    service fee: `service_fee_rate` of the subtotal when given, otherwise the
    fixed `service_fee` when positive, otherwise `default_service_fee_rate`.
    tax: `tax_rate` percent of subtotal plus service fee.
    Reported figures are rounded first, so total is exactly their sum.
    """
    if not nights:
        raise ValueError("A stay needs at least one night")

    subtotal = quantize_money(sum((night.final_price for night in nights), ZERO))
    cleaning = quantize_money(cleaning_fee or ZERO)

    fixed_service_fee = to_decimal(service_fee or ZERO)
    if service_fee_rate is not None:
        service = quantize_money(subtotal * to_decimal(service_fee_rate))
    elif fixed_service_fee > 0:
        service = quantize_money(fixed_service_fee)
    else:
        service = quantize_money(subtotal * to_decimal(default_service_fee_rate))

    tax = quantize_money((subtotal + service) * to_decimal(tax_rate) / HUNDRED)
    total = subtotal + cleaning + service + tax

    return StayPrice(
        nights=tuple(nights),
        subtotal=subtotal,
        cleaning_fee=cleaning,
        service_fee=service,
        tax_amount=tax,
        total=quantize_money(total),
        average_price_per_night=quantize_money(subtotal / len(nights)),
        currency=nights[0].currency,
    )
