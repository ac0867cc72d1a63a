"""
Common Value Objects

Value objects used across the stays domain:
- DateRange: a stay window (check-in inclusive, check-out exclusive)
- quantize_money: rounding rule for every reported money figure
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator

CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    """Round a money amount to 2 decimals, halves away from zero."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DateRange:
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for stays, availability checks and calendar windows.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    @classmethod
    def inclusive(cls, first_day: date, last_day: date) -> "DateRange":
        """Build a range that covers both calendar days."""
        return cls(first_day, last_day + timedelta(days=1))

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Note: end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return (self.start_date < other.end_date and
                self.end_date > other.start_date)

    def contains(self, check_date: date) -> bool:
        return self.start_date <= check_date < self.end_date

    def days(self) -> Iterator[date]:
        """Yield every night of the range in order."""
        current = self.start_date
        while current < self.end_date:
            yield current
            current += timedelta(days=1)

    def shift(self, days: int) -> "DateRange":
        delta = timedelta(days=days)
        return DateRange(self.start_date + delta, self.end_date + delta)

    def __len__(self) -> int:
        """Number of nights in this range."""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
