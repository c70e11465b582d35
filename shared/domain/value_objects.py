"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts with currency
- TimeRange: Represents a half-open interval of time [start, end)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidRange
from shared.domain.intervals import clip, contains, overlaps

CENT = Decimal('0.01')
SECONDS_PER_HOUR = Decimal(3600)


def round_money(amount) -> Decimal:
    """Round to cents using half-up rounding"""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a non-negative monetary amount with currency.
    Amounts are kept at cent precision (half-up).
    """
    amount: Decimal
    currency: str = 'usd'

    def __post_init__(self):
        amount = round_money(self.amount)
        if amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"Unsupported currency: {self.currency!r}")
        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'currency', self.currency.lower())

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    @property
    def minor_units(self) -> int:
        """Amount in cents, as payment gateways expect it"""
        return int((self.amount * 100).to_integral_value(rounding=ROUND_HALF_UP))

    @classmethod
    def from_minor_units(cls, value: int, currency: str = 'usd') -> 'Money':
        return cls(Decimal(value) / 100, currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency.upper()}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents the half-open interval [start, end).
    Used for bookings, availability windows and free slots.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRange(f"Start time ({self.start}) must be before end time ({self.end})")

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        End is exclusive, so adjacent ranges don't overlap.
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: 'TimeRange') -> bool:
        return contains(self.start, self.end, other.start, other.end)

    def clip_to(self, boundary: 'TimeRange') -> Optional['TimeRange']:
        """Intersection with ``boundary`` or None if they don't intersect"""
        clipped = clip(self.start, self.end, boundary.start, boundary.end)
        if clipped is None:
            return None
        return TimeRange(*clipped)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> Decimal:
        """Wall-clock duration in hours"""
        return Decimal(str(self.duration.total_seconds())) / SECONDS_PER_HOUR

    def as_tuple(self) -> tuple:
        return self.start, self.end

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def __repr__(self):
        return f"TimeRange({self.start!r}, {self.end!r})"
