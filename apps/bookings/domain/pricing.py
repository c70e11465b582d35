"""
Pricing

amount = wall-clock hours x hourly rate, rounded half-up to cents.
The resource is a snapshot read once per request, so a price change in
the catalog mid-request cannot produce two different quotes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from shared.domain.exceptions import InvalidRange
from shared.domain.value_objects import Money, TimeRange, round_money


@dataclass(frozen=True)
class Quote:
    """Price breakdown for one interval"""
    hourly_rate: Decimal
    hours: Decimal
    amount: Money

    def to_dict(self) -> dict:
        return {
            'price_per_hour': str(self.hourly_rate),
            'duration_hours': str(self.hours.quantize(Decimal('0.01'))),
            'amount': str(self.amount.amount),
            'currency': self.amount.currency,
        }


def hours_between(start: datetime, end: datetime) -> Decimal:
    if end <= start:
        raise InvalidRange("End time must be after start time")
    return TimeRange(start, end).hours


def quote(resource, start: datetime, end: datetime, currency: str = 'usd') -> Money:
    """Price of holding ``resource`` over [start, end)"""
    hours = hours_between(start, end)
    return Money(round_money(hours * Decimal(resource.hourly_rate)), currency)


def quote_duration(resource, duration: timedelta, currency: str = 'usd') -> Money:
    """Price of a slot of ``duration`` (free-slot costs)"""
    if duration <= timedelta(0):
        raise InvalidRange("Duration must be positive")
    hours = Decimal(str(duration.total_seconds())) / Decimal(3600)
    return Money(round_money(hours * Decimal(resource.hourly_rate)), currency)


def detailed_quote(resource, start: datetime, end: datetime, currency: str = 'usd') -> Quote:
    hours = hours_between(start, end)
    return Quote(
        hourly_rate=Decimal(resource.hourly_rate),
        hours=hours,
        amount=quote(resource, start, end, currency),
    )
