from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from apps.bookings.domain.pricing import detailed_quote, quote, quote_duration
from apps.resources.services import ResourceSnapshot
from shared.domain.exceptions import InvalidRange

START = datetime(2030, 1, 7, 9, tzinfo=timezone.utc)


def snapshot(rate):
    return ResourceSnapshot(id=1, title="Room", hourly_rate=Decimal(rate), capacity=1)


@pytest.mark.parametrize(
    "rate, minutes, expected",
    [
        ("50.00", 60, "50.00"),
        ("50.00", 90, "75.00"),
        ("10.00", 20, "3.33"),
        ("0.05", 30, "0.03"),
        ("0.00", 120, "0.00"),
    ],
)
def test_quote_is_hours_times_rate_rounded_half_up(rate, minutes, expected):
    amount = quote(snapshot(rate), START, START + timedelta(minutes=minutes))

    assert amount.amount == Decimal(expected)
    assert amount.currency == "usd"


def test_quote_duration_matches_interval_quote():
    resource = snapshot("37.50")

    assert quote_duration(resource, timedelta(minutes=45)) == quote(resource, START, START + timedelta(minutes=45))


def test_detailed_quote_breakdown():
    breakdown = detailed_quote(snapshot("40.00"), START, START + timedelta(hours=2, minutes=15), "eur")

    assert breakdown.to_dict() == {
        "price_per_hour": "40.00",
        "duration_hours": "2.25",
        "amount": "90.00",
        "currency": "eur",
    }


def test_empty_or_reversed_interval_cannot_be_priced():
    with pytest.raises(InvalidRange):
        quote(snapshot("50.00"), START, START)
    with pytest.raises(InvalidRange):
        quote_duration(snapshot("50.00"), timedelta(0))
