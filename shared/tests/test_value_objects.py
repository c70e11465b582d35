from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from shared.domain.exceptions import InvalidRange
from shared.domain.value_objects import Money, TimeRange, round_money


def test_round_money_is_half_up():
    assert round_money(Decimal("1.005")) == Decimal("1.01")
    assert round_money(Decimal("1.004")) == Decimal("1.00")
    assert round_money("2.675") == Decimal("2.68")


def test_money_normalizes_amount_and_currency():
    money = Money(Decimal("10.5"), "USD")

    assert money.amount == Decimal("10.50")
    assert money.currency == "usd"
    assert money.minor_units == 1050
    assert Money.from_minor_units(1050) == money


def test_money_rejects_negative_amounts_and_bad_currency():
    with pytest.raises(ValueError):
        Money(Decimal("-1"))
    with pytest.raises(ValueError):
        Money(Decimal("1"), "dollars")


def test_money_arithmetic_requires_same_currency():
    assert Money(Decimal("1.25")) + Money(Decimal("2.50")) == Money(Decimal("3.75"))
    assert Money(Decimal("5")) - Money(Decimal("2")) == Money(Decimal("3"))
    with pytest.raises(ValueError):
        Money(Decimal("1"), "usd") + Money(Decimal("1"), "eur")


def test_time_range_requires_start_before_end():
    start = datetime(2030, 1, 1, 9, tzinfo=timezone.utc)

    with pytest.raises(InvalidRange):
        TimeRange(start, start)
    with pytest.raises(InvalidRange):
        TimeRange(start, start - timedelta(minutes=1))


def test_time_range_overlap_clip_and_hours():
    day = TimeRange(
        datetime(2030, 1, 1, tzinfo=timezone.utc),
        datetime(2030, 1, 2, tzinfo=timezone.utc),
    )
    window = TimeRange(
        datetime(2029, 12, 31, 22, tzinfo=timezone.utc),
        datetime(2030, 1, 1, 2, 30, tzinfo=timezone.utc),
    )

    clipped = window.clip_to(day)

    assert window.overlaps_with(day)
    assert clipped == TimeRange(day.start, datetime(2030, 1, 1, 2, 30, tzinfo=timezone.utc))
    assert clipped.hours == Decimal("2.5")
    assert day.contains(clipped)
    assert not clipped.overlaps_with(TimeRange(clipped.end, clipped.end + timedelta(hours=1)))
