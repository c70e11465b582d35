from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from apps.bookings.domain.events import LIFECYCLE_EVENTS
from apps.finances.tests.fakes import FakeGateway
from apps.resources.models import AvailabilityWindow, Resource
from shared.application.message_bus import MessageBus

WORKDAY = date(2030, 1, 7)


def at(hour: int, minute: int = 0, day: date = WORKDAY) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


@pytest.fixture
def resource(db):
    return Resource.objects.create(title="Meeting room", code="ROOM-1", hourly_rate=Decimal("50.00"))


@pytest.fixture
def workday_window(resource):
    return AvailabilityWindow.objects.create(resource=resource, start_time=at(9), end_time=at(18))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def bus_events():
    """Private message bus and the lifecycle events it received."""
    bus = MessageBus()
    received = []
    for event_type in LIFECYCLE_EVENTS:
        bus.register_event_handler(event_type, received.append)
    return bus, received
