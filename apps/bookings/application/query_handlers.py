"""
Booking Query Handlers

Read-only use cases. Nothing here writes or locks.

Queries:
- CheckAvailabilityQuery: Is [start, end) free, what collides, what would it cost
- GetFreeSlotsQuery: Fixed-size free slots of a resource on one day
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from django.conf import settings

from apps.bookings.calendar import ResourceCalendar, Slot
from apps.bookings.domain.pricing import Quote, detailed_quote
from apps.resources.services import get_resource_snapshot


# Nothing longer than a day fits in a day
MAX_SLOT_MINUTES = 24 * 60


@dataclass
class CheckAvailabilityQuery:
    resource_id: int
    start: datetime
    end: datetime


@dataclass
class GetFreeSlotsQuery:
    resource_id: int
    date: date
    duration_minutes: int


@dataclass(frozen=True)
class AvailabilityReport:
    free: bool
    quote: Quote
    conflicts: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'free': self.free,
            'conflicts': list(self.conflicts),
            'quote': self.quote.to_dict(),
        }


class CheckAvailabilityHandler:
    """Advisory: a free answer does not reserve anything"""

    def __init__(self, calendar: Optional[ResourceCalendar] = None):
        self.calendar = calendar or ResourceCalendar()

    def handle(self, query: CheckAvailabilityQuery) -> AvailabilityReport:
        resource = get_resource_snapshot(query.resource_id)
        availability = self.calendar.is_free(query.resource_id, query.start, query.end)
        return AvailabilityReport(
            free=availability.free,
            conflicts=[booking.pk for booking in availability.conflicts],
            quote=detailed_quote(resource, query.start, query.end, settings.BOOKING_CURRENCY),
        )


class GetFreeSlotsHandler:
    def __init__(self, calendar: Optional[ResourceCalendar] = None):
        self.calendar = calendar or ResourceCalendar()

    def handle(self, query: GetFreeSlotsQuery) -> List[Slot]:
        minutes = max(0, min(query.duration_minutes, MAX_SLOT_MINUTES + 1))
        return self.calendar.free_slots(query.resource_id, query.date, timedelta(minutes=minutes))
