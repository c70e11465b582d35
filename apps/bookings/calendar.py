"""
Resource calendar service

Database-backed entry point for availability questions and window
administration. Reads are advisory; only the booking write path
(services.persist_booking) is authoritative about overlap.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.resources.models import AvailabilityWindow
from apps.resources.services import ensure_resource_exists, get_resource_snapshot, lock_resource
from shared.domain.exceptions import InvalidRange, Overlap, WindowNotFound
from shared.domain.value_objects import Money, TimeRange

from .domain.calendar import CalendarView, Window
from .domain.pricing import quote_duration
from .services import active_conflicts, load_calendar_view

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Availability:
    free: bool
    conflicts: List = field(default_factory=list)


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    cost: Money

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'cost': str(self.cost.amount),
            'currency': self.cost.currency,
        }


def day_range(day: date) -> TimeRange:
    """[00:00, next 00:00) of ``day`` in the active time zone"""
    tz = timezone.get_current_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return TimeRange(start, end)


class ResourceCalendar:
    """Availability windows and active bookings of resources"""

    def is_free(self, resource_id, start: datetime, end: datetime) -> Availability:
        ensure_resource_exists(resource_id)
        if start >= end:
            raise InvalidRange()

        conflicts = active_conflicts(resource_id, start, end)
        return Availability(free=not conflicts, conflicts=conflicts)

    def add_window(self, resource_id, start: datetime, end: datetime, is_available: bool = True) -> AvailabilityWindow:
        """
        Declare a new availability window

        Window creation for one resource is serialized by the resource row
        lock, so two administrators cannot add overlapping windows at once.
        """
        ensure_resource_exists(resource_id)
        if start >= end:
            raise InvalidRange()
        requested = TimeRange(start, end)

        with transaction.atomic():
            lock_resource(resource_id)

            existing = AvailabilityWindow.objects.filter(
                resource_id=resource_id,
                start_time__lt=end,
                end_time__gt=start,
            )
            view = CalendarView.build(
                resource_id,
                (Window(range=w.time_range, is_available=w.is_available, id=w.pk) for w in existing),
                (),
            )
            if view.window_conflicts(requested):
                raise Overlap()

            window = AvailabilityWindow.objects.create(
                resource_id=resource_id,
                start_time=start,
                end_time=end,
                is_available=is_available,
            )

        logger.info(f"Availability window {window.pk} added to resource {resource_id}: {requested}")
        return window

    def remove_window(self, window_id) -> None:
        deleted, _ = AvailabilityWindow.objects.filter(pk=window_id).delete()
        if not deleted:
            raise WindowNotFound(window_id)
        logger.info(f"Availability window {window_id} removed")

    def windows_for_day(self, resource_id, day: date) -> List[AvailabilityWindow]:
        ensure_resource_exists(resource_id)
        bounds = day_range(day)
        return list(
            AvailabilityWindow.objects.filter(
                resource_id=resource_id,
                is_available=True,
                start_time__lt=bounds.end,
                end_time__gt=bounds.start,
            ).order_by('start_time')
        )

    def free_slots(self, resource_id, day: date, duration: timedelta) -> List[Slot]:
        resource = get_resource_snapshot(resource_id)
        if duration <= timedelta(0):
            return []

        bounds = day_range(day)
        view = load_calendar_view(resource_id, bounds.start, bounds.end)
        cost = quote_duration(resource, duration, settings.BOOKING_CURRENCY)

        return [Slot(start=slot.start, end=slot.end, cost=cost) for slot in view.free_slots(bounds, duration)]
