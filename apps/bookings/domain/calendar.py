"""
Calendar View

Read-mostly view of one resource at one moment: its availability windows
and its active bookings (allocations). It is computed on demand from
stored rows and never persisted itself.

The view answers the two availability questions:
1. Which active bookings collide with [start, end)?
2. Which fixed-size slots are still free on a given day?

It is advisory only. The write path re-validates overlap under a row lock
(see apps.bookings.services.persist_booking), because a read followed by a
write is not atomic.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List, Optional

from shared.domain.intervals import enumerate_slots
from shared.domain.value_objects import TimeRange


@dataclass(frozen=True)
class Window:
    """Availability window declared by an administrator"""
    range: TimeRange
    is_available: bool = True
    id: Optional[int] = None


@dataclass(frozen=True)
class Allocation:
    """
    Allocation - a time range held by an active booking

    Only PENDING and CONFIRMED bookings become allocations.
    """
    range: TimeRange
    booking_id: Optional[int] = None


@dataclass
class CalendarView:
    """
    Calendar of a single resource

    Key invariants:
    - Windows never overlap each other
    - Active allocations never overlap each other
    """

    resource_id: int
    windows: List[Window] = field(default_factory=list)
    allocations: List[Allocation] = field(default_factory=list)

    def conflicts(self, requested: TimeRange) -> List[Allocation]:
        """Allocations that overlap the requested range"""
        return [a for a in self.allocations if a.range.overlaps_with(requested)]

    def is_free(self, requested: TimeRange) -> bool:
        return not self.conflicts(requested)

    def window_conflicts(self, requested: TimeRange) -> List[Window]:
        """Existing windows that strictly overlap ``requested`` (shared endpoints allowed)"""
        return [w for w in self.windows if w.range.overlaps_with(requested)]

    def free_slots(self, day: TimeRange, duration: timedelta) -> List[TimeRange]:
        """
        Free slots of ``duration`` on ``day``

        Each available window intersecting the day is clipped to it and
        enumerated on its own; slots of separate windows are not merged.
        """
        slots: List[TimeRange] = []

        for window in sorted(self.windows, key=lambda w: w.range.start):
            if not window.is_available:
                continue
            clipped = window.range.clip_to(day)
            if clipped is None:
                continue

            blocked = [a.range.as_tuple() for a in self.allocations if a.range.overlaps_with(clipped)]
            slots.extend(
                TimeRange(start, end)
                for start, end in enumerate_slots(clipped.start, clipped.end, duration, blocked)
            )

        return slots

    @classmethod
    def build(cls, resource_id: int, windows: Iterable[Window], allocations: Iterable[Allocation]) -> 'CalendarView':
        return cls(resource_id=resource_id, windows=list(windows), allocations=list(allocations))

    def __str__(self):
        return (
            f"CalendarView(resource={self.resource_id}, windows={len(self.windows)}, "
            f"allocations={len(self.allocations)})"
        )
