"""
Interval Math

Pure helpers over half-open intervals ``[start, end)``.
Work with any ordered values that support ``+`` with the duration type
(datetimes with timedeltas in the booking domain, plain numbers in tests).
"""

from typing import Iterable, List, Optional, Tuple


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """
    Check whether two half-open intervals share any point

    Touching intervals (``a_end == b_start``) do not overlap.

    Examples:
        - [10:00, 11:00) and [10:30, 11:30) -> True
        - [10:00, 11:00) and [11:00, 12:00) -> False
    """
    return a_start < b_end and a_end > b_start


def contains(outer_start, outer_end, inner_start, inner_end) -> bool:
    """Check whether ``[inner_start, inner_end)`` lies within the outer interval"""
    return outer_start <= inner_start and inner_end <= outer_end


def clip(start, end, lower, upper) -> Optional[Tuple]:
    """
    Intersect ``[start, end)`` with ``[lower, upper)``

    Returns the clipped pair or None when nothing is left.
    """
    clipped_start = max(start, lower)
    clipped_end = min(end, upper)
    if clipped_start >= clipped_end:
        return None
    return clipped_start, clipped_end


def enumerate_slots(window_start, window_end, duration, blocked: Iterable[Tuple] = ()) -> List[Tuple]:
    """
    Split a window into consecutive fixed-size slots

    Slots start at ``window_start`` and advance by ``duration`` (no sliding
    window). A slot is kept only if it overlaps none of the ``blocked``
    intervals. Enumeration stops once ``current + duration > window_end``.

    A non-positive duration or an empty window yields an empty list.
    """
    if window_start >= window_end:
        return []
    if duration <= duration * 0:
        return []

    blocked = list(blocked)
    slots = []
    current = window_start

    while current + duration <= window_end:
        slot_end = current + duration
        if not any(overlaps(current, slot_end, b_start, b_end) for b_start, b_end in blocked):
            slots.append((current, slot_end))
        current = slot_end

    return slots
