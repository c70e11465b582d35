"""
Booking Lifecycle Events

Events that represent things that have happened to a booking.
They are published in-process after successful transaction commits and
are never persisted by the booking core.

The tagged union is {BookingCreated, BookingConfirmed, BookingCanceled};
``kind`` names the variant.
"""

from dataclasses import dataclass
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingLifecycleEvent(DomainEvent):
    """Common payload of every booking lifecycle event"""
    booking_id: int
    resource_id: int
    requester_id: int


@dataclass(kw_only=True)
class BookingCreated(BookingLifecycleEvent):
    """
    Event: A booking row was created in PENDING status

    Emitted by reconciliation when a paid but unrecorded booking is
    restored and awaits manual confirmation.
    """
    status: str = 'pending'


@dataclass(kw_only=True)
class BookingConfirmed(BookingLifecycleEvent):
    """
    Event: Booking is CONFIRMED

    Triggers:
    - Send booking confirmation to the requester
    """
    payment_id: Optional[str] = None


@dataclass(kw_only=True)
class BookingCanceled(BookingLifecycleEvent):
    """
    Event: Booking was canceled

    Triggers:
    - Notify the requester
    No refund is issued automatically.
    """
    reason: Optional[str] = None


LIFECYCLE_EVENTS = (BookingCreated, BookingConfirmed, BookingCanceled)
