"""Message bus subscribers turning booking lifecycle events into email tasks."""

from __future__ import annotations

import logging

from apps.bookings.domain.events import LIFECYCLE_EVENTS, BookingLifecycleEvent
from shared.application.message_bus import MessageBus

logger = logging.getLogger(__name__)


def enqueue_booking_email(event: BookingLifecycleEvent) -> None:
    from .tasks import notify_booking_event

    try:
        notify_booking_event.delay(
            event.kind,
            event.booking_id,
            event.requester_id,
            getattr(event, "reason", None),
        )
    except Exception as e:
        # Broker unavailable
        logger.warning(f"Could not enqueue {event.kind} notification for booking {event.booking_id}: {e}")


def register_handlers(bus: MessageBus) -> None:
    for event_type in LIFECYCLE_EVENTS:
        bus.register_event_handler(event_type, enqueue_booking_email)
