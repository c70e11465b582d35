"""Celery tasks for notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import send_booking_event_email

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_booking_event_email")
def notify_booking_event(event_kind: str, booking_id: int, requester_id: int, reason: str | None = None) -> bool:
    """Email the requester about a booking lifecycle event."""
    sent = send_booking_event_email(event_kind, booking_id, requester_id, reason)
    logger.info(f"[NOTIFICATION] {event_kind} for booking {booking_id}: {'sent' if sent else 'skipped'}")
    return sent
