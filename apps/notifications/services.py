"""Notification services for sending booking lifecycle emails."""

from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import strip_tags  # type: ignore

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================


def send_email_notification(
    recipient_email: str,
    subject: str,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send a plain (optionally HTML) email.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        context: Message context; ``message`` is used when there is no HTML
        html_message: HTML version of the message (optional)

    Returns:
        bool: True if the email was handed to the mail backend
    """
    try:
        if html_message:
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def get_requester_email(requester_id) -> Optional[str]:
    user_model = get_user_model()
    email = user_model.objects.filter(pk=requester_id).values_list("email", flat=True).first()
    return email or None


SUBJECTS = {
    "BookingCreated": "Booking #{code} received, pending confirmation",
    "BookingConfirmed": "Booking #{code} confirmed",
    "BookingCanceled": "Booking #{code} canceled",
}


def send_booking_event_email(event_kind: str, booking_id: int, requester_id, reason: str | None = None) -> bool:
    """Render one lifecycle event as an email to the requester."""
    from apps.bookings.models import Booking

    booking = Booking.objects.select_related("resource").filter(pk=booking_id).first()
    if booking is None:
        logger.error(f"Booking {booking_id} not found for {event_kind} notification")
        return False

    recipient = get_requester_email(requester_id)
    if not recipient:
        logger.warning(f"No email for requester {requester_id}, skipping {event_kind} notification")
        return False

    template = SUBJECTS.get(event_kind)
    if template is None:
        logger.warning(f"No email template for event {event_kind}")
        return False

    lines = [
        f"Resource: {booking.resource.title}",
        f"From: {booking.start_time:%Y-%m-%d %H:%M}",
        f"To: {booking.end_time:%Y-%m-%d %H:%M}",
        f"Status: {booking.get_status_display()}",
    ]
    if reason:
        lines.append(f"Reason: {reason}")

    return send_email_notification(
        recipient_email=recipient,
        subject=template.format(code=booking.booking_code),
        context={"message": "\n".join(lines)},
    )
