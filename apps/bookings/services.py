"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.finances.models import Payment
from apps.resources.models import AvailabilityWindow
from apps.resources.services import lock_resource
from shared.domain.exceptions import Unavailable

from .domain.calendar import Allocation, CalendarView, Window
from .models import Booking

logger = logging.getLogger(__name__)

# Name of the PostgreSQL exclusion constraint added in migration 0002
EXCLUSION_CONSTRAINT = "booking_no_active_overlap"


@dataclass(frozen=True)
class ChargeRecord:
    """What the gateway charged, ready to be stored next to the booking."""

    transaction_id: str
    idempotency_key: str
    amount: Decimal
    currency: str
    payment_method_ref: str = ""
    metadata: Optional[dict] = None


def active_conflicts(resource_id, start: datetime, end: datetime, *, exclude_booking_id=None) -> List[Booking]:
    """Active bookings of the resource intersecting [start, end)."""

    queryset = Booking.objects.for_resource(resource_id).active().overlapping(start, end)
    if exclude_booking_id is not None:
        queryset = queryset.exclude(pk=exclude_booking_id)
    return list(queryset.order_by("start_time"))


def load_calendar_view(resource_id, start: datetime, end: datetime) -> CalendarView:
    """Build the calendar view of one resource restricted to [start, end)."""

    windows = AvailabilityWindow.objects.filter(
        resource_id=resource_id,
        start_time__lt=end,
        end_time__gt=start,
    ).order_by("start_time")
    bookings = Booking.objects.for_resource(resource_id).active().overlapping(start, end)

    return CalendarView.build(
        resource_id,
        (Window(range=window.time_range, is_available=window.is_available, id=window.pk) for window in windows),
        (Allocation(range=booking.time_range, booking_id=booking.pk) for booking in bookings),
    )


def _is_overlap_violation(exc: IntegrityError) -> bool:
    return EXCLUSION_CONSTRAINT in str(exc)


def persist_booking(
    *,
    resource_id,
    requester_id,
    start: datetime,
    end: datetime,
    charge: ChargeRecord,
    status: str = Booking.Status.CONFIRMED,
) -> Booking:
    """Record a paid booking together with its payment.

    The resource row is locked first and the no-overlap invariant is
    checked again right before insert. A conflict found at this point
    (or reported by the exclusion constraint) raises Unavailable; any
    other database failure propagates unchanged.
    """

    try:
        with transaction.atomic():
            lock_resource(resource_id)

            conflicts = active_conflicts(resource_id, start, end)
            if conflicts:
                raise Unavailable(conflicts=conflicts)

            now = timezone.now()
            booking = Booking(
                resource_id=resource_id,
                requester_id=requester_id,
                start_time=start,
                end_time=end,
                status=status,
            )
            if status == Booking.Status.CONFIRMED:
                booking.confirmed_at = now
            booking.save()

            Payment.objects.create(
                booking=booking,
                status=Payment.Status.COMPLETED,
                amount=charge.amount,
                currency=charge.currency,
                transaction_id=charge.transaction_id,
                idempotency_key=charge.idempotency_key,
                payment_method_ref=charge.payment_method_ref,
                description=f"Booking {booking.booking_code}",
                metadata=charge.metadata or {},
                paid_at=now,
            )
    except IntegrityError as exc:
        if _is_overlap_violation(exc):
            logger.info(f"Exclusion constraint rejected booking of resource {resource_id}")
            raise Unavailable() from exc
        raise

    logger.info(
        f"Booking {booking.booking_code} stored as {status} for resource {resource_id}, "
        f"payment {charge.transaction_id}"
    )
    return booking
