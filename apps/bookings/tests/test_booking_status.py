from datetime import datetime, timezone

import pytest

from apps.bookings.application.command_handlers import UpdateBookingStatusCommand, UpdateBookingStatusHandler
from apps.bookings.domain.events import BookingCanceled, BookingConfirmed
from apps.bookings.models import Booking
from shared.domain.exceptions import BookingNotFound, InvalidTransition


def make_booking(resource, status=Booking.Status.PENDING):
    return Booking.objects.create(
        resource=resource,
        requester_id=1,
        start_time=datetime(2030, 1, 7, 10, tzinfo=timezone.utc),
        end_time=datetime(2030, 1, 7, 11, tzinfo=timezone.utc),
        status=status,
    )


@pytest.mark.parametrize(
    "current, requested, allowed",
    [
        (Booking.Status.PENDING, Booking.Status.CONFIRMED, True),
        (Booking.Status.PENDING, Booking.Status.CANCELED, True),
        (Booking.Status.CONFIRMED, Booking.Status.CANCELED, True),
        (Booking.Status.CONFIRMED, Booking.Status.PENDING, False),
        (Booking.Status.CANCELED, Booking.Status.CONFIRMED, False),
        (Booking.Status.CANCELED, Booking.Status.PENDING, False),
        (Booking.Status.PENDING, Booking.Status.PENDING, False),
    ],
)
def test_transition_table(current, requested, allowed):
    assert Booking(status=current).can_transition_to(requested) is allowed


def test_booking_code_format():
    code = Booking.generate_booking_code()

    assert len(code) == 8
    assert code == code.upper()


@pytest.mark.django_db
def test_cancel_pending_publishes_exactly_one_event(resource, bus_events, django_capture_on_commit_callbacks):
    bus, received = bus_events
    booking = make_booking(resource)

    with django_capture_on_commit_callbacks(execute=True):
        canceled = UpdateBookingStatusHandler(bus=bus).cancel(booking.pk, reason="plans changed")

    assert canceled.status == Booking.Status.CANCELED
    assert canceled.canceled_at is not None
    assert canceled.cancellation_reason == "plans changed"
    assert len(received) == 1
    assert isinstance(received[0], BookingCanceled)
    assert received[0].reason == "plans changed"
    assert received[0].booking_id == booking.pk


@pytest.mark.django_db
def test_confirm_pending_sets_timestamp_and_publishes(resource, bus_events, django_capture_on_commit_callbacks):
    bus, received = bus_events
    booking = make_booking(resource)

    with django_capture_on_commit_callbacks(execute=True):
        confirmed = UpdateBookingStatusHandler(bus=bus).confirm(booking.pk)

    booking.refresh_from_db()
    assert booking.status == Booking.Status.CONFIRMED
    assert booking.confirmed_at == confirmed.confirmed_at
    assert [type(event) for event in received] == [BookingConfirmed]


@pytest.mark.django_db
def test_canceled_booking_cannot_be_confirmed(resource, bus_events, django_capture_on_commit_callbacks):
    bus, received = bus_events
    booking = make_booking(resource, status=Booking.Status.CANCELED)

    with django_capture_on_commit_callbacks(execute=True):
        with pytest.raises(InvalidTransition) as exc_info:
            UpdateBookingStatusHandler(bus=bus).handle(
                UpdateBookingStatusCommand(booking.pk, Booking.Status.CONFIRMED)
            )

    assert exc_info.value.to_dict()["code"] == "invalid_transition"
    booking.refresh_from_db()
    assert booking.status == Booking.Status.CANCELED
    assert received == []


@pytest.mark.django_db
def test_unknown_booking_is_not_found(bus_events):
    bus, _ = bus_events

    with pytest.raises(BookingNotFound):
        UpdateBookingStatusHandler(bus=bus).confirm(999999)
