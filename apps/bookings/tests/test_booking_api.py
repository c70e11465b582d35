"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.finances.models import Payment, ReconciliationCase
from apps.finances.tests.fakes import FakeGateway
from apps.resources.models import AvailabilityWindow, Resource

User = get_user_model()


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute, tzinfo=timezone.utc)


class BookingAPITests(APITestCase):
    """Covers booking creation, conflicts, payment outcomes and cancellation."""

    def setUp(self) -> None:
        self.requester = User.objects.create_user(
            username="requester",
            email="requester@example.com",
            password="RequesterPass123",
        )
        self.other = User.objects.create_user(
            username="other",
            email="other@example.com",
            password="OtherPass123",
        )
        self.staff = User.objects.create_user(
            username="staff",
            email="staff@example.com",
            password="StaffPass123",
            is_staff=True,
        )
        self.resource = Resource.objects.create(
            title="Conference room",
            code="CONF-1",
            hourly_rate=Decimal("50.00"),
        )
        AvailabilityWindow.objects.create(resource=self.resource, start_time=at(9), end_time=at(18))
        self.client.force_authenticate(self.requester)
        self.list_url = reverse("booking-list")

    def _payload(self, start: datetime, end: datetime, payment_method: str | None = "pm_card_visa") -> dict:
        payload = {
            "resource": self.resource.id,
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
        }
        if payment_method:
            payload["payment_method"] = payment_method
        return payload

    def _book(self, start: datetime, end: datetime):
        return self.client.post(self.list_url, self._payload(start, end), format="json")

    def test_requester_can_create_paid_booking(self) -> None:
        response = self._book(at(10), at(11))

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CONFIRMED)
        self.assertEqual(response.data["requester_id"], self.requester.pk)
        self.assertEqual(response.data["payment"]["amount"], "50.00")
        booking = Booking.objects.get()
        self.assertEqual(booking.requester_id, self.requester.pk)
        self.assertEqual(Payment.objects.get().booking, booking)

    def test_requester_is_taken_from_authentication(self) -> None:
        payload = self._payload(at(10), at(11))
        payload["requester_id"] = self.other.pk

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(Booking.objects.get().requester_id, self.requester.pk)

    def test_missing_payment_method_returns_payment_required(self) -> None:
        response = self.client.post(self.list_url, self._payload(at(10), at(12), payment_method=None), format="json")

        self.assertEqual(response.status_code, status.HTTP_402_PAYMENT_REQUIRED, response.data)
        self.assertEqual(response.data["code"], "payment_required")
        self.assertEqual(response.data["amount"], "100.00")
        self.assertEqual(response.data["intent"]["resource_id"], self.resource.id)
        self.assertFalse(Booking.objects.exists())

    def test_prevent_double_booking_on_overlap(self) -> None:
        first_response = self._book(at(10), at(11))
        self.assertEqual(first_response.status_code, status.HTTP_201_CREATED, first_response.data)

        conflict_response = self._book(at(10, 30), at(11, 30))

        self.assertEqual(conflict_response.status_code, status.HTTP_409_CONFLICT, conflict_response.data)
        self.assertEqual(conflict_response.data["code"], "unavailable")
        self.assertEqual(conflict_response.data["conflicting_booking_ids"], [first_response.data["id"]])
        self.assertEqual(Booking.objects.count(), 1)

    def test_unknown_resource_returns_not_found(self) -> None:
        payload = self._payload(at(10), at(11))
        payload["resource"] = self.resource.id + 100

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["code"], "resource_not_found")

    def test_reversed_interval_is_rejected(self) -> None:
        response = self._book(at(11), at(10))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "invalid_range")

    def test_declined_card_returns_payment_failed(self) -> None:
        with mock.patch(
            "apps.bookings.application.command_handlers.get_payment_gateway",
            return_value=FakeGateway(outcome="failed"),
        ):
            response = self._book(at(10), at(11))

        self.assertEqual(response.status_code, status.HTTP_402_PAYMENT_REQUIRED, response.data)
        self.assertEqual(response.data["code"], "payment_failed")
        self.assertEqual(response.data["gateway_code"], "card_declined")
        self.assertFalse(Booking.objects.exists())

    def test_charge_requiring_action_returns_client_secret(self) -> None:
        with mock.patch(
            "apps.bookings.application.command_handlers.get_payment_gateway",
            return_value=FakeGateway(outcome="requires_action"),
        ):
            response = self._book(at(10), at(11))

        self.assertEqual(response.status_code, status.HTTP_402_PAYMENT_REQUIRED, response.data)
        self.assertEqual(response.data["code"], "payment_action_required")
        self.assertTrue(response.data["client_secret"].endswith("_secret"))

    def test_orphaned_payment_is_accepted_with_reference(self) -> None:
        with mock.patch(
            "apps.bookings.application.command_handlers.persist_booking",
            side_effect=DatabaseError("connection lost"),
        ):
            response = self._book(at(10), at(11))

        case = ReconciliationCase.objects.get()
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED, response.data)
        self.assertEqual(response.data["code"], "orphaned_payment")
        self.assertEqual(response.data["reference"], case.pk)
        self.assertFalse(Booking.objects.exists())

    def test_list_shows_only_own_bookings(self) -> None:
        self._book(at(10), at(11))
        Booking.objects.create(
            resource=self.resource,
            requester_id=self.other.pk,
            start_time=at(12),
            end_time=at(13),
        )

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["requester_id"], self.requester.pk)

    def test_requester_can_cancel_booking(self) -> None:
        booking_id = self._book(at(10), at(11)).data["id"]
        cancel_url = reverse("booking-cancel", args=[booking_id])

        response = self.client.post(cancel_url, {"reason": "Changed plans"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELED)
        booking = Booking.objects.get(pk=booking_id)
        self.assertEqual(booking.cancellation_reason, "Changed plans")
        self.assertEqual(booking.payment.refunds.count(), 0)

    def test_cannot_cancel_someone_elses_booking(self) -> None:
        booking_id = self._book(at(10), at(11)).data["id"]
        self.client.force_authenticate(self.other)

        response = self.client.post(reverse("booking-cancel", args=[booking_id]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Booking.objects.get(pk=booking_id).status, Booking.Status.CONFIRMED)

    def test_cancel_twice_is_invalid_transition(self) -> None:
        booking_id = self._book(at(10), at(11)).data["id"]
        cancel_url = reverse("booking-cancel", args=[booking_id])
        self.client.post(cancel_url, {}, format="json")

        response = self.client.post(cancel_url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "invalid_transition")

    def test_only_staff_can_change_status(self) -> None:
        booking = Booking.objects.create(
            resource=self.resource,
            requester_id=self.requester.pk,
            start_time=at(12),
            end_time=at(13),
        )
        url = reverse("booking-change-status", args=[booking.pk])

        forbidden = self.client.post(url, {"status": "confirmed"}, format="json")
        self.client.force_authenticate(self.staff)
        response = self.client.post(url, {"status": "confirmed"}, format="json")

        self.assertEqual(forbidden.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CONFIRMED)
        self.assertIsNotNone(response.data["confirmed_at"])

    def test_anonymous_request_is_rejected(self) -> None:
        self.client.force_authenticate(None)

        response = self._book(at(10), at(11))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
