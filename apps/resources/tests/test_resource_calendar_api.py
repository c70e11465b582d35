"""Integration tests for resource calendar endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.resources.models import AvailabilityWindow, Resource

User = get_user_model()


def at(hour: int, minute: int = 0, day: int = 7) -> datetime:
    return datetime(2030, 1, day, hour, minute, tzinfo=timezone.utc)


class ResourceCalendarAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(username="member", password="MemberPass123")
        self.staff = User.objects.create_user(username="admin", password="AdminPass123", is_staff=True)
        self.resource = Resource.objects.create(title="Studio", code="STUDIO", hourly_rate=Decimal("50.00"))
        self.window = AvailabilityWindow.objects.create(resource=self.resource, start_time=at(9), end_time=at(18))
        self.client.force_authenticate(self.user)

    def test_catalog_lists_active_resources_only(self) -> None:
        Resource.objects.create(title="Archived", code="OLD", is_active=False)

        response = self.client.get(reverse("resource-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["code"] for item in response.data], ["STUDIO"])

    def test_free_slots_for_empty_day(self) -> None:
        url = reverse("resource-slots", args=[self.resource.id])

        response = self.client.get(url, {"date": "2030-01-07", "duration": 60})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        slots = response.data["slots"]
        self.assertEqual(len(slots), 9)
        self.assertEqual({slot["cost"] for slot in slots}, {"50.00"})
        self.assertEqual(slots[0]["start"], at(9).isoformat())

    def test_free_slots_with_non_positive_duration_are_empty(self) -> None:
        url = reverse("resource-slots", args=[self.resource.id])

        response = self.client.get(url, {"date": "2030-01-07", "duration": 0})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["slots"], [])

    def test_free_slots_duration_longer_than_a_day_is_rejected(self) -> None:
        url = reverse("resource-slots", args=[self.resource.id])

        for duration in (24 * 60 + 1, 10**13):
            response = self.client.get(url, {"date": "2030-01-07", "duration": duration})

            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn("duration", response.data)

    def test_free_slots_of_unknown_resource(self) -> None:
        url = reverse("resource-slots", args=[self.resource.id + 100])

        response = self.client.get(url, {"date": "2030-01-07", "duration": 60})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "resource_not_found")

    def test_availability_reports_conflicts_and_quote(self) -> None:
        booking = Booking.objects.create(
            resource=self.resource,
            requester_id=self.staff.pk,
            start_time=at(10),
            end_time=at(11),
            status=Booking.Status.CONFIRMED,
        )
        url = reverse("resource-availability", args=[self.resource.id])

        busy = self.client.get(url, {"start": at(10, 30).isoformat(), "end": at(12).isoformat()})
        free = self.client.get(url, {"start": at(11).isoformat(), "end": at(12).isoformat()})

        self.assertEqual(busy.status_code, status.HTTP_200_OK, busy.data)
        self.assertFalse(busy.data["free"])
        self.assertEqual(busy.data["conflicts"], [booking.pk])
        self.assertEqual(busy.data["quote"]["amount"], "75.00")
        self.assertTrue(free.data["free"])

    def test_availability_rejects_reversed_range(self) -> None:
        url = reverse("resource-availability", args=[self.resource.id])

        response = self.client.get(url, {"start": at(12).isoformat(), "end": at(11).isoformat()})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_range")

    def test_windows_for_day(self) -> None:
        AvailabilityWindow.objects.create(resource=self.resource, start_time=at(9, day=8), end_time=at(12, day=8))
        url = reverse("resource-windows", args=[self.resource.id])

        response = self.client.get(url, {"date": "2030-01-07"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [self.window.id])

    def test_only_staff_can_add_windows(self) -> None:
        url = reverse("resource-windows", args=[self.resource.id])
        payload = {"start_time": at(18).isoformat(), "end_time": at(21).isoformat()}

        forbidden = self.client.post(url, payload, format="json")
        self.client.force_authenticate(self.staff)
        created = self.client.post(url, payload, format="json")

        self.assertEqual(forbidden.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)
        self.assertEqual(created.data["resource_id"], self.resource.id)
        self.assertEqual(AvailabilityWindow.objects.count(), 2)

    def test_overlapping_window_is_rejected(self) -> None:
        self.client.force_authenticate(self.staff)
        url = reverse("resource-windows", args=[self.resource.id])

        response = self.client.post(
            url, {"start_time": at(17).isoformat(), "end_time": at(19).isoformat()}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "window_overlap")
        self.assertEqual(AvailabilityWindow.objects.count(), 1)

    def test_staff_can_remove_window(self) -> None:
        self.client.force_authenticate(self.staff)
        url = reverse("resource-window-detail", args=[self.window.id])

        response = self.client.delete(url)
        missing = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing.data["code"], "window_not_found")
