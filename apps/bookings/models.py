"""Booking models."""

from __future__ import annotations

import secrets

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import InvalidTransition
from shared.domain.value_objects import TimeRange


class BookingQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=Booking.ACTIVE_STATUSES)

    def overlapping(self, start, end):
        """Half-open overlap: start < other.end and end > other.start."""
        return self.filter(start_time__lt=end, end_time__gt=start)

    def for_resource(self, resource_id):
        return self.filter(resource_id=resource_id)


class Booking(models.Model):
    """Reservation of a resource for the half-open interval [start_time, end_time)."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending confirmation")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELED = "canceled", _("Canceled")

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    # Nothing leaves CANCELED
    ALLOWED_TRANSITIONS = {
        Status.PENDING.value: (Status.CONFIRMED.value, Status.CANCELED.value),
        Status.CONFIRMED.value: (Status.CANCELED.value,),
        Status.CANCELED.value: (),
    }

    resource = models.ForeignKey(
        "resources.Resource",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    requester_id = models.PositiveBigIntegerField(
        db_index=True,
        help_text=_("Verified identity of the user who requested the booking."),
    )
    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_valid_time_range",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_time", "end_time"], name="booking_resource_range_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for resource {self.resource_id} ({self.status})"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        return str(new_status) in self.ALLOWED_TRANSITIONS.get(str(self.status), ())

    def transition_to(self, new_status: str, reason: str = "") -> list[str]:
        """Apply a status change in memory and return the fields to save.

        Raises InvalidTransition for anything outside
        PENDING -> CONFIRMED, PENDING -> CANCELED, CONFIRMED -> CANCELED.
        """
        if not self.can_transition_to(new_status):
            raise InvalidTransition(str(self.status), str(new_status))

        self.status = new_status
        changed = ["status", "updated_at"]
        if new_status == self.Status.CONFIRMED:
            self.confirmed_at = timezone.now()
            changed.append("confirmed_at")
        elif new_status == self.Status.CANCELED:
            self.canceled_at = timezone.now()
            self.cancellation_reason = (reason or "")[:255]
            changed.extend(["canceled_at", "cancellation_reason"])
        return changed
