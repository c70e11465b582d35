"""Resource catalog models."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import TimeRange


class Resource(models.Model):
    """Bookable entity with a capacity and an hourly price."""

    title = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Price per hour of use."),
    )
    capacity = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Resource")
        verbose_name_plural = _("Resources")
        ordering = ["title"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(hourly_rate__gte=0),
                name="resource_non_negative_rate",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.code})"


class AvailabilityWindow(models.Model):
    """Administrator-declared interval [start_time, end_time) during which a resource may be booked.

    Windows of one resource never overlap each other. They are immutable
    once created; the only allowed change is deletion.
    """

    resource = models.ForeignKey(
        Resource,
        on_delete=models.CASCADE,
        related_name="availability_windows",
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Availability window")
        verbose_name_plural = _("Availability windows")
        ordering = ["start_time"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="window_valid_time_range",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_time", "end_time"], name="window_resource_range_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.resource_id}: {self.start_time:%Y-%m-%d %H:%M} - {self.end_time:%Y-%m-%d %H:%M}"

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)
