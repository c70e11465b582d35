"""Financial records of the reservation engine."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.db.models import Sum  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentMethod(models.Model):
    """Cached metadata of a gateway payment method, keyed by the gateway id."""

    id = models.CharField(primary_key=True, max_length=255)
    requester_id = models.PositiveBigIntegerField(db_index=True)
    type = models.CharField(max_length=50, blank=True)
    brand = models.CharField(max_length=50, blank=True)
    last4 = models.CharField(max_length=4, blank=True)
    exp_month = models.PositiveSmallIntegerField(null=True, blank=True)
    exp_year = models.PositiveSmallIntegerField(null=True, blank=True)
    funding = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=2, blank=True)
    billing_postal_code = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment method")
        verbose_name_plural = _("Payment methods")

    def __str__(self) -> str:
        if self.brand and self.last4:
            return f"{self.brand} **** {self.last4}"
        return self.id


class Payment(models.Model):
    """Charge recorded against exactly one booking.

    Payments are never deleted; refunds are appended as Refund rows.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        REQUIRES_ACTION = "requires_action", _("Requires customer action")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payment",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="usd")
    transaction_id = models.CharField(max_length=255, unique=True)
    idempotency_key = models.CharField(max_length=64, unique=True)
    payment_method_ref = models.CharField(max_length=255, blank=True)
    payment_method = models.ForeignKey(
        PaymentMethod,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    description = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payment {self.transaction_id} for booking {self.booking_id} ({self.status})"

    @property
    def refunded_amount(self) -> Decimal:
        total = self.refunds.exclude(status=Refund.Status.FAILED).aggregate(total=Sum("amount"))["total"]
        return total or Decimal("0.00")

    @property
    def refundable_amount(self) -> Decimal:
        return self.amount - self.refunded_amount

    def attach_payment_method(self, payment_method: PaymentMethod) -> None:
        self.payment_method = payment_method
        self.save(update_fields=["payment_method", "updated_at"])


class Refund(models.Model):
    """Refund issued through the gateway for part or all of a payment."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        SUCCEEDED = "succeeded", _("Succeeded")
        FAILED = "failed", _("Failed")

    payment = models.ForeignKey(
        Payment,
        on_delete=models.PROTECT,
        related_name="refunds",
    )
    refund_id = models.CharField(max_length=255, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Refund")
        verbose_name_plural = _("Refunds")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Refund {self.refund_id} of {self.amount} ({self.status})"


class ReconciliationCase(models.Model):
    """Charge whose booking could not be recorded, or whose outcome is unknown."""

    class Kind(models.TextChoices):
        ORPHANED_PAYMENT = "orphaned_payment", _("Charged but not recorded")
        INDETERMINATE_CHARGE = "indeterminate_charge", _("Charge outcome unknown")

    class Status(models.TextChoices):
        OPEN = "open", _("Open")
        RESOLVED = "resolved", _("Resolved")
        REFUNDED = "refunded", _("Refunded")
        CLOSED = "closed", _("Closed")

    kind = models.CharField(max_length=32, choices=Kind.choices)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.OPEN)
    idempotency_key = models.CharField(max_length=64, db_index=True)
    transaction_id = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="usd")
    payment_method_ref = models.CharField(max_length=255, blank=True)
    requester_id = models.PositiveBigIntegerField()
    resource_id = models.PositiveBigIntegerField()
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reconciliation_cases",
    )
    attempts = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reconciliation case")
        verbose_name_plural = _("Reconciliation cases")
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "kind"], name="recon_status_kind_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.kind} #{self.pk} ({self.status})"

    def close(self, status: str, note: str = "", booking=None) -> None:
        self.status = status
        if booking is not None:
            self.booking = booking
        if note:
            self.notes = f"{self.notes}\n{note}".strip()
        self.resolved_at = timezone.now()
        self.save(update_fields=["status", "booking", "notes", "resolved_at", "updated_at"])
