"""Serializers for the finance domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import Payment, PaymentMethod, ReconciliationCase, Refund


class PaymentMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMethod
        fields = ["id", "type", "brand", "last4", "exp_month", "exp_year", "funding", "country"]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    class Meta:
        model = Refund
        fields = ["id", "refund_id", "amount", "status", "created_at"]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.ReadOnlyField(source="booking.id")
    payment_method = PaymentMethodSerializer(read_only=True)
    refunds = RefundSerializer(many=True, read_only=True)
    refunded_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking_id",
            "status",
            "amount",
            "currency",
            "transaction_id",
            "payment_method",
            "description",
            "refunded_amount",
            "refunds",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class RefundRequestSerializer(serializers.Serializer):
    """Omit ``amount`` to refund whatever is still refundable."""

    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )


class ReconciliationCaseSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReconciliationCase
        fields = [
            "id",
            "kind",
            "status",
            "transaction_id",
            "amount",
            "currency",
            "requester_id",
            "resource_id",
            "start_time",
            "end_time",
            "booking",
            "attempts",
            "notes",
            "resolved_at",
            "created_at",
        ]
        read_only_fields = fields
