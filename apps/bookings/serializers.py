"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.finances.models import Payment

from .models import Booking


class BookingCreateSerializer(serializers.Serializer):
    """Booking request. The requester is always the authenticated user."""

    resource = serializers.IntegerField(min_value=1)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    payment_method = serializers.CharField(max_length=255, required=False, allow_blank=True)
    attempt_id = serializers.CharField(max_length=64, required=False, allow_blank=True)


class BookingPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "transaction_id", "amount", "currency", "status", "paid_at"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Booking with its payment summary."""

    resource_id = serializers.ReadOnlyField(source="resource.id")
    resource_title = serializers.ReadOnlyField(source="resource.title")
    payment = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "resource_id",
            "resource_title",
            "requester_id",
            "start_time",
            "end_time",
            "status",
            "payment",
            "confirmed_at",
            "canceled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_payment(self, obj: Booking):  # type: ignore
        payment = Payment.objects.filter(booking=obj).first()
        if payment is None:
            return None
        return BookingPaymentSerializer(payment).data


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)
