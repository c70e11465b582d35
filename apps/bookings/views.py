"""API views for the booking domain."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.exceptions import OrphanedPayment

from .application.command_handlers import (
    CreateBookingCommand,
    CreateBookingHandler,
    PaymentActionRequired,
    PaymentRequired,
    UpdateBookingStatusCommand,
    UpdateBookingStatusHandler,
)
from .models import Booking
from .serializers import (
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
)

logger = logging.getLogger(__name__)


class IsBookingStakeholder(permissions.BasePermission):
    """Requesters see their own bookings; staff see everything."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return obj.requester_id == user.pk


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create, list and change the status of bookings."""

    queryset = Booking.objects.select_related("resource").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filterset_fields = ["status", "resource"]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        return qs.filter(requester_id=user.pk)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        command = CreateBookingCommand(
            requester_id=request.user.pk,
            resource_id=data["resource"],
            start=data["start_time"],
            end=data["end_time"],
            payment_method_ref=data.get("payment_method") or None,
            attempt_id=data.get("attempt_id") or None,
        )

        try:
            result = CreateBookingHandler().handle(command)
        except OrphanedPayment as exc:
            # The charge went through; the booking waits for manual confirmation
            return Response(exc.to_dict(), status=status.HTTP_202_ACCEPTED)

        if isinstance(result, PaymentRequired):
            return Response(
                {
                    "code": "payment_required",
                    "amount": str(result.amount.amount),
                    "currency": result.amount.currency,
                    "intent": result.intent.to_dict(),
                },
                status=status.HTTP_402_PAYMENT_REQUIRED,
            )
        if isinstance(result, PaymentActionRequired):
            return Response(
                {
                    "code": "payment_action_required",
                    "client_secret": result.continuation_token,
                    "transaction_id": result.transaction_id,
                    "amount": str(result.amount.amount),
                    "currency": result.amount.currency,
                },
                status=status.HTTP_402_PAYMENT_REQUIRED,
            )

        read_serializer = BookingSerializer(result, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"], url_path="status", permission_classes=[permissions.IsAdminUser])
    def change_status(self, request, pk=None):  # type: ignore
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = UpdateBookingStatusHandler().handle(
            UpdateBookingStatusCommand(
                booking_id=pk,
                new_status=serializer.validated_data["status"],
                reason=serializer.validated_data.get("reason") or None,
            )
        )
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = UpdateBookingStatusHandler().cancel(
            booking.pk,
            reason=serializer.validated_data.get("reason") or None,
        )
        return Response({"id": booking.pk, "status": booking.status}, status=status.HTTP_200_OK)
