"""API views for payments, refunds and reconciliation cases.

Payments are created only by the booking flow; the API exposes them
read-only. Refunds are issued explicitly by staff and are never a side
effect of cancelling a booking.
"""

from __future__ import annotations

import logging

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import Payment, ReconciliationCase
from .serializers import (
    PaymentSerializer,
    ReconciliationCaseSerializer,
    RefundRequestSerializer,
    RefundSerializer,
)
from .services import RefundPaymentCommand, RefundPaymentHandler

logger = logging.getLogger(__name__)


class IsPaymentOwnerOrAdmin(permissions.BasePermission):
    """Only the requester of the booking or staff may read a payment."""

    def has_object_permission(self, request, view, obj: Payment) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return obj.booking.requester_id == user.pk


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """Viewset for reading payments and refunding them."""

    queryset = Payment.objects.select_related("booking", "payment_method").prefetch_related("refunds")
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated, IsPaymentOwnerOrAdmin]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        return qs.filter(booking__requester_id=user.pk)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def refund(self, request, pk=None):  # type: ignore
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        refund = RefundPaymentHandler().handle(
            RefundPaymentCommand(payment_id=pk, amount=serializer.validated_data.get("amount"))
        )
        logger.info(f"Refund {refund.refund_id} issued by user {request.user.pk} for payment {pk}")
        return Response(RefundSerializer(refund).data, status=status.HTTP_201_CREATED)


class ReconciliationCaseViewSet(viewsets.ReadOnlyModelViewSet):
    """Charges waiting for manual or scheduled reconciliation."""

    queryset = ReconciliationCase.objects.select_related("booking").all()
    serializer_class = ReconciliationCaseSerializer
    permission_classes = [permissions.IsAdminUser]
    filterset_fields = ["status", "kind"]
