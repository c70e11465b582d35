from datetime import datetime, timezone
from decimal import Decimal
from unittest import mock

import pytest
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.bookings.models import Booking
from apps.finances.models import Payment, Refund
from apps.finances.services import RefundPaymentCommand, RefundPaymentHandler
from shared.domain.exceptions import (
    GatewayUnavailable,
    InvalidRefund,
    PaymentIndeterminate,
    PaymentNotFound,
)


@pytest.fixture
def payment(resource):
    booking = Booking.objects.create(
        resource=resource,
        requester_id=1,
        start_time=datetime(2030, 1, 7, 10, tzinfo=timezone.utc),
        end_time=datetime(2030, 1, 7, 12, tzinfo=timezone.utc),
        status=Booking.Status.CONFIRMED,
    )
    return Payment.objects.create(
        booking=booking,
        status=Payment.Status.COMPLETED,
        amount=Decimal("100.00"),
        transaction_id="pi_paid",
        idempotency_key="a" * 64,
    )


@pytest.mark.django_db
def test_full_refund_by_default(payment, gateway):
    refund = RefundPaymentHandler(gateway=gateway).handle(RefundPaymentCommand(payment.pk))

    assert refund.amount == Decimal("100.00")
    assert refund.status == Refund.Status.SUCCEEDED
    assert gateway.refunds[0]["transaction_id"] == "pi_paid"
    payment.refresh_from_db()
    assert payment.refundable_amount == Decimal("0.00")
    assert payment.status == Payment.Status.COMPLETED


@pytest.mark.django_db
def test_partial_refunds_accumulate(payment, gateway):
    handler = RefundPaymentHandler(gateway=gateway)

    handler.handle(RefundPaymentCommand(payment.pk, Decimal("30.00")))
    handler.handle(RefundPaymentCommand(payment.pk, Decimal("20.00")))

    assert payment.refunded_amount == Decimal("50.00")
    assert payment.refundable_amount == Decimal("50.00")
    with pytest.raises(InvalidRefund):
        handler.handle(RefundPaymentCommand(payment.pk, Decimal("50.01")))


@pytest.mark.django_db
def test_refund_rejects_invalid_requests(payment, gateway):
    handler = RefundPaymentHandler(gateway=gateway)

    with pytest.raises(PaymentNotFound):
        handler.handle(RefundPaymentCommand(payment.pk + 1))
    with pytest.raises(InvalidRefund):
        handler.handle(RefundPaymentCommand(payment.pk, Decimal("0")))

    Payment.objects.filter(pk=payment.pk).update(status=Payment.Status.FAILED)
    with pytest.raises(InvalidRefund):
        handler.handle(RefundPaymentCommand(payment.pk))
    assert gateway.refunds == []


@pytest.mark.django_db
def test_gateway_outage_releases_reserved_amount(payment, gateway):
    gateway.refund_error = GatewayUnavailable("down")

    with pytest.raises(GatewayUnavailable):
        RefundPaymentHandler(gateway=gateway).handle(RefundPaymentCommand(payment.pk))

    assert Refund.objects.get().status == Refund.Status.FAILED
    assert payment.refundable_amount == Decimal("100.00")

    gateway.refund_error = None
    refund = RefundPaymentHandler(gateway=gateway).handle(RefundPaymentCommand(payment.pk))
    assert refund.status == Refund.Status.SUCCEEDED


@pytest.mark.django_db
def test_unknown_refund_outcome_stays_pending(payment, gateway):
    gateway.refund_error = PaymentIndeterminate("read timeout")

    with pytest.raises(PaymentIndeterminate):
        RefundPaymentHandler(gateway=gateway).handle(RefundPaymentCommand(payment.pk, Decimal("40.00")))

    refund = Refund.objects.get()
    assert refund.status == Refund.Status.PENDING
    assert refund.refund_id == "a" * 64 + "-refund-1"
    assert payment.refundable_amount == Decimal("60.00")


@pytest.mark.django_db
def test_refund_issued_but_not_stored_leaves_pending_record(payment, gateway):
    real_save = Refund.save

    def lose_connection_on_update(self, *args, **kwargs):
        if kwargs.get("update_fields"):
            raise DatabaseError("connection lost")
        return real_save(self, *args, **kwargs)

    with mock.patch.object(Refund, "save", autospec=True, side_effect=lose_connection_on_update):
        with pytest.raises(DatabaseError):
            RefundPaymentHandler(gateway=gateway).handle(RefundPaymentCommand(payment.pk))

    assert len(gateway.refunds) == 1
    refund = Refund.objects.get()
    assert refund.status == Refund.Status.PENDING
    assert refund.refund_id == "a" * 64 + "-refund-1"
    assert refund.amount == Decimal("100.00")
    assert payment.refundable_amount == Decimal("0.00")
    with pytest.raises(InvalidRefund):
        RefundPaymentHandler(gateway=gateway).handle(RefundPaymentCommand(payment.pk))
    assert len(gateway.refunds) == 1


@pytest.mark.django_db
def test_refund_endpoint_is_staff_only(payment):
    user_model = get_user_model()
    requester = user_model.objects.create_user(username="requester", password="pass")
    staff = user_model.objects.create_user(username="staff", password="pass", is_staff=True)
    url = reverse("payment-refund", args=[payment.pk])
    client = APIClient()

    client.force_authenticate(requester)
    forbidden = client.post(url, {"amount": "10.00"}, format="json")
    client.force_authenticate(staff)
    created = client.post(url, {"amount": "10.00"}, format="json")

    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert created.status_code == status.HTTP_201_CREATED, created.data
    assert created.data["amount"] == "10.00"
    assert Refund.objects.get().payment == payment


@pytest.mark.django_db
def test_requester_sees_own_payment(payment):
    requester = get_user_model().objects.create_user(username="owner", password="pass")
    Booking.objects.filter(pk=payment.booking_id).update(requester_id=requester.pk)
    client = APIClient()
    client.force_authenticate(requester)

    response = client.get(reverse("payment-detail", args=[payment.pk]))

    assert response.status_code == status.HTTP_200_OK
    assert response.data["transaction_id"] == "pi_paid"
    assert response.data["refunded_amount"] == "0.00"
