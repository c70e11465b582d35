"""
Payment Services

- Reconciliation cases for charges that were taken but never recorded,
  and for charges whose outcome the gateway could not report
- Caching of payment method metadata next to payments
- Caller-invoked refunds
- Reconciliation of open cases (run periodically by Celery beat)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from django.db import transaction

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    GatewayUnavailable,
    InvalidRefund,
    PaymentIndeterminate,
    PaymentNotFound,
    ResourceNotFound,
    Unavailable,
)
from shared.infrastructure.locking import lock_queryset_if_possible

from .gateway import ChargeSucceeded, PaymentGateway, get_payment_gateway
from .models import Payment, PaymentMethod, ReconciliationCase, Refund

logger = logging.getLogger(__name__)


# ===== Reconciliation cases =====

def record_reconciliation_case(
    kind: str,
    *,
    idempotency_key: str,
    amount: Decimal,
    currency: str,
    requester_id,
    resource_id,
    start: datetime,
    end: datetime,
    transaction_id: str = '',
    payment_method_ref: str = '',
    notes: str = '',
) -> ReconciliationCase:
    """
    Store a reconciliation case in its own transaction

    Called from failure paths, after the booking transaction has already
    rolled back.
    """
    with transaction.atomic():
        case = ReconciliationCase.objects.create(
            kind=kind,
            idempotency_key=idempotency_key,
            transaction_id=transaction_id or '',
            amount=amount,
            currency=currency,
            payment_method_ref=payment_method_ref or '',
            requester_id=requester_id,
            resource_id=resource_id,
            start_time=start,
            end_time=end,
            notes=notes,
        )
    logger.warning(f"Reconciliation case {case.pk} opened: {kind} key={idempotency_key}")
    return case


# ===== Payment methods =====

def sync_payment_method(gateway: PaymentGateway, payment: Payment, requester_id) -> Optional[PaymentMethod]:
    """
    Cache payment method metadata and link it to the payment

    Best effort: any failure is logged and None is returned.
    """
    if not payment.payment_method_ref:
        return None

    try:
        details = gateway.describe_payment_method(payment.payment_method_ref)
        method, _ = PaymentMethod.objects.update_or_create(
            id=details.id,
            defaults={
                'requester_id': requester_id,
                'type': details.type,
                'brand': details.brand,
                'last4': details.last4,
                'exp_month': details.exp_month,
                'exp_year': details.exp_year,
                'funding': details.funding,
                'country': details.country,
                'billing_postal_code': details.billing_postal_code,
            },
        )
        payment.attach_payment_method(method)
    except Exception as e:
        logger.warning(f"Could not sync payment method {payment.payment_method_ref}: {e}")
        return None

    return method


# ===== Refunds =====

@dataclass
class RefundPaymentCommand:
    """Command to refund all or part of a completed payment"""
    payment_id: int
    amount: Optional[Decimal] = None


class RefundPaymentHandler:
    """
    Handler for RefundPayment command

    Payments are never deleted; each refund appends a Refund row.
    Cancelling a booking never calls this automatically.

    The row is written as PENDING under the payment lock, keyed by the
    refund's idempotency key, and the gateway is called after commit.
    A row left PENDING with its idempotency key as ``refund_id`` marks a
    refund whose outcome was never recorded.
    """

    def __init__(self, gateway: Optional[PaymentGateway] = None):
        self.gateway = gateway or get_payment_gateway()

    def handle(self, command: RefundPaymentCommand) -> Refund:
        logger.info(f"Refunding payment {command.payment_id}, amount {command.amount or 'full'}")

        refund = self._reserve(command)
        payment = refund.payment
        idempotency_key = refund.refund_id

        try:
            result = self.gateway.refund(
                payment.transaction_id,
                amount=refund.amount,
                idempotency_key=idempotency_key,
            )
        except GatewayUnavailable:
            refund.status = Refund.Status.FAILED
            refund.save(update_fields=['status'])
            raise
        except PaymentIndeterminate:
            logger.critical(f"Refund {idempotency_key} of payment {payment.pk} has unknown outcome, left pending")
            raise

        refund.refund_id = result.refund_id
        refund.amount = result.amount
        refund.status = _refund_status(result.status)
        try:
            refund.save(update_fields=['refund_id', 'amount', 'status'])
        except Exception:
            logger.critical(
                f"Gateway refund {result.refund_id} ({result.amount}) of payment {payment.pk} "
                f"not recorded; row {idempotency_key} left pending",
                exc_info=True,
            )
            raise

        logger.info(f"Refund {refund.refund_id} of {refund.amount} recorded for payment {payment.pk}")
        return refund

    def _reserve(self, command: RefundPaymentCommand) -> Refund:
        with transaction.atomic():
            queryset = lock_queryset_if_possible(Payment.objects.filter(pk=command.payment_id))
            payment = queryset.first()
            if payment is None:
                raise PaymentNotFound(command.payment_id)

            if payment.status != Payment.Status.COMPLETED:
                raise InvalidRefund(f"Payment {payment.pk} is {payment.status} and cannot be refunded")

            refundable = payment.refundable_amount
            amount = refundable if command.amount is None else Decimal(command.amount)
            if amount <= 0:
                raise InvalidRefund("Refund amount must be positive")
            if amount > refundable:
                raise InvalidRefund(f"Refund amount {amount} exceeds refundable {refundable}")

            sequence = payment.refunds.count() + 1
            return Refund.objects.create(
                payment=payment,
                refund_id=f"{payment.idempotency_key}-refund-{sequence}",
                amount=amount,
                status=Refund.Status.PENDING,
            )


def _refund_status(gateway_status: str) -> str:
    if gateway_status == 'succeeded':
        return Refund.Status.SUCCEEDED
    if gateway_status in ('failed', 'canceled'):
        return Refund.Status.FAILED
    return Refund.Status.PENDING


# ===== Reconciliation =====

class ReconciliationService:
    """
    Resolves open reconciliation cases

    Indeterminate charges are looked up by idempotency key:
    - succeeded -> handled as an orphaned payment
    - failed or unknown to the gateway -> closed
    - still in flight -> stays open

    Orphaned payments are recorded as PENDING bookings awaiting manual
    confirmation, or refunded when the interval has been taken since.
    """

    def __init__(self, gateway: Optional[PaymentGateway] = None):
        self.gateway = gateway or get_payment_gateway()

    def reconcile_open_cases(self) -> dict:
        summary = {'resolved': 0, 'refunded': 0, 'closed': 0, 'open': 0}

        for case in ReconciliationCase.objects.filter(status=ReconciliationCase.Status.OPEN):
            try:
                status = str(self.reconcile(case))
            except Exception:
                logger.error(f"Reconciliation case {case.pk} failed, leaving it open", exc_info=True)
                status = str(ReconciliationCase.Status.OPEN)
            summary[status] = summary.get(status, 0) + 1

        logger.info(f"Reconciliation run finished: {summary}")
        return summary

    def reconcile(self, case: ReconciliationCase) -> str:
        case.attempts += 1
        case.save(update_fields=['attempts', 'updated_at'])

        try:
            if case.kind == ReconciliationCase.Kind.INDETERMINATE_CHARGE:
                return self._reconcile_indeterminate(case)
            return self._reconcile_orphan(case)
        except (GatewayUnavailable, PaymentIndeterminate) as e:
            logger.warning(f"Reconciliation case {case.pk} stays open: {e}")
            return case.status

    def _reconcile_indeterminate(self, case: ReconciliationCase) -> str:
        result = self.gateway.lookup(case.idempotency_key)

        if not isinstance(result, ChargeSucceeded):
            outcome = result.kind if result is not None else 'not found'
            case.close(ReconciliationCase.Status.CLOSED, note=f"Gateway outcome: {outcome}")
            logger.info(f"Indeterminate charge {case.idempotency_key} closed ({outcome})")
            return case.status

        case.kind = ReconciliationCase.Kind.ORPHANED_PAYMENT
        case.transaction_id = result.transaction_id
        case.save(update_fields=['kind', 'transaction_id', 'updated_at'])
        return self._reconcile_orphan(case)

    def _reconcile_orphan(self, case: ReconciliationCase) -> str:
        from apps.bookings.domain.events import BookingCreated
        from apps.bookings.models import Booking
        from apps.bookings.services import ChargeRecord, persist_booking

        existing = Payment.objects.filter(transaction_id=case.transaction_id).select_related('booking').first()
        if existing is not None:
            case.close(ReconciliationCase.Status.RESOLVED, note='Payment already recorded', booking=existing.booking)
            return case.status

        charge = ChargeRecord(
            transaction_id=case.transaction_id,
            idempotency_key=case.idempotency_key,
            amount=case.amount,
            currency=case.currency,
            payment_method_ref=case.payment_method_ref,
            metadata={'reconciliation_case': case.pk},
        )

        try:
            with DjangoUnitOfWork() as uow:
                booking = persist_booking(
                    resource_id=case.resource_id,
                    requester_id=case.requester_id,
                    start=case.start_time,
                    end=case.end_time,
                    charge=charge,
                    status=Booking.Status.PENDING,
                )
                uow.add_event(BookingCreated(
                    aggregate_id=booking.pk,
                    booking_id=booking.pk,
                    resource_id=booking.resource_id,
                    requester_id=booking.requester_id,
                ))
                case.close(
                    ReconciliationCase.Status.RESOLVED,
                    note=f"Booking {booking.booking_code} pending manual confirmation",
                    booking=booking,
                )
        except (Unavailable, ResourceNotFound) as e:
            reason = "Resource withdrawn" if isinstance(e, ResourceNotFound) else "Interval taken"
            refund = self.gateway.refund(
                case.transaction_id,
                amount=case.amount,
                idempotency_key=f"{case.idempotency_key}-refund",
            )
            case.close(ReconciliationCase.Status.REFUNDED, note=f"{reason}; refund {refund.refund_id}")
            logger.warning(f"Orphaned payment {case.transaction_id} refunded ({refund.refund_id})")
            return case.status

        logger.info(f"Orphaned payment {case.transaction_id} recorded as booking {booking.pk}")
        return case.status

