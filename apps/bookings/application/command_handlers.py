"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations, the payment gateway and transactions.

Commands:
- CreateBookingCommand: Check, price, charge and record a booking
- UpdateBookingStatusCommand: Confirm or cancel an existing booking
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import uuid4
import hashlib
import logging

from django.conf import settings
from django.db import transaction

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    BookingNotFound,
    GatewayUnavailable,
    OrphanedPayment,
    PaymentFailed,
    PaymentIndeterminate,
    ReservationError,
    ResourceNotFound,
    Unavailable,
)
from shared.domain.value_objects import Money
from shared.infrastructure.locking import lock_queryset_if_possible
from apps.bookings.calendar import ResourceCalendar
from apps.bookings.domain.events import BookingCanceled, BookingConfirmed
from apps.bookings.domain.pricing import quote
from apps.bookings.models import Booking
from apps.bookings.services import ChargeRecord, persist_booking
from apps.finances.gateway import (
    ChargeFailed,
    ChargeRequiresAction,
    ChargeResult,
    PaymentGateway,
    get_payment_gateway,
    normalize_charge_result,
)
from apps.finances.models import Payment, ReconciliationCase
from apps.finances.services import record_reconciliation_case, sync_payment_method
from apps.resources.services import get_resource_snapshot

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    ``requester_id`` must come from verified authentication, never from
    the request payload. Reusing ``attempt_id`` retries the same charge.
    """
    requester_id: int
    resource_id: int
    start: datetime
    end: datetime
    payment_method_ref: Optional[str] = None
    attempt_id: Optional[str] = None


@dataclass
class UpdateBookingStatusCommand:
    """Command to move a booking to a new status"""
    booking_id: int
    new_status: str
    reason: Optional[str] = None


# ===== Results =====

@dataclass(frozen=True)
class BookingIntent:
    """What the requester asked for, echoed back when payment is still needed"""
    requester_id: int
    resource_id: int
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {
            'resource_id': self.resource_id,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
        }


@dataclass(frozen=True)
class PaymentRequired:
    """No payment method was supplied; nothing was charged or stored"""
    amount: Money
    intent: BookingIntent
    kind = 'payment_required'


@dataclass(frozen=True)
class PaymentActionRequired:
    """The gateway needs the customer to finish the charge; nothing was stored"""
    continuation_token: Optional[str]
    transaction_id: str
    amount: Money
    kind = 'payment_action_required'


CreateBookingResult = Union[Booking, PaymentRequired, PaymentActionRequired]


def booking_intent_hash(requester_id, resource_id, start: datetime, end: datetime, attempt_id: str) -> str:
    """Idempotency key of one charge attempt (SHA-256 hex digest)"""
    payload = f"{requester_id}|{resource_id}|{start.isoformat()}|{end.isoformat()}|{attempt_id}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Steps of one attempt:
    1. Resolve the resource snapshot (read once)
    2. Check availability (advisory read)
    3. Price the interval
    4. Charge through the gateway with an idempotency key
    5. Lock the resource, re-check overlap and store Booking + Payment
    6. Publish BookingConfirmed after commit

    No row exists before a successful charge. A charge that cannot be
    recorded is either refunded (interval taken meanwhile) or stored as
    a reconciliation case and reported as OrphanedPayment.
    """

    def __init__(
        self,
        gateway: Optional[PaymentGateway] = None,
        calendar: Optional[ResourceCalendar] = None,
        bus: Optional[MessageBus] = None,
    ):
        self.gateway = gateway or get_payment_gateway()
        self.calendar = calendar or ResourceCalendar()
        self.bus = bus

    def handle(self, command: CreateBookingCommand) -> CreateBookingResult:
        logger.info(
            f"Creating booking for resource {command.resource_id}, "
            f"requester {command.requester_id}, {command.start} - {command.end}"
        )

        resource = get_resource_snapshot(command.resource_id)

        availability = self.calendar.is_free(command.resource_id, command.start, command.end)
        if not availability.free:
            raise Unavailable(conflicts=availability.conflicts)

        amount = quote(resource, command.start, command.end, settings.BOOKING_CURRENCY)
        intent = BookingIntent(
            requester_id=command.requester_id,
            resource_id=command.resource_id,
            start=command.start,
            end=command.end,
        )

        if not command.payment_method_ref:
            logger.info(f"Payment required for resource {command.resource_id}: {amount}")
            return PaymentRequired(amount=amount, intent=intent)

        attempt_id = command.attempt_id or uuid4().hex
        idempotency_key = booking_intent_hash(
            command.requester_id, command.resource_id, command.start, command.end, attempt_id
        )

        result = self._charge(command, amount, idempotency_key)
        if isinstance(result, ChargeRequiresAction):
            return PaymentActionRequired(
                continuation_token=result.continuation_token,
                transaction_id=result.transaction_id,
                amount=amount,
            )
        transaction_id = result.transaction_id

        charge = ChargeRecord(
            transaction_id=transaction_id,
            idempotency_key=idempotency_key,
            amount=amount.amount,
            currency=amount.currency,
            payment_method_ref=command.payment_method_ref,
            metadata={'attempt_id': attempt_id},
        )
        booking = self._persist(command, charge)

        logger.info(
            f"Booking created successfully: {booking.booking_code} "
            f"(ID: {booking.pk}, payment {transaction_id})"
        )
        return booking

    def _charge(self, command: CreateBookingCommand, amount: Money, idempotency_key: str) -> ChargeResult:
        """Succeeded or RequiresAction; a declined charge raises PaymentFailed"""
        metadata = {
            'requester_id': command.requester_id,
            'resource_id': command.resource_id,
            'start': command.start.isoformat(),
            'end': command.end.isoformat(),
        }

        try:
            result = self.gateway.charge(
                amount.amount,
                amount.currency,
                command.payment_method_ref,
                idempotency_key,
                metadata,
            )
        except PaymentIndeterminate as e:
            case = record_reconciliation_case(
                ReconciliationCase.Kind.INDETERMINATE_CHARGE,
                idempotency_key=idempotency_key,
                transaction_id=e.transaction_id or '',
                amount=amount.amount,
                currency=amount.currency,
                payment_method_ref=command.payment_method_ref,
                requester_id=command.requester_id,
                resource_id=command.resource_id,
                start=command.start,
                end=command.end,
                notes=str(e),
            )
            e.idempotency_key = idempotency_key
            e.case_id = case.pk
            logger.error(f"Charge {idempotency_key} outcome unknown, reconciliation case {case.pk}: {e}")
            raise
        except GatewayUnavailable as e:
            logger.warning(f"Gateway unavailable for charge {idempotency_key}: {e}")
            raise

        result = normalize_charge_result(result)

        if isinstance(result, ChargeFailed):
            logger.warning(f"Charge {idempotency_key} failed: {result.reason} (code={result.code})")
            raise PaymentFailed(result.reason, result.code)

        if isinstance(result, ChargeRequiresAction):
            logger.info(f"Charge {idempotency_key} requires customer action ({result.transaction_id})")

        return result

    def _persist(self, command: CreateBookingCommand, charge: ChargeRecord) -> Booking:
        try:
            with DjangoUnitOfWork(bus=self.bus) as uow:
                booking = persist_booking(
                    resource_id=command.resource_id,
                    requester_id=command.requester_id,
                    start=command.start,
                    end=command.end,
                    charge=charge,
                )
                uow.add_event(BookingConfirmed(
                    aggregate_id=booking.pk,
                    booking_id=booking.pk,
                    resource_id=booking.resource_id,
                    requester_id=booking.requester_id,
                    payment_id=charge.transaction_id,
                ))
                transaction.on_commit(lambda: sync_payment_method(
                    self.gateway, booking.payment, command.requester_id
                ))
        except (Unavailable, ResourceNotFound) as e:
            # Lost the race or the resource was withdrawn after charging
            self._compensate(command, charge, e)
        except Exception as e:
            raise self._orphan(command, charge, e) from e

        return booking

    def _compensate(self, command: CreateBookingCommand, charge: ChargeRecord, conflict: ReservationError):
        logger.warning(
            f"Resource {command.resource_id} no longer bookable while charging {charge.transaction_id} "
            f"({conflict.code}), refunding"
        )
        try:
            refund = self.gateway.refund(
                charge.transaction_id,
                amount=charge.amount,
                idempotency_key=f"{charge.idempotency_key}-compensation",
            )
        except (GatewayUnavailable, PaymentIndeterminate) as e:
            raise self._orphan(command, charge, e) from e

        logger.info(f"Compensating refund {refund.refund_id} issued for {charge.transaction_id}")
        raise conflict

    def _orphan(self, command: CreateBookingCommand, charge: ChargeRecord, cause: Exception) -> OrphanedPayment:
        case_id = None
        try:
            case = record_reconciliation_case(
                ReconciliationCase.Kind.ORPHANED_PAYMENT,
                idempotency_key=charge.idempotency_key,
                transaction_id=charge.transaction_id,
                amount=charge.amount,
                currency=charge.currency,
                payment_method_ref=charge.payment_method_ref,
                requester_id=command.requester_id,
                resource_id=command.resource_id,
                start=command.start,
                end=command.end,
                notes=f"{type(cause).__name__}: {cause}",
            )
            case_id = case.pk
        except Exception:
            logger.critical(
                f"Could not record reconciliation case for payment {charge.transaction_id}",
                exc_info=True,
            )

        logger.critical(
            f"ORPHANED PAYMENT {charge.transaction_id} ({charge.amount} {charge.currency}) "
            f"for resource {command.resource_id}, requester {command.requester_id}: {cause}. "
            f"Reconciliation case {case_id}"
        )
        return OrphanedPayment(charge.transaction_id, Decimal(charge.amount), case_id=case_id)


class UpdateBookingStatusHandler:
    """
    Handler for status changes

    Locks only the booking row. Publishes exactly one BookingConfirmed or
    BookingCanceled after commit. Cancelling never refunds.
    """

    def __init__(self, bus: Optional[MessageBus] = None):
        self.bus = bus

    def handle(self, command: UpdateBookingStatusCommand) -> Booking:
        logger.info(f"Changing booking {command.booking_id} status to {command.new_status}")

        with DjangoUnitOfWork(bus=self.bus) as uow:
            booking = lock_queryset_if_possible(Booking.objects.filter(pk=command.booking_id)).first()
            if booking is None:
                raise BookingNotFound(command.booking_id)

            changed = booking.transition_to(command.new_status, command.reason or "")
            booking.save(update_fields=changed)

            uow.add_event(self._event_for(booking, command))

        logger.info(f"Booking {booking.booking_code} is now {booking.status}")
        return booking

    def confirm(self, booking_id) -> Booking:
        return self.handle(UpdateBookingStatusCommand(booking_id, Booking.Status.CONFIRMED))

    def cancel(self, booking_id, reason: Optional[str] = None) -> Booking:
        return self.handle(UpdateBookingStatusCommand(booking_id, Booking.Status.CANCELED, reason))

    @staticmethod
    def _event_for(booking: Booking, command: UpdateBookingStatusCommand):
        if booking.status == Booking.Status.CONFIRMED:
            payment_id = (
                Payment.objects.filter(booking=booking).values_list('transaction_id', flat=True).first()
            )
            return BookingConfirmed(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                resource_id=booking.resource_id,
                requester_id=booking.requester_id,
                payment_id=payment_id,
            )
        return BookingCanceled(
            aggregate_id=booking.pk,
            booking_id=booking.pk,
            resource_id=booking.resource_id,
            requester_id=booking.requester_id,
            reason=command.reason,
        )
