"""
Reservation Error Taxonomy

Every error raised by the reservation core derives from ReservationError.
Each class carries a stable ``code`` and the HTTP-equivalent ``status_code``
the request layer renders it with.

Client errors (NotFound, InvalidRange, Overlap, Unavailable, ...) go back to
the caller synchronously. Payment errors are also returned but are logged
with the gateway's raw reason. OrphanedPayment is never shown to the end
user as a failure: the charge did succeed and the booking is pending manual
confirmation.
"""

from decimal import Decimal
from typing import Any, List, Optional


class ReservationError(Exception):
    """Base class for all reservation core errors"""
    code = 'reservation_error'
    status_code = 500
    default_message = 'Reservation error'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.message}


# ===== Client errors =====

class ClientError(ReservationError):
    """Error caused by the request itself; retrying unchanged will not help"""
    code = 'client_error'
    status_code = 400


class NotFound(ClientError):
    code = 'not_found'
    status_code = 404
    default_message = 'Not found'


class ResourceNotFound(NotFound):
    code = 'resource_not_found'

    def __init__(self, resource_id: Any):
        self.resource_id = resource_id
        super().__init__(f"Resource with ID {resource_id} not found")


class BookingNotFound(NotFound):
    code = 'booking_not_found'

    def __init__(self, booking_id: Any):
        self.booking_id = booking_id
        super().__init__(f"Booking with ID {booking_id} not found")


class PaymentNotFound(NotFound):
    code = 'payment_not_found'

    def __init__(self, payment_id: Any):
        self.payment_id = payment_id
        super().__init__(f"Payment with ID {payment_id} not found")


class WindowNotFound(NotFound):
    code = 'window_not_found'

    def __init__(self, window_id: Any):
        self.window_id = window_id
        super().__init__(f"Availability window with ID {window_id} not found")


class InvalidRange(ClientError, ValueError):
    code = 'invalid_range'
    default_message = 'Start time must be before end time'


class Overlap(ClientError):
    """An availability window intersects an existing window"""
    code = 'window_overlap'
    status_code = 409
    default_message = 'This time slot overlaps with existing availability windows'


class Unavailable(ClientError):
    """The requested interval collides with an active booking"""
    code = 'unavailable'
    status_code = 409
    default_message = 'Resource is not available for the requested time slot'

    def __init__(self, message: Optional[str] = None, conflicts: Optional[List[Any]] = None):
        self.conflicts = list(conflicts or [])
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['conflicting_booking_ids'] = [getattr(c, 'pk', c) for c in self.conflicts]
        return data


class InvalidTransition(ClientError):
    code = 'invalid_transition'
    status_code = 409

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change booking status from {current} to {requested}")


class InvalidRefund(ClientError):
    code = 'invalid_refund'


# ===== Payment errors =====

class PaymentFailed(ReservationError):
    """The gateway declined the charge"""
    code = 'payment_failed'
    status_code = 402
    default_message = 'Payment failed'

    def __init__(self, reason: Optional[str] = None, gateway_code: Optional[str] = None):
        self.reason = reason or 'Unknown error'
        self.gateway_code = gateway_code
        super().__init__(f"Payment failed: {self.reason}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['gateway_code'] = self.gateway_code
        return data


class PaymentIndeterminate(ReservationError):
    """
    The gateway outcome is unknown (timeout, dropped connection)

    Must be reconciled before any retry with a new idempotency key,
    otherwise the customer may be charged twice.
    """
    code = 'payment_indeterminate'
    status_code = 502
    default_message = 'Payment outcome is unknown and will be reconciled'

    def __init__(self, message: Optional[str] = None, idempotency_key: Optional[str] = None,
                 transaction_id: Optional[str] = None):
        self.idempotency_key = idempotency_key
        self.transaction_id = transaction_id
        self.case_id = None
        super().__init__(message)


class GatewayUnavailable(ReservationError):
    """Transient gateway failure; the charge was not attempted"""
    code = 'gateway_unavailable'
    status_code = 503
    default_message = 'Payment gateway is temporarily unavailable'


class OrphanedPayment(ReservationError):
    """
    Charge succeeded but the booking could not be recorded

    Raised for the alerting path only. The reconciliation case id points
    to the record an operator (or the reconciliation task) resolves.
    """
    code = 'orphaned_payment'
    status_code = 202
    default_message = 'Payment received; booking is pending manual confirmation'

    def __init__(self, transaction_id: str, amount: Decimal, case_id: Optional[int] = None,
                 message: Optional[str] = None):
        self.transaction_id = transaction_id
        self.amount = amount
        self.case_id = case_id
        super().__init__(message)

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.default_message, 'reference': self.case_id}
