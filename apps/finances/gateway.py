"""
Payment Gateway Adapter

Contract every payment provider integration implements. The booking saga
only ever talks to this interface; the concrete class is resolved from the
``BOOKING_PAYMENT_GATEWAY`` setting.

Outcomes of a charge are a tagged union:
- ChargeSucceeded(transaction_id)
- ChargeRequiresAction(transaction_id, continuation_token)
- ChargeFailed(reason, code)

Anything else is an exception: PaymentIndeterminate when the outcome is not
known, GatewayUnavailable when the request provably never reached the
provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union
import logging

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeSucceeded:
    transaction_id: str
    kind = 'succeeded'


@dataclass(frozen=True)
class ChargeRequiresAction:
    """Customer must complete an extra step (3-D Secure etc.)"""
    transaction_id: str
    continuation_token: Optional[str]
    kind = 'requires_action'


@dataclass(frozen=True)
class ChargeFailed:
    reason: str
    code: Optional[str] = None
    kind = 'failed'


ChargeResult = Union[ChargeSucceeded, ChargeRequiresAction, ChargeFailed]


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    status: str
    amount: Decimal


@dataclass(frozen=True)
class PaymentMethodDetails:
    id: str
    type: str = ''
    brand: str = ''
    last4: str = ''
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    funding: str = ''
    country: str = ''
    billing_postal_code: str = ''


def normalize_charge_result(result: ChargeResult) -> ChargeResult:
    """A success without a transaction id is never trusted"""
    if isinstance(result, (ChargeSucceeded, ChargeRequiresAction)) and not result.transaction_id:
        logger.error(f"Gateway reported {result.kind} without a transaction id")
        return ChargeFailed(reason='Gateway returned no transaction id', code='missing_transaction_id')
    return result


class PaymentGateway(ABC):
    """Abstract payment gateway"""

    @abstractmethod
    def charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method_ref: str,
        idempotency_key: str,
        metadata: Optional[dict] = None,
    ) -> ChargeResult:
        """
        Charge ``amount`` (major units) to the payment method

        Repeating the call with the same ``idempotency_key`` returns the
        outcome of the first call and never charges twice.
        """

    @abstractmethod
    def refund(
        self,
        transaction_id: str,
        amount: Optional[Decimal] = None,
        idempotency_key: Optional[str] = None,
    ) -> RefundResult:
        """Refund ``amount`` (or everything when None) of a charge"""

    @abstractmethod
    def lookup(self, idempotency_key: str) -> Optional[ChargeResult]:
        """Outcome of an earlier charge attempt, or None if the gateway never saw it"""

    @abstractmethod
    def describe_payment_method(self, payment_method_ref: str) -> PaymentMethodDetails:
        """Card/wallet metadata for caching next to the payment"""


def get_payment_gateway() -> PaymentGateway:
    """Instantiate the gateway configured in settings.BOOKING_PAYMENT_GATEWAY"""
    gateway_class = import_string(settings.BOOKING_PAYMENT_GATEWAY)
    return gateway_class()
