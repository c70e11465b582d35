"""Stripe implementation of the payment gateway contract."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

import stripe
from django.conf import settings  # type: ignore

from shared.domain.exceptions import GatewayUnavailable, PaymentIndeterminate
from shared.domain.value_objects import Money

from .gateway import (
    ChargeFailed,
    ChargeRequiresAction,
    ChargeResult,
    ChargeSucceeded,
    PaymentGateway,
    PaymentMethodDetails,
    RefundResult,
    normalize_charge_result,
)

logger = logging.getLogger(__name__)


def configure_stripe() -> None:
    """Apply API key, network timeout and retry count from settings."""

    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.default_http_client = stripe.RequestsClient(timeout=settings.PAYMENT_GATEWAY_TIMEOUT)
    stripe.max_network_retries = settings.PAYMENT_GATEWAY_MAX_RETRIES


class StripeGateway(PaymentGateway):
    """PaymentIntents are created and confirmed in a single call."""

    def __init__(self) -> None:
        configure_stripe()

    def charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method_ref: str,
        idempotency_key: str,
        metadata: Optional[dict] = None,
    ) -> ChargeResult:
        money = Money(amount, currency)
        intent_metadata = {key: str(value) for key, value in (metadata or {}).items()}
        intent_metadata["idempotency_key"] = idempotency_key

        try:
            intent = stripe.PaymentIntent.create(
                amount=money.minor_units,
                currency=money.currency,
                payment_method=payment_method_ref,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata=intent_metadata,
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as exc:
            logger.warning(f"Stripe declined charge {idempotency_key}: {exc.user_message or exc}")
            return ChargeFailed(reason=exc.user_message or str(exc), code=exc.code)
        except stripe.InvalidRequestError as exc:
            logger.warning(f"Stripe rejected charge {idempotency_key}: {exc}")
            return ChargeFailed(reason=str(exc), code=exc.code)
        except (stripe.RateLimitError, stripe.AuthenticationError, stripe.PermissionError) as exc:
            logger.error(f"Stripe unavailable for charge {idempotency_key}: {exc}")
            raise GatewayUnavailable(str(exc)) from exc
        except (stripe.APIConnectionError, stripe.APIError) as exc:
            logger.error(f"Stripe outcome unknown for charge {idempotency_key}: {exc}")
            raise PaymentIndeterminate(str(exc), idempotency_key=idempotency_key) from exc
        except stripe.StripeError as exc:
            logger.error(f"Unexpected Stripe error for charge {idempotency_key}: {exc}")
            raise PaymentIndeterminate(str(exc), idempotency_key=idempotency_key) from exc

        result = self._result_from_intent(intent)
        if result is None:
            raise PaymentIndeterminate(
                f"PaymentIntent {intent.id} is still {intent.status}",
                idempotency_key=idempotency_key,
                transaction_id=intent.id,
            )
        return normalize_charge_result(result)

    def refund(
        self,
        transaction_id: str,
        amount: Optional[Decimal] = None,
        idempotency_key: Optional[str] = None,
    ) -> RefundResult:
        params: dict = {"payment_intent": transaction_id}
        if amount is not None:
            params["amount"] = Money(amount).minor_units
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            refund = stripe.Refund.create(**params)
        except (stripe.RateLimitError, stripe.AuthenticationError, stripe.PermissionError) as exc:
            logger.error(f"Stripe unavailable for refund of {transaction_id}: {exc}")
            raise GatewayUnavailable(str(exc)) from exc
        except stripe.StripeError as exc:
            logger.error(f"Stripe refund of {transaction_id} failed: {exc}")
            raise PaymentIndeterminate(str(exc), idempotency_key=idempotency_key, transaction_id=transaction_id) from exc

        logger.info(f"Stripe refund {refund.id} for {transaction_id}: {refund.status}")
        return RefundResult(
            refund_id=refund.id,
            status=refund.status,
            amount=Money.from_minor_units(refund.amount).amount,
        )

    def lookup(self, idempotency_key: str) -> Optional[ChargeResult]:
        try:
            found = stripe.PaymentIntent.search(
                query=f"metadata['idempotency_key']:'{idempotency_key}'",
                limit=1,
            )
        except stripe.StripeError as exc:
            logger.error(f"Stripe lookup of {idempotency_key} failed: {exc}")
            raise GatewayUnavailable(str(exc)) from exc

        if not found.data:
            return None
        intent = found.data[0]
        result = self._result_from_intent(intent)
        if result is None:
            raise PaymentIndeterminate(
                f"PaymentIntent {intent.id} is still {intent.status}",
                idempotency_key=idempotency_key,
                transaction_id=intent.id,
            )
        return result

    def describe_payment_method(self, payment_method_ref: str) -> PaymentMethodDetails:
        try:
            method = stripe.PaymentMethod.retrieve(payment_method_ref)
        except stripe.StripeError as exc:
            raise GatewayUnavailable(str(exc)) from exc

        card = getattr(method, "card", None)
        billing = getattr(method, "billing_details", None)
        address = getattr(billing, "address", None)
        return PaymentMethodDetails(
            id=method.id,
            type=getattr(method, "type", None) or "",
            brand=getattr(card, "brand", None) or "",
            last4=getattr(card, "last4", None) or "",
            exp_month=getattr(card, "exp_month", None),
            exp_year=getattr(card, "exp_year", None),
            funding=getattr(card, "funding", None) or "",
            country=getattr(card, "country", None) or "",
            billing_postal_code=getattr(address, "postal_code", None) or "",
        )

    @staticmethod
    def _result_from_intent(intent) -> Optional[ChargeResult]:
        """None means the charge is still in flight."""

        if intent.status == "succeeded":
            return ChargeSucceeded(transaction_id=intent.id)
        if intent.status == "requires_action":
            return ChargeRequiresAction(transaction_id=intent.id, continuation_token=intent.client_secret)
        if intent.status == "processing":
            return None

        error = getattr(intent, "last_payment_error", None)
        reason = getattr(error, "message", None) or f"PaymentIntent status {intent.status}"
        return ChargeFailed(reason=reason, code=getattr(error, "code", None) or intent.status)
