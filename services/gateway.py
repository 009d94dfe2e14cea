"""Payment provider boundary (Stripe Checkout).

All amounts crossing this boundary are integers in the currency's smallest
unit. Callers get a :class:`PaymentGateway` from :func:`get_gateway` and pass
it explicitly to the checkout functions, so tests can swap in a fake.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import stripe
from flask import current_app

from utils.errors import GatewayError

logger = logging.getLogger(__name__)

# The booking fee is non-refundable, so deferred/instalment methods are not offered for it.
DEPOSIT_PAYMENT_METHODS = ["card"]
DEFAULT_PAYMENT_METHODS = ["card", "klarna", "afterpay_clearpay"]


def payment_methods_for(payment_type: str) -> list[str]:
    if payment_type == "DEPOSIT":
        return list(DEPOSIT_PAYMENT_METHODS)
    return list(DEFAULT_PAYMENT_METHODS)


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


class PaymentGateway:
    """Abstract payment gateway interface."""

    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        description: str,
        payment_type: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        raise NotImplementedError

    def verify_and_parse_event(self, raw_body: bytes, signature_header: str | None) -> dict[str, Any]:
        raise NotImplementedError

    def fetch_receipt_url(self, payment_reference: str) -> str | None:
        raise NotImplementedError


class StripePaymentGateway(PaymentGateway):
    """Stripe-backed implementation of the payment gateway."""

    def __init__(self, *, secret_key: str | None, webhook_secret: str | None) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    def _require_secret_key(self) -> str:
        if not self._secret_key:
            raise GatewayError("STRIPE_SECRET_KEY is not configured")
        return self._secret_key

    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        description: str,
        payment_type: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        api_key = self._require_secret_key()
        if not isinstance(amount, int) or amount <= 0:
            raise GatewayError(f"Refusing to open a session for amount {amount!r}")

        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": payment_methods_for(payment_type),
            "line_items": [{
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {
                        "name": product_name,
                        "description": description,
                        "metadata": {"packageId": metadata.get("packageId", "")},
                    },
                    "unit_amount": amount,
                },
                "quantity": 1,
            }],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            # copy onto the PaymentIntent so it shows on the charge too
            "payment_intent_data": {"metadata": metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(
                api_key=api_key,
                idempotency_key=idempotency_key,
                **params,
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"Stripe session creation failed: {exc}") from exc

        return CheckoutSession(session_id=session.id, url=session.url)

    def verify_and_parse_event(self, raw_body: bytes, signature_header: str | None) -> dict[str, Any]:
        if not self._webhook_secret:
            raise GatewayError("STRIPE_WEBHOOK_SECRET is not configured")
        if not signature_header:
            raise GatewayError("Missing Stripe signature")

        try:
            stripe.Webhook.construct_event(raw_body, signature_header, self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise GatewayError(f"Invalid webhook signature: {exc}") from exc
        except ValueError as exc:
            raise GatewayError(f"Invalid webhook payload: {exc}") from exc

        # the signature covers the raw bytes; hand callers plain dicts
        body = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
        return json.loads(body)

    def fetch_receipt_url(self, payment_reference: str) -> str | None:
        if not payment_reference:
            return None
        api_key = self._require_secret_key()
        try:
            intent = stripe.PaymentIntent.retrieve(
                payment_reference,
                api_key=api_key,
                expand=["latest_charge"],
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"Could not load payment {payment_reference}: {exc}") from exc

        charge = getattr(intent, "latest_charge", None)
        if not charge or isinstance(charge, str):
            return None
        return getattr(charge, "receipt_url", None)


def build_gateway(config) -> StripePaymentGateway:
    return StripePaymentGateway(
        secret_key=config.get("STRIPE_SECRET_KEY"),
        webhook_secret=config.get("STRIPE_WEBHOOK_SECRET"),
    )


def get_gateway() -> PaymentGateway:
    return current_app.extensions["payment_gateway"]


__all__ = [
    "CheckoutSession",
    "PaymentGateway",
    "StripePaymentGateway",
    "build_gateway",
    "get_gateway",
    "payment_methods_for",
]
