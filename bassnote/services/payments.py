"""Payment provider boundary: create and look up checkout sessions (Stripe)."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

import stripe

from bassnote.core.config import Settings
from bassnote.core.errors import ProviderError

log = logging.getLogger("bassnote.payments")

PAID = "paid"


@dataclass(frozen=True)
class LineItem:
    name: str
    description: str
    unit_amount: int  # smallest currency unit (cents)
    currency: str
    quantity: int = 1


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str | None = None
    payment_status: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAID


class PaymentProvider(Protocol):
    def create_checkout_session(
        self,
        line_item: LineItem,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        ...

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        ...


def _to_checkout_session(sess) -> CheckoutSession:
    metadata = getattr(sess, "metadata", None) or {}
    if hasattr(metadata, "to_dict"):
        metadata = metadata.to_dict()
    return CheckoutSession(
        session_id=sess.id,
        url=getattr(sess, "url", None),
        payment_status=getattr(sess, "payment_status", None),
        metadata={str(k): str(v) for k, v in metadata.items()},
    )


class StripePaymentProvider:
    """Stripe Checkout in one-time payment mode.

    Calls are bounded by ``timeout`` seconds and never retried here; every
    ``stripe.StripeError`` (timeouts included) is raised as ``ProviderError``.
    """

    def __init__(
        self,
        secret_key: str,
        timeout: float = 10.0,
        client: stripe.StripeClient | None = None,
    ):
        # Own client: timeout and retry policy stay off the stripe module globals
        if client is None and secret_key:
            client = stripe.StripeClient(
                secret_key,
                http_client=stripe.RequestsClient(timeout=timeout),
                max_network_retries=0,
            )
        self._client = client

    def _ensure_configured(self) -> None:
        if self._client is None:
            raise ProviderError(
                "Payment provider is not configured.",
                detail="STRIPE_SECRET_KEY is missing",
            )

    def create_checkout_session(
        self,
        line_item: LineItem,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        self._ensure_configured()
        try:
            sess = self._client.checkout.sessions.create(
                params={
                    "mode": "payment",
                    "line_items": [
                        {
                            "price_data": {
                                "currency": line_item.currency,
                                "product_data": {
                                    "name": line_item.name,
                                    "description": line_item.description,
                                },
                                "unit_amount": line_item.unit_amount,
                            },
                            "quantity": line_item.quantity,
                        }
                    ],
                    "success_url": success_url,
                    "cancel_url": cancel_url,
                    "metadata": metadata,
                }
            )
        except stripe.StripeError as e:
            log.error("Stripe checkout session creation failed: %s", e)
            raise ProviderError("Unable to create checkout session.", detail=str(e)) from e
        return _to_checkout_session(sess)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        self._ensure_configured()
        try:
            sess = self._client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            log.error("Failed to retrieve Stripe session %s: %s", session_id, e)
            raise ProviderError("Invalid session ID or server error.", detail=str(e)) from e
        return _to_checkout_session(sess)


def build_payment_provider(settings: Settings) -> PaymentProvider:
    if not settings.stripe_secret_key:
        log.warning("STRIPE_SECRET_KEY is not set: checkout and verification will fail")
    return StripePaymentProvider(settings.stripe_secret_key, timeout=settings.stripe_timeout_seconds)
