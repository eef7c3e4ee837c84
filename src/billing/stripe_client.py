"""
Stripe access through the official SDK: checkout session, billing-portal
session, and verifying an incoming webhook event.

The secret key is passed per call (``api_key=``) so a key change in settings
takes effect without touching the SDK's module globals.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import stripe

from src.log import get_logger
from src.utils.errors import ProviderError, ProviderNotConfigured

logger = get_logger(__name__)


def is_payments_configured() -> bool:
    from config.settings import settings
    return settings.payments.is_configured()


class StripeClient:
    def __init__(self, secret_key: str):
        self.secret_key = secret_key

    def _require_key(self) -> None:
        if not self.secret_key:
            raise ProviderNotConfigured("Payments are not configured")

    def create_checkout_session(
        self,
        price_id: str,
        mode: str = "subscription",
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
        base_url: str = "http://localhost:3000",
    ) -> str:
        """Create a hosted checkout session and return its URL."""
        self._require_key()
        params: Dict[str, Any] = {
            "mode": mode,
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url or f"{base_url}/dashboard?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": cancel_url or f"{base_url}/pricing",
        }
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email
        try:
            session = stripe.checkout.Session.create(api_key=self.secret_key, **params)
        except stripe.StripeError as e:
            logger.error("Stripe checkout session failed: %s", e)
            raise ProviderError(f"Stripe request failed: {e}") from e
        return session.url

    def create_portal_session(
        self,
        customer_id: str,
        return_url: Optional[str] = None,
        base_url: str = "http://localhost:3000",
    ) -> str:
        """Create a billing-portal session and return its URL."""
        self._require_key()
        try:
            session = stripe.billing_portal.Session.create(
                api_key=self.secret_key,
                customer=customer_id,
                return_url=return_url or f"{base_url}/dashboard",
            )
        except stripe.StripeError as e:
            logger.error("Stripe portal session failed: %s", e)
            raise ProviderError(f"Stripe request failed: {e}") from e
        return session.url


def verify_webhook(
    payload: bytes,
    sig_header: Optional[str],
    secret: str,
    tolerance: int = 300,
) -> Dict[str, Any]:
    """
    Verify the Stripe-Signature header with ``stripe.Webhook.construct_event``
    and return the event body as a plain dict.

    Raises stripe.SignatureVerificationError for a bad or stale signature,
    ValueError for a missing header or a non-JSON body. Timestamps ahead of
    the local clock are accepted, as the SDK does.
    """
    if not sig_header:
        raise ValueError("Missing signature")
    stripe.Webhook.construct_event(payload, sig_header, secret, tolerance=tolerance)
    # handlers read plain dicts, not StripeObject
    return json.loads(payload.decode("utf-8"))


def get_stripe_client() -> StripeClient:
    from config.settings import settings
    return StripeClient(settings.payments.secret_key)
