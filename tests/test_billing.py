"""
Payments: webhook signature checks, the SDK-backed checkout/portal client,
event → subscription mapping and tier-based feature gating.
"""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import stripe

from src.billing import features
from src.billing.stripe_client import StripeClient, verify_webhook
from src.billing.webhooks import handle_event, resolve_tier
from src.store.subscriptions import get_subscription_by_user_id, get_subscription_tier, upsert_subscription
from src.utils.errors import ProviderError, ProviderNotConfigured

SECRET = "whsec_test"


def _sign(payload: bytes, timestamp: int, secret: str = SECRET) -> str:
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class TestVerifyWebhook:
    payload = json.dumps({"type": "ping", "data": {"object": {}}}).encode()

    def test_valid_signature(self):
        header = _sign(self.payload, int(time.time()))
        event = verify_webhook(self.payload, header, SECRET)
        assert event == {"type": "ping", "data": {"object": {}}}

    def test_wrong_secret(self):
        header = _sign(self.payload, int(time.time()), secret="other")
        with pytest.raises(stripe.SignatureVerificationError):
            verify_webhook(self.payload, header, SECRET)

    def test_tampered_payload(self):
        header = _sign(self.payload, int(time.time()))
        with pytest.raises(stripe.SignatureVerificationError):
            verify_webhook(self.payload + b" ", header, SECRET)

    def test_stale_timestamp(self):
        header = _sign(self.payload, int(time.time()) - 600)
        with pytest.raises(stripe.SignatureVerificationError):
            verify_webhook(self.payload, header, SECRET, tolerance=300)

    def test_future_timestamp_is_accepted(self):
        # sender clock ahead of ours
        header = _sign(self.payload, int(time.time()) + 600)
        assert verify_webhook(self.payload, header, SECRET, tolerance=300)["type"] == "ping"

    def test_missing_header(self):
        with pytest.raises(ValueError):
            verify_webhook(self.payload, None, SECRET)

    @pytest.mark.parametrize("header", ["v1=abc", "t=123", "t=abc,v1=def"])
    def test_malformed_header(self, header):
        with pytest.raises(stripe.SignatureVerificationError):
            verify_webhook(self.payload, header, SECRET)


class TestStripeClient:
    def test_checkout_uses_sdk(self, monkeypatch):
        create = MagicMock(return_value=SimpleNamespace(url="https://checkout.stripe.com/c/1"))
        monkeypatch.setattr(stripe.checkout.Session, "create", create)

        url = StripeClient("sk_test").create_checkout_session(
            "price_1", customer_email="writer@example.com", base_url="https://app.example.com",
        )

        assert url == "https://checkout.stripe.com/c/1"
        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test"
        assert kwargs["line_items"] == [{"price": "price_1", "quantity": 1}]
        assert kwargs["customer_email"] == "writer@example.com"
        assert kwargs["cancel_url"] == "https://app.example.com/pricing"
        assert "customer" not in kwargs

    def test_portal_uses_sdk(self, monkeypatch):
        create = MagicMock(return_value=SimpleNamespace(url="https://billing.stripe.com/p/1"))
        monkeypatch.setattr(stripe.billing_portal.Session, "create", create)
        url = StripeClient("sk_test").create_portal_session("cus_1", base_url="https://app.example.com")
        assert url == "https://billing.stripe.com/p/1"
        assert create.call_args.kwargs["return_url"] == "https://app.example.com/dashboard"

    def test_sdk_error_becomes_provider_error(self, monkeypatch):
        monkeypatch.setattr(
            stripe.checkout.Session, "create", MagicMock(side_effect=stripe.StripeError("boom"))
        )
        with pytest.raises(ProviderError):
            StripeClient("sk_test").create_checkout_session("price_1")

    def test_missing_key(self):
        with pytest.raises(ProviderNotConfigured):
            StripeClient("").create_portal_session("cus_1")


class TestResolveTier:
    def test_metadata_wins(self):
        assert resolve_tier({"metadata": {"tier": "enterprise"}}) == "enterprise"

    def test_price_lookup_key(self):
        sub = {"items": {"data": [{"price": {"lookup_key": "enterprise"}}]}}
        assert resolve_tier(sub) == "enterprise"

    def test_defaults_to_pro(self):
        assert resolve_tier({"metadata": {"tier": "gold"}}) == "pro"


class TestHandleEvent:
    def _checkout(self, email="writer@example.com"):
        return {
            "type": "checkout.session.completed",
            "data": {"object": {
                "mode": "subscription",
                "customer": "cus_1",
                "customer_email": email,
                "subscription": "sub_1",
            }},
        }

    def test_checkout_creates_active_pro(self, user):
        assert handle_event(self._checkout()) is True
        sub = get_subscription_by_user_id(user["id"])
        assert sub["status"] == "active"
        assert sub["tier"] == "pro"
        assert get_subscription_tier(user["id"]) == "pro"

    def test_checkout_for_unknown_customer(self, user):
        assert handle_event(self._checkout(email="ghost@example.com")) is False

    def test_payment_mode_checkout_ignored(self, user):
        event = self._checkout()
        event["data"]["object"]["mode"] = "payment"
        assert handle_event(event) is False

    def test_subscription_updated(self, user):
        handle_event(self._checkout())
        event = {
            "type": "customer.subscription.updated",
            "data": {"object": {
                "id": "sub_1",
                "customer": "cus_1",
                "status": "active",
                "metadata": {"tier": "enterprise"},
                "current_period_end": 1_767_225_600,
            }},
        }
        assert handle_event(event) is True
        sub = get_subscription_by_user_id(user["id"])
        assert sub["tier"] == "enterprise"
        assert sub["current_period_end"] == "2026-01-01T00:00:00Z"

    def test_past_due_drops_to_free(self, user):
        handle_event(self._checkout())
        event = {
            "type": "customer.subscription.updated",
            "data": {"object": {"id": "sub_1", "customer": "cus_1", "status": "past_due"}},
        }
        handle_event(event)
        assert get_subscription_by_user_id(user["id"])["tier"] == "free"
        assert get_subscription_tier(user["id"]) == "free"

    def test_subscription_deleted(self, user):
        handle_event(self._checkout())
        event = {"type": "customer.subscription.deleted", "data": {"object": {"id": "sub_1"}}}
        assert handle_event(event) is True
        sub = get_subscription_by_user_id(user["id"])
        assert sub["status"] == "canceled"
        assert sub["tier"] == "free"

    def test_unknown_event_type(self, db):
        assert handle_event({"type": "invoice.paid", "data": {"object": {}}}) is False


class TestFeatures:
    def test_tier_ranking(self):
        assert features.has_access("enterprise", "pro")
        assert features.has_access("pro", "pro")
        assert not features.has_access("free", "pro")

    def test_unmapped_feature_is_free(self, user):
        assert features.can_access_feature(user["id"], "anything")
        assert not features.is_premium_feature("anything")

    def test_mapped_feature_needs_tier(self, user, monkeypatch):
        monkeypatch.setitem(features.FEATURE_MAP, "advanced-export", "pro")
        assert features.is_premium_feature("advanced-export")
        assert not features.can_access_feature(user["id"], "advanced-export")

        upsert_subscription(user["id"], "cus_9", "sub_9", status="active", tier="pro")
        assert features.can_access_feature(user["id"], "advanced-export")
