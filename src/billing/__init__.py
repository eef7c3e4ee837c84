"""Subscription tiers, feature gating and the payments provider."""

from src.billing.features import FEATURE_MAP, TIER_RANK, can_access_feature, has_access, is_premium_feature
from src.billing.stripe_client import StripeClient, get_stripe_client, is_payments_configured
from src.billing.webhooks import handle_event

__all__ = [
    "FEATURE_MAP",
    "TIER_RANK",
    "StripeClient",
    "can_access_feature",
    "get_stripe_client",
    "handle_event",
    "has_access",
    "is_payments_configured",
    "is_premium_feature",
]
