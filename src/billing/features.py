"""
Feature gating by subscription tier.

FEATURE_MAP is empty: every feature is free until a key is given a
required tier here, e.g. {"advanced-export": "pro"}.
"""

from typing import Dict

from src.store.subscriptions import get_subscription_tier

TIERS = ("free", "pro", "enterprise")
TIER_RANK: Dict[str, int] = {tier: rank for rank, tier in enumerate(TIERS)}

FEATURE_MAP: Dict[str, str] = {}


def has_access(user_tier: str, required_tier: str) -> bool:
    return TIER_RANK.get(user_tier, 0) >= TIER_RANK.get(required_tier, 0)


def is_premium_feature(feature: str) -> bool:
    required = FEATURE_MAP.get(feature)
    return required is not None and required != "free"


def can_access_feature(user_id: int, feature: str) -> bool:
    required = FEATURE_MAP.get(feature)
    if required is None:
        return True
    return has_access(get_subscription_tier(user_id), required)
