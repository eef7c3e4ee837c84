"""
결제 API: 체크아웃, 빌링 포털, 웹훅, 기능 접근 확인.

Every endpoint except /access answers 503 while payments are unconfigured.
"""

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from config.settings import settings
from src.api.routes_auth import get_current_user_id, get_optional_user_id
from src.api.schemas import CheckoutRequest
from src.billing import can_access_feature, get_stripe_client, handle_event, is_payments_configured
from src.billing.stripe_client import verify_webhook
from src.log import get_logger
from src.store.subscriptions import get_subscription_by_user_id
from src.store.users import get_user_by_id
from src.utils.errors import ProviderNotConfigured

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def _require_payments() -> None:
    if not is_payments_configured():
        raise ProviderNotConfigured("Payments are not configured")


@router.post("/checkout")
def checkout(body: CheckoutRequest, user_id: int = Depends(get_current_user_id)) -> dict:
    _require_payments()
    user = get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    existing = get_subscription_by_user_id(user_id)
    customer_id = existing["stripe_customer_id"] if existing else None
    url = get_stripe_client().create_checkout_session(
        body.price_id,
        mode=body.mode,
        customer_id=customer_id,
        customer_email=None if customer_id else user["email"],
        success_url=body.success_url,
        cancel_url=body.cancel_url,
        base_url=settings.api.app_url,
    )
    return {"url": url}


@router.post("/portal")
def portal(user_id: int = Depends(get_current_user_id)) -> dict:
    _require_payments()
    subscription = get_subscription_by_user_id(user_id)
    if not subscription or not subscription.get("stripe_customer_id"):
        raise HTTPException(status_code=404, detail="No billing account found")
    url = get_stripe_client().create_portal_session(
        subscription["stripe_customer_id"], base_url=settings.api.app_url
    )
    return {"url": url}


@router.post("/webhook")
async def webhook(request: Request, stripe_signature: str | None = Header(None)) -> dict:
    _require_payments()
    payload = await request.body()
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing signature")
    try:
        event = verify_webhook(
            payload,
            stripe_signature,
            settings.payments.webhook_secret,
            tolerance=settings.payments.webhook_tolerance_seconds,
        )
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning("webhook rejected: %s", e)
        raise HTTPException(status_code=400, detail="Invalid signature")
    handle_event(event)
    return {"received": True}


@router.get("/access")
def access(feature: str | None = None, user_id: int | None = Depends(get_optional_user_id)) -> dict:
    if not is_payments_configured() or not feature:
        return {"has_access": True}
    if user_id is None:
        return {"has_access": False}
    return {"has_access": can_access_feature(user_id, feature)}
