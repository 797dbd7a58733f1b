"""
Subscription billing API endpoints and the Stripe webhook
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
import structlog

from shopfront.core.config import get_settings
from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.billing import (
    CancelSubscriptionRequest,
    CheckoutSessionCreate,
    CheckoutSessionRead,
    SubscriptionRead,
)
from shopfront.services.billing import BillingService
from shopfront.services.tenant_database import TenantDatabase

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/webhook")
async def stripe_webhook(request: Request, session: Session = Depends(get_session)):
    """
    Stripe webhook receiver

    The raw body is needed for signature verification, so it is read
    directly instead of being parsed into a model.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    service = BillingService(session, get_settings())
    event = service.verify_event(payload, signature)
    logger.info("Stripe webhook received", event_id=event["id"], event_type=event["type"])
    return service.handle_event(event)


@router.post("/checkout-session")
async def create_checkout_session(
    checkout: CheckoutSessionCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.BILLING_MANAGE)),
    session: Session = Depends(get_session),
):
    tenant = TenantDatabase(session, context.tenant_id).get_tenant()
    result = BillingService(session, get_settings()).create_checkout_session(
        tenant, checkout.price_id, checkout.success_url, checkout.cancel_url
    )
    return {"data": CheckoutSessionRead(**result)}


@router.post("/cancel-subscription")
async def cancel_subscription(
    cancel: CancelSubscriptionRequest,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.BILLING_MANAGE)),
    session: Session = Depends(get_session),
):
    """Cancel the subscription at the end of the current period"""
    record = BillingService(session, get_settings()).cancel_subscription(context.tenant_id, cancel.subscription_id)
    return {"data": SubscriptionRead.model_validate(record)}


@router.get("/subscription")
async def get_subscription(
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.BILLING_MANAGE)),
    session: Session = Depends(get_session),
):
    record = BillingService(session, get_settings()).get_subscription(context.tenant_id)
    return {
        "data": {
            "plan": context.plan,
            "subscription": SubscriptionRead.model_validate(record) if record else None,
        }
    }
