"""
Platform subscription billing through Stripe

Webhook events are applied at most once: the event id is recorded in
webhook_events in the same transaction as the state it changes, and the
writes themselves are keyed by the Stripe subscription id.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
import json
import uuid

import stripe
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from shopfront.core.config import Settings
from shopfront.core.exceptions import InvalidTransitionError, NotFoundError, UpstreamError, ValidationError
from shopfront.models import FinancialStatus, Plan, Subscription, Tenant, WebhookEvent
from shopfront.models.base import utcnow
from shopfront.services.orders import apply_payment_event

logger = structlog.get_logger(__name__)

PRICE_PLAN_MAP = {
    "price_starter_free": Plan.STARTER.value,
    "price_pro_monthly": Plan.PRO.value,
    "price_enterprise_monthly": Plan.ENTERPRISE.value,
}

PROCESSED = "processed"
IGNORED = "ignored"


def plan_for_price(price_id: Optional[str], settings: Optional[Settings] = None) -> str:
    """Internal plan for a Stripe price id; unknown prices get the starter plan"""
    mapping = dict(PRICE_PLAN_MAP)
    if settings is not None:
        mapping.update(settings.STRIPE_PRICE_PLANS)
    return mapping.get(price_id or "", Plan.STARTER.value)


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Item access that works for dicts and StripeObjects alike"""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _first_item(subscription: Any) -> Any:
    items = _get(_get(subscription, "items"), "data", [])
    return items[0] if items else None


def subscription_price_id(subscription: Any) -> Optional[str]:
    return _get(_get(_first_item(subscription), "price"), "id")


def subscription_period(subscription: Any) -> Dict[str, Optional[datetime]]:
    """Period bounds, read from the subscription or (newer API versions) its first item"""
    item = _first_item(subscription)
    start = _get(subscription, "current_period_start", _get(item, "current_period_start"))
    end = _get(subscription, "current_period_end", _get(item, "current_period_end"))
    return {"current_period_start": _timestamp(start), "current_period_end": _timestamp(end)}


def invoice_subscription_id(invoice: Any) -> Optional[str]:
    subscription = _get(invoice, "subscription")
    if subscription is None:
        details = _get(_get(invoice, "parent"), "subscription_details")
        subscription = _get(details, "subscription")
    if isinstance(subscription, str) or subscription is None:
        return subscription
    return _get(subscription, "id")


class BillingService:
    """Stripe billing operations and webhook reconciliation"""

    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    # ------------------------------------------------------------------
    # Stripe access
    # ------------------------------------------------------------------

    def _configure_stripe(self) -> None:
        if not self.settings.STRIPE_SECRET_KEY:
            raise UpstreamError("Stripe is not configured")
        stripe.api_key = self.settings.STRIPE_SECRET_KEY

    def _retrieve_subscription(self, subscription: Any) -> Any:
        """Expanded subscription objects are used as-is, ids are fetched"""
        if subscription is None or not isinstance(subscription, str):
            return subscription
        self._configure_stripe()
        try:
            return stripe.Subscription.retrieve(subscription)
        except stripe.StripeError as exc:
            logger.error("Failed to retrieve subscription", subscription_id=subscription, error=str(exc))
            raise UpstreamError("Failed to retrieve subscription")

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def verify_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Check the Stripe-Signature header and decode the event; no state is touched"""
        secret = self.settings.STRIPE_WEBHOOK_SECRET
        if not signature or not secret:
            raise ValidationError("Invalid signature")

        try:
            text = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                text, signature, secret, tolerance=self.settings.STRIPE_WEBHOOK_TOLERANCE
            )
            event = json.loads(text)
        except (stripe.SignatureVerificationError, UnicodeDecodeError, ValueError) as exc:
            logger.warning("Stripe webhook signature verification failed", error=str(exc))
            raise ValidationError("Invalid signature")

        if not isinstance(event, dict) or not event.get("id") or not event.get("type"):
            raise ValidationError("Invalid payload")
        return event

    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply one verified event

        A previously recorded event id short-circuits before any write. The
        handlers and the event record commit together, so a failed handler
        leaves the id unrecorded and Stripe's retry runs it again.
        """
        event_id = event["id"]
        event_type = event["type"]

        if self.session.get(WebhookEvent, event_id) is not None:
            logger.info("Duplicate webhook event skipped", event_id=event_id, event_type=event_type)
            return {"received": True, "duplicate": True}

        handler = self._handlers().get(event_type)
        data_object = _get(_get(event, "data"), "object", {})
        tenant_id: Optional[uuid.UUID] = None

        try:
            if handler is None:
                logger.info(f"Unhandled event type: {event_type}")
                status = IGNORED
            else:
                status, tenant_id = handler(data_object)

            self.session.add(WebhookEvent(
                id=event_id,
                event_type=event_type,
                status=status,
                tenant_id=tenant_id,
                payload=event,
            ))
            self.session.commit()
        except IntegrityError:
            # A concurrent delivery of the same event committed first
            self.session.rollback()
            logger.info("Duplicate webhook event skipped", event_id=event_id, event_type=event_type)
            return {"received": True, "duplicate": True}
        except Exception:
            self.session.rollback()
            raise

        logger.info("Webhook event handled", event_id=event_id, event_type=event_type, status=status)
        return {"received": True}

    def _handlers(self) -> Dict[str, Callable[[Any], tuple]]:
        return {
            "checkout.session.completed": self._checkout_completed,
            "invoice.paid": self._invoice_paid,
            "invoice.payment_succeeded": self._invoice_paid,
            "invoice.payment_failed": self._invoice_payment_failed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
            "payment_intent.succeeded": self._order_payment(FinancialStatus.PAID),
            "payment_intent.canceled": self._order_payment(FinancialStatus.CANCELLED),
            "charge.refunded": self._order_payment(FinancialStatus.REFUNDED),
        }

    def _local_subscription(self, stripe_subscription_id: Optional[str]) -> Optional[Subscription]:
        if not stripe_subscription_id:
            return None
        return self.session.exec(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        ).first()

    def _checkout_completed(self, checkout: Any):
        if _get(checkout, "mode") != "subscription":
            return IGNORED, None

        raw_tenant_id = _get(_get(checkout, "metadata", {}), "tenantId")
        try:
            tenant = self.session.get(Tenant, uuid.UUID(str(raw_tenant_id))) if raw_tenant_id else None
        except ValueError:
            tenant = None
        if tenant is None:
            logger.warning("Checkout completed without a known tenant", tenant_id=raw_tenant_id)
            return IGNORED, None

        subscription = self._retrieve_subscription(_get(checkout, "subscription"))
        if subscription is None:
            return IGNORED, tenant.id

        plan = plan_for_price(subscription_price_id(subscription), self.settings)
        customer_id = _get(checkout, "customer")
        if not isinstance(customer_id, str):
            customer_id = _get(customer_id, "id")

        tenant.plan = plan
        tenant.stripe_customer_id = customer_id
        tenant.updated_at = utcnow()
        self.session.add(tenant)

        subscription_id = _get(subscription, "id")
        record = self.session.get(Subscription, subscription_id)
        if record is None:
            record = Subscription(
                id=subscription_id,
                tenant_id=tenant.id,
                stripe_subscription_id=subscription_id,
                plan_id=plan,
                status=_get(subscription, "status", "active"),
            )
        record.tenant_id = tenant.id
        record.stripe_customer_id = customer_id
        record.plan_id = plan
        record.status = _get(subscription, "status", record.status)
        record.cancel_at_period_end = bool(_get(subscription, "cancel_at_period_end", False))
        for key, value in subscription_period(subscription).items():
            setattr(record, key, value)
        record.updated_at = utcnow()
        self.session.add(record)

        logger.info("Tenant plan updated from checkout", tenant_id=str(tenant.id), plan=plan)
        return PROCESSED, tenant.id

    def _invoice_paid(self, invoice: Any):
        record = self._local_subscription(invoice_subscription_id(invoice))
        if record is None:
            return IGNORED, None

        subscription = self._retrieve_subscription(record.stripe_subscription_id)
        record.status = _get(subscription, "status", record.status)
        for key, value in subscription_period(subscription).items():
            if value is not None:
                setattr(record, key, value)
        record.updated_at = utcnow()
        self.session.add(record)
        return PROCESSED, record.tenant_id

    def _invoice_payment_failed(self, invoice: Any):
        record = self._local_subscription(invoice_subscription_id(invoice))
        if record is None:
            return IGNORED, None

        record.status = "past_due"
        record.updated_at = utcnow()
        self.session.add(record)
        logger.warning("Subscription payment failed", tenant_id=str(record.tenant_id), subscription_id=record.id)
        return PROCESSED, record.tenant_id

    def _subscription_updated(self, subscription: Any):
        record = self._local_subscription(_get(subscription, "id"))
        if record is None:
            return IGNORED, None

        record.status = _get(subscription, "status", record.status)
        record.cancel_at_period_end = bool(_get(subscription, "cancel_at_period_end", False))
        for key, value in subscription_period(subscription).items():
            if value is not None:
                setattr(record, key, value)
        record.updated_at = utcnow()
        self.session.add(record)
        return PROCESSED, record.tenant_id

    def _subscription_deleted(self, subscription: Any):
        record = self._local_subscription(_get(subscription, "id"))
        if record is None:
            return IGNORED, None

        tenant = self.session.get(Tenant, record.tenant_id)
        if tenant is not None:
            tenant.plan = Plan.STARTER.value
            tenant.updated_at = utcnow()
            self.session.add(tenant)

        record.status = "canceled"
        record.updated_at = utcnow()
        self.session.add(record)
        logger.info("Tenant downgraded after subscription deletion", tenant_id=str(record.tenant_id))
        return PROCESSED, record.tenant_id

    def _order_payment(self, new_status: FinancialStatus) -> Callable[[Any], tuple]:
        def handler(payment: Any):
            raw_order_id = _get(_get(payment, "metadata", {}), "order_id")
            if not raw_order_id:
                return IGNORED, None
            try:
                order_id = uuid.UUID(str(raw_order_id))
            except ValueError:
                return IGNORED, None

            try:
                order = apply_payment_event(
                    self.session, order_id, new_status, reference=_get(payment, "id"), commit=False
                )
            except InvalidTransitionError as exc:
                logger.warning("Payment event does not apply to order", order_id=str(order_id), error=exc.message)
                return IGNORED, None

            if order is None:
                logger.warning("Payment event for unknown order", order_id=str(order_id))
                return IGNORED, None
            return PROCESSED, order.tenant_id

        return handler

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------

    def create_checkout_session(self, tenant: Tenant, price_id: str, success_url: str, cancel_url: str) -> Dict[str, Any]:
        """Subscription-mode checkout; the Stripe customer is created on first use"""
        self._configure_stripe()
        try:
            if not tenant.stripe_customer_id:
                customer = stripe.Customer.create(
                    email=tenant.contact_email or None,
                    metadata={"tenantId": str(tenant.id), "tenantName": tenant.name},
                )
                tenant.stripe_customer_id = customer["id"]
                tenant.updated_at = utcnow()
                self.session.add(tenant)
                self.session.commit()
                self.session.refresh(tenant)

            checkout = stripe.checkout.Session.create(
                customer=tenant.stripe_customer_id,
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                mode="subscription",
                success_url=success_url,
                cancel_url=cancel_url,
                metadata={"tenantId": str(tenant.id)},
                allow_promotion_codes=True,
                billing_address_collection="required",
            )
        except stripe.StripeError as exc:
            logger.error("Error creating checkout session", tenant_id=str(tenant.id), error=str(exc))
            raise UpstreamError("Failed to create checkout session")

        return {"session_id": checkout["id"], "url": _get(checkout, "url")}

    def cancel_subscription(self, tenant_id: uuid.UUID, subscription_id: str) -> Subscription:
        """Cancel at period end, then mirror the flag locally"""
        record = self._local_subscription(subscription_id)
        if record is None or record.tenant_id != tenant_id:
            raise NotFoundError("Subscription not found")

        self._configure_stripe()
        try:
            stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)
        except stripe.StripeError as exc:
            logger.error("Error canceling subscription", subscription_id=subscription_id, error=str(exc))
            raise UpstreamError("Failed to cancel subscription")

        record.cancel_at_period_end = True
        record.updated_at = utcnow()
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.info("Subscription set to cancel at period end", tenant_id=str(tenant_id), subscription_id=subscription_id)
        return record

    def get_subscription(self, tenant_id: uuid.UUID) -> Optional[Subscription]:
        return self.session.exec(
            select(Subscription)
            .where(Subscription.tenant_id == tenant_id)
            .order_by(Subscription.created_at.desc())
        ).first()
