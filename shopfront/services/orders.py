"""
Checkout order creation and status changes
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
import structlog

from shopfront.core.exceptions import NotFoundError, UpstreamError, ValidationError
from shopfront.core.tenant_context import TenantContext
from shopfront.models import (
    Customer,
    FinancialStatus,
    FulfillmentStatus,
    Order,
    OrderLineItem,
    Product,
    ProductVariant,
)
from shopfront.models.base import utcnow
from shopfront.schemas.order import CustomerInfo, OrderCreate, OrderItemCreate
from shopfront.services.tenant_database import TenantDatabase

logger = structlog.get_logger(__name__)


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD- followed by the last 8 digits of the epoch milliseconds"""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"ORD-{str(millis)[-8:]}"


@dataclass
class InventoryFailure:
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID]
    quantity: int
    reason: str


@dataclass
class ReconciliationReport:
    """Side effects that did not complete after the order itself was stored"""
    line_items_saved: bool = True
    line_item_error: Optional[str] = None
    inventory_decremented: int = 0
    inventory_failures: List[InventoryFailure] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return self.line_items_saved and not self.inventory_failures


@dataclass
class OrderCreationResult:
    order: Order
    line_items: List[OrderLineItem]
    customer: Optional[Customer]
    reconciliation: ReconciliationReport


class OrderService:
    """Order writes for one tenant"""

    def __init__(self, session: Session, context: TenantContext):
        self.session = session
        self.context = context
        self.db = TenantDatabase(session, context.tenant_id)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def resolve_customer(self, info: CustomerInfo, shipping_address: Optional[dict]) -> Customer:
        """
        Find the customer placing the order, creating a guest record when needed

        Args:
            info: Customer block of the checkout payload
            shipping_address: Stored as the only address of a new guest

        Returns:
            The existing or newly flushed customer
        """
        if info.id is not None:
            try:
                return self.db.get_customer(info.id)
            except NotFoundError:
                raise ValidationError("Unknown customer id")

        existing = self.db.get_customer_by_email(info.email)
        if existing is not None:
            return existing

        logger.info("Creating guest customer", tenant_id=str(self.context.tenant_id))
        return self.db.create_customer(
            {
                "email": info.email,
                "first_name": info.first_name,
                "last_name": info.last_name,
                "phone": info.phone,
                "user_id": None,
                "addresses": [shipping_address] if shipping_address else [],
            },
            commit=False,
        )

    def _unique_order_number(self, now: datetime) -> str:
        candidate_time = now
        while True:
            number = generate_order_number(candidate_time)
            taken = self.session.exec(
                select(Order.id).where(Order.tenant_id == self.context.tenant_id, Order.order_number == number)
            ).first()
            if taken is None:
                return number
            candidate_time = candidate_time + timedelta(milliseconds=1)

    def create_order(self, payload: OrderCreate) -> OrderCreationResult:
        """Store the order, then its line items, then decrement stock"""
        tenant_id = self.context.tenant_id
        now = datetime.now(timezone.utc)
        totals = payload.totals

        try:
            customer = self.resolve_customer(payload.customer_info, payload.shipping_info)
            order = Order(
                tenant_id=tenant_id,
                customer_id=customer.id,
                order_number=self._unique_order_number(now),
                email=payload.customer_info.email,
                phone=payload.customer_info.phone,
                currency=(totals.currency or self.context.currency).upper(),
                subtotal_price=totals.subtotal,
                total_tax=totals.tax,
                total_discounts=totals.discounts,
                shipping_price=totals.shipping,
                total_price=totals.total,
                financial_status=payload.payment_info.status,
                fulfillment_status=FulfillmentStatus.UNFULFILLED,
                shipping_address=payload.shipping_info,
                billing_address=payload.billing_info or payload.shipping_info,
                shipping_method_id=payload.shipping_method_id,
                payment_method=payload.payment_info.method,
                payment_reference=payload.payment_info.reference,
                notes=payload.customer_info.notes,
                processed_at=utcnow(),
            )
            if order.financial_status == FinancialStatus.PAID:
                order.paid_at = order.processed_at
            customer.record_order(totals.total, order.processed_at)
            self.session.add(customer)
            self.session.add(order)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Order creation failed", tenant_id=str(tenant_id), error=str(exc))
            raise UpstreamError("Failed to create order")

        self.session.refresh(order)
        self.session.refresh(customer)
        logger.info("Order created", tenant_id=str(tenant_id), order_id=str(order.id), order_number=order.order_number)

        report = ReconciliationReport()
        line_items = self._save_line_items(order, payload.items, report)
        self._decrement_inventory(payload.items, report)

        if not report.is_clean:
            logger.warning(
                "Order created with incomplete side effects",
                order_id=str(order.id),
                line_items_saved=report.line_items_saved,
                inventory_failures=len(report.inventory_failures),
            )

        return OrderCreationResult(order=order, line_items=line_items, customer=customer, reconciliation=report)

    def _save_line_items(
        self,
        order: Order,
        items: List[OrderItemCreate],
        report: ReconciliationReport,
    ) -> List[OrderLineItem]:
        line_items = []
        for item in items:
            line_item = OrderLineItem(
                tenant_id=self.context.tenant_id,
                order_id=order.id,
                product_id=item.product_id,
                product_variant_id=item.variant_id,
                title=item.name,
                variant_title=item.variant_title,
                sku=item.sku,
                quantity=item.quantity,
                price=item.price,
            )
            line_item.calculate_line_total()
            line_items.append(line_item)

        try:
            self.session.add_all(line_items)
            self.session.commit()
        except SQLAlchemyError as exc:
            # The order stays; the failure is reported to the caller
            self.session.rollback()
            logger.warning("Failed to create line items, order kept", order_id=str(order.id), error=str(exc))
            report.line_items_saved = False
            report.line_item_error = "Line items could not be saved"
            return []

        for line_item in line_items:
            self.session.refresh(line_item)
        return line_items

    def _decrement_inventory(self, items: List[OrderItemCreate], report: ReconciliationReport) -> None:
        for item in items:
            if not item.track_inventory:
                continue
            try:
                reason = self._decrement_one(item)
            except SQLAlchemyError as exc:
                self.session.rollback()
                reason = f"Database error: {exc.__class__.__name__}"

            if reason is None:
                report.inventory_decremented += 1
                continue

            logger.warning(
                "Inventory decrement failed",
                product_id=str(item.product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
                reason=reason,
            )
            report.inventory_failures.append(InventoryFailure(
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                reason=reason,
            ))

    def _decrement_one(self, item: OrderItemCreate) -> Optional[str]:
        """Decrement one counter, floored at zero; returns a failure reason or None"""
        if item.variant_id is not None:
            target = self.session.exec(
                select(ProductVariant)
                .where(ProductVariant.id == item.variant_id, ProductVariant.tenant_id == self.context.tenant_id)
                .with_for_update()
            ).first()
            if target is None:
                return "Variant not found"
        else:
            target = self.session.exec(
                select(Product)
                .where(Product.id == item.product_id, Product.tenant_id == self.context.tenant_id)
                .with_for_update()
            ).first()
            if target is None:
                return "Product not found"

        target.inventory_quantity = max(0, (target.inventory_quantity or 0) - item.quantity)
        target.updated_at = utcnow()
        self.session.add(target)
        self.session.commit()
        return None

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def update_financial_status(
        self,
        order_id: uuid.UUID,
        new_status: FinancialStatus,
        reason: Optional[str] = None,
    ) -> Order:
        order = self.db.get_order(order_id)
        order.transition_financial(new_status, reason=reason)
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        logger.info("Order financial status changed", order_id=str(order.id), status=FinancialStatus(new_status).value)
        return order

    def update_fulfillment_status(self, order_id: uuid.UUID, new_status: FulfillmentStatus) -> Order:
        order = self.db.get_order(order_id)
        order.transition_fulfillment(new_status)
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        logger.info("Order fulfillment status changed", order_id=str(order.id), status=FulfillmentStatus(new_status).value)
        return order


def apply_payment_event(
    session: Session,
    order_id: uuid.UUID,
    new_status: FinancialStatus,
    reference: Optional[str] = None,
    commit: bool = True,
) -> Optional[Order]:
    """
    Gateway-driven payment state change for an order

    Re-delivered events that find the order already in the target state are
    no-ops. Returns None when the order does not exist.
    """
    order = session.get(Order, order_id)
    if order is None:
        return None

    new_status = FinancialStatus(new_status)
    if FinancialStatus(order.financial_status) == new_status:
        return order

    order.transition_financial(new_status)
    if reference and not order.payment_reference:
        order.payment_reference = reference
    session.add(order)
    if commit:
        session.commit()
        session.refresh(order)
    logger.info("Order payment state updated", order_id=str(order.id), status=new_status.value)
    return order
