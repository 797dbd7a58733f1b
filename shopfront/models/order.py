"""
Order model for storefront checkouts
Financial and fulfillment status are independent state machines
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, JSON, UniqueConstraint, event, inspect
from datetime import datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from decimal import Decimal
from enum import Enum
import uuid

from shopfront.core.exceptions import InvalidTransitionError
from shopfront.models.base import enum_column, utcnow

if TYPE_CHECKING:
    from shopfront.models.order_line_item import OrderLineItem


class FinancialStatus(str, Enum):
    """Payment state of an order"""
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class FulfillmentStatus(str, Enum):
    """Shipping state of an order's goods"""
    UNFULFILLED = "unfulfilled"
    PARTIAL = "partial"
    FULFILLED = "fulfilled"


FINANCIAL_TRANSITIONS: Dict[FinancialStatus, List[FinancialStatus]] = {
    FinancialStatus.PENDING: [FinancialStatus.PAID, FinancialStatus.CANCELLED],
    FinancialStatus.PAID: [FinancialStatus.REFUNDED],
    FinancialStatus.REFUNDED: [],   # Final state
    FinancialStatus.CANCELLED: [],  # Final state
}

FULFILLMENT_TRANSITIONS: Dict[FulfillmentStatus, List[FulfillmentStatus]] = {
    FulfillmentStatus.UNFULFILLED: [FulfillmentStatus.PARTIAL, FulfillmentStatus.FULFILLED],
    FulfillmentStatus.PARTIAL: [FulfillmentStatus.FULFILLED],
    FulfillmentStatus.FULFILLED: [],
}


class Order(SQLModel, table=True):
    """Storefront order with address and total snapshots"""

    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_number"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True, nullable=True)

    # Assigned once at creation, never changed
    order_number: str = Field(max_length=32, index=True)

    email: str = Field(max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    currency: str = Field(default="USD", max_length=3)

    # Financial amounts (snapshots)
    subtotal_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_tax: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_discounts: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    shipping_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    financial_status: FinancialStatus = Field(
        default=FinancialStatus.PENDING,
        sa_column=enum_column(FinancialStatus, FinancialStatus.PENDING, index=True),
    )
    fulfillment_status: FulfillmentStatus = Field(
        default=FulfillmentStatus.UNFULFILLED,
        sa_column=enum_column(FulfillmentStatus, FulfillmentStatus.UNFULFILLED, index=True),
    )

    # Address snapshots
    shipping_address: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    billing_address: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    shipping_method_id: Optional[str] = Field(default=None, max_length=100)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    payment_reference: Optional[str] = Field(default=None, max_length=255, index=True)
    notes: Optional[str] = Field(default=None, max_length=2000)

    # Status timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = Field(default=None, max_length=500)
    fulfilled_at: Optional[datetime] = None

    line_items: List["OrderLineItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    # Financial state machine
    def can_transition_financial(self, new_status: FinancialStatus) -> bool:
        current = FinancialStatus(self.financial_status)
        return FinancialStatus(new_status) in FINANCIAL_TRANSITIONS[current]

    def transition_financial(self, new_status: FinancialStatus, reason: Optional[str] = None) -> None:
        """Move the payment axis; raises InvalidTransitionError when not allowed"""
        new_status = FinancialStatus(new_status)
        if not self.can_transition_financial(new_status):
            raise InvalidTransitionError(
                f"Cannot change financial status from {FinancialStatus(self.financial_status).value} to {new_status.value}"
            )
        now = utcnow()
        self.financial_status = new_status
        if new_status == FinancialStatus.PAID:
            self.paid_at = now
        elif new_status == FinancialStatus.REFUNDED:
            self.refunded_at = now
        elif new_status == FinancialStatus.CANCELLED:
            self.cancelled_at = now
            self.cancel_reason = reason
        self.updated_at = now

    # Fulfillment state machine
    def can_transition_fulfillment(self, new_status: FulfillmentStatus) -> bool:
        current = FulfillmentStatus(self.fulfillment_status)
        return FulfillmentStatus(new_status) in FULFILLMENT_TRANSITIONS[current]

    def transition_fulfillment(self, new_status: FulfillmentStatus) -> None:
        """Move the shipping axis; raises InvalidTransitionError when not allowed"""
        new_status = FulfillmentStatus(new_status)
        if not self.can_transition_fulfillment(new_status):
            raise InvalidTransitionError(
                f"Cannot change fulfillment status from {FulfillmentStatus(self.fulfillment_status).value} to {new_status.value}"
            )
        now = utcnow()
        self.fulfillment_status = new_status
        if new_status == FulfillmentStatus.FULFILLED:
            self.fulfilled_at = now
        self.updated_at = now


@event.listens_for(Order, "before_update")
def _order_number_is_immutable(mapper, connection, target: Order) -> None:
    history = inspect(target).attrs.order_number.history
    if history.deleted and history.deleted[0] != target.order_number:
        raise InvalidTransitionError("Order number cannot be changed once assigned")
