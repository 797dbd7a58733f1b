"""
Order Line Item model
Snapshot of what was bought, decoupled from live product data
"""

from sqlmodel import Field, SQLModel, Relationship
from decimal import Decimal
from datetime import datetime
from typing import Optional, TYPE_CHECKING
import uuid

from shopfront.models.base import utcnow

if TYPE_CHECKING:
    from shopfront.models.order import Order


class OrderLineItem(SQLModel, table=True):
    """Individual line item in an order"""

    __tablename__ = "order_line_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)

    # Plain ids, not foreign keys: the product may be edited or removed later
    product_id: Optional[uuid.UUID] = Field(default=None, index=True)
    product_variant_id: Optional[uuid.UUID] = Field(default=None, index=True)

    # Snapshot at submission time
    title: str = Field(max_length=255)
    variant_title: Optional[str] = Field(default=None, max_length=255)
    sku: Optional[str] = Field(default=None, max_length=100)
    quantity: int = Field(default=1)
    price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    total_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    created_at: datetime = Field(default_factory=utcnow)

    order: Optional["Order"] = Relationship(back_populates="line_items")

    def calculate_line_total(self) -> None:
        """Calculate line total based on quantity and price"""
        self.total_price = Decimal(self.price) * self.quantity
