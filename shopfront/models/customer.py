"""
Customer model - tenant-scoped shopper record
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON, UniqueConstraint
from decimal import Decimal
from datetime import datetime
from typing import Any, List, Optional
import uuid

from shopfront.models.base import utcnow


class Customer(SQLModel, table=True):
    """Shopper of one tenant; user_id is None for guest checkouts"""

    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uq_customers_tenant_email"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    user_id: Optional[uuid.UUID] = Field(default=None, index=True, nullable=True)

    email: str = Field(max_length=255, index=True)
    first_name: Optional[str] = Field(default=None, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    accepts_marketing: bool = Field(default=False)

    addresses: List[Any] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    notes: Optional[str] = Field(default=None, max_length=2000)

    # Order roll-up
    total_spent: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    orders_count: int = Field(default=0)
    last_order_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def record_order(self, total: Decimal, placed_at: datetime) -> None:
        """Fold one new order into the roll-up counters"""
        self.orders_count = (self.orders_count or 0) + 1
        self.total_spent = (self.total_spent or Decimal("0.00")) + total
        self.last_order_date = placed_at
        self.updated_at = placed_at
