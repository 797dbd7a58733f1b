"""
Per-tenant shipping and payment method configuration
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import Any, List, Optional
import uuid

from shopfront.models.base import utcnow


class TenantShippingSettings(SQLModel, table=True):
    """Ordered list of shipping method definitions"""

    __tablename__ = "tenant_shipping_settings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", unique=True, index=True)
    shipping_methods: List[Any] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class TenantPaymentSettings(SQLModel, table=True):
    """Payment methods a tenant accepts, with their gateway keys"""

    __tablename__ = "tenant_payment_settings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", unique=True, index=True)
    payment_methods: List[Any] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
