"""
Tenant model - Multi-tenancy foundation
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import uuid

from shopfront.models.base import utcnow


class Plan(str, Enum):
    """Subscription plans, cheapest first"""
    STARTER = "starter"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class Tenant(SQLModel, table=True):
    """One independent storefront within the shared platform"""

    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=255, index=True)
    subdomain: str = Field(
        max_length=63,
        unique=True,
        index=True,
        description="Unique tenant label for subdomain routing"
    )
    domain: Optional[str] = Field(
        default=None,
        max_length=253,
        unique=True,
        index=True,
        nullable=True,
        description="Custom domain serving this storefront"
    )
    description: Optional[str] = Field(default=None, max_length=2000)
    logo_url: Optional[str] = Field(default=None, max_length=1000)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=50)

    # Owner is an auth provider user id
    owner_id: uuid.UUID = Field(index=True)

    # Settings: currency, locale, low_stock_threshold, ...
    settings: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    theme_config: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Plan
    plan: str = Field(default=Plan.STARTER.value, max_length=32, description="Subscription plan: starter, pro, enterprise")
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    is_active: bool = Field(default=True, index=True)

    def setting(self, key: str, default: Any = None) -> Any:
        """Read one entry of the settings blob"""
        return (self.settings or {}).get(key, default)

    def update_settings(self, changes: dict) -> None:
        """Merge changes into settings (reassigned so the JSON column is flagged dirty)"""
        merged = dict(self.settings or {})
        merged.update(changes)
        self.settings = merged
        self.updated_at = utcnow()
