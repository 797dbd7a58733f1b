"""
Subscription mirror and processed webhook log
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import Optional
import uuid

from shopfront.models.base import utcnow


class Subscription(SQLModel, table=True):
    """Local mirror of a tenant's gateway subscription"""

    __tablename__ = "subscriptions"

    # Gateway subscription id doubles as primary key so upserts converge
    id: str = Field(primary_key=True, max_length=255)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    stripe_subscription_id: str = Field(max_length=255, unique=True, index=True)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255)
    plan_id: str = Field(max_length=32)
    status: str = Field(max_length=32, index=True)
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class WebhookEvent(SQLModel, table=True):
    """Webhook log for idempotency and debugging"""

    __tablename__ = "webhook_events"

    id: str = Field(primary_key=True, max_length=255, description="Gateway event id")
    provider: str = Field(default="stripe", max_length=50)
    event_type: str = Field(max_length=100, index=True)
    status: str = Field(max_length=50, description="processed or ignored")
    tenant_id: Optional[uuid.UUID] = Field(default=None, index=True)
    payload: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    processed_at: datetime = Field(default_factory=utcnow, index=True)
