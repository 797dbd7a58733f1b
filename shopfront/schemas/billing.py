"""
API schemas for subscription billing
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
import uuid


class CheckoutSessionCreate(BaseModel):
    price_id: str = Field(min_length=1)
    success_url: str = Field(min_length=1)
    cancel_url: str = Field(min_length=1)


class CheckoutSessionRead(BaseModel):
    session_id: str
    url: Optional[str] = None


class CancelSubscriptionRequest(BaseModel):
    subscription_id: str = Field(min_length=1)


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: uuid.UUID
    stripe_subscription_id: str
    stripe_customer_id: Optional[str] = None
    plan_id: str
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
