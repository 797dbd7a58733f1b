"""
API schemas for shipping and payment configuration
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from shopfront.services.shipping import CartLine, ShippingAddress, ShippingMethodConfig


class ShippingSettingsUpdate(BaseModel):
    shipping_methods: List[ShippingMethodConfig]


class ShippingCalculateRequest(BaseModel):
    items: List[CartLine] = Field(min_length=1)
    shipping_address: Optional[ShippingAddress] = None


class PaymentMethodSetting(BaseModel):
    """One payment method entry; provider-specific blocks pass through untouched"""
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    name: Optional[str] = None
    enabled: bool = False
    requires_keys: Optional[bool] = None
    keys: Optional[Dict[str, Any]] = None
    bank_details: Optional[Dict[str, Any]] = None
    description: Optional[str] = None


class PaymentSettingsUpdate(BaseModel):
    payment_methods: List[PaymentMethodSetting]
