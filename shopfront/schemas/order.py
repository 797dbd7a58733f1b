"""
API schemas for checkout orders and their line items
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import uuid

from shopfront.models.order import FinancialStatus, FulfillmentStatus


class CustomerInfo(BaseModel):
    id: Optional[uuid.UUID] = None
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class PaymentInfo(BaseModel):
    method: Optional[str] = None
    status: FinancialStatus = FinancialStatus.PENDING
    reference: Optional[str] = None


class OrderItemCreate(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    name: str = Field(min_length=1, max_length=255)
    variant_title: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0)
    track_inventory: bool = False


class OrderTotals(BaseModel):
    subtotal: Decimal = Field(ge=0)
    tax: Decimal = Field(default=Decimal("0.00"), ge=0)
    shipping: Decimal = Field(default=Decimal("0.00"), ge=0)
    discounts: Decimal = Field(default=Decimal("0.00"), ge=0)
    total: Decimal = Field(ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class OrderCreate(BaseModel):
    customer_info: CustomerInfo
    shipping_info: Optional[Dict[str, Any]] = None
    billing_info: Optional[Dict[str, Any]] = None
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)
    shipping_method_id: Optional[str] = None
    items: List[OrderItemCreate] = Field(min_length=1)
    totals: OrderTotals


class FulfillmentUpdate(BaseModel):
    status: FulfillmentStatus


class FinancialUpdate(BaseModel):
    status: FinancialStatus
    reason: Optional[str] = Field(default=None, max_length=500)


class OrderLineItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_variant_id: Optional[uuid.UUID] = None
    title: str
    variant_title: Optional[str] = None
    sku: Optional[str] = None
    quantity: int
    price: Decimal
    total_price: Decimal


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    customer_id: Optional[uuid.UUID] = None
    order_number: str
    email: str
    phone: Optional[str] = None
    currency: str
    subtotal_price: Decimal
    total_tax: Decimal
    total_discounts: Decimal
    shipping_price: Decimal
    total_price: Decimal
    financial_status: FinancialStatus
    fulfillment_status: FulfillmentStatus
    shipping_address: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    shipping_method_id: Optional[str] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    fulfilled_at: Optional[datetime] = None


class OrderDetail(OrderRead):
    line_items: List[OrderLineItemRead] = Field(default_factory=list)


class InventoryFailureRead(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    quantity: int
    reason: str


class ReconciliationRead(BaseModel):
    line_items_saved: bool
    line_item_error: Optional[str] = None
    inventory_decremented: int
    inventory_failures: List[InventoryFailureRead] = Field(default_factory=list)


class OrderCreateResponse(OrderDetail):
    reconciliation: ReconciliationRead
