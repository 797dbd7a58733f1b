"""
API schemas for products, variants, categories, brands and customers
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import uuid

from shopfront.models.product import ProductType

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# ============================================================================
# Variant Schemas
# ============================================================================


class VariantCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    sku: Optional[str] = None
    attributes: List[Dict[str, Any]] = Field(default_factory=list)
    price: Optional[Decimal] = Field(default=None, ge=0)
    compare_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    inventory_quantity: int = 0
    weight: Optional[Decimal] = Field(default=None, ge=0)
    sort_order: Optional[int] = None
    is_active: bool = True


class VariantUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sku: Optional[str] = None
    attributes: Optional[List[Dict[str, Any]]] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    compare_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    inventory_quantity: Optional[int] = None
    weight: Optional[Decimal] = Field(default=None, ge=0)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class VariantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    title: str
    sku: Optional[str] = None
    attributes: List[Any]
    price: Decimal
    compare_price: Optional[Decimal] = None
    inventory_quantity: int
    weight: Optional[Decimal] = None
    sort_order: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


# ============================================================================
# Product Schemas
# ============================================================================


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    sku: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    tags: List[str] = Field(default_factory=list)
    images: List[Any] = Field(default_factory=list)
    product_type: ProductType = ProductType.SINGLE
    price: Decimal = Field(default=Decimal("0.00"), ge=0)
    compare_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    track_inventory: bool = True
    inventory_quantity: int = 0
    allow_backorder: bool = False
    weight: Optional[Decimal] = Field(default=None, ge=0)
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False
    variants: List[VariantCreate] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    sku: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    tags: Optional[List[str]] = None
    images: Optional[List[Any]] = None
    product_type: Optional[ProductType] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    compare_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    track_inventory: Optional[bool] = None
    inventory_quantity: Optional[int] = None
    allow_backorder: Optional[bool] = None
    weight: Optional[Decimal] = Field(default=None, ge=0)
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None


class InventoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    status: str
    is_low_stock: bool
    is_out_of_stock: bool
    active_variants: int
    price_display: str


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    name: str
    slug: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    sku: Optional[str] = None
    tags: List[str]
    images: List[Any]
    product_type: ProductType
    price: Decimal
    compare_price: Optional[Decimal] = None
    track_inventory: bool
    inventory_quantity: int
    allow_backorder: bool
    weight: Optional[Decimal] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    is_active: bool
    is_featured: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProductDetail(ProductRead):
    variants: List[VariantRead] = Field(default_factory=list)
    inventory: Optional[InventoryRead] = None


# ============================================================================
# Category / Brand Schemas
# ============================================================================


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    sort_order: int
    is_active: bool
    created_at: datetime


class BrandCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class BrandRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    sort_order: int
    is_active: bool
    created_at: datetime


# ============================================================================
# Customer Schemas
# ============================================================================


class CustomerCreate(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    accepts_marketing: bool = False
    addresses: List[Dict[str, Any]] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    accepts_marketing: Optional[bool] = None
    addresses: Optional[List[Dict[str, Any]]] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    accepts_marketing: bool
    addresses: List[Any]
    tags: List[str]
    notes: Optional[str] = None
    total_spent: Decimal
    orders_count: int
    last_order_date: Optional[datetime] = None
    created_at: datetime
