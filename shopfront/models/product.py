"""
Product and product variant models
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, JSON, UniqueConstraint
from decimal import Decimal
from datetime import datetime
from typing import Any, List, Optional
from enum import Enum
import uuid

from shopfront.models.base import enum_column, utcnow


class ProductType(str, Enum):
    """How stock and price are tracked for a product"""
    SINGLE = "single"      # Stock and price on the product row
    VARIABLE = "variable"  # Stock and price live in the variants
    DIGITAL = "digital"    # No stock


class Product(SQLModel, table=True):
    """Sellable product of one tenant"""

    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_products_tenant_slug"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    category_id: Optional[uuid.UUID] = Field(default=None, foreign_key="categories.id", index=True, nullable=True)
    brand_id: Optional[uuid.UUID] = Field(default=None, foreign_key="brands.id", index=True, nullable=True)

    # Details
    name: str = Field(max_length=255)
    slug: str = Field(max_length=255, index=True)
    description: Optional[str] = Field(default=None)
    short_description: Optional[str] = Field(default=None, max_length=500)
    sku: Optional[str] = Field(default=None, max_length=100)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    images: List[Any] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    product_type: ProductType = Field(
        default=ProductType.SINGLE,
        sa_column=enum_column(ProductType, ProductType.SINGLE, index=True),
    )

    # Pricing (informational only when product_type is variable)
    price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    # Inventory (authoritative only when product_type is single)
    track_inventory: bool = Field(default=True)
    inventory_quantity: int = Field(default=0)
    allow_backorder: bool = Field(default=False)
    weight: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=3)

    # Variants payload of records created before product_variants existed
    legacy_variants: Optional[Any] = Field(default=None, sa_column=Column("variants", JSON, nullable=True))

    seo_title: Optional[str] = Field(default=None, max_length=255)
    seo_description: Optional[str] = Field(default=None, max_length=500)

    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    variants: List["ProductVariant"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ProductVariant.sort_order"}
    )


class ProductVariant(SQLModel, table=True):
    """SKU-level variation of a product with its own price and stock"""

    __tablename__ = "product_variants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)

    title: str = Field(max_length=255)
    sku: Optional[str] = Field(default=None, max_length=100)
    attributes: List[Any] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="[{'name': 'Size', 'value': 'M'}]"
    )

    price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    inventory_quantity: int = Field(default=0)
    weight: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=3)

    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    product: Optional[Product] = Relationship(back_populates="variants")
