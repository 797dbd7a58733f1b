"""
Product and product variant API endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import Optional
import structlog
import uuid

from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.exceptions import NotFoundError
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import Product, ProductType, TenantUser
from shopfront.schemas.catalog import (
    InventoryRead,
    ProductCreate,
    ProductDetail,
    ProductRead,
    ProductUpdate,
    VariantCreate,
    VariantRead,
    VariantUpdate,
)
from shopfront.services.tenant_database import TenantDatabase

logger = structlog.get_logger(__name__)
router = APIRouter()


def _detail(db: TenantDatabase, product: Product, context: TenantContext) -> ProductDetail:
    summary = db.summarize(product, context.currency, context.low_stock_threshold)
    return ProductDetail(
        **ProductRead.model_validate(product).model_dump(),
        variants=[VariantRead.model_validate(variant) for variant in db.list_variants(product.id)],
        inventory=InventoryRead.model_validate(summary),
    )


def _lookup(db: TenantDatabase, product_ref: str) -> Product:
    """Products are addressable by id or by slug"""
    try:
        product_id = uuid.UUID(product_ref)
    except ValueError:
        return db.get_product_by_slug(product_ref)
    return db.get_product(product_id)


@router.get("")
async def list_products(
    category_id: Optional[uuid.UUID] = None,
    brand_id: Optional[uuid.UUID] = None,
    product_type: Optional[ProductType] = None,
    is_active: Optional[bool] = True,
    is_featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: str = "newest",
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    """List the store's products with their inventory roll-up"""
    db = TenantDatabase(session, context.tenant_id)
    products = db.list_products(
        category_id=category_id,
        brand_id=brand_id,
        product_type=product_type,
        is_active=is_active,
        is_featured=is_featured,
        search=search,
        sort_by=sort_by,
        skip=skip,
        limit=limit,
    )
    return {"data": [_detail(db, product, context) for product in products]}


@router.get("/low-stock")
async def list_low_stock_products(
    limit: int = Query(default=50, ge=1, le=200),
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_VIEW)),
    session: Session = Depends(get_session),
):
    """Stocked products at or below the store's low-stock threshold"""
    db = TenantDatabase(session, context.tenant_id)
    flagged = db.get_low_stock_products(context.currency, limit=limit)
    return {
        "data": [
            {
                "product": ProductRead.model_validate(entry["product"]),
                "inventory": InventoryRead.model_validate(entry["inventory"]),
            }
            for entry in flagged
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    data = product_data.model_dump(exclude={"variants"})
    variants = [variant.model_dump() for variant in product_data.variants]
    product = db.create_product(data, variants=variants)
    return {"data": _detail(db, product, context)}


@router.get("/{product_ref}")
async def get_product(
    product_ref: str,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    """Get one product by id or slug"""
    db = TenantDatabase(session, context.tenant_id)
    return {"data": _detail(db, _lookup(db, product_ref), context)}


@router.patch("/{product_id}")
async def update_product(
    product_id: uuid.UUID,
    changes: ProductUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    product = db.update_product(product_id, changes.model_dump(exclude_unset=True))
    return {"data": _detail(db, product, context)}


@router.delete("/{product_id}")
async def delete_product(
    product_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    """Deactivate a product"""
    db = TenantDatabase(session, context.tenant_id)
    product = db.delete_product(product_id)
    logger.info("Product deactivated", tenant_id=str(context.tenant_id), product_id=str(product.id))
    return {"data": ProductRead.model_validate(product)}


# ============================================================================
# Variants
# ============================================================================


@router.get("/{product_id}/variants")
async def list_variants(
    product_id: uuid.UUID,
    active_only: bool = False,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    db.get_product(product_id)
    variants = db.list_variants(product_id, active_only=active_only)
    return {"data": [VariantRead.model_validate(variant) for variant in variants]}


@router.post("/{product_id}/variants", status_code=status.HTTP_201_CREATED)
async def create_variant(
    product_id: uuid.UUID,
    variant_data: VariantCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    variant = db.create_variant(product_id, variant_data.model_dump())
    return {"data": VariantRead.model_validate(variant)}


@router.post("/{product_id}/variants/migrate")
async def migrate_legacy_variants(
    product_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    """Convert the product's legacy variants payload into variant rows"""
    db = TenantDatabase(session, context.tenant_id)
    variants = db.replace_legacy_variants(product_id)
    return {"data": [VariantRead.model_validate(variant) for variant in variants]}


@router.patch("/{product_id}/variants/{variant_id}")
async def update_variant(
    product_id: uuid.UUID,
    variant_id: uuid.UUID,
    changes: VariantUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    _variant_of(db, product_id, variant_id)
    variant = db.update_variant(variant_id, changes.model_dump(exclude_unset=True))
    return {"data": VariantRead.model_validate(variant)}


@router.delete("/{product_id}/variants/{variant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_variant(
    product_id: uuid.UUID,
    variant_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    _variant_of(db, product_id, variant_id)
    db.delete_variant(variant_id)


def _variant_of(db: TenantDatabase, product_id: uuid.UUID, variant_id: uuid.UUID):
    variant = db.get_variant(variant_id)
    if variant.product_id != product_id:
        raise NotFoundError("Variant not found")
    return variant
