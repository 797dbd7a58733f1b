"""
Brand API endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import Optional
import uuid

from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.catalog import BrandCreate, BrandRead, BrandUpdate
from shopfront.services.tenant_database import TenantDatabase

router = APIRouter()


@router.get("")
async def list_brands(
    is_active: Optional[bool] = True,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    brands = TenantDatabase(session, context.tenant_id).get_brands(is_active=is_active)
    return {"data": [BrandRead.model_validate(brand) for brand in brands]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_brand(
    brand_data: BrandCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    brand = TenantDatabase(session, context.tenant_id).create_brand(brand_data.model_dump())
    return {"data": BrandRead.model_validate(brand)}


@router.get("/slug/{slug}")
async def get_brand_by_slug(
    slug: str,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    brand = TenantDatabase(session, context.tenant_id).get_brand_by_slug(slug)
    return {"data": BrandRead.model_validate(brand)}


@router.get("/{brand_id}")
async def get_brand(
    brand_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    brand = TenantDatabase(session, context.tenant_id).get_brand(brand_id)
    return {"data": BrandRead.model_validate(brand)}


@router.patch("/{brand_id}")
async def update_brand(
    brand_id: uuid.UUID,
    changes: BrandUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    brand = TenantDatabase(session, context.tenant_id).update_brand(brand_id, changes.model_dump(exclude_unset=True))
    return {"data": BrandRead.model_validate(brand)}


@router.delete("/{brand_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_brand(
    brand_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    TenantDatabase(session, context.tenant_id).delete_brand(brand_id)
