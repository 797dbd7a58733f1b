"""
Product category API endpoints
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
from shopfront.schemas.catalog import CategoryCreate, CategoryRead, CategoryUpdate
from shopfront.services.tenant_database import TenantDatabase

router = APIRouter()


@router.get("")
async def list_categories(
    is_active: Optional[bool] = True,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    """List categories ordered by sort order, then name"""
    categories = TenantDatabase(session, context.tenant_id).get_categories(is_active=is_active)
    return {"data": [CategoryRead.model_validate(category) for category in categories]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    category = TenantDatabase(session, context.tenant_id).create_category(category_data.model_dump())
    return {"data": CategoryRead.model_validate(category)}


@router.get("/slug/{slug}")
async def get_category_by_slug(
    slug: str,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    category = TenantDatabase(session, context.tenant_id).get_category_by_slug(slug)
    return {"data": CategoryRead.model_validate(category)}


@router.get("/{category_id}")
async def get_category(
    category_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    category = TenantDatabase(session, context.tenant_id).get_category(category_id)
    return {"data": CategoryRead.model_validate(category)}


@router.patch("/{category_id}")
async def update_category(
    category_id: uuid.UUID,
    changes: CategoryUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    category = TenantDatabase(session, context.tenant_id).update_category(
        category_id, changes.model_dump(exclude_unset=True)
    )
    return {"data": CategoryRead.model_validate(category)}


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    session: Session = Depends(get_session),
):
    """Delete a category that no product references"""
    TenantDatabase(session, context.tenant_id).delete_category(category_id)
