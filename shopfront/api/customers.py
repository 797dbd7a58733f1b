"""
Customer API endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import Optional
import uuid

from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.catalog import CustomerCreate, CustomerRead, CustomerUpdate
from shopfront.services.tenant_database import TenantDatabase

router = APIRouter()


@router.get("")
async def list_customers(
    search: Optional[str] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.ORDERS_VIEW)),
    session: Session = Depends(get_session),
):
    customers = TenantDatabase(session, context.tenant_id).list_customers(search=search, skip=skip, limit=limit)
    return {"data": [CustomerRead.model_validate(customer) for customer in customers]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.CUSTOMERS_EDIT)),
    session: Session = Depends(get_session),
):
    """Create a customer; emails are unique per store"""
    customer = TenantDatabase(session, context.tenant_id).create_customer(customer_data.model_dump())
    return {"data": CustomerRead.model_validate(customer)}


@router.get("/{customer_id}")
async def get_customer(
    customer_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.ORDERS_VIEW)),
    session: Session = Depends(get_session),
):
    customer = TenantDatabase(session, context.tenant_id).get_customer(customer_id)
    return {"data": CustomerRead.model_validate(customer)}


@router.patch("/{customer_id}")
async def update_customer(
    customer_id: uuid.UUID,
    changes: CustomerUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.CUSTOMERS_EDIT)),
    session: Session = Depends(get_session),
):
    customer = TenantDatabase(session, context.tenant_id).update_customer(
        customer_id, changes.model_dump(exclude_unset=True)
    )
    return {"data": CustomerRead.model_validate(customer)}
