"""
Order API endpoints
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import Optional
import uuid

from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import FinancialStatus, FulfillmentStatus, TenantUser
from shopfront.schemas.order import (
    FinancialUpdate,
    FulfillmentUpdate,
    OrderCreate,
    OrderCreateResponse,
    OrderDetail,
    OrderLineItemRead,
    OrderRead,
    ReconciliationRead,
)
from shopfront.services.orders import OrderService
from shopfront.services.tenant_database import TenantDatabase

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    """
    Place a checkout order

    The order is stored first; line items and stock decrements follow and
    any that fail are listed under `reconciliation` instead of failing the
    request.
    """
    result = OrderService(session, context).create_order(order_data)
    response = OrderCreateResponse(
        **OrderRead.model_validate(result.order).model_dump(),
        line_items=[OrderLineItemRead.model_validate(item) for item in result.line_items],
        reconciliation=ReconciliationRead.model_validate(asdict(result.reconciliation)),
    )
    return {"data": response}


@router.get("")
async def list_orders(
    customer_id: Optional[uuid.UUID] = None,
    order_number: Optional[str] = None,
    financial_status: Optional[FinancialStatus] = None,
    fulfillment_status: Optional[FulfillmentStatus] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.ORDERS_VIEW)),
    session: Session = Depends(get_session),
):
    orders = TenantDatabase(session, context.tenant_id).list_orders(
        customer_id=customer_id,
        order_number=order_number,
        financial_status=financial_status.value if financial_status else None,
        fulfillment_status=fulfillment_status.value if fulfillment_status else None,
        skip=skip,
        limit=limit,
    )
    return {"data": [OrderRead.model_validate(order) for order in orders]}


@router.get("/{order_id}")
async def get_order(
    order_id: uuid.UUID,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.ORDERS_VIEW)),
    session: Session = Depends(get_session),
):
    db = TenantDatabase(session, context.tenant_id)
    order = db.get_order(order_id)
    detail = OrderDetail(
        **OrderRead.model_validate(order).model_dump(),
        line_items=[OrderLineItemRead.model_validate(item) for item in db.get_order_line_items(order.id)],
    )
    return {"data": detail}


@router.patch("/{order_id}/fulfillment")
async def update_fulfillment_status(
    order_id: uuid.UUID,
    update: FulfillmentUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.ORDERS_EDIT)),
    session: Session = Depends(get_session),
):
    order = OrderService(session, context).update_fulfillment_status(order_id, update.status)
    return {"data": OrderRead.model_validate(order)}


@router.patch("/{order_id}/financial")
async def update_financial_status(
    order_id: uuid.UUID,
    update: FinancialUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.ORDERS_EDIT)),
    session: Session = Depends(get_session),
):
    order = OrderService(session, context).update_financial_status(order_id, update.status, reason=update.reason)
    return {"data": OrderRead.model_validate(order)}
