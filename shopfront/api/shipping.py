"""
Shipping settings and rate calculation API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from shopfront.core.config import get_settings
from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.settings import ShippingCalculateRequest, ShippingSettingsUpdate
from shopfront.services.shipping import FlatItemWeight, calculate_shipping, parse_methods
from shopfront.services.tenant_database import TenantDatabase

router = APIRouter()


@router.get("/shipping-settings")
async def get_shipping_settings(
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    methods = TenantDatabase(session, context.tenant_id).get_shipping_methods()
    return {"data": {"shipping_methods": methods}}


@router.post("/shipping-settings")
async def save_shipping_settings(
    update: ShippingSettingsUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.SETTINGS_EDIT)),
    session: Session = Depends(get_session),
):
    """Replace the store's shipping methods"""
    methods = [method.model_dump(mode="json", exclude_none=True) for method in update.shipping_methods]
    record = TenantDatabase(session, context.tenant_id).save_shipping_methods(methods)
    return {"data": {"shipping_methods": record.shipping_methods}}


@router.post("/shipping/calculate")
async def calculate(
    request: ShippingCalculateRequest,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    """Price every eligible shipping method for a cart"""
    methods = parse_methods(TenantDatabase(session, context.tenant_id).get_shipping_methods())
    quote = calculate_shipping(
        request.items,
        methods,
        address=request.shipping_address,
        estimator=FlatItemWeight(get_settings().SHIPPING_ITEM_WEIGHT),
    )
    return {"data": quote}
