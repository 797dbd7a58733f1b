"""
Payment settings API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.settings import PaymentSettingsUpdate
from shopfront.services.payment_settings import PaymentSettingsService, allowed_methods, mask_methods

router = APIRouter()


@router.get("")
async def get_payment_settings(
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.SETTINGS_EDIT)),
    session: Session = Depends(get_session),
):
    """Configured payment methods with secret keys masked"""
    methods = PaymentSettingsService(session, context.tenant_id, context.plan).get_methods()
    return {
        "data": {
            "payment_methods": mask_methods(methods),
            "plan": context.plan,
            "available_methods": sorted(allowed_methods(context.plan)),
        }
    }


@router.post("")
async def save_payment_settings(
    update: PaymentSettingsUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.SETTINGS_EDIT)),
    session: Session = Depends(get_session),
):
    methods = [method.model_dump(exclude_none=True) for method in update.payment_methods]
    saved = PaymentSettingsService(session, context.tenant_id, context.plan).save_methods(methods)
    return {"data": {"payment_methods": mask_methods(saved)}}
