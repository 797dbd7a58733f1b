"""
Current store API endpoints: profile, settings and custom domain
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from shopfront.core.config import get_settings
from shopfront.core.database import get_session
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.tenant import DomainUpdate, TenantRead, TenantSettingsUpdate
from shopfront.services.domain_resolver import tenant_canonical_url
from shopfront.services.tenant_database import TenantDatabase
from shopfront.services.tenants import TenantService

router = APIRouter()


@router.get("")
async def get_current_tenant(
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_session),
):
    """The store serving this request, with its resolved storefront defaults"""
    tenant = TenantDatabase(session, context.tenant_id).get_tenant()
    return {
        "data": {
            "tenant": TenantRead.model_validate(tenant),
            "currency": context.currency,
            "locale": context.locale,
            "low_stock_threshold": context.low_stock_threshold,
            "access_method": context.access_method,
            "url": tenant_canonical_url(tenant, get_settings()),
        }
    }


@router.patch("")
async def update_current_tenant(
    changes: TenantSettingsUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.SETTINGS_EDIT)),
    session: Session = Depends(get_session),
):
    tenant = TenantDatabase(session, context.tenant_id).update_tenant(changes.model_dump(exclude_unset=True))
    return {"data": TenantRead.model_validate(tenant)}


@router.put("/domain")
async def update_domain(
    update: DomainUpdate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.SETTINGS_EDIT)),
    session: Session = Depends(get_session),
):
    """Set or clear the store's custom domain"""
    tenant = TenantService(session, get_settings()).update_domain(context.tenant_id, update.domain)
    return {"data": TenantRead.model_validate(tenant)}
