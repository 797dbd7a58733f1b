"""
Tenant API endpoints
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlmodel import Session
import uuid

from shopfront.core.config import get_settings
from shopfront.core.database import get_session
from shopfront.core.dependencies import get_current_user_email, get_current_user_id, require_platform_admin
from shopfront.schemas.tenant import TenantActivation, TenantCreate, TenantRead
from shopfront.services.tenants import TenantService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_data: TenantCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str = Depends(get_current_user_email),
    session: Session = Depends(get_session),
):
    """Create the caller's store; a caller who already owns one gets it back"""
    tenant, created = TenantService(session, get_settings()).provision(
        owner_id=user_id,
        owner_email=email,
        name=tenant_data.name,
        subdomain=tenant_data.subdomain,
        contact_email=tenant_data.contact_email,
        description=tenant_data.description,
    )
    if not created:
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"data": TenantRead.model_validate(tenant).model_dump(mode="json")},
        )
    return {"data": TenantRead.model_validate(tenant)}


@router.get("")
async def list_tenants(
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str = Depends(get_current_user_email),
    session: Session = Depends(get_session),
):
    """Stores of the caller; platform admins see every store"""
    settings = get_settings()
    service = TenantService(session, settings)
    if settings.is_platform_admin(email):
        tenants = service.list_all()
    else:
        tenants = service.list_for_user(user_id)
    return {"data": [TenantRead.model_validate(tenant) for tenant in tenants]}


@router.patch("/{tenant_id}/status")
async def set_tenant_status(
    tenant_id: uuid.UUID,
    update: TenantActivation,
    admin_email: str = Depends(require_platform_admin),
    session: Session = Depends(get_session),
):
    tenant = TenantService(session, get_settings()).set_active(tenant_id, update.is_active)
    return {"data": TenantRead.model_validate(tenant)}
