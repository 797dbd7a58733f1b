"""
Authentication and tenant dependencies for FastAPI
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session, select
from typing import Callable, Dict, Optional
import uuid
import structlog

from shopfront.core.auth import decode_access_token
from shopfront.core.config import get_settings
from shopfront.core.database import get_session
from shopfront.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from shopfront.core.permissions import Permission, get_permissions_for_role, has_permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import Tenant, TenantUser

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict:
    """Get validated JWT claims"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise credentials_exception
    return payload


async def get_current_user_id(payload: Dict = Depends(get_token_payload)) -> uuid.UUID:
    """Get current user ID from JWT token"""
    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"User authenticated: {user_id}")
    return user_id


async def get_current_user_email(payload: Dict = Depends(get_token_payload)) -> str:
    email = payload.get("email")
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no email claim")
    return email.strip().lower()


def _parse_tenant_id(raw: Optional[str]) -> Optional[uuid.UUID]:
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise ValidationError("Invalid tenant id")


def get_tenant_context(request: Request, session: Session = Depends(get_session)) -> TenantContext:
    """Tenant for this request: resolved host first, then the tenant header, then ?tenant_id="""
    settings = get_settings()
    context = getattr(request.state, "tenant_context", None)
    if context is not None:
        return context

    tenant_id = _parse_tenant_id(request.headers.get(settings.TENANT_HEADER))
    if tenant_id is None:
        tenant_id = _parse_tenant_id(request.query_params.get("tenant_id"))
    if tenant_id is None:
        raise ValidationError("tenant_id is required")

    tenant = session.get(Tenant, tenant_id)
    if tenant is None or not tenant.is_active:
        raise NotFoundError("Tenant not found")

    return TenantContext.from_tenant(
        tenant,
        settings,
        locale=request.headers.get(settings.LOCALE_HEADER),
    )


async def get_current_membership(
    context: TenantContext = Depends(get_tenant_context),
    payload: Dict = Depends(get_token_payload),
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> TenantUser:
    """Caller's active membership in the request tenant; platform admins act as owners"""
    membership = session.exec(
        select(TenantUser).where(
            TenantUser.tenant_id == context.tenant_id,
            TenantUser.user_id == user_id,
            TenantUser.is_active == True,  # noqa: E712
        )
    ).first()
    if membership is not None:
        return membership

    email = payload.get("email")
    if get_settings().is_platform_admin(email):
        # Not persisted
        return TenantUser(tenant_id=context.tenant_id, user_id=user_id, email=email, role="owner")

    raise AuthorizationError("Not a member of this store")


def require_permission(permission: Permission) -> Callable:
    """Dependency factory checking one permission of the caller's role"""

    async def checker(membership: TenantUser = Depends(get_current_membership)) -> TenantUser:
        if not has_permission(permission, get_permissions_for_role(membership.role)):
            logger.warning(
                "Permission denied",
                user_id=str(membership.user_id),
                role=membership.role,
                permission=permission.value,
            )
            raise AuthorizationError("Insufficient permissions")
        return membership

    return checker


async def require_platform_admin(email: str = Depends(get_current_user_email)) -> str:
    if not get_settings().is_platform_admin(email):
        raise AuthorizationError("Platform admin access required")
    return email
