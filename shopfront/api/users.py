"""
Team membership API endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
import uuid

from shopfront.core.config import get_settings
from shopfront.core.database import get_session
from shopfront.core.dependencies import (
    get_current_user_email,
    get_current_user_id,
    get_tenant_context,
    require_permission,
)
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.schemas.tenant import InvitationCreate, InvitationRead, InvitationResend, MembershipRead, TenantRead
from shopfront.services.invitations import InvitationService
from shopfront.services.tenants import TenantService

router = APIRouter()


def _invitation_payload(result: dict) -> dict:
    return {
        "invitation": InvitationRead.model_validate(result["invitation"]),
        "tenant_name": result["tenant"].name,
        "redirect_url": result["redirect_url"],
    }


@router.get("/invitations")
async def list_invitations(
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.USERS_INVITE)),
    session: Session = Depends(get_session),
):
    invitations = InvitationService(session, get_settings()).list_pending(context.tenant_id)
    return {"data": [InvitationRead.model_validate(invitation) for invitation in invitations]}


@router.post("/invite", status_code=status.HTTP_201_CREATED)
async def invite_user(
    invitation_data: InvitationCreate,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.USERS_INVITE)),
    session: Session = Depends(get_session),
):
    """Invite an email address into the store's team"""
    result = InvitationService(session, get_settings()).invite(
        context.tenant_id,
        invitation_data.email,
        invitation_data.role,
        invited_by=membership.user_id,
    )
    return {"data": _invitation_payload(result)}


@router.post("/resend-invite")
async def resend_invite(
    resend: InvitationResend,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.USERS_INVITE)),
    session: Session = Depends(get_session),
):
    result = InvitationService(session, get_settings()).resend(context.tenant_id, resend.invitation_id)
    return {"data": _invitation_payload(result)}


@router.post("/accept-invitation/{invitation_id}")
async def accept_invitation(
    invitation_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str = Depends(get_current_user_email),
    session: Session = Depends(get_session),
):
    membership = InvitationService(session, get_settings()).accept(invitation_id, user_id, email)
    return {"data": MembershipRead.model_validate(membership)}


@router.get("/tenant-status")
async def tenant_status(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Whether the caller already owns or belongs to a store"""
    tenants = TenantService(session, get_settings()).list_for_user(user_id)
    return {
        "data": {
            "has_tenant": bool(tenants),
            "tenant_count": len(tenants),
            "tenants": [TenantRead.model_validate(tenant) for tenant in tenants],
        }
    }
