"""
Team invitations into a tenant's admin console
"""

from datetime import timedelta
from typing import Dict, List, Optional
import uuid

from sqlmodel import Session, func, select
import structlog

from shopfront.core.config import Settings
from shopfront.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from shopfront.core.permissions import INVITABLE_ROLES
from shopfront.models import Tenant, TenantInvitation, TenantUser
from shopfront.models.base import utcnow
from shopfront.services.domain_resolver import tenant_canonical_url

logger = structlog.get_logger(__name__)


def invitation_redirect_url(tenant: Tenant, invitation: TenantInvitation, settings: Settings) -> str:
    return f"{tenant_canonical_url(tenant, settings)}/accept-invitation/{invitation.id}"


class InvitationService:
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    def _expiry(self):
        return utcnow() + timedelta(days=self.settings.INVITATION_EXPIRE_DAYS)

    def _tenant(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def invite(self, tenant_id: uuid.UUID, email: str, role: str, invited_by: Optional[uuid.UUID] = None) -> Dict:
        """Create an invitation; only one active invitation per email and store"""
        if role not in INVITABLE_ROLES:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(INVITABLE_ROLES)}")

        tenant = self._tenant(tenant_id)
        email = email.strip().lower()

        existing = self.session.exec(
            select(TenantInvitation).where(
                TenantInvitation.tenant_id == tenant_id,
                func.lower(TenantInvitation.email) == email,
                TenantInvitation.is_active == True,  # noqa: E712
            )
        ).first()
        if existing is not None:
            raise ConflictError("Active invitation already exists for this email")

        member = self.session.exec(
            select(TenantUser.id).where(
                TenantUser.tenant_id == tenant_id,
                func.lower(TenantUser.email) == email,
                TenantUser.is_active == True,  # noqa: E712
            )
        ).first()
        if member is not None:
            raise ConflictError("User is already a member of this store")

        invitation = TenantInvitation(
            tenant_id=tenant_id,
            email=email,
            role=role,
            invited_by=invited_by,
            expires_at=self._expiry(),
        )
        self.session.add(invitation)
        self.session.commit()
        self.session.refresh(invitation)

        logger.info("Invitation created", tenant_id=str(tenant_id), invitation_id=str(invitation.id), role=role)
        return {
            "invitation": invitation,
            "tenant": tenant,
            "redirect_url": invitation_redirect_url(tenant, invitation, self.settings),
        }

    def resend(self, tenant_id: uuid.UUID, invitation_id: uuid.UUID) -> Dict:
        """Re-issue an active invitation; expired ones get a fresh expiry window"""
        invitation = self.session.get(TenantInvitation, invitation_id)
        if invitation is None or invitation.tenant_id != tenant_id or not invitation.is_active:
            raise NotFoundError("Invitation not found or already used")

        now = utcnow()
        if invitation.is_expired(now):
            invitation.expires_at = self._expiry()
        invitation.invited_at = now
        invitation.resent_count = (invitation.resent_count or 0) + 1
        self.session.add(invitation)
        self.session.commit()
        self.session.refresh(invitation)

        tenant = self._tenant(tenant_id)
        logger.info("Invitation resent", tenant_id=str(tenant_id), invitation_id=str(invitation.id))
        return {
            "invitation": invitation,
            "tenant": tenant,
            "redirect_url": invitation_redirect_url(tenant, invitation, self.settings),
        }

    def accept(self, invitation_id: uuid.UUID, user_id: uuid.UUID, email: str) -> TenantUser:
        """Turn a pending invitation into a membership for the signed-in user"""
        invitation = self.session.get(TenantInvitation, invitation_id)
        if invitation is None or not invitation.is_active or invitation.accepted_at is not None:
            raise NotFoundError("Invitation not found or already used")
        if invitation.is_expired():
            raise ValidationError("Invitation has expired")
        if invitation.email.lower() != email.strip().lower():
            raise AuthorizationError("Invitation was sent to a different email")

        membership = self.session.exec(
            select(TenantUser).where(
                TenantUser.tenant_id == invitation.tenant_id,
                TenantUser.user_id == user_id,
            )
        ).first()
        if membership is None:
            membership = TenantUser(
                tenant_id=invitation.tenant_id,
                user_id=user_id,
                email=invitation.email,
                role=invitation.role,
            )
        else:
            membership.role = invitation.role
            membership.is_active = True

        invitation.accepted_at = utcnow()
        invitation.is_active = False
        self.session.add(membership)
        self.session.add(invitation)
        self.session.commit()
        self.session.refresh(membership)

        logger.info("Invitation accepted", tenant_id=str(invitation.tenant_id), user_id=str(user_id))
        return membership

    def list_pending(self, tenant_id: uuid.UUID) -> List[TenantInvitation]:
        return list(self.session.exec(
            select(TenantInvitation)
            .where(TenantInvitation.tenant_id == tenant_id, TenantInvitation.is_active == True)  # noqa: E712
            .order_by(TenantInvitation.invited_at.desc())
        ).all())
