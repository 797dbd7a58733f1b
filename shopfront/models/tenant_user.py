"""
Tenant membership and invitation models
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional
import uuid

from shopfront.models.base import utcnow


class TenantUser(SQLModel, table=True):
    """Admin-console access of one auth user to one tenant"""

    __tablename__ = "tenant_users"
    __table_args__ = (UniqueConstraint("tenant_id", "user_id", name="uq_tenant_users_tenant_user"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    user_id: uuid.UUID = Field(index=True)
    email: str = Field(max_length=255)
    role: str = Field(default="staff", max_length=32, description="owner, admin, staff or viewer")
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)


class TenantInvitation(SQLModel, table=True):
    """Pending invitation of an email address into a tenant's team"""

    __tablename__ = "tenant_users_invitations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    email: str = Field(max_length=255, index=True)
    role: str = Field(max_length=32)
    invited_by: Optional[uuid.UUID] = None
    invited_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    resent_count: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def is_pending(self, now: Optional[datetime] = None) -> bool:
        return self.is_active and self.accepted_at is None and not self.is_expired(now)
