"""
API schemas for tenants, team invitations and store settings
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from typing import Any, Dict, Optional
import uuid


class TenantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    subdomain: str = Field(min_length=3, max_length=63)
    contact_email: EmailStr
    description: Optional[str] = Field(default=None, max_length=2000)


class TenantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    subdomain: str
    domain: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    owner_id: uuid.UUID
    settings: Dict[str, Any]
    theme_config: Dict[str, Any]
    plan: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    is_active: bool


class TenantSettingsUpdate(BaseModel):
    """Partial update; `settings` is merged into the stored blob"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    logo_url: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    theme_config: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None


class DomainUpdate(BaseModel):
    domain: Optional[str] = Field(default=None, max_length=253)


class TenantActivation(BaseModel):
    is_active: bool


# ============================================================================
# Team Schemas
# ============================================================================


class InvitationCreate(BaseModel):
    email: EmailStr
    role: str


class InvitationResend(BaseModel):
    invitation_id: uuid.UUID


class InvitationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    email: str
    role: str
    invited_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    resent_count: int
    is_active: bool


class MembershipRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    email: str
    role: str
    is_active: bool
