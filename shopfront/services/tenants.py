"""
Tenant provisioning and platform-level tenant management
"""

from typing import List, Optional
import re
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select
import structlog

from shopfront.core.config import Settings
from shopfront.core.exceptions import ConflictError, NotFoundError, UpstreamError, ValidationError
from shopfront.models import Category, Tenant, TenantUser
from shopfront.models.base import utcnow
from shopfront.services.domain_resolver import is_platform_host, is_valid_domain, normalize_host

logger = structlog.get_logger(__name__)

SUBDOMAIN_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])$")
RESERVED_SUBDOMAINS = {"www", "api", "admin", "app"}

DEFAULT_CATEGORIES = [
    {"name": "Electronics", "slug": "electronics", "description": "Electronic devices and gadgets", "sort_order": 1},
    {"name": "Clothing", "slug": "clothing", "description": "Fashion and apparel", "sort_order": 2},
    {"name": "Home & Garden", "slug": "home-garden", "description": "Home improvement and garden supplies", "sort_order": 3},
]


def validate_subdomain(subdomain: str) -> str:
    label = (subdomain or "").strip().lower()
    if not SUBDOMAIN_RE.match(label):
        raise ValidationError(
            "Subdomain must be 3-63 characters of lowercase letters, digits and hyphens"
        )
    if label in RESERVED_SUBDOMAINS:
        raise ValidationError("Subdomain is reserved")
    return label


class TenantService:
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    def get_owned_tenant(self, owner_id: uuid.UUID) -> Optional[Tenant]:
        return self.session.exec(select(Tenant).where(Tenant.owner_id == owner_id)).first()

    def provision(
        self,
        owner_id: uuid.UUID,
        owner_email: str,
        name: str,
        subdomain: str,
        contact_email: str,
        description: Optional[str] = None,
    ) -> tuple:
        """
        Create a store for a user

        One store per owner: an existing one is returned instead, with
        created=False. Returns (tenant, created).
        """
        existing = self.get_owned_tenant(owner_id)
        if existing is not None:
            return existing, False

        label = validate_subdomain(subdomain)
        taken = self.session.exec(select(Tenant.id).where(Tenant.subdomain == label)).first()
        if taken is not None:
            raise ConflictError("Subdomain is already taken")

        tenant = Tenant(
            name=name,
            subdomain=label,
            description=description,
            contact_email=contact_email,
            owner_id=owner_id,
            settings={
                "currency": self.settings.DEFAULT_CURRENCY,
                "locale": self.settings.DEFAULT_LOCALE,
                "timezone": "UTC",
                "theme": "default",
            },
        )
        self.session.add(tenant)
        self.session.add(TenantUser(
            tenant_id=tenant.id,
            user_id=owner_id,
            email=owner_email,
            role="owner",
        ))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Subdomain is already taken")
        self.session.refresh(tenant)
        logger.info("Tenant provisioned", tenant_id=str(tenant.id), subdomain=tenant.subdomain)

        self._seed_categories(tenant)
        return tenant, True

    def _seed_categories(self, tenant: Tenant) -> None:
        try:
            for entry in DEFAULT_CATEGORIES:
                self.session.add(Category(tenant_id=tenant.id, **entry))
            self.session.commit()
        except SQLAlchemyError as exc:
            # The store is usable without them
            self.session.rollback()
            logger.warning("Failed to create default categories", tenant_id=str(tenant.id), error=str(exc))

    def list_for_user(self, user_id: uuid.UUID) -> List[Tenant]:
        """Active stores the user owns or belongs to"""
        member_of = select(TenantUser.tenant_id).where(
            TenantUser.user_id == user_id,
            TenantUser.is_active == True,  # noqa: E712
        )
        return list(self.session.exec(
            select(Tenant)
            .where(Tenant.is_active == True)  # noqa: E712
            .where((Tenant.owner_id == user_id) | (Tenant.id.in_(member_of)))
            .order_by(Tenant.created_at.desc())
        ).all())

    def list_all(self, include_inactive: bool = True) -> List[Tenant]:
        query = select(Tenant)
        if not include_inactive:
            query = query.where(Tenant.is_active == True)  # noqa: E712
        return list(self.session.exec(query.order_by(Tenant.created_at.desc())).all())

    def set_active(self, tenant_id: uuid.UUID, is_active: bool) -> Tenant:
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        tenant.is_active = is_active
        tenant.updated_at = utcnow()
        self.session.add(tenant)
        self.session.commit()
        self.session.refresh(tenant)
        logger.info("Tenant activation changed", tenant_id=str(tenant.id), is_active=is_active)
        return tenant

    def update_domain(self, tenant_id: uuid.UUID, domain: Optional[str]) -> Tenant:
        """Set or clear the custom domain; platform hosts and taken domains are refused"""
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")

        host = normalize_host(domain) if domain else None
        if host:
            if not is_valid_domain(host):
                raise ValidationError("Invalid domain format")
            platform = self.settings.PLATFORM_DOMAIN.lower()
            if is_platform_host(host, self.settings) or host == platform or host.endswith("." + platform):
                raise ValidationError("Platform domains cannot be used as a custom domain")
            owner = self.session.exec(
                select(Tenant.id).where(Tenant.domain == host, Tenant.id != tenant.id)
            ).first()
            if owner is not None:
                raise ConflictError("Domain is already in use")

        tenant.domain = host
        tenant.updated_at = utcnow()
        self.session.add(tenant)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Domain is already in use")
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Failed to update domain", tenant_id=str(tenant_id), error=str(exc))
            raise UpstreamError("Failed to update domain")
        self.session.refresh(tenant)
        logger.info("Tenant domain updated", tenant_id=str(tenant.id), domain=tenant.domain)
        return tenant
