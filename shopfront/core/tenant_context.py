"""
Request-scoped tenant context, passed explicitly through dependencies and services
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid

from shopfront.core.config import Settings
from shopfront.models.tenant import Tenant


@dataclass(frozen=True)
class TenantContext:
    tenant_id: uuid.UUID
    subdomain: str
    name: str
    plan: str
    currency: str
    locale: str
    low_stock_threshold: int
    settings: Dict[str, Any] = field(default_factory=dict)
    access_method: Optional[str] = None

    @classmethod
    def from_tenant(
        cls,
        tenant: Tenant,
        settings: Settings,
        access_method: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> "TenantContext":
        return cls(
            tenant_id=tenant.id,
            subdomain=tenant.subdomain,
            name=tenant.name,
            plan=tenant.plan,
            currency=tenant.setting("currency") or settings.DEFAULT_CURRENCY,
            locale=locale or tenant.setting("locale") or settings.DEFAULT_LOCALE,
            low_stock_threshold=coerce_threshold(
                tenant.setting("low_stock_threshold"), settings.DEFAULT_LOW_STOCK_THRESHOLD
            ),
            settings=dict(tenant.settings or {}),
            access_method=access_method,
        )


def coerce_threshold(value: Any, default: int) -> int:
    """Tenant low-stock threshold; unset or malformed values use the default"""
    if isinstance(value, bool):
        return default
    try:
        threshold = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return threshold if threshold >= 0 else default
