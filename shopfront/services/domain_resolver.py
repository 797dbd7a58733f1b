"""
Hostname to tenant resolution

A request host is either a platform host (marketing site, global admin),
an active tenant reached through its custom domain or its subdomain, or an
unknown tenant label, which must not fall back to the platform.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol
import re

from shopfront.core.config import Settings
from shopfront.models.tenant import Tenant

_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
_DOMAIN_RE = re.compile(rf"^{_LABEL}(?:\.{_LABEL})+$", re.IGNORECASE)


class ResolutionKind(str, Enum):
    PLATFORM = "platform"
    TENANT = "tenant"
    NOT_FOUND = "not_found"


class AccessMethod(str, Enum):
    SUBDOMAIN = "subdomain"
    CUSTOM_DOMAIN = "custom-domain"


class TenantDirectory(Protocol):
    """Lookup of active tenants by routing key"""

    def find_by_domain(self, domain: str) -> Optional[Tenant]: ...

    def find_by_subdomain(self, subdomain: str) -> Optional[Tenant]: ...


@dataclass(frozen=True)
class HostResolution:
    kind: ResolutionKind
    host: str
    tenant: Optional[Tenant] = None
    access_method: Optional[AccessMethod] = None
    candidate: Optional[str] = None

    @property
    def is_platform(self) -> bool:
        return self.kind == ResolutionKind.PLATFORM


def normalize_host(hostname: Optional[str]) -> str:
    """Lower-case host without port or trailing dot"""
    host = (hostname or "").strip().lower()
    if host.startswith("["):
        # IPv6 literal, never a tenant
        return host.split("]")[0] + "]"
    host = host.split(":")[0]
    return host.rstrip(".")


def _preview_parts(host: str, settings: Settings) -> Optional[list]:
    suffix = settings.PREVIEW_DOMAIN_SUFFIX.lower()
    if suffix and host.endswith("." + suffix):
        return host[: -len(suffix) - 1].split(".")
    return None


def is_platform_host(hostname: str, settings: Settings) -> bool:
    """Bare platform domain, its www alias, the dev host and bare preview deployments"""
    host = normalize_host(hostname)
    if not host or "." not in host:
        return True
    platform = settings.PLATFORM_DOMAIN.lower()
    dev = settings.DEV_DOMAIN.lower()
    if host in (platform, f"www.{platform}", dev, f"www.{dev}"):
        return True
    preview = _preview_parts(host, settings)
    return preview is not None and len(preview) == 1


def extract_subdomain(hostname: str, settings: Settings) -> Optional[str]:
    """Tenant label left after stripping a known base domain, if any"""
    host = normalize_host(hostname)
    if is_platform_host(host, settings):
        return None

    leftover: Optional[list] = None
    for base in (settings.PLATFORM_DOMAIN.lower(), settings.DEV_DOMAIN.lower()):
        if base and host.endswith("." + base):
            leftover = host[: -len(base) - 1].split(".")
            break
    else:
        preview = _preview_parts(host, settings)
        if preview is not None:
            # tenant.project.vercel.app -> drop the project label
            leftover = preview[:-1]

    if not leftover:
        return None
    if leftover[0] == "www":
        leftover = leftover[1:]
    if not leftover or not leftover[0]:
        return None
    return leftover[0]


def resolve_host(hostname: str, directory: TenantDirectory, settings: Settings) -> HostResolution:
    """Map a request host to platform context, a tenant, or not-found"""
    host = normalize_host(hostname)

    if is_platform_host(host, settings):
        return HostResolution(kind=ResolutionKind.PLATFORM, host=host)

    tenant = directory.find_by_domain(host)
    if tenant is not None:
        return HostResolution(
            kind=ResolutionKind.TENANT,
            host=host,
            tenant=tenant,
            access_method=AccessMethod.CUSTOM_DOMAIN,
        )

    candidate = extract_subdomain(host, settings)
    if candidate is None:
        return HostResolution(kind=ResolutionKind.PLATFORM, host=host)

    tenant = directory.find_by_subdomain(candidate)
    if tenant is None:
        return HostResolution(kind=ResolutionKind.NOT_FOUND, host=host, candidate=candidate)

    return HostResolution(
        kind=ResolutionKind.TENANT,
        host=host,
        tenant=tenant,
        access_method=AccessMethod.SUBDOMAIN,
        candidate=candidate,
    )


def is_valid_domain(domain: str) -> bool:
    return len(domain) <= 253 and bool(_DOMAIN_RE.match(domain))


def tenant_canonical_url(tenant: Tenant, settings: Settings) -> str:
    """Prefer the custom domain, fall back to the platform subdomain"""
    if tenant.domain:
        return f"https://{tenant.domain}"
    return f"https://{tenant.subdomain}.{settings.PLATFORM_DOMAIN}"
