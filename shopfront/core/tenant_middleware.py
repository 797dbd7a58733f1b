"""
Tenant context middleware for multi-tenant isolation
"""

from typing import Callable, Optional, Tuple
from urllib.parse import quote

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from shopfront.core.config import get_settings
from shopfront.core.database import session_scope
from shopfront.core.tenant_context import TenantContext
from shopfront.services.domain_resolver import HostResolution, ResolutionKind, resolve_host
from shopfront.services.tenant_database import SqlTenantDirectory

logger = structlog.get_logger(__name__)

# Paths served identically on every host
UNSCOPED_PATHS = ("/health", "/docs", "/openapi.json", "/redoc")


def _resolve(host: str, locale: Optional[str]) -> Tuple[HostResolution, Optional[TenantContext]]:
    settings = get_settings()
    with session_scope() as session:
        resolution = resolve_host(host, SqlTenantDirectory(session), settings)
        context = None
        if resolution.tenant is not None:
            context = TenantContext.from_tenant(
                resolution.tenant,
                settings,
                access_method=resolution.access_method.value if resolution.access_method else None,
                locale=locale,
            )
    return resolution, context


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Resolve the request host to a tenant and store the context on request.state"""

    async def dispatch(self, request: Request, call_next: Callable):
        settings = get_settings()
        request.state.host_resolution = None
        request.state.tenant_context = None

        if request.url.path.startswith(UNSCOPED_PATHS):
            return await call_next(request)

        host = request.headers.get("host", "")
        locale = request.headers.get(settings.LOCALE_HEADER)
        resolution, context = await run_in_threadpool(_resolve, host, locale)
        request.state.host_resolution = resolution
        request.state.tenant_context = context

        if resolution.kind == ResolutionKind.NOT_FOUND:
            logger.debug("Unknown tenant host", host=resolution.host, candidate=resolution.candidate)
            if request.url.path.startswith(settings.API_PREFIX):
                return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Tenant not found"})
            return RedirectResponse(
                url=f"https://{settings.PLATFORM_DOMAIN}/tenant-not-found",
                status_code=status.HTTP_307_TEMPORARY_REDIRECT,
            )

        if context is not None:
            logger.debug(
                f"Tenant context: {context.subdomain}",
                tenant_id=str(context.tenant_id),
                access_method=context.access_method,
            )

        response = await call_next(request)

        if context is not None:
            response.headers[settings.TENANT_HEADER] = str(context.tenant_id)
            response.headers["x-tenant-subdomain"] = context.subdomain
            # Header values must stay latin-1
            response.headers[settings.TENANT_NAME_HEADER] = quote(context.name, safe=" ")
        return response
