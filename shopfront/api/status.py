"""
Service status endpoint
"""

from fastapi import APIRouter, Request

from shopfront.core.config import get_settings

router = APIRouter()


@router.get("")
async def api_status(request: Request):
    """Platform status plus how this request's host was resolved"""
    settings = get_settings()
    resolution = getattr(request.state, "host_resolution", None)
    context = getattr(request.state, "tenant_context", None)
    return {
        "data": {
            "status": "ok",
            "service": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
            "host": resolution.host if resolution else None,
            "resolution": resolution.kind.value if resolution else None,
            "tenant_id": str(context.tenant_id) if context else None,
        }
    }
