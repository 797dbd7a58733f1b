"""
Authentication helper endpoints
"""

from fastapi import APIRouter, Depends

from shopfront.core.config import get_settings
from shopfront.core.dependencies import get_current_user_email

router = APIRouter()


@router.get("/check-platform-admin")
async def check_platform_admin(email: str = Depends(get_current_user_email)):
    """Check the caller's email against the platform admin allow-list"""
    return {
        "data": {
            "is_platform_admin": get_settings().is_platform_admin(email),
            "user_email": email,
        }
    }
