"""
JWT Authentication utilities
"""

from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from typing import Dict, Optional
import uuid
from shopfront.core.config import get_settings


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    tenant_id: Optional[uuid.UUID] = None,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token with user claims"""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
        "iat": now,
    }
    if tenant_id is not None:
        to_encode["tenant_id"] = str(tenant_id)
    if role is not None:
        to_encode["role"] = role

    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate JWT token"""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload


def verify_token(token: str) -> Optional[uuid.UUID]:
    """Verify token and return user_id if valid"""
    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        return uuid.UUID(payload["sub"])
    except ValueError:
        return None
