"""
Error taxonomy and the JSON error envelope
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import structlog

logger = structlog.get_logger(__name__)


class ShopfrontError(Exception):
    """Base exception for API errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ShopfrontError):
    """Missing or malformed input"""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed by the state machine"""


class AuthenticationError(ShopfrontError):
    """No valid session"""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ShopfrontError):
    """Authenticated but lacking the required role"""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ShopfrontError):
    """Tenant or resource absent"""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ShopfrontError):
    """Unique key already taken"""
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(ShopfrontError):
    """Database, storage or payment gateway failure"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Translate every exception into the {"error": ...} envelope"""

    @app.exception_handler(ShopfrontError)
    async def shopfront_exception_handler(request: Request, exc: ShopfrontError):
        if exc.status_code >= 500:
            # Upstream details stay in the logs
            logger.error("Upstream failure", path=request.url.path, error=exc.message)
            return error_response(exc.status_code, "Internal server error")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(status.HTTP_400_BAD_REQUEST, _format_validation_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
