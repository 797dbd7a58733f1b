"""
Shopfront - Main Application Entry Point
Multi-tenant e-commerce backend
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from shopfront.core.config import get_settings
from shopfront.core.database import init_db
from shopfront.core.exceptions import register_exception_handlers
from shopfront.core.tenant_middleware import TenantContextMiddleware
from shopfront.api import (
    auth, billing, brands, categories, customers, orders,
    payment_settings, products, shipping, status, tenant,
    tenants, uploads, users
)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Initializing Shopfront backend", environment=settings.ENVIRONMENT)
    if settings.DATABASE_URL.startswith("sqlite"):
        # Local and test databases have no migrations applied
        init_db()
    else:
        logger.info("Database managed by Alembic migrations")

    yield

    logger.info("Shutting down Shopfront backend")


# Create FastAPI application
app = FastAPI(
    title="Shopfront API",
    description="Multi-tenant e-commerce backend with subdomain and custom-domain storefronts",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure middleware stack
app.add_middleware(TenantContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

register_exception_handlers(app)

# Include routers
api = settings.API_PREFIX
app.include_router(products.router, prefix=f"{api}/products", tags=["products"])
app.include_router(categories.router, prefix=f"{api}/categories", tags=["categories"])
app.include_router(brands.router, prefix=f"{api}/brands", tags=["brands"])
app.include_router(customers.router, prefix=f"{api}/customers", tags=["customers"])
app.include_router(orders.router, prefix=f"{api}/orders", tags=["orders"])
app.include_router(shipping.router, prefix=api, tags=["shipping"])
app.include_router(payment_settings.router, prefix=f"{api}/payment-settings", tags=["payment-settings"])
app.include_router(billing.router, prefix=f"{api}/billing", tags=["billing"])
app.include_router(tenant.router, prefix=f"{api}/tenant", tags=["tenant"])
app.include_router(tenants.router, prefix=f"{api}/tenants", tags=["tenants"])
app.include_router(users.router, prefix=f"{api}/users", tags=["users"])
app.include_router(auth.router, prefix=f"{api}/auth", tags=["auth"])
app.include_router(uploads.router, prefix=f"{api}/uploads", tags=["uploads"])
app.include_router(status.router, prefix=f"{api}/status", tags=["status"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "shopfront-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "shopfront.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
