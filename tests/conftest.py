"""
Test configuration for pytest
"""

import os

# Test environment variables, set before the application reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["PLATFORM_DOMAIN"] = "aluro.shop"
os.environ["PLATFORM_ADMIN_EMAILS"] = '["admin@aluro.shop"]'
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STORAGE_URL"] = "https://storage.example.test"
os.environ["STORAGE_SERVICE_KEY"] = "service-key"

from decimal import Decimal  # noqa: E402
from typing import Generator  # noqa: E402
import uuid  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from shopfront.core.auth import create_access_token  # noqa: E402
from shopfront.core.config import get_settings  # noqa: E402
from shopfront.core.database import engine  # noqa: E402
from shopfront.core.tenant_context import TenantContext  # noqa: E402
from shopfront.main import app  # noqa: E402
from shopfront.models import Product, ProductType, ProductVariant, Tenant, TenantUser  # noqa: E402


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session

    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def client(db) -> TestClient:
    """API client on the platform host; tenant routes are selected with x-tenant-id"""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def make_tenant(db):
    def factory(subdomain: str = "shop", **overrides) -> Tenant:
        tenant = Tenant(
            name=overrides.pop("name", subdomain.title()),
            subdomain=subdomain,
            owner_id=overrides.pop("owner_id", uuid.uuid4()),
            contact_email=overrides.pop("contact_email", f"owner@{subdomain}.test"),
            settings=overrides.pop("settings", {"currency": "USD"}),
            **overrides,
        )
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant

    return factory


@pytest.fixture
def tenant(make_tenant) -> Tenant:
    return make_tenant("shop", name="Demo Shop")


@pytest.fixture
def context(tenant, settings) -> TenantContext:
    return TenantContext.from_tenant(tenant, settings)


@pytest.fixture
def make_member(db):
    def factory(tenant: Tenant, role: str = "owner", email: str = None) -> TenantUser:
        member = TenantUser(
            tenant_id=tenant.id,
            user_id=uuid.uuid4(),
            email=email or f"{role}@{tenant.subdomain}.test",
            role=role,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return factory


@pytest.fixture
def bearer():
    """Authorization header for any signed-in user"""
    def factory(user_id: uuid.UUID, email: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}

    return factory


@pytest.fixture
def auth_headers(make_member, bearer):
    """Authorization plus tenant headers for a member with the given role"""
    def factory(tenant: Tenant, role: str = "owner") -> dict:
        member = make_member(tenant, role)
        headers = bearer(member.user_id, member.email)
        headers["x-tenant-id"] = str(tenant.id)
        return headers

    return factory


@pytest.fixture
def make_product(db):
    def factory(tenant: Tenant, slug: str = "tee", variants=None, **fields) -> Product:
        product = Product(
            tenant_id=tenant.id,
            name=fields.pop("name", slug.title()),
            slug=slug,
            price=fields.pop("price", Decimal("10.00")),
            **fields,
        )
        db.add(product)
        for position, variant in enumerate(variants or []):
            db.add(ProductVariant(
                tenant_id=tenant.id,
                product_id=product.id,
                sort_order=position,
                **variant,
            ))
        db.commit()
        db.refresh(product)
        return product

    return factory


@pytest.fixture
def variable_product(make_product, tenant) -> Product:
    """Two active variants holding 3 units in total, priced 10 and 12"""
    return make_product(
        tenant,
        slug="hoodie",
        product_type=ProductType.VARIABLE,
        variants=[
            {"title": "Small", "price": Decimal("10.00"), "inventory_quantity": 2},
            {"title": "Large", "price": Decimal("12.00"), "inventory_quantity": 1},
        ],
    )
