"""
Tests for host-based tenant resolution middleware and the error envelope
"""

from fastapi.testclient import TestClient
import pytest

from shopfront.main import app
from shopfront.services import tenant_database


def client_for(host: str) -> TestClient:
    return TestClient(app, base_url=f"http://{host}", raise_server_exceptions=False)


class TestTenantMiddleware:
    """Test request host resolution"""

    def test_subdomain_request_gets_tenant_headers(self, db, tenant):
        response = client_for("shop.aluro.shop").get("/api/status")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["resolution"] == "tenant"
        assert data["tenant_id"] == str(tenant.id)
        assert response.headers["x-tenant-id"] == str(tenant.id)
        assert response.headers["x-tenant-subdomain"] == "shop"
        assert response.headers["x-tenant-name"] == "Demo Shop"

    def test_custom_domain_request(self, db, make_tenant):
        tenant = make_tenant("branded", domain="store.example.com")
        response = client_for("store.example.com").get("/api/tenant")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tenant"]["id"] == str(tenant.id)
        assert data["access_method"] == "custom-domain"
        assert data["url"] == "https://store.example.com"

    def test_unknown_subdomain_api_is_404(self, db):
        response = client_for("ghost.aluro.shop").get("/api/products")

        assert response.status_code == 404
        assert response.json() == {"error": "Tenant not found"}

    def test_unknown_subdomain_page_redirects(self, db):
        response = client_for("ghost.aluro.shop").get("/catalog", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "https://aluro.shop/tenant-not-found"

    def test_inactive_tenant_is_not_served(self, db, make_tenant):
        make_tenant("closed", is_active=False)
        response = client_for("closed.aluro.shop").get("/api/products")

        assert response.status_code == 404

    def test_platform_host_has_no_tenant(self, db):
        response = client_for("www.aluro.shop").get("/api/status")

        data = response.json()["data"]
        assert data["resolution"] == "platform"
        assert data["tenant_id"] is None
        assert "x-tenant-id" not in response.headers

    def test_health_skips_resolution(self, db):
        response = client_for("ghost.aluro.shop").get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "shopfront-api"}

    def test_host_tenant_wins_over_header(self, db, tenant, make_tenant):
        other = make_tenant("other")
        response = client_for("shop.aluro.shop").get("/api/tenant", headers={"x-tenant-id": str(other.id)})

        assert response.json()["data"]["tenant"]["id"] == str(tenant.id)

    def test_locale_header_overrides_tenant_locale(self, db, make_tenant):
        make_tenant("lingo", settings={"currency": "EUR", "locale": "es"})
        response = client_for("lingo.aluro.shop").get("/api/tenant", headers={"x-locale": "fr"})

        data = response.json()["data"]
        assert data["locale"] == "fr"
        assert data["currency"] == "EUR"


class TestTenantFallbacks:
    """Test tenant selection on platform hosts"""

    def test_header_selects_tenant(self, client, tenant):
        response = client.get("/api/tenant", headers={"x-tenant-id": str(tenant.id)})

        assert response.status_code == 200
        assert response.json()["data"]["access_method"] is None

    def test_query_selects_tenant(self, client, tenant):
        response = client.get(f"/api/tenant?tenant_id={tenant.id}")

        assert response.status_code == 200
        assert response.json()["data"]["tenant"]["subdomain"] == "shop"

    def test_malformed_tenant_id(self, client):
        response = client.get("/api/tenant", headers={"x-tenant-id": "not-a-uuid"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid tenant id"}

    def test_unknown_tenant_id(self, client, db):
        response = client.get("/api/tenant", headers={"x-tenant-id": "00000000-0000-0000-0000-000000000000"})

        assert response.status_code == 404
        assert response.json() == {"error": "Tenant not found"}

    def test_default_threshold_and_currency(self, client, make_tenant):
        tenant = make_tenant("plain", settings={})
        data = client.get("/api/tenant", headers={"x-tenant-id": str(tenant.id)}).json()["data"]

        assert data["currency"] == "USD"
        assert data["locale"] == "en"
        assert data["low_stock_threshold"] == 5


class TestErrorEnvelope:
    """Test every failure is rendered as {"error": ...}"""

    def test_unknown_route(self, client):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert set(response.json()) == {"error"}

    def test_unhandled_exception_is_500(self, client, tenant, monkeypatch):
        def explode(self):
            raise RuntimeError("boom")

        monkeypatch.setattr(tenant_database.TenantDatabase, "get_tenant", explode)
        response = client.get("/api/tenant", headers={"x-tenant-id": str(tenant.id)})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    @pytest.mark.parametrize("path", ["/api/tenants", "/api/users/tenant-status", "/api/auth/check-platform-admin"])
    def test_authenticated_routes_require_token(self, client, path):
        response = client.get(path)

        assert response.status_code == 401
        assert response.json() == {"error": "Could not validate credentials"}
