"""
Unit tests for hostname to tenant resolution
"""

import uuid

import pytest

from shopfront.core.config import Settings
from shopfront.models import Tenant
from shopfront.services.domain_resolver import (
    AccessMethod,
    ResolutionKind,
    extract_subdomain,
    is_platform_host,
    is_valid_domain,
    normalize_host,
    resolve_host,
    tenant_canonical_url,
)


class FakeDirectory:
    """In-memory stand-in for the tenants table (active tenants only)"""

    def __init__(self, *tenants):
        self.tenants = [tenant for tenant in tenants if tenant.is_active]

    def find_by_domain(self, domain):
        return next((tenant for tenant in self.tenants if tenant.domain == domain), None)

    def find_by_subdomain(self, subdomain):
        return next((tenant for tenant in self.tenants if tenant.subdomain == subdomain), None)


@pytest.fixture
def platform_settings():
    return Settings(PLATFORM_DOMAIN="aluro.shop", DEV_DOMAIN="localhost", PREVIEW_DOMAIN_SUFFIX="vercel.app")


@pytest.fixture
def uk_settings():
    return Settings(PLATFORM_DOMAIN="store.example.co.uk", DEV_DOMAIN="localhost", PREVIEW_DOMAIN_SUFFIX="vercel.app")


def make_tenant(subdomain, domain=None, is_active=True):
    return Tenant(name=subdomain.title(), subdomain=subdomain, domain=domain, owner_id=uuid.uuid4(), is_active=is_active)


class TestNormalizeHost:
    """Test host normalization"""

    def test_strips_port_and_lowercases(self):
        assert normalize_host("Shop.Aluro.Shop:443") == "shop.aluro.shop"

    def test_strips_trailing_dot(self):
        assert normalize_host("shop.example.com.") == "shop.example.com"

    def test_empty_host(self):
        assert normalize_host(None) == ""


class TestPlatformHosts:
    """Test recognition of platform hosts"""

    @pytest.mark.parametrize("host", [
        "aluro.shop",
        "www.aluro.shop",
        "localhost",
        "localhost:3000",
        "my-app.vercel.app",
        "testserver",
    ])
    def test_platform_hosts(self, platform_settings, host):
        assert is_platform_host(host, platform_settings) is True

    def test_tenant_subdomain_is_not_platform(self, platform_settings):
        assert is_platform_host("shop.aluro.shop", platform_settings) is False

    @pytest.mark.parametrize("host", ["store.example.co.uk", "store.example.co.uk:443", "www.store.example.co.uk"])
    def test_multi_level_platform_domain(self, uk_settings, host):
        assert is_platform_host(host, uk_settings) is True

    def test_multi_level_tenant_is_not_platform(self, uk_settings):
        assert is_platform_host("acme.store.example.co.uk", uk_settings) is False


class TestExtractSubdomain:
    """Test tenant label extraction"""

    @pytest.mark.parametrize("host,expected", [
        ("shop.aluro.shop", "shop"),
        ("www.shop.aluro.shop", "shop"),
        ("shop.localhost:3000", "shop"),
        ("shop.my-app.vercel.app", "shop"),
        ("aluro.shop", None),
        ("shop.example.com", None),
    ])
    def test_extract(self, platform_settings, host, expected):
        assert extract_subdomain(host, platform_settings) == expected

    @pytest.mark.parametrize("host,expected", [
        ("acme.store.example.co.uk", "acme"),
        ("www.acme.store.example.co.uk", "acme"),
        ("acme.store.example.co.uk:443", "acme"),
        ("store.example.co.uk", None),
        ("example.co.uk", None),
    ])
    def test_extract_multi_level_domain(self, uk_settings, host, expected):
        assert extract_subdomain(host, uk_settings) == expected


class TestResolveHost:
    """Test full host resolution against a tenant directory"""

    def test_platform_host(self, platform_settings):
        resolution = resolve_host("www.aluro.shop", FakeDirectory(), platform_settings)

        assert resolution.kind == ResolutionKind.PLATFORM
        assert resolution.is_platform
        assert resolution.tenant is None

    def test_subdomain_tenant(self, platform_settings):
        tenant = make_tenant("shop")
        resolution = resolve_host("shop.aluro.shop", FakeDirectory(tenant), platform_settings)

        assert resolution.kind == ResolutionKind.TENANT
        assert resolution.tenant is tenant
        assert resolution.access_method == AccessMethod.SUBDOMAIN

    def test_custom_domain_tenant(self, platform_settings):
        tenant = make_tenant("shop", domain="store.example.com")
        resolution = resolve_host("Store.Example.com:443", FakeDirectory(tenant), platform_settings)

        assert resolution.kind == ResolutionKind.TENANT
        assert resolution.tenant is tenant
        assert resolution.access_method == AccessMethod.CUSTOM_DOMAIN

    def test_custom_domain_checked_before_subdomain(self, platform_settings):
        by_label = make_tenant("shop")
        by_domain = make_tenant("other", domain="shop.localhost")
        resolution = resolve_host("shop.localhost", FakeDirectory(by_label, by_domain), platform_settings)

        assert resolution.tenant is by_domain

    def test_unknown_subdomain_is_not_found(self, platform_settings):
        """Unknown tenant labels never fall back to the platform"""
        resolution = resolve_host("ghost.aluro.shop", FakeDirectory(), platform_settings)

        assert resolution.kind == ResolutionKind.NOT_FOUND
        assert resolution.candidate == "ghost"

    def test_inactive_tenant_is_not_found(self, platform_settings):
        tenant = make_tenant("closed", is_active=False)
        resolution = resolve_host("closed.aluro.shop", FakeDirectory(tenant), platform_settings)

        assert resolution.kind == ResolutionKind.NOT_FOUND

    def test_unknown_foreign_domain_is_platform(self, platform_settings):
        resolution = resolve_host("unrelated.example.com", FakeDirectory(), platform_settings)

        assert resolution.kind == ResolutionKind.PLATFORM


class TestDomainHelpers:
    """Test domain validation and canonical URLs"""

    @pytest.mark.parametrize("domain,valid", [
        ("store.example.com", True),
        ("a.b.c.example.co", True),
        ("example", False),
        ("-bad.example.com", False),
        ("bad_label.example.com", False),
    ])
    def test_is_valid_domain(self, domain, valid):
        assert is_valid_domain(domain) is valid

    def test_canonical_url_prefers_custom_domain(self, platform_settings):
        tenant = make_tenant("shop", domain="store.example.com")
        assert tenant_canonical_url(tenant, platform_settings) == "https://store.example.com"

    def test_canonical_url_falls_back_to_subdomain(self, platform_settings):
        tenant = make_tenant("shop")
        assert tenant_canonical_url(tenant, platform_settings) == "https://shop.aluro.shop"
