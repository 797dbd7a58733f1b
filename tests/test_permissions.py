"""
Unit tests for RBAC permissions and JWT authentication
"""

from datetime import timedelta
import uuid

from jose import jwt
import pytest

from shopfront.core.auth import create_access_token, decode_access_token, verify_token
from shopfront.core.permissions import (
    INVITABLE_ROLES,
    Permission,
    get_permissions_for_role,
    has_permission,
)


def test_get_permissions_for_role():
    """Test permission retrieval for all roles"""
    # Owner has everything, billing included
    owner_perms = get_permissions_for_role("owner")
    assert owner_perms == set(Permission)

    # Admin manages the store but not billing
    admin_perms = get_permissions_for_role("admin")
    assert Permission.SETTINGS_EDIT in admin_perms
    assert Permission.USERS_INVITE in admin_perms
    assert Permission.BILLING_MANAGE not in admin_perms

    # Staff works the catalog and orders
    staff_perms = get_permissions_for_role("staff")
    assert Permission.PRODUCTS_EDIT in staff_perms
    assert Permission.ORDERS_EDIT in staff_perms
    assert Permission.SETTINGS_EDIT not in staff_perms

    # Viewer is read only
    assert get_permissions_for_role("viewer") == {Permission.PRODUCTS_VIEW, Permission.ORDERS_VIEW}


def test_role_lookup_is_case_insensitive():
    assert get_permissions_for_role("ADMIN") == get_permissions_for_role("admin")


@pytest.mark.parametrize("role", ["", None, "superuser"])
def test_unknown_role_has_no_permissions(role):
    assert get_permissions_for_role(role) == set()


def test_has_permission():
    """Test permission checking logic"""
    viewer_perms = get_permissions_for_role("viewer")

    assert has_permission(Permission.PRODUCTS_VIEW, viewer_perms)
    assert not has_permission(Permission.PRODUCTS_EDIT, viewer_perms)


def test_owner_is_not_invitable():
    assert "owner" not in INVITABLE_ROLES
    assert set(INVITABLE_ROLES) == {"admin", "staff", "viewer"}


class TestPlatformAdmins:
    """Test the platform admin allow-list"""

    def test_listed_email(self, settings):
        assert settings.is_platform_admin("admin@aluro.shop")

    def test_match_ignores_case_and_whitespace(self, settings):
        assert settings.is_platform_admin("  Admin@Aluro.Shop ")

    @pytest.mark.parametrize("email", [None, "", "owner@shop.test"])
    def test_other_emails(self, settings, email):
        assert not settings.is_platform_admin(email)


class TestAccessTokens:
    """Test JWT creation and validation"""

    def test_create_and_decode(self):
        user_id = uuid.uuid4()
        tenant_id = uuid.uuid4()

        token = create_access_token(user_id, "owner@shop.test", tenant_id=tenant_id, role="owner")
        payload = decode_access_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["email"] == "owner@shop.test"
        assert payload["tenant_id"] == str(tenant_id)
        assert payload["role"] == "owner"
        assert "exp" in payload

    def test_optional_claims_omitted(self):
        payload = decode_access_token(create_access_token(uuid.uuid4(), "a@b.test"))

        assert "tenant_id" not in payload
        assert "role" not in payload

    def test_verify_token_returns_user_id(self):
        user_id = uuid.uuid4()

        assert verify_token(create_access_token(user_id, "a@b.test")) == user_id

    def test_expired_token(self):
        token = create_access_token(uuid.uuid4(), "a@b.test", expires_delta=timedelta(seconds=-1))

        assert decode_access_token(token) is None
        assert verify_token(token) is None

    def test_wrong_secret(self, settings):
        token = jwt.encode({"sub": str(uuid.uuid4())}, "another-secret", algorithm=settings.JWT_ALGORITHM)

        assert decode_access_token(token) is None

    def test_missing_subject(self, settings):
        token = jwt.encode({"email": "a@b.test"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        assert decode_access_token(token) is None

    def test_non_uuid_subject(self, settings):
        token = jwt.encode({"sub": "user-1"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        assert verify_token(token) is None

    def test_garbage(self):
        assert decode_access_token("not.a.token") is None
