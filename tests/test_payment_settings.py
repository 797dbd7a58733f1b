"""
Tests for per-tenant payment method configuration
"""

import pytest

from shopfront.core.exceptions import ValidationError
from shopfront.models import Plan
from shopfront.services.payment_settings import (
    PaymentSettingsService,
    allowed_methods,
    default_payment_methods,
    mask_methods,
    mask_value,
)


def stripe_method(secret="sk_live_abcdef1234", enabled=True):
    return {
        "id": "stripe",
        "name": "Stripe",
        "enabled": enabled,
        "requires_keys": True,
        "keys": {"publishable_key": "pk_live_visible", "secret_key": secret},
    }


class TestPlanLimits:
    """Test which methods each plan may use"""

    def test_starter_is_offline_only(self):
        assert allowed_methods(Plan.STARTER.value) == {"bank_transfer", "mobile_bank_transfer", "cash_on_delivery"}

    def test_pro_adds_gateways(self):
        assert {"stripe", "tilopay"} <= allowed_methods(Plan.PRO.value)

    def test_unknown_plan_treated_as_starter(self):
        assert allowed_methods("legacy") == allowed_methods(Plan.STARTER.value)

    def test_defaults_per_plan(self):
        starter = {method["id"]: method["enabled"] for method in default_payment_methods("starter")}
        pro = {method["id"]: method["enabled"] for method in default_payment_methods("pro")}

        assert "stripe" not in starter
        assert starter["cash_on_delivery"] is True
        assert pro["stripe"] is True


class TestMasking:
    """Test secret key masking"""

    def test_mask_value(self):
        assert mask_value("sk_live_abcdef1234") == "••••1234"
        assert mask_value("abc") == "••••"
        assert mask_value("") == ""

    def test_only_secret_keys_masked(self):
        masked = mask_methods([stripe_method()])[0]["keys"]

        assert masked["secret_key"] == "••••1234"
        assert masked["publishable_key"] == "pk_live_visible"

    def test_input_not_mutated(self):
        methods = [stripe_method()]
        mask_methods(methods)

        assert methods[0]["keys"]["secret_key"] == "sk_live_abcdef1234"


class TestPaymentSettingsService:
    """Test saving payment methods"""

    def test_starter_cannot_enable_stripe(self, db, tenant):
        service = PaymentSettingsService(db, tenant.id, Plan.STARTER.value)

        with pytest.raises(ValidationError, match="not available on the starter plan"):
            service.save_methods([stripe_method()])

    def test_starter_may_store_disabled_gateway(self, db, tenant):
        service = PaymentSettingsService(db, tenant.id, Plan.STARTER.value)
        saved = service.save_methods([stripe_method(enabled=False)])

        assert saved[0]["enabled"] is False

    def test_masked_secret_keeps_stored_value(self, db, tenant):
        service = PaymentSettingsService(db, tenant.id, Plan.PRO.value)
        service.save_methods([stripe_method()])

        saved = service.save_methods([stripe_method(secret="••••1234")])

        assert saved[0]["keys"]["secret_key"] == "sk_live_abcdef1234"

    def test_duplicate_ids_rejected(self, db, tenant):
        service = PaymentSettingsService(db, tenant.id, Plan.PRO.value)

        with pytest.raises(ValidationError, match="Duplicate"):
            service.save_methods([stripe_method(), stripe_method()])

    def test_defaults_until_saved(self, db, tenant):
        methods = PaymentSettingsService(db, tenant.id, Plan.STARTER.value).get_methods()

        assert [method["id"] for method in methods] == ["bank_transfer", "mobile_bank_transfer", "cash_on_delivery"]


class TestPaymentSettingsAPI:
    """Test the payment settings endpoints"""

    def test_get_returns_masked_methods(self, client, make_tenant, auth_headers):
        tenant = make_tenant("gateway", plan=Plan.PRO.value)
        headers = auth_headers(tenant, "admin")
        client.post("/api/payment-settings", json={"payment_methods": [stripe_method()]}, headers=headers)

        data = client.get("/api/payment-settings", headers=headers).json()["data"]

        assert data["plan"] == "pro"
        assert "stripe" in data["available_methods"]
        assert data["payment_methods"][0]["keys"]["secret_key"] == "••••1234"

    def test_post_rejects_plan_violation(self, client, tenant, auth_headers):
        response = client.post(
            "/api/payment-settings",
            json={"payment_methods": [stripe_method()]},
            headers=auth_headers(tenant, "owner"),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Payment method stripe is not available on the starter plan"}

    def test_bank_details_pass_through(self, client, tenant, auth_headers):
        method = {
            "id": "bank_transfer",
            "enabled": True,
            "bank_details": {"bank_name": "BCR", "account_number": "CR01"},
            "custom_note": "kept",
        }

        response = client.post("/api/payment-settings", json={"payment_methods": [method]}, headers=auth_headers(tenant))

        saved = response.json()["data"]["payment_methods"][0]
        assert saved["bank_details"]["bank_name"] == "BCR"
        assert saved["custom_note"] == "kept"

    def test_staff_cannot_view(self, client, tenant, auth_headers):
        response = client.get("/api/payment-settings", headers=auth_headers(tenant, "staff"))

        assert response.status_code == 403
