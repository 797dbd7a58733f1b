"""
Unit tests for shipping rate calculation
"""

from decimal import Decimal

from shopfront.services.shipping import (
    DEFAULT_SHIPPING_METHODS,
    CartLine,
    FlatItemWeight,
    ShippingAddress,
    calculate_shipping,
    is_method_available,
    parse_methods,
)


def method(method_id, method_type, enabled=True, zones=None, **config):
    raw = {
        "id": method_id,
        "name": method_id.replace("_", " ").title(),
        "enabled": enabled,
        "type": method_type,
        "config": config,
    }
    if zones is not None:
        raw["shipping_zones"] = zones
    return parse_methods([raw])[0]


def cart(*lines):
    return [CartLine(quantity=quantity, price=Decimal(str(price))) for quantity, price in lines]


class TestShippingPricing:
    """Test pricing of each method type"""

    def test_flat_rate_free_over_threshold(self):
        quote = calculate_shipping(
            cart((1, 120)),
            [method("flat", "flat_rate", base_rate=8, free_threshold=100)],
        )

        assert quote.available_methods[0].price == Decimal("0")
        assert quote.recommended_method_id == "flat"
        assert quote.subtotal == Decimal("120")

    def test_flat_rate_below_threshold(self):
        quote = calculate_shipping(
            cart((1, 50)),
            [method("flat", "flat_rate", base_rate=8, free_threshold=100)],
        )

        assert quote.available_methods[0].price == Decimal("8")

    def test_weight_based_rate(self):
        quote = calculate_shipping(
            cart((4, 10)),
            [method("weight", "weight_based", base_rate=5, per_kg_rate=2)],
            estimator=FlatItemWeight(0.5),
        )

        assert quote.total_weight == Decimal("2.0")
        assert quote.available_methods[0].price == Decimal("9.0")
        assert quote.available_methods[0].estimated_days == "3-5 business days"

    def test_zero_threshold_means_unset(self):
        quote = calculate_shipping(
            cart((1, 0)),
            [method("weight", "weight_based", base_rate=5, per_kg_rate=0, free_threshold=0)],
        )

        assert quote.available_methods[0].price == Decimal("5")

    def test_free_method(self):
        quote = calculate_shipping(cart((1, 5)), [method("free", "free")])

        assert quote.available_methods[0].price == Decimal("0")
        assert quote.available_methods[0].estimated_days == "5-7 business days"

    def test_max_weight_excludes_method(self):
        quote = calculate_shipping(
            cart((100, 1)),
            [
                method("flat", "flat_rate", base_rate=8, max_weight=30),
                method("free", "free"),
            ],
        )

        assert [option.id for option in quote.available_methods] == ["free"]

    def test_unknown_type_skipped(self):
        quote = calculate_shipping(cart((1, 5)), [method("pigeon", "carrier_pigeon")])

        assert quote.available_methods == []
        assert quote.recommended_method_id is None

    def test_disabled_method_skipped(self):
        quote = calculate_shipping(cart((1, 5)), [method("flat", "flat_rate", enabled=False, base_rate=3)])

        assert quote.available_methods == []


class TestRecommendation:
    """Test the cheapest method is recommended"""

    def test_cheapest_wins(self):
        quote = calculate_shipping(
            cart((1, 20)),
            [
                method("express", "flat_rate", base_rate=15),
                method("standard", "flat_rate", base_rate=6),
            ],
        )

        assert quote.recommended_method_id == "standard"
        assert len(quote.available_methods) == 2

    def test_first_configured_wins_ties(self):
        quote = calculate_shipping(
            cart((1, 20)),
            [
                method("first", "flat_rate", base_rate=6),
                method("second", "flat_rate", base_rate=6),
            ],
        )

        assert quote.recommended_method_id == "first"


class TestShippingZones:
    """Test country and state zone filtering"""

    def test_restricted_country(self):
        flat = method("flat", "flat_rate", base_rate=5, zones={"restricted_countries": ["CU"]})

        assert is_method_available(flat, ShippingAddress(country="CU")) is False
        assert is_method_available(flat, ShippingAddress(country="US")) is True

    def test_allowed_countries(self):
        flat = method("flat", "flat_rate", base_rate=5, zones={"allowed_countries": ["US", "CA"]})

        assert is_method_available(flat, ShippingAddress(country="CA")) is True
        assert is_method_available(flat, ShippingAddress(country="MX")) is False

    def test_state_lists(self):
        flat = method(
            "flat",
            "flat_rate",
            base_rate=5,
            zones={"allowed_states": {"US": ["CA", "NY"]}, "restricted_states": {"US": ["NY"]}},
        )

        assert is_method_available(flat, ShippingAddress(country="US", state="CA")) is True
        assert is_method_available(flat, ShippingAddress(country="US", state="NY")) is False
        assert is_method_available(flat, ShippingAddress(country="US", state="TX")) is False
        assert is_method_available(flat, ShippingAddress(country="CA", state="ON")) is True

    def test_no_address_means_available(self):
        flat = method("flat", "flat_rate", base_rate=5, zones={"allowed_countries": ["US"]})

        assert is_method_available(flat, None) is True

    def test_zone_filter_applies_to_quote(self):
        quote = calculate_shipping(
            cart((1, 20)),
            [
                method("domestic", "flat_rate", base_rate=4, zones={"allowed_countries": ["US"]}),
                method("world", "flat_rate", base_rate=25),
            ],
            address=ShippingAddress(country="FR"),
        )

        assert [option.id for option in quote.available_methods] == ["world"]
        assert quote.recommended_method_id == "world"


class TestParseMethods:
    """Test validation of stored method definitions"""

    def test_malformed_entries_skipped(self):
        methods = parse_methods([{"id": "ok", "name": "Ok", "type": "free"}, {"name": "missing id"}])

        assert [entry.id for entry in methods] == ["ok"]

    def test_default_methods_parse(self):
        methods = parse_methods(DEFAULT_SHIPPING_METHODS)

        assert methods[0].type == "weight_based"
        assert methods[0].config.free_threshold == Decimal("100.0")


class TestShippingAPI:
    """Test the shipping settings and calculation endpoints"""

    def test_defaults_until_saved(self, client, tenant):
        response = client.get("/api/shipping-settings", headers={"x-tenant-id": str(tenant.id)})

        assert response.status_code == 200
        assert [m["id"] for m in response.json()["data"]["shipping_methods"]] == ["weight_based_default"]

    def test_save_and_calculate(self, client, tenant, auth_headers):
        methods = [
            {"id": "flat", "name": "Flat", "type": "flat_rate", "config": {"base_rate": 8, "free_threshold": 100}},
            {"id": "pickup", "name": "Pickup", "type": "free", "enabled": False},
        ]
        saved = client.post("/api/shipping-settings", json={"shipping_methods": methods}, headers=auth_headers(tenant, "admin"))
        assert saved.status_code == 200

        response = client.post(
            "/api/shipping/calculate",
            json={"items": [{"quantity": 2, "price": "10.00"}]},
            headers={"x-tenant-id": str(tenant.id)},
        )

        data = response.json()["data"]
        assert [m["id"] for m in data["available_methods"]] == ["flat"]
        assert Decimal(data["available_methods"][0]["price"]) == Decimal("8")
        assert data["recommended_method_id"] == "flat"
        assert Decimal(data["subtotal"]) == Decimal("20.00")

    def test_saved_rates_read_back_as_numbers(self, client, tenant, auth_headers):
        headers = {"x-tenant-id": str(tenant.id)}
        default = client.get("/api/shipping-settings", headers=headers).json()["data"]["shipping_methods"][0]
        client.post("/api/shipping-settings", json={"shipping_methods": [default]}, headers=auth_headers(tenant))

        saved = client.get("/api/shipping-settings", headers=headers).json()["data"]["shipping_methods"][0]

        assert saved["config"] == {"base_rate": 5.0, "per_kg_rate": 2.0, "free_threshold": 100.0, "max_weight": 30.0}
        assert saved["config"] == default["config"]

    def test_calculate_with_default_methods(self, client, tenant):
        response = client.post(
            "/api/shipping/calculate",
            json={"items": [{"quantity": 2, "price": "10.00"}]},
            headers={"x-tenant-id": str(tenant.id)},
        )

        data = response.json()["data"]
        assert Decimal(data["total_weight"]) == Decimal("1.0")
        assert Decimal(data["available_methods"][0]["price"]) == Decimal("7")

    def test_empty_cart_rejected(self, client, tenant):
        response = client.post("/api/shipping/calculate", json={"items": []}, headers={"x-tenant-id": str(tenant.id)})

        assert response.status_code == 400
        assert set(response.json()) == {"error"}

    def test_staff_cannot_save(self, client, tenant, auth_headers):
        response = client.post("/api/shipping-settings", json={"shipping_methods": []}, headers=auth_headers(tenant, "staff"))

        assert response.status_code == 403
