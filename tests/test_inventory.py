"""
Unit tests for inventory roll-up and price display
"""

from decimal import Decimal
import json
import uuid

import pytest

from shopfront.core.tenant_context import coerce_threshold
from shopfront.models import Product, ProductType, ProductVariant
from shopfront.services.inventory import (
    NO_VARIANTS,
    StockStatus,
    VariantSnapshot,
    decode_variants,
    format_price,
    summarize_inventory,
)


def product(product_type=ProductType.SINGLE, **fields):
    return Product(
        tenant_id=uuid.uuid4(),
        name="Item",
        slug="item",
        product_type=product_type,
        price=fields.pop("price", Decimal("10.00")),
        **fields,
    )


def snapshot(price, quantity, is_active=True):
    return VariantSnapshot(
        id=None,
        title=None,
        sku=None,
        price=Decimal(price),
        compare_price=None,
        inventory_quantity=quantity,
        is_active=is_active,
    )


class TestFormatPrice:
    """Test currency formatting"""

    @pytest.mark.parametrize("amount,currency,expected", [
        (Decimal("10"), "USD", "$10"),
        (Decimal("10.5"), "USD", "$10.50"),
        (Decimal("1234.56"), "EUR", "€1,234.56"),
        (Decimal("1500.75"), "JPY", "¥1,501"),
        (Decimal("25000"), "CRC", "₡25,000"),
        (Decimal("12"), "XYZ", "$12"),
    ])
    def test_format(self, amount, currency, expected):
        assert format_price(amount, currency) == expected

    def test_defaults_to_usd(self):
        assert format_price(Decimal("3"), None) == "$3"


class TestDecodeVariants:
    """Test tolerant decoding of legacy variant payloads"""

    def test_list_payload(self):
        variants = decode_variants([{"id": 1, "price": "9.50", "inventory_quantity": 4}])

        assert len(variants) == 1
        assert variants[0].id == "1"
        assert variants[0].price == Decimal("9.50")
        assert variants[0].inventory_quantity == 4
        assert variants[0].is_active is True

    def test_json_string_payload(self):
        raw = json.dumps([{"price": 5, "stock_quantity": "7"}])
        variants = decode_variants(raw)

        assert variants[0].inventory_quantity == 7

    def test_object_keyed_payload(self):
        variants = decode_variants({"a": {"price": 1}, "b": {"price": 2, "is_active": False}})

        assert [variant.price for variant in variants] == [Decimal("1"), Decimal("2")]
        assert variants[1].is_active is False

    def test_malformed_entries_dropped(self):
        assert decode_variants("not json") == []
        assert decode_variants([1, "two", None]) == []
        assert decode_variants(None) == []

    def test_bad_numbers_become_zero(self):
        variants = decode_variants([{"price": "abc", "inventory_quantity": "many"}])

        assert variants[0].price == Decimal("0")
        assert variants[0].inventory_quantity == 0

    def test_non_finite_quantities_become_zero(self):
        raw = '[{"inventory_quantity": Infinity, "price": 10}, {"inventory_quantity": NaN}, {"inventory_quantity": 1e999}]'
        variants = decode_variants(raw)

        assert [variant.inventory_quantity for variant in variants] == [0, 0, 0]
        assert variants[0].price == Decimal("10")

    def test_infinite_text_quantity_in_mapping(self):
        variants = decode_variants({"a": {"inventory_quantity": "inf", "price": 10}, "b": {"stock_quantity": "-Infinity"}})

        assert [variant.inventory_quantity for variant in variants] == [0, 0]


class TestSummarizeInventory:
    """Test stock status per product type"""

    def test_variable_product_low_stock_range(self):
        summary = summarize_inventory(
            product(ProductType.VARIABLE),
            [snapshot("10", 2), snapshot("12", 1)],
            threshold=5,
            currency="USD",
        )

        assert summary.total == 3
        assert summary.status == StockStatus.LOW
        assert summary.is_low_stock is True
        assert summary.is_out_of_stock is False
        assert summary.active_variants == 2
        assert summary.price_display == "$10–$12"

    def test_non_finite_legacy_quantity_counts_as_empty(self):
        summary = summarize_inventory(
            product(ProductType.VARIABLE),
            [{"inventory_quantity": "inf", "price": 10}, {"inventory_quantity": 3, "price": 12}],
            threshold=5,
        )

        assert summary.total == 3
        assert summary.status == StockStatus.LOW
        assert summary.price_display == "$10–$12"

    def test_inactive_variants_ignored(self):
        summary = summarize_inventory(
            product(ProductType.VARIABLE),
            [snapshot("10", 20), snapshot("50", 100, is_active=False)],
            threshold=5,
        )

        assert summary.total == 20
        assert summary.status == StockStatus.GOOD
        assert summary.price_display == "$10"

    def test_variable_product_without_variants(self):
        summary = summarize_inventory(product(ProductType.VARIABLE, inventory_quantity=40), [], threshold=5)

        assert summary.total == 0
        assert summary.status == StockStatus.OUT
        assert summary.price_display == NO_VARIANTS

    def test_variable_product_uses_variant_rows(self):
        item = product(ProductType.VARIABLE)
        rows = [
            ProductVariant(tenant_id=item.tenant_id, product_id=item.id, title="S", price=Decimal("8"), inventory_quantity=6),
        ]
        summary = summarize_inventory(item, rows, threshold=5)

        assert summary.total == 6
        assert summary.status == StockStatus.GOOD

    def test_variable_product_uses_legacy_payload(self):
        summary = summarize_inventory(
            product(ProductType.VARIABLE),
            json.dumps([{"price": 4, "inventory_quantity": 0}]),
            threshold=5,
        )

        assert summary.status == StockStatus.OUT
        assert summary.is_out_of_stock is True

    def test_single_product(self):
        summary = summarize_inventory(product(inventory_quantity=5), threshold=5)

        assert summary.total == 5
        assert summary.status == StockStatus.LOW
        assert summary.price_display == "$10"

    def test_threshold_is_inclusive(self):
        assert summarize_inventory(product(inventory_quantity=6), threshold=5).status == StockStatus.GOOD
        assert summarize_inventory(product(inventory_quantity=0), threshold=0).status == StockStatus.OUT

    def test_digital_product_has_no_stock(self):
        summary = summarize_inventory(product(ProductType.DIGITAL, inventory_quantity=0), threshold=5)

        assert summary.status == StockStatus.DIGITAL
        assert summary.is_low_stock is False
        assert summary.is_out_of_stock is False


class TestLowStockThreshold:
    """Test the tenant threshold setting"""

    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        ("8", 8),
        (0, 0),
        (None, 5),
        (-1, 5),
        ("lots", 5),
        (True, 5),
        (float("inf"), 5),
    ])
    def test_coerce(self, value, expected):
        assert coerce_threshold(value, 5) == expected
