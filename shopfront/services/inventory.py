"""
Stock and price roll-up for products and their variants

Variant payloads from legacy rows arrive in several shapes (a JSON string,
an object keyed by anything, a list). decode_variants is the only place that
tolerates them; everything downstream works on VariantSnapshot.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence, Union
import json

import structlog

from shopfront.models.product import Product, ProductType, ProductVariant

logger = structlog.get_logger(__name__)

NO_VARIANTS = "no variants"

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "$",
    "AUD": "$",
    "CHF": "Fr",
    "CNY": "¥",
    "SEK": "kr",
    "NZD": "$",
    "MXN": "$",
    "SGD": "$",
    "HKD": "$",
    "NOK": "kr",
    "TRY": "₺",
    "RUB": "₽",
    "INR": "₹",
    "BRL": "R$",
    "ZAR": "R",
    "KRW": "₩",
    "CRC": "₡",
}

ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW"}


class StockStatus:
    GOOD = "good"
    LOW = "low"
    OUT = "out"
    DIGITAL = "digital"


@dataclass(frozen=True)
class VariantSnapshot:
    """Canonical variant shape used by every calculation"""
    id: Optional[str]
    title: Optional[str]
    sku: Optional[str]
    price: Decimal
    compare_price: Optional[Decimal]
    inventory_quantity: int
    is_active: bool


@dataclass(frozen=True)
class InventorySummary:
    total: int
    status: str
    is_low_stock: bool
    is_out_of_stock: bool
    active_variants: int
    price_display: str

    def to_dict(self) -> dict:
        return asdict(self)


def _to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return 0
    # Infinity and NaN are as unusable as text
    return int(amount) if amount.is_finite() else 0


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _from_mapping(entry: dict) -> VariantSnapshot:
    quantity = entry.get("inventory_quantity")
    if quantity is None:
        quantity = entry.get("stock_quantity")
    variant_id = entry.get("id")
    return VariantSnapshot(
        id=str(variant_id) if variant_id is not None else None,
        title=entry.get("title"),
        sku=entry.get("sku"),
        price=_to_decimal(entry.get("price")) or Decimal("0"),
        compare_price=_to_decimal(entry.get("compare_price")),
        inventory_quantity=_to_int(quantity),
        is_active=entry.get("is_active") is not False,
    )


def decode_variants(raw: Any) -> List[VariantSnapshot]:
    """Decode a legacy variants payload, dropping anything that is not an object"""
    if not raw:
        return []

    payload = raw
    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Unparsable variants payload dropped")
            return []

    if isinstance(payload, dict):
        payload = list(payload.values())
    if not isinstance(payload, list):
        return []

    return [_from_mapping(entry) for entry in payload if isinstance(entry, dict)]


def snapshots_from_rows(rows: Iterable[ProductVariant]) -> List[VariantSnapshot]:
    return [
        VariantSnapshot(
            id=str(row.id),
            title=row.title,
            sku=row.sku,
            price=Decimal(row.price if row.price is not None else 0),
            compare_price=Decimal(row.compare_price) if row.compare_price is not None else None,
            inventory_quantity=_to_int(row.inventory_quantity),
            is_active=row.is_active is not False,
        )
        for row in rows
    ]


def _canonical(variants: Any) -> List[VariantSnapshot]:
    if variants is None:
        return []
    if isinstance(variants, (list, tuple)) and all(isinstance(item, VariantSnapshot) for item in variants):
        return list(variants)
    if isinstance(variants, (list, tuple)) and all(isinstance(item, ProductVariant) for item in variants):
        return snapshots_from_rows(variants)
    return decode_variants(variants)


def format_price(amount: Union[Decimal, float, int], currency: Optional[str] = "USD") -> str:
    """Currency symbol, thousands separators, cents only when non-zero"""
    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, "$")
    value = Decimal(str(amount))

    if code in ZERO_DECIMAL_CURRENCIES or value == value.to_integral_value():
        body = f"{abs(value):,.0f}"
    else:
        body = f"{abs(value):,.2f}"

    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{body}"


def price_display(
    product: Product,
    variants: Sequence[VariantSnapshot] = (),
    currency: Optional[str] = "USD",
) -> str:
    """Single price, or the min–max range over active variants"""
    if ProductType(product.product_type) != ProductType.VARIABLE:
        return format_price(product.price or 0, currency)

    prices = [variant.price for variant in variants if variant.is_active]
    if not prices:
        return NO_VARIANTS

    low, high = min(prices), max(prices)
    if low == high:
        return format_price(low, currency)
    return f"{format_price(low, currency)}–{format_price(high, currency)}"


def _status_for(total: int, threshold: int) -> str:
    if total <= 0:
        return StockStatus.OUT
    if total <= threshold:
        return StockStatus.LOW
    return StockStatus.GOOD


def summarize_inventory(
    product: Product,
    variants: Any = None,
    threshold: int = 5,
    currency: Optional[str] = "USD",
) -> InventorySummary:
    """
    Roll up stock for a product

    Digital products carry no stock. Variable products count only active
    variants; the product's own inventory_quantity is informational for them.
    """
    product_type = ProductType(product.product_type)
    snapshots = _canonical(variants) if product_type == ProductType.VARIABLE else []
    display = price_display(product, snapshots, currency)

    if product_type == ProductType.DIGITAL:
        return InventorySummary(
            total=0,
            status=StockStatus.DIGITAL,
            is_low_stock=False,
            is_out_of_stock=False,
            active_variants=0,
            price_display=display,
        )

    if product_type == ProductType.VARIABLE:
        active = [variant for variant in snapshots if variant.is_active]
        total = sum(variant.inventory_quantity for variant in active)
        active_count = len(active)
    else:
        total = _to_int(product.inventory_quantity)
        active_count = 0

    status = _status_for(total, threshold)
    return InventorySummary(
        total=total,
        status=status,
        is_low_stock=status == StockStatus.LOW,
        is_out_of_stock=status == StockStatus.OUT,
        active_variants=active_count,
        price_display=display,
    )
