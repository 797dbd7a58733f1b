"""
Shipping cost calculation

Each enabled method is priced on its own; the cheapest eligible method is
recommended, the first one configured winning ties.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Sequence
import uuid

from pydantic import BaseModel, Field, ValidationError, field_serializer
import structlog

logger = structlog.get_logger(__name__)

WEIGHT_BASED = "weight_based"
FLAT_RATE = "flat_rate"
FREE = "free"

STANDARD_WINDOW = "3-5 business days"
FREE_WINDOW = "5-7 business days"

DEFAULT_SHIPPING_METHODS = [
    {
        "id": "weight_based_default",
        "name": "Weight Based Shipping",
        "description": "Shipping cost calculated based on package weight",
        "enabled": True,
        "type": WEIGHT_BASED,
        "config": {
            "base_rate": 5.00,
            "per_kg_rate": 2.00,
            "free_threshold": 100.00,
            "max_weight": 30,
        },
    }
]


class ShippingZones(BaseModel):
    allowed_countries: List[str] = Field(default_factory=list)
    restricted_countries: List[str] = Field(default_factory=list)
    allowed_states: Dict[str, List[str]] = Field(default_factory=dict)
    restricted_states: Dict[str, List[str]] = Field(default_factory=dict)


class ShippingRateConfig(BaseModel):
    base_rate: Optional[Decimal] = None
    per_kg_rate: Optional[Decimal] = None
    free_threshold: Optional[Decimal] = None
    max_weight: Optional[Decimal] = None

    @field_serializer("base_rate", "per_kg_rate", "free_threshold", "max_weight", when_used="json-unless-none")
    def _as_number(self, value: Decimal) -> float:
        # Stored settings keep the numeric shape of DEFAULT_SHIPPING_METHODS
        return float(value)


class ShippingMethodConfig(BaseModel):
    id: str
    name: str
    description: str = ""
    enabled: bool = True
    type: str
    config: ShippingRateConfig = Field(default_factory=ShippingRateConfig)
    shipping_zones: Optional[ShippingZones] = None


class CartLine(BaseModel):
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    quantity: int = Field(default=1, ge=0)
    price: Decimal = Decimal("0")


class ShippingAddress(BaseModel):
    country: str
    state: Optional[str] = None
    zip_code: Optional[str] = None


class ShippingOption(BaseModel):
    id: str
    name: str
    description: str
    price: Decimal
    estimated_days: str


class ShippingQuote(BaseModel):
    available_methods: List[ShippingOption]
    recommended_method_id: Optional[str] = None
    total_weight: Decimal
    subtotal: Decimal


class WeightEstimator(Protocol):
    def line_weight(self, line: CartLine) -> Decimal: ...


class FlatItemWeight:
    """Every unit weighs the same nominal amount"""

    def __init__(self, per_item: float = 0.5):
        self.per_item = Decimal(str(per_item))

    def line_weight(self, line: CartLine) -> Decimal:
        return self.per_item * line.quantity


def parse_methods(raw_methods: Iterable[dict]) -> List[ShippingMethodConfig]:
    """Validate stored method definitions, skipping malformed entries"""
    methods = []
    for raw in raw_methods or []:
        try:
            methods.append(ShippingMethodConfig.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping malformed shipping method", method=raw, error=str(exc))
    return methods


def is_method_available(method: ShippingMethodConfig, address: Optional[ShippingAddress]) -> bool:
    """Zone check: restricted countries, then allowed countries, then per-country state lists"""
    zones = method.shipping_zones
    if zones is None or address is None:
        return True

    country, state = address.country, address.state

    if country in zones.restricted_countries:
        return False
    if zones.allowed_countries and country not in zones.allowed_countries:
        return False
    if state in zones.restricted_states.get(country, []):
        return False
    allowed_states = zones.allowed_states.get(country)
    if allowed_states and state not in allowed_states:
        return False
    return True


def cart_weight(items: Sequence[CartLine], estimator: WeightEstimator) -> Decimal:
    return sum((estimator.line_weight(line) for line in items), Decimal("0"))


def cart_subtotal(items: Sequence[CartLine]) -> Decimal:
    return sum((line.price * line.quantity for line in items), Decimal("0"))


def _qualifies_for_free(config: ShippingRateConfig, subtotal: Decimal) -> bool:
    # A zero threshold counts as not configured
    return bool(config.free_threshold) and subtotal >= config.free_threshold


def price_method(method: ShippingMethodConfig, total_weight: Decimal, subtotal: Decimal) -> Optional[ShippingOption]:
    """Price one method for a cart, or None when it does not apply"""
    config = method.config

    if method.type == WEIGHT_BASED:
        if _qualifies_for_free(config, subtotal):
            price = Decimal("0")
        else:
            price = (config.base_rate or Decimal("0")) + total_weight * (config.per_kg_rate or Decimal("0"))
        window = STANDARD_WINDOW
    elif method.type == FLAT_RATE:
        price = Decimal("0") if _qualifies_for_free(config, subtotal) else (config.base_rate or Decimal("0"))
        window = STANDARD_WINDOW
    elif method.type == FREE:
        price = Decimal("0")
        window = FREE_WINDOW
    else:
        return None

    if config.max_weight and total_weight > config.max_weight:
        return None

    return ShippingOption(
        id=method.id,
        name=method.name,
        description=method.description,
        price=price,
        estimated_days=window,
    )


def calculate_shipping(
    items: Sequence[CartLine],
    methods: Iterable[ShippingMethodConfig],
    address: Optional[ShippingAddress] = None,
    estimator: Optional[WeightEstimator] = None,
) -> ShippingQuote:
    """Eligible methods for a cart with their prices and the recommended one"""
    estimator = estimator or FlatItemWeight()
    total_weight = cart_weight(items, estimator)
    subtotal = cart_subtotal(items)

    available: List[ShippingOption] = []
    recommended: Optional[ShippingOption] = None

    for method in methods:
        if not method.enabled or not is_method_available(method, address):
            continue
        option = price_method(method, total_weight, subtotal)
        if option is None:
            continue
        available.append(option)
        if recommended is None or option.price < recommended.price:
            recommended = option

    return ShippingQuote(
        available_methods=available,
        recommended_method_id=recommended.id if recommended else None,
        total_weight=total_weight,
        subtotal=subtotal,
    )
