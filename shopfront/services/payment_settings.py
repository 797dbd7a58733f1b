"""
Per-tenant payment method configuration
"""

from copy import deepcopy
from typing import Any, Dict, Iterable, List
import uuid

from sqlmodel import Session, select
import structlog

from shopfront.core.database import bind_tenant
from shopfront.core.exceptions import ValidationError
from shopfront.models import Plan, TenantPaymentSettings
from shopfront.models.base import utcnow

logger = structlog.get_logger(__name__)

MASK = "••••"

PAYMENT_METHOD_CATALOG = [
    {
        "id": "stripe",
        "name": "Stripe",
        "enabled": False,
        "requires_keys": True,
        "keys": {"publishable_key": "", "secret_key": "", "webhook_secret": ""},
        "description": "Credit cards, debit cards and digital wallets",
    },
    {
        "id": "tilopay",
        "name": "TiloPay",
        "enabled": False,
        "requires_keys": True,
        "keys": {"publishable_key": "", "secret_key": ""},
        "description": "Local card processing in Costa Rica",
    },
    {
        "id": "bank_transfer",
        "name": "Bank Transfer",
        "enabled": False,
        "requires_keys": False,
        "bank_details": {"bank_name": "", "account_number": "", "account_holder": "", "instructions": ""},
        "description": "Direct bank transfer with account details and instructions",
    },
    {
        "id": "mobile_bank_transfer",
        "name": "Mobile Bank Transfer",
        "enabled": False,
        "requires_keys": False,
        "bank_details": {"account_holder": "", "instructions": ""},
        "description": "Mobile bank transfers such as SINPE Móvil",
    },
    {
        "id": "cash_on_delivery",
        "name": "Cash on Delivery",
        "enabled": False,
        "requires_keys": False,
        "description": "Pay in cash when the order arrives",
    },
]

OFFLINE_METHODS = {"bank_transfer", "mobile_bank_transfer", "cash_on_delivery"}

PLAN_PAYMENT_METHODS = {
    Plan.STARTER.value: OFFLINE_METHODS,
    Plan.PRO.value: OFFLINE_METHODS | {"stripe", "tilopay"},
    Plan.ENTERPRISE.value: OFFLINE_METHODS | {"stripe", "tilopay"},
}

# Enabled out of the box for a new store on each plan
PLAN_DEFAULT_ENABLED = {
    Plan.STARTER.value: {"cash_on_delivery"},
    Plan.PRO.value: {"stripe", "cash_on_delivery"},
    Plan.ENTERPRISE.value: {"stripe", "cash_on_delivery"},
}


def allowed_methods(plan: str) -> set:
    return PLAN_PAYMENT_METHODS.get(plan, PLAN_PAYMENT_METHODS[Plan.STARTER.value])


def default_payment_methods(plan: str) -> List[Dict[str, Any]]:
    allowed = allowed_methods(plan)
    enabled = PLAN_DEFAULT_ENABLED.get(plan, PLAN_DEFAULT_ENABLED[Plan.STARTER.value])
    methods = []
    for entry in PAYMENT_METHOD_CATALOG:
        if entry["id"] not in allowed:
            continue
        method = deepcopy(entry)
        method["enabled"] = entry["id"] in enabled
        methods.append(method)
    return methods


def _is_secret(key: str) -> bool:
    return "secret" in key


def mask_value(value: str) -> str:
    if not value:
        return ""
    return f"{MASK}{value[-4:]}" if len(value) > 4 else MASK


def mask_methods(methods: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy of the methods with secret keys reduced to their last four characters"""
    masked = []
    for method in methods:
        method = deepcopy(method)
        keys = method.get("keys")
        if isinstance(keys, dict):
            method["keys"] = {
                name: mask_value(value) if _is_secret(name) and isinstance(value, str) else value
                for name, value in keys.items()
            }
        masked.append(method)
    return masked


class PaymentSettingsService:
    def __init__(self, session: Session, tenant_id: uuid.UUID, plan: str):
        self.session = session
        self.tenant_id = tenant_id
        self.plan = plan
        bind_tenant(session, tenant_id)

    def _record(self):
        return self.session.exec(
            select(TenantPaymentSettings).where(TenantPaymentSettings.tenant_id == self.tenant_id)
        ).first()

    def get_methods(self) -> List[Dict[str, Any]]:
        record = self._record()
        if record is None:
            return default_payment_methods(self.plan)
        return list(record.payment_methods or [])

    def save_methods(self, methods: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Replace the method list

        Enabling a method outside the plan is rejected. Secret keys sent back
        in masked form keep their stored value.
        """
        allowed = allowed_methods(self.plan)
        seen = set()
        for method in methods:
            method_id = method.get("id")
            if not method_id:
                raise ValidationError("Each payment method needs an id")
            if method_id in seen:
                raise ValidationError(f"Duplicate payment method: {method_id}")
            seen.add(method_id)
            if method.get("enabled") and method_id not in allowed:
                raise ValidationError(f"Payment method {method_id} is not available on the {self.plan} plan")

        stored = {method.get("id"): method for method in self.get_methods()}
        merged = [self._keep_masked_secrets(deepcopy(method), stored.get(method["id"])) for method in methods]

        record = self._record()
        if record is None:
            record = TenantPaymentSettings(tenant_id=self.tenant_id)
        else:
            record.updated_at = utcnow()
        record.payment_methods = merged
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)

        logger.info(
            "Payment settings saved",
            tenant_id=str(self.tenant_id),
            enabled=[method["id"] for method in merged if method.get("enabled")],
        )
        return list(record.payment_methods)

    def _keep_masked_secrets(self, method: Dict[str, Any], previous: Dict[str, Any] = None) -> Dict[str, Any]:
        keys = method.get("keys")
        previous_keys = (previous or {}).get("keys") or {}
        if isinstance(keys, dict):
            for name, value in keys.items():
                if _is_secret(name) and isinstance(value, str) and value.startswith(MASK):
                    keys[name] = previous_keys.get(name, "")
        return method
