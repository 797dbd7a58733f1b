"""
Tenant-scoped data access

Every query filters on the tenant id the façade was built with; row-level
security in the database is the real boundary, this keeps the application
from ever asking for another tenant's rows.
"""

from copy import deepcopy
from typing import Any, Dict, Iterable, List, Optional
import uuid

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from shopfront.core.config import get_settings
from shopfront.core.database import bind_tenant
from shopfront.core.exceptions import ConflictError, NotFoundError
from shopfront.core.tenant_context import coerce_threshold
from shopfront.models import (
    Brand,
    Category,
    Customer,
    Order,
    OrderLineItem,
    Product,
    ProductType,
    ProductVariant,
    Tenant,
    TenantShippingSettings,
)
from shopfront.models.base import utcnow
from shopfront.services.inventory import InventorySummary, decode_variants, summarize_inventory
from shopfront.services.shipping import DEFAULT_SHIPPING_METHODS

logger = structlog.get_logger(__name__)

PRODUCT_SORTS = {
    "newest": Product.created_at.desc(),
    "price-low": Product.price.asc(),
    "price-high": Product.price.desc(),
    "name": Product.name.asc(),
}


class SqlTenantDirectory:
    """Active-tenant lookup used by the domain resolver"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_domain(self, domain: str) -> Optional[Tenant]:
        return self.session.exec(
            select(Tenant).where(Tenant.domain == domain, Tenant.is_active == True)  # noqa: E712
        ).first()

    def find_by_subdomain(self, subdomain: str) -> Optional[Tenant]:
        return self.session.exec(
            select(Tenant).where(Tenant.subdomain == subdomain, Tenant.is_active == True)  # noqa: E712
        ).first()


class TenantDatabase:
    """Typed query façade over one tenant's tables"""

    def __init__(self, session: Session, tenant_id: uuid.UUID):
        self.session = session
        self.tenant_id = tenant_id
        bind_tenant(session, tenant_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_scoped(self, model, object_id: uuid.UUID, label: str):
        obj = self.session.get(model, object_id)
        if obj is None or obj.tenant_id != self.tenant_id:
            raise NotFoundError(f"{label} not found")
        return obj

    def _save(self, obj, conflict_message: str = "Record already exists"):
        self.session.add(obj)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(conflict_message)
        self.session.refresh(obj)
        return obj

    def _apply(self, obj, changes: Dict[str, Any]):
        for key, value in changes.items():
            setattr(obj, key, value)
        obj.updated_at = utcnow()
        return obj

    def _slug_taken(self, model, slug: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        query = select(model.id).where(model.tenant_id == self.tenant_id, model.slug == slug)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        return self.session.exec(query).first() is not None

    # ------------------------------------------------------------------
    # Tenant
    # ------------------------------------------------------------------

    def get_tenant(self) -> Tenant:
        tenant = self.session.get(Tenant, self.tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def get_settings(self) -> Dict[str, Any]:
        return dict(self.get_tenant().settings or {})

    def update_settings(self, changes: Dict[str, Any]) -> Tenant:
        tenant = self.get_tenant()
        tenant.update_settings(changes)
        return self._save(tenant)

    def update_tenant(self, changes: Dict[str, Any]) -> Tenant:
        """Profile fields are replaced, the settings blob is merged"""
        changes = dict(changes)
        tenant = self.get_tenant()
        settings_changes = changes.pop("settings", None)
        if settings_changes:
            tenant.update_settings(settings_changes)
        return self._save(self._apply(tenant, changes))

    def get_low_stock_threshold(self) -> int:
        return coerce_threshold(
            self.get_settings().get("low_stock_threshold"),
            get_settings().DEFAULT_LOW_STOCK_THRESHOLD,
        )

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(
        self,
        category_id: Optional[uuid.UUID] = None,
        brand_id: Optional[uuid.UUID] = None,
        product_type: Optional[ProductType] = None,
        is_active: Optional[bool] = None,
        is_featured: Optional[bool] = None,
        search: Optional[str] = None,
        sort_by: str = "newest",
        skip: int = 0,
        limit: int = 100,
    ) -> List[Product]:
        query = select(Product).where(Product.tenant_id == self.tenant_id)

        if category_id:
            query = query.where(Product.category_id == category_id)
        if brand_id:
            query = query.where(Product.brand_id == brand_id)
        if product_type:
            query = query.where(Product.product_type == product_type)
        if is_active is not None:
            query = query.where(Product.is_active == is_active)
        if is_featured is not None:
            query = query.where(Product.is_featured == is_featured)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.description).like(pattern),
                func.lower(Product.short_description).like(pattern),
                func.lower(Product.sku).like(pattern),
            ))

        query = query.order_by(PRODUCT_SORTS.get(sort_by, PRODUCT_SORTS["newest"])).offset(skip).limit(limit)
        return list(self.session.exec(query).all())

    def get_product(self, product_id: uuid.UUID) -> Product:
        return self._get_scoped(Product, product_id, "Product")

    def get_product_by_slug(self, slug: str) -> Product:
        product = self.session.exec(
            select(Product).where(Product.tenant_id == self.tenant_id, Product.slug == slug)
        ).first()
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, data: Dict[str, Any], variants: Optional[List[Dict[str, Any]]] = None) -> Product:
        """Insert a product; variable products get their variant rows in the same transaction"""
        if self._slug_taken(Product, data["slug"]):
            raise ConflictError("Product slug already exists")
        product = Product(tenant_id=self.tenant_id, **data)
        self.session.add(product)

        if variants and ProductType(product.product_type) == ProductType.VARIABLE:
            for position, variant_data in enumerate(variants):
                variant_data = dict(variant_data)
                if variant_data.get("sort_order") is None:
                    variant_data["sort_order"] = position
                if variant_data.get("price") is None:
                    variant_data["price"] = product.price
                self.session.add(ProductVariant(tenant_id=self.tenant_id, product_id=product.id, **variant_data))

        product = self._save(product, "Product slug already exists")
        logger.info("Product created", tenant_id=str(self.tenant_id), product_id=str(product.id))
        return product

    def update_product(self, product_id: uuid.UUID, changes: Dict[str, Any]) -> Product:
        product = self.get_product(product_id)
        if "slug" in changes and self._slug_taken(Product, changes["slug"], exclude_id=product.id):
            raise ConflictError("Product slug already exists")
        return self._save(self._apply(product, changes), "Product slug already exists")

    def delete_product(self, product_id: uuid.UUID) -> Product:
        """Products are deactivated, never removed, so order history keeps resolving"""
        product = self.get_product(product_id)
        return self._save(self._apply(product, {"is_active": False}))

    def summarize(self, product: Product, currency: str, threshold: Optional[int] = None) -> InventorySummary:
        """Inventory roll-up from variant rows, or the legacy payload when no rows exist"""
        if threshold is None:
            threshold = self.get_low_stock_threshold()
        rows = self.list_variants(product.id)
        variants = rows if rows else decode_variants(product.legacy_variants)
        return summarize_inventory(product, variants, threshold=threshold, currency=currency)

    def get_low_stock_products(self, currency: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Active stocked products that are low or out, emptiest first"""
        threshold = self.get_low_stock_threshold()
        products = self.session.exec(
            select(Product).where(
                Product.tenant_id == self.tenant_id,
                Product.is_active == True,  # noqa: E712
                Product.track_inventory == True,  # noqa: E712
                Product.product_type != ProductType.DIGITAL,
            )
        ).all()

        flagged = []
        for product in products:
            summary = self.summarize(product, currency, threshold)
            if summary.is_low_stock or summary.is_out_of_stock:
                flagged.append({"product": product, "inventory": summary})

        flagged.sort(key=lambda entry: entry["inventory"].total)
        return flagged[:limit]

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def list_variants(self, product_id: uuid.UUID, active_only: bool = False) -> List[ProductVariant]:
        query = select(ProductVariant).where(
            ProductVariant.tenant_id == self.tenant_id,
            ProductVariant.product_id == product_id,
        )
        if active_only:
            query = query.where(ProductVariant.is_active == True)  # noqa: E712
        query = query.order_by(ProductVariant.sort_order, ProductVariant.created_at)
        return list(self.session.exec(query).all())

    def get_variant(self, variant_id: uuid.UUID) -> ProductVariant:
        return self._get_scoped(ProductVariant, variant_id, "Variant")

    def create_variant(self, product_id: uuid.UUID, data: Dict[str, Any]) -> ProductVariant:
        product = self.get_product(product_id)
        data = {key: value for key, value in data.items() if value is not None}
        data.setdefault("price", product.price)
        variant = ProductVariant(tenant_id=self.tenant_id, product_id=product_id, **data)
        return self._save(variant)

    def update_variant(self, variant_id: uuid.UUID, changes: Dict[str, Any]) -> ProductVariant:
        variant = self.get_variant(variant_id)
        return self._save(self._apply(variant, changes))

    def delete_variant(self, variant_id: uuid.UUID) -> None:
        variant = self.get_variant(variant_id)
        self.session.delete(variant)
        self.session.commit()

    def replace_legacy_variants(self, product_id: uuid.UUID) -> List[ProductVariant]:
        """Move a legacy variants payload into product_variants rows"""
        product = self.get_product(product_id)
        if self.list_variants(product.id):
            raise ConflictError("Product already has variant rows")

        created = []
        for position, snapshot in enumerate(decode_variants(product.legacy_variants)):
            variant = ProductVariant(
                tenant_id=self.tenant_id,
                product_id=product.id,
                title=snapshot.title or f"Variant {position + 1}",
                sku=snapshot.sku,
                price=snapshot.price,
                compare_price=snapshot.compare_price,
                inventory_quantity=snapshot.inventory_quantity,
                is_active=snapshot.is_active,
                sort_order=position,
            )
            self.session.add(variant)
            created.append(variant)

        product.legacy_variants = None
        product.updated_at = utcnow()
        self.session.add(product)
        self.session.commit()
        for variant in created:
            self.session.refresh(variant)
        logger.info("Legacy variants migrated", product_id=str(product.id), count=len(created))
        return created

    # ------------------------------------------------------------------
    # Categories and brands
    # ------------------------------------------------------------------

    def _list_taxonomy(self, model, is_active: Optional[bool]) -> list:
        query = select(model).where(model.tenant_id == self.tenant_id)
        if is_active is not None:
            query = query.where(model.is_active == is_active)
        query = query.order_by(model.sort_order.asc(), model.name.asc())
        return list(self.session.exec(query).all())

    def _get_by_slug(self, model, slug: str, label: str):
        obj = self.session.exec(
            select(model).where(model.tenant_id == self.tenant_id, model.slug == slug)
        ).first()
        if obj is None:
            raise NotFoundError(f"{label} not found")
        return obj

    def _create_taxonomy(self, model, data: Dict[str, Any], label: str):
        if self._slug_taken(model, data["slug"]):
            raise ConflictError(f"{label} slug already exists")
        return self._save(model(tenant_id=self.tenant_id, **data), f"{label} slug already exists")

    def _update_taxonomy(self, model, object_id: uuid.UUID, changes: Dict[str, Any], label: str):
        obj = self._get_scoped(model, object_id, label)
        if "slug" in changes and self._slug_taken(model, changes["slug"], exclude_id=obj.id):
            raise ConflictError(f"{label} slug already exists")
        return self._save(self._apply(obj, changes), f"{label} slug already exists")

    def get_categories(self, is_active: Optional[bool] = None) -> List[Category]:
        return self._list_taxonomy(Category, is_active)

    def get_category(self, category_id: uuid.UUID) -> Category:
        return self._get_scoped(Category, category_id, "Category")

    def get_category_by_slug(self, slug: str) -> Category:
        return self._get_by_slug(Category, slug, "Category")

    def create_category(self, data: Dict[str, Any]) -> Category:
        return self._create_taxonomy(Category, data, "Category")

    def update_category(self, category_id: uuid.UUID, changes: Dict[str, Any]) -> Category:
        return self._update_taxonomy(Category, category_id, changes, "Category")

    def delete_category(self, category_id: uuid.UUID) -> None:
        category = self.get_category(category_id)
        in_use = self.session.exec(
            select(Product.id).where(Product.tenant_id == self.tenant_id, Product.category_id == category.id)
        ).first()
        if in_use is not None:
            raise ConflictError("Category still has products")
        self.session.delete(category)
        self.session.commit()

    def get_brands(self, is_active: Optional[bool] = None) -> List[Brand]:
        return self._list_taxonomy(Brand, is_active)

    def get_brand(self, brand_id: uuid.UUID) -> Brand:
        return self._get_scoped(Brand, brand_id, "Brand")

    def get_brand_by_slug(self, slug: str) -> Brand:
        return self._get_by_slug(Brand, slug, "Brand")

    def create_brand(self, data: Dict[str, Any]) -> Brand:
        return self._create_taxonomy(Brand, data, "Brand")

    def update_brand(self, brand_id: uuid.UUID, changes: Dict[str, Any]) -> Brand:
        return self._update_taxonomy(Brand, brand_id, changes, "Brand")

    def delete_brand(self, brand_id: uuid.UUID) -> None:
        brand = self.get_brand(brand_id)
        in_use = self.session.exec(
            select(Product.id).where(Product.tenant_id == self.tenant_id, Product.brand_id == brand.id)
        ).first()
        if in_use is not None:
            raise ConflictError("Brand still has products")
        self.session.delete(brand)
        self.session.commit()

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def list_customers(self, search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Customer]:
        query = select(Customer).where(Customer.tenant_id == self.tenant_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(
                func.lower(Customer.email).like(pattern),
                func.lower(Customer.first_name).like(pattern),
                func.lower(Customer.last_name).like(pattern),
            ))
        query = query.order_by(Customer.created_at.desc()).offset(skip).limit(limit)
        return list(self.session.exec(query).all())

    def get_customer(self, customer_id: uuid.UUID) -> Customer:
        return self._get_scoped(Customer, customer_id, "Customer")

    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        return self.session.exec(
            select(Customer).where(
                Customer.tenant_id == self.tenant_id,
                func.lower(Customer.email) == email.strip().lower(),
            )
        ).first()

    def create_customer(self, data: Dict[str, Any], commit: bool = True) -> Customer:
        data = dict(data)
        data["email"] = data["email"].strip().lower()
        if self.get_customer_by_email(data["email"]) is not None:
            raise ConflictError("Customer with this email already exists")
        customer = Customer(tenant_id=self.tenant_id, **data)
        if not commit:
            self.session.add(customer)
            self.session.flush()
            return customer
        return self._save(customer, "Customer with this email already exists")

    def update_customer(self, customer_id: uuid.UUID, changes: Dict[str, Any]) -> Customer:
        customer = self.get_customer(customer_id)
        return self._save(self._apply(customer, changes))

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def list_orders(
        self,
        customer_id: Optional[uuid.UUID] = None,
        order_number: Optional[str] = None,
        financial_status: Optional[str] = None,
        fulfillment_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        query = select(Order).where(Order.tenant_id == self.tenant_id)

        if customer_id:
            query = query.where(Order.customer_id == customer_id)
        if order_number:
            query = query.where(Order.order_number == order_number)
        if financial_status:
            query = query.where(Order.financial_status == financial_status)
        if fulfillment_status:
            query = query.where(Order.fulfillment_status == fulfillment_status)

        query = query.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return list(self.session.exec(query).all())

    def get_order(self, order_id: uuid.UUID) -> Order:
        return self._get_scoped(Order, order_id, "Order")

    def get_order_line_items(self, order_id: uuid.UUID) -> List[OrderLineItem]:
        return list(self.session.exec(
            select(OrderLineItem)
            .where(OrderLineItem.tenant_id == self.tenant_id, OrderLineItem.order_id == order_id)
            .order_by(OrderLineItem.created_at)
        ).all())

    # ------------------------------------------------------------------
    # Shipping settings
    # ------------------------------------------------------------------

    def get_shipping_methods(self) -> List[Dict[str, Any]]:
        record = self.session.exec(
            select(TenantShippingSettings).where(TenantShippingSettings.tenant_id == self.tenant_id)
        ).first()
        if record is None:
            logger.debug("No shipping settings saved, using defaults", tenant_id=str(self.tenant_id))
            return deepcopy(DEFAULT_SHIPPING_METHODS)
        return list(record.shipping_methods or [])

    def save_shipping_methods(self, methods: Iterable[Dict[str, Any]]) -> TenantShippingSettings:
        record = self.session.exec(
            select(TenantShippingSettings).where(TenantShippingSettings.tenant_id == self.tenant_id)
        ).first()
        if record is None:
            record = TenantShippingSettings(tenant_id=self.tenant_id)
        else:
            record.updated_at = utcnow()
        record.shipping_methods = list(methods)
        return self._save(record)
