from shopfront.models.tenant import Tenant, Plan
from shopfront.models.tenant_user import TenantUser, TenantInvitation
from shopfront.models.category import Category, Brand
from shopfront.models.product import Product, ProductVariant, ProductType
from shopfront.models.customer import Customer
from shopfront.models.order import Order, FinancialStatus, FulfillmentStatus
from shopfront.models.order_line_item import OrderLineItem
from shopfront.models.subscription import Subscription, WebhookEvent
from shopfront.models.store_settings import TenantShippingSettings, TenantPaymentSettings
