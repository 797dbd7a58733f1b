"""Initial storefront schema with tenant RLS policies

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None

UUID = postgresql.UUID(as_uuid=True)

# Tables carrying a tenant_id column, isolated by the app.tenant_id setting
TENANT_TABLES = [
    'tenant_users',
    'tenant_users_invitations',
    'categories',
    'brands',
    'products',
    'product_variants',
    'customers',
    'orders',
    'order_line_items',
    'subscriptions',
    'tenant_shipping_settings',
    'tenant_payment_settings',
]


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def _money(name, nullable=False, precision=10):
    return sa.Column(name, sa.Numeric(precision, 2), nullable=nullable, server_default=None if nullable else '0')


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('subdomain', sa.String(63), nullable=False, unique=True, index=True),
        sa.Column('domain', sa.String(253), nullable=True, unique=True, index=True),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('logo_url', sa.String(1000), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(50), nullable=True),
        sa.Column('owner_id', UUID, nullable=False, index=True),
        sa.Column('settings', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('theme_config', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('plan', sa.String(32), nullable=False, server_default='starter'),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True, index=True),
        *_timestamps(),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
    )

    op.create_table(
        'tenant_users',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('user_id', UUID, nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(32), nullable=False, server_default='staff'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('tenant_id', 'user_id', name='uq_tenant_users_tenant_user'),
    )

    op.create_table(
        'tenant_users_invitations',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('invited_by', UUID, nullable=True),
        sa.Column('invited_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('resent_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
    )

    op.create_table(
        'categories',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('parent_id', UUID, sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, index=True),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('seo_title', sa.String(255), nullable=True),
        sa.Column('seo_description', sa.String(500), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'slug', name='uq_categories_tenant_slug'),
    )

    op.create_table(
        'brands',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, index=True),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('logo_url', sa.String(1000), nullable=True),
        sa.Column('website_url', sa.String(1000), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'slug', name='uq_brands_tenant_slug'),
    )

    op.create_table(
        'products',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('category_id', UUID, sa.ForeignKey('categories.id'), nullable=True, index=True),
        sa.Column('brand_id', UUID, sa.ForeignKey('brands.id'), nullable=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('short_description', sa.String(500), nullable=True),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('images', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('product_type', sa.String(32), nullable=False, server_default='single', index=True),
        _money('price'),
        _money('compare_price', nullable=True),
        _money('cost_price', nullable=True),
        sa.Column('track_inventory', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('inventory_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('allow_backorder', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('weight', sa.Numeric(10, 3), nullable=True),
        sa.Column('variants', sa.JSON(), nullable=True),
        sa.Column('seo_title', sa.String(255), nullable=True),
        sa.Column('seo_description', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default='false', index=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'slug', name='uq_products_tenant_slug'),
    )

    op.create_table(
        'product_variants',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('product_id', UUID, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('attributes', sa.JSON(), nullable=False, server_default='[]'),
        _money('price'),
        _money('compare_price', nullable=True),
        _money('cost_price', nullable=True),
        sa.Column('inventory_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weight', sa.Numeric(10, 3), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        *_timestamps(),
    )

    op.create_table(
        'customers',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('user_id', UUID, nullable=True, index=True),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('accepts_marketing', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('addresses', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('notes', sa.String(2000), nullable=True),
        _money('total_spent', precision=12),
        sa.Column('orders_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_order_date', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'email', name='uq_customers_tenant_email'),
    )

    op.create_table(
        'orders',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('customer_id', UUID, sa.ForeignKey('customers.id'), nullable=True, index=True),
        sa.Column('order_number', sa.String(32), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        _money('subtotal_price', precision=12),
        _money('total_tax', precision=12),
        _money('total_discounts', precision=12),
        _money('shipping_price', precision=12),
        _money('total_price', precision=12),
        sa.Column('financial_status', sa.String(32), nullable=False, server_default='pending', index=True),
        sa.Column('fulfillment_status', sa.String(32), nullable=False, server_default='unfulfilled', index=True),
        sa.Column('shipping_address', sa.JSON(), nullable=True),
        sa.Column('billing_address', sa.JSON(), nullable=True),
        sa.Column('shipping_method_id', sa.String(100), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('payment_reference', sa.String(255), nullable=True, index=True),
        sa.Column('notes', sa.String(2000), nullable=True),
        *_timestamps(),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancel_reason', sa.String(500), nullable=True),
        sa.Column('fulfilled_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('tenant_id', 'order_number', name='uq_orders_tenant_number'),
    )

    op.create_table(
        'order_line_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('order_id', UUID, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', UUID, nullable=True, index=True),
        sa.Column('product_variant_id', UUID, nullable=True, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('variant_title', sa.String(255), nullable=True),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        _money('price'),
        _money('total_price', precision=12),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('plan_id', sa.String(32), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, index=True),
        sa.Column('current_period_start', sa.DateTime(), nullable=True),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
    )

    op.create_table(
        'webhook_events',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('provider', sa.String(50), nullable=False, server_default='stripe'),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('tenant_id', UUID, nullable=True, index=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp(), index=True),
    )

    for table in ('tenant_shipping_settings', 'tenant_payment_settings'):
        column = 'shipping_methods' if table == 'tenant_shipping_settings' else 'payment_methods'
        op.create_table(
            table,
            sa.Column('id', UUID, primary_key=True),
            sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, unique=True, index=True),
            sa.Column(column, sa.JSON(), nullable=False, server_default='[]'),
            *_timestamps(),
        )

    # Row level security: each tenant sees only rows matching app.tenant_id
    for table in TENANT_TABLES:
        op.execute(f'ALTER TABLE {table} ENABLE ROW LEVEL SECURITY')
        op.execute(f"""
            CREATE POLICY tenant_isolation ON {table}
            FOR ALL
            USING (tenant_id = current_setting('app.tenant_id', true)::uuid)
            WITH CHECK (tenant_id = current_setting('app.tenant_id', true)::uuid);
        """)

    # Tenants are readable for host resolution; writes stay with their own row
    op.execute('ALTER TABLE tenants ENABLE ROW LEVEL SECURITY')
    op.execute("""
        CREATE POLICY tenant_read ON tenants
        FOR SELECT
        USING (true);
    """)
    op.execute("""
        CREATE POLICY tenant_write ON tenants
        FOR UPDATE
        USING (id = current_setting('app.tenant_id', true)::uuid);
    """)


def downgrade():
    op.execute('DROP POLICY IF EXISTS tenant_write ON tenants')
    op.execute('DROP POLICY IF EXISTS tenant_read ON tenants')
    op.execute('ALTER TABLE tenants DISABLE ROW LEVEL SECURITY')
    for table in TENANT_TABLES:
        op.execute(f'DROP POLICY IF EXISTS tenant_isolation ON {table}')
        op.execute(f'ALTER TABLE {table} DISABLE ROW LEVEL SECURITY')

    for table in (
        'tenant_payment_settings',
        'tenant_shipping_settings',
        'webhook_events',
        'subscriptions',
        'order_line_items',
        'orders',
        'customers',
        'product_variants',
        'products',
        'brands',
        'categories',
        'tenant_users_invitations',
        'tenant_users',
        'tenants',
    ):
        op.drop_table(table)
