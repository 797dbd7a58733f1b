"""
RBAC (Role-Based Access Control) permission system for tenant admin consoles
"""

from enum import Enum
from typing import Set


class Permission(str, Enum):
    """Permission definitions"""
    # Catalog
    PRODUCTS_VIEW = "products:view"
    PRODUCTS_EDIT = "products:edit"

    # Orders and customers
    ORDERS_VIEW = "orders:view"
    ORDERS_EDIT = "orders:edit"
    CUSTOMERS_EDIT = "customers:edit"

    # Store configuration
    SETTINGS_EDIT = "settings:edit"
    USERS_INVITE = "users:invite"
    BILLING_MANAGE = "billing:manage"


ALL_PERMISSIONS = set(Permission)

# Role permission mapping
ROLE_PERMISSIONS = {
    "owner": ALL_PERMISSIONS,
    "admin": {
        # Admins do everything except billing
        Permission.PRODUCTS_VIEW,
        Permission.PRODUCTS_EDIT,
        Permission.ORDERS_VIEW,
        Permission.ORDERS_EDIT,
        Permission.CUSTOMERS_EDIT,
        Permission.SETTINGS_EDIT,
        Permission.USERS_INVITE,
    },
    "staff": {
        Permission.PRODUCTS_VIEW,
        Permission.PRODUCTS_EDIT,
        Permission.ORDERS_VIEW,
        Permission.ORDERS_EDIT,
        Permission.CUSTOMERS_EDIT,
    },
    "viewer": {
        Permission.PRODUCTS_VIEW,
        Permission.ORDERS_VIEW,
    },
}

INVITABLE_ROLES = ("admin", "staff", "viewer")


def get_permissions_for_role(role: str) -> Set[Permission]:
    """Get permissions for a given role"""
    return ROLE_PERMISSIONS.get((role or "").lower(), set())


def has_permission(required_permission: Permission, user_permissions: Set[Permission]) -> bool:
    """Check if user has required permission"""
    return required_permission in user_permissions
