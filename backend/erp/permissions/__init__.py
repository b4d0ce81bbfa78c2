# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import CATEGORY_ORDER, PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    DASHBOARD_PERMISSIONS,
    CATALOG_PERMISSIONS,
    PARTNER_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    SALES_PERMISSIONS,
    PURCHASE_PERMISSIONS,
    FINANCIAL_PERMISSIONS,
    FISCAL_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    default_permissions_for_role,
)

__all__ = [
    "PermissionCategory",
    "CATEGORY_ORDER",
    "PERMISSION_DEFINITIONS",
    "DASHBOARD_PERMISSIONS",
    "CATALOG_PERMISSIONS",
    "PARTNER_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "SALES_PERMISSIONS",
    "PURCHASE_PERMISSIONS",
    "FINANCIAL_PERMISSIONS",
    "FISCAL_PERMISSIONS",
    "USER_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "default_permissions_for_role",
]
