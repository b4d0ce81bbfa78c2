# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


DASHBOARD_PERMISSIONS = [
    (
        "dashboard.view",
        "View Dashboard",
        "View sales, expense and stock indicators",
        PermissionCategory.DASHBOARD,
    ),
]


CATALOG_PERMISSIONS = [
    (
        "products.view",
        "View Products",
        "View products and their stock",
        PermissionCategory.CATALOG,
    ),
    (
        "products.manage",
        "Manage Products",
        "Create, edit and delete products",
        PermissionCategory.CATALOG,
    ),
    (
        "categories.view",
        "View Categories",
        "View product categories",
        PermissionCategory.CATALOG,
    ),
    (
        "categories.manage",
        "Manage Categories",
        "Create, edit and delete product categories",
        PermissionCategory.CATALOG,
    ),
]


PARTNER_PERMISSIONS = [
    (
        "partners.view",
        "View Partners",
        "View clients and suppliers",
        PermissionCategory.PARTNERS,
    ),
    (
        "partners.manage",
        "Manage Partners",
        "Create, edit and delete clients and suppliers",
        PermissionCategory.PARTNERS,
    ),
]


INVENTORY_PERMISSIONS = [
    (
        "inventory.view",
        "View Inventory",
        "View stock movement history",
        PermissionCategory.INVENTORY,
    ),
    (
        "inventory.manage",
        "Adjust Inventory",
        "Create manual IN/OUT stock adjustments",
        PermissionCategory.INVENTORY,
    ),
]


SALES_PERMISSIONS = [
    (
        "sales.view",
        "View Sales",
        "View sales and their items",
        PermissionCategory.SALES,
    ),
    (
        "sales.create",
        "Create Sale",
        "Register sales (deducts stock)",
        PermissionCategory.SALES,
    ),
]


PURCHASE_PERMISSIONS = [
    (
        "purchases.view",
        "View Purchases",
        "View purchases and their items",
        PermissionCategory.PURCHASES,
    ),
    (
        "purchases.manage",
        "Manage Purchases",
        "Register purchases (adds stock)",
        PermissionCategory.PURCHASES,
    ),
]


FINANCIAL_PERMISSIONS = [
    (
        "financial.view",
        "View Financial",
        "View payables, receivables, transactions and chart of accounts",
        PermissionCategory.FINANCIAL,
    ),
    (
        "financial.manage",
        "Manage Financial",
        "Create and settle payables, receivables and transactions",
        PermissionCategory.FINANCIAL,
    ),
]


FISCAL_PERMISSIONS = [
    (
        "fiscal.view",
        "View Fiscal",
        "View fiscal invoices",
        PermissionCategory.FISCAL,
    ),
    (
        "fiscal.manage",
        "Manage Fiscal",
        "Create, edit, transmit and cancel fiscal invoices",
        PermissionCategory.FISCAL,
    ),
]


USER_PERMISSIONS = [
    (
        "users.view",
        "View Users",
        "View user accounts",
        PermissionCategory.USERS,
    ),
    (
        "users.manage",
        "Manage Users",
        "Create, edit and deactivate user accounts",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    DASHBOARD_PERMISSIONS
    + CATALOG_PERMISSIONS
    + PARTNER_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + SALES_PERMISSIONS
    + PURCHASE_PERMISSIONS
    + FINANCIAL_PERMISSIONS
    + FISCAL_PERMISSIONS
    + USER_PERMISSIONS
)
