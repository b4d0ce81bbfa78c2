# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for grouping in user management screens."""
    DASHBOARD = "DASHBOARD"
    CATALOG = "CATALOG"
    PARTNERS = "PARTNERS"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    PURCHASES = "PURCHASES"
    FINANCIAL = "FINANCIAL"
    FISCAL = "FISCAL"
    USERS = "USERS"


# Display order for permission pickers
CATEGORY_ORDER = (
    PermissionCategory.DASHBOARD,
    PermissionCategory.CATALOG,
    PermissionCategory.PARTNERS,
    PermissionCategory.INVENTORY,
    PermissionCategory.SALES,
    PermissionCategory.PURCHASES,
    PermissionCategory.FINANCIAL,
    PermissionCategory.FISCAL,
    PermissionCategory.USERS,
)
