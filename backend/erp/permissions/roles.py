# Overview: Default permission sets granted to each role on user creation.

from ..models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER
from .definitions import PERMISSION_DEFINITIONS

# ADMIN is checked by role and never needs the list, but storing the full
# set keeps the token payload honest.
DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: [perm[0] for perm in PERMISSION_DEFINITIONS],
    ROLE_MANAGER: [
        perm[0] for perm in PERMISSION_DEFINITIONS
        if perm[0] != "users.manage"
    ],
    ROLE_USER: [
        "dashboard.view",
        "products.view",
        "categories.view",
        "partners.view",
        "inventory.view",
        "sales.view",
        "sales.create",
    ],
}
