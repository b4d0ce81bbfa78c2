# Overview: Lookups over the permission catalog used by user administration.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS

_BY_CODE = {code: (code, name, description, category) for code, name, description, category in PERMISSION_DEFINITIONS}


def get_all_permission_codes():
    return list(_BY_CODE)


def get_permissions_by_category(category):
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Definition of one code as a dict for the API, or None for unknown codes."""
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    return dict(zip(("code", "name", "description", "category"), perm))


def validate_permission_code(code):
    return code in _BY_CODE


def default_permissions_for_role(role):
    """Fresh copy of the permissions a new user of this role starts with."""
    return list(DEFAULT_ROLE_PERMISSIONS.get(role, []))
