# Overview: Permission checks against the user's role and stored permission list.

"""
Permission Checking

DESIGN PRINCIPLES:
- Fail closed: deny unless the code is explicitly granted
- ADMIN role short-circuits every check
- Denials are logged; grants are not
"""

from __future__ import annotations

import logging

from ..errors import PermissionDenied
from ..models import User
from ..models.auth import ROLE_ADMIN

logger = logging.getLogger(__name__)


def has_permission(user: User | None, permission_code: str) -> bool:
    if user is None or not user.is_active:
        return False
    if user.role == ROLE_ADMIN:
        return True
    return permission_code in (user.permissions or [])


def require_permission(user: User | None, permission_code: str, resource: str | None = None) -> None:
    """Raise PermissionDenied unless the user holds permission_code."""
    if has_permission(user, permission_code):
        return
    logger.warning(
        "Permission denied: user=%s permission=%s resource=%s",
        user.id if user is not None else None, permission_code, resource,
    )
    raise PermissionDenied(f"Missing permission: {permission_code}")
