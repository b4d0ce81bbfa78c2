# Overview: User administration (create, edit, deactivate, search).

"""
Users are never hard-deleted: sales, purchases and stock movements keep
referencing them for attribution. delete_user() sets is_active = False,
which also invalidates every token the user still holds.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_USER, VALID_ROLES
from ..pagination import paginate
from ..permissions import default_permissions_for_role, validate_permission_code
from ..validation import ModelValidationPolicy, validate_payload
from .auth_service import hash_password
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

USER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "role", "permissions", "is_active"},
    required_on_create={"name", "email"},
    choices={"role": VALID_ROLES},
    min_lengths={"name": 3},
)


def _clean_permissions(value) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(code, str) for code in value):
        raise ValidationError("permissions must be a list of permission codes")
    unknown = [code for code in value if not validate_permission_code(code)]
    if unknown:
        raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")
    return sorted(set(value))


def _split_password(payload) -> tuple[dict, str | None]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    return payload, payload.pop("password", None)


def _check_email(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Email already in use")


def list_users(*, search: str | None = None, page: int | None = None, per_page: int | None = None) -> dict:
    query = db.session.query(User)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    query = query.order_by(User.name.asc(), User.id.asc())
    return paginate(query, page, per_page, lambda u: u.to_dict())


def get_user(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def create_user(payload: dict) -> User:
    payload, password = _split_password(payload)
    if password is None:
        raise ValidationError("Missing required fields: password")

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    patch["email"] = patch["email"].lower()
    if "@" not in patch["email"]:
        raise ValidationError("Invalid email")
    role = patch.setdefault("role", ROLE_USER)
    if "permissions" in patch:
        patch["permissions"] = _clean_permissions(patch["permissions"])
    else:
        patch["permissions"] = default_permissions_for_role(role)
    patch["password_hash"] = hash_password(password)

    def _op():
        _check_email(patch["email"])
        user = User(**patch)
        db.session.add(user)
        db.session.flush()
        return user

    user = run_in_transaction(_op)
    logger.info("User created: id=%s email=%s role=%s", user.id, user.email, user.role)
    return user


def update_user(user_id: int, payload: dict) -> User | None:
    payload, password = _split_password(payload)
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    if "email" in patch:
        patch["email"] = patch["email"].lower()
    if "permissions" in patch:
        patch["permissions"] = _clean_permissions(patch["permissions"])
    if password is not None:
        patch["password_hash"] = hash_password(password)

    def _op():
        user = db.session.get(User, user_id)
        if user is None:
            return None
        if "email" in patch:
            _check_email(patch["email"], exclude_id=user_id)
        for key, value in patch.items():
            setattr(user, key, value)
        db.session.flush()
        return user

    return run_in_transaction(_op)


def delete_user(user_id: int, *, actor_id: int | None = None) -> bool:
    if actor_id is not None and actor_id == user_id:
        raise ValidationError("You cannot deactivate your own account")

    def _op():
        user = db.session.get(User, user_id)
        if user is None:
            return False
        user.is_active = False
        return True

    deactivated = run_in_transaction(_op)
    if deactivated:
        logger.info("User deactivated: id=%s", user_id)
    return deactivated
