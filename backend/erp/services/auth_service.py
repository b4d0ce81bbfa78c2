# Overview: Password hashing, bearer token issuance and credential checks.

"""
Authentication Service

Passwords are hashed with bcrypt. Login returns a signed JWT (HS256) that
carries the user id, e-mail, role and permission list; routes verify it
with decode_token() and then reload the user so deactivation takes effect
immediately.

SECURITY NOTES:
- Invalid e-mail and invalid password give the same error message
- Inactive users cannot log in
- Token lifetime is JWT_EXPIRES_HOURS (default 24)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from flask import current_app

from ..errors import AuthError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_USER
from ..permissions import default_permissions_for_role
from ..time_utils import utcnow
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 3


def validate_password(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    validate_password(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def issue_token(user: User) -> str:
    expires = datetime.now(timezone.utc) + timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"])
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "permissions": list(user.permissions or []),
        "exp": expires,
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")


def user_from_token(token: str) -> User:
    payload = decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthError("Invalid token")

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthError("Invalid token")
    return user


def register(*, name: str, email: str, password: str) -> User:
    """
    Public self-registration. New accounts get role USER and the default
    permissions for that role.
    """
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters long")
    if "@" not in email:
        raise ValidationError("Invalid email")
    password_hash = hash_password(password)

    def _op():
        if db.session.query(User).filter_by(email=email).first() is not None:
            raise ValidationError("User already exists")
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=ROLE_USER,
            permissions=default_permissions_for_role(ROLE_USER),
        )
        db.session.add(user)
        db.session.flush()
        return user

    user = run_in_transaction(_op)
    logger.info("User registered: id=%s email=%s", user.id, user.email)
    return user


def login(*, email: str, password: str) -> tuple[User, str]:
    """Returns (user, token). Raises ValidationError("Invalid credentials") on any mismatch."""
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("email and password required")

    user = db.session.query(User).filter_by(email=email).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning("Failed login for %s", email)
        raise ValidationError("Invalid credentials")

    def _op():
        user.last_login_at = utcnow()
        return user

    run_in_transaction(_op)
    return user, issue_token(user)
