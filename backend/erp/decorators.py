# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .errors import AuthError, PermissionDenied
from .services import auth_service, permission_service


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the active User the token belongs to.

    Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated or removed
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            g.current_user = auth_service.user_from_token(token)
        except AuthError as e:
            return jsonify({"error": str(e)}), 401

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission. Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_code,
                    resource=request.path,
                )
            except PermissionDenied as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles: str):
    """Require the authenticated user to hold one of the given roles. Stack under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401
            if g.current_user.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_role": list(roles),
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator
