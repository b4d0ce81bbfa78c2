# backend/erp/routes/users.py
"""
User administration routes.

- Read operations require users.view
- Write operations require users.manage
- DELETE deactivates; users are never removed
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..permissions import (
    CATEGORY_ORDER,
    DEFAULT_ROLE_PERMISSIONS,
    get_permission_definition,
    get_permissions_by_category,
)
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("users.view")
def list_users_route():
    """
    Query params:
    - search: matches name or e-mail
    - page / per_page: optional pagination
    """
    return user_service.list_users(
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@users_bp.get("/permissions")
@require_auth
@require_permission("users.view")
def list_permissions_route():
    """Permission catalog grouped by category, plus the default set of each role."""
    categories = []
    for category in CATEGORY_ORDER:
        codes = [perm[0] for perm in get_permissions_by_category(category)]
        categories.append({
            "category": category,
            "permissions": [get_permission_definition(code) for code in codes],
        })
    return {"categories": categories, "roles": DEFAULT_ROLE_PERMISSIONS}


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("users.view")
def get_user_route(user_id: int):
    user = user_service.get_user(user_id)
    if user is None:
        return {"error": "User not found"}, 404
    return user.to_dict()


@users_bp.post("")
@require_auth
@require_permission("users.manage")
def create_user_route():
    try:
        user = user_service.create_user(request.get_json(silent=True) or {})
        return user.to_dict(), 201
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("users.manage")
def update_user_route(user_id: int):
    try:
        user = user_service.update_user(user_id, request.get_json(silent=True) or {})
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500

    if user is None:
        return {"error": "User not found"}, 404
    return user.to_dict(), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("users.manage")
def delete_user_route(user_id: int):
    try:
        deactivated = user_service.delete_user(user_id, actor_id=g.current_user.id)
    except DomainError as e:
        return e.to_dict(), e.status_code

    if not deactivated:
        return {"error": "User not found"}, 404
    return {"ok": True}, 200
