# backend/erp/routes/categories.py
"""Product category routes (categories.view / categories.manage)."""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import catalog_service

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("categories.view")
def list_categories_route():
    return catalog_service.list_categories()


@categories_bp.get("/<int:category_id>")
@require_auth
@require_permission("categories.view")
def get_category_route(category_id: int):
    category = catalog_service.get_category(category_id)
    if category is None:
        return {"error": "Category not found"}, 404
    return category.to_dict()


@categories_bp.post("")
@require_auth
@require_permission("categories.manage")
def create_category_route():
    try:
        category = catalog_service.create_category(request.get_json(silent=True) or {})
        return category.to_dict(), 201
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("categories.manage")
def update_category_route(category_id: int):
    try:
        category = catalog_service.update_category(category_id, request.get_json(silent=True) or {})
    except DomainError as e:
        return e.to_dict(), e.status_code

    if category is None:
        return {"error": "Category not found"}, 404
    return category.to_dict(), 200


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("categories.manage")
def delete_category_route(category_id: int):
    try:
        deleted = catalog_service.delete_category(category_id)
    except DomainError as e:
        return e.to_dict(), e.status_code

    if not deleted:
        return {"error": "Category not found"}, 404
    return {"ok": True}, 200
