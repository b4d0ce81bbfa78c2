# backend/erp/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require products.view
- Write operations require products.manage

Stock is read-only here; it changes through sales, purchases and
inventory adjustments only.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("products.view")
def list_products():
    """
    List products with optional filters and pagination.

    Query params:
    - search: matches name or SKU
    - category_id: int
    - stock_filter: all | low | out | in
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        return products_service.list_products(
            search=request.args.get("search"),
            category_id=request.args.get("category_id", type=int),
            stock_filter=request.args.get("stock_filter"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except DomainError as e:
        return e.to_dict(), e.status_code


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("products.view")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@products_bp.post("")
@require_auth
@require_permission("products.manage")
def create_product_route():
    """
    Create a new product. An optional "stock" value is recorded as an
    "Initial stock" IN movement.
    """
    payload = request.get_json(silent=True) or {}

    try:
        created = products_service.create_product(payload, actor_id=g.current_user.id)
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("products.manage")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        updated = products_service.update_product(product_id, payload)
    except DomainError as e:
        return e.to_dict(), e.status_code

    if updated is None:
        return {"error": "Product not found"}, 404

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("products.manage")
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id)
    except DomainError as e:
        return e.to_dict(), e.status_code

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
