# backend/erp/routes/inventory.py
"""
Inventory routes

- POST /api/inventory/adjust: manual IN/OUT correction (inventory.manage)
- GET  /api/inventory/movements: movement history, newest first (inventory.view)
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import stock_service
from ..validation import parse_positive_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/adjust")
@require_auth
@require_permission("inventory.manage")
def adjust_route():
    """
    Body: {product_id, type: IN|OUT, quantity, reason}

    OUT larger than the current stock answers 409 with the available amount.
    """
    try:
        data = request.get_json(silent=True) or {}
        movement = stock_service.adjust_stock(
            product_id=parse_positive_int("product_id", data.get("product_id")),
            type=data.get("type"),
            quantity=parse_positive_int("quantity", data.get("quantity")),
            reason=data.get("reason"),
            actor_id=g.current_user.id,
        )
        return jsonify({"movement": movement.to_dict()}), 201

    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/movements")
@require_auth
@require_permission("inventory.view")
def list_movements_route():
    """
    Query params:
    - product_id, type (IN|OUT), reference_type, reference_id
    - page / per_page: optional pagination
    """
    try:
        return stock_service.list_movements(
            product_id=request.args.get("product_id", type=int),
            type=request.args.get("type"),
            reference_type=request.args.get("reference_type"),
            reference_id=request.args.get("reference_id", type=int),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
