# backend/erp/routes/purchases.py
"""Purchase routes. Every purchase line adds stock through the ledger."""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import purchase_service
from ..validation import parse_optional_datetime, parse_positive_int

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("")
@require_auth
@require_permission("purchases.manage")
def create_purchase_route():
    """
    Body:
    {
        "partner_id": required,
        "invoice_number", "invoice_series", "invoice_key": optional,
        "issue_date": optional ISO date (defaults to now),
        "due_date": optional ISO date, opens a payable,
        "items": [{"product_id", "quantity", "unit_price_cents"}, ...]
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        purchase = purchase_service.create_purchase(
            partner_id=parse_positive_int("partner_id", data.get("partner_id")),
            items=data.get("items"),
            actor_id=g.current_user.id,
            invoice_number=data.get("invoice_number"),
            invoice_series=data.get("invoice_series"),
            invoice_key=data.get("invoice_key"),
            issue_date=parse_optional_datetime("issue_date", data.get("issue_date")),
            due_date=parse_optional_datetime("due_date", data.get("due_date")),
        )
        return jsonify({"purchase": purchase.to_dict()}), 201

    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("")
@require_auth
@require_permission("purchases.view")
def list_purchases_route():
    return purchase_service.list_purchases(
        partner_id=request.args.get("partner_id", type=int),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@purchases_bp.get("/<int:purchase_id>")
@require_auth
@require_permission("purchases.view")
def get_purchase_route(purchase_id: int):
    try:
        purchase = purchase_service.get_purchase(purchase_id)
        return jsonify({"purchase": purchase.to_dict()}), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
