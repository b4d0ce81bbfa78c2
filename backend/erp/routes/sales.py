# backend/erp/routes/sales.py
"""
Sales routes

A sale is created and completed in one request: every line deducts stock
and writes a movement, or nothing is written at all.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..models.sales import PAYMENT_CASH
from ..services import sales_service
from ..validation import parse_optional_datetime, parse_optional_int

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_permission("sales.create")
def create_sale_route():
    """
    Body:
    {
        "partner_id": optional,
        "payment_method": "CASH" | "CREDIT_CARD" | "DEBIT_CARD" | "PIX",
        "due_date": optional ISO date, opens a receivable,
        "items": [{"product_id", "quantity", "unit_price_cents"}, ...]
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.create_sale(
            user_id=g.current_user.id,
            items=data.get("items"),
            partner_id=parse_optional_int("partner_id", data.get("partner_id")),
            payment_method=data.get("payment_method") or PAYMENT_CASH,
            due_date=parse_optional_datetime("due_date", data.get("due_date")),
        )
        return jsonify({"sale": sale.to_dict()}), 201

    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
@require_permission("sales.view")
def list_sales_route():
    """
    Query params:
    - status: PENDING | COMPLETED | CANCELLED | ALL
    - start_date / end_date: ISO dates on creation time
    - page / per_page: optional pagination
    """
    try:
        return sales_service.list_sales(
            status=request.args.get("status"),
            start_date=parse_optional_datetime("start_date", request.args.get("start_date")),
            end_date=parse_optional_datetime("end_date", request.args.get("end_date")),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("sales.view")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
