# backend/erp/routes/financial.py
"""Income / expense transaction routes."""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import finance_service
from ..validation import parse_optional_datetime

financial_bp = Blueprint("financial", __name__, url_prefix="/api/financial")


@financial_bp.get("")
@require_auth
@require_permission("financial.view")
def list_transactions_route():
    """
    Query params:
    - type: INCOME | EXPENSE
    - status: PENDING | PAID
    - start_date / end_date: due-date range
    - page / per_page: optional pagination
    """
    try:
        return finance_service.list_transactions(
            type=request.args.get("type"),
            status=request.args.get("status"),
            start_date=parse_optional_datetime("start_date", request.args.get("start_date")),
            end_date=parse_optional_datetime("end_date", request.args.get("end_date")),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except DomainError as e:
        return e.to_dict(), e.status_code


@financial_bp.get("/summary")
@require_auth
@require_permission("financial.view")
def summary_route():
    return jsonify({"items": finance_service.monthly_summary()}), 200


@financial_bp.get("/<int:transaction_id>")
@require_auth
@require_permission("financial.view")
def get_transaction_route(transaction_id: int):
    transaction = finance_service.get_transaction(transaction_id)
    if transaction is None:
        return {"error": "Transaction not found"}, 404
    return transaction.to_dict()


@financial_bp.post("")
@require_auth
@require_permission("financial.manage")
def create_transaction_route():
    try:
        transaction = finance_service.create_transaction(
            request.get_json(silent=True) or {},
            actor_id=g.current_user.id,
        )
        return transaction.to_dict(), 201
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create financial transaction")
        return jsonify({"error": "Internal server error"}), 500


@financial_bp.put("/<int:transaction_id>")
@require_auth
@require_permission("financial.manage")
def update_transaction_route(transaction_id: int):
    try:
        transaction = finance_service.update_transaction(transaction_id, request.get_json(silent=True) or {})
    except DomainError as e:
        return e.to_dict(), e.status_code

    if transaction is None:
        return {"error": "Transaction not found"}, 404
    return transaction.to_dict(), 200


@financial_bp.delete("/<int:transaction_id>")
@require_auth
@require_permission("financial.manage")
def delete_transaction_route(transaction_id: int):
    if not finance_service.delete_transaction(transaction_id):
        return {"error": "Transaction not found"}, 404
    return {"ok": True}, 200
