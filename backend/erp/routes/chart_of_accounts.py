# backend/erp/routes/chart_of_accounts.py
"""Chart of accounts routes. DELETE deactivates the account."""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import finance_service

chart_bp = Blueprint("chart_of_accounts", __name__, url_prefix="/api/accounts/chart")


def _parse_active(value):
    if value is None or value == "":
        return None
    return value.lower() == "true"


@chart_bp.get("")
@require_auth
@require_permission("financial.view")
def list_chart_route():
    return finance_service.list_chart_accounts(
        active=_parse_active(request.args.get("active")),
        search=request.args.get("search"),
        type=request.args.get("type"),
        nature=request.args.get("nature"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@chart_bp.get("/<int:account_id>")
@require_auth
@require_permission("financial.view")
def get_chart_route(account_id: int):
    account = finance_service.get_chart_account(account_id)
    if account is None:
        return {"error": "Account not found"}, 404
    return account.to_dict()


@chart_bp.post("")
@require_auth
@require_permission("financial.manage")
def create_chart_route():
    try:
        account = finance_service.create_chart_account(request.get_json(silent=True) or {})
        return account.to_dict(), 201
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create chart account")
        return jsonify({"error": "Internal server error"}), 500


@chart_bp.put("/<int:account_id>")
@require_auth
@require_permission("financial.manage")
def update_chart_route(account_id: int):
    try:
        account = finance_service.update_chart_account(account_id, request.get_json(silent=True) or {})
    except DomainError as e:
        return e.to_dict(), e.status_code

    if account is None:
        return {"error": "Account not found"}, 404
    return account.to_dict(), 200


@chart_bp.delete("/<int:account_id>")
@require_auth
@require_permission("financial.manage")
def delete_chart_route(account_id: int):
    try:
        deactivated = finance_service.deactivate_chart_account(account_id)
    except DomainError as e:
        return e.to_dict(), e.status_code

    if not deactivated:
        return {"error": "Account not found"}, 404
    return {"ok": True}, 200
