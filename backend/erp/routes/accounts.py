# backend/erp/routes/accounts.py
"""
Accounts payable / receivable routes.

Both ledgers expose the same endpoints; one blueprint is built per kind.

- GET  /                list (status incl. derived OVERDUE, partner_id)
- GET  /stats           counts and sums per status
- GET  /<id>
- POST /                create
- PUT  /<id>            edit while open
- POST /<id>/pay        register the (single) payment
- POST /<id>/cancel     PENDING|OVERDUE -> CANCELLED
"""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import accounts_service
from ..services.accounts_service import KIND_PAYABLE, KIND_RECEIVABLE
from ..validation import parse_optional_datetime, parse_positive_int


def _build_blueprint(kind: str, name: str, url_prefix: str) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=url_prefix)

    @bp.get("")
    @require_auth
    @require_permission("financial.view")
    def list_accounts_route():
        try:
            return accounts_service.list_accounts(
                kind,
                status=request.args.get("status"),
                partner_id=request.args.get("partner_id", type=int),
                page=request.args.get("page", type=int),
                per_page=request.args.get("per_page", type=int),
            )
        except DomainError as e:
            return jsonify(e.to_dict()), e.status_code

    @bp.get("/stats")
    @require_auth
    @require_permission("financial.view")
    def stats_route():
        return jsonify(accounts_service.account_stats(kind)), 200

    @bp.get("/<int:account_id>")
    @require_auth
    @require_permission("financial.view")
    def get_account_route(account_id: int):
        try:
            return jsonify(accounts_service.get_account(kind, account_id).to_dict()), 200
        except DomainError as e:
            return jsonify(e.to_dict()), e.status_code

    @bp.post("")
    @require_auth
    @require_permission("financial.manage")
    def create_account_route():
        try:
            account = accounts_service.create_account(kind, request.get_json(silent=True) or {})
            return jsonify(account.to_dict()), 201
        except DomainError as e:
            return jsonify(e.to_dict()), e.status_code
        except Exception:
            current_app.logger.exception("Failed to create %s", kind)
            return jsonify({"error": "Internal server error"}), 500

    @bp.put("/<int:account_id>")
    @require_auth
    @require_permission("financial.manage")
    def update_account_route(account_id: int):
        try:
            account = accounts_service.update_account(kind, account_id, request.get_json(silent=True) or {})
            return jsonify(account.to_dict()), 200
        except DomainError as e:
            return jsonify(e.to_dict()), e.status_code

    @bp.post("/<int:account_id>/pay")
    @require_auth
    @require_permission("financial.manage")
    def pay_route(account_id: int):
        """
        Body: {paid_amount_cents, payment_method, paid_at?}

        A second payment answers 409 and leaves the first one untouched.
        """
        try:
            data = request.get_json(silent=True) or {}
            account = accounts_service.register_payment(
                kind,
                account_id,
                paid_amount_cents=parse_positive_int("paid_amount_cents", data.get("paid_amount_cents")),
                payment_method=data.get("payment_method"),
                paid_at=parse_optional_datetime("paid_at", data.get("paid_at")),
            )
            return jsonify(account.to_dict()), 200
        except DomainError as e:
            return jsonify(e.to_dict()), e.status_code
        except Exception:
            current_app.logger.exception("Failed to register payment on %s %s", kind, account_id)
            return jsonify({"error": "Internal server error"}), 500

    @bp.post("/<int:account_id>/cancel")
    @require_auth
    @require_permission("financial.manage")
    def cancel_route(account_id: int):
        try:
            account = accounts_service.cancel_account(kind, account_id)
            return jsonify(account.to_dict()), 200
        except DomainError as e:
            return jsonify(e.to_dict()), e.status_code

    return bp


payable_bp = _build_blueprint(KIND_PAYABLE, "accounts_payable", "/api/accounts/payable")
receivable_bp = _build_blueprint(KIND_RECEIVABLE, "accounts_receivable", "/api/accounts/receivable")
