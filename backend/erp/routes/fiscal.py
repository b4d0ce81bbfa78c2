# backend/erp/routes/fiscal.py
"""
Fiscal invoice routes (fiscal.view / fiscal.manage).

- GET  /invoices                 list (status, type, partner_id)
- GET  /invoices/<id>
- POST /invoices                 create as DRAFT
- PUT  /invoices/<id>            edit while DRAFT
- POST /invoices/<id>/transmit   DRAFT -> PENDING (status only)
- POST /invoices/<id>/cancel
"""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import fiscal_service

fiscal_bp = Blueprint("fiscal", __name__, url_prefix="/api/fiscal")


@fiscal_bp.get("/invoices")
@require_auth
@require_permission("fiscal.view")
def list_invoices_route():
    try:
        return fiscal_service.list_invoices(
            status=request.args.get("status"),
            type=request.args.get("type"),
            partner_id=request.args.get("partner_id", type=int),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code


@fiscal_bp.get("/invoices/<int:invoice_id>")
@require_auth
@require_permission("fiscal.view")
def get_invoice_route(invoice_id: int):
    try:
        return jsonify(fiscal_service.get_invoice(invoice_id).to_dict()), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code


@fiscal_bp.post("/invoices")
@require_auth
@require_permission("fiscal.manage")
def create_invoice_route():
    try:
        invoice = fiscal_service.create_invoice(request.get_json(silent=True) or {})
        return jsonify(invoice.to_dict()), 201
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500


@fiscal_bp.put("/invoices/<int:invoice_id>")
@require_auth
@require_permission("fiscal.manage")
def update_invoice_route(invoice_id: int):
    try:
        invoice = fiscal_service.update_invoice(invoice_id, request.get_json(silent=True) or {})
        return jsonify(invoice.to_dict()), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code


@fiscal_bp.post("/invoices/<int:invoice_id>/transmit")
@require_auth
@require_permission("fiscal.manage")
def transmit_invoice_route(invoice_id: int):
    try:
        invoice = fiscal_service.transmit_invoice(invoice_id)
        return jsonify({"message": "Invoice queued for transmission", "invoice": invoice.to_dict()}), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code


@fiscal_bp.post("/invoices/<int:invoice_id>/cancel")
@require_auth
@require_permission("fiscal.manage")
def cancel_invoice_route(invoice_id: int):
    try:
        invoice = fiscal_service.cancel_invoice(invoice_id)
        return jsonify({"message": "Invoice cancelled", "invoice": invoice.to_dict()}), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
