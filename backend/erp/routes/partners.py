# backend/erp/routes/partners.py
"""Client / supplier routes (partners.view / partners.manage)."""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DomainError
from ..services import catalog_service

partners_bp = Blueprint("partners", __name__, url_prefix="/api/partners")


@partners_bp.get("")
@require_auth
@require_permission("partners.view")
def list_partners_route():
    """
    Query params:
    - type: CLIENT or SUPPLIER
    - search: name, fantasy name or document
    - page / per_page: optional pagination
    """
    try:
        return catalog_service.list_partners(
            type=request.args.get("type"),
            search=request.args.get("search"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except DomainError as e:
        return e.to_dict(), e.status_code


@partners_bp.get("/<int:partner_id>")
@require_auth
@require_permission("partners.view")
def get_partner_route(partner_id: int):
    partner = catalog_service.get_partner(partner_id)
    if partner is None:
        return {"error": "Partner not found"}, 404
    return partner.to_dict()


@partners_bp.post("")
@require_auth
@require_permission("partners.manage")
def create_partner_route():
    try:
        partner = catalog_service.create_partner(request.get_json(silent=True) or {})
        return partner.to_dict(), 201
    except DomainError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create partner")
        return jsonify({"error": "Internal server error"}), 500


@partners_bp.put("/<int:partner_id>")
@require_auth
@require_permission("partners.manage")
def update_partner_route(partner_id: int):
    try:
        partner = catalog_service.update_partner(partner_id, request.get_json(silent=True) or {})
    except DomainError as e:
        return e.to_dict(), e.status_code

    if partner is None:
        return {"error": "Partner not found"}, 404
    return partner.to_dict(), 200


@partners_bp.delete("/<int:partner_id>")
@require_auth
@require_permission("partners.manage")
def delete_partner_route(partner_id: int):
    try:
        deleted = catalog_service.delete_partner(partner_id)
    except DomainError as e:
        return e.to_dict(), e.status_code

    if not deleted:
        return {"error": "Partner not found"}, 404
    return {"ok": True}, 200
