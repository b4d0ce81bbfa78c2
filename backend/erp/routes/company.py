# backend/erp/routes/company.py
"""Company settings: readable by any signed-in user, saved by ADMIN only."""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import DomainError
from ..models.auth import ROLE_ADMIN
from ..services import fiscal_service

company_bp = Blueprint("company", __name__, url_prefix="/api/company")


@company_bp.get("")
@require_auth
def get_company_route():
    company = fiscal_service.get_company()
    if company is None:
        return {"error": "Company not registered"}, 404
    return company.to_dict()


@company_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def save_company_route():
    try:
        company = fiscal_service.save_company(request.get_json(silent=True) or {})
        return jsonify(company.to_dict()), 200
    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to save company settings")
        return jsonify({"error": "Internal server error"}), 500
