# backend/erp/routes/auth.py
"""
Authentication API routes

- POST /api/auth/register: self-registration (role USER)
- POST /api/auth/login: returns a bearer token
- GET  /api/auth/me: the authenticated user
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import DomainError
from ..services import auth_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.register(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
        )
        return jsonify({"user": user.to_dict()}), 201

    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a token.

    Token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        user, token = auth_service.login(email=data.get("email"), password=data.get("password"))
        return jsonify({"user": user.to_dict(), "token": token}), 200

    except DomainError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
