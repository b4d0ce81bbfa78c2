"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- USER role is denied purchases, financial and user management (403)
- Admin role can perform privileged operations
- Register / login / me and token handling
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from erp.errors import ValidationError
from erp.models import User
from erp.services import auth_service, permission_service

from conftest import TEST_PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/categories"),
            ("GET", "/api/partners"),
            ("GET", "/api/products"),
            ("POST", "/api/inventory/adjust"),
            ("GET", "/api/inventory/movements"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/purchases"),
            ("GET", "/api/accounts/payable"),
            ("GET", "/api/accounts/receivable/stats"),
            ("GET", "/api/accounts/chart"),
            ("GET", "/api/financial"),
            ("GET", "/api/dashboard/stats"),
            ("GET", "/api/fiscal/invoices"),
            ("POST", "/api/company"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers=auth_headers("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid token"

    def test_expired_token(self, client, db_session, app, basic_user):
        token = jwt.encode(
            {
                "sub": str(basic_user.id),
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            app.config["JWT_SECRET"],
            algorithm="HS256",
        )
        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401
        assert resp.json["error"] == "Token expired"

    def test_token_signed_with_other_secret(self, client, db_session, basic_user):
        token = jwt.encode(
            {"sub": str(basic_user.id), "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "someone-else",
            algorithm="HS256",
        )
        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_deactivated_user_token_is_rejected(self, client, db_session, basic_user, user_headers):
        basic_user.is_active = False
        db_session.commit()
        resp = client.get("/api/auth/me", headers=user_headers)
        assert resp.status_code == 401


# =============================================================================
# USER ROLE DENIED PRIVILEGED OPERATIONS (403)
# =============================================================================


class TestUserRoleDenied:
    """Role USER gets the default USER permission set only."""

    def test_cannot_list_users(self, client, user_headers):
        resp = client.get("/api/users", headers=user_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "users.view"

    def test_cannot_create_user(self, client, user_headers):
        resp = client.post(
            "/api/users",
            json={"name": "Intruder", "email": "x@x.com", "password": "secret123"},
            headers=user_headers,
        )
        assert resp.status_code == 403

    def test_cannot_list_purchases(self, client, user_headers):
        resp = client.get("/api/purchases", headers=user_headers)
        assert resp.status_code == 403

    def test_cannot_adjust_inventory(self, client, product, user_headers):
        resp = client.post(
            "/api/inventory/adjust",
            json={"product_id": product.id, "type": "IN", "quantity": 10, "reason": "Sneaky"},
            headers=user_headers,
        )
        assert resp.status_code == 403

    def test_cannot_view_financial(self, client, user_headers):
        resp = client.get("/api/financial", headers=user_headers)
        assert resp.status_code == 403

    def test_cannot_manage_products(self, client, user_headers):
        resp = client.post(
            "/api/products",
            json={"sku": "HACK-1", "name": "Hack", "price_cents": 100},
            headers=user_headers,
        )
        assert resp.status_code == 403

    def test_can_view_products_and_dashboard(self, client, user_headers):
        assert client.get("/api/products", headers=user_headers).status_code == 200
        assert client.get("/api/dashboard/stats", headers=user_headers).status_code == 200


class TestManagerRole:

    def test_can_view_but_not_manage_users(self, client, manager_headers):
        assert client.get("/api/users", headers=manager_headers).status_code == 200
        resp = client.post(
            "/api/users",
            json={"name": "New Person", "email": "new@test.com", "password": "secret123"},
            headers=manager_headers,
        )
        assert resp.status_code == 403


# =============================================================================
# ADMIN ALLOWED
# =============================================================================


class TestAdminAllowed:

    def test_can_list_users(self, client, admin_headers):
        resp = client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1

    def test_admin_bypasses_permission_list(self, db_session, admin_user):
        admin_user.permissions = []
        db_session.commit()
        assert permission_service.has_permission(admin_user, "users.manage") is True

    def test_can_create_user(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"name": "New Person", "email": "New@Test.com", "password": "secret123", "role": "MANAGER"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["email"] == "new@test.com"
        assert "users.manage" not in resp.json["permissions"]


# =============================================================================
# PERMISSION SERVICE
# =============================================================================


class TestPermissionService:

    def test_explicit_grant(self, db_session, basic_user):
        assert permission_service.has_permission(basic_user, "sales.create") is True
        assert permission_service.has_permission(basic_user, "purchases.manage") is False

    def test_inactive_user_has_nothing(self, db_session, admin_user):
        admin_user.is_active = False
        assert permission_service.has_permission(admin_user, "dashboard.view") is False


# =============================================================================
# REGISTER / LOGIN / ME
# =============================================================================


class TestAuthFlow:

    def test_register_login_me(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Joana Souza", "email": "Joana@Example.com", "password": "hunter22",
        })
        assert resp.status_code == 201
        user = resp.json["user"]
        assert user["role"] == "USER"
        assert user["email"] == "joana@example.com"
        assert "sales.create" in user["permissions"]

        token = get_auth_token(client, "joana@example.com", "hunter22")
        assert token

        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.json["user"]["id"] == user["id"]
        assert resp.json["user"]["last_login_at"] is not None

    def test_token_payload(self, app, client, db_session, manager_user):
        token = get_auth_token(client, manager_user.email, TEST_PASSWORD)
        payload = jwt.decode(token, app.config["JWT_SECRET"], algorithms=["HS256"])
        assert payload["sub"] == str(manager_user.id)
        assert payload["email"] == "manager@test.com"
        assert payload["role"] == "MANAGER"
        assert "financial.manage" in payload["permissions"]
        assert "exp" in payload

    def test_register_existing_email(self, client, db_session, basic_user):
        resp = client.post("/api/auth/register", json={
            "name": "Copycat", "email": "USER@test.com", "password": "hunter22",
        })
        assert resp.status_code == 400
        assert resp.json["error"] == "User already exists"

    @pytest.mark.parametrize("payload", [
        {"name": "Jo", "email": "jo@example.com", "password": "hunter22"},
        {"name": "Joana", "email": "not-an-email", "password": "hunter22"},
        {"name": "Joana", "email": "jo@example.com", "password": "12345"},
        {},
    ])
    def test_register_validation(self, client, db_session, payload):
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 400
        assert db_session.query(User).count() == 0

    def test_wrong_password(self, client, db_session, basic_user):
        resp = client.post("/api/auth/login", json={"email": basic_user.email, "password": "wrong-pass"})
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid credentials"

    def test_unknown_email_gives_same_error(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "ghost@test.com", "password": "whatever"})
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid credentials"

    def test_inactive_user_cannot_log_in(self, db_session, basic_user):
        basic_user.is_active = False
        db_session.commit()
        with pytest.raises(ValidationError):
            auth_service.login(email=basic_user.email, password=TEST_PASSWORD)

    def test_password_hash_is_bcrypt(self, db_session, basic_user):
        assert basic_user.password_hash.startswith("$2")
        assert auth_service.verify_password(TEST_PASSWORD, basic_user.password_hash)
        assert not auth_service.verify_password("nope", basic_user.password_hash)


class TestPermissionCatalog:

    def test_catalog_lists_every_code_once(self, client, manager_headers):
        resp = client.get("/api/users/permissions", headers=manager_headers)
        assert resp.status_code == 200

        codes = [p["code"] for group in resp.json["categories"] for p in group["permissions"]]
        assert len(codes) == 19
        assert len(set(codes)) == 19
        assert resp.json["categories"][0]["category"] == "DASHBOARD"
        assert resp.json["roles"]["USER"] == [
            "dashboard.view",
            "products.view",
            "categories.view",
            "partners.view",
            "inventory.view",
            "sales.view",
            "sales.create",
        ]

    def test_catalog_requires_users_view(self, client, user_headers):
        assert client.get("/api/users/permissions", headers=user_headers).status_code == 403
