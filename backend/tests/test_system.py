"""
Health endpoint and CLI bootstrap tests.
"""

from erp.models import User
from erp.services import auth_service


class TestHealth:

    def test_health_ok(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "ok"
        assert resp.json["timestamp"].endswith("Z")
        assert resp.json["checks"]["database"]["status"] == "healthy"

    def test_health_needs_no_token(self, client, db_session):
        assert client.get("/health").status_code == 200

    def test_cors_header_for_allowed_origin(self, client, db_session, app):
        origin = app.config["CORS_ALLOWED_ORIGINS"][0]
        resp = client.get("/health", headers={"Origin": origin})
        assert resp.headers["Access-Control-Allow-Origin"] == origin

        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output
        assert "PASS Created user: admin@erp.local" in result.output

        admin = db_session.query(User).filter_by(email="admin@erp.local").one()
        assert admin.role == "ADMIN"
        assert auth_service.verify_password("admin123", admin.password_hash)

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert db_session.query(User).count() == 3

    def test_users_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--name", "Ops Person", "--email", "ops@erp.local",
            "--password", "secret99", "--role", "MANAGER",
        ])
        assert result.exit_code == 0, result.output

        user = db_session.query(User).filter_by(email="ops@erp.local").one()
        assert user.role == "MANAGER"

        result = runner.invoke(args=["users", "list"])
        assert "ops@erp.local" in result.output

    def test_users_create_rejects_duplicate(self, app, db_session, basic_user):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--name", "Dup User", "--email", basic_user.email,
            "--password", "secret99", "--role", "USER",
        ])
        assert result.exit_code != 0
        assert "Email already in use" in result.output
