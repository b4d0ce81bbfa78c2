"""
Chart of accounts, cash book and dashboard tests.
"""

from datetime import datetime

import pytest

from erp.errors import ConflictError, ValidationError
from erp.models import ChartOfAccount
from erp.services import dashboard_service, finance_service, sales_service
from erp.time_utils import to_utc_z, utcnow


@pytest.fixture
def assets(db_session):
    root = finance_service.create_chart_account({"code": "1", "name": "Assets", "type": "ASSET", "nature": "DEBIT"})
    cash = finance_service.create_chart_account({
        "code": "1.1", "name": "Cash", "type": "ASSET", "nature": "DEBIT", "parent_id": root.id,
    })
    return root, cash


class TestChartOfAccounts:

    def test_hierarchy(self, db_session, assets):
        root, cash = assets
        listed = finance_service.list_chart_accounts()
        assert [a["code"] for a in listed["items"]] == ["1", "1.1"]
        assert listed["items"][0]["children"][0]["code"] == "1.1"
        assert listed["items"][1]["parent_code"] == "1"

    def test_duplicate_code(self, db_session, assets):
        with pytest.raises(ConflictError):
            finance_service.create_chart_account({"code": "1.1", "name": "Other", "type": "ASSET", "nature": "DEBIT"})

    @pytest.mark.parametrize("override", [
        {"type": "INCOME"},
        {"nature": "BOTH"},
        {"parent_id": 999},
    ])
    def test_rejects_invalid(self, db_session, override):
        payload = {"code": "2", "name": "Liabilities", "type": "LIABILITY", "nature": "CREDIT"}
        payload.update(override)
        with pytest.raises(ValidationError):
            finance_service.create_chart_account(payload)

    def test_parent_cannot_be_self_or_descendant(self, db_session, assets):
        root, cash = assets
        with pytest.raises(ValidationError):
            finance_service.update_chart_account(root.id, {"parent_id": root.id})
        with pytest.raises(ValidationError):
            finance_service.update_chart_account(root.id, {"parent_id": cash.id})

    def test_cannot_deactivate_with_active_children(self, db_session, assets):
        root, cash = assets
        with pytest.raises(ConflictError):
            finance_service.deactivate_chart_account(root.id)
        with pytest.raises(ConflictError):
            finance_service.update_chart_account(root.id, {"active": False})

        assert finance_service.deactivate_chart_account(cash.id) is True
        assert finance_service.deactivate_chart_account(root.id) is True

        db_session.expire_all()
        assert db_session.query(ChartOfAccount).filter_by(active=True).count() == 0
        assert finance_service.list_chart_accounts(active=False)["count"] == 2

    def test_routes(self, client, db_session, admin_headers):
        resp = client.post("/api/accounts/chart", json={
            "code": "3", "name": "Revenue", "type": "REVENUE", "nature": "CREDIT",
        }, headers=admin_headers)
        assert resp.status_code == 201
        account_id = resp.json["id"]

        resp = client.get("/api/accounts/chart?search=reven", headers=admin_headers)
        assert resp.json["count"] == 1

        resp = client.delete(f"/api/accounts/chart/{account_id}", headers=admin_headers)
        assert resp.status_code == 200

        resp = client.get("/api/accounts/chart?active=true", headers=admin_headers)
        assert resp.json["count"] == 0


class TestFinancialTransactions:

    def test_paid_entry_gets_paid_at(self, db_session, admin_user):
        entry = finance_service.create_transaction({
            "description": "Rent",
            "amount_cents": 120000,
            "type": "EXPENSE",
            "status": "PAID",
            "due_date": to_utc_z(utcnow()),
            "category": "Facilities",
        }, actor_id=admin_user.id)
        assert entry.paid_at is not None
        assert entry.user_id == admin_user.id

    @pytest.mark.parametrize("override", [
        {"amount_cents": 0},
        {"type": "TRANSFER"},
        {"status": "LATE"},
        {"description": "ab"},
        {"partner_id": 555},
    ])
    def test_rejects_invalid(self, db_session, admin_user, override):
        payload = {
            "description": "Water bill",
            "amount_cents": 8000,
            "type": "EXPENSE",
            "due_date": to_utc_z(utcnow()),
            "category": "Utilities",
        }
        payload.update(override)
        with pytest.raises(ValidationError):
            finance_service.create_transaction(payload, actor_id=admin_user.id)

    def test_update_to_paid_sets_paid_at(self, db_session, admin_user):
        entry = finance_service.create_transaction({
            "description": "Internet",
            "amount_cents": 9900,
            "type": "EXPENSE",
            "due_date": to_utc_z(utcnow()),
            "category": "Utilities",
        }, actor_id=admin_user.id)
        assert entry.paid_at is None

        updated = finance_service.update_transaction(entry.id, {"status": "PAID"})
        assert updated.paid_at is not None

    def test_monthly_summary(self, db_session, admin_user):
        now = utcnow()
        for description, amount, type_, status in [
            ("Consulting", 50000, "INCOME", "PAID"),
            ("Rent", 120000, "EXPENSE", "PENDING"),
            ("Power", 30000, "EXPENSE", "PENDING"),
        ]:
            finance_service.create_transaction({
                "description": description,
                "amount_cents": amount,
                "type": type_,
                "status": status,
                "due_date": to_utc_z(now),
                "category": "General",
            }, actor_id=admin_user.id)
        finance_service.create_transaction({
            "description": "Old rent",
            "amount_cents": 120000,
            "type": "EXPENSE",
            "due_date": "2001-01-10",
            "category": "General",
        }, actor_id=admin_user.id)

        assert finance_service.monthly_summary(now) == [
            {"type": "EXPENSE", "status": "PENDING", "count": 2, "amount_cents": 150000},
            {"type": "INCOME", "status": "PAID", "count": 1, "amount_cents": 50000},
        ]

    def test_routes(self, client, db_session, manager_headers):
        resp = client.post("/api/financial", json={
            "description": "Office supplies",
            "amount_cents": 4500,
            "type": "EXPENSE",
            "due_date": "2030-02-01",
            "category": "Office",
        }, headers=manager_headers)
        assert resp.status_code == 201
        entry_id = resp.json["id"]

        resp = client.get("/api/financial?type=EXPENSE", headers=manager_headers)
        assert resp.json["count"] == 1
        resp = client.get("/api/financial?start_date=2031-01-01", headers=manager_headers)
        assert resp.json["count"] == 0

        resp = client.get("/api/financial/summary", headers=manager_headers)
        assert resp.status_code == 200
        assert "items" in resp.json

        resp = client.delete(f"/api/financial/{entry_id}", headers=manager_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/financial/{entry_id}", headers=manager_headers).status_code == 404


class TestDashboard:

    def test_stats(self, db_session, make_product, admin_user):
        p = make_product(stock=20)
        make_product(stock=3)
        sales_service.create_sale(
            user_id=admin_user.id,
            items=[{"product_id": p.id, "quantity": 2, "unit_price_cents": 1500}],
        )
        finance_service.create_transaction({
            "description": "Rent",
            "amount_cents": 70000,
            "type": "EXPENSE",
            "due_date": to_utc_z(utcnow()),
            "category": "Facilities",
        }, actor_id=admin_user.id)

        stats = dashboard_service.get_stats()
        assert stats["sales_today_cents"] == 3000
        assert stats["sales_month_cents"] == 3000
        assert stats["expenses_month_cents"] == 70000
        assert stats["low_stock_count"] == 1
        assert len(stats["recent_sales"]) == 1
        assert "items" not in stats["recent_sales"][0]
        assert [e["description"] for e in stats["recent_expenses"]] == ["Rent"]

    def test_other_month_is_excluded(self, db_session, product, admin_user):
        sales_service.create_sale(
            user_id=admin_user.id,
            items=[{"product_id": product.id, "quantity": 1, "unit_price_cents": 1500}],
        )
        stats = dashboard_service.get_stats(now=datetime(2001, 1, 15))
        assert stats["sales_today_cents"] == 0
        assert stats["sales_month_cents"] == 0

    def test_route(self, client, db_session, user_headers):
        resp = client.get("/api/dashboard/stats", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json["low_stock_count"] == 0
