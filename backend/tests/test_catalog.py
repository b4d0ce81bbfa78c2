"""
Catalog tests: products, categories, partners and users.
"""

import pytest

from erp.errors import ConflictError, ValidationError
from erp.models import Product, StockMovement, User
from erp.services import catalog_service, products_service, sales_service, user_service


class TestProductService:

    def test_create_with_initial_stock(self, db_session, make_product):
        p = make_product(stock=7, cost_price_cents=400, ncm="22021000", cfop="5102")
        assert p.stock == 7
        assert p.cost_price_cents == 400
        movement = db_session.query(StockMovement).filter_by(product_id=p.id).one()
        assert movement.reason == "Initial stock"

    def test_duplicate_sku(self, db_session, make_product, admin_user):
        make_product(stock=0)
        with pytest.raises(ConflictError):
            products_service.create_product(
                {"sku": "SKU-0001", "name": "Another", "price_cents": 100}, actor_id=admin_user.id,
            )

    @pytest.mark.parametrize("override", [
        {"price_cents": 0},
        {"price_cents": "12.50"},
        {"cost_price_cents": -1},
        {"stock": -4},
        {"sku": "AB"},
        {"name": "Xy"},
        {"ncm": "1234"},
        {"cfop": "51020"},
        {"origin": 3},
        {"icms_rate_bps": 10001},
        {"category_id": 999},
        {"is_deleted": True},
    ])
    def test_rejects_invalid_fields(self, db_session, admin_user, override):
        payload = {"sku": "VALID-1", "name": "Valid Product", "price_cents": 1000}
        payload.update(override)
        with pytest.raises(ValidationError):
            products_service.create_product(payload, actor_id=admin_user.id)
        assert db_session.query(Product).count() == 0

    def test_stock_is_not_editable(self, db_session, product):
        with pytest.raises(ValidationError):
            products_service.update_product(product.id, {"stock": 99})
        db_session.refresh(product)
        assert product.stock == 10

    def test_update_fields(self, db_session, product, category):
        updated = products_service.update_product(product.id, {"name": "Renamed", "category_id": category.id})
        assert updated.name == "Renamed"
        assert updated.category_id == category.id

    def test_update_missing_product(self, db_session):
        assert products_service.update_product(12345, {"name": "Nobody"}) is None

    def test_delete_with_history_is_refused(self, db_session, product):
        with pytest.raises(ConflictError):
            products_service.delete_product(product.id)
        assert db_session.get(Product, product.id) is not None

    def test_delete_without_history(self, db_session, make_product):
        p = make_product(stock=0)
        assert products_service.delete_product(p.id) is True
        assert products_service.delete_product(p.id) is False

    def test_stock_filters(self, db_session, make_product):
        empty = make_product(stock=0)
        low = make_product(stock=4)
        edge = make_product(stock=10)
        plenty = make_product(stock=25)

        def ids(stock_filter):
            return {p["id"] for p in products_service.list_products(stock_filter=stock_filter)["items"]}

        assert ids("out") == {empty.id}
        assert ids("low") == {low.id, edge.id}
        assert ids("in") == {plenty.id}
        assert ids("all") == {empty.id, low.id, edge.id, plenty.id}

        with pytest.raises(ValidationError):
            products_service.list_products(stock_filter="some")

    def test_search_and_category(self, db_session, make_product, category):
        soda = make_product(name="Orange Soda", category_id=category.id)
        make_product(name="Bread Loaf")

        found = products_service.list_products(search="soda")["items"]
        assert [p["id"] for p in found] == [soda.id]
        found = products_service.list_products(search="sku-0002")["items"]
        assert [p["name"] for p in found] == ["Bread Loaf"]
        assert products_service.list_products(category_id=category.id)["count"] == 1

    def test_pagination(self, db_session, make_product):
        for _ in range(5):
            make_product()
        page = products_service.list_products(page=2, per_page=2)
        assert page["count"] == 2
        assert page["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 5,
            "total_pages": 3,
            "has_next": True,
            "has_prev": True,
        }
        assert "pagination" not in products_service.list_products()


class TestProductRoutes:

    def test_create_and_get(self, client, db_session, admin_headers):
        resp = client.post("/api/products", json={
            "sku": "COLA-350", "name": "Cola 350ml", "price_cents": 650, "stock": 24,
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["stock"] == 24

        resp = client.get(f"/api/products/{resp.json['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["sku"] == "COLA-350"

    def test_put_stock_is_rejected(self, client, db_session, product, admin_headers):
        resp = client.put(f"/api/products/{product.id}", json={"stock": 500}, headers=admin_headers)
        assert resp.status_code == 400

    def test_duplicate_sku_answers_409(self, client, db_session, product, admin_headers):
        resp = client.post("/api/products", json={
            "sku": product.sku, "name": "Clone", "price_cents": 100,
        }, headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_with_history_answers_409(self, client, db_session, product, admin_headers):
        resp = client.delete(f"/api/products/{product.id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_missing_product_answers_404(self, client, db_session, admin_headers):
        assert client.get("/api/products/999", headers=admin_headers).status_code == 404
        assert client.delete("/api/products/999", headers=admin_headers).status_code == 404


class TestCategories:

    def test_crud(self, client, db_session, admin_headers):
        resp = client.post("/api/categories", json={"name": "Snacks"}, headers=admin_headers)
        assert resp.status_code == 201
        category_id = resp.json["id"]

        resp = client.post("/api/categories", json={"name": "Snacks"}, headers=admin_headers)
        assert resp.status_code == 409

        resp = client.put(f"/api/categories/{category_id}", json={"description": "Salty"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["description"] == "Salty"

        resp = client.get("/api/categories", headers=admin_headers)
        assert [c["name"] for c in resp.json["items"]] == ["Snacks"]

        resp = client.delete(f"/api/categories/{category_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json == {"ok": True}

    def test_delete_with_products_is_refused(self, db_session, make_product, category):
        make_product(category_id=category.id)
        with pytest.raises(ConflictError):
            catalog_service.delete_category(category.id)

    def test_rename_to_existing_name(self, db_session, category):
        other = catalog_service.create_category({"name": "Snacks"})
        with pytest.raises(ConflictError):
            catalog_service.update_category(other.id, {"name": "Beverages"})


class TestPartners:

    def test_create_and_filter(self, db_session, client_partner, supplier):
        created = catalog_service.create_partner({
            "type": "SUPPLIER",
            "name": "Padaria Central",
            "fantasy_name": "Central",
            "document": "99888777000166",
            "city": "Recife",
        })
        assert created.city == "Recife"

        suppliers = catalog_service.list_partners(type="SUPPLIER")
        assert {p["name"] for p in suppliers["items"]} == {"Acme Distribuidora", "Padaria Central"}

        assert [p["name"] for p in catalog_service.list_partners(search="acme")["items"]] == ["Acme Distribuidora"]
        assert [p["name"] for p in catalog_service.list_partners(search="123456")["items"]] == ["Maria Silva"]

    @pytest.mark.parametrize("payload", [
        {"type": "VENDOR", "name": "Somebody"},
        {"type": "CLIENT", "name": "Al"},
        {"name": "No Type"},
    ])
    def test_rejects_invalid_partner(self, db_session, payload):
        with pytest.raises(ValidationError):
            catalog_service.create_partner(payload)

    def test_delete_referenced_partner_is_refused(self, db_session, product, client_partner, admin_user):
        sales_service.create_sale(
            user_id=admin_user.id,
            partner_id=client_partner.id,
            items=[{"product_id": product.id, "quantity": 1, "unit_price_cents": 100}],
        )
        with pytest.raises(ConflictError):
            catalog_service.delete_partner(client_partner.id)

    def test_delete_unreferenced_partner(self, client, db_session, supplier, admin_headers):
        resp = client.delete(f"/api/partners/{supplier.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/partners/{supplier.id}", headers=admin_headers).status_code == 404


class TestUsers:

    def test_create_defaults_to_user_role(self, db_session):
        user = user_service.create_user({"name": "Carlos Lima", "email": "carlos@test.com", "password": "secret123"})
        assert user.role == "USER"
        assert "sales.create" in user.permissions
        assert user.password_hash != "secret123"

    def test_duplicate_email(self, db_session, basic_user):
        with pytest.raises(ConflictError):
            user_service.create_user({"name": "Other", "email": "user@test.com", "password": "secret123"})

    def test_unknown_permission_code(self, db_session):
        with pytest.raises(ValidationError):
            user_service.create_user({
                "name": "Carlos Lima", "email": "carlos@test.com", "password": "secret123",
                "permissions": ["sales.create", "rockets.launch"],
            })

    def test_delete_deactivates(self, db_session, admin_user, basic_user):
        assert user_service.delete_user(basic_user.id, actor_id=admin_user.id) is True
        db_session.expire_all()
        assert db_session.get(User, basic_user.id).is_active is False

    def test_cannot_deactivate_self(self, db_session, admin_user):
        with pytest.raises(ValidationError):
            user_service.delete_user(admin_user.id, actor_id=admin_user.id)

    def test_search(self, db_session, admin_user, basic_user):
        assert [u["email"] for u in user_service.list_users(search="admin")["items"]] == ["admin@test.com"]
