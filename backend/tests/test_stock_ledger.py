"""
Stock ledger tests.

Verifies:
- IN/OUT movements update Product.stock and append exactly one movement
- OUT larger than stock is rejected without touching stock or the ledger
- Manual adjustments validate their reason
- Product.stock always equals the signed sum of its movements
"""

import pytest
from sqlalchemy import case, func

from erp.errors import InsufficientStockError, ValidationError
from erp.extensions import db
from erp.models import Product, StockMovement
from erp.services import stock_service
from erp.services.concurrency import run_in_transaction
from erp.validation import MAX_QUANTITY


def _ledger_balance(product_id):
    signed = case((StockMovement.type == "IN", StockMovement.quantity), else_=-StockMovement.quantity)
    return db.session.query(func.coalesce(func.sum(signed), 0)).filter(
        StockMovement.product_id == product_id
    ).scalar()


def _movement_count(product_id):
    return db.session.query(StockMovement).filter_by(product_id=product_id).count()


class TestInitialStock:

    def test_initial_stock_is_recorded_as_in_movement(self, db_session, product):
        movements = db_session.query(StockMovement).filter_by(product_id=product.id).all()
        assert len(movements) == 1
        assert movements[0].type == "IN"
        assert movements[0].quantity == 10
        assert movements[0].reason == "Initial stock"
        assert movements[0].balance_after == 10
        assert product.stock == 10

    def test_zero_initial_stock_writes_no_movement(self, db_session, make_product):
        p = make_product(stock=0)
        assert p.stock == 0
        assert _movement_count(p.id) == 0


class TestApplyMovement:

    def test_in_increments_stock(self, db_session, product, admin_user):
        movement = run_in_transaction(lambda: stock_service.apply_movement(
            product_id=product.id, type="IN", quantity=5, reason="Found", actor_id=admin_user.id,
        ))
        db_session.refresh(product)
        assert product.stock == 15
        assert movement.balance_after == 15
        assert movement.user_id == admin_user.id

    def test_out_decrements_stock(self, db_session, product, admin_user):
        run_in_transaction(lambda: stock_service.apply_movement(
            product_id=product.id, type="OUT", quantity=10, reason="Breakage", actor_id=admin_user.id,
        ))
        db_session.refresh(product)
        assert product.stock == 0

    def test_out_above_stock_is_rejected(self, db_session, product, admin_user):
        with pytest.raises(InsufficientStockError) as exc:
            run_in_transaction(lambda: stock_service.apply_movement(
                product_id=product.id, type="OUT", quantity=11, reason="Breakage", actor_id=admin_user.id,
            ))

        assert exc.value.product_id == product.id
        assert exc.value.requested == 11
        assert exc.value.available == 10

        db_session.refresh(product)
        assert product.stock == 10
        assert _movement_count(product.id) == 1

    @pytest.mark.parametrize("quantity", [0, -3, "2", 1.5, True])
    def test_rejects_non_positive_or_non_integer_quantity(self, db_session, product, admin_user, quantity):
        with pytest.raises(ValidationError):
            run_in_transaction(lambda: stock_service.apply_movement(
                product_id=product.id, type="IN", quantity=quantity, reason="Found", actor_id=admin_user.id,
            ))

    def test_rejects_unknown_type(self, db_session, product, admin_user):
        with pytest.raises(ValidationError):
            run_in_transaction(lambda: stock_service.apply_movement(
                product_id=product.id, type="TRANSFER", quantity=1, reason="x", actor_id=admin_user.id,
            ))

    def test_rejects_unknown_product(self, db_session, admin_user):
        with pytest.raises(ValidationError):
            run_in_transaction(lambda: stock_service.apply_movement(
                product_id=9999, type="IN", quantity=1, reason="Found", actor_id=admin_user.id,
            ))
        assert db_session.query(StockMovement).count() == 0


class TestAdjustStock:

    def test_adjust_out_records_reason_and_actor(self, db_session, product, admin_user):
        movement = stock_service.adjust_stock(
            product_id=product.id, type="OUT", quantity=3, reason="Inventory count", actor_id=admin_user.id,
        )
        assert movement.reason == "Inventory count"
        assert movement.reference_id is None
        db_session.refresh(product)
        assert product.stock == 7

    @pytest.mark.parametrize("reason", [None, "", "  ", "ab"])
    def test_adjust_requires_reason(self, db_session, product, admin_user, reason):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(
                product_id=product.id, type="IN", quantity=1, reason=reason, actor_id=admin_user.id,
            )
        assert _movement_count(product.id) == 1

    def test_failed_adjust_leaves_no_trace(self, db_session, product, admin_user):
        with pytest.raises(InsufficientStockError):
            stock_service.adjust_stock(
                product_id=product.id, type="OUT", quantity=50, reason="Shrinkage", actor_id=admin_user.id,
            )
        db_session.refresh(product)
        assert product.stock == 10
        assert _movement_count(product.id) == 1


class TestQuantityBounds:

    def test_oversized_quantity_is_a_validation_error(self, db_session, product, admin_user):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(
                product_id=product.id, type="IN", quantity=10 ** 19, reason="Typo", actor_id=admin_user.id,
            )
        db_session.refresh(product)
        assert product.stock == 10
        assert _movement_count(product.id) == 1

    def test_in_cannot_push_stock_past_max(self, db_session, product, admin_user):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(
                product_id=product.id, type="IN", quantity=MAX_QUANTITY - 5, reason="Typo", actor_id=admin_user.id,
            )
        db_session.refresh(product)
        assert product.stock == 10
        assert isinstance(product.stock, int)
        assert _movement_count(product.id) == 1

    def test_in_up_to_max_is_accepted(self, db_session, product, admin_user):
        movement = stock_service.adjust_stock(
            product_id=product.id, type="IN", quantity=MAX_QUANTITY - 10, reason="Big delivery", actor_id=admin_user.id,
        )
        db_session.refresh(product)
        assert product.stock == MAX_QUANTITY
        assert movement.balance_after == MAX_QUANTITY

    @pytest.mark.parametrize("stock", [MAX_QUANTITY + 1, 2 ** 63, 10 ** 19])
    def test_opening_stock_is_bounded(self, db_session, make_product, stock):
        with pytest.raises(ValidationError):
            make_product(stock=stock)
        assert db_session.query(Product).count() == 0


class TestLedgerConsistency:

    def test_stock_equals_sum_of_movements(self, db_session, product, admin_user):
        stock_service.adjust_stock(product_id=product.id, type="IN", quantity=7, reason="Found", actor_id=admin_user.id)
        stock_service.adjust_stock(product_id=product.id, type="OUT", quantity=4, reason="Damaged", actor_id=admin_user.id)
        with pytest.raises(InsufficientStockError):
            stock_service.adjust_stock(product_id=product.id, type="OUT", quantity=100, reason="Lost", actor_id=admin_user.id)
        stock_service.adjust_stock(product_id=product.id, type="OUT", quantity=13, reason="Sold out", actor_id=admin_user.id)

        stock = db_session.query(Product.stock).filter_by(id=product.id).scalar()
        assert stock == 0
        assert _ledger_balance(product.id) == stock

    def test_balance_after_tracks_running_stock(self, db_session, product, admin_user):
        stock_service.adjust_stock(product_id=product.id, type="OUT", quantity=2, reason="Damaged", actor_id=admin_user.id)
        stock_service.adjust_stock(product_id=product.id, type="IN", quantity=5, reason="Found", actor_id=admin_user.id)

        balances = [
            m.balance_after
            for m in db_session.query(StockMovement).filter_by(product_id=product.id).order_by(StockMovement.id)
        ]
        assert balances == [10, 8, 13]


class TestListMovements:

    def test_newest_first_with_filters(self, db_session, product, make_product, admin_user):
        other = make_product(stock=3)
        stock_service.adjust_stock(product_id=product.id, type="OUT", quantity=1, reason="Damaged", actor_id=admin_user.id)

        result = stock_service.list_movements(product_id=product.id)
        assert result["count"] == 2
        assert result["items"][0]["type"] == "OUT"
        assert result["items"][1]["reason"] == "Initial stock"

        outs = stock_service.list_movements(type="OUT")
        assert [m["product_id"] for m in outs["items"]] == [product.id]

        everything = stock_service.list_movements(page=1, per_page=2)
        assert everything["pagination"]["total"] == 3
        assert everything["pagination"]["has_next"] is True
        assert other.id in {m["product_id"] for m in stock_service.list_movements()["items"]}

    def test_rejects_unknown_type_filter(self, db_session):
        with pytest.raises(ValidationError):
            stock_service.list_movements(type="SIDEWAYS")


class TestInventoryRoutes:

    def test_adjust_route(self, client, db_session, product, admin_headers):
        resp = client.post("/api/inventory/adjust", json={
            "product_id": product.id, "type": "IN", "quantity": 4, "reason": "Supplier bonus",
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["movement"]["balance_after"] == 14

    def test_adjust_route_insufficient_stock(self, client, db_session, product, admin_headers):
        resp = client.post("/api/inventory/adjust", json={
            "product_id": product.id, "type": "OUT", "quantity": 11, "reason": "Lost",
        }, headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json["details"] == {
            "product_id": product.id,
            "requested_quantity": 11,
            "available": 10,
        }

    def test_adjust_route_validation(self, client, db_session, product, admin_headers):
        resp = client.post("/api/inventory/adjust", json={
            "product_id": product.id, "type": "IN", "quantity": 0, "reason": "Lost",
        }, headers=admin_headers)
        assert resp.status_code == 400

    def test_adjust_route_oversized_quantity(self, client, db_session, product, admin_headers):
        resp = client.post("/api/inventory/adjust", json={
            "product_id": product.id, "type": "IN", "quantity": 10 ** 19, "reason": "Typo",
        }, headers=admin_headers)
        assert resp.status_code == 400
        db_session.refresh(product)
        assert product.stock == 10

    def test_movements_route(self, client, db_session, product, admin_headers):
        resp = client.get(f"/api/inventory/movements?product_id={product.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1
