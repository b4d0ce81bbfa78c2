# Overview: Stock ledger engine; the only code path that writes Product.stock.

from __future__ import annotations

import logging

from sqlalchemy import update

from ..errors import InsufficientStockError, ValidationError
from ..extensions import db
from ..models import Product, StockMovement
from ..models.inventory import MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_TYPES
from ..pagination import paginate
from ..validation import MAX_QUANTITY
from .concurrency import lock_for_update, run_in_transaction

"""
Stock Ledger Invariants (authoritative)

- Product.stock is only changed by apply_movement(); all writers go through it.
- Every change writes exactly one StockMovement in the same DB transaction.
- OUT never drives stock below zero. The check and the decrement are a single
  conditional UPDATE (stock >= quantity), so two concurrent deductions cannot
  both pass against a stale value. Zero affected rows -> InsufficientStockError.
- IN is bounded the same way: the increment only applies while the result
  stays within MAX_QUANTITY, otherwise ValidationError.
- apply_movement() never commits. Callers wrap it in run_in_transaction() so a
  failure anywhere in the document rolls back every movement already applied.
"""

logger = logging.getLogger(__name__)

REFERENCE_SALE = "SALE"
REFERENCE_PURCHASE = "PURCHASE"


def _require_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
    return quantity


def require_products(product_ids) -> dict[int, Product]:
    """Resolve product ids up front; unknown ids are a validation problem."""
    wanted = set(product_ids)
    found = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(wanted)).all()
    }
    missing = sorted(wanted - found.keys())
    if missing:
        raise ValidationError(
            f"Product not found: {', '.join(str(m) for m in missing)}",
            details={"product_ids": missing},
        )
    return found


def apply_movement(
    *,
    product_id: int,
    type: str,
    quantity: int,
    reason: str,
    actor_id: int | None,
    reference_type: str | None = None,
    reference_id: int | None = None,
) -> StockMovement:
    """
    Apply one stock change and append its audit record.

    Must run inside an open unit of work; flushes but does not commit.

    Raises:
        ValidationError: bad type/quantity, unknown product or IN past MAX_QUANTITY
        InsufficientStockError: OUT larger than current stock
    """
    if type not in MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of {', '.join(MOVEMENT_TYPES)}")
    _require_quantity(quantity)

    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise ValidationError(f"Product not found: {product_id}", details={"product_ids": [product_id]})

    stmt = update(Product).where(Product.id == product_id)
    if type == MOVEMENT_OUT:
        stmt = stmt.where(Product.stock >= quantity).values(stock=Product.stock - quantity)
    else:
        stmt = stmt.where(Product.stock <= MAX_QUANTITY - quantity).values(stock=Product.stock + quantity)

    result = db.session.execute(stmt.execution_options(synchronize_session=False))
    db.session.refresh(product, ["stock"])

    if result.rowcount != 1 and type == MOVEMENT_IN:
        raise ValidationError(
            f"Stock for product {product_id} cannot exceed {MAX_QUANTITY}",
            details={"product_id": product_id, "requested_quantity": quantity, "available": product.stock},
        )
    if result.rowcount != 1:
        logger.warning(
            "Rejected OUT movement: product=%s requested=%s available=%s",
            product_id, quantity, product.stock,
        )
        raise InsufficientStockError(product_id, quantity, product.stock)

    movement = StockMovement(
        product_id=product_id,
        user_id=actor_id,
        type=type,
        quantity=quantity,
        reason=reason,
        reference_type=reference_type,
        reference_id=reference_id,
        balance_after=product.stock,
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def adjust_stock(
    *,
    product_id: int,
    type: str,
    quantity: int,
    reason: str,
    actor_id: int | None,
) -> StockMovement:
    """
    Manual correction (inventory count, breakage, found stock).

    No owning document; same failure semantics as apply_movement().
    """
    reason = (reason or "").strip()
    if len(reason) < 3:
        raise ValidationError("reason must be at least 3 characters")

    def _op():
        return apply_movement(
            product_id=product_id,
            type=type,
            quantity=quantity,
            reason=reason,
            actor_id=actor_id,
        )

    movement = run_in_transaction(_op)
    logger.info(
        "Stock adjusted: product=%s type=%s quantity=%s balance=%s",
        product_id, type, quantity, movement.balance_after,
    )
    return movement


def apply_initial_stock(product: Product, quantity: int, actor_id: int | None) -> StockMovement | None:
    """Opening balance for a new product, recorded as a regular IN movement."""
    if not quantity:
        return None
    return apply_movement(
        product_id=product.id,
        type=MOVEMENT_IN,
        quantity=quantity,
        reason="Initial stock",
        actor_id=actor_id,
    )


def list_movements(
    *,
    product_id: int | None = None,
    type: str | None = None,
    reference_type: str | None = None,
    reference_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Movement history, newest first."""
    query = db.session.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if type:
        if type not in MOVEMENT_TYPES:
            raise ValidationError(f"type must be one of {', '.join(MOVEMENT_TYPES)}")
        query = query.filter(StockMovement.type == type)
    if reference_type:
        query = query.filter(StockMovement.reference_type == reference_type)
    if reference_id is not None:
        query = query.filter(StockMovement.reference_id == reference_id)

    query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    return paginate(query, page, per_page, lambda m: m.to_dict())


def movements_for(reference_type: str, reference_id: int) -> list[StockMovement]:
    return (
        db.session.query(StockMovement)
        .filter_by(reference_type=reference_type, reference_id=reference_id)
        .order_by(StockMovement.id.asc())
        .all()
    )
