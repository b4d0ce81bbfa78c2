"""
Sales Service - one-shot sale documents

A sale is created COMPLETED in a single unit of work: header, one SaleItem
per submitted line, and one OUT movement per line. If any line fails its
stock check, nothing of the sale survives (header, items, earlier
movements). Optionally a receivable for the sale total is written in the
same transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import AccountsReceivable, Partner, Sale, SaleItem
from ..models.inventory import MOVEMENT_OUT
from ..models.sales import PAYMENT_CASH, PAYMENT_METHODS, SALE_STATUS_COMPLETED, SALE_STATUSES
from ..pagination import paginate
from ..validation import LineItem, document_total_cents, parse_line_items
from .concurrency import run_in_transaction
from .stock_service import REFERENCE_SALE, apply_movement, require_products

logger = logging.getLogger(__name__)


def create_sale(
    *,
    user_id: int,
    items: list,
    partner_id: int | None = None,
    payment_method: str = PAYMENT_CASH,
    due_date: datetime | None = None,
) -> Sale:
    """
    Create a completed sale and deduct its stock atomically.

    Args:
        user_id: Authenticated actor (seller)
        items: Non-empty list of LineItem or {product_id, quantity, unit_price_cents}
        partner_id: Optional client
        payment_method: CASH, CREDIT_CARD, DEBIT_CARD or PIX
        due_date: When given, also opens a receivable for the sale total

    Raises:
        ValidationError: malformed input, unknown product or partner
        InsufficientStockError: first line whose product lacks stock
    """
    lines: list[LineItem] = parse_line_items(items)

    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")
    if due_date is not None and partner_id is None:
        raise ValidationError("partner_id is required when due_date is given")

    total_cents = document_total_cents(lines)

    def _op():
        if partner_id is not None and db.session.get(Partner, partner_id) is None:
            raise ValidationError(f"Partner not found: {partner_id}")
        require_products(line.product_id for line in lines)

        sale = Sale(
            user_id=user_id,
            partner_id=partner_id,
            payment_method=payment_method,
            total_cents=total_cents,
            status=SALE_STATUS_COMPLETED,
        )
        db.session.add(sale)
        db.session.flush()

        for position, line in enumerate(lines, start=1):
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=line.product_id,
                position=position,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                total_cents=line.total_cents,
            ))
            apply_movement(
                product_id=line.product_id,
                type=MOVEMENT_OUT,
                quantity=line.quantity,
                reason="Sale",
                actor_id=user_id,
                reference_type=REFERENCE_SALE,
                reference_id=sale.id,
            )

        if due_date is not None:
            db.session.add(AccountsReceivable(
                description=f"Sale #{sale.id}",
                partner_id=partner_id,
                amount_cents=total_cents,
                due_date=due_date,
                payment_method=payment_method,
                sale_id=sale.id,
            ))
            db.session.flush()

        return sale

    sale = run_in_transaction(_op)
    logger.info("Sale %s committed: %d lines, total_cents=%s", sale.id, len(lines), total_cents)
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def list_sales(
    *,
    status: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(Sale)
    if status and status != "ALL":
        if status not in SALE_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(SALE_STATUSES)}")
        query = query.filter(Sale.status == status)
    if start_date is not None:
        query = query.filter(Sale.created_at >= start_date)
    if end_date is not None:
        query = query.filter(Sale.created_at <= end_date)

    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    return paginate(query, page, per_page, lambda s: s.to_dict())
