"""
Purchase Service - incoming invoices

Same shape as a sale, but every line is an IN movement. Purchases fail only
on validation or storage errors; item creation is still all-or-nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import AccountsPayable, Partner, Purchase, PurchaseItem
from ..models.inventory import MOVEMENT_IN
from ..models.purchases import PURCHASE_STATUS_COMPLETED
from ..pagination import paginate
from ..time_utils import utcnow
from ..validation import document_total_cents, parse_line_items
from .concurrency import run_in_transaction
from .stock_service import REFERENCE_PURCHASE, apply_movement, require_products

logger = logging.getLogger(__name__)


def create_purchase(
    *,
    partner_id: int,
    items: list,
    actor_id: int | None,
    invoice_number: str | None = None,
    invoice_series: str | None = None,
    invoice_key: str | None = None,
    issue_date: datetime | None = None,
    due_date: datetime | None = None,
) -> Purchase:
    """
    Record a purchase and add its quantities to stock atomically.

    When due_date is given a payable for the purchase total is opened in the
    same transaction.
    """
    lines = parse_line_items(items)
    if partner_id is None:
        raise ValidationError("partner_id is required")

    total_cents = document_total_cents(lines)

    def _op():
        if db.session.get(Partner, partner_id) is None:
            raise ValidationError(f"Partner not found: {partner_id}")
        require_products(line.product_id for line in lines)

        purchase = Purchase(
            partner_id=partner_id,
            user_id=actor_id,
            invoice_number=invoice_number,
            invoice_series=invoice_series,
            invoice_key=invoice_key,
            issue_date=issue_date or utcnow(),
            total_cents=total_cents,
            status=PURCHASE_STATUS_COMPLETED,
        )
        db.session.add(purchase)
        db.session.flush()

        for position, line in enumerate(lines, start=1):
            db.session.add(PurchaseItem(
                purchase_id=purchase.id,
                product_id=line.product_id,
                position=position,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                total_cents=line.total_cents,
            ))
            apply_movement(
                product_id=line.product_id,
                type=MOVEMENT_IN,
                quantity=line.quantity,
                reason="Purchase",
                actor_id=actor_id,
                reference_type=REFERENCE_PURCHASE,
                reference_id=purchase.id,
            )

        if due_date is not None:
            label = invoice_number or f"#{purchase.id}"
            db.session.add(AccountsPayable(
                description=f"Purchase {label}",
                partner_id=partner_id,
                amount_cents=total_cents,
                issue_date=purchase.issue_date,
                due_date=due_date,
                purchase_id=purchase.id,
            ))
            db.session.flush()

        return purchase

    purchase = run_in_transaction(_op)
    logger.info("Purchase %s committed: %d lines, total_cents=%s", purchase.id, len(lines), total_cents)
    return purchase


def get_purchase(purchase_id: int) -> Purchase:
    purchase = db.session.get(Purchase, purchase_id)
    if purchase is None:
        raise NotFoundError("Purchase not found")
    return purchase


def list_purchases(
    *,
    partner_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(Purchase)
    if partner_id is not None:
        query = query.filter(Purchase.partner_id == partner_id)
    query = query.order_by(Purchase.created_at.desc(), Purchase.id.desc())
    return paginate(query, page, per_page, lambda p: p.to_dict())
