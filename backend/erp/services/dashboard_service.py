# Overview: Read-only indicators for the dashboard screen.

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import FinancialTransaction, Product, Sale
from ..models.finance import TRANSACTION_EXPENSE
from ..models.sales import SALE_STATUS_COMPLETED
from ..time_utils import start_of_day, start_of_month, start_of_next_month, utcnow

RECENT_LIMIT = 5


def _completed_sales_total(start: datetime, end: datetime) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(Sale.total_cents), 0))
        .filter(
            Sale.status == SALE_STATUS_COMPLETED,
            Sale.created_at >= start,
            Sale.created_at < end,
        )
        .scalar()
    )
    return int(total or 0)


def get_stats(now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)
    month_start = start_of_month(now)
    month_end = start_of_next_month(now)

    month_expense = (
        db.session.query(func.coalesce(func.sum(FinancialTransaction.amount_cents), 0))
        .filter(
            FinancialTransaction.type == TRANSACTION_EXPENSE,
            FinancialTransaction.due_date >= month_start,
            FinancialTransaction.due_date < month_end,
        )
        .scalar()
    )

    low_stock_count = (
        db.session.query(func.count(Product.id))
        .filter(Product.stock < current_app.config["LOW_STOCK_THRESHOLD"])
        .scalar()
    )

    recent_sales = (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    recent_expenses = (
        db.session.query(FinancialTransaction)
        .filter(FinancialTransaction.type == TRANSACTION_EXPENSE)
        .order_by(FinancialTransaction.created_at.desc(), FinancialTransaction.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )

    return {
        "sales_today_cents": _completed_sales_total(today, today + timedelta(days=1)),
        "sales_month_cents": _completed_sales_total(month_start, month_end),
        "expenses_month_cents": int(month_expense or 0),
        "low_stock_count": int(low_stock_count or 0),
        "recent_sales": [s.to_dict(include_items=False) for s in recent_sales],
        "recent_expenses": [t.to_dict() for t in recent_expenses],
    }
