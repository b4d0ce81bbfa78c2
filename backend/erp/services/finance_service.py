# Overview: Chart of accounts and the income/expense cash book.

"""
Chart of accounts rows are deactivated rather than deleted: payables and
receivables may still point at them. A parent cannot be deactivated while
it has active children, and an account cannot become its own ancestor.

Financial transactions are simple dated income/expense entries with no
stock or document side effects.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, or_

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import ChartOfAccount, FinancialTransaction, Partner
from ..models.finance import CHART_NATURES, CHART_TYPES, TRANSACTION_STATUSES, TRANSACTION_TYPES
from ..pagination import paginate
from ..time_utils import start_of_month, start_of_next_month, utcnow
from ..validation import ModelValidationPolicy, enforce_amount, validate_payload
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

CHART_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "type", "nature", "parent_id", "active"},
    required_on_create={"code", "name", "type", "nature"},
    choices={"type": CHART_TYPES, "nature": CHART_NATURES},
)

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount_cents", "type", "status", "due_date", "paid_at", "category", "partner_id"},
    required_on_create={"description", "amount_cents", "type", "due_date", "category"},
    choices={"type": TRANSACTION_TYPES, "status": TRANSACTION_STATUSES},
    min_lengths={"description": 3},
)


# -- Chart of accounts --

def _check_code(code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(ChartOfAccount.id).filter(ChartOfAccount.code == code)
    if exclude_id is not None:
        query = query.filter(ChartOfAccount.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Account code already exists")


def _check_parent(parent_id, account_id: int | None = None) -> None:
    if parent_id is None:
        return
    if account_id is not None and parent_id == account_id:
        raise ValidationError("An account cannot be its own parent")
    parent = db.session.get(ChartOfAccount, parent_id)
    if parent is None:
        raise ValidationError(f"Parent account not found: {parent_id}")
    # Walk up to reject cycles through descendants
    seen = set()
    while parent is not None and parent.id not in seen:
        if account_id is not None and parent.id == account_id:
            raise ValidationError("An account cannot be a descendant of itself")
        seen.add(parent.id)
        parent = parent.parent


def _has_active_children(account_id: int) -> bool:
    return db.session.query(ChartOfAccount.id).filter(
        ChartOfAccount.parent_id == account_id,
        ChartOfAccount.active.is_(True),
    ).first() is not None


def list_chart_accounts(
    *,
    active: bool | None = None,
    search: str | None = None,
    type: str | None = None,
    nature: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(ChartOfAccount)
    if active is not None:
        query = query.filter(ChartOfAccount.active.is_(active))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(ChartOfAccount.name.ilike(pattern), ChartOfAccount.code.ilike(pattern)))
    if type:
        query = query.filter(ChartOfAccount.type == type)
    if nature:
        query = query.filter(ChartOfAccount.nature == nature)
    query = query.order_by(ChartOfAccount.code.asc())
    return paginate(query, page, per_page, lambda a: a.to_dict())


def get_chart_account(account_id: int) -> ChartOfAccount | None:
    return db.session.get(ChartOfAccount, account_id)


def create_chart_account(payload: dict) -> ChartOfAccount:
    patch = validate_payload(model=ChartOfAccount, payload=payload, policy=CHART_POLICY, partial=False)

    def _op():
        _check_code(patch["code"])
        _check_parent(patch.get("parent_id"))
        account = ChartOfAccount(**patch)
        db.session.add(account)
        db.session.flush()
        return account

    return run_in_transaction(_op)


def update_chart_account(account_id: int, payload: dict) -> ChartOfAccount | None:
    patch = validate_payload(model=ChartOfAccount, payload=payload, policy=CHART_POLICY, partial=True)

    def _op():
        account = db.session.get(ChartOfAccount, account_id)
        if account is None:
            return None
        if "code" in patch:
            _check_code(patch["code"], exclude_id=account_id)
        if "parent_id" in patch:
            _check_parent(patch["parent_id"], account_id=account_id)
        if patch.get("active") is False and account.active and _has_active_children(account_id):
            raise ConflictError("Account has active children and cannot be deactivated")
        for key, value in patch.items():
            setattr(account, key, value)
        db.session.flush()
        return account

    return run_in_transaction(_op)


def deactivate_chart_account(account_id: int) -> bool:
    def _op():
        account = db.session.get(ChartOfAccount, account_id)
        if account is None:
            return False
        if _has_active_children(account_id):
            raise ConflictError("Account has active children and cannot be deactivated")
        account.active = False
        return True

    return run_in_transaction(_op)


# -- Financial transactions --

def _check_transaction_refs(patch: dict) -> None:
    if patch.get("partner_id") is not None and db.session.get(Partner, patch["partner_id"]) is None:
        raise ValidationError(f"Partner not found: {patch['partner_id']}")


def list_transactions(
    *,
    type: str | None = None,
    status: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(FinancialTransaction)
    if type:
        query = query.filter(FinancialTransaction.type == type)
    if status:
        query = query.filter(FinancialTransaction.status == status)
    if start_date is not None:
        query = query.filter(FinancialTransaction.due_date >= start_date)
    if end_date is not None:
        query = query.filter(FinancialTransaction.due_date <= end_date)
    query = query.order_by(FinancialTransaction.due_date.desc(), FinancialTransaction.id.desc())
    return paginate(query, page, per_page, lambda t: t.to_dict())


def get_transaction(transaction_id: int) -> FinancialTransaction | None:
    return db.session.get(FinancialTransaction, transaction_id)


def create_transaction(payload: dict, *, actor_id: int | None) -> FinancialTransaction:
    patch = validate_payload(model=FinancialTransaction, payload=payload, policy=TRANSACTION_POLICY, partial=False)
    enforce_amount(patch, "amount_cents")
    if patch.get("status") == "PAID" and patch.get("paid_at") is None:
        patch["paid_at"] = utcnow()

    def _op():
        _check_transaction_refs(patch)
        transaction = FinancialTransaction(user_id=actor_id, **patch)
        db.session.add(transaction)
        db.session.flush()
        return transaction

    transaction = run_in_transaction(_op)
    logger.info(
        "Financial transaction created: id=%s type=%s amount_cents=%s",
        transaction.id, transaction.type, transaction.amount_cents,
    )
    return transaction


def update_transaction(transaction_id: int, payload: dict) -> FinancialTransaction | None:
    patch = validate_payload(model=FinancialTransaction, payload=payload, policy=TRANSACTION_POLICY, partial=True)
    enforce_amount(patch, "amount_cents")

    def _op():
        transaction = db.session.get(FinancialTransaction, transaction_id)
        if transaction is None:
            return None
        _check_transaction_refs(patch)
        for key, value in patch.items():
            setattr(transaction, key, value)
        if transaction.status == "PAID" and transaction.paid_at is None:
            transaction.paid_at = utcnow()
        db.session.flush()
        return transaction

    return run_in_transaction(_op)


def delete_transaction(transaction_id: int) -> bool:
    def _op():
        transaction = db.session.get(FinancialTransaction, transaction_id)
        if transaction is None:
            return False
        db.session.delete(transaction)
        return True

    return run_in_transaction(_op)


def monthly_summary(now: datetime | None = None) -> list[dict]:
    """Sum of amounts due this month, grouped by (type, status)."""
    now = now or utcnow()
    rows = (
        db.session.query(
            FinancialTransaction.type,
            FinancialTransaction.status,
            func.count(FinancialTransaction.id),
            func.coalesce(func.sum(FinancialTransaction.amount_cents), 0),
        )
        .filter(
            FinancialTransaction.due_date >= start_of_month(now),
            FinancialTransaction.due_date < start_of_next_month(now),
        )
        .group_by(FinancialTransaction.type, FinancialTransaction.status)
        .order_by(FinancialTransaction.type, FinancialTransaction.status)
        .all()
    )
    return [
        {"type": type_, "status": status, "count": int(count), "amount_cents": int(total)}
        for type_, status, count, total in rows
    ]
