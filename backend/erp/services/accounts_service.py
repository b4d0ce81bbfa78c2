"""
Accounts Service - payables and receivables

One service for both ledgers, selected by kind ("payable" / "receivable").

STATE MACHINE:
    PENDING  -> PAID       (register_payment)
    PENDING  -> CANCELLED  (cancel)
    OVERDUE  -> PAID       (register_payment)
    OVERDUE  -> CANCELLED  (cancel)
    PAID, CANCELLED: terminal

OVERDUE is derived from due_date at read time and never stored. The only
status writes happen through transition(), and the payment write is a
conditional UPDATE on stored status PENDING, so a second payment can never
overwrite the first one.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import case, func, update

from ..errors import AlreadyPaidError, InvalidTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import AccountsPayable, AccountsReceivable, ChartOfAccount, Partner
from ..models.finance import (
    ACCOUNT_STATUS_CANCELLED,
    ACCOUNT_STATUS_OVERDUE,
    ACCOUNT_STATUS_PAID,
    ACCOUNT_STATUS_PENDING,
    ACCOUNT_STATUSES,
)
from ..models.sales import PAYMENT_METHODS
from ..pagination import paginate
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, enforce_amount, validate_payload
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

KIND_PAYABLE = "payable"
KIND_RECEIVABLE = "receivable"

_MODELS = {
    KIND_PAYABLE: AccountsPayable,
    KIND_RECEIVABLE: AccountsReceivable,
}

ALLOWED_TRANSITIONS = {
    ACCOUNT_STATUS_PENDING: {ACCOUNT_STATUS_PAID, ACCOUNT_STATUS_CANCELLED},
    ACCOUNT_STATUS_OVERDUE: {ACCOUNT_STATUS_PAID, ACCOUNT_STATUS_CANCELLED},
    ACCOUNT_STATUS_PAID: set(),
    ACCOUNT_STATUS_CANCELLED: set(),
}

_WRITABLE = {
    "description", "partner_id", "account_id", "amount_cents",
    "issue_date", "due_date", "payment_method", "notes",
}

CREATE_POLICY = ModelValidationPolicy(
    writable_fields=_WRITABLE,
    required_on_create={"description", "partner_id", "amount_cents", "due_date"},
    choices={"payment_method": PAYMENT_METHODS},
    min_lengths={"description": 3},
)


def model_for(kind: str):
    try:
        return _MODELS[kind]
    except KeyError:
        raise ValidationError(f"Unknown account kind: {kind}")


def transition(current: str, target: str) -> str:
    """Return target if current -> target is allowed, else raise."""
    if current not in ALLOWED_TRANSITIONS:
        raise InvalidTransitionError(f"Unknown account status: {current}")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot change account status from {current} to {target}")
    return target


def _filter_by_status(query, model, status: str, now: datetime):
    if status == ACCOUNT_STATUS_OVERDUE:
        return query.filter(model.status == ACCOUNT_STATUS_PENDING, model.due_date < now)
    if status == ACCOUNT_STATUS_PENDING:
        return query.filter(model.status == ACCOUNT_STATUS_PENDING, model.due_date >= now)
    return query.filter(model.status == status)


def _check_references(patch: dict) -> None:
    if patch.get("partner_id") is not None and db.session.get(Partner, patch["partner_id"]) is None:
        raise ValidationError(f"Partner not found: {patch['partner_id']}")
    if patch.get("account_id") is not None and db.session.get(ChartOfAccount, patch["account_id"]) is None:
        raise ValidationError(f"Chart account not found: {patch['account_id']}")


def get_account(kind: str, account_id: int):
    model = model_for(kind)
    account = db.session.get(model, account_id)
    if account is None:
        raise NotFoundError("Account not found")
    return account


def list_accounts(
    kind: str,
    *,
    status: str | None = None,
    partner_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    model = model_for(kind)
    query = db.session.query(model)

    if status and status != "ALL":
        if status not in ACCOUNT_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(ACCOUNT_STATUSES)}")
        query = _filter_by_status(query, model, status, utcnow())
    if partner_id is not None:
        query = query.filter(model.partner_id == partner_id)

    query = query.order_by(model.due_date.asc(), model.id.asc())
    return paginate(query, page, per_page, lambda a: a.to_dict())


def account_stats(kind: str) -> dict:
    """Counts and sums per effective status plus the overall total."""
    model = model_for(kind)
    now = utcnow()

    effective = case(
        (
            (model.status == ACCOUNT_STATUS_PENDING) & (model.due_date < now),
            ACCOUNT_STATUS_OVERDUE,
        ),
        else_=model.status,
    )
    rows = (
        db.session.query(effective, func.count(model.id), func.coalesce(func.sum(model.amount_cents), 0))
        .group_by(effective)
        .all()
    )

    stats = {
        key.lower(): {"count": 0, "amount_cents": 0}
        for key in (ACCOUNT_STATUS_PENDING, ACCOUNT_STATUS_OVERDUE, ACCOUNT_STATUS_PAID, ACCOUNT_STATUS_CANCELLED)
    }
    for status, count, total in rows:
        stats[status.lower()] = {"count": int(count), "amount_cents": int(total)}

    stats["total"] = {
        "count": sum(v["count"] for v in stats.values()),
        "amount_cents": sum(v["amount_cents"] for v in stats.values()),
    }
    return stats


def create_account(kind: str, payload: dict):
    model = model_for(kind)
    patch = validate_payload(model=model, payload=payload, policy=CREATE_POLICY, partial=False)
    enforce_amount(patch, "amount_cents")

    def _op():
        _check_references(patch)
        account = model(status=ACCOUNT_STATUS_PENDING, **patch)
        db.session.add(account)
        db.session.flush()
        return account

    account = run_in_transaction(_op)
    logger.info("Account %s/%s created: amount_cents=%s", kind, account.id, account.amount_cents)
    return account


def update_account(kind: str, account_id: int, payload: dict):
    """Edit descriptive fields of an open account. Status and payment fields are not writable."""
    model = model_for(kind)
    patch = validate_payload(model=model, payload=payload, policy=CREATE_POLICY, partial=True)
    enforce_amount(patch, "amount_cents")

    def _op():
        account = get_account(kind, account_id)
        if account.status != ACCOUNT_STATUS_PENDING:
            raise InvalidTransitionError(f"Cannot edit an account with status {account.status}")
        _check_references(patch)
        for key, value in patch.items():
            setattr(account, key, value)
        db.session.flush()
        return account

    return run_in_transaction(_op)


def register_payment(
    kind: str,
    account_id: int,
    *,
    paid_amount_cents: int,
    payment_method: str,
    paid_at: datetime | None = None,
):
    """
    Settle an open account exactly once.

    Raises:
        ValidationError: bad amount or payment method
        NotFoundError: no PENDING/OVERDUE account with this id
        AlreadyPaidError: the account is already PAID (first payment kept)
    """
    model = model_for(kind)
    if isinstance(paid_amount_cents, bool) or not isinstance(paid_amount_cents, int) or paid_amount_cents <= 0:
        raise ValidationError("paid_amount_cents must be a positive integer")
    enforce_amount({"paid_amount_cents": paid_amount_cents}, "paid_amount_cents")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")

    def _op():
        account = db.session.get(model, account_id)
        if account is None or account.status == ACCOUNT_STATUS_CANCELLED:
            raise NotFoundError("Account not found")
        if account.status == ACCOUNT_STATUS_PAID:
            raise AlreadyPaidError("Account is already paid")

        target = transition(account.effective_status(), ACCOUNT_STATUS_PAID)
        result = db.session.execute(
            update(model)
            .where(model.id == account_id, model.status == ACCOUNT_STATUS_PENDING)
            .values(
                status=target,
                paid_amount_cents=paid_amount_cents,
                paid_payment_method=payment_method,
                paid_at=paid_at or utcnow(),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Lost the race against another payment or a cancel.
            db.session.refresh(account)
            if account.status == ACCOUNT_STATUS_PAID:
                raise AlreadyPaidError("Account is already paid")
            raise NotFoundError("Account not found")

        db.session.refresh(account)
        return account

    account = run_in_transaction(_op)
    logger.info(
        "Payment registered on %s/%s: paid_amount_cents=%s method=%s",
        kind, account_id, paid_amount_cents, payment_method,
    )
    return account


def cancel_account(kind: str, account_id: int):
    model = model_for(kind)

    def _op():
        account = get_account(kind, account_id)
        target = transition(account.effective_status(), ACCOUNT_STATUS_CANCELLED)
        result = db.session.execute(
            update(model)
            .where(model.id == account_id, model.status == ACCOUNT_STATUS_PENDING)
            .values(status=target, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.refresh(account)
            raise InvalidTransitionError(
                f"Cannot change account status from {account.status} to {ACCOUNT_STATUS_CANCELLED}"
            )
        db.session.refresh(account)
        return account

    account = run_in_transaction(_op)
    logger.info("Account %s/%s cancelled", kind, account_id)
    return account
