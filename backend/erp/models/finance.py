from __future__ import annotations

from datetime import timezone

from sqlalchemy.orm import declared_attr

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ACCOUNT_STATUS_PENDING = "PENDING"
ACCOUNT_STATUS_OVERDUE = "OVERDUE"
ACCOUNT_STATUS_PAID = "PAID"
ACCOUNT_STATUS_CANCELLED = "CANCELLED"

# OVERDUE is never stored; see AccountEntryMixin.effective_status
STORED_ACCOUNT_STATUSES = (ACCOUNT_STATUS_PENDING, ACCOUNT_STATUS_PAID, ACCOUNT_STATUS_CANCELLED)
ACCOUNT_STATUSES = STORED_ACCOUNT_STATUSES + (ACCOUNT_STATUS_OVERDUE,)

CHART_TYPES = ("ASSET", "LIABILITY", "REVENUE", "EXPENSE", "EQUITY")
CHART_NATURES = ("DEBIT", "CREDIT")

TRANSACTION_INCOME = "INCOME"
TRANSACTION_EXPENSE = "EXPENSE"
TRANSACTION_TYPES = (TRANSACTION_INCOME, TRANSACTION_EXPENSE)
TRANSACTION_STATUSES = ("PENDING", "PAID")


class ChartOfAccount(db.Model):
    __tablename__ = "chart_of_accounts"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_chart_of_accounts_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    nature = db.Column(db.String(8), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("chart_of_accounts.id"), nullable=True, index=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    parent = db.relationship("ChartOfAccount", remote_side=[id], backref=db.backref("children", lazy=True))

    def to_dict(self, include_children: bool = True) -> dict:
        data = {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type,
            "nature": self.nature,
            "parent_id": self.parent_id,
            "parent_code": self.parent.code if self.parent else None,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
        }
        if include_children:
            data["children"] = [child.to_dict(include_children=False) for child in self.children]
        return data


class AccountEntryMixin:
    """
    Columns shared by payables and receivables.

    Stored status is PENDING, PAID or CANCELLED. OVERDUE is computed at read
    time from due_date so it can never drift from the clock.
    The payment sub-record (paid_*) is written once, on the PENDING -> PAID
    transition.
    """
    id = db.Column(db.Integer, primary_key=True)

    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    issue_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    payment_method = db.Column(db.String(16), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ACCOUNT_STATUS_PENDING, index=True)

    paid_amount_cents = db.Column(db.Integer, nullable=True)
    paid_payment_method = db.Column(db.String(16), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @declared_attr
    def partner_id(cls):
        return db.Column(db.Integer, db.ForeignKey("partners.id"), nullable=False, index=True)

    @declared_attr
    def account_id(cls):
        return db.Column(db.Integer, db.ForeignKey("chart_of_accounts.id"), nullable=True)

    @declared_attr
    def partner(cls):
        return db.relationship("Partner")

    @declared_attr
    def account(cls):
        return db.relationship("ChartOfAccount")

    def effective_status(self, now=None) -> str:
        if self.status != ACCOUNT_STATUS_PENDING:
            return self.status
        due = self.due_date
        if due.tzinfo is not None:
            due = due.astimezone(timezone.utc).replace(tzinfo=None)
        if due < (now or utcnow()):
            return ACCOUNT_STATUS_OVERDUE
        return self.status

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "partner_id": self.partner_id,
            "partner_name": self.partner.name if self.partner else None,
            "account_id": self.account_id,
            "account_code": self.account.code if self.account else None,
            "amount_cents": self.amount_cents,
            "issue_date": to_utc_z(self.issue_date),
            "due_date": to_utc_z(self.due_date),
            "payment_method": self.payment_method,
            "notes": self.notes,
            "status": self.effective_status(),
            "paid_amount_cents": self.paid_amount_cents,
            "paid_payment_method": self.paid_payment_method,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class AccountsPayable(AccountEntryMixin, db.Model):
    __tablename__ = "accounts_payable"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_accounts_payable_amount_positive"),
        db.Index("ix_accounts_payable_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=True, index=True)
    purchase = db.relationship("Purchase", backref=db.backref("payables", lazy=True))

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["purchase_id"] = self.purchase_id
        return data


class AccountsReceivable(AccountEntryMixin, db.Model):
    __tablename__ = "accounts_receivable"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_accounts_receivable_amount_positive"),
        db.Index("ix_accounts_receivable_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    sale = db.relationship("Sale", backref=db.backref("receivables", lazy=True))

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["sale_id"] = self.sale_id
        return data


class FinancialTransaction(db.Model):
    """Simple income/expense entry (cash book), independent of documents."""
    __tablename__ = "financial_transactions"
    __table_args__ = (
        db.Index("ix_financial_transactions_type_due", "type", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="PENDING")
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    category = db.Column(db.String(128), nullable=False)

    partner_id = db.Column(db.Integer, db.ForeignKey("partners.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    partner = db.relationship("Partner")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "type": self.type,
            "status": self.status,
            "due_date": to_utc_z(self.due_date),
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "category": self.category,
            "partner_id": self.partner_id,
            "partner_name": self.partner.name if self.partner else None,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "created_at": to_utc_z(self.created_at),
        }
