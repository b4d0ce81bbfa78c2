"""
Fiscal Service - invoice records and company settings

Invoices are bookkeeping rows: nothing here talks to a tax authority.

STATUS FLOW:
    DRAFT      -> PENDING     (transmit)
    DRAFT      -> CANCELLED   (cancel)
    PENDING    -> AUTHORIZED | REJECTED  (authority response, not received here)
    PENDING    -> CANCELLED   (cancel)
    AUTHORIZED -> CANCELLED   (cancel)
    REJECTED   -> CANCELLED   (cancel)
    CANCELLED: terminal

Only DRAFT invoices can be edited. Status writes are conditional UPDATEs on
the status that was read, so two concurrent transitions cannot both apply.
"""

from __future__ import annotations

import logging

from sqlalchemy import update

from ..errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import CompanySettings, Invoice, Partner, Sale
from ..models.fiscal import (
    INVOICE_STATUS_AUTHORIZED,
    INVOICE_STATUS_CANCELLED,
    INVOICE_STATUS_DRAFT,
    INVOICE_STATUS_PENDING,
    INVOICE_STATUS_REJECTED,
    INVOICE_STATUSES,
    INVOICE_TYPES,
    NFE_ENVIRONMENTS,
    TAX_REGIMES,
)
from ..pagination import paginate
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, enforce_amount, validate_payload
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

# NF-e numbers have at most nine digits
MAX_INVOICE_NUMBER = 999_999_999

ALLOWED_TRANSITIONS = {
    INVOICE_STATUS_DRAFT: {INVOICE_STATUS_PENDING, INVOICE_STATUS_CANCELLED},
    INVOICE_STATUS_PENDING: {INVOICE_STATUS_AUTHORIZED, INVOICE_STATUS_REJECTED, INVOICE_STATUS_CANCELLED},
    INVOICE_STATUS_AUTHORIZED: {INVOICE_STATUS_CANCELLED},
    INVOICE_STATUS_REJECTED: {INVOICE_STATUS_CANCELLED},
    INVOICE_STATUS_CANCELLED: set(),
}

INVOICE_POLICY = ModelValidationPolicy(
    writable_fields={"number", "series", "type", "partner_id", "sale_id", "amount_cents", "issue_date", "notes"},
    required_on_create={"number", "type", "partner_id", "amount_cents"},
    choices={"type": INVOICE_TYPES},
)

COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={
        "legal_name", "trade_name", "cnpj", "ie", "im", "email", "phone", "website",
        "zip_code", "street", "number", "complement", "neighborhood", "city", "state",
        "tax_regime", "cnae", "nfe_environment", "nfe_series", "nfe_next_number", "logo_url",
    },
    required_on_create={
        "legal_name", "cnpj", "email", "phone", "zip_code", "street", "number",
        "neighborhood", "city", "state", "tax_regime", "nfe_environment",
    },
    choices={"tax_regime": TAX_REGIMES, "nfe_environment": NFE_ENVIRONMENTS},
    min_lengths={"phone": 10, "zip_code": 8},
)


def transition(current: str, target: str) -> str:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Cannot change invoice status from {current} to {target}")
    return target


# -- Invoices --

def _check_references(patch: dict) -> None:
    if patch.get("partner_id") is not None and db.session.get(Partner, patch["partner_id"]) is None:
        raise ValidationError(f"Partner not found: {patch['partner_id']}")
    if patch.get("sale_id") is not None and db.session.get(Sale, patch["sale_id"]) is None:
        raise ValidationError(f"Sale not found: {patch['sale_id']}")


def _check_number(number: str, series: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Invoice.id).filter(Invoice.number == number, Invoice.series == series)
    if exclude_id is not None:
        query = query.filter(Invoice.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Invoice {number} already exists in series {series}")


def list_invoices(
    *,
    status: str | None = None,
    type: str | None = None,
    partner_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(Invoice)
    if status:
        if status not in INVOICE_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(INVOICE_STATUSES)}")
        query = query.filter(Invoice.status == status)
    if type:
        if type not in INVOICE_TYPES:
            raise ValidationError(f"type must be one of {', '.join(INVOICE_TYPES)}")
        query = query.filter(Invoice.type == type)
    if partner_id is not None:
        query = query.filter(Invoice.partner_id == partner_id)

    query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
    return paginate(query, page, per_page, lambda i: i.to_dict())


def get_invoice(invoice_id: int) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


def create_invoice(payload: dict) -> Invoice:
    """New invoices always start as DRAFT."""
    patch = validate_payload(model=Invoice, payload=payload, policy=INVOICE_POLICY, partial=False)
    enforce_amount(patch, "amount_cents")
    patch.setdefault("series", "1")

    def _op():
        _check_references(patch)
        _check_number(patch["number"], patch["series"])
        invoice = Invoice(status=INVOICE_STATUS_DRAFT, **patch)
        db.session.add(invoice)
        db.session.flush()
        return invoice

    invoice = run_in_transaction(_op)
    logger.info("Invoice created: id=%s %s %s/%s", invoice.id, invoice.type, invoice.series, invoice.number)
    return invoice


def update_invoice(invoice_id: int, payload: dict) -> Invoice:
    patch = validate_payload(model=Invoice, payload=payload, policy=INVOICE_POLICY, partial=True)
    enforce_amount(patch, "amount_cents")

    def _op():
        invoice = get_invoice(invoice_id)
        if invoice.status != INVOICE_STATUS_DRAFT:
            raise InvalidTransitionError(f"Cannot edit an invoice with status {invoice.status}")
        _check_references(patch)
        if "number" in patch or "series" in patch:
            _check_number(
                patch.get("number", invoice.number),
                patch.get("series", invoice.series),
                exclude_id=invoice_id,
            )
        for key, value in patch.items():
            setattr(invoice, key, value)
        db.session.flush()
        return invoice

    return run_in_transaction(_op)


def _change_status(invoice_id: int, target: str) -> Invoice:
    def _op():
        invoice = get_invoice(invoice_id)
        current = invoice.status
        transition(current, target)
        result = db.session.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id, Invoice.status == current)
            .values(status=target, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        db.session.refresh(invoice)
        if result.rowcount != 1:
            raise InvalidTransitionError(
                f"Cannot change invoice status from {invoice.status} to {target}"
            )
        return invoice

    invoice = run_in_transaction(_op)
    logger.info("Invoice %s status -> %s", invoice_id, target)
    return invoice


def transmit_invoice(invoice_id: int) -> Invoice:
    """Queue a DRAFT invoice for transmission. No document is sent anywhere."""
    return _change_status(invoice_id, INVOICE_STATUS_PENDING)


def cancel_invoice(invoice_id: int) -> Invoice:
    return _change_status(invoice_id, INVOICE_STATUS_CANCELLED)


# -- Company settings --

def get_company() -> CompanySettings | None:
    return db.session.query(CompanySettings).order_by(CompanySettings.id.asc()).first()


def save_company(payload: dict) -> CompanySettings:
    """Create the company row or replace its fields. Every save sends the full record."""
    patch = validate_payload(model=CompanySettings, payload=payload, policy=COMPANY_POLICY, partial=False)

    if not (patch["cnpj"].isdigit() and len(patch["cnpj"]) == 14):
        raise ValidationError("cnpj must have exactly 14 digits")
    if "@" not in patch["email"]:
        raise ValidationError("Invalid email")
    if len(patch["state"]) != 2:
        raise ValidationError("state must have exactly 2 characters")
    patch["state"] = patch["state"].upper()
    next_number = patch.get("nfe_next_number")
    if next_number is not None and not 0 < next_number <= MAX_INVOICE_NUMBER:
        raise ValidationError(f"nfe_next_number must be between 1 and {MAX_INVOICE_NUMBER}")

    def _op():
        company = get_company()
        if company is None:
            company = CompanySettings()
            db.session.add(company)
        for key, value in patch.items():
            setattr(company, key, value)
        db.session.flush()
        return company

    company = run_in_transaction(_op)
    logger.info("Company settings saved: id=%s cnpj=%s", company.id, company.cnpj)
    return company
