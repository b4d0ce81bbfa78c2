# Overview: Categories and partners (clients / suppliers) CRUD.

from __future__ import annotations

import logging

from sqlalchemy import or_

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import AccountsPayable, AccountsReceivable, Category, Invoice, Partner, Product, Purchase, Sale
from ..models.partners import PARTNER_TYPES
from ..pagination import paginate
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_in_transaction

logger = logging.getLogger(__name__)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
    min_lengths={"name": 2},
)

PARTNER_POLICY = ModelValidationPolicy(
    writable_fields={
        "type", "name", "fantasy_name", "document", "email", "phone", "mobile",
        "ie", "im", "zip_code", "street", "number", "complement", "neighborhood",
        "city", "state", "notes",
    },
    required_on_create={"type", "name"},
    choices={"type": PARTNER_TYPES},
    min_lengths={"name": 3},
)


# -- Categories --

def _check_category_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Category already exists")


def list_categories() -> dict:
    query = db.session.query(Category).order_by(Category.name.asc())
    return paginate(query, None, None, lambda c: c.to_dict())


def get_category(category_id: int) -> Category | None:
    return db.session.get(Category, category_id)


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    def _op():
        _check_category_name(patch["name"])
        category = Category(**patch)
        db.session.add(category)
        db.session.flush()
        return category

    return run_in_transaction(_op)


def update_category(category_id: int, payload: dict) -> Category | None:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    def _op():
        category = db.session.get(Category, category_id)
        if category is None:
            return None
        if "name" in patch:
            _check_category_name(patch["name"], exclude_id=category_id)
        for key, value in patch.items():
            setattr(category, key, value)
        db.session.flush()
        return category

    return run_in_transaction(_op)


def delete_category(category_id: int) -> bool:
    def _op():
        category = db.session.get(Category, category_id)
        if category is None:
            return False
        in_use = db.session.query(Product.id).filter(Product.category_id == category_id).first()
        if in_use is not None:
            raise ConflictError("Category has products and cannot be deleted")
        db.session.delete(category)
        return True

    return run_in_transaction(_op)


# -- Partners --

def list_partners(
    *,
    type: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(Partner)
    if type:
        if type not in PARTNER_TYPES:
            raise ValidationError(f"type must be one of {', '.join(PARTNER_TYPES)}")
        query = query.filter(Partner.type == type)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Partner.name.ilike(pattern),
            Partner.fantasy_name.ilike(pattern),
            Partner.document.ilike(pattern),
        ))
    query = query.order_by(Partner.name.asc(), Partner.id.asc())
    return paginate(query, page, per_page, lambda p: p.to_dict())


def get_partner(partner_id: int) -> Partner | None:
    return db.session.get(Partner, partner_id)


def create_partner(payload: dict) -> Partner:
    patch = validate_payload(model=Partner, payload=payload, policy=PARTNER_POLICY, partial=False)

    def _op():
        partner = Partner(**patch)
        db.session.add(partner)
        db.session.flush()
        return partner

    partner = run_in_transaction(_op)
    logger.info("Partner created: id=%s type=%s", partner.id, partner.type)
    return partner


def update_partner(partner_id: int, payload: dict) -> Partner | None:
    patch = validate_payload(model=Partner, payload=payload, policy=PARTNER_POLICY, partial=True)

    def _op():
        partner = db.session.get(Partner, partner_id)
        if partner is None:
            return None
        for key, value in patch.items():
            setattr(partner, key, value)
        db.session.flush()
        return partner

    return run_in_transaction(_op)


def delete_partner(partner_id: int) -> bool:
    """Refused while any document or account still references the partner."""
    def _op():
        partner = db.session.get(Partner, partner_id)
        if partner is None:
            return False
        for model in (Sale, Purchase, AccountsPayable, AccountsReceivable, Invoice):
            if db.session.query(model.id).filter(model.partner_id == partner_id).first() is not None:
                raise ConflictError("Partner is referenced by documents and cannot be deleted")
        db.session.delete(partner)
        return True

    return run_in_transaction(_op)
