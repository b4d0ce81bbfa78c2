# backend/erp/services/products_service.py
"""
Products Service

Product CRUD never writes stock directly:
- create_product applies an optional opening quantity as an IN movement
  ("Initial stock") in the same transaction as the insert
- update_product rejects any attempt to set stock
- delete_product refuses products with movement history or document lines
"""
from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import or_

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Category, Product, PurchaseItem, SaleItem, StockMovement
from ..pagination import paginate
from ..validation import (
    MAX_QUANTITY,
    ModelValidationPolicy,
    coerce_int,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import run_in_transaction
from .stock_service import apply_initial_stock

logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "price_cents", "cost_price_cents",
        "category_id", "image_url", "ncm", "cest", "cfop", "origin", "icms_rate_bps",
    },
    required_on_create={"sku", "name", "price_cents"},
    min_lengths={"sku": 3, "name": 3},
)

STOCK_FILTERS = ("all", "low", "out", "in")


def _check_category(category_id) -> None:
    if category_id is not None and db.session.get(Category, category_id) is None:
        raise ValidationError(f"Category not found: {category_id}")


def _check_sku_unique(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("SKU already exists")


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def list_products(
    *,
    search: str | None = None,
    category_id: int | None = None,
    stock_filter: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional filters and pagination.

    stock_filter:
        low: 0 < stock <= LOW_STOCK_THRESHOLD
        out: stock == 0
        in:  stock > LOW_STOCK_THRESHOLD
    """
    threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    query = db.session.query(Product)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    stock_filter = (stock_filter or "all").lower()
    if stock_filter not in STOCK_FILTERS:
        raise ValidationError(f"stock_filter must be one of {', '.join(STOCK_FILTERS)}")
    if stock_filter == "low":
        query = query.filter(Product.stock > 0, Product.stock <= threshold)
    elif stock_filter == "out":
        query = query.filter(Product.stock == 0)
    elif stock_filter == "in":
        query = query.filter(Product.stock > threshold)

    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page, per_page, lambda p: p.to_dict())


def create_product(payload: dict, *, actor_id: int | None) -> Product:
    """
    Validate and insert a product. An optional "stock" key is the opening
    balance; it goes through the ledger like any other IN movement.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    raw_stock = payload.pop("stock", None)
    initial_stock = 0 if raw_stock in (None, "") else coerce_int("stock", raw_stock)
    if initial_stock < 0:
        raise ValidationError("stock must be >= 0")
    if initial_stock > MAX_QUANTITY:
        raise ValidationError(f"stock cannot exceed {MAX_QUANTITY}")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    def _op():
        _check_sku_unique(patch["sku"])
        _check_category(patch.get("category_id"))
        product = Product(**patch)
        db.session.add(product)
        db.session.flush()
        apply_initial_stock(product, initial_stock, actor_id)
        return product

    product = run_in_transaction(_op)
    logger.info("Product created: id=%s sku=%s initial_stock=%s", product.id, product.sku, initial_stock)
    return product


def update_product(product_id: int, payload: dict) -> Product:
    if isinstance(payload, dict) and "stock" in payload:
        raise ValidationError("stock cannot be edited directly; use an inventory adjustment")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        product = db.session.get(Product, product_id)
        if product is None:
            return None
        if "sku" in patch:
            _check_sku_unique(patch["sku"], exclude_id=product_id)
        if "category_id" in patch:
            _check_category(patch["category_id"])
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.flush()
        return product

    return run_in_transaction(_op)


def delete_product(product_id: int) -> bool:
    """Hard delete, refused once the product has any stock history or document lines."""
    def _op():
        product = db.session.get(Product, product_id)
        if product is None:
            return False
        for model in (StockMovement, SaleItem, PurchaseItem):
            if db.session.query(model.id).filter(model.product_id == product_id).first() is not None:
                raise ConflictError("Product has stock movements or document lines and cannot be deleted")
        db.session.delete(product)
        return True

    deleted = run_in_transaction(_op)
    if deleted:
        logger.info("Product deleted: id=%s", product_id)
    return deleted
