from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .time_utils import parse_iso_datetime


# Maximum monetary amount: 9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999

# Largest quantity a single movement or resulting stock level may hold
MAX_QUANTITY = 1_000_000_000

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: closed vocabularies (enum-like string columns)
    - min_lengths: minimum stripped length for string fields
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    choices: dict[str, tuple] = field(default_factory=dict)
    min_lengths: dict[str, int] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _in_range(name: str, value: int) -> int:
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValidationError(f"{name} is out of range")
    return value


def coerce_int(name: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, scientific notation and values past 64 bits."""
    if isinstance(value, int) and not isinstance(value, bool):
        return _in_range(name, value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
        return _in_range(name, number)
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def coerce_datetime(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{name} must be an ISO-8601 datetime")
        if dt is None:
            raise ValidationError(f"{name} must be an ISO-8601 datetime")
        return dt
    raise ValidationError(f"{name} must be a datetime")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, DateTime):
        return coerce_datetime(col.key, value)

    if isinstance(coltype, JSON):
        return value

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields), choices and min_lengths
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None or (raw == "" and col.nullable and not isinstance(col.type, (String, Text))):
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and isinstance(val, str):
            if val == "":
                if not col.nullable:
                    raise ValidationError(f"{k} cannot be blank")
                patch[k] = None
                continue
            if col.type.length and len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")
            min_len = policy.min_lengths.get(k)
            if min_len and len(val) < min_len:
                raise ValidationError(f"{k} must be at least {min_len} characters")

        allowed = policy.choices.get(k)
        if allowed is not None and val not in allowed:
            raise ValidationError(f"{k} must be one of {', '.join(allowed)}")

        patch[k] = val

    return patch


def enforce_amount(patch: dict, key: str, *, allow_zero: bool = False) -> None:
    if key not in patch or patch[key] is None:
        return
    value = patch[key]
    if allow_zero and value < 0:
        raise ValidationError(f"{key} must be >= 0")
    if not allow_zero and value <= 0:
        raise ValidationError(f"{key} must be > 0")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT_CENTS}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    enforce_amount(patch, "price_cents")
    enforce_amount(patch, "cost_price_cents", allow_zero=True)

    ncm = patch.get("ncm")
    if ncm is not None and len(ncm) != 8:
        raise ValidationError("ncm must have exactly 8 characters")

    cfop = patch.get("cfop")
    if cfop is not None and len(cfop) != 4:
        raise ValidationError("cfop must have exactly 4 characters")

    origin = patch.get("origin")
    if origin is not None and not 0 <= origin <= 2:
        raise ValidationError("origin must be between 0 and 2")

    rate = patch.get("icms_rate_bps")
    if rate is not None and not 0 <= rate <= 10_000:
        raise ValidationError("icms_rate_bps must be between 0 and 10000")


@dataclass(frozen=True)
class LineItem:
    """One submitted document line, already validated."""
    product_id: int
    quantity: int
    unit_price_cents: int

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


def parse_line_items(raw_items: Any) -> list[LineItem]:
    """
    Validate the items array of a sale or purchase.

    Raises ValidationError naming the offending line (1-based) so the
    caller can fix it before any transaction is opened.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items: list[LineItem] = []
    for position, raw in enumerate(raw_items, start=1):
        if isinstance(raw, LineItem):
            raw = {
                "product_id": raw.product_id,
                "quantity": raw.quantity,
                "unit_price_cents": raw.unit_price_cents,
            }
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{position}] must be an object")

        missing = [k for k in ("product_id", "quantity", "unit_price_cents") if raw.get(k) is None]
        if missing:
            raise ValidationError(
                f"items[{position}] missing fields: {', '.join(missing)}",
                details={"line": position},
            )

        product_id = coerce_int("product_id", raw["product_id"])
        quantity = coerce_int("quantity", raw["quantity"])
        unit_price_cents = coerce_int("unit_price_cents", raw["unit_price_cents"])

        if quantity <= 0:
            raise ValidationError(f"items[{position}].quantity must be > 0", details={"line": position})
        if quantity > MAX_QUANTITY:
            raise ValidationError(
                f"items[{position}].quantity cannot exceed {MAX_QUANTITY}",
                details={"line": position},
            )
        if unit_price_cents <= 0:
            raise ValidationError(
                f"items[{position}].unit_price_cents must be > 0",
                details={"line": position},
            )
        if unit_price_cents > MAX_AMOUNT_CENTS:
            raise ValidationError(
                f"items[{position}].unit_price_cents cannot exceed {MAX_AMOUNT_CENTS}",
                details={"line": position},
            )

        line = LineItem(product_id=product_id, quantity=quantity, unit_price_cents=unit_price_cents)
        if line.total_cents > MAX_AMOUNT_CENTS:
            raise ValidationError(
                f"items[{position}] total cannot exceed {MAX_AMOUNT_CENTS}",
                details={"line": position},
            )
        items.append(line)

    return items


def document_total_cents(items: list[LineItem]) -> int:
    """Sum of line totals, bounded like any other stored amount."""
    total = sum(line.total_cents for line in items)
    if total > MAX_AMOUNT_CENTS:
        raise ValidationError(f"Document total cannot exceed {MAX_AMOUNT_CENTS}")
    return total


def parse_optional_datetime(name: str, value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    return coerce_datetime(name, value)


def parse_positive_int(name: str, value: Any) -> int:
    if value is None:
        raise ValidationError(f"{name} is required")
    number = coerce_int(name, value)
    if number <= 0:
        raise ValidationError(f"{name} must be > 0")
    return number


def parse_optional_int(name: str, value: Any) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(name, value)
