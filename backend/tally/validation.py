from __future__ import annotations
from datetime import datetime
from tally.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from tally.services.availability import OrderStatus, VALID_PRIORITIES


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

# Upper bound for any stock or demand quantity; keeps sums inside 32-bit range
MAX_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., illegal order status change)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - blank_to_null: optional text fields where "" means "unset"
    """
    writable_fields: set[str]
    required_on_create: set[str] = frozenset()  # type: ignore[assignment]
    blank_to_null: set[str] = frozenset()  # type: ignore[assignment]


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific notation.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


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

    # Datetimes (accept ISO-8601 dates/datetimes; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date or datetime")
            return dt
        raise ValidationError(f"{col.key} must be an ISO-8601 date or datetime")

    if isinstance(coltype, (String, Text)):
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
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Keys outside the allowlist are ignored rather than rejected, so nested
    payload sections (e.g. "materials" on a product) can ride along.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) in (None, "")
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields:
            continue
        col = cols[k]

        if isinstance(raw, str) and raw.strip() == "" and k in policy.blank_to_null:
            raw = None

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_range(patch: dict, key: str, minimum: int) -> None:
    if key in patch and patch[key] is not None:
        value = patch[key]
        if value < minimum:
            raise ValidationError(f"{key} must be >= {minimum}")
        if value > MAX_QUANTITY:
            raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")


def enforce_rules_material(patch: dict) -> None:
    _check_range(patch, "quantity", 0)
    _check_range(patch, "pack_size", 1)


def enforce_rules_order(patch: dict) -> None:
    if "status" in patch and patch["status"] is not None:
        patch["status"] = parse_order_status(patch["status"])
    if "priority" in patch and patch["priority"] is not None:
        if patch["priority"] not in VALID_PRIORITIES:
            raise ValidationError("priority must be 0 (normal), 1 (high) or 2 (urgent)")


def enforce_rules_product(patch: dict) -> None:
    if "price_cents" in patch and patch["price_cents"] is not None:
        price = patch["price_cents"]
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def parse_order_status(value: Any) -> str:
    try:
        return OrderStatus(str(value).strip().upper()).value
    except ValueError:
        raise ValidationError("Invalid status")


def validate_line_items(
    raw_items: Any,
    *,
    id_key: str,
    qty_key: str,
    required: bool,
    label: str,
) -> list[dict]:
    """
    Validate a list of {<id_key>: int, <qty_key>: int >= 1, ...} rows.

    Extra keys on each row are preserved. Duplicate ids are rejected so a
    material appears at most once per order or product.
    """
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise ValidationError(f"{label} must be a list")
    if required and not raw_items:
        raise ValidationError(f"{label} are required")

    cleaned: list[dict] = []
    seen: set[int] = set()
    for index, row in enumerate(raw_items):
        if not isinstance(row, dict):
            raise ValidationError(f"{label}[{index}] must be an object")
        if row.get(id_key) is None:
            raise ValidationError(f"{label}[{index}].{id_key} is required")
        entity_id = coerce_int(id_key, row[id_key])
        if entity_id in seen:
            raise ValidationError(f"{label} contains duplicate {id_key} {entity_id}")
        seen.add(entity_id)

        item = dict(row)
        item[id_key] = entity_id
        if qty_key:
            raw_qty = row.get(qty_key, 1)
            qty = coerce_int(qty_key, raw_qty)
            if qty < 1:
                raise ValidationError(f"{label}[{index}].{qty_key} must be >= 1")
            if qty > MAX_QUANTITY:
                raise ValidationError(f"{label}[{index}].{qty_key} cannot exceed {MAX_QUANTITY}")
            item[qty_key] = qty
        cleaned.append(item)
    return cleaned
