# Overview: Service-layer operations for materials; stock records, adjustments and requirement views.

"""
Materials Service

All operations are scoped to a single owner (user_id). Stock only changes
through create_material and adjust_quantity; order status changes never
touch Material.quantity.
"""
from __future__ import annotations

from flask import current_app
from ..extensions import db
from ..models import Material, Order, OrderItem
from ..validation import ConflictError, ValidationError, coerce_int, MAX_QUANTITY
from .availability import (
    DemandLine,
    MaterialSnapshot,
    OPEN_STATUSES,
    OrderStatus,
    compute_requirements,
)
from .ownership_service import require_owned
from tally.time_utils import to_utc_z

MATERIAL_MUTABLE_FIELDS = {"name", "color", "size", "quantity", "pack_size"}


def _owner_materials_query(user_id: int):
    return (
        db.session.query(Material)
        .filter(Material.user_id == user_id)
        .order_by(
            Material.name.asc(),
            Material.color.asc(),
            Material.size.asc(),
            Material.id.asc(),
        )
    )


def list_materials(*, user_id: int) -> list[dict]:
    return [m.to_dict() for m in _owner_materials_query(user_id).all()]


def _find_duplicate(user_id: int, name, color, size) -> Material | None:
    # color and size are nullable, so NULL must match NULL
    query = db.session.query(Material).filter(Material.user_id == user_id, Material.name == name)
    for column, value in ((Material.color, color), (Material.size, size)):
        query = query.filter(column.is_(None) if value is None else column == value)
    return query.first()


def create_material(*, patch: dict, user_id: int) -> dict:
    """
    Create a material from a validated patch.

    Missing quantity defaults to 0; missing pack_size to DEFAULT_PACK_SIZE.

    Raises:
        ConflictError: the owner already has a material with this name, color and size
    """
    if _find_duplicate(user_id, patch.get("name"), patch.get("color"), patch.get("size")):
        raise ConflictError("Material with this name, color and size already exists.")

    m = Material(user_id=user_id)
    for k, v in patch.items():
        if k in MATERIAL_MUTABLE_FIELDS:
            setattr(m, k, v)

    if m.quantity is None:
        m.quantity = 0
    if m.pack_size is None:
        m.pack_size = current_app.config.get("DEFAULT_PACK_SIZE", 24)

    db.session.add(m)
    db.session.commit()
    return m.to_dict()


def adjust_quantity(*, material_id: int, delta, user_id: int) -> dict:
    """
    Apply an increment/decrement to on-hand stock, flooring at zero.

    Raises:
        ValidationError: delta is not an integer, or the result exceeds MAX_QUANTITY
        OwnershipError: material missing or owned by another user
    """
    if delta is None:
        raise ValidationError("delta is required")
    delta = coerce_int("delta", delta)

    m = require_owned(Material, material_id, user_id)
    new_quantity = max(0, m.quantity + delta)
    if new_quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
    m.quantity = new_quantity

    db.session.commit()
    return m.to_dict()


def _open_demand_by_material(user_id: int) -> dict[int, list[tuple[OrderItem, Order]]]:
    rows = (
        db.session.query(OrderItem, Order)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(
            Order.user_id == user_id,
            Order.status.in_([s.value for s in OPEN_STATUSES]),
        )
        .order_by(Order.id.asc(), OrderItem.id.asc())
        .all()
    )
    demand: dict[int, list[tuple[OrderItem, Order]]] = {}
    for item, order in rows:
        demand.setdefault(item.material_id, []).append((item, order))
    return demand


def get_material_requirements(*, user_id: int) -> list[dict]:
    """
    Every material annotated with total_required, status and shortage.

    Each entry also lists the open order lines contributing to its demand.
    """
    materials = _owner_materials_query(user_id).all()
    demand = _open_demand_by_material(user_id)

    snapshots = [
        MaterialSnapshot(
            id=m.id,
            quantity=m.quantity,
            demand=tuple(
                DemandLine(
                    quantity_needed=item.quantity_needed,
                    order_status=OrderStatus(order.status),
                )
                for item, order in demand.get(m.id, [])
            ),
        )
        for m in materials
    ]
    requirements = compute_requirements(snapshots)

    result = []
    for m in materials:
        data = m.to_dict()
        data.update(requirements[m.id].to_dict())
        data["order_items"] = [
            {
                "quantity_needed": item.quantity_needed,
                "order": {
                    "id": order.id,
                    "name": order.name,
                    "status": order.status,
                    "due_date": to_utc_z(order.due_date),
                },
            }
            for item, order in demand.get(m.id, [])
        ]
        result.append(data)
    return result

