# Overview: Service-layer operations for orders; creation, lifecycle updates and canonical listing.

"""
Orders Service

All operations are scoped to a single owner (user_id).

ORDERING: list_orders applies the canonical listing order from the
availability engine (status, priority desc, due date asc nulls last,
newest first).

LIFECYCLE: update_order enforces PENDING -> IN_PROGRESS -> COMPLETED with
CANCELLED allowed from any open state, unless ENFORCE_ORDER_TRANSITIONS is
turned off in config.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Material, Order, OrderItem
from ..validation import ConflictError
from .availability import (
    OrderSnapshot,
    OrderStatus,
    can_transition,
    sort_orders,
    summarize_orders,
)
from .ownership_service import require_owned, require_all_owned

ORDER_MUTABLE_FIELDS = {"status", "priority", "due_date"}


def _snapshot(order: Order) -> OrderSnapshot:
    return OrderSnapshot(
        id=order.id,
        status=order.status_enum,
        priority=order.priority,
        due_date=order.due_date,
        created_at=order.created_at,
    )


def _owner_orders(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.user_id == user_id)
        .options(selectinload(Order.order_items).selectinload(OrderItem.material))
        .all()
    )


def list_orders(*, user_id: int, status: str | None = None) -> list[dict]:
    """Owner's orders in canonical order, items embedded with per-line shortage."""
    orders = _owner_orders(user_id)
    if status is not None:
        orders = [o for o in orders if o.status == status]

    by_id = {o.id: o for o in orders}
    ordered = sort_orders(_snapshot(o) for o in orders)
    return [by_id[snap.id].to_dict() for snap in ordered]


def get_order_summary(*, user_id: int) -> dict:
    return summarize_orders(_snapshot(o) for o in _owner_orders(user_id)).to_dict()


def create_order(
    *,
    name: str,
    items: list[dict],
    user_id: int,
    priority: int | None = 0,
    due_date=None,
) -> dict:
    """
    Create an order with its demand lines.

    Args:
        items: validated rows of {"material_id": int, "quantity_needed": int >= 1}

    Raises:
        OwnershipError: any material missing or owned by another user
    """
    material_ids = [row["material_id"] for row in items]
    require_all_owned(Material, material_ids, user_id)

    order = Order(
        user_id=user_id,
        name=name,
        status=OrderStatus.PENDING.value,
        priority=0 if priority is None else priority,
        due_date=due_date,
    )
    for row in items:
        order.order_items.append(
            OrderItem(material_id=row["material_id"], quantity_needed=row["quantity_needed"])
        )

    db.session.add(order)
    db.session.commit()
    current_app.logger.info("Created order id=%s with %d items", order.id, len(items))
    return order.to_dict()


def update_order(*, order_id: int, patch: dict, user_id: int) -> dict:
    """
    Apply a validated patch of status / priority / due_date.

    Raises:
        OwnershipError: order missing or owned by another user
        ConflictError: illegal status transition (when enforcement is on)
    """
    order = require_owned(Order, order_id, user_id)

    if "status" in patch and patch["status"] is not None:
        current = order.status_enum
        target = OrderStatus(patch["status"])
        enforce = current_app.config.get("ENFORCE_ORDER_TRANSITIONS", True)
        if enforce and not can_transition(current, target):
            raise ConflictError(
                f"Cannot change order status from {current.value} to {target.value}"
            )
        if current != target:
            current_app.logger.info(
                "Order id=%s status %s -> %s", order.id, current.value, target.value
            )

    for k, v in patch.items():
        if k not in ORDER_MUTABLE_FIELDS:
            continue
        if k == "status" and v is None:
            continue
        setattr(order, k, v)

    db.session.commit()
    return order.to_dict()


def delete_order(*, order_id: int, user_id: int) -> None:
    """Hard delete; order items go with it."""
    order = require_owned(Order, order_id, user_id)
    db.session.delete(order)
    db.session.commit()
