# Overview: Pure availability computations over in-memory inventory snapshots.

"""
Availability Engine

Derives material shortage state and product buildability from plain
snapshots. Nothing in this module touches the database or Flask context:
services fetch owner-scoped rows, convert them to the snapshot dataclasses
below, and merge the results back onto their serialized payloads.

DEMAND MODEL:
All open orders (PENDING, IN_PROGRESS) compete for the same stock at once.
There is no reservation or first-come allocation; a material's demand is the
plain sum of every open order line that references it.

BUILDABILITY:
Computed against raw on-hand stock, never net of open-order demand.
A product with no components is never buildable (can_make=False,
max_quantity=0) so callers never see an unbounded quantity.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence


class OrderStatus(str, enum.Enum):
    # Declaration order is the canonical listing order.
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_open(self) -> bool:
        return self in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not self.is_open


_STATUS_RANK = {status: index for index, status in enumerate(OrderStatus)}

OPEN_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.IN_PROGRESS})

# Legal forward moves; CANCELLED is reachable from every open state.
_FORWARD_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED},
    OrderStatus.IN_PROGRESS: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


class MaterialStatus(str, enum.Enum):
    SUFFICIENT = "sufficient"
    INSUFFICIENT = "insufficient"


PRIORITY_NORMAL = 0
PRIORITY_HIGH = 1
PRIORITY_URGENT = 2
VALID_PRIORITIES = (PRIORITY_NORMAL, PRIORITY_HIGH, PRIORITY_URGENT)


@dataclass(frozen=True)
class DemandLine:
    """One order line pointing at a material."""
    quantity_needed: int
    order_status: OrderStatus


@dataclass(frozen=True)
class MaterialSnapshot:
    id: int
    quantity: int
    demand: tuple[DemandLine, ...] = ()


@dataclass(frozen=True)
class MaterialRequirement:
    material_id: int
    total_required: int
    status: MaterialStatus
    shortage: int

    def to_dict(self) -> dict:
        return {
            "total_required": self.total_required,
            "status": self.status.value,
            "shortage": self.shortage,
        }


@dataclass(frozen=True)
class ComponentSnapshot:
    """A product's bill-of-materials line joined with current stock."""
    material_id: int
    quantity_on_hand: int
    quantity_required: int


@dataclass(frozen=True)
class Buildability:
    can_make: bool
    max_quantity: int

    def to_dict(self) -> dict:
        return {"can_make": self.can_make, "max_quantity": self.max_quantity}


NOT_BUILDABLE = Buildability(can_make=False, max_quantity=0)


@dataclass(frozen=True)
class OrderSnapshot:
    """Fields the canonical order listing sorts and summarizes on."""
    id: int
    status: OrderStatus
    priority: int | None
    due_date: datetime | None
    created_at: datetime


@dataclass
class OrderSummary:
    urgent: int = 0
    high: int = 0
    normal: int = 0
    no_priority: int = 0
    open: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    by_status: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "open": self.open,
            "urgent": self.urgent,
            "high": self.high,
            "normal": self.normal,
            "no_priority": self.no_priority,
            "in_progress": self.in_progress,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "by_status": dict(self.by_status),
        }


# ---------------------------------------------------------------------------
# Operation A: material requirement aggregation
# ---------------------------------------------------------------------------

def compute_requirement(material: MaterialSnapshot) -> MaterialRequirement:
    """
    Fold a material's open demand into (total_required, status, shortage).

    Lines from COMPLETED/CANCELLED orders are skipped even if the caller
    passed them in.
    """
    total_required = sum(
        line.quantity_needed for line in material.demand
        if line.order_status in OPEN_STATUSES
    )
    shortage = max(0, total_required - material.quantity)
    status = (
        MaterialStatus.INSUFFICIENT
        if total_required > material.quantity
        else MaterialStatus.SUFFICIENT
    )
    return MaterialRequirement(
        material_id=material.id,
        total_required=total_required,
        status=status,
        shortage=shortage,
    )


def compute_requirements(materials: Iterable[MaterialSnapshot]) -> dict[int, MaterialRequirement]:
    """Operation A over a collection, keyed by material id."""
    return {m.id: compute_requirement(m) for m in materials}


def order_item_shortage(quantity_needed: int, quantity_on_hand: int) -> int:
    """Shortfall for a single order line, ignoring every other order."""
    return max(0, quantity_needed - quantity_on_hand)


# ---------------------------------------------------------------------------
# Operation B: product buildability
# ---------------------------------------------------------------------------

def compute_buildability(components: Sequence[ComponentSnapshot]) -> Buildability:
    """
    Decide whether one unit can be built and how many units stock allows.

    Empty bills of materials and non-positive requirements resolve to
    NOT_BUILDABLE instead of raising.
    """
    if not components:
        return NOT_BUILDABLE
    if any(c.quantity_required <= 0 for c in components):
        return NOT_BUILDABLE

    can_make = all(c.quantity_on_hand >= c.quantity_required for c in components)
    max_quantity = min(c.quantity_on_hand // c.quantity_required for c in components)
    return Buildability(can_make=can_make, max_quantity=max(0, max_quantity))


def scale_bill_of_materials(components: Iterable[ComponentSnapshot], units: int) -> list[tuple[int, int]]:
    """(material_id, quantity_needed) pairs for building `units` of a product."""
    if units <= 0:
        raise ValueError("units must be > 0")
    return [(c.material_id, c.quantity_required * units) for c in components]


# ---------------------------------------------------------------------------
# Order ordering, lifecycle and summary
# ---------------------------------------------------------------------------

def _newest_first(created_at: datetime) -> timedelta:
    # Ascending on this means newest first; aware values are compared in UTC.
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
    return datetime.max - created_at


def order_sort_key(order: OrderSnapshot) -> tuple:
    # Status asc, priority desc (null last), due date asc (null last), created desc.
    priority_key = -order.priority if order.priority is not None else 1
    due_key = (0, order.due_date) if order.due_date is not None else (1, datetime.min)
    return (
        order.status.rank,
        priority_key,
        due_key,
        _newest_first(order.created_at),
        -order.id,
    )


def sort_orders(orders: Iterable[OrderSnapshot]) -> list[OrderSnapshot]:
    return sorted(orders, key=order_sort_key)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current == target:
        return True
    if target == OrderStatus.CANCELLED:
        return current.is_open
    return target in _FORWARD_TRANSITIONS[current]


def summarize_orders(orders: Iterable[OrderSnapshot]) -> OrderSummary:
    summary = OrderSummary(by_status={s.value: 0 for s in OrderStatus})
    for order in orders:
        summary.by_status[order.status.value] += 1
        if order.status == OrderStatus.COMPLETED:
            summary.completed += 1
            continue
        if order.status == OrderStatus.CANCELLED:
            summary.cancelled += 1
            continue

        summary.open += 1
        if order.status == OrderStatus.IN_PROGRESS:
            summary.in_progress += 1
        if order.priority == PRIORITY_URGENT:
            summary.urgent += 1
        elif order.priority == PRIORITY_HIGH:
            summary.high += 1
        elif order.priority == PRIORITY_NORMAL:
            summary.normal += 1
        else:
            summary.no_priority += 1
    return summary
