# Overview: Pytest coverage for the availability engine (no database needed).

"""
Availability Engine Tests

Covers:
- Material requirement aggregation (total_required / status / shortage)
- Product buildability (can_make / max_quantity) including the empty-BOM sentinel
- Canonical order listing sort
- Order status transitions and dashboard summary
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from tally.services.availability import (
    Buildability,
    ComponentSnapshot,
    DemandLine,
    MaterialSnapshot,
    MaterialStatus,
    NOT_BUILDABLE,
    OrderSnapshot,
    OrderStatus,
    can_transition,
    compute_buildability,
    compute_requirement,
    compute_requirements,
    order_item_shortage,
    scale_bill_of_materials,
    sort_orders,
    summarize_orders,
)

PENDING = OrderStatus.PENDING
IN_PROGRESS = OrderStatus.IN_PROGRESS
COMPLETED = OrderStatus.COMPLETED
CANCELLED = OrderStatus.CANCELLED


def material(quantity, *lines, id=1):
    return MaterialSnapshot(
        id=id,
        quantity=quantity,
        demand=tuple(DemandLine(quantity_needed=q, order_status=s) for q, s in lines),
    )


class TestMaterialRequirements:

    def test_two_open_orders_exceed_stock(self):
        req = compute_requirement(material(15, (18, PENDING), (12, IN_PROGRESS)))
        assert req.total_required == 30
        assert req.status == MaterialStatus.INSUFFICIENT
        assert req.shortage == 15

    def test_completed_order_stops_counting(self):
        req = compute_requirement(material(15, (18, COMPLETED), (12, PENDING)))
        assert req.total_required == 12
        assert req.status == MaterialStatus.SUFFICIENT
        assert req.shortage == 0

    def test_cancelled_order_stops_counting(self):
        req = compute_requirement(material(5, (50, CANCELLED)))
        assert req.total_required == 0
        assert req.status == MaterialStatus.SUFFICIENT

    def test_no_demand_at_zero_stock_is_sufficient(self):
        req = compute_requirement(material(0))
        assert req.total_required == 0
        assert req.status == MaterialStatus.SUFFICIENT
        assert req.shortage == 0

    def test_demand_equal_to_stock_is_sufficient(self):
        req = compute_requirement(material(10, (4, PENDING), (6, PENDING)))
        assert req.status == MaterialStatus.SUFFICIENT
        assert req.shortage == 0

    def test_shortage_only_in_aggregate(self):
        # Each order alone fits; together they do not
        req = compute_requirement(material(10, (6, PENDING), (6, IN_PROGRESS)))
        assert req.status == MaterialStatus.INSUFFICIENT
        assert req.shortage == 2

    @pytest.mark.parametrize("quantity", [0, 1, 7, 30, 100])
    def test_shortage_matches_status(self, quantity):
        req = compute_requirement(material(quantity, (10, PENDING), (20, IN_PROGRESS)))
        assert req.shortage == max(0, req.total_required - quantity)
        assert (req.status == MaterialStatus.INSUFFICIENT) == (req.shortage > 0)

    def test_order_independent(self):
        lines = [(3, PENDING), (9, IN_PROGRESS), (4, COMPLETED), (11, PENDING), (2, CANCELLED)]
        expected = compute_requirement(material(8, *lines))
        rng = random.Random(7)
        for _ in range(10):
            shuffled = lines[:]
            rng.shuffle(shuffled)
            assert compute_requirement(material(8, *shuffled)) == expected

    def test_idempotent_over_collection(self):
        snapshots = [material(5, (3, PENDING), id=1), material(0, (1, PENDING), id=2)]
        first = compute_requirements(snapshots)
        second = compute_requirements(snapshots)
        assert first == second
        assert first[2].shortage == 1

    def test_to_dict_uses_wire_values(self):
        data = compute_requirement(material(1, (2, PENDING))).to_dict()
        assert data == {"total_required": 2, "status": "insufficient", "shortage": 1}

    def test_order_item_shortage(self):
        assert order_item_shortage(12, 5) == 7
        assert order_item_shortage(5, 12) == 0


def component(on_hand, required, material_id=1):
    return ComponentSnapshot(material_id=material_id, quantity_on_hand=on_hand, quantity_required=required)


class TestBuildability:

    def test_two_materials_min_wins(self):
        result = compute_buildability([component(24, 1, 1), component(18, 1, 2)])
        assert result == Buildability(can_make=True, max_quantity=18)

    def test_floor_division(self):
        assert compute_buildability([component(3, 2)]) == Buildability(can_make=True, max_quantity=1)

    def test_cannot_make(self):
        assert compute_buildability([component(3, 5)]) == Buildability(can_make=False, max_quantity=0)

    def test_one_short_component_blocks(self):
        result = compute_buildability([component(100, 1, 1), component(0, 1, 2)])
        assert result.can_make is False
        assert result.max_quantity == 0

    def test_no_materials_is_not_buildable(self):
        assert compute_buildability([]) == NOT_BUILDABLE

    def test_zero_requirement_is_not_buildable(self):
        assert compute_buildability([component(10, 0)]) == NOT_BUILDABLE

    def test_can_make_iff_every_component_covered(self):
        for on_hand in range(0, 6):
            components = [component(on_hand, 3, 1), component(9, 2, 2)]
            result = compute_buildability(components)
            assert result.can_make == all(c.quantity_on_hand >= c.quantity_required for c in components)
            assert result.max_quantity == min(on_hand // 3, 9 // 2)

    def test_scale_bill_of_materials(self):
        lines = scale_bill_of_materials([component(0, 2, 1), component(0, 1, 5)], 4)
        assert lines == [(1, 8), (5, 4)]

    def test_scale_rejects_non_positive_units(self):
        with pytest.raises(ValueError):
            scale_bill_of_materials([component(0, 1)], 0)


class TestOrderSorting:

    def _order(self, id, status=PENDING, priority=0, due=None, created=None):
        base = datetime(2026, 1, 1)
        return OrderSnapshot(
            id=id,
            status=status,
            priority=priority,
            due_date=due,
            created_at=created or base,
        )

    def test_status_uses_enum_order_not_alphabetical(self):
        orders = [
            self._order(1, CANCELLED),
            self._order(2, COMPLETED),
            self._order(3, IN_PROGRESS),
            self._order(4, PENDING),
        ]
        assert [o.id for o in sort_orders(orders)] == [4, 3, 2, 1]

    def test_priority_descending_null_last(self):
        orders = [
            self._order(1, priority=None),
            self._order(2, priority=0),
            self._order(3, priority=2),
            self._order(4, priority=1),
        ]
        assert [o.id for o in sort_orders(orders)] == [3, 4, 2, 1]

    def test_due_date_ascending_nulls_last(self):
        d = datetime(2026, 3, 1)
        orders = [
            self._order(1, due=None),
            self._order(2, due=d + timedelta(days=5)),
            self._order(3, due=d),
        ]
        assert [o.id for o in sort_orders(orders)] == [3, 2, 1]

    def test_created_descending_tiebreak(self):
        t = datetime(2026, 2, 1)
        orders = [
            self._order(1, created=t),
            self._order(2, created=t + timedelta(hours=1)),
            self._order(3, created=t + timedelta(hours=2)),
        ]
        assert [o.id for o in sort_orders(orders)] == [3, 2, 1]

    def test_created_tiebreak_uses_wall_clock_utc(self):
        # Naive values are UTC, so a local DST gap must not merge them
        t = datetime(2026, 3, 8, 2, 30)
        orders = [
            self._order(1, created=t),
            self._order(2, created=t + timedelta(hours=1)),
            self._order(3, created=t + timedelta(minutes=1)),
        ]
        assert [o.id for o in sort_orders(orders)] == [2, 3, 1]

    def test_created_tiebreak_with_aware_datetimes(self):
        utc = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
        plus_two = timezone(timedelta(hours=2))
        orders = [
            self._order(1, created=utc),
            # 13:30 at +02:00 is 11:30 UTC, older than order 1
            self._order(2, created=datetime(2026, 5, 1, 13, 30, tzinfo=plus_two)),
        ]
        assert [o.id for o in sort_orders(orders)] == [1, 2]

    def test_status_beats_priority(self):
        orders = [
            self._order(1, COMPLETED, priority=2),
            self._order(2, PENDING, priority=0),
        ]
        assert [o.id for o in sort_orders(orders)] == [2, 1]

    def test_sort_is_deterministic(self):
        orders = [self._order(i, priority=i % 3) for i in range(1, 8)]
        shuffled = orders[:]
        random.Random(3).shuffle(shuffled)
        assert sort_orders(orders) == sort_orders(shuffled)


class TestStatusTransitions:

    @pytest.mark.parametrize("current,target", [
        (PENDING, IN_PROGRESS),
        (IN_PROGRESS, COMPLETED),
        (PENDING, COMPLETED),
        (PENDING, CANCELLED),
        (IN_PROGRESS, CANCELLED),
        (PENDING, PENDING),
        (COMPLETED, COMPLETED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (COMPLETED, PENDING),
        (COMPLETED, CANCELLED),
        (CANCELLED, PENDING),
        (CANCELLED, IN_PROGRESS),
        (IN_PROGRESS, PENDING),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_flags(self):
        assert PENDING.is_open and IN_PROGRESS.is_open
        assert COMPLETED.is_terminal and CANCELLED.is_terminal


class TestOrderSummary:

    def test_counts_by_band(self):
        created = datetime(2026, 1, 1)
        orders = [
            OrderSnapshot(1, PENDING, 2, None, created),
            OrderSnapshot(2, IN_PROGRESS, 1, None, created),
            OrderSnapshot(3, PENDING, 0, None, created),
            OrderSnapshot(4, PENDING, None, None, created),
            OrderSnapshot(5, COMPLETED, 2, None, created),
            OrderSnapshot(6, CANCELLED, 0, None, created),
        ]
        summary = summarize_orders(orders).to_dict()
        assert summary["open"] == 4
        assert summary["urgent"] == 1
        assert summary["high"] == 1
        assert summary["normal"] == 1
        assert summary["no_priority"] == 1
        assert summary["in_progress"] == 1
        assert summary["completed"] == 1
        assert summary["cancelled"] == 1
        assert summary["by_status"] == {
            "PENDING": 3, "IN_PROGRESS": 1, "COMPLETED": 1, "CANCELLED": 1,
        }
