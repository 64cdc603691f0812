"""
Module: budget_engines.hierarchy
Responsibility:
    Hierarchy Builder.  Rebuild the cost-code tree (division -> cost code ->
    sub cost code -> ...) from the flat parent-pointer list and roll the
    ledger's direct amounts up from leaves to divisions.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Depth-agnostic: recursion follows the adjacency index to any depth.
      Display depth limits are a presentation concern
      (``budget_report.assembler.flatten_report``).
    - Rollup conservation: for every row, each rolled field equals the
      row's direct amount plus the sum of that field over its kept
      children.
    - ``total_amount = purchase_order + change_order`` (budgeted excluded);
      ``budget_remaining = budgeted - total_amount``.
    - Pruning: a row is kept iff any rolled field is > 0 or it has a kept
      child.  Divisions without kept rows are dropped.
    - Ordering: siblings and divisions sort by ``order`` ascending (missing
      order is 0); ties keep source order.
    - The index is built once per report; a parent-pointer cycle is never
      reachable from a root, so recursion always terminates.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from budget_engines.aggregation import AllocationTarget, CostCodeLedger
from budget_engines.tracer import traced_engine
from budget_kernel.domain.amounts import (
    ZERO,
    add_amounts,
    divide_amount,
    subtract_amounts,
    sum_amounts,
)
from budget_kernel.domain.documents import CostCodeNode, Division
from budget_kernel.logging_config import get_logger

logger = get_logger("engines.hierarchy")


def cost_per_room(total: Decimal, rooms: int) -> Decimal:
    """``total / rooms``, or zero when there are no rooms."""
    return divide_amount(total, rooms)


# =========================================================================
# Rollup rows
# =========================================================================


@dataclass(frozen=True)
class CostCodeRollup:
    """
    One cost-code row of the report with amounts rolled up from its subtree.

    ``direct`` holds the amounts allocated to this cost code itself; the
    four ``*_amount`` fields include every kept descendant.
    """

    cost_code_id: str
    number: str
    name: str
    order: int
    depth: int
    budgeted_amount: Decimal
    purchase_order_amount: Decimal
    change_order_amount: Decimal
    paid_amount: Decimal
    direct: AllocationTarget
    total_amount: Decimal
    budget_remaining: Decimal
    cost_per_room: Decimal
    children: tuple[CostCodeRollup, ...] = ()

    def has_activity(self) -> bool:
        return (
            self.budgeted_amount > ZERO
            or self.purchase_order_amount > ZERO
            or self.change_order_amount > ZERO
            or self.paid_amount > ZERO
        )


@dataclass(frozen=True)
class DivisionRollup:
    """A division with its kept top-level cost codes and their totals."""

    division_id: str
    number: str
    name: str
    order: int
    exclude_from_reports: bool
    cost_codes: tuple[CostCodeRollup, ...]
    budgeted_amount: Decimal
    purchase_order_amount: Decimal
    change_order_amount: Decimal
    paid_amount: Decimal
    total_amount: Decimal
    budget_remaining: Decimal
    cost_per_room: Decimal


# =========================================================================
# Adjacency index
# =========================================================================


@dataclass(frozen=True)
class CostCodeIndex:
    """
    Adjacency index over the active cost codes.

    ``roots`` maps division id to its top-level codes; ``children`` maps a
    parent cost-code id to its direct children.  Both lists are pre-sorted.
    """

    roots: dict[str, tuple[CostCodeNode, ...]] = field(default_factory=dict)
    children: dict[str, tuple[CostCodeNode, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, cost_codes: Iterable[CostCodeNode]) -> CostCodeIndex:
        roots: dict[str, list[CostCodeNode]] = {}
        children: dict[str, list[CostCodeNode]] = {}
        for node in cost_codes:
            if not node.is_active:
                continue
            if node.parent_id:
                children.setdefault(node.parent_id, []).append(node)
            else:
                roots.setdefault(node.division_id, []).append(node)
        return cls(
            roots={k: _sorted_by_order(v) for k, v in roots.items()},
            children={k: _sorted_by_order(v) for k, v in children.items()},
        )

    def top_level(self, division_id: str) -> tuple[CostCodeNode, ...]:
        return self.roots.get(division_id, ())

    def children_of(self, cost_code_id: str) -> tuple[CostCodeNode, ...]:
        return self.children.get(cost_code_id, ())


def _sorted_by_order(nodes: Sequence[CostCodeNode]) -> tuple[CostCodeNode, ...]:
    return tuple(sorted(nodes, key=lambda n: n.order or 0))


# =========================================================================
# Recursive rollup
# =========================================================================


def build_subtree(
    index: CostCodeIndex,
    ledger: CostCodeLedger,
    parent_id: str | None,
    division_id: str,
    number_of_rooms: int = 0,
    depth: int = 1,
    include_zero_rows: bool = False,
) -> tuple[CostCodeRollup, ...]:
    """
    Rolled-up rows for the children of ``parent_id``.

    ``parent_id`` None means the top-level codes of ``division_id``.
    ``depth`` is 1 for top-level cost codes.
    """
    if parent_id is None:
        nodes = index.top_level(division_id)
    else:
        nodes = index.children_of(parent_id)

    rows: list[CostCodeRollup] = []
    for node in nodes:
        direct = ledger.get(node.cost_code_id)
        sub_rows = build_subtree(
            index, ledger, node.cost_code_id, division_id,
            number_of_rooms, depth + 1, include_zero_rows,
        )
        row = _rollup(node, depth, direct, sub_rows, number_of_rooms)
        if include_zero_rows or row.has_activity() or sub_rows:
            rows.append(row)
    return tuple(rows)


def _rollup(
    node: CostCodeNode,
    depth: int,
    direct: AllocationTarget,
    sub_rows: tuple[CostCodeRollup, ...],
    number_of_rooms: int,
) -> CostCodeRollup:
    budgeted = add_amounts(direct.budgeted, sum_amounts(r.budgeted_amount for r in sub_rows))
    purchase_order = add_amounts(
        direct.purchase_order, sum_amounts(r.purchase_order_amount for r in sub_rows),
    )
    change_order = add_amounts(
        direct.change_order, sum_amounts(r.change_order_amount for r in sub_rows),
    )
    paid = add_amounts(direct.paid, sum_amounts(r.paid_amount for r in sub_rows))
    total_amount = add_amounts(purchase_order, change_order)
    return CostCodeRollup(
        cost_code_id=node.cost_code_id,
        number=node.number,
        name=node.name,
        order=node.order or 0,
        depth=depth,
        budgeted_amount=budgeted,
        purchase_order_amount=purchase_order,
        change_order_amount=change_order,
        paid_amount=paid,
        direct=direct,
        total_amount=total_amount,
        budget_remaining=subtract_amounts(budgeted, total_amount),
        cost_per_room=cost_per_room(total_amount, number_of_rooms),
        children=sub_rows,
    )


@traced_engine("hierarchy", "1.0", fingerprint_fields=("number_of_rooms",))
def build_division_rollups(
    divisions: Iterable[Division],
    index: CostCodeIndex,
    ledger: CostCodeLedger,
    number_of_rooms: int = 0,
    include_zero_rows: bool = False,
) -> tuple[DivisionRollup, ...]:
    """
    One rollup per active division that keeps at least one cost-code row,
    sorted by division order.
    """
    result: list[DivisionRollup] = []
    dropped = 0
    for division in sorted(divisions, key=lambda d: d.order or 0):
        if not division.is_active:
            continue
        rows = build_subtree(
            index, ledger, None, division.division_id,
            number_of_rooms, 1, include_zero_rows,
        )
        if not rows:
            dropped += 1
            continue
        result.append(_division_rollup(division, rows, number_of_rooms))

    logger.debug("division_rollups_built", extra={
        "division_count": len(result),
        "dropped_divisions": dropped,
    })
    return tuple(result)


def _division_rollup(
    division: Division,
    rows: tuple[CostCodeRollup, ...],
    number_of_rooms: int,
) -> DivisionRollup:
    budgeted = sum_amounts(r.budgeted_amount for r in rows)
    purchase_order = sum_amounts(r.purchase_order_amount for r in rows)
    change_order = sum_amounts(r.change_order_amount for r in rows)
    paid = sum_amounts(r.paid_amount for r in rows)
    total_amount = add_amounts(purchase_order, change_order)
    return DivisionRollup(
        division_id=division.division_id,
        number=division.number,
        name=division.name,
        order=division.order or 0,
        exclude_from_reports=division.exclude_from_reports,
        cost_codes=rows,
        budgeted_amount=budgeted,
        purchase_order_amount=purchase_order,
        change_order_amount=change_order,
        paid_amount=paid,
        total_amount=total_amount,
        budget_remaining=subtract_amounts(budgeted, total_amount),
        cost_per_room=cost_per_room(total_amount, number_of_rooms),
    )
