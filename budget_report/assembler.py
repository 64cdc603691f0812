"""
Report Assembler (``budget_report.assembler``).

Responsibility
--------------
Pure functions that combine division rollups into the final
``BudgetReport``: summary totals across divisions, per-room unit economics,
the flat presentation table, and JSON-safe rendering.

Architecture position
---------------------
**Module layer** -- pure transformation, ZERO I/O.  Called by
``BudgetReportService`` after the hierarchy has been built.

Invariants enforced
-------------------
* Summary fields are exact sums over the surviving divisions.
* ``cost_per_room`` is zero when the project has no rooms.
* ``flatten_report`` never drops amounts: rows deeper than the display
  depth are not emitted, but their amounts are already part of their
  displayed ancestor's rolled totals.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from budget_engines.hierarchy import CostCodeRollup, DivisionRollup, cost_per_room
from budget_kernel.domain.amounts import add_amounts, subtract_amounts, sum_amounts
from budget_report.models import (
    BudgetReport,
    BudgetReportRow,
    ProjectHeader,
    ReportMetadata,
    ReportSummary,
    RowLevel,
    SkippedSource,
)

_COST_CODE_LEVELS: tuple[RowLevel, ...] = (
    RowLevel.COST_CODE,
    RowLevel.SUB_COST_CODE,
    RowLevel.SUB_SUB_COST_CODE,
)


def summarize_divisions(
    divisions: Sequence[DivisionRollup],
    number_of_rooms: int = 0,
) -> ReportSummary:
    """Sum the four rollups and derived fields across ``divisions``."""
    budgeted = sum_amounts(d.budgeted_amount for d in divisions)
    purchase_order = sum_amounts(d.purchase_order_amount for d in divisions)
    change_order = sum_amounts(d.change_order_amount for d in divisions)
    paid = sum_amounts(d.paid_amount for d in divisions)
    total_amount = add_amounts(purchase_order, change_order)
    return ReportSummary(
        budgeted_amount=budgeted,
        purchase_order_amount=purchase_order,
        change_order_amount=change_order,
        paid_amount=paid,
        total_amount=total_amount,
        total_remaining=subtract_amounts(budgeted, total_amount),
        cost_per_room=cost_per_room(total_amount, number_of_rooms),
    )


def assemble_report(
    metadata: ReportMetadata,
    project: ProjectHeader,
    divisions: Sequence[DivisionRollup],
    skipped: Iterable[SkippedSource] = (),
) -> BudgetReport:
    return BudgetReport(
        metadata=metadata,
        project=project,
        divisions=tuple(divisions),
        summary=summarize_divisions(divisions, project.number_of_rooms),
        skipped=tuple(skipped),
    )


# =========================================================================
# Flat presentation rows
# =========================================================================


def flatten_report(
    report: BudgetReport,
    max_depth: int = 3,
) -> tuple[BudgetReportRow, ...]:
    """
    Depth-first table rows: each division followed by its cost codes down
    to ``max_depth`` levels, then one grand-total row.
    """
    rows: list[BudgetReportRow] = []
    for division in report.divisions:
        rows.append(_division_row(division))
        for cost_code in division.cost_codes:
            _append_cost_code_rows(
                rows, cost_code, division.division_id, None, max_depth,
            )
    rows.append(_total_row(report.summary))
    return tuple(rows)


def _level_for_depth(depth: int) -> RowLevel:
    return _COST_CODE_LEVELS[min(depth, len(_COST_CODE_LEVELS)) - 1]


def _append_cost_code_rows(
    rows: list[BudgetReportRow],
    cost_code: CostCodeRollup,
    division_id: str,
    parent_id: str | None,
    max_depth: int,
) -> None:
    if cost_code.depth > max_depth:
        return
    rows.append(BudgetReportRow(
        level=_level_for_depth(cost_code.depth),
        row_id=cost_code.cost_code_id,
        number=cost_code.number,
        name=cost_code.name,
        budgeted_amount=cost_code.budgeted_amount,
        purchase_order_amount=cost_code.purchase_order_amount,
        change_order_amount=cost_code.change_order_amount,
        total_amount=cost_code.total_amount,
        paid_amount=cost_code.paid_amount,
        budget_remaining=cost_code.budget_remaining,
        cost_per_room=cost_code.cost_per_room,
        division_id=division_id,
        parent_id=parent_id,
    ))
    for child in cost_code.children:
        _append_cost_code_rows(
            rows, child, division_id, cost_code.cost_code_id, max_depth,
        )


def _division_row(division: DivisionRollup) -> BudgetReportRow:
    return BudgetReportRow(
        level=RowLevel.DIVISION,
        row_id=division.division_id,
        number=division.number,
        name=division.name,
        budgeted_amount=division.budgeted_amount,
        purchase_order_amount=division.purchase_order_amount,
        change_order_amount=division.change_order_amount,
        total_amount=division.total_amount,
        paid_amount=division.paid_amount,
        budget_remaining=division.budget_remaining,
        cost_per_room=division.cost_per_room,
        division_id=division.division_id,
    )


def _total_row(summary: ReportSummary) -> BudgetReportRow:
    return BudgetReportRow(
        level=RowLevel.TOTAL,
        row_id="",
        number="",
        name="Total",
        budgeted_amount=summary.budgeted_amount,
        purchase_order_amount=summary.purchase_order_amount,
        change_order_amount=summary.change_order_amount,
        total_amount=summary.total_amount,
        paid_amount=summary.paid_amount,
        budget_remaining=summary.total_remaining,
        cost_per_room=summary.cost_per_room,
        is_total=True,
    )


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date/datetime -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
