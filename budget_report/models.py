"""
Budget Report Domain Models (``budget_report.models``).

Responsibility
--------------
Frozen dataclass value objects representing the budget-vs-actual report:
project header, summary totals, the skipped-source manifest, and the flat
presentation rows produced for table/export consumers.  The division tree
itself is made of ``budget_engines.hierarchy`` rollups.

Architecture position
---------------------
**Module layer** -- pure data definitions with ZERO I/O.  Returned by
``BudgetReportService``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``total_amount`` is purchase orders plus change orders; budgeted is
  never part of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from budget_engines.hierarchy import DivisionRollup


# =========================================================================
# Enums
# =========================================================================


class SourceKind(str, Enum):
    """Source collections a skipped-source entry can refer to."""

    ESTIMATE = "estimate"
    PURCHASE_ORDER = "purchase_order"
    CHANGE_ORDER = "change_order"
    VENDOR_INVOICE = "vendor_invoice"


class SkipReason(str, Enum):
    """Why a source did not contribute to the report."""

    FETCH_FAILED = "FETCH_FAILED"
    UNKNOWN_DOCUMENT_TYPE = "UNKNOWN_DOCUMENT_TYPE"
    NOT_FOUND = "NOT_FOUND"


class RowLevel(str, Enum):
    """Presentation level of a flattened report row."""

    DIVISION = "division"
    COST_CODE = "cost_code"
    SUB_COST_CODE = "sub_cost_code"
    SUB_SUB_COST_CODE = "sub_sub_cost_code"
    TOTAL = "total"


# =========================================================================
# Report header and metadata
# =========================================================================


@dataclass(frozen=True)
class ProjectHeader:
    project_id: str
    name: str
    external_id: str
    number_of_rooms: int = 0


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every budget report."""

    corporation_id: str
    project_id: str
    generated_at: str  # ISO format timestamp from injected clock
    max_display_depth: int = 3


@dataclass(frozen=True)
class SkippedSource:
    """
    One entry of the partial-failure manifest.

    The named document (or whole collection, when ``source_id`` is empty)
    contributed nothing to the report.
    """

    source_kind: SourceKind
    source_id: str
    reason: SkipReason
    detail: str = ""


# =========================================================================
# Summary and report
# =========================================================================


@dataclass(frozen=True)
class ReportSummary:
    """Totals across every surviving division."""

    budgeted_amount: Decimal
    purchase_order_amount: Decimal
    change_order_amount: Decimal
    paid_amount: Decimal
    total_amount: Decimal
    total_remaining: Decimal
    cost_per_room: Decimal


@dataclass(frozen=True)
class BudgetReport:
    """
    The complete budget-vs-actual report for one project.

    ``skipped`` is empty when every source document was read successfully.
    """

    metadata: ReportMetadata
    project: ProjectHeader
    divisions: tuple[DivisionRollup, ...]
    summary: ReportSummary
    skipped: tuple[SkippedSource, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.skipped


# =========================================================================
# Flat presentation rows
# =========================================================================


@dataclass(frozen=True)
class BudgetReportRow:
    """
    One row of the flattened report table.

    Division rows carry the division number and name; cost-code rows carry
    the cost code's.  The final ``TOTAL`` row has ``is_total`` set and the
    summary amounts.
    """

    level: RowLevel
    row_id: str
    number: str
    name: str
    budgeted_amount: Decimal
    purchase_order_amount: Decimal
    change_order_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    budget_remaining: Decimal
    cost_per_room: Decimal
    division_id: str = ""
    parent_id: str | None = None
    is_total: bool = False
