"""
Budget Report Module (``budget_report``).

Responsibility
--------------
Read-only module that generates the budget-vs-actual report of a project:
budgeted amounts from approved estimates, committed amounts from purchase
and change orders, paid amounts from vendor invoices, rolled up the
cost-code tree and summarized per division and per room.

Architecture position
---------------------
**Module layer** -- ``BudgetReportService`` is the public entry point.
I/O is confined to ``loader``; allocation, aggregation and rollup are the
pure engines of ``budget_engines``.

Failure modes
-------------
* Blank identifiers, unknown project or an unreadable collection abort the
  report with a typed ``BudgetKernelError``.
* Per-document failures degrade to zero and are listed in the report's
  skipped-source manifest.
"""

from budget_report.assembler import (
    assemble_report,
    flatten_report,
    render_to_dict,
    summarize_divisions,
)
from budget_report.config import BudgetReportConfig
from budget_report.loader import SourceLoader, SourceSnapshot
from budget_report.models import (
    BudgetReport,
    BudgetReportRow,
    ProjectHeader,
    ReportMetadata,
    ReportSummary,
    RowLevel,
    SkippedSource,
    SkipReason,
    SourceKind,
)
from budget_report.service import BudgetReportService
from budget_report.sources import BudgetSource

__all__ = [
    "BudgetReport",
    "BudgetReportConfig",
    "BudgetReportRow",
    "BudgetReportService",
    "BudgetSource",
    "ProjectHeader",
    "ReportMetadata",
    "ReportSummary",
    "RowLevel",
    "SkipReason",
    "SkippedSource",
    "SourceKind",
    "SourceLoader",
    "SourceSnapshot",
    "assemble_report",
    "flatten_report",
    "render_to_dict",
    "summarize_divisions",
]
