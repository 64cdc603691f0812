"""
Budget Report Service (``budget_report.service``).

Responsibility
--------------
Orchestrates budget-vs-actual report generation for one project: loads the
source collections through ``SourceLoader``, aggregates allocated amounts
per cost code, rolls them up the cost-code tree and assembles the final
``BudgetReport``.  This is a **read-only** service.

Architecture position
---------------------
**Module layer** -- thin glue between a ``BudgetSource`` (the SQLAlchemy
``BudgetSourceSelector`` or any other collaborator) and the pure engines
in ``budget_engines``.  Constructor: ``source`` + ``clock`` + ``config``;
``from_session`` builds the SQLAlchemy-backed variant.

Invariants enforced
-------------------
* Read-only -- sources are never mutated.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* The cost-code ledger is created per call; nothing is shared between
  reports.

Failure modes
-------------
* Blank corporation or project id  -> ``MissingInputError`` before any read.
* Unknown project                  -> ``ProjectNotFoundError``.
* A whole collection unreadable    -> ``SourceUnavailableError``.
* Per-document fetch failures never raise; they are listed in
  ``BudgetReport.skipped`` and the document contributes zero.
"""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy.orm import Session

from budget_engines.aggregation import aggregate_cost_codes
from budget_engines.hierarchy import CostCodeIndex, build_division_rollups
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.coercion import to_text
from budget_kernel.exceptions import BudgetKernelError, MissingInputError
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.selectors.budget_source_selector import BudgetSourceSelector
from budget_report.assembler import assemble_report, flatten_report
from budget_report.config import BudgetReportConfig
from budget_report.loader import SourceLoader
from budget_report.models import (
    BudgetReport,
    BudgetReportRow,
    ProjectHeader,
    ReportMetadata,
)
from budget_report.sources import BudgetSource

logger = get_logger("report.service")


class BudgetReportService:
    """
    Budget-vs-actual report generation service.

    Contract
    --------
    * ``generate_report`` returns a ``BudgetReport`` or raises a
      ``BudgetKernelError`` subclass; it never returns a partial "null".
    * ``generate_report_rows`` returns the same report as flat table rows.

    Guarantees
    ----------
    * No financial logic lives in this class; it delegates to the engines
      and the assembler.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT render, paginate or persist reports.
    """

    def __init__(
        self,
        source: BudgetSource,
        clock: Clock | None = None,
        config: BudgetReportConfig | None = None,
    ):
        self._source = source
        self._clock = clock or SystemClock()
        self._config = config or BudgetReportConfig.with_defaults()
        self._loader = SourceLoader(source, self._config)

        logger.info(
            "budget_report_service_initialized",
            extra={
                "source_type": type(source).__name__,
                "fetch_workers": self._config.fetch_workers,
            },
        )

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        config: BudgetReportConfig | None = None,
    ) -> BudgetReportService:
        """
        Service reading the ORM models through ``BudgetSourceSelector``.

        A ``Session`` is not thread-safe, so sub-fetches always run on one
        worker regardless of ``config.fetch_workers``.
        """
        config = config or BudgetReportConfig.with_defaults()
        if config.fetch_workers != 1:
            config = replace(config, fetch_workers=1)
        return cls(BudgetSourceSelector(session), clock=clock, config=config)

    # =========================================================================
    # Report generation
    # =========================================================================

    def generate_report(self, corporation_id: str, project_id: str) -> BudgetReport:
        """
        Generate the budget report of ``project_id``.

        Raises:
            MissingInputError: corporation or project id is blank.
            ProjectNotFoundError: the project does not exist.
            SourceUnavailableError: a required collection could not be read.
        """
        corporation_id = to_text(corporation_id)
        project_id = to_text(project_id)
        missing = tuple(
            name
            for name, value in (("corporation_id", corporation_id), ("project_id", project_id))
            if not value
        )
        if missing:
            logger.warning("budget_report_missing_input", extra={"missing": list(missing)})
            raise MissingInputError(missing)

        with LogContext.bind(corporation_id=corporation_id, project_id=project_id):
            logger.info("budget_report_started")
            try:
                report = self._build(corporation_id, project_id)
            except BudgetKernelError as exc:
                logger.warning("budget_report_failed", extra={
                    "error_code": exc.code,
                    "error": str(exc),
                })
                raise

            logger.info("budget_report_completed", extra={
                "division_count": len(report.divisions),
                "skipped_count": len(report.skipped),
                "total_amount": report.summary.total_amount,
                "budgeted_amount": report.summary.budgeted_amount,
            })
            return report

    def generate_report_rows(
        self,
        corporation_id: str,
        project_id: str,
    ) -> tuple[BudgetReportRow, ...]:
        """Flat presentation rows, limited to the configured display depth."""
        report = self.generate_report(corporation_id, project_id)
        return flatten_report(report, self._config.max_display_depth)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _build(self, corporation_id: str, project_id: str) -> BudgetReport:
        snapshot = self._loader.load(corporation_id, project_id)
        project = snapshot.project

        ledger = aggregate_cost_codes(
            project_id,
            estimates=snapshot.estimates,
            commitments=snapshot.commitments,
            invoices=snapshot.invoices,
            project_contingency_percent=project.contingency_percent,
            commitment_statuses=self._config.commitment_statuses,
            estimate_status=self._config.estimate_status,
            invoice_status=self._config.invoice_status,
        )

        index = CostCodeIndex.build(snapshot.cost_codes)
        divisions = build_division_rollups(
            snapshot.divisions,
            index,
            ledger,
            number_of_rooms=project.number_of_rooms,
            include_zero_rows=self._config.include_zero_rows,
        )

        metadata = ReportMetadata(
            corporation_id=corporation_id,
            project_id=project_id,
            generated_at=self._clock.now().isoformat(),
            max_display_depth=self._config.max_display_depth,
        )
        header = ProjectHeader(
            project_id=project.project_id or project_id,
            name=project.name,
            external_id=project.external_id,
            number_of_rooms=project.number_of_rooms,
        )
        return assemble_report(metadata, header, divisions, snapshot.skipped)
