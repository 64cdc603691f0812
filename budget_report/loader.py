"""
Source Loader (``budget_report.loader``).

Responsibility
--------------
Read everything one report needs from a ``BudgetSource`` and normalize it
into a ``SourceSnapshot`` of clean DTOs, recording every document that
could not contribute in a skipped-source manifest.

Architecture position
---------------------
**Module layer** -- the only part of the report pipeline that performs
I/O.  The engines run on the snapshot afterwards.

Fan-out / fan-in
----------------
Collection reads (project, divisions, cost codes, estimates, purchase
orders, change orders, invoice headers) run first, sequentially.  Per
document sub-fetches (estimate lines, commitment items, invoice details)
are independent tasks.  With ``fetch_workers > 1`` they run on a
``ThreadPoolExecutor``; every task returns its own result and the results
are merged serially in submission order, so the snapshot is identical for
any worker count.  A source whose methods share a non-thread-safe handle
(e.g. one SQLAlchemy ``Session``) must be used with ``fetch_workers=1``.

Failure policy
--------------
=============================  ============================================
Failure                        Effect
=============================  ============================================
project/divisions/cost codes/  ``SourceUnavailableError``: report aborted
estimates/POs/COs read fails
project record missing         ``ProjectNotFoundError``
invoice header read fails      no paid amounts; manifest entry
one sub-fetch fails            that document contributes zero; manifest
unknown po/co/invoice type     document skipped; manifest entry
=============================  ============================================
"""

from __future__ import annotations

import contextvars
from collections.abc import Callable, Hashable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from budget_engines.aggregation import (
    commitment_qualifies,
    estimate_qualifies,
    invoice_qualifies,
)
from budget_kernel.domain.documents import (
    COMMITMENT_LINE_FIELDS,
    CommitmentDocument,
    CommitmentKind,
    CommitmentType,
    CostCodeNode,
    Division,
    Estimate,
    PaidInvoice,
    ProjectInfo,
)
from budget_kernel.exceptions import (
    BudgetKernelError,
    DocumentFetchError,
    ProjectNotFoundError,
    SourceUnavailableError,
)
from budget_kernel.logging_config import get_logger
from budget_report.config import BudgetReportConfig
from budget_report.models import SkippedSource, SkipReason, SourceKind
from budget_report.sources import (
    COMMITMENT_TYPE_FIELDS,
    ESTIMATE_LINES_FIELD,
    BudgetSource,
    Record,
    commitment_line_variants,
    commitment_type_of,
    embedded_collection,
    normalize_commitment,
    normalize_cost_code,
    normalize_division,
    normalize_estimate,
    normalize_invoice,
    normalize_project,
)

logger = get_logger("report.loader")

_COMMITMENT_SOURCE_KINDS: dict[CommitmentKind, SourceKind] = {
    CommitmentKind.PURCHASE_ORDER: SourceKind.PURCHASE_ORDER,
    CommitmentKind.CHANGE_ORDER: SourceKind.CHANGE_ORDER,
}


@dataclass(frozen=True)
class SourceSnapshot:
    """Everything one report generation reads, normalized."""

    project: ProjectInfo
    divisions: tuple[Division, ...] = ()
    cost_codes: tuple[CostCodeNode, ...] = ()
    estimates: tuple[Estimate, ...] = ()
    commitments: tuple[CommitmentDocument, ...] = ()
    invoices: tuple[PaidInvoice, ...] = ()
    skipped: tuple[SkippedSource, ...] = ()


@dataclass(frozen=True)
class _FetchTask:
    key: Hashable
    source_kind: SourceKind
    document_id: str
    call: Callable[[], Any]


@dataclass
class _FetchOutcome:
    value: Any = None
    error: Exception | None = None


@dataclass
class _Manifest:
    entries: list[SkippedSource] = field(default_factory=list)

    def skip(
        self,
        source_kind: SourceKind,
        source_id: str,
        reason: SkipReason,
        detail: str = "",
    ) -> None:
        self.entries.append(SkippedSource(source_kind, source_id, reason, detail))


class SourceLoader:
    """
    Loads and normalizes the source collections of one project.

    Contract:
        ``load`` either returns a complete snapshot (possibly with skipped
        documents listed) or raises a ``BudgetKernelError`` subclass.
    """

    def __init__(self, source: BudgetSource, config: BudgetReportConfig | None = None):
        self._source = source
        self._config = config or BudgetReportConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, corporation_id: str, project_id: str) -> SourceSnapshot:
        manifest = _Manifest()

        project_record = self._read("project", self._source.get_project, project_id)
        if project_record is None:
            raise ProjectNotFoundError(project_id)
        project = normalize_project(project_record)

        divisions = tuple(
            normalize_division(r)
            for r in self._read_list("divisions", self._source.get_divisions, corporation_id)
        )
        cost_codes = tuple(
            normalize_cost_code(r)
            for r in self._read_list(
                "cost_code_configurations",
                self._source.get_cost_code_configurations,
                corporation_id,
            )
        )

        estimates = self._load_estimates(project_id, manifest)
        commitments = self._load_commitments(
            CommitmentKind.PURCHASE_ORDER, project_id, manifest,
        ) + self._load_commitments(CommitmentKind.CHANGE_ORDER, project_id, manifest)
        invoices = self._load_invoices(corporation_id, project_id, manifest)

        logger.info("budget_sources_loaded", extra={
            "division_count": len(divisions),
            "cost_code_count": len(cost_codes),
            "estimate_count": len(estimates),
            "commitment_count": len(commitments),
            "invoice_count": len(invoices),
            "skipped_count": len(manifest.entries),
        })
        return SourceSnapshot(
            project=project,
            divisions=divisions,
            cost_codes=cost_codes,
            estimates=estimates,
            commitments=commitments,
            invoices=invoices,
            skipped=tuple(manifest.entries),
        )

    # ------------------------------------------------------------------
    # Estimates
    # ------------------------------------------------------------------

    def _load_estimates(self, project_id: str, manifest: _Manifest) -> tuple[Estimate, ...]:
        records = self._read_list("estimates", self._source.get_estimates, project_id)

        qualifying: list[Record] = []
        tasks: list[_FetchTask] = []
        for record in records:
            header = normalize_estimate(record, line_items=())
            if not estimate_qualifies(header, project_id, self._config.estimate_status):
                continue
            qualifying.append(record)
            if not embedded_collection(record, ESTIMATE_LINES_FIELD):
                tasks.append(_FetchTask(
                    key=header.estimate_id,
                    source_kind=SourceKind.ESTIMATE,
                    document_id=header.estimate_id,
                    call=_bind(self._source.get_estimate_line_items, header.estimate_id),
                ))

        outcomes = self._run(tasks, manifest)
        estimates: list[Estimate] = []
        for record in qualifying:
            estimate_id = normalize_estimate(record, line_items=()).estimate_id
            outcome = outcomes.get(estimate_id)
            if outcome is None:
                estimates.append(normalize_estimate(record))
            elif outcome.error is not None:
                # contributes zero
                estimates.append(normalize_estimate(record, line_items=()))
            else:
                estimates.append(normalize_estimate(record, line_items=outcome.value or ()))
        return tuple(estimates)

    # ------------------------------------------------------------------
    # Purchase and change orders
    # ------------------------------------------------------------------

    def _load_commitments(
        self,
        kind: CommitmentKind,
        project_id: str,
        manifest: _Manifest,
    ) -> tuple[CommitmentDocument, ...]:
        if kind is CommitmentKind.PURCHASE_ORDER:
            collection = "purchase_orders"
            records = self._read_list(collection, self._source.get_purchase_orders, project_id)
            fetch_items = self._source.get_purchase_order_items
        else:
            collection = "change_orders"
            records = self._read_list(collection, self._source.get_change_orders, project_id)
            fetch_items = self._source.get_change_order_items

        source_kind = _COMMITMENT_SOURCE_KINDS[kind]
        default_type = self._config.commitment_type
        statuses = self._config.commitment_statuses

        pending: list[tuple[Record, CommitmentType]] = []
        tasks: list[_FetchTask] = []
        for record in records:
            commitment_type = commitment_type_of(record, kind, default_type)
            header = normalize_commitment(record, kind, commitment_type or default_type, {})
            if not commitment_qualifies(header, project_id, statuses):
                continue
            if commitment_type is None:
                manifest.skip(
                    source_kind, header.document_id, SkipReason.UNKNOWN_DOCUMENT_TYPE,
                    f"unrecognised type {record.get(COMMITMENT_TYPE_FIELDS[kind])!r}",
                )
                logger.warning("commitment_type_unknown", extra={
                    "document_kind": kind.value,
                    "document_id": header.document_id,
                })
                continue
            pending.append((record, commitment_type))
            for variant in commitment_line_variants(commitment_type):
                embedded = embedded_collection(
                    record, COMMITMENT_LINE_FIELDS[(kind, variant)].collection,
                )
                if embedded:
                    continue
                tasks.append(_FetchTask(
                    key=(header.document_id, variant),
                    source_kind=source_kind,
                    document_id=header.document_id,
                    call=_bind(fetch_items, header.document_id, variant.value),
                ))

        outcomes = self._run(tasks, manifest)
        documents: list[CommitmentDocument] = []
        for record, commitment_type in pending:
            document_id = normalize_commitment(record, kind, commitment_type, {}).document_id
            items_by_variant: dict[CommitmentType, list[Record]] = {}
            failed = False
            for variant in commitment_line_variants(commitment_type):
                outcome = outcomes.get((document_id, variant))
                if outcome is None:
                    continue
                if outcome.error is not None:
                    failed = True
                    break
                items_by_variant[variant] = list(outcome.value or ())
            if failed:
                continue
            documents.append(normalize_commitment(record, kind, commitment_type, items_by_variant))
        return tuple(documents)

    # ------------------------------------------------------------------
    # Vendor invoices
    # ------------------------------------------------------------------

    def _load_invoices(
        self,
        corporation_id: str,
        project_id: str,
        manifest: _Manifest,
    ) -> tuple[PaidInvoice, ...]:
        try:
            records = self._read_list(
                "vendor_invoices", self._source.get_vendor_invoices, corporation_id,
            )
        except SourceUnavailableError as exc:
            manifest.skip(SourceKind.VENDOR_INVOICE, "", SkipReason.FETCH_FAILED, exc.reason)
            logger.warning("vendor_invoices_unavailable", extra={"reason": exc.reason})
            return ()

        headers: list[Record] = []
        tasks: list[_FetchTask] = []
        for record in records:
            header = normalize_invoice(record)
            if not header.invoice_id:
                continue
            if not invoice_qualifies(header, project_id, self._config.invoice_status):
                continue
            headers.append(record)
            tasks.append(_FetchTask(
                key=header.invoice_id,
                source_kind=SourceKind.VENDOR_INVOICE,
                document_id=header.invoice_id,
                call=_bind(self._source.get_vendor_invoice, header.invoice_id),
            ))

        outcomes = self._run(tasks, manifest)
        invoices: list[PaidInvoice] = []
        for record in headers:
            invoice_id = normalize_invoice(record).invoice_id
            outcome = outcomes[invoice_id]
            if outcome.error is not None:
                continue
            if outcome.value is None:
                manifest.skip(SourceKind.VENDOR_INVOICE, invoice_id, SkipReason.NOT_FOUND)
                continue
            # qualification fields come from the header, items from the detail
            invoice = normalize_invoice({**outcome.value, **_header_fields(record)})
            if invoice.invoice_type is None:
                manifest.skip(
                    SourceKind.VENDOR_INVOICE, invoice_id, SkipReason.UNKNOWN_DOCUMENT_TYPE,
                    f"unrecognised type {outcome.value.get('invoice_type')!r}",
                )
                continue
            invoices.append(invoice)
        return tuple(invoices)

    # ------------------------------------------------------------------
    # I/O helpers
    # ------------------------------------------------------------------

    def _read(self, collection: str, reader: Callable[[str], Any], key: str) -> Any:
        try:
            result = reader(key)
        except BudgetKernelError:
            raise
        except Exception as exc:
            logger.error("source_collection_unavailable", extra={
                "collection": collection,
                "reason": str(exc),
            })
            raise SourceUnavailableError(collection, str(exc)) from exc
        return result

    def _read_list(self, collection: str, reader: Callable[[str], Any], key: str) -> list[Record]:
        return list(self._read(collection, reader, key) or ())

    def _run(
        self,
        tasks: Sequence[_FetchTask],
        manifest: _Manifest,
    ) -> dict[Hashable, _FetchOutcome]:
        """Run sub-fetches, fan-out when configured, and merge serially."""
        if not tasks:
            return {}
        workers = min(self._config.fetch_workers, len(tasks))
        if workers <= 1:
            outcomes = [_attempt(task) for task in tasks]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(contextvars.copy_context().run, _attempt, task)
                    for task in tasks
                ]
                outcomes = [future.result() for future in futures]

        merged: dict[Hashable, _FetchOutcome] = {}
        for task, outcome in zip(tasks, outcomes):
            merged[task.key] = outcome
            if outcome.error is not None:
                error = DocumentFetchError(
                    task.source_kind.value, task.document_id, str(outcome.error),
                )
                manifest.skip(
                    task.source_kind, task.document_id, SkipReason.FETCH_FAILED, error.reason,
                )
                logger.warning("source_document_fetch_failed", extra={
                    "error_code": error.code,
                    "document_kind": error.document_kind,
                    "failed_document_id": error.document_id,
                    "reason": error.reason,
                })
        return merged


_HEADER_FIELDS = ("uuid", "project_uuid", "status", "is_active")


def _header_fields(record: Record) -> dict[str, Any]:
    return {name: record.get(name) for name in _HEADER_FIELDS if name in record}


def _bind(func: Callable[..., Any], *args: Any) -> Callable[[], Any]:
    return lambda: func(*args)


def _attempt(task: _FetchTask) -> _FetchOutcome:
    try:
        return _FetchOutcome(value=task.call())
    except Exception as exc:
        return _FetchOutcome(error=exc)
