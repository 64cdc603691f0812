"""
Module: budget_engines.aggregation
Responsibility:
    Cost Code Aggregator.  Decide which documents qualify for the report and
    accumulate their allocated contributions into one report-scoped map from
    cost-code id to ``AllocationTarget``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The four AllocationTarget fields accumulate independently; they are
      never netted against each other here.
    - Accumulation is additive, associative and commutative.  Additions are
      exact Decimal sums, so any processing order (or any merge order of
      per-task ledgers) yields the same map.
    - The ledger is scoped to one report generation; there is no module
      level state.

Qualification rules:
    ============  =========================================================
    Estimate      status == "Approved", is_active is True, project matches
    PO / CO       lower(status) in {approved, partially_received,
                  completed}, is_active is not False, project matches
    Invoice       status == "Paid", is_active is not False, project matches
    ============  =========================================================
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from budget_engines.allocation import (
    AllocationBucket,
    CostCodeContribution,
    allocate_commitment,
    allocate_invoice,
    budget_estimate,
)
from budget_engines.tracer import traced_engine
from budget_kernel.domain.amounts import ZERO, add_amounts
from budget_kernel.domain.documents import CommitmentDocument, Estimate, PaidInvoice
from budget_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")

APPROVED_ESTIMATE_STATUS = "Approved"
PAID_INVOICE_STATUS = "Paid"
COMMITTED_STATUSES: frozenset[str] = frozenset(
    {"approved", "partially_received", "completed"},
)


# =========================================================================
# Qualification
# =========================================================================


def estimate_qualifies(
    estimate: Estimate,
    project_id: str,
    status: str = APPROVED_ESTIMATE_STATUS,
) -> bool:
    return (
        estimate.status == status
        and estimate.is_active is True
        and estimate.project_id == project_id
    )


def commitment_qualifies(
    document: CommitmentDocument,
    project_id: str,
    statuses: Collection[str] = COMMITTED_STATUSES,
) -> bool:
    """Case-insensitive status match; ``statuses`` are lower-case."""
    return (
        document.status.strip().lower() in statuses
        and document.is_active is not False
        and document.project_id == project_id
    )


def invoice_qualifies(
    invoice: PaidInvoice,
    project_id: str,
    status: str = PAID_INVOICE_STATUS,
) -> bool:
    return (
        invoice.status == status
        and invoice.is_active is not False
        and invoice.project_id == project_id
    )


# =========================================================================
# Ledger
# =========================================================================


@dataclass
class AllocationTarget:
    """
    Mutable per-cost-code accumulator.

    Contract:
        Created with zeros on first contribution and mutated additively.
    """

    budgeted: Decimal = ZERO
    purchase_order: Decimal = ZERO
    change_order: Decimal = ZERO
    paid: Decimal = ZERO

    def add(self, bucket: AllocationBucket, amount: Decimal) -> None:
        current = getattr(self, bucket.value)
        setattr(self, bucket.value, add_amounts(current, amount))

    def absorb(self, other: AllocationTarget) -> None:
        self.budgeted = add_amounts(self.budgeted, other.budgeted)
        self.purchase_order = add_amounts(self.purchase_order, other.purchase_order)
        self.change_order = add_amounts(self.change_order, other.change_order)
        self.paid = add_amounts(self.paid, other.paid)

    def copy(self) -> AllocationTarget:
        return AllocationTarget(
            budgeted=self.budgeted,
            purchase_order=self.purchase_order,
            change_order=self.change_order,
            paid=self.paid,
        )

    def has_activity(self) -> bool:
        return (
            self.budgeted > ZERO
            or self.purchase_order > ZERO
            or self.change_order > ZERO
            or self.paid > ZERO
        )


@dataclass
class CostCodeLedger:
    """
    Report-scoped map ``cost_code_id -> AllocationTarget``.

    Contract:
        ``apply`` and ``merge`` are the only mutators.  ``get`` never creates
        entries and returns a zero target for unknown ids.  ``snapshot``
        returns independent copies, so callers cannot mutate the ledger.
    """

    _targets: dict[str, AllocationTarget] = field(default_factory=dict)

    def apply(self, contributions: Iterable[CostCodeContribution]) -> None:
        for contribution in contributions:
            target = self._targets.get(contribution.cost_code_id)
            if target is None:
                target = AllocationTarget()
                self._targets[contribution.cost_code_id] = target
            target.add(contribution.bucket, contribution.amount)

    def merge(self, other: CostCodeLedger) -> None:
        for cost_code_id, other_target in other._targets.items():
            target = self._targets.get(cost_code_id)
            if target is None:
                self._targets[cost_code_id] = other_target.copy()
            else:
                target.absorb(other_target)

    def get(self, cost_code_id: str) -> AllocationTarget:
        target = self._targets.get(cost_code_id)
        return target.copy() if target is not None else AllocationTarget()

    def snapshot(self) -> dict[str, AllocationTarget]:
        return {key: target.copy() for key, target in self._targets.items()}

    def __contains__(self, cost_code_id: object) -> bool:
        return cost_code_id in self._targets

    def __len__(self) -> int:
        return len(self._targets)


# =========================================================================
# Aggregation pass
# =========================================================================


@traced_engine("aggregation", "1.0", fingerprint_fields=("project_id",))
def aggregate_cost_codes(
    project_id: str,
    estimates: Iterable[Estimate] = (),
    commitments: Iterable[CommitmentDocument] = (),
    invoices: Iterable[PaidInvoice] = (),
    project_contingency_percent: Decimal = ZERO,
    commitment_statuses: Collection[str] = COMMITTED_STATUSES,
    estimate_status: str = APPROVED_ESTIMATE_STATUS,
    invoice_status: str = PAID_INVOICE_STATUS,
) -> CostCodeLedger:
    """
    Single serial accumulation pass over already-fetched documents.

    Non-qualifying documents are ignored.  Returns a fresh ledger.
    """
    ledger = CostCodeLedger()
    counts = {"estimates": 0, "commitments": 0, "invoices": 0}

    for estimate in estimates:
        if estimate_qualifies(estimate, project_id, estimate_status):
            ledger.apply(budget_estimate(estimate, project_contingency_percent))
            counts["estimates"] += 1

    for document in commitments:
        if commitment_qualifies(document, project_id, commitment_statuses):
            ledger.apply(allocate_commitment(document))
            counts["commitments"] += 1

    for invoice in invoices:
        if invoice_qualifies(invoice, project_id, invoice_status):
            ledger.apply(allocate_invoice(invoice))
            counts["invoices"] += 1

    logger.info("cost_codes_aggregated", extra={
        "project_id": project_id,
        "qualifying_estimates": counts["estimates"],
        "qualifying_commitments": counts["commitments"],
        "qualifying_invoices": counts["invoices"],
        "cost_code_count": len(ledger),
    })
    return ledger
