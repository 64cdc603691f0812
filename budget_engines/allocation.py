"""
Module: budget_engines.allocation
Responsibility:
    Cost Allocator.  Turn one source document into the per-cost-code amounts
    it contributes to the budget report:

    * purchase/change orders distribute ``charges_total + tax_total`` across
      cost codes proportionally to each cost code's share of the item
      subtotal, on top of the item amounts themselves;
    * paid invoices distribute their full ``amount`` (charges and taxes
      already included) proportionally to the item subtotal;
    * estimates are never proportional: each line budgets its base amount
      plus contingency.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import budget_kernel.domain and budget_kernel.logging_config.

Invariants enforced:
    - Lines without a cost-code reference are excluded from both the
      numerator and the item subtotal; their share of charges and taxes is
      not attributed to any cost code.
    - A document's lines are accumulated into one map per cost code before
      distribution, so several lines on the same cost code share one
      proportional split.
    - No distribution when the item subtotal is not positive.
    - Decimal only; sums are exact (see ``budget_kernel.domain.amounts``).

Failure modes:
    - None.  Inputs are already normalized DTOs; malformed amounts were
      coerced to zero at the boundary.

Usage:
    from budget_engines.allocation import allocate_commitment

    contributions = allocate_commitment(purchase_order)
    for c in contributions:
        print(c.cost_code_id, c.bucket, c.amount)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from budget_engines.tracer import traced_engine
from budget_kernel.domain.amounts import (
    ZERO,
    add_amounts,
    percent_of,
    proportional_share,
)
from budget_kernel.domain.documents import (
    CommitmentDocument,
    CommitmentKind,
    Estimate,
    EstimateLine,
    PaidInvoice,
)
from budget_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


class AllocationBucket(str, Enum):
    """Which AllocationTarget field a contribution lands in."""

    BUDGETED = "budgeted"
    PURCHASE_ORDER = "purchase_order"
    CHANGE_ORDER = "change_order"
    PAID = "paid"


_COMMITMENT_BUCKETS: dict[CommitmentKind, AllocationBucket] = {
    CommitmentKind.PURCHASE_ORDER: AllocationBucket.PURCHASE_ORDER,
    CommitmentKind.CHANGE_ORDER: AllocationBucket.CHANGE_ORDER,
}


@dataclass(frozen=True)
class CostCodeContribution:
    """
    One allocated amount for one cost code from one document.

    Contract:
        Frozen dataclass; ``source_id`` is the id of the document that
        produced the amount (estimate, purchase order, change order or
        invoice).
    """

    cost_code_id: str
    bucket: AllocationBucket
    amount: Decimal
    source_id: str


def _amounts_by_cost_code(
    lines: Iterable,
) -> tuple[dict[str, Decimal], Decimal]:
    """Per-cost-code item amounts and the item subtotal, in line order."""
    per_code: dict[str, Decimal] = {}
    subtotal = ZERO
    for line in lines:
        if not line.cost_code_id:
            continue
        per_code[line.cost_code_id] = add_amounts(
            per_code.get(line.cost_code_id, ZERO), line.amount,
        )
        subtotal = add_amounts(subtotal, line.amount)
    return per_code, subtotal


@traced_engine("allocation", "1.0", fingerprint_fields=("document",))
def allocate_commitment(
    document: CommitmentDocument,
) -> tuple[CostCodeContribution, ...]:
    """
    Distribute a purchase or change order across its cost codes.

    Each cost code receives its item amount plus
    ``item_amount / subtotal * (charges_total + tax_total)``.

    Items A=60 and B=40 with tax_total=10 give A=66 and B=44.
    """
    bucket = _COMMITMENT_BUCKETS[document.kind]
    per_code, subtotal = _amounts_by_cost_code(document.lines)
    charges_and_taxes = add_amounts(document.charges_total, document.tax_total)

    contributions = tuple(
        CostCodeContribution(
            cost_code_id=cost_code_id,
            bucket=bucket,
            amount=add_amounts(
                item_amount,
                proportional_share(item_amount, subtotal, charges_and_taxes),
            ),
            source_id=document.document_id,
        )
        for cost_code_id, item_amount in per_code.items()
    )

    if charges_and_taxes and subtotal <= ZERO:
        logger.debug("allocation_charges_not_distributed", extra={
            "document_id": document.document_id,
            "document_kind": document.kind.value,
            "charges_and_taxes": str(charges_and_taxes),
        })
    return contributions


@traced_engine("allocation", "1.0", fingerprint_fields=("invoice",))
def allocate_invoice(invoice: PaidInvoice) -> tuple[CostCodeContribution, ...]:
    """
    Distribute a paid invoice's full amount across its cost codes.

    Produces nothing unless both the item subtotal and the invoice amount
    are positive; each cost code then receives
    ``item_amount / subtotal * amount``.
    """
    per_code, subtotal = _amounts_by_cost_code(invoice.lines)
    if subtotal <= ZERO or invoice.amount <= ZERO:
        if invoice.amount > ZERO:
            logger.debug("allocation_invoice_not_distributed", extra={
                "invoice_id": invoice.invoice_id,
                "invoice_amount": str(invoice.amount),
                "item_subtotal": str(subtotal),
            })
        return ()

    return tuple(
        CostCodeContribution(
            cost_code_id=cost_code_id,
            bucket=AllocationBucket.PAID,
            amount=proportional_share(item_amount, subtotal, invoice.amount),
            source_id=invoice.invoice_id,
        )
        for cost_code_id, item_amount in per_code.items()
    )


def estimate_line_budget(
    line: EstimateLine,
    project_contingency_percent: Decimal,
) -> Decimal:
    """
    Budgeted amount of one estimate line: base plus contingency.

    Contingency is zero unless enabled; a stored positive contingency amount
    wins, otherwise ``base * percent / 100`` using the line's percentage or,
    when the line has none, the project's.
    """
    if not line.contingency_enabled:
        return line.base_amount
    if line.contingency_amount > ZERO:
        return add_amounts(line.base_amount, line.contingency_amount)
    percent = line.contingency_percent
    if percent is None:
        percent = project_contingency_percent
    return add_amounts(line.base_amount, percent_of(line.base_amount, percent))


@traced_engine(
    "allocation", "1.0",
    fingerprint_fields=("estimate", "project_contingency_percent"),
)
def budget_estimate(
    estimate: Estimate,
    project_contingency_percent: Decimal = ZERO,
) -> tuple[CostCodeContribution, ...]:
    """Budgeted contributions of an estimate, one per line with a cost code."""
    return tuple(
        CostCodeContribution(
            cost_code_id=line.cost_code_id,
            bucket=AllocationBucket.BUDGETED,
            amount=estimate_line_budget(line, project_contingency_percent),
            source_id=estimate.estimate_id,
        )
        for line in estimate.lines
        if line.cost_code_id
    )
