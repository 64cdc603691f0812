"""
Module: budget_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines of the
    budget-vs-actual report: the Cost Allocator, the Cost Code Aggregator
    and the Hierarchy Builder.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import budget_kernel.domain (and sibling engine modules).
    MUST NOT import budget_kernel.models, budget_kernel.selectors or
    budget_report.

Invariants enforced:
    - Purity: engines never read the clock or any source collection.
    - Decimal-only arithmetic; floats are forbidden.
    - Determinism: identical inputs always produce identical outputs,
      independent of document processing order.

Usage:
    from budget_engines.aggregation import aggregate_cost_codes
    from budget_engines.hierarchy import CostCodeIndex, build_division_rollups
"""

from budget_engines.aggregation import (
    COMMITTED_STATUSES,
    AllocationTarget,
    CostCodeLedger,
    aggregate_cost_codes,
    commitment_qualifies,
    estimate_qualifies,
    invoice_qualifies,
)
from budget_engines.allocation import (
    AllocationBucket,
    CostCodeContribution,
    allocate_commitment,
    allocate_invoice,
    budget_estimate,
    estimate_line_budget,
)
from budget_engines.hierarchy import (
    CostCodeIndex,
    CostCodeRollup,
    DivisionRollup,
    build_division_rollups,
    build_subtree,
    cost_per_room,
)
from budget_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Allocation
    "AllocationBucket",
    "CostCodeContribution",
    "allocate_commitment",
    "allocate_invoice",
    "budget_estimate",
    "estimate_line_budget",
    # Aggregation
    "COMMITTED_STATUSES",
    "AllocationTarget",
    "CostCodeLedger",
    "aggregate_cost_codes",
    "commitment_qualifies",
    "estimate_qualifies",
    "invoice_qualifies",
    # Hierarchy
    "CostCodeIndex",
    "CostCodeRollup",
    "DivisionRollup",
    "build_division_rollups",
    "build_subtree",
    "cost_per_room",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
