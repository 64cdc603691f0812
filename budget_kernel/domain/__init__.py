"""
Pure domain layer of the budget kernel: source document DTOs, value
coercion and the injectable clock.  ZERO I/O.
"""

from budget_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from budget_kernel.domain.documents import (
    COMMITMENT_LINE_FIELDS,
    INVOICE_LINE_FIELDS,
    CommitmentDocument,
    CommitmentKind,
    CommitmentLine,
    CommitmentType,
    CostCodeNode,
    Division,
    Estimate,
    EstimateLine,
    InvoiceLine,
    InvoiceType,
    LineFieldMap,
    PaidInvoice,
    ProjectInfo,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "COMMITMENT_LINE_FIELDS",
    "INVOICE_LINE_FIELDS",
    "CommitmentDocument",
    "CommitmentKind",
    "CommitmentLine",
    "CommitmentType",
    "CostCodeNode",
    "Division",
    "Estimate",
    "EstimateLine",
    "InvoiceLine",
    "InvoiceType",
    "LineFieldMap",
    "PaidInvoice",
    "ProjectInfo",
]
