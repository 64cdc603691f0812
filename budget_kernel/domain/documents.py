"""
Source document DTOs for the budget report engines.

Responsibility:
    Frozen dataclass value objects for the five source collections (divisions,
    cost-code configurations, estimates, purchase/change orders, paid vendor
    invoices) plus the project header, in the clean shape the pure engines
    consume.  Raw records are converted into these types by the boundary
    normalizers in ``budget_report.sources``.

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.  Imported by
    ``budget_engines`` and ``budget_report``; never by the ORM layer.

Invariants enforced:
    * All models are ``frozen=True``.
    * All monetary fields use ``Decimal`` -- NEVER ``float``.
    * Document type discriminants are closed enums; each variant owns one
      ``LineFieldMap`` describing where its line items live and which fields
      carry the amount.
    * ``is_active`` on documents is tri-state: ``True``, ``False`` or ``None``
      (not stated).  Qualification rules decide how ``None`` is treated.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


# =========================================================================
# Discriminants
# =========================================================================


class CommitmentKind(str, Enum):
    """Which commitment collection a document belongs to."""

    PURCHASE_ORDER = "purchase_order"
    CHANGE_ORDER = "change_order"


class CommitmentType(str, Enum):
    """Material vs labor split of a purchase or change order."""

    MATERIAL = "MATERIAL"
    LABOR = "LABOR"

    @classmethod
    def parse(cls, raw: str | None, default: "CommitmentType | None") -> "CommitmentType | None":
        """Case-insensitive parse; blank means ``default``, unknown means None."""
        text = (raw or "").strip().upper()
        if not text:
            return default
        try:
            return cls(text)
        except ValueError:
            return None


class InvoiceType(str, Enum):
    """Vendor invoice variants; each reads a different item collection."""

    AGAINST_PO = "AGAINST_PO"
    AGAINST_CO = "AGAINST_CO"
    AGAINST_ADVANCE_PAYMENT = "AGAINST_ADVANCE_PAYMENT"
    ENTER_DIRECT_INVOICE = "ENTER_DIRECT_INVOICE"

    @classmethod
    def parse(cls, raw: str | None) -> "InvoiceType | None":
        text = (raw or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            return None


# =========================================================================
# Line field mappings (one per variant)
# =========================================================================


@dataclass(frozen=True)
class LineFieldMap:
    """
    Where a variant's line items live and how their amount is read.

    ``amount = total_field ?? (unit_price_field * quantity_field)``; variants
    without a unit-price pair read ``total_field`` only.
    """

    collection: str
    total_field: str
    unit_price_field: str | None = None
    quantity_field: str | None = None


COMMITMENT_LINE_FIELDS: dict[tuple[CommitmentKind, CommitmentType], LineFieldMap] = {
    (CommitmentKind.PURCHASE_ORDER, CommitmentType.MATERIAL): LineFieldMap(
        "po_items", "po_total", "po_unit_price", "po_quantity",
    ),
    (CommitmentKind.PURCHASE_ORDER, CommitmentType.LABOR): LineFieldMap(
        "labor_po_items", "po_amount",
    ),
    (CommitmentKind.CHANGE_ORDER, CommitmentType.MATERIAL): LineFieldMap(
        "co_items", "co_total", "co_unit_price", "co_quantity",
    ),
    (CommitmentKind.CHANGE_ORDER, CommitmentType.LABOR): LineFieldMap(
        "labor_co_items", "co_amount",
    ),
}

INVOICE_LINE_FIELDS: dict[InvoiceType, LineFieldMap] = {
    InvoiceType.AGAINST_PO: LineFieldMap(
        "po_invoice_items", "invoice_total", "invoice_unit_price", "invoice_quantity",
    ),
    InvoiceType.AGAINST_CO: LineFieldMap(
        "co_invoice_items", "invoice_total", "invoice_unit_price", "invoice_quantity",
    ),
    InvoiceType.AGAINST_ADVANCE_PAYMENT: LineFieldMap(
        "advance_payment_cost_codes", "advance_amount",
    ),
    InvoiceType.ENTER_DIRECT_INVOICE: LineFieldMap(
        "line_items", "total", "unit_price", "quantity",
    ),
}


# =========================================================================
# Cost-code tree
# =========================================================================


@dataclass(frozen=True)
class Division:
    """Top-level grouping of cost codes within a corporation."""

    division_id: str
    number: str
    name: str
    order: int = 0
    exclude_from_reports: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class CostCodeNode:
    """One node of the cost-code tree; ``parent_id`` None means top-level."""

    cost_code_id: str
    number: str
    name: str
    division_id: str
    order: int = 0
    parent_id: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class ProjectInfo:
    """Project header fields used by the report."""

    project_id: str
    name: str = ""
    external_id: str = ""
    number_of_rooms: int = 0
    contingency_percent: Decimal = Decimal("0")


# =========================================================================
# Estimates (budgeted amounts)
# =========================================================================


@dataclass(frozen=True)
class EstimateLine:
    """
    One estimate line item.

    ``contingency_percent`` None means "use the project's percentage".
    """

    cost_code_id: str | None
    base_amount: Decimal
    contingency_enabled: bool = False
    contingency_amount: Decimal = Decimal("0")
    contingency_percent: Decimal | None = None


@dataclass(frozen=True)
class Estimate:
    estimate_id: str
    project_id: str
    status: str
    is_active: bool | None
    lines: tuple[EstimateLine, ...] = ()


# =========================================================================
# Commitments (purchase orders, change orders)
# =========================================================================


@dataclass(frozen=True)
class CommitmentLine:
    """A normalized line: cost code reference and its item amount."""

    cost_code_id: str | None
    amount: Decimal


@dataclass(frozen=True)
class CommitmentDocument:
    document_id: str
    kind: CommitmentKind
    commitment_type: CommitmentType
    project_id: str
    status: str
    is_active: bool | None
    charges_total: Decimal = Decimal("0")
    tax_total: Decimal = Decimal("0")
    lines: tuple[CommitmentLine, ...] = ()


# =========================================================================
# Paid vendor invoices
# =========================================================================


@dataclass(frozen=True)
class InvoiceLine:
    cost_code_id: str | None
    amount: Decimal


@dataclass(frozen=True)
class PaidInvoice:
    """
    A vendor invoice with its type-discriminated items flattened to lines.

    ``amount`` is the full invoice total, charges and taxes included.
    ``invoice_type`` None means the type was missing or unknown; such an
    invoice carries no lines.
    """

    invoice_id: str
    project_id: str
    invoice_type: InvoiceType | None
    status: str
    is_active: bool | None
    amount: Decimal
    lines: tuple[InvoiceLine, ...] = ()
