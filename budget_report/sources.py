"""
Source collaborator protocol and boundary normalization.

Contract:
    ``BudgetSource`` is the read-only interface the report needs from the
    outside world.  Every method returns raw, duck-typed records (mappings
    whose numeric fields may be numbers, numeric strings, blanks or absent
    and whose flags may be booleans or "TRUE"/"false" strings).

    The ``normalize_*`` functions turn those records into the frozen DTOs of
    ``budget_kernel.domain.documents`` so that the engines only ever see
    ``Decimal`` amounts and ``bool``/``None`` flags.

Architecture: budget_report.  ``budget_kernel.selectors.BudgetSourceSelector``
is the SQLAlchemy implementation; tests use in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from budget_kernel.domain.amounts import ZERO, multiply_amounts
from budget_kernel.domain.coercion import (
    to_bool,
    to_decimal,
    to_int,
    to_optional_bool,
    to_optional_decimal,
    to_text,
)
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

Record = Mapping[str, Any]

COMMITMENT_TYPE_FIELDS: dict[CommitmentKind, str] = {
    CommitmentKind.PURCHASE_ORDER: "po_type",
    CommitmentKind.CHANGE_ORDER: "co_type",
}

ESTIMATE_LINES_FIELD = "line_items"


@runtime_checkable
class BudgetSource(Protocol):
    """Read access to the source collections of one corporation."""

    def get_divisions(self, corporation_id: str) -> list[Record]:
        ...

    def get_cost_code_configurations(self, corporation_id: str) -> list[Record]:
        ...

    def get_project(self, project_id: str) -> Record | None:
        """Project header, or None when the project does not exist."""
        ...

    def get_estimates(self, project_id: str) -> list[Record]:
        ...

    def get_estimate_line_items(self, estimate_id: str) -> list[Record]:
        ...

    def get_purchase_orders(self, project_id: str) -> list[Record]:
        ...

    def get_purchase_order_items(
        self, purchase_order_id: str, commitment_type: str,
    ) -> list[Record]:
        """Material or labor items of one purchase order."""
        ...

    def get_change_orders(self, project_id: str) -> list[Record]:
        ...

    def get_change_order_items(
        self, change_order_id: str, commitment_type: str,
    ) -> list[Record]:
        """Material or labor items of one change order."""
        ...

    def get_vendor_invoices(self, corporation_id: str) -> list[Record]:
        """Invoice headers of the whole corporation."""
        ...

    def get_vendor_invoice(self, invoice_id: str) -> Record | None:
        """Invoice header plus its item collections."""
        ...


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _optional_id(value: Any) -> str | None:
    return to_text(value) or None


def _is_active_line(item: Record) -> bool:
    return to_optional_bool(item.get("is_active")) is not False


def embedded_collection(record: Record, collection: str) -> list[Record]:
    """A record's embedded item list, or [] when absent or not a list."""
    items = record.get(collection)
    if isinstance(items, (list, tuple)):
        return list(items)
    return []


def line_amount(item: Record, fields: LineFieldMap) -> Decimal:
    """
    ``total ?? unit_price * quantity``, missing numbers as zero.

    An explicit total of zero is kept as zero.
    """
    explicit = to_optional_decimal(item.get(fields.total_field))
    if explicit is not None:
        return explicit
    if fields.unit_price_field is None or fields.quantity_field is None:
        return ZERO
    return multiply_amounts(
        to_decimal(item.get(fields.unit_price_field)),
        to_decimal(item.get(fields.quantity_field)),
    )


# ---------------------------------------------------------------------------
# Cost-code tree and project
# ---------------------------------------------------------------------------


def normalize_division(record: Record) -> Division:
    return Division(
        division_id=to_text(record.get("uuid")),
        number=to_text(record.get("division_number")),
        name=to_text(record.get("division_name")),
        order=to_int(record.get("division_order")),
        exclude_from_reports=to_bool(record.get("exclude_in_estimates_and_reports")),
        is_active=to_bool(record.get("is_active"), default=True),
    )


def normalize_cost_code(record: Record) -> CostCodeNode:
    return CostCodeNode(
        cost_code_id=to_text(record.get("uuid")),
        number=to_text(record.get("cost_code_number")),
        name=to_text(record.get("cost_code_name")),
        division_id=to_text(record.get("division_uuid")),
        order=to_int(record.get("order")),
        parent_id=_optional_id(record.get("parent_cost_code_uuid")),
        is_active=to_bool(record.get("is_active"), default=True),
    )


def normalize_project(record: Record) -> ProjectInfo:
    """Project header; negative contingency percentages clamp to zero."""
    contingency = to_decimal(record.get("contingency_percentage"))
    return ProjectInfo(
        project_id=to_text(record.get("uuid")),
        name=to_text(record.get("project_name")),
        external_id=to_text(record.get("project_id")),
        number_of_rooms=to_int(record.get("no_of_rooms")),
        contingency_percent=max(contingency, ZERO),
    )


# ---------------------------------------------------------------------------
# Estimates
# ---------------------------------------------------------------------------


def normalize_estimate_line(item: Record) -> EstimateLine:
    return EstimateLine(
        cost_code_id=_optional_id(item.get("cost_code_uuid")),
        base_amount=to_decimal(item.get("total_amount")),
        contingency_enabled=to_bool(item.get("contingency_enabled")),
        contingency_amount=to_decimal(item.get("contingency_amount")),
        contingency_percent=to_optional_decimal(item.get("contingency_percentage")),
    )


def normalize_estimate(
    record: Record,
    line_items: Iterable[Record] | None = None,
) -> Estimate:
    """
    Estimate with its lines.  ``line_items`` None means "use the lines
    embedded in the record".
    """
    if line_items is None:
        line_items = embedded_collection(record, ESTIMATE_LINES_FIELD)
    return Estimate(
        estimate_id=to_text(record.get("uuid")),
        project_id=to_text(record.get("project_uuid")),
        status=to_text(record.get("status")),
        is_active=to_optional_bool(record.get("is_active")),
        lines=tuple(normalize_estimate_line(item) for item in line_items),
    )


# ---------------------------------------------------------------------------
# Commitments
# ---------------------------------------------------------------------------


def commitment_type_of(
    record: Record,
    kind: CommitmentKind,
    default: CommitmentType = CommitmentType.MATERIAL,
) -> CommitmentType | None:
    """
    The document's MATERIAL/LABOR type; None when it is unrecognised.

    Only purchase orders fall back to ``default``; a change order that states
    no type is unrecognised.
    """
    raw = record.get(COMMITMENT_TYPE_FIELDS[kind])
    fallback = default if kind is CommitmentKind.PURCHASE_ORDER else None
    return CommitmentType.parse(None if raw is None else str(raw), fallback)


def commitment_line_variants(
    commitment_type: CommitmentType,
) -> tuple[CommitmentType, ...]:
    """
    Item collections a document of ``commitment_type`` reads.

    The type selects exactly one collection: material documents read their
    material items, labor documents their labor items.
    """
    return (commitment_type,)


def normalize_commitment_lines(
    kind: CommitmentKind,
    variant: CommitmentType,
    items: Iterable[Record],
) -> tuple[CommitmentLine, ...]:
    """Active items of one variant, as cost-code/amount lines."""
    fields = COMMITMENT_LINE_FIELDS[(kind, variant)]
    return tuple(
        CommitmentLine(
            cost_code_id=_optional_id(item.get("cost_code_uuid")),
            amount=line_amount(item, fields),
        )
        for item in items
        if _is_active_line(item)
    )


def normalize_commitment(
    record: Record,
    kind: CommitmentKind,
    commitment_type: CommitmentType,
    items_by_variant: Mapping[CommitmentType, Iterable[Record]] | None = None,
) -> CommitmentDocument:
    """
    Purchase or change order with the item lines of its type.

    ``items_by_variant`` None (or a missing variant) means "use the items
    embedded in the record".
    """
    items_by_variant = items_by_variant or {}
    lines: list[CommitmentLine] = []
    for variant in commitment_line_variants(commitment_type):
        items = items_by_variant.get(variant)
        if items is None:
            collection = COMMITMENT_LINE_FIELDS[(kind, variant)].collection
            items = embedded_collection(record, collection)
        lines.extend(normalize_commitment_lines(kind, variant, items))

    return CommitmentDocument(
        document_id=to_text(record.get("uuid")),
        kind=kind,
        commitment_type=commitment_type,
        project_id=to_text(record.get("project_uuid")),
        status=to_text(record.get("status")),
        is_active=to_optional_bool(record.get("is_active")),
        charges_total=to_decimal(record.get("charges_total")),
        tax_total=to_decimal(record.get("tax_total")),
        lines=tuple(lines),
    )


# ---------------------------------------------------------------------------
# Vendor invoices
# ---------------------------------------------------------------------------


def normalize_invoice(record: Record) -> PaidInvoice:
    """
    Invoice with the lines of the collection its ``invoice_type`` selects.

    A missing or unknown type yields ``invoice_type=None`` and no lines.
    """
    raw_type = record.get("invoice_type")
    invoice_type = InvoiceType.parse(None if raw_type is None else str(raw_type))
    lines: tuple[InvoiceLine, ...] = ()
    if invoice_type is not None:
        fields = INVOICE_LINE_FIELDS[invoice_type]
        lines = tuple(
            InvoiceLine(
                cost_code_id=_optional_id(item.get("cost_code_uuid")),
                amount=line_amount(item, fields),
            )
            for item in embedded_collection(record, fields.collection)
            if _is_active_line(item)
        )
    return PaidInvoice(
        invoice_id=to_text(record.get("uuid")),
        project_id=to_text(record.get("project_uuid")),
        invoice_type=invoice_type,
        status=to_text(record.get("status")),
        is_active=to_optional_bool(record.get("is_active")),
        amount=to_decimal(record.get("amount")),
        lines=lines,
    )
