#!/usr/bin/env python3
"""
Demo: Budget-vs-Actual Report Viewer.

Seeds a small construction project (divisions, a three-level cost-code
tree, an approved estimate, material and labor purchase orders, a change
order and paid vendor invoices) into a database and prints its budget
report to stdout.

Usage:
    python3 scripts/demo_budget_report.py
    python3 scripts/demo_budget_report.py --json
    python3 scripts/demo_budget_report.py --db-url sqlite:///demo.db --config report.yaml
"""

import argparse
import json
import sys
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from budget_kernel.db.engine import (  # noqa: E402
    create_tables,
    init_engine_from_url,
    session_scope,
)
from budget_kernel.models import (  # noqa: E402
    AdvancePaymentCostCodeModel,
    ChangeOrderItemModel,
    ChangeOrderModel,
    CostCodeConfigurationModel,
    CostCodeDivisionModel,
    DirectInvoiceLineItemModel,
    EstimateLineItemModel,
    EstimateModel,
    LaborPurchaseOrderItemModel,
    ProjectModel,
    PurchaseOrderInvoiceItemModel,
    PurchaseOrderItemModel,
    PurchaseOrderModel,
    VendorInvoiceModel,
)
from budget_report import (  # noqa: E402
    BudgetReportConfig,
    BudgetReportService,
    RowLevel,
    flatten_report,
    render_to_dict,
)

CORPORATION = "corp-demo"

W = 110
AMT_W = 14


# ===================================================================
# Seed data
# ===================================================================


def seed(session) -> str:
    """Insert the demo project; returns its id."""
    project = ProjectModel(
        id=uuid4(), corporation_id=CORPORATION, project_name="Harbor View Hotel",
        project_code="HVH-2024", no_of_rooms=120, contingency_percentage=Decimal("5"),
    )
    session.add(project)

    sitework = CostCodeDivisionModel(
        id=uuid4(), corporation_id=CORPORATION, division_number="02",
        division_name="Sitework", division_order=2,
    )
    finishes = CostCodeDivisionModel(
        id=uuid4(), corporation_id=CORPORATION, division_number="09",
        division_name="Finishes", division_order=9,
    )
    general = CostCodeDivisionModel(
        id=uuid4(), corporation_id=CORPORATION, division_number="01",
        division_name="General Requirements", division_order=1,
    )
    session.add_all([sitework, finishes, general])
    session.flush()

    def code(division, number, name, order, parent=None):
        node = CostCodeConfigurationModel(
            id=uuid4(), corporation_id=CORPORATION, division_id=division.id,
            parent_cost_code_id=parent.id if parent else None,
            cost_code_number=number, cost_code_name=name, display_order=order,
        )
        session.add(node)
        session.flush()
        return node

    excavation = code(sitework, "02-100", "Excavation", 1)
    trenching = code(sitework, "02-110", "Trenching", 1, excavation)
    paving = code(sitework, "02-500", "Paving", 2)
    flooring = code(finishes, "09-600", "Flooring", 1)
    carpet = code(finishes, "09-680", "Carpet", 1, flooring)
    guest_carpet = code(finishes, "09-681", "Guest Room Carpet", 1, carpet)
    code(general, "01-100", "Supervision", 1)

    estimate = EstimateModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        status="Approved", is_active=True,
    )
    session.add(estimate)
    session.flush()
    session.add_all([
        EstimateLineItemModel(
            estimate_id=estimate.id, cost_code_id=trenching.id,
            total_amount=Decimal("40000"), contingency_enabled=True,
            contingency_percentage=Decimal("10"),
        ),
        EstimateLineItemModel(
            estimate_id=estimate.id, cost_code_id=paving.id,
            total_amount=Decimal("25000"), contingency_enabled=True,
        ),
        EstimateLineItemModel(
            estimate_id=estimate.id, cost_code_id=guest_carpet.id,
            total_amount=Decimal("180000"), contingency_enabled=True,
            contingency_amount=Decimal("9000"),
        ),
    ])

    material_po = PurchaseOrderModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        po_type="MATERIAL", status="Approved",
        charges_total=Decimal("500"), tax_total=Decimal("1500"),
    )
    labor_po = PurchaseOrderModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        po_type="LABOR", status="Partially_Received",
    )
    draft_po = PurchaseOrderModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        po_type="MATERIAL", status="Draft",
    )
    session.add_all([material_po, labor_po, draft_po])
    session.flush()
    session.add_all([
        PurchaseOrderItemModel(
            purchase_order_id=material_po.id, cost_code_id=guest_carpet.id,
            po_unit_price=Decimal("45"), po_quantity=Decimal("3600"),
        ),
        PurchaseOrderItemModel(
            purchase_order_id=material_po.id, cost_code_id=paving.id,
            po_total=Decimal("18000"),
        ),
        LaborPurchaseOrderItemModel(
            purchase_order_id=labor_po.id, cost_code_id=trenching.id,
            po_amount=Decimal("22000"),
        ),
        LaborPurchaseOrderItemModel(
            purchase_order_id=labor_po.id, cost_code_id=trenching.id,
            po_amount=Decimal("5000"), is_active=False,
        ),
        PurchaseOrderItemModel(
            purchase_order_id=draft_po.id, cost_code_id=paving.id,
            po_total=Decimal("99999"),
        ),
    ])

    change_order = ChangeOrderModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        co_type="MATERIAL", status="Completed", tax_total=Decimal("120"),
    )
    session.add(change_order)
    session.flush()
    session.add(ChangeOrderItemModel(
        change_order_id=change_order.id, cost_code_id=guest_carpet.id,
        co_unit_price=Decimal("48"), co_quantity=Decimal("50"),
    ))

    po_invoice = VendorInvoiceModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        invoice_type="AGAINST_PO", status="Paid", amount=Decimal("84000"),
    )
    advance = VendorInvoiceModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        invoice_type="AGAINST_ADVANCE_PAYMENT", status="Paid", amount=Decimal("10000"),
    )
    direct = VendorInvoiceModel(
        id=uuid4(), corporation_id=CORPORATION, project_id=project.id,
        invoice_type="ENTER_DIRECT_INVOICE", status="Pending", amount=Decimal("700"),
    )
    session.add_all([po_invoice, advance, direct])
    session.flush()
    session.add_all([
        PurchaseOrderInvoiceItemModel(
            vendor_invoice_id=po_invoice.id, cost_code_id=guest_carpet.id,
            invoice_total=Decimal("81000"),
        ),
        AdvancePaymentCostCodeModel(
            vendor_invoice_id=advance.id, cost_code_id=trenching.id,
            advance_amount=Decimal("10000"),
        ),
        DirectInvoiceLineItemModel(
            vendor_invoice_id=direct.id, cost_code_id=paving.id,
            total=Decimal("700"),
        ),
    ])
    session.flush()
    return str(project.id)


# ===================================================================
# Pretty-print helpers
# ===================================================================


def _fmt(v) -> str:
    """Format a Decimal as $1,234.56."""
    d = Decimal(str(v))
    formatted = f"${abs(d):,.2f}"
    return f"({formatted})" if d < 0 else f" {formatted} "


_INDENT = {
    RowLevel.DIVISION: 0,
    RowLevel.COST_CODE: 1,
    RowLevel.SUB_COST_CODE: 2,
    RowLevel.SUB_SUB_COST_CODE: 3,
    RowLevel.TOTAL: 0,
}


def print_report(report, max_depth: int) -> None:
    columns = ("Budgeted", "Purchase Ord", "Change Ord", "Total", "Paid", "Remaining")
    label_w = W - AMT_W * len(columns)
    print()
    print("=" * W)
    print(f"BUDGET REPORT  {report.project.name} ({report.project.external_id})".center(W))
    print(f"{report.project.number_of_rooms} rooms  -  generated {report.metadata.generated_at}".center(W))
    print("=" * W)
    print(f"{'Cost code':<{label_w}}" + "".join(f"{c:>{AMT_W}}" for c in columns))
    print("-" * W)
    for row in flatten_report(report, max_depth):
        if row.is_total:
            print("-" * W)
        label = "  " * _INDENT[row.level] + f"{row.number} {row.name}".strip()
        amounts = (
            row.budgeted_amount, row.purchase_order_amount, row.change_order_amount,
            row.total_amount, row.paid_amount, row.budget_remaining,
        )
        print(f"{label[:label_w - 1]:<{label_w}}" + "".join(f"{_fmt(a):>{AMT_W}}" for a in amounts))
    print()
    print(f"  Cost per room: {_fmt(report.summary.cost_per_room)}")
    if report.skipped:
        print()
        print("  Skipped sources:")
        for entry in report.skipped:
            print(f"    {entry.source_kind.value} {entry.source_id}: {entry.reason.value} {entry.detail}")
    print()


# ===================================================================
# Main
# ===================================================================


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Print a demo budget-vs-actual report")
    parser.add_argument("--db-url", default="sqlite:///:memory:", help="database URL")
    parser.add_argument("--config", type=Path, help="YAML report configuration")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    args = parser.parse_args(argv)

    config = (
        BudgetReportConfig.from_yaml(args.config) if args.config
        else BudgetReportConfig.with_defaults()
    )

    init_engine_from_url(args.db_url)
    create_tables()
    with session_scope() as session:
        project_id = seed(session)
        service = BudgetReportService.from_session(session, config=config)
        report = service.generate_report(CORPORATION, project_id)

        if args.json:
            print(json.dumps(render_to_dict(report), indent=2))
        else:
            print_report(report, config.max_display_depth)
        session.rollback()
    return 0


if __name__ == "__main__":
    sys.exit(main())
