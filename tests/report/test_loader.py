"""
Tests for SourceLoader.

Verifies embedded vs fetched item collections, type-driven item selection,
the skipped-source manifest and that the fan-out worker count never
changes the snapshot.
NO database required.
"""

from decimal import Decimal

import pytest

from budget_kernel.domain.documents import CommitmentKind, CommitmentType, InvoiceType
from budget_kernel.exceptions import ProjectNotFoundError, SourceUnavailableError
from budget_report.config import BudgetReportConfig
from budget_report.loader import SourceLoader
from budget_report.models import SkipReason, SourceKind
from tests.conftest import CORPORATION_ID, PROJECT_ID


def _po(uuid, status="Approved", **extra):
    record = {"uuid": uuid, "project_uuid": PROJECT_ID, "status": status}
    record.update(extra)
    return record


def _invoice_header(uuid, status="Paid", invoice_type="AGAINST_PO", **extra):
    record = {
        "uuid": uuid,
        "project_uuid": PROJECT_ID,
        "status": status,
        "invoice_type": invoice_type,
        "amount": "100",
    }
    record.update(extra)
    return record


class TestProjectAndCollections:

    def test_missing_project_raises(self, fake_source_factory):
        source = fake_source_factory(project=None)

        with pytest.raises(ProjectNotFoundError) as exc_info:
            SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert exc_info.value.project_id == PROJECT_ID

    def test_collection_failure_raises_source_unavailable(self, fake_source_factory):
        source = fake_source_factory()
        source.failures["get_cost_code_configurations"] = ConnectionError("db down")

        with pytest.raises(SourceUnavailableError) as exc_info:
            SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert exc_info.value.collection == "cost_code_configurations"
        assert "db down" in exc_info.value.reason

    def test_none_collection_treated_as_empty(self, fake_source_factory):
        source = fake_source_factory()
        source.get_divisions = lambda corporation_id: None

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.divisions == ()


class TestEstimates:

    def test_lines_fetched_when_not_embedded(self, fake_source_factory):
        source = fake_source_factory(
            estimates=[{"uuid": "e1", "project_uuid": PROJECT_ID, "status": "Approved",
                        "is_active": True}],
            estimate_items={"e1": [{"cost_code_uuid": "c1", "total_amount": "100"}]},
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.estimates[0].lines[0].base_amount == Decimal("100")
        assert ("get_estimate_line_items", ("e1",)) in source.calls

    def test_embedded_lines_not_refetched(self, fake_source_factory):
        source = fake_source_factory(estimates=[{
            "uuid": "e1", "project_uuid": PROJECT_ID, "status": "Approved", "is_active": True,
            "line_items": [{"cost_code_uuid": "c1", "total_amount": "5"}],
        }])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.estimates[0].lines[0].base_amount == Decimal("5")
        assert not any(name == "get_estimate_line_items" for name, _ in source.calls)

    def test_non_qualifying_estimate_not_fetched(self, fake_source_factory):
        source = fake_source_factory(estimates=[
            {"uuid": "e1", "project_uuid": PROJECT_ID, "status": "Draft", "is_active": True},
        ])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.estimates == ()
        assert not any(name == "get_estimate_line_items" for name, _ in source.calls)

    def test_line_fetch_failure_recorded(self, fake_source_factory):
        source = fake_source_factory(estimates=[
            {"uuid": "e1", "project_uuid": PROJECT_ID, "status": "Approved", "is_active": True},
        ])
        source.failures["get_estimate_line_items"] = TimeoutError("slow")

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.estimates[0].lines == ()
        entry = snapshot.skipped[0]
        assert entry.source_kind is SourceKind.ESTIMATE
        assert entry.source_id == "e1"
        assert entry.reason is SkipReason.FETCH_FAILED


class TestCommitments:

    def test_labor_po_reads_only_labor_items(self, fake_source_factory):
        source = fake_source_factory(
            purchase_orders=[_po("po-1", po_type="LABOR")],
            purchase_order_items={
                ("po-1", "MATERIAL"): [{"cost_code_uuid": "c1", "po_total": "100"}],
                ("po-1", "LABOR"): [{"cost_code_uuid": "c1", "po_amount": "100"}],
            },
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        document = snapshot.commitments[0]
        assert document.commitment_type is CommitmentType.LABOR
        assert [(l.cost_code_id, l.amount) for l in document.lines] == [("c1", Decimal("100"))]
        assert source.calls.count(("get_purchase_order_items", ("po-1", "MATERIAL"))) == 0

    def test_labor_co_ignores_embedded_material_items(self, fake_source_factory):
        source = fake_source_factory(change_orders=[_po(
            "co-1", co_type="LABOR",
            co_items=[{"cost_code_uuid": "c1", "co_total": "40"}],
            labor_co_items=[{"cost_code_uuid": "c1", "co_amount": "15"}],
        )])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert [l.amount for l in snapshot.commitments[0].lines] == [Decimal("15")]

    def test_po_missing_type_defaults_to_material(self, fake_source_factory):
        source = fake_source_factory(
            purchase_orders=[_po("po-1", status="completed")],
            purchase_order_items={("po-1", "MATERIAL"): [{"cost_code_uuid": "c1", "po_total": "7"}]},
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        document = snapshot.commitments[0]
        assert document.kind is CommitmentKind.PURCHASE_ORDER
        assert document.commitment_type is CommitmentType.MATERIAL
        assert document.lines[0].amount == Decimal("7")

    def test_co_missing_type_skipped(self, fake_source_factory):
        source = fake_source_factory(
            change_orders=[_po("co-1", status="completed")],
            change_order_items={("co-1", "MATERIAL"): [{"cost_code_uuid": "c1", "co_total": "7"}]},
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.commitments == ()
        entry = snapshot.skipped[0]
        assert entry.source_kind is SourceKind.CHANGE_ORDER
        assert entry.source_id == "co-1"
        assert entry.reason is SkipReason.UNKNOWN_DOCUMENT_TYPE

    def test_configured_default_type(self, fake_source_factory):
        source = fake_source_factory(
            purchase_orders=[_po("po-1")],
            purchase_order_items={("po-1", "LABOR"): [{"cost_code_uuid": "c1", "po_amount": "3"}]},
        )
        config = BudgetReportConfig(default_commitment_type="LABOR")

        snapshot = SourceLoader(source, config).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.commitments[0].commitment_type is CommitmentType.LABOR
        assert snapshot.commitments[0].lines[0].amount == Decimal("3")

    def test_unknown_type_skipped_into_manifest(self, fake_source_factory, captured_logs):
        source = fake_source_factory(purchase_orders=[_po("po-1", po_type="RENTAL")])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.commitments == ()
        entry = snapshot.skipped[0]
        assert entry.source_kind is SourceKind.PURCHASE_ORDER
        assert entry.reason is SkipReason.UNKNOWN_DOCUMENT_TYPE
        assert "RENTAL" in entry.detail
        assert any(r["message"] == "commitment_type_unknown" for r in captured_logs())

    def test_unknown_type_of_non_qualifying_document_not_reported(self, fake_source_factory):
        source = fake_source_factory(purchase_orders=[_po("po-1", status="Draft", po_type="RENTAL")])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.skipped == ()

    def test_failed_variant_drops_whole_document(self, fake_source_factory):
        source = fake_source_factory(
            purchase_orders=[_po("po-1", po_type="LABOR"), _po("po-2")],
            purchase_order_items={
                ("po-1", "MATERIAL"): [{"cost_code_uuid": "c1", "po_total": "10"}],
                ("po-2", "MATERIAL"): [{"cost_code_uuid": "c1", "po_total": "5"}],
            },
        )
        source.failures["get_purchase_order_items"] = (
            lambda po_id, variant: RuntimeError("boom") if variant == "LABOR" else None
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert [d.document_id for d in snapshot.commitments] == ["po-2"]
        assert [(e.source_id, e.reason) for e in snapshot.skipped] == [
            ("po-1", SkipReason.FETCH_FAILED),
        ]

    def test_embedded_items_used(self, fake_source_factory):
        source = fake_source_factory(purchase_orders=[
            _po("po-1", po_items=[{"cost_code_uuid": "c1", "po_total": "9"}]),
        ])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.commitments[0].lines[0].amount == Decimal("9")
        assert not any(name == "get_purchase_order_items" for name, _ in source.calls)


class TestInvoices:

    def test_detail_fetched_for_qualifying_headers_only(self, fake_source_factory):
        source = fake_source_factory(
            vendor_invoices=[
                _invoice_header("inv-1"),
                _invoice_header("inv-2", status="Pending"),
                _invoice_header("inv-3", project_uuid="other"),
            ],
            invoice_details={"inv-1": {
                **_invoice_header("inv-1"),
                "po_invoice_items": [{"cost_code_uuid": "c1", "invoice_total": "100"}],
            }},
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert [i.invoice_id for i in snapshot.invoices] == ["inv-1"]
        fetched = [args for name, args in source.calls if name == "get_vendor_invoice"]
        assert fetched == [("inv-1",)]

    def test_header_fields_take_precedence(self, fake_source_factory):
        source = fake_source_factory(
            vendor_invoices=[_invoice_header("inv-1")],
            invoice_details={"inv-1": {
                "uuid": "inv-1",
                "status": "Draft",
                "invoice_type": "ENTER_DIRECT_INVOICE",
                "amount": "50",
                "line_items": [{"cost_code_uuid": "c1", "total": "50"}],
            }},
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        invoice = snapshot.invoices[0]
        assert invoice.status == "Paid"
        assert invoice.project_id == PROJECT_ID
        assert invoice.invoice_type is InvoiceType.ENTER_DIRECT_INVOICE
        assert invoice.amount == Decimal("50")

    def test_missing_detail_recorded(self, fake_source_factory):
        source = fake_source_factory(vendor_invoices=[_invoice_header("inv-1")])

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.invoices == ()
        assert snapshot.skipped[0].reason is SkipReason.NOT_FOUND

    def test_unknown_invoice_type_recorded(self, fake_source_factory):
        header = _invoice_header("inv-1", invoice_type="CREDIT_NOTE")
        source = fake_source_factory(
            vendor_invoices=[header], invoice_details={"inv-1": header},
        )

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.invoices == ()
        assert snapshot.skipped[0].reason is SkipReason.UNKNOWN_DOCUMENT_TYPE

    def test_invoice_list_failure_degrades(self, fake_source_factory, captured_logs):
        source = fake_source_factory()
        source.failures["get_vendor_invoices"] = ConnectionError("offline")

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.invoices == ()
        entry = snapshot.skipped[0]
        assert entry.source_kind is SourceKind.VENDOR_INVOICE
        assert entry.source_id == ""
        assert entry.reason is SkipReason.FETCH_FAILED
        assert any(r["message"] == "vendor_invoices_unavailable" for r in captured_logs())

    def test_detail_failure_recorded(self, fake_source_factory, captured_logs):
        source = fake_source_factory(vendor_invoices=[_invoice_header("inv-1")])
        source.failures["get_vendor_invoice"] = ValueError("bad payload")

        snapshot = SourceLoader(source).load(CORPORATION_ID, PROJECT_ID)

        assert snapshot.invoices == ()
        assert snapshot.skipped[0].detail == "bad payload"
        warning = next(r for r in captured_logs() if r["message"] == "source_document_fetch_failed")
        assert warning["error_code"] == "DOCUMENT_FETCH_FAILED"
        assert warning["failed_document_id"] == "inv-1"


class TestFanOut:

    def _busy_source(self, fake_source_factory):
        purchase_orders = [_po(f"po-{i}", po_type="LABOR" if i % 2 else "MATERIAL") for i in range(12)]
        items = {}
        for i in range(12):
            items[(f"po-{i}", "MATERIAL")] = [{"cost_code_uuid": f"c{i % 3}", "po_total": str(i + 1)}]
            items[(f"po-{i}", "LABOR")] = [{"cost_code_uuid": "c9", "po_amount": "1.5"}]
        source = fake_source_factory(purchase_orders=purchase_orders, purchase_order_items=items)
        source.failures["get_purchase_order_items"] = (
            lambda po_id, variant: RuntimeError("flaky") if po_id == "po-5" else None
        )
        return source

    def test_worker_count_does_not_change_snapshot(self, fake_source_factory):
        sequential = SourceLoader(
            self._busy_source(fake_source_factory), BudgetReportConfig(fetch_workers=1),
        ).load(CORPORATION_ID, PROJECT_ID)
        concurrent = SourceLoader(
            self._busy_source(fake_source_factory), BudgetReportConfig(fetch_workers=4),
        ).load(CORPORATION_ID, PROJECT_ID)

        assert concurrent == sequential
        assert len(sequential.commitments) == 11
