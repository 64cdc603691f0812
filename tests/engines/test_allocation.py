"""
Tests for the Cost Allocator.

Covers:
- Proportional distribution of charges and taxes over commitment items
- Paid-invoice distribution of the full invoice amount
- Estimate contingency rules (stored amount, line percent, project percent)
- Lines without a cost code
- Engine trace logging
"""

import logging
from decimal import Decimal

from budget_engines import tracer
from budget_engines.allocation import (
    AllocationBucket,
    allocate_commitment,
    allocate_invoice,
    budget_estimate,
    estimate_line_budget,
)
from budget_kernel.domain.documents import (
    CommitmentDocument,
    CommitmentKind,
    CommitmentLine,
    CommitmentType,
    Estimate,
    EstimateLine,
    InvoiceLine,
    InvoiceType,
    PaidInvoice,
)


def _commitment(lines, charges="0", tax="0", kind=CommitmentKind.PURCHASE_ORDER):
    return CommitmentDocument(
        document_id="po-1",
        kind=kind,
        commitment_type=CommitmentType.MATERIAL,
        project_id="p",
        status="Approved",
        is_active=True,
        charges_total=Decimal(charges),
        tax_total=Decimal(tax),
        lines=tuple(CommitmentLine(code, Decimal(amount)) for code, amount in lines),
    )


def _invoice(lines, amount):
    return PaidInvoice(
        invoice_id="inv-1",
        project_id="p",
        invoice_type=InvoiceType.AGAINST_PO,
        status="Paid",
        is_active=True,
        amount=Decimal(amount),
        lines=tuple(InvoiceLine(code, Decimal(value)) for code, value in lines),
    )


def _by_code(contributions):
    return {c.cost_code_id: c.amount for c in contributions}


class TestAllocateCommitment:
    """Purchase and change orders."""

    def test_tax_distributed_proportionally(self):
        result = allocate_commitment(_commitment([("A", "60"), ("B", "40")], tax="10"))

        assert _by_code(result) == {"A": Decimal("66"), "B": Decimal("44")}
        assert all(c.bucket == AllocationBucket.PURCHASE_ORDER for c in result)
        assert all(c.source_id == "po-1" for c in result)

    def test_charges_and_tax_both_distributed(self):
        result = allocate_commitment(
            _commitment([("A", "300"), ("B", "100")], charges="20", tax="20"),
        )

        assert _by_code(result) == {"A": Decimal("330"), "B": Decimal("110")}

    def test_change_order_lands_in_change_order_bucket(self):
        result = allocate_commitment(
            _commitment([("A", "100")], kind=CommitmentKind.CHANGE_ORDER),
        )

        assert result[0].bucket == AllocationBucket.CHANGE_ORDER
        assert result[0].amount == Decimal("100")

    def test_same_cost_code_lines_are_accumulated(self):
        result = allocate_commitment(
            _commitment([("A", "50"), ("A", "25"), ("B", "25")], tax="10"),
        )

        assert _by_code(result) == {"A": Decimal("82.5"), "B": Decimal("27.5")}
        assert len(result) == 2

    def test_lines_without_cost_code_excluded_from_subtotal(self):
        result = allocate_commitment(
            _commitment([("A", "100"), (None, "100")], tax="10"),
        )

        # A is the whole subtotal, so it receives all of the tax
        assert _by_code(result) == {"A": Decimal("110")}

    def test_zero_subtotal_distributes_nothing(self):
        result = allocate_commitment(_commitment([("A", "0")], tax="10"))

        assert _by_code(result) == {"A": Decimal("0")}

    def test_no_lines(self):
        assert allocate_commitment(_commitment([], tax="10")) == ()

    def test_thirds_sum_to_pool(self):
        result = allocate_commitment(
            _commitment([("A", "1"), ("B", "1"), ("C", "1")], tax="1"),
        )

        total = sum(_by_code(result).values())
        assert abs(total - Decimal("4")) < Decimal("1e-20")


class TestAllocateInvoice:
    """Paid vendor invoices."""

    def test_full_amount_distributed(self):
        result = allocate_invoice(_invoice([("A", "100"), ("B", "100")], "220"))

        assert _by_code(result) == {"A": Decimal("110"), "B": Decimal("110")}
        assert all(c.bucket == AllocationBucket.PAID for c in result)

    def test_amount_below_subtotal(self):
        result = allocate_invoice(_invoice([("A", "75"), ("B", "25")], "40"))

        assert _by_code(result) == {"A": Decimal("30"), "B": Decimal("10")}

    def test_zero_subtotal_produces_nothing(self):
        assert allocate_invoice(_invoice([("A", "0")], "100")) == ()

    def test_zero_amount_produces_nothing(self):
        assert allocate_invoice(_invoice([("A", "100")], "0")) == ()

    def test_line_without_cost_code_ignored(self):
        result = allocate_invoice(_invoice([("A", "50"), (None, "50")], "80"))

        assert _by_code(result) == {"A": Decimal("80")}


class TestEstimateBudget:
    """Estimate lines and contingency."""

    def test_percentage_contingency(self):
        line = EstimateLine(
            "A", Decimal("1000"), contingency_enabled=True,
            contingency_percent=Decimal("5"),
        )

        assert estimate_line_budget(line, Decimal("0")) == Decimal("1050")

    def test_stored_amount_wins_over_percentage(self):
        line = EstimateLine(
            "A", Decimal("1000"), contingency_enabled=True,
            contingency_amount=Decimal("75"), contingency_percent=Decimal("5"),
        )

        assert estimate_line_budget(line, Decimal("10")) == Decimal("1075")

    def test_disabled_contingency_is_base_only(self):
        line = EstimateLine(
            "A", Decimal("1000"), contingency_enabled=False,
            contingency_amount=Decimal("75"), contingency_percent=Decimal("5"),
        )

        assert estimate_line_budget(line, Decimal("10")) == Decimal("1000")

    def test_project_percentage_fallback(self):
        line = EstimateLine("A", Decimal("2000"), contingency_enabled=True)

        assert estimate_line_budget(line, Decimal("2.5")) == Decimal("2050")

    def test_line_zero_percent_does_not_fall_back(self):
        line = EstimateLine(
            "A", Decimal("2000"), contingency_enabled=True,
            contingency_percent=Decimal("0"),
        )

        assert estimate_line_budget(line, Decimal("10")) == Decimal("2000")

    def test_budget_estimate_skips_lines_without_cost_code(self):
        estimate = Estimate(
            estimate_id="est-1",
            project_id="p",
            status="Approved",
            is_active=True,
            lines=(
                EstimateLine("A", Decimal("100")),
                EstimateLine(None, Decimal("900")),
                EstimateLine("A", Decimal("50")),
            ),
        )

        result = budget_estimate(estimate)

        assert [c.amount for c in result] == [Decimal("100"), Decimal("50")]
        assert all(c.bucket == AllocationBucket.BUDGETED for c in result)
        assert all(c.source_id == "est-1" for c in result)


class TestEngineTrace:
    """Engine invocations emit a trace record."""

    def test_trace_emitted(self, captured_logs):
        allocate_commitment(_commitment([("A", "10")]))

        traces = [r for r in captured_logs() if r["message"] == "BUDGET_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "allocation"
        assert len(traces[-1]["input_fingerprint"]) == 16

    def test_fingerprint_stable_for_equal_inputs(self, captured_logs):
        allocate_commitment(_commitment([("A", "10")]))
        allocate_commitment(_commitment([("A", "10")]))

        traces = [r for r in captured_logs() if r["message"] == "BUDGET_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_no_fingerprint_when_debug_disabled(self, captured_logs, monkeypatch):
        def _fail(*args, **kwargs):
            raise AssertionError("fingerprint computed with DEBUG disabled")

        monkeypatch.setattr(tracer, "compute_input_fingerprint", _fail)
        root = logging.getLogger("budget_kernel")
        previous = root.level
        root.setLevel(logging.INFO)
        try:
            result = allocate_commitment(_commitment([("A", "60"), ("B", "40")], tax="10"))
        finally:
            root.setLevel(previous)

        assert _by_code(result) == {"A": Decimal("66"), "B": Decimal("44")}
        assert not [r for r in captured_logs() if r["message"] == "BUDGET_ENGINE_TRACE"]
