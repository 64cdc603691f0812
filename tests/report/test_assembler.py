"""
Tests for report assembly, flattening and rendering.

Pure functions over hand-built rollups.  NO database required.
"""

import json
from decimal import Decimal

from budget_engines.aggregation import CostCodeLedger
from budget_engines.allocation import AllocationBucket, CostCodeContribution
from budget_engines.hierarchy import CostCodeIndex, build_division_rollups
from budget_kernel.domain.documents import CostCodeNode, Division
from budget_report.assembler import (
    assemble_report,
    flatten_report,
    render_to_dict,
    summarize_divisions,
)
from budget_report.models import (
    ProjectHeader,
    ReportMetadata,
    RowLevel,
    SkippedSource,
    SkipReason,
    SourceKind,
)


def _deep_report(number_of_rooms=0, skipped=()):
    """One division holding a five-level chain with activity at the leaf."""
    chain = ["l1", "l2", "l3", "l4", "l5"]
    nodes = [CostCodeNode(chain[0], "L1", "Level 1", "D1")] + [
        CostCodeNode(code, code.upper(), code, "D1", parent_id=parent)
        for parent, code in zip(chain, chain[1:])
    ]
    ledger = CostCodeLedger()
    ledger.apply([
        CostCodeContribution("l5", AllocationBucket.PURCHASE_ORDER, Decimal("40"), "po"),
        CostCodeContribution("l1", AllocationBucket.BUDGETED, Decimal("100"), "est"),
    ])
    divisions = build_division_rollups(
        [Division("D1", "01", "General")], CostCodeIndex.build(nodes), ledger,
        number_of_rooms=number_of_rooms,
    )
    return assemble_report(
        ReportMetadata("corp", "proj", "2024-06-01T12:00:00+00:00"),
        ProjectHeader("proj", "Hotel", "H-1", number_of_rooms),
        divisions,
        skipped,
    )


class TestSummaries:

    def test_summary_sums_divisions(self):
        report = _deep_report(number_of_rooms=4)

        assert report.summary.budgeted_amount == Decimal("100")
        assert report.summary.purchase_order_amount == Decimal("40")
        assert report.summary.total_amount == Decimal("40")
        assert report.summary.total_remaining == Decimal("60")
        assert report.summary.cost_per_room == Decimal("10")

    def test_empty_report(self):
        summary = summarize_divisions([], number_of_rooms=10)

        assert summary.total_amount == Decimal("0")
        assert summary.cost_per_room == Decimal("0")

    def test_skipped_marks_incomplete(self):
        skipped = (SkippedSource(SourceKind.PURCHASE_ORDER, "po-9", SkipReason.FETCH_FAILED),)

        assert _deep_report().is_complete
        assert not _deep_report(skipped=skipped).is_complete


class TestFlattenReport:

    def test_default_depth_stops_at_three_levels(self):
        rows = flatten_report(_deep_report())

        assert [(r.level, r.row_id) for r in rows] == [
            (RowLevel.DIVISION, "D1"),
            (RowLevel.COST_CODE, "l1"),
            (RowLevel.SUB_COST_CODE, "l2"),
            (RowLevel.SUB_SUB_COST_CODE, "l3"),
            (RowLevel.TOTAL, ""),
        ]

    def test_hidden_levels_still_counted(self):
        rows = flatten_report(_deep_report())

        l3 = rows[3]
        assert l3.purchase_order_amount == Decimal("40")
        assert l3.parent_id == "l2"
        assert l3.division_id == "D1"

    def test_deeper_levels_use_sub_sub_level(self):
        rows = flatten_report(_deep_report(), max_depth=5)

        assert [r.level for r in rows[4:6]] == [
            RowLevel.SUB_SUB_COST_CODE, RowLevel.SUB_SUB_COST_CODE,
        ]
        assert len(rows) == 7

    def test_total_row_always_present(self):
        report = assemble_report(
            ReportMetadata("corp", "proj", "t"), ProjectHeader("proj", "", ""), [],
        )

        rows = flatten_report(report)

        assert len(rows) == 1
        assert rows[0].is_total
        assert rows[0].name == "Total"
        assert rows[0].total_amount == Decimal("0")


class TestRenderToDict:

    def test_json_safe(self):
        skipped = (SkippedSource(SourceKind.VENDOR_INVOICE, "", SkipReason.FETCH_FAILED, "offline"),)

        rendered = render_to_dict(_deep_report(skipped=skipped))

        text = json.dumps(rendered)
        assert json.loads(text) == rendered
        assert rendered["summary"]["budgeted_amount"] == "100"
        assert rendered["skipped"][0]["source_kind"] == "vendor_invoice"
        assert rendered["divisions"][0]["cost_codes"][0]["cost_code_id"] == "l1"

    def test_rows_render(self):
        rendered = render_to_dict(flatten_report(_deep_report()))

        assert rendered[-1]["level"] == "total"
        assert rendered[-1]["is_total"] is True
