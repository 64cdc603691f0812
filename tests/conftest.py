"""
Pytest fixtures for the budget report test suite.

Provides:
- Structured logging configured once per session, LogContext isolation
- captured_logs: parsed JSON log lines of the budget_kernel hierarchy
- In-memory SQLite engine and session with all source tables created
- DeterministicClock
- FakeBudgetSource: dict-backed source collaborator with failure injection
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from io import StringIO
from typing import Any, Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from budget_kernel.db.base import Base
from budget_kernel.domain.clock import DeterministicClock
from budget_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
import budget_kernel.models  # noqa: F401

CORPORATION_ID = "corp-1"
PROJECT_ID = "project-1"
FIXED_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture budget_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.generate_report(...)
            logs = captured_logs()
            assert any(r["message"] == "budget_report_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("budget_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    sess = factory()
    yield sess
    sess.close()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(FIXED_TIME)


# =============================================================================
# In-memory source collaborator
# =============================================================================


class FakeBudgetSource:
    """
    Dict-backed ``BudgetSource`` for tests that do not need a database.

    ``failures`` maps a method name to an exception (raised on every call)
    or to a predicate ``(*args) -> Exception | None``.
    """

    def __init__(
        self,
        project: dict[str, Any] | None = None,
        divisions: list[dict] | None = None,
        cost_codes: list[dict] | None = None,
        estimates: list[dict] | None = None,
        estimate_items: dict[str, list[dict]] | None = None,
        purchase_orders: list[dict] | None = None,
        purchase_order_items: dict[tuple[str, str], list[dict]] | None = None,
        change_orders: list[dict] | None = None,
        change_order_items: dict[tuple[str, str], list[dict]] | None = None,
        vendor_invoices: list[dict] | None = None,
        invoice_details: dict[str, dict] | None = None,
    ):
        self.project = project
        self.divisions = divisions or []
        self.cost_codes = cost_codes or []
        self.estimates = estimates or []
        self.estimate_items = estimate_items or {}
        self.purchase_orders = purchase_orders or []
        self.purchase_order_items = purchase_order_items or {}
        self.change_orders = change_orders or []
        self.change_order_items = change_order_items or {}
        self.vendor_invoices = vendor_invoices or []
        self.invoice_details = invoice_details or {}
        self.failures: dict[str, Exception | Callable[..., Exception | None]] = {}
        self.calls: list[tuple[str, tuple]] = []

    def _call(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        failure = self.failures.get(method)
        if failure is None:
            return
        if isinstance(failure, Exception):
            raise failure
        error = failure(*args)
        if error is not None:
            raise error

    def get_divisions(self, corporation_id):
        self._call("get_divisions", corporation_id)
        return list(self.divisions)

    def get_cost_code_configurations(self, corporation_id):
        self._call("get_cost_code_configurations", corporation_id)
        return list(self.cost_codes)

    def get_project(self, project_id):
        self._call("get_project", project_id)
        if self.project is None or self.project.get("uuid") != project_id:
            return None
        return dict(self.project)

    def get_estimates(self, project_id):
        self._call("get_estimates", project_id)
        return [e for e in self.estimates if e.get("project_uuid") == project_id]

    def get_estimate_line_items(self, estimate_id):
        self._call("get_estimate_line_items", estimate_id)
        return list(self.estimate_items.get(estimate_id, []))

    def get_purchase_orders(self, project_id):
        self._call("get_purchase_orders", project_id)
        return [p for p in self.purchase_orders if p.get("project_uuid") == project_id]

    def get_purchase_order_items(self, purchase_order_id, commitment_type):
        self._call("get_purchase_order_items", purchase_order_id, commitment_type)
        return list(self.purchase_order_items.get((purchase_order_id, commitment_type), []))

    def get_change_orders(self, project_id):
        self._call("get_change_orders", project_id)
        return [c for c in self.change_orders if c.get("project_uuid") == project_id]

    def get_change_order_items(self, change_order_id, commitment_type):
        self._call("get_change_order_items", change_order_id, commitment_type)
        return list(self.change_order_items.get((change_order_id, commitment_type), []))

    def get_vendor_invoices(self, corporation_id):
        self._call("get_vendor_invoices", corporation_id)
        return list(self.vendor_invoices)

    def get_vendor_invoice(self, invoice_id):
        self._call("get_vendor_invoice", invoice_id)
        detail = self.invoice_details.get(invoice_id)
        return dict(detail) if detail is not None else None


def division(division_id: str, number: str = "", order: int = 0, **extra) -> dict:
    record = {
        "uuid": division_id,
        "division_number": number or division_id,
        "division_name": f"Division {number or division_id}",
        "division_order": order,
    }
    record.update(extra)
    return record


def cost_code(
    cost_code_id: str,
    division_id: str,
    parent_id: str | None = None,
    order: int = 0,
    **extra,
) -> dict:
    record = {
        "uuid": cost_code_id,
        "cost_code_number": cost_code_id.upper(),
        "cost_code_name": f"Cost code {cost_code_id}",
        "division_uuid": division_id,
        "parent_cost_code_uuid": parent_id,
        "order": order,
    }
    record.update(extra)
    return record


def project_record(project_id: str = PROJECT_ID, **extra) -> dict:
    record = {
        "uuid": project_id,
        "project_name": "Test Hotel",
        "project_id": "TH-1",
        "no_of_rooms": 0,
        "contingency_percentage": "0",
    }
    record.update(extra)
    return record


@pytest.fixture
def fake_source_factory():
    """Build a FakeBudgetSource with the standard project record."""

    def _build(**kwargs) -> FakeBudgetSource:
        kwargs.setdefault("project", project_record())
        return FakeBudgetSource(**kwargs)

    return _build
