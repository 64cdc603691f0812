"""
Module: budget_kernel.selectors.budget_source_selector
Responsibility: SQLAlchemy-backed reader for the source collections of the
    budget-vs-actual report.  Every method returns raw records (plain dicts
    rendered by the models' ``to_record()``) in exactly the shape an external
    collaborator would hand to ``budget_report.sources``; normalization into
    typed DTOs happens there, not here.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from domain/ or outer layers.

Invariants enforced:
    - Read-only.  No add/flush/commit.
    - Identifiers are accepted as strings; a string that is not a UUID
      matches nothing (empty list or None) rather than raising.
    - Collections are returned in a stable order (display order, then id) so
      that repeated reads of the same data produce the same records.

Failure modes:
    - Database errors propagate as SQLAlchemy exceptions.  The report loader
      maps them to SourceUnavailableError (collections) or to a skipped
      document (per-document sub-fetches).
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_kernel.logging_config import get_logger
from budget_kernel.models.commitment import (
    ChangeOrderItemModel,
    ChangeOrderModel,
    LaborChangeOrderItemModel,
    LaborPurchaseOrderItemModel,
    PurchaseOrderItemModel,
    PurchaseOrderModel,
)
from budget_kernel.models.cost_code import (
    CostCodeConfigurationModel,
    CostCodeDivisionModel,
)
from budget_kernel.models.estimate import EstimateLineItemModel, EstimateModel
from budget_kernel.models.invoice import VendorInvoiceModel
from budget_kernel.models.project import ProjectModel
from budget_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.budget_source")

_LABOR = "LABOR"


def _parse_id(value: str | UUID | None) -> UUID | None:
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None


class BudgetSourceSelector(BaseSelector):
    """
    Source collaborator for ``BudgetReportService`` backed by the ORM models.

    Contract:
        Implements every method of ``budget_report.sources.BudgetSource``.
        Commitment item reads are split by commitment type: ``"LABOR"`` reads
        the labor item table, anything else reads the material item table.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # ------------------------------------------------------------------
    # Cost-code tree
    # ------------------------------------------------------------------

    def get_divisions(self, corporation_id: str) -> list[dict[str, Any]]:
        rows = self.session.scalars(
            select(CostCodeDivisionModel)
            .where(CostCodeDivisionModel.corporation_id == corporation_id)
            .order_by(CostCodeDivisionModel.division_order, CostCodeDivisionModel.id)
        ).all()
        return [row.to_record() for row in rows]

    def get_cost_code_configurations(self, corporation_id: str) -> list[dict[str, Any]]:
        rows = self.session.scalars(
            select(CostCodeConfigurationModel)
            .where(CostCodeConfigurationModel.corporation_id == corporation_id)
            .order_by(
                CostCodeConfigurationModel.display_order,
                CostCodeConfigurationModel.id,
            )
        ).all()
        return [row.to_record() for row in rows]

    # ------------------------------------------------------------------
    # Project
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> dict[str, Any] | None:
        key = _parse_id(project_id)
        if key is None:
            return None
        project = self.session.get(ProjectModel, key)
        if project is None:
            logger.debug("project_not_found", extra={"project_id": project_id})
            return None
        return project.to_record()

    # ------------------------------------------------------------------
    # Estimates
    # ------------------------------------------------------------------

    def get_estimates(self, project_id: str) -> list[dict[str, Any]]:
        key = _parse_id(project_id)
        if key is None:
            return []
        rows = self.session.scalars(
            select(EstimateModel)
            .where(EstimateModel.project_id == key)
            .order_by(EstimateModel.created_at, EstimateModel.id)
        ).all()
        return [row.to_record() for row in rows]

    def get_estimate_line_items(self, estimate_id: str) -> list[dict[str, Any]]:
        key = _parse_id(estimate_id)
        if key is None:
            return []
        rows = self.session.scalars(
            select(EstimateLineItemModel)
            .where(EstimateLineItemModel.estimate_id == key)
            .order_by(EstimateLineItemModel.id)
        ).all()
        return [row.to_record() for row in rows]

    # ------------------------------------------------------------------
    # Purchase orders
    # ------------------------------------------------------------------

    def get_purchase_orders(self, project_id: str) -> list[dict[str, Any]]:
        key = _parse_id(project_id)
        if key is None:
            return []
        rows = self.session.scalars(
            select(PurchaseOrderModel)
            .where(PurchaseOrderModel.project_id == key)
            .order_by(PurchaseOrderModel.created_at, PurchaseOrderModel.id)
        ).all()
        return [row.to_record() for row in rows]

    def get_purchase_order_items(
        self, purchase_order_id: str, commitment_type: str,
    ) -> list[dict[str, Any]]:
        key = _parse_id(purchase_order_id)
        if key is None:
            return []
        if str(commitment_type).upper() == _LABOR:
            model = LaborPurchaseOrderItemModel
        else:
            model = PurchaseOrderItemModel
        rows = self.session.scalars(
            select(model)
            .where(model.purchase_order_id == key)
            .order_by(model.id)
        ).all()
        return [row.to_record() for row in rows]

    # ------------------------------------------------------------------
    # Change orders
    # ------------------------------------------------------------------

    def get_change_orders(self, project_id: str) -> list[dict[str, Any]]:
        key = _parse_id(project_id)
        if key is None:
            return []
        rows = self.session.scalars(
            select(ChangeOrderModel)
            .where(ChangeOrderModel.project_id == key)
            .order_by(ChangeOrderModel.created_at, ChangeOrderModel.id)
        ).all()
        return [row.to_record() for row in rows]

    def get_change_order_items(
        self, change_order_id: str, commitment_type: str,
    ) -> list[dict[str, Any]]:
        key = _parse_id(change_order_id)
        if key is None:
            return []
        if str(commitment_type).upper() == _LABOR:
            model = LaborChangeOrderItemModel
        else:
            model = ChangeOrderItemModel
        rows = self.session.scalars(
            select(model)
            .where(model.change_order_id == key)
            .order_by(model.id)
        ).all()
        return [row.to_record() for row in rows]

    # ------------------------------------------------------------------
    # Vendor invoices
    # ------------------------------------------------------------------

    def get_vendor_invoices(self, corporation_id: str) -> list[dict[str, Any]]:
        """Corporation-wide invoice headers; project filtering is the caller's."""
        rows = self.session.scalars(
            select(VendorInvoiceModel)
            .where(VendorInvoiceModel.corporation_id == corporation_id)
            .order_by(VendorInvoiceModel.created_at, VendorInvoiceModel.id)
        ).all()
        return [row.to_record() for row in rows]

    def get_vendor_invoice(self, invoice_id: str) -> dict[str, Any] | None:
        key = _parse_id(invoice_id)
        if key is None:
            return None
        invoice = self.session.get(VendorInvoiceModel, key)
        if invoice is None:
            return None
        return invoice.to_detail_record()
