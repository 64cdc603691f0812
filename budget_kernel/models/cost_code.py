"""
SQLAlchemy ORM models for the cost-code tree.

Responsibility
--------------
Persist cost-code divisions and cost-code configurations for a corporation.
The tree is stored as a flat parent-pointer list; ``parent_cost_code_id``
NULL means "top-level under its division".

Architecture position
---------------------
**Kernel > Models** -- read by ``BudgetSourceSelector``; never mutated by the
report engine.  ``to_record()`` renders the row in the raw record shape that
source collaborators hand to ``budget_report.sources``.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase, UUIDString, as_record_id


class CostCodeDivisionModel(TrackedBase):
    """Top-level grouping of cost codes."""

    __tablename__ = "cost_code_divisions"

    __table_args__ = (
        Index("idx_division_corporation", "corporation_id"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    division_number: Mapped[str] = mapped_column(String(50), nullable=False)
    division_name: Mapped[str] = mapped_column(String(255), nullable=False)
    division_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    exclude_in_estimates_and_reports: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "division_number": self.division_number,
            "division_name": self.division_name,
            "division_order": self.division_order,
            "exclude_in_estimates_and_reports": self.exclude_in_estimates_and_reports,
            "is_active": self.is_active,
        }

    def __repr__(self) -> str:
        return f"<CostCodeDivisionModel {self.division_number} {self.division_name}>"


class CostCodeConfigurationModel(TrackedBase):
    """One node of the cost-code tree."""

    __tablename__ = "cost_code_configurations"

    __table_args__ = (
        Index("idx_cost_code_corporation", "corporation_id"),
        Index("idx_cost_code_parent", "parent_cost_code_id"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    division_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("cost_code_divisions.id"), nullable=False,
    )
    parent_cost_code_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("cost_code_configurations.id"), nullable=True,
    )
    cost_code_number: Mapped[str] = mapped_column(String(50), nullable=False)
    cost_code_name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "division_uuid": as_record_id(self.division_id),
            "parent_cost_code_uuid": as_record_id(self.parent_cost_code_id),
            "cost_code_number": self.cost_code_number,
            "cost_code_name": self.cost_code_name,
            "order": self.display_order,
            "is_active": self.is_active,
        }

    def __repr__(self) -> str:
        return f"<CostCodeConfigurationModel {self.cost_code_number} {self.cost_code_name}>"
