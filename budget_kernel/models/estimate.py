"""
SQLAlchemy ORM models for estimates and estimate line items.

Estimates carry the budgeted amounts of a project.  A line's
``total_amount`` is the base amount (labor + material) WITHOUT contingency;
contingency is either stored on the line or derived from a percentage.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase, UUIDString, as_record_id


class EstimateModel(TrackedBase):
    """Estimate header."""

    __tablename__ = "estimates"

    __table_args__ = (
        Index("idx_estimate_project", "project_id"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False,
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Draft")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    line_items: Mapped[list["EstimateLineItemModel"]] = relationship(
        "EstimateLineItemModel",
        back_populates="estimate",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_record(self) -> dict[str, Any]:
        # line_items are fetched separately by estimate id
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "project_uuid": as_record_id(self.project_id),
            "status": self.status,
            "is_active": self.is_active,
        }

    def __repr__(self) -> str:
        return f"<EstimateModel {self.id} [{self.status}]>"


class EstimateLineItemModel(TrackedBase):
    """One budgeted line of an estimate."""

    __tablename__ = "estimate_line_items"

    __table_args__ = (
        Index("idx_estimate_line_estimate", "estimate_id"),
    )

    estimate_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("estimates.id"), nullable=False,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    contingency_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    contingency_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    contingency_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)

    estimate: Mapped["EstimateModel"] = relationship(
        "EstimateModel", back_populates="line_items",
    )

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "estimate_uuid": as_record_id(self.estimate_id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "total_amount": self.total_amount,
            "contingency_enabled": self.contingency_enabled,
            "contingency_amount": self.contingency_amount,
            "contingency_percentage": self.contingency_percentage,
        }
