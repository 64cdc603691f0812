"""
SQLAlchemy ORM models for commitment documents.

Responsibility
--------------
Purchase orders and change orders, each split by ``po_type``/``co_type``
into MATERIAL documents (items priced as total or unit price x quantity) and
LABOR documents (items carrying a single amount).  Document-level
``charges_total`` and ``tax_total`` are distributed across cost codes by the
allocation engine, not here.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase, UUIDString, as_record_id


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TrackedBase):
    """Purchase order header."""

    __tablename__ = "purchase_orders"

    __table_args__ = (
        Index("idx_po_project", "project_id"),
        Index("idx_po_status", "status"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False,
    )
    po_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Draft")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    charges_total: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_total: Mapped[Decimal | None] = mapped_column(nullable=True)

    items: Mapped[list["PurchaseOrderItemModel"]] = relationship(
        "PurchaseOrderItemModel", cascade="all, delete-orphan", lazy="selectin",
    )
    labor_items: Mapped[list["LaborPurchaseOrderItemModel"]] = relationship(
        "LaborPurchaseOrderItemModel", cascade="all, delete-orphan", lazy="selectin",
    )

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "project_uuid": as_record_id(self.project_id),
            "po_type": self.po_type,
            "status": self.status,
            "is_active": self.is_active,
            "charges_total": self.charges_total,
            "tax_total": self.tax_total,
        }

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel {self.id} {self.po_type} [{self.status}]>"


class PurchaseOrderItemModel(TrackedBase):
    """Material purchase order item."""

    __tablename__ = "purchase_order_items"

    purchase_order_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("purchase_orders.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    po_total: Mapped[Decimal | None] = mapped_column(nullable=True)
    po_unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    po_quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "purchase_order_uuid": as_record_id(self.purchase_order_id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "po_total": self.po_total,
            "po_unit_price": self.po_unit_price,
            "po_quantity": self.po_quantity,
            "is_active": self.is_active,
        }


class LaborPurchaseOrderItemModel(TrackedBase):
    """Labor purchase order item."""

    __tablename__ = "labor_purchase_order_items"

    purchase_order_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("purchase_orders.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    po_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "purchase_order_uuid": as_record_id(self.purchase_order_id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "po_amount": self.po_amount,
            "is_active": self.is_active,
        }


# ---------------------------------------------------------------------------
# Change orders
# ---------------------------------------------------------------------------


class ChangeOrderModel(TrackedBase):
    """Change order header."""

    __tablename__ = "change_orders"

    __table_args__ = (
        Index("idx_co_project", "project_id"),
        Index("idx_co_status", "status"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False,
    )
    co_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Draft")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    charges_total: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_total: Mapped[Decimal | None] = mapped_column(nullable=True)

    items: Mapped[list["ChangeOrderItemModel"]] = relationship(
        "ChangeOrderItemModel", cascade="all, delete-orphan", lazy="selectin",
    )
    labor_items: Mapped[list["LaborChangeOrderItemModel"]] = relationship(
        "LaborChangeOrderItemModel", cascade="all, delete-orphan", lazy="selectin",
    )

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "project_uuid": as_record_id(self.project_id),
            "co_type": self.co_type,
            "status": self.status,
            "is_active": self.is_active,
            "charges_total": self.charges_total,
            "tax_total": self.tax_total,
        }

    def __repr__(self) -> str:
        return f"<ChangeOrderModel {self.id} {self.co_type} [{self.status}]>"


class ChangeOrderItemModel(TrackedBase):
    """Material change order item."""

    __tablename__ = "change_order_items"

    change_order_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("change_orders.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    co_total: Mapped[Decimal | None] = mapped_column(nullable=True)
    co_unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    co_quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "change_order_uuid": as_record_id(self.change_order_id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "co_total": self.co_total,
            "co_unit_price": self.co_unit_price,
            "co_quantity": self.co_quantity,
            "is_active": self.is_active,
        }


class LaborChangeOrderItemModel(TrackedBase):
    """Labor change order item."""

    __tablename__ = "labor_change_order_items"

    change_order_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("change_orders.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    co_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "change_order_uuid": as_record_id(self.change_order_id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "co_amount": self.co_amount,
            "is_active": self.is_active,
        }
