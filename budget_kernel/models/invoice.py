"""
SQLAlchemy ORM models for vendor invoices.

An invoice header carries the full ``amount`` (items, charges and taxes) and
an ``invoice_type`` discriminant selecting which of the four item
collections holds its cost-code breakdown:

    AGAINST_PO               -> po_invoice_items
    AGAINST_CO               -> co_invoice_items
    AGAINST_ADVANCE_PAYMENT  -> advance_payment_cost_codes
    ENTER_DIRECT_INVOICE     -> line_items

``project_id`` is nullable: invoices are listed corporation-wide and the
report filters them by project client-side.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase, UUIDString, as_record_id


class VendorInvoiceModel(TrackedBase):
    """Vendor invoice header."""

    __tablename__ = "vendor_invoices"

    __table_args__ = (
        Index("idx_invoice_corporation", "corporation_id"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    invoice_type: Mapped[str | None] = mapped_column(String(40), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Draft")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    po_invoice_items: Mapped[list["PurchaseOrderInvoiceItemModel"]] = relationship(
        "PurchaseOrderInvoiceItemModel", cascade="all, delete-orphan", lazy="selectin",
    )
    co_invoice_items: Mapped[list["ChangeOrderInvoiceItemModel"]] = relationship(
        "ChangeOrderInvoiceItemModel", cascade="all, delete-orphan", lazy="selectin",
    )
    advance_payment_cost_codes: Mapped[list["AdvancePaymentCostCodeModel"]] = relationship(
        "AdvancePaymentCostCodeModel", cascade="all, delete-orphan", lazy="selectin",
    )
    line_items: Mapped[list["DirectInvoiceLineItemModel"]] = relationship(
        "DirectInvoiceLineItemModel", cascade="all, delete-orphan", lazy="selectin",
    )

    def to_record(self) -> dict[str, Any]:
        """Header only, as returned by the corporation-wide listing."""
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "project_uuid": as_record_id(self.project_id),
            "invoice_type": self.invoice_type,
            "status": self.status,
            "is_active": self.is_active,
            "amount": self.amount,
        }

    def to_detail_record(self) -> dict[str, Any]:
        """Header plus every item collection."""
        record = self.to_record()
        record["po_invoice_items"] = [i.to_record() for i in self.po_invoice_items]
        record["co_invoice_items"] = [i.to_record() for i in self.co_invoice_items]
        record["advance_payment_cost_codes"] = [
            i.to_record() for i in self.advance_payment_cost_codes
        ]
        record["line_items"] = [i.to_record() for i in self.line_items]
        return record

    def __repr__(self) -> str:
        return f"<VendorInvoiceModel {self.id} {self.invoice_type} [{self.status}]>"


class PurchaseOrderInvoiceItemModel(TrackedBase):
    """Item of an invoice raised against a purchase order."""

    __tablename__ = "purchase_order_invoice_items"

    vendor_invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("vendor_invoices.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    invoice_total: Mapped[Decimal | None] = mapped_column(nullable=True)
    invoice_unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    invoice_quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "invoice_total": self.invoice_total,
            "invoice_unit_price": self.invoice_unit_price,
            "invoice_quantity": self.invoice_quantity,
            "is_active": self.is_active,
        }


class ChangeOrderInvoiceItemModel(TrackedBase):
    """Item of an invoice raised against a change order."""

    __tablename__ = "change_order_invoice_items"

    vendor_invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("vendor_invoices.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    invoice_total: Mapped[Decimal | None] = mapped_column(nullable=True)
    invoice_unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    invoice_quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "invoice_total": self.invoice_total,
            "invoice_unit_price": self.invoice_unit_price,
            "invoice_quantity": self.invoice_quantity,
            "is_active": self.is_active,
        }


class AdvancePaymentCostCodeModel(TrackedBase):
    """Cost-code split of an advance payment invoice."""

    __tablename__ = "advance_payment_cost_codes"

    vendor_invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("vendor_invoices.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    advance_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "advance_amount": self.advance_amount,
            "is_active": self.is_active,
        }


class DirectInvoiceLineItemModel(TrackedBase):
    """Line of an invoice entered directly (no PO/CO behind it)."""

    __tablename__ = "direct_invoice_line_items"

    vendor_invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("vendor_invoices.id"), nullable=False, index=True,
    )
    cost_code_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    total: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "cost_code_uuid": as_record_id(self.cost_code_id),
            "total": self.total,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "is_active": self.is_active,
        }
