"""SQLAlchemy ORM models for the budget report source collections."""

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
from budget_kernel.models.invoice import (
    AdvancePaymentCostCodeModel,
    ChangeOrderInvoiceItemModel,
    DirectInvoiceLineItemModel,
    PurchaseOrderInvoiceItemModel,
    VendorInvoiceModel,
)
from budget_kernel.models.project import ProjectModel

__all__ = [
    "AdvancePaymentCostCodeModel",
    "ChangeOrderInvoiceItemModel",
    "ChangeOrderItemModel",
    "ChangeOrderModel",
    "CostCodeConfigurationModel",
    "CostCodeDivisionModel",
    "DirectInvoiceLineItemModel",
    "EstimateLineItemModel",
    "EstimateModel",
    "LaborChangeOrderItemModel",
    "LaborPurchaseOrderItemModel",
    "ProjectModel",
    "PurchaseOrderInvoiceItemModel",
    "PurchaseOrderItemModel",
    "VendorInvoiceModel",
]
