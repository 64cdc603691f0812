"""Selectors for the budget kernel (read side)."""

from budget_kernel.selectors.base import BaseSelector
from budget_kernel.selectors.budget_source_selector import BudgetSourceSelector

__all__ = [
    "BaseSelector",
    "BudgetSourceSelector",
]
