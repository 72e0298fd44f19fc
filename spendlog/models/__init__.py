"""Pydantic domain models for the Spendlog expense tracker."""

from .constants import (
    CATEGORY_KINDS,
    CATEGORY_PALETTE,
    NEUTRAL_COLOR,
    UNCATEGORIZED_NAME,
    ColorToken,
)  # re-export
from .category import Category, CategoryIn, CategoryUpdateIn
from .expense import ExpenseIn, ExpenseRecord, ExpenseUpdateIn
from .settings import BudgetConfiguration, BudgetConfigurationUpdate

__all__ = [
    "CATEGORY_KINDS",
    "CATEGORY_PALETTE",
    "NEUTRAL_COLOR",
    "UNCATEGORIZED_NAME",
    "ColorToken",
    "Category",
    "CategoryIn",
    "CategoryUpdateIn",
    "ExpenseIn",
    "ExpenseRecord",
    "ExpenseUpdateIn",
    "BudgetConfiguration",
    "BudgetConfigurationUpdate",
]
