"""Aggregation package."""

from lifeledger.aggregation.aggregator import (
    BudgetTotals,
    CategoryTotal,
    CurrencyTotals,
    ExpenseStatusCounts,
    aggregate_budgets_by_currency,
    aggregate_by_currency,
    aggregate_by_user,
    category_breakdown,
    count_expense_statuses,
    filter_records,
    months_between,
    record_date,
)

__all__ = [
    "BudgetTotals",
    "CategoryTotal",
    "CurrencyTotals",
    "ExpenseStatusCounts",
    "aggregate_budgets_by_currency",
    "aggregate_by_currency",
    "aggregate_by_user",
    "category_breakdown",
    "count_expense_statuses",
    "filter_records",
    "months_between",
    "record_date",
]
