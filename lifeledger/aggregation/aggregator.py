"""
Aggregation Layer

DESIGN DECISION: Aggregation is a set of free functions over record
collections. They never talk to storage, so the same code sums records
fetched from Google Sheets, from memory, or built inline in a test.

GUARANTEES:
- Totals are always keyed by currency
- Amounts in different currencies are never added together
- Empty input gives an empty mapping (callers supply zero defaults)
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lifeledger.models.records import (
    Budget,
    Currency,
    Expense,
    ExpenseCategory,
    Income,
    MoneyRecord,
    percentage_of,
)

ZERO = Decimal("0")

AnyRecord = Union[Expense, Income, Budget, MoneyRecord]


# =============================================================================
# RESULT MODELS
# =============================================================================

class _Totals(BaseModel):
    """Base for aggregation results: camelCase on output for the presentation layer."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"currency"})


class CurrencyTotals(_Totals):
    """
    Totals for one currency.

    ``total_paid`` and ``total_remaining`` are only filled for expenses.
    """
    currency: Currency
    total_amount: Decimal = ZERO
    total_paid: Optional[Decimal] = None
    total_remaining: Optional[Decimal] = None
    count: int = 0


class BudgetTotals(_Totals):
    """Totals across the open budgets of one currency."""
    currency: Currency
    total_budgeted: Decimal = ZERO
    total_spent: Decimal = ZERO
    total_remaining: Decimal = ZERO
    spent_percentage: int = 0
    count: int = 0
    exceeded_count: int = 0


class CategoryTotal(_Totals):
    """Paid spending in one expense category."""
    category: ExpenseCategory
    total_spent: Decimal = ZERO
    transaction_count: int = 0


class ExpenseStatusCounts(_Totals):
    """How many expenses are in each settlement state."""
    total: int = 0
    paid: int = 0
    unpaid: int = 0
    overdue: int = Field(default=0, description="Overdue and not yet paid")


# =============================================================================
# FILTERING
# =============================================================================

def record_date(record: AnyRecord) -> Optional[date]:
    """
    The date a record is filed under.

    Recurring budgets have no single date; they are filed under their
    start date.
    """
    if isinstance(record, Budget):
        return record.date or record.start_date
    return record.date


def filter_records(
    records: Iterable[AnyRecord],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    currency: Optional[Currency] = None,
) -> list:
    """
    Keep records inside an inclusive date range and, optionally, one currency.

    A record without any date is kept only when no date bound is given.
    """
    selected = []
    for record in records:
        when = record_date(record)
        if start_date or end_date:
            if when is None:
                continue
            if start_date and when < start_date:
                continue
            if end_date and when > end_date:
                continue
        if currency and record.currency != currency:
            continue
        selected.append(record)
    return selected


# =============================================================================
# AGGREGATION
# =============================================================================

def aggregate_by_currency(
    records: Iterable[AnyRecord],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    currency: Optional[Currency] = None,
) -> dict[Currency, CurrencyTotals]:
    """
    Sum income or expense records per currency.

    Returns one entry per currency present after filtering. Expense
    groups also carry paid and remaining totals.
    """
    groups: dict[Currency, list] = defaultdict(list)
    for record in filter_records(records, start_date, end_date, currency):
        groups[record.currency].append(record)

    result = {}
    for code, group in groups.items():
        total = sum((r.amount for r in group), ZERO)
        totals = CurrencyTotals(currency=code, total_amount=total, count=len(group))

        if all(isinstance(r, Expense) for r in group):
            paid = sum((r.paid_amount for r in group), ZERO)
            totals.total_paid = paid
            totals.total_remaining = total - paid

        result[code] = totals
    return result


def aggregate_by_user(
    records: Iterable[AnyRecord],
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    currency: Optional[Currency] = None,
) -> dict[Currency, CurrencyTotals]:
    """Per-currency totals for one user's records."""
    owned = [r for r in records if r.user_id == user_id]
    return aggregate_by_currency(owned, start_date, end_date, currency)


def aggregate_budgets_by_currency(
    budgets: Iterable[Budget],
    currency: Optional[Currency] = None,
) -> dict[Currency, BudgetTotals]:
    """
    Allocation and spending per currency, over open budgets only.

    Closed, inactive and deleted budgets are left out.
    """
    groups: dict[Currency, list[Budget]] = defaultdict(list)
    for budget in budgets:
        if not budget.is_open:
            continue
        if currency and budget.currency != currency:
            continue
        groups[budget.currency].append(budget)

    result = {}
    for code, group in groups.items():
        budgeted = sum((b.amount for b in group), ZERO)
        spent = sum((b.current_spent for b in group), ZERO)
        result[code] = BudgetTotals(
            currency=code,
            total_budgeted=budgeted,
            total_spent=spent,
            total_remaining=max(ZERO, budgeted - spent),
            spent_percentage=percentage_of(spent, budgeted),
            count=len(group),
            exceeded_count=sum(1 for b in group if b.is_exceeded),
        )
    return result


def category_breakdown(
    expenses: Iterable[Expense],
    currency: Currency,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[CategoryTotal]:
    """Paid spending per category for one currency, largest first."""
    groups: dict[ExpenseCategory, list[Expense]] = defaultdict(list)
    for expense in filter_records(expenses, start_date, end_date, currency):
        if expense.is_paid:
            groups[expense.category].append(expense)

    breakdown = [
        CategoryTotal(
            category=category,
            total_spent=sum((e.paid_amount for e in group), ZERO),
            transaction_count=len(group),
        )
        for category, group in groups.items()
    ]
    breakdown.sort(key=lambda c: c.total_spent, reverse=True)
    return breakdown


def count_expense_statuses(expenses: Sequence[Expense]) -> ExpenseStatusCounts:
    """Count expenses by settlement flag."""
    return ExpenseStatusCounts(
        total=len(expenses),
        paid=sum(1 for e in expenses if e.is_paid),
        unpaid=sum(1 for e in expenses if not e.is_paid),
        overdue=sum(1 for e in expenses if e.is_overdue and not e.is_paid),
    )


def months_between(start_date: date, end_date: date) -> int:
    """
    Number of calendar months an aggregation window covers.

    Partial months count as a whole month; the result is at least 1.
    """
    if end_date < start_date:
        raise ValueError("End date cannot be before start date")
    delta = relativedelta(end_date, start_date)
    months = delta.years * 12 + delta.months
    if delta.days > 0:
        months += 1
    return max(1, months)
