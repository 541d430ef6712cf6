"""Tests for the recurrence scheduler."""

import pytest
from datetime import date
from decimal import Decimal

from lifeledger.ledger.recurrence import (
    advance_next_due_date,
    advance_next_reset_date,
    budgets_due_for_reset,
    compute_next_due_date,
    due_soon,
)
from lifeledger.models.records import (
    Budget,
    BudgetCategory,
    Expense,
    ExpenseCategory,
    Frequency,
    Income,
    IncomeCategory,
)


def make_income(**overrides) -> Income:
    data = dict(
        user_id="u1",
        name="Salary",
        amount=Decimal("3000"),
        category=IncomeCategory.SALARY,
        date=date(2024, 1, 31),
        is_recurring=True,
        frequency=Frequency.MONTHLY,
    )
    data.update(overrides)
    return Income(**data)


def make_recurring_budget(**overrides) -> Budget:
    data = dict(
        user_id="u1",
        name="Groceries",
        category=BudgetCategory.FOOD_AND_DINING,
        amount=Decimal("400"),
        is_recurring=True,
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 3, 1),
    )
    data.update(overrides)
    return Budget(**data)


class TestComputeNextDueDate:
    """Tests for the per-frequency date arithmetic."""

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            (Frequency.WEEKLY, date(2024, 3, 22)),
            (Frequency.BI_WEEKLY, date(2024, 3, 29)),
            (Frequency.MONTHLY, date(2024, 4, 15)),
            (Frequency.QUARTERLY, date(2024, 6, 15)),
            (Frequency.YEARLY, date(2025, 3, 15)),
        ],
    )
    def test_each_frequency(self, frequency, expected):
        assert compute_next_due_date(date(2024, 3, 15), frequency) == expected

    def test_accepts_frequency_value(self):
        assert compute_next_due_date(date(2024, 3, 15), "bi-weekly") == date(2024, 3, 29)

    def test_month_end_is_clamped(self):
        """Test Jan 31 + 1 month lands on the last day of February."""
        assert compute_next_due_date(date(2024, 1, 31), Frequency.MONTHLY) == date(2024, 2, 29)
        assert compute_next_due_date(date(2023, 1, 31), Frequency.MONTHLY) == date(2023, 2, 28)
        assert compute_next_due_date(date(2024, 2, 29), Frequency.YEARLY) == date(2025, 2, 28)

    def test_unknown_frequency_rejected(self):
        with pytest.raises(ValueError):
            compute_next_due_date(date(2024, 3, 15), "fortnightly")


class TestAdvanceNextDueDate:
    """Tests for stepping a record's due date."""

    def test_first_step_anchors_on_record_date(self):
        income = make_income()
        assert advance_next_due_date(income) == date(2024, 2, 29)
        assert income.next_due_date == date(2024, 2, 29)

    def test_repeated_calls_step_forward(self):
        """Test chaining re-anchors on the stored date."""
        income = make_income()
        advance_next_due_date(income)
        advance_next_due_date(income)
        assert income.next_due_date == date(2024, 3, 29)

    def test_non_recurring_record_untouched(self):
        expense = Expense(
            user_id="u1",
            name="Laptop",
            amount=Decimal("999"),
            category=ExpenseCategory.SHOPPING,
        )
        updated_at = expense.updated_at
        assert advance_next_due_date(expense) is None
        assert expense.next_due_date is None
        assert expense.updated_at == updated_at


class TestBudgetResets:
    """Tests for recurring budget reset scheduling."""

    def test_reset_date_anchors_on_start_date(self):
        budget = make_recurring_budget()
        assert advance_next_reset_date(budget) == date(2024, 4, 1)
        assert advance_next_reset_date(budget) == date(2024, 5, 1)

    def test_one_off_budget_has_no_reset(self):
        budget = Budget(
            user_id="u1",
            name="Holiday",
            category=BudgetCategory.TRAVEL,
            amount=Decimal("1200"),
        )
        assert advance_next_reset_date(budget) is None

    def test_budgets_due_for_reset(self):
        due = make_recurring_budget(name="Due", next_reset_date=date(2024, 4, 1))
        later = make_recurring_budget(name="Later", next_reset_date=date(2024, 5, 1))
        closed = make_recurring_budget(
            name="Closed", next_reset_date=date(2024, 3, 1), is_closed=True
        )
        result = budgets_due_for_reset([later, closed, due], today=date(2024, 4, 1))
        assert [b.name for b in result] == ["Due"]


class TestDueSoon:
    """Tests for upcoming recurring records."""

    def test_due_soon_window_and_order(self):
        today = date(2024, 3, 10)
        soon = make_income(name="Soon", next_due_date=date(2024, 3, 15))
        sooner = make_income(name="Sooner", next_due_date=date(2024, 3, 12))
        past = make_income(name="Past", next_due_date=date(2024, 3, 1))
        far = make_income(name="Far", next_due_date=date(2024, 3, 30))
        unscheduled = make_income(name="Unscheduled")

        result = due_soon([soon, far, sooner, past, unscheduled], days_ahead=7, today=today)

        # Past-due records stay in the list until they are advanced
        assert [r.name for r in result] == ["Past", "Sooner", "Soon"]
