"""Integration tests for the finance overview flow (in-memory storage)."""

import pytest
from datetime import date
from decimal import Decimal

from lifeledger.audit import AuditLogger
from lifeledger.health import HealthLevel
from lifeledger.models.audit import AuditEventType
from lifeledger.models.records import (
    Budget,
    BudgetCategory,
    Currency,
    Expense,
    ExpenseCategory,
    Frequency,
    Income,
    IncomeCategory,
)
from lifeledger.orchestrator import FinanceOverviewFlow
from lifeledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    StorageError,
)


class FailingStorage(InMemoryRecordStorage):
    async def find_by_user_and_date_range(self, user_id, start_date=None, end_date=None, currency=None):
        raise StorageError("sheet offline")


def reference_records():
    incomes = [
        Income(user_id="u1", name="Salary", amount=Decimal("3000"),
               category=IncomeCategory.SALARY, date=date(2024, 2, 28),
               is_recurring=True, frequency=Frequency.MONTHLY,
               next_due_date=date(2024, 7, 3)),
        Income(user_id="u1", name="Dollars", amount=Decimal("400"),
               currency=Currency.USD, category=IncomeCategory.FREELANCE,
               date=date(2024, 3, 2)),
    ]
    expenses = [
        Expense(user_id="u1", name="Rent", amount=Decimal("1800"),
                paid_amount=Decimal("1800"), is_paid=True,
                category=ExpenseCategory.BILLS_AND_UTILITIES, date=date(2024, 3, 1)),
    ]
    return incomes, expenses


def make_flow(incomes=(), expenses=(), budgets=(), audit_storage=None, **kw):
    return FinanceOverviewFlow(
        expense_storage=InMemoryRecordStorage(expenses),
        income_storage=InMemoryRecordStorage(incomes),
        budget_storage=InMemoryRecordStorage(budgets),
        audit_logger=AuditLogger(audit_storage) if audit_storage else None,
        **kw,
    )


class TestFinanceOverviewFlow:
    @pytest.mark.asyncio
    async def test_reference_overview(self):
        incomes, expenses = reference_records()
        audit_storage = InMemoryAuditStorage()
        flow = make_flow(incomes, expenses, audit_storage=audit_storage)

        overview = await flow.build_overview(
            "u1",
            Currency.GBP,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 6, 30),
            today=date(2024, 6, 30),
        )

        assert overview.report.total_score == 96
        assert overview.report.health_level == HealthLevel.EXCELLENT
        assert overview.report.totals.window_months == 6
        assert overview.degraded == []
        assert set(overview.income_by_currency) == {Currency.GBP, Currency.USD}
        assert overview.expense_statuses.paid == 1
        assert [u.name for u in overview.upcoming] == ["Salary"]
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.HEALTH_SCORE_COMPUTED
        ]

    @pytest.mark.asyncio
    async def test_failed_fetch_degrades_to_empty(self):
        incomes, expenses = reference_records()
        audit_storage = InMemoryAuditStorage()
        flow = FinanceOverviewFlow(
            expense_storage=InMemoryRecordStorage(expenses),
            income_storage=InMemoryRecordStorage(incomes),
            budget_storage=FailingStorage(),
            audit_logger=AuditLogger(audit_storage),
        )

        overview = await flow.build_overview("u1", Currency.GBP)

        assert overview.degraded == ["budgets"]
        assert overview.budgets_by_currency == {}
        assert overview.report.scores.budget_control == 100
        assert overview.report.totals.income_total == Decimal("3000")
        event_types = [e.event_type for e in audit_storage.events]
        assert AuditEventType.FETCH_DEGRADED in event_types
        assert event_types[-1] == AuditEventType.HEALTH_SCORE_COMPUTED

    @pytest.mark.asyncio
    async def test_all_fetches_failing_still_scores(self):
        flow = FinanceOverviewFlow(
            expense_storage=FailingStorage(),
            income_storage=FailingStorage(),
            budget_storage=FailingStorage(),
        )

        overview = await flow.build_overview("u1")

        assert overview.degraded == ["budgets", "expenses", "incomes"]
        assert overview.currency == Currency.GBP
        assert overview.report.total_score == 40

    @pytest.mark.asyncio
    async def test_window_falls_back_to_configured_months(self):
        incomes, expenses = reference_records()
        flow = make_flow(incomes, expenses, window_months=3)

        overview = await flow.build_overview("u1", Currency.GBP)

        assert overview.report.totals.window_months == 3
        assert overview.report.totals.emergency_fund_months == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_date_range_limits_records(self):
        incomes, expenses = reference_records()
        flow = make_flow(incomes, expenses)

        overview = await flow.build_overview(
            "u1", Currency.GBP, start_date=date(2024, 4, 1), end_date=date(2024, 4, 30)
        )

        assert overview.report.totals.income_total == Decimal("0")
        assert overview.report.totals.expense_total == Decimal("0")
        assert overview.report.totals.window_months == 1

    @pytest.mark.asyncio
    async def test_budgets_and_presentation(self):
        incomes, expenses = reference_records()
        budgets = [
            Budget(user_id="u1", name="Bills", category=BudgetCategory.BILLS_AND_UTILITIES,
                   amount=Decimal("2000"), current_spent=Decimal("1800"),
                   date=date(2023, 12, 1)),
        ]
        flow = make_flow(incomes, expenses, budgets)

        overview = await flow.build_overview(
            "u1", Currency.GBP, start_date=date(2024, 1, 1), end_date=date(2024, 6, 30)
        )
        data = overview.to_dict()

        assert overview.report.totals.budget_adherence_rate == pytest.approx(10.0)
        assert overview.report.scores.budget_control == 10
        assert data["budgets"]["GBP"]["totalBudgeted"] == Decimal("2000")
        assert data["income"]["USD"] == {"totalAmount": Decimal("400"), "count": 1}
        assert data["categories"][0]["category"] == "Bills & Utilities"
        assert data["healthLevel"] == overview.report.health_level.value

    @pytest.mark.asyncio
    async def test_presentation_includes_upcoming(self):
        incomes, expenses = reference_records()
        flow = make_flow(incomes, expenses)

        overview = await flow.build_overview(
            "u1",
            Currency.GBP,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 6, 30),
            today=date(2024, 6, 30),
        )
        data = overview.to_dict()

        assert data["currency"] == "GBP"
        assert data["upcoming"] == [
            {
                "id": str(incomes[0].id),
                "type": "income",
                "name": "Salary",
                "amount": Decimal("3000"),
                "currency": "GBP",
                "nextDueDate": date(2024, 7, 3),
            }
        ]
