"""
Main Orchestrator for Life Ledger

Ties the storage, aggregation and scoring components together into the
finance overview flow:
    fetch budgets, expenses, incomes (concurrently)
        → aggregate per currency
        → compute totals for the requested currency
        → score

DESIGN DECISION: A failed fetch never aborts the overview.
- Each of the three fetches is guarded on its own
- A failure is logged (structlog and audit) and that category becomes empty
- Aggregation starts only once all three fetches have finished
- No retries or timeouts on these fetches

The scorer therefore always receives well-formed, possibly zeroed totals.
"""

import asyncio
from datetime import date
from typing import Awaitable, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from lifeledger.aggregation import (
    BudgetTotals,
    CategoryTotal,
    CurrencyTotals,
    ExpenseStatusCounts,
    aggregate_budgets_by_currency,
    aggregate_by_currency,
    category_breakdown,
    count_expense_statuses,
    filter_records,
    months_between,
)
from lifeledger.audit import AuditLogger, create_correlation_id
from lifeledger.config import get_settings
from lifeledger.health import DEFAULT_WINDOW_MONTHS, HealthReport, compute_totals, score
from lifeledger.ledger import due_soon
from lifeledger.models.records import Currency, Expense, Income
from lifeledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
    InMemoryRecordStorage,
    RecordStorageInterface,
)

logger = structlog.get_logger(__name__)


class FinanceOverview(BaseModel):
    """Everything the finance dashboard shows for one request."""

    user_id: str
    currency: Currency
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    report: HealthReport
    income_by_currency: dict[Currency, CurrencyTotals] = Field(default_factory=dict)
    expenses_by_currency: dict[Currency, CurrencyTotals] = Field(default_factory=dict)
    budgets_by_currency: dict[Currency, BudgetTotals] = Field(default_factory=dict)
    categories: list[CategoryTotal] = Field(default_factory=list)
    expense_statuses: ExpenseStatusCounts = Field(default_factory=ExpenseStatusCounts)
    upcoming: list[Union[Expense, Income]] = Field(
        default_factory=list,
        description="Recurring records due soon, soonest first",
    )

    degraded: list[str] = Field(
        default_factory=list,
        description="Record categories whose fetch failed and were treated as empty",
    )

    def to_dict(self) -> dict:
        """Presentation shape: the health report, currency-keyed totals and upcoming dues."""
        return {
            **self.report.to_dict(),
            "income": {c.value: t.to_dict() for c, t in self.income_by_currency.items()},
            "expenses": {c.value: t.to_dict() for c, t in self.expenses_by_currency.items()},
            "budgets": {c.value: t.to_dict() for c, t in self.budgets_by_currency.items()},
            "categories": [
                {**c.to_dict(), "category": c.category.value} for c in self.categories
            ],
            "expenseStatuses": self.expense_statuses.to_dict(),
            "currency": self.currency.value,
            "upcoming": [
                {
                    "id": str(r.id),
                    "type": type(r).__name__.lower(),
                    "name": r.name,
                    "amount": r.amount,
                    "currency": r.currency.value,
                    "nextDueDate": r.next_due_date,
                }
                for r in self.upcoming
            ],
            "degraded": list(self.degraded),
        }


class FinanceOverviewFlow:
    """
    Builds the finance overview for a user.

    Reads from three record storages and never writes.
    """

    def __init__(
        self,
        expense_storage: RecordStorageInterface,
        income_storage: RecordStorageInterface,
        budget_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        window_months: int = DEFAULT_WINDOW_MONTHS,
        due_soon_days: int = 7,
        default_currency: Currency = Currency.GBP,
    ):
        self._expense_storage = expense_storage
        self._income_storage = income_storage
        self._budget_storage = budget_storage
        self._audit_logger = audit_logger
        self._window_months = window_months
        self._due_soon_days = due_soon_days
        self._default_currency = default_currency

    async def _safe_fetch(
        self,
        category: str,
        fetch: Awaitable[list],
        degraded: list[str],
        correlation_id: UUID,
    ) -> list:
        """Await one fetch; on any failure log it and return an empty list."""
        try:
            return await fetch
        except Exception as e:
            degraded.append(category)
            logger.warning(
                "overview_fetch_failed",
                category=category,
                error=str(e),
                correlation_id=str(correlation_id),
            )
            if self._audit_logger:
                await self._audit_logger.log_fetch_degraded(
                    category=category,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return []

    def _window_for(self, start_date: Optional[date], end_date: Optional[date]) -> int:
        if start_date and end_date:
            return months_between(start_date, end_date)
        return self._window_months

    async def build_overview(
        self,
        user_id: str,
        currency: Optional[Currency] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FinanceOverview:
        """
        Fetch, aggregate and score one user's finances.

        Expenses and incomes are limited to the inclusive date range;
        budgets are fetched whole and only open ones count.
        """
        currency = currency or self._default_currency
        correlation_id = correlation_id or create_correlation_id()
        degraded: list[str] = []

        budgets, expenses, incomes = await asyncio.gather(
            self._safe_fetch(
                "budgets",
                self._budget_storage.find_by_user_and_date_range(user_id),
                degraded,
                correlation_id,
            ),
            self._safe_fetch(
                "expenses",
                self._expense_storage.find_by_user_and_date_range(
                    user_id, start_date, end_date
                ),
                degraded,
                correlation_id,
            ),
            self._safe_fetch(
                "incomes",
                self._income_storage.find_by_user_and_date_range(
                    user_id, start_date, end_date
                ),
                degraded,
                correlation_id,
            ),
        )

        totals = compute_totals(
            budgets,
            expenses,
            incomes,
            currency=currency,
            window_months=self._window_for(start_date, end_date),
        )
        report = score(totals)

        logger.info(
            "overview_built",
            user_id=user_id,
            currency=currency.value,
            total_score=report.total_score,
            health_level=report.health_level.value,
            correlation_id=str(correlation_id),
        )
        if self._audit_logger:
            await self._audit_logger.log_health_score_computed(
                user_id=user_id,
                currency=currency.value,
                total_score=report.total_score,
                health_level=report.health_level.value,
                correlation_id=correlation_id,
            )

        return FinanceOverview(
            user_id=user_id,
            currency=currency,
            start_date=start_date,
            end_date=end_date,
            report=report,
            income_by_currency=aggregate_by_currency(incomes),
            expenses_by_currency=aggregate_by_currency(expenses),
            budgets_by_currency=aggregate_budgets_by_currency(budgets),
            categories=category_breakdown(expenses, currency),
            expense_statuses=count_expense_statuses(
                filter_records(expenses, currency=currency)
            ),
            upcoming=due_soon(
                [*expenses, *incomes],
                days_ahead=self._due_soon_days,
                today=today,
            ),
            degraded=sorted(degraded),
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[FinanceOverviewFlow, AuditLogger, Optional[GoogleSheetsClient]]:
    """
    Factory function to create the application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run against empty in-memory storage.

    Returns:
        (overview_flow, audit_logger, sheets_client)
    """
    settings = get_settings().app
    sheets_client = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            expense_storage = GoogleSheetsRecordStorage.for_expenses(sheets_client)
            income_storage = GoogleSheetsRecordStorage.for_incomes(sheets_client)
            budget_storage = GoogleSheetsRecordStorage.for_budgets(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            use_storage = False

    if not use_storage:
        sheets_client = None
        expense_storage = InMemoryRecordStorage()
        income_storage = InMemoryRecordStorage()
        budget_storage = InMemoryRecordStorage()
        audit_logger = AuditLogger()  # Local-only logging

    overview_flow = FinanceOverviewFlow(
        expense_storage=expense_storage,
        income_storage=income_storage,
        budget_storage=budget_storage,
        audit_logger=audit_logger,
        window_months=settings.aggregation_window_months,
        due_soon_days=settings.due_soon_days,
        default_currency=Currency(settings.default_currency),
    )

    return overview_flow, audit_logger, sheets_client
