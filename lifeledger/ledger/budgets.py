"""
Budget Ledger

Spending attribution and lifecycle operations for budgets.
Like the payment ledger, the mutations are plain functions and
``BudgetLedger`` adds persistence and auditing on top.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from lifeledger.audit import AuditLogger
from lifeledger.errors import NotFoundError, ValidationError
from lifeledger.ledger.payments import Amount, to_amount
from lifeledger.ledger.persistence import persist_record
from lifeledger.ledger.recurrence import advance_next_reset_date, budgets_due_for_reset
from lifeledger.models.records import Budget, BudgetStatus, Expense
from lifeledger.services.storage import RecordStorageInterface


# =============================================================================
# MUTATIONS
# =============================================================================

def add_spending(budget: Budget, amount: Amount) -> BudgetStatus:
    """Increase ``current_spent``. Spending past the allocation is allowed."""
    spend = to_amount(amount)
    if spend < 0:
        raise ValidationError("Spending amount cannot be negative")
    budget.current_spent = budget.current_spent + spend
    budget.touch()
    return budget.status


def budget_matches(budget: Budget, expense: Expense) -> bool:
    """An open budget with the same category name and currency as the expense."""
    return (
        budget.is_open
        and budget.user_id == expense.user_id
        and budget.category.value == expense.category.value
        and budget.currency == expense.currency
    )


def apply_expense_to_budget(budget: Budget, expense: Expense) -> bool:
    """
    Attribute an expense to a budget if it matches.

    Returns True when the budget's spending was increased.
    """
    if not budget_matches(budget, expense):
        return False
    add_spending(budget, expense.amount)
    return True


def apply_expense_to_matching_budgets(
    budgets: Iterable[Budget],
    expense: Expense,
) -> list[Budget]:
    """Attribute an expense to every matching budget; returns the ones updated."""
    return [b for b in budgets if apply_expense_to_budget(b, expense)]


def close_budget(budget: Budget, closed_on: Optional[date] = None) -> BudgetStatus:
    if not budget.is_closed:
        budget.is_closed = True
        budget.closed_date = closed_on or date.today()
        budget.touch()
    return budget.status


def reopen_budget(budget: Budget) -> BudgetStatus:
    budget.is_closed = False
    budget.closed_date = None
    budget.touch()
    return budget.status


def soft_delete_budget(budget: Budget, deleted_on: Optional[date] = None) -> BudgetStatus:
    """Archive a budget. It stops counting towards totals but is kept."""
    if not budget.is_deleted:
        budget.is_deleted = True
        budget.deleted_date = deleted_on or date.today()
        budget.is_active = False
        budget.touch()
    return budget.status


def restore_budget(budget: Budget) -> BudgetStatus:
    budget.is_deleted = False
    budget.deleted_date = None
    budget.is_active = True
    budget.touch()
    return budget.status


def reset_budget(budget: Budget, today: Optional[date] = None) -> BudgetStatus:
    """Start a new period: spending back to zero, reopened, next reset scheduled."""
    budget.current_spent = Decimal("0")
    budget.is_closed = False
    budget.closed_date = None
    if budget.is_recurring:
        advance_next_reset_date(budget, today)
    budget.touch()
    return budget.status


# =============================================================================
# PERSISTED LEDGER
# =============================================================================

class BudgetLedger:
    """Applies budget operations to stored budgets."""

    def __init__(
        self,
        storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def _load(self, budget_id: UUID) -> Budget:
        budget = await self._storage.get_by_id(budget_id)
        if budget is None or not isinstance(budget, Budget):
            raise NotFoundError(f"Budget not found: {budget_id}")
        return budget

    async def apply_expense(
        self,
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> list[Budget]:
        """
        Attribute an expense to every matching open budget of its owner.

        Returns the budgets that were updated.
        """
        budgets: Iterable[Budget] = await self._storage.find_by_user_and_date_range(
            expense.user_id,
        )

        updated = apply_expense_to_matching_budgets(budgets, expense)
        for budget in updated:
            await self._persist(budget, correlation_id)
            if self._audit_logger:
                await self._audit_logger.log_budget_spending_applied(
                    budget_id=budget.id,
                    expense_id=expense.id,
                    amount=expense.formatted_amount(),
                    status=budget.status.value,
                    correlation_id=correlation_id,
                )
        return updated

    async def close(self, budget_id: UUID, correlation_id: Optional[UUID] = None) -> Budget:
        budget = await self._load(budget_id)
        close_budget(budget)
        return await self._save(budget, "closed", correlation_id)

    async def reopen(self, budget_id: UUID, correlation_id: Optional[UUID] = None) -> Budget:
        budget = await self._load(budget_id)
        reopen_budget(budget)
        return await self._save(budget, "reopened", correlation_id)

    async def soft_delete(self, budget_id: UUID, correlation_id: Optional[UUID] = None) -> Budget:
        budget = await self._load(budget_id)
        soft_delete_budget(budget)
        return await self._save(budget, "archived", correlation_id)

    async def restore(self, budget_id: UUID, correlation_id: Optional[UUID] = None) -> Budget:
        budget = await self._load(budget_id)
        restore_budget(budget)
        return await self._save(budget, "restored", correlation_id)

    async def reset(
        self,
        budget_id: UUID,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        budget = await self._load(budget_id)
        reset_budget(budget, today)
        return await self._save(budget, "reset", correlation_id)

    async def reset_due(
        self,
        user_id: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Budget]:
        """Reset every recurring budget of a user whose reset date has arrived."""
        budgets = await self._storage.find_by_user_and_date_range(user_id)
        reset = []
        for budget in budgets_due_for_reset(budgets, today):
            reset_budget(budget, today)
            reset.append(await self._save(budget, "reset", correlation_id))
        return reset

    async def _persist(self, budget: Budget, correlation_id: Optional[UUID]) -> None:
        await persist_record(self._storage, budget, self._audit_logger, correlation_id)

    async def _save(
        self,
        budget: Budget,
        action: str,
        correlation_id: Optional[UUID],
    ) -> Budget:
        await self._persist(budget, correlation_id)
        if self._audit_logger:
            await self._audit_logger.log_budget_status_updated(
                budget_id=budget.id,
                action=action,
                status=budget.status.value,
                correlation_id=correlation_id,
            )
        return budget
