"""
Entry Ledger

Adding and removing income and expense records. A new expense is
attributed to the owner's matching budgets once it has been saved.

If the budget attribution fails, the expense stays saved and the
failure is logged as a system error; it is not rolled back.
"""

from typing import Optional
from uuid import UUID

import structlog

from lifeledger.audit import AuditLogger
from lifeledger.errors import NotFoundError
from lifeledger.ledger.budgets import BudgetLedger
from lifeledger.ledger.persistence import persist_record
from lifeledger.models.records import Budget, Expense, MoneyRecord
from lifeledger.services.storage import RecordStorageInterface, StorageError

logger = structlog.get_logger(__name__)


class EntryLedger:
    """Creates and removes the records held in one storage."""

    def __init__(
        self,
        storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        budget_ledger: Optional[BudgetLedger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._budget_ledger = budget_ledger

    async def add(
        self,
        record: MoneyRecord,
        correlation_id: Optional[UUID] = None,
    ) -> MoneyRecord:
        """Save a new income or expense."""
        await persist_record(self._storage, record, self._audit_logger, correlation_id)
        if self._audit_logger:
            await self._audit_logger.log_record_saved(
                entity_type=type(record).__name__.lower(),
                entity_id=record.id,
                name=record.name,
                amount=record.formatted_amount(),
                correlation_id=correlation_id,
            )
        return record

    async def add_expense(
        self,
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> list[Budget]:
        """
        Save a new expense and attribute it to matching budgets.

        Returns the budgets that took the spending.
        """
        await self.add(expense, correlation_id)
        if self._budget_ledger is None:
            return []

        try:
            return await self._budget_ledger.apply_expense(expense, correlation_id)
        except StorageError as e:
            logger.error(
                "budget_attribution_failed",
                expense_id=str(expense.id),
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="budget_attribution_failed",
                    error_message=str(e),
                    details={"expense_id": str(expense.id)},
                    correlation_id=correlation_id,
                )
            return []

    async def remove(
        self,
        record_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete one of a user's records. Records of other users are not found."""
        record = await self._storage.get_by_id(record_id)
        if record is None or record.user_id != user_id:
            raise NotFoundError(f"Record not found: {record_id}")

        await self._storage.delete(record_id)
        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                entity_type=type(record).__name__.lower(),
                entity_id=record.id,
                correlation_id=correlation_id,
            )
