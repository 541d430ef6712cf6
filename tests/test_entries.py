"""Tests for adding and removing income and expense records."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from lifeledger.audit import AuditLogger
from lifeledger.errors import NotFoundError
from lifeledger.ledger import BudgetLedger, EntryLedger
from lifeledger.models.audit import AuditEventType
from lifeledger.models.records import (
    Budget,
    BudgetCategory,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
)
from lifeledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    StorageError,
)


def make_expense(**overrides) -> Expense:
    data = dict(
        user_id="u1",
        name="Supermarket",
        amount=Decimal("60"),
        category=ExpenseCategory.FOOD_AND_DINING,
        date=date(2024, 3, 4),
    )
    data.update(overrides)
    return Expense(**data)


def make_budget(**overrides) -> Budget:
    data = dict(
        user_id="u1",
        name="Groceries",
        category=BudgetCategory.FOOD_AND_DINING,
        amount=Decimal("400"),
        date=date(2024, 3, 1),
    )
    data.update(overrides)
    return Budget(**data)


class FailingSaveStorage(InMemoryRecordStorage):
    """Reads work, every write fails."""

    async def save(self, record):
        raise StorageError("sheet offline")


class TestAdd:
    """Tests for saving new records."""

    @pytest.mark.asyncio
    async def test_add_income(self):
        storage = InMemoryRecordStorage()
        audit_storage = InMemoryAuditStorage()
        ledger = EntryLedger(storage, AuditLogger(audit_storage))
        income = Income(
            user_id="u1",
            name="Salary",
            amount=Decimal("2500"),
            category=IncomeCategory.SALARY,
        )

        await ledger.add(income)

        assert await storage.get_by_id(income.id) == income
        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.RECORD_SAVED
        assert event.entity_type == "income"
        assert event.details == {"name": "Salary", "amount": "£2500.00"}

    @pytest.mark.asyncio
    async def test_add_expense_updates_matching_budgets(self):
        budget_storage = InMemoryRecordStorage([make_budget()])
        audit_storage = InMemoryAuditStorage()
        audit_logger = AuditLogger(audit_storage)
        ledger = EntryLedger(
            InMemoryRecordStorage(),
            audit_logger,
            BudgetLedger(budget_storage, audit_logger),
        )

        updated = await ledger.add_expense(make_expense())

        assert len(updated) == 1
        stored = await budget_storage.get_by_id(updated[0].id)
        assert stored.current_spent == Decimal("60")
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.RECORD_SAVED,
            AuditEventType.BUDGET_SPENDING_APPLIED,
        ]

    @pytest.mark.asyncio
    async def test_add_expense_without_budgets(self):
        storage = InMemoryRecordStorage()
        expense = make_expense()

        assert await EntryLedger(storage).add_expense(expense) == []
        assert await storage.get_by_id(expense.id) == expense

    @pytest.mark.asyncio
    async def test_failed_attribution_keeps_expense(self):
        storage = InMemoryRecordStorage()
        audit_storage = InMemoryAuditStorage()
        audit_logger = AuditLogger(audit_storage)
        ledger = EntryLedger(
            storage,
            audit_logger,
            BudgetLedger(FailingSaveStorage([make_budget()]), audit_logger),
        )
        expense = make_expense()

        assert await ledger.add_expense(expense) == []

        assert await storage.get_by_id(expense.id) == expense
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.RECORD_SAVED,
            AuditEventType.SAVE_FAILED,
            AuditEventType.SYSTEM_ERROR,
        ]
        assert audit_storage.events[-1].details == {"expense_id": str(expense.id)}

    @pytest.mark.asyncio
    async def test_failed_save_is_audited(self):
        audit_storage = InMemoryAuditStorage()
        ledger = EntryLedger(FailingSaveStorage(), AuditLogger(audit_storage))

        with pytest.raises(StorageError):
            await ledger.add(make_expense())

        assert [e.event_type for e in audit_storage.events] == [AuditEventType.SAVE_FAILED]


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove(self):
        expense = make_expense()
        storage = InMemoryRecordStorage([expense])
        audit_storage = InMemoryAuditStorage()

        await EntryLedger(storage, AuditLogger(audit_storage)).remove(expense.id, "u1")

        assert await storage.get_by_id(expense.id) is None
        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.RECORD_DELETED
        assert event.entity_type == "expense"
        assert event.entity_id == expense.id

    @pytest.mark.asyncio
    async def test_other_users_record_is_not_found(self):
        expense = make_expense()
        storage = InMemoryRecordStorage([expense])

        with pytest.raises(NotFoundError):
            await EntryLedger(storage).remove(expense.id, "u2")
        assert await storage.get_by_id(expense.id) == expense

    @pytest.mark.asyncio
    async def test_unknown_record(self):
        with pytest.raises(NotFoundError):
            await EntryLedger(InMemoryRecordStorage()).remove(uuid4(), "u1")
