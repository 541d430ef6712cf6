"""Tests for the payment ledger."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from lifeledger.audit import AuditLogger
from lifeledger.errors import NotFoundError, ValidationError
from lifeledger.ledger.payments import (
    PaymentLedger,
    apply_payment,
    mark_fully_paid,
    mark_overdue,
    mark_unpaid,
    to_amount,
)
from lifeledger.models.audit import AuditEventType
from lifeledger.models.records import (
    Expense,
    ExpenseCategory,
    Frequency,
    PaymentStatus,
)
from lifeledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    StorageError,
)


def make_expense(**overrides) -> Expense:
    data = dict(
        user_id="u1",
        name="Energy bill",
        amount=Decimal("100"),
        category=ExpenseCategory.BILLS_AND_UTILITIES,
        date=date(2024, 3, 1),
    )
    data.update(overrides)
    return Expense(**data)


class FailingSaveStorage(InMemoryRecordStorage):
    """Reads work, every write fails."""

    async def save(self, record):
        raise StorageError("sheet offline")


class TestToAmount:
    def test_converts_common_inputs(self):
        assert to_amount("12.50") == Decimal("12.50")
        assert to_amount(10) == Decimal("10")
        assert to_amount(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", "1.005"])
    def test_rejects_invalid_amounts(self, value):
        with pytest.raises(ValidationError):
            to_amount(value)


class TestApplyPayment:
    """Tests for partial payments on a single expense."""

    def test_partial_then_overpay_then_settle(self):
        """Test 90 then 20 fails, then 10 settles the expense."""
        expense = make_expense()

        assert apply_payment(expense, Decimal("90")) == PaymentStatus.PARTIAL
        assert expense.paid_amount == Decimal("90")
        assert expense.is_paid is False

        with pytest.raises(ValidationError, match="exceeds remaining balance"):
            apply_payment(expense, Decimal("20"))
        assert expense.paid_amount == Decimal("90")

        status = apply_payment(expense, Decimal("10"), paid_on=date(2024, 3, 20))
        assert status == PaymentStatus.PAID
        assert expense.paid_amount == Decimal("100")
        assert expense.is_paid is True
        assert expense.paid_date == date(2024, 3, 20)
        assert expense.remaining_balance == Decimal("0")

    def test_negative_payment_rejected_without_change(self):
        expense = make_expense(paid_amount=Decimal("30"))
        with pytest.raises(ValidationError, match="cannot be negative"):
            apply_payment(expense, "-5")
        assert expense.paid_amount == Decimal("30")

    def test_zero_payment_is_a_no_op(self):
        expense = make_expense()
        assert apply_payment(expense, 0) == PaymentStatus.UNPAID
        assert expense.paid_amount == Decimal("0")

    def test_settling_clears_overdue(self):
        expense = make_expense(is_overdue=True)
        apply_payment(expense, "100")
        assert expense.is_overdue is False
        assert expense.payment_status == PaymentStatus.PAID

    def test_partial_payment_keeps_overdue_flag(self):
        expense = make_expense(is_overdue=True)
        assert apply_payment(expense, "40") == PaymentStatus.PARTIAL
        assert expense.is_overdue is True


class TestStatusOperations:
    """Tests for mark paid / unpaid / overdue."""

    def test_mark_fully_paid_is_idempotent(self):
        expense = make_expense(paid_amount=Decimal("25"))
        mark_fully_paid(expense, paid_on=date(2024, 3, 5))
        mark_fully_paid(expense, paid_on=date(2024, 3, 9))
        assert expense.paid_amount == Decimal("100")
        assert expense.payment_status == PaymentStatus.PAID
        assert expense.paid_date == date(2024, 3, 5)

    def test_mark_unpaid_resets_payments(self):
        expense = make_expense()
        mark_fully_paid(expense)
        assert mark_unpaid(expense) == PaymentStatus.UNPAID
        assert expense.paid_amount == Decimal("0")
        assert expense.is_paid is False
        assert expense.paid_date is None

    def test_mark_overdue(self):
        expense = make_expense()
        assert mark_overdue(expense) == PaymentStatus.OVERDUE
        assert mark_overdue(expense) == PaymentStatus.OVERDUE
        assert expense.is_overdue is True

    def test_overdue_after_unpaid(self):
        expense = make_expense()
        mark_overdue(expense)
        mark_fully_paid(expense)
        mark_unpaid(expense)
        assert expense.is_overdue is False
        assert expense.payment_status == PaymentStatus.UNPAID


class TestPaymentLedger:
    """Tests for the persisted ledger with auditing."""

    @pytest.mark.asyncio
    async def test_add_payment_persists_and_audits(self):
        expense = make_expense()
        storage = InMemoryRecordStorage([expense])
        audit_storage = InMemoryAuditStorage()
        ledger = PaymentLedger(storage, AuditLogger(audit_storage))
        correlation_id = uuid4()

        await ledger.add_payment(expense.id, "90", correlation_id=correlation_id)

        stored = await storage.get_by_id(expense.id)
        assert stored.paid_amount == Decimal("90")
        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.PAYMENT_APPLIED]
        assert events[0].details["payment"] == "£90.00"
        assert events[0].details["payment_status"] == "partial"

    @pytest.mark.asyncio
    async def test_rejected_payment_is_audited_and_not_saved(self):
        expense = make_expense(paid_amount=Decimal("90"))
        storage = InMemoryRecordStorage([expense])
        audit_storage = InMemoryAuditStorage()
        ledger = PaymentLedger(storage, AuditLogger(audit_storage))

        with pytest.raises(ValidationError):
            await ledger.add_payment(expense.id, "20")

        stored = await storage.get_by_id(expense.id)
        assert stored.paid_amount == Decimal("90")
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.PAYMENT_REJECTED
        ]

    @pytest.mark.asyncio
    async def test_missing_expense_raises_not_found(self):
        ledger = PaymentLedger(InMemoryRecordStorage())
        with pytest.raises(NotFoundError):
            await ledger.mark_paid(uuid4())

    @pytest.mark.asyncio
    async def test_status_operations_persist(self):
        expense = make_expense()
        storage = InMemoryRecordStorage([expense])
        ledger = PaymentLedger(storage)

        await ledger.mark_overdue(expense.id)
        assert (await storage.get_by_id(expense.id)).payment_status == PaymentStatus.OVERDUE

        await ledger.mark_paid(expense.id, paid_on=date(2024, 3, 2))
        stored = await storage.get_by_id(expense.id)
        assert stored.is_paid is True
        assert stored.is_overdue is False

        await ledger.mark_unpaid(expense.id)
        assert (await storage.get_by_id(expense.id)).payment_status == PaymentStatus.UNPAID

    @pytest.mark.asyncio
    async def test_save_failure_is_audited_and_raised(self):
        expense = make_expense()
        audit_storage = InMemoryAuditStorage()
        ledger = PaymentLedger(FailingSaveStorage([expense]), AuditLogger(audit_storage))

        with pytest.raises(StorageError):
            await ledger.mark_paid(expense.id)

        assert [e.event_type for e in audit_storage.events] == [AuditEventType.SAVE_FAILED]

    @pytest.mark.asyncio
    async def test_advance_due_date(self):
        expense = make_expense(
            date=date(2024, 1, 31),
            is_recurring=True,
            frequency=Frequency.MONTHLY,
        )
        storage = InMemoryRecordStorage([expense])
        ledger = PaymentLedger(storage)

        assert await ledger.advance_due_date(expense.id) == date(2024, 2, 29)
        assert (await storage.get_by_id(expense.id)).next_due_date == date(2024, 2, 29)

    @pytest.mark.asyncio
    async def test_advance_due_date_non_recurring(self):
        expense = make_expense()
        ledger = PaymentLedger(InMemoryRecordStorage([expense]))
        assert await ledger.advance_due_date(expense.id) is None
