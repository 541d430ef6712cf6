"""
Payment Ledger

DESIGN DECISION: Every payment operation is split into two steps:
1. Apply the caller's mutation (after checking it is allowed)
2. Re-derive the dependent paid state from the amounts

Both steps are plain functions with no I/O, so they can be tested
without storage. ``PaymentLedger`` wraps them with persistence and
auditing.

GUARANTEES:
- 0 <= paid_amount <= amount after every operation
- A rejected payment leaves the expense exactly as it was
- Repeating a status operation does not change the result
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

from lifeledger.audit import AuditLogger
from lifeledger.errors import NotFoundError, ValidationError
from lifeledger.formatting import format_money
from lifeledger.ledger.persistence import persist_record
from lifeledger.ledger.recurrence import advance_next_due_date
from lifeledger.models.records import (
    Expense,
    MoneyRecord,
    PaymentStatus,
    derive_payment_status,
)
from lifeledger.services.storage import RecordStorageInterface

Amount = Union[Decimal, int, float, str]

__all__ = [
    "PaymentLedger",
    "apply_payment",
    "derive_payment_status",
    "mark_fully_paid",
    "mark_overdue",
    "mark_unpaid",
    "refresh_paid_state",
    "to_amount",
]


def to_amount(value: Amount) -> Decimal:
    """Convert caller input to a two-decimal Decimal, rejecting anything else."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Not a valid amount: {value!r}")
    if amount != amount.quantize(Decimal("0.01")):
        raise ValidationError("Amounts cannot have more than two decimal places")
    return amount


# =============================================================================
# DERIVED STATE
# =============================================================================

def refresh_paid_state(expense: Expense, paid_on: Optional[date] = None) -> PaymentStatus:
    """
    Re-derive ``is_paid``/``paid_date``/``is_overdue`` from the amounts.

    Only a fully settled expense changes flags here: it becomes paid,
    gets a paid date (kept if it already had one) and stops being
    overdue.
    """
    if expense.paid_amount >= expense.amount:
        expense.is_paid = True
        expense.paid_date = expense.paid_date or paid_on or date.today()
        expense.is_overdue = False
    return expense.payment_status


# =============================================================================
# MUTATIONS
# =============================================================================

def apply_payment(
    expense: Expense,
    amount: Amount,
    paid_on: Optional[date] = None,
) -> PaymentStatus:
    """
    Add a (possibly partial) payment to an expense.

    Raises:
        ValidationError: if the payment is negative or would take the
            paid amount past the total. The expense is not modified.
    """
    payment = to_amount(amount)
    if payment < 0:
        raise ValidationError("Payment amount cannot be negative")

    new_paid = expense.paid_amount + payment
    if new_paid > expense.amount:
        raise ValidationError("Payment amount exceeds remaining balance")

    expense.paid_amount = new_paid
    status = refresh_paid_state(expense, paid_on)
    expense.touch()
    return status


def mark_fully_paid(expense: Expense, paid_on: Optional[date] = None) -> PaymentStatus:
    """Settle the whole amount at once."""
    expense.paid_amount = expense.amount
    status = refresh_paid_state(expense, paid_on)
    expense.touch()
    return status


def mark_unpaid(expense: Expense) -> PaymentStatus:
    """Clear all payments. The overdue flag is left as it is."""
    expense.paid_amount = Decimal("0")
    expense.is_paid = False
    expense.paid_date = None
    expense.touch()
    return expense.payment_status


def mark_overdue(expense: Expense) -> PaymentStatus:
    """Flag an expense as overdue. Payment amounts are not touched."""
    expense.is_overdue = True
    expense.touch()
    return expense.payment_status


# =============================================================================
# PERSISTED LEDGER
# =============================================================================

class PaymentLedger:
    """
    Applies payment operations to stored expenses.

    Each operation loads the expense, applies the mutation, saves it
    and records an audit event. Lookups fail with NotFoundError before
    anything is changed.
    """

    def __init__(
        self,
        storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def _load(self, record_id: UUID) -> MoneyRecord:
        record = await self._storage.get_by_id(record_id)
        if record is None:
            raise NotFoundError(f"Record not found: {record_id}")
        return record

    async def _load_expense(self, expense_id: UUID) -> Expense:
        record = await self._load(expense_id)
        if not isinstance(record, Expense):
            raise NotFoundError(f"Expense not found: {expense_id}")
        return record

    async def _persist(self, record: MoneyRecord, correlation_id: Optional[UUID]) -> None:
        await persist_record(self._storage, record, self._audit_logger, correlation_id)

    async def add_payment(
        self,
        expense_id: UUID,
        amount: Amount,
        paid_on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Apply a partial payment and persist the expense."""
        expense = await self._load_expense(expense_id)

        try:
            status = apply_payment(expense, amount, paid_on)
        except ValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_payment_rejected(
                    expense_id=expense.id,
                    payment=str(amount),
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        await self._persist(expense, correlation_id)
        if self._audit_logger:
            await self._audit_logger.log_payment_applied(
                expense_id=expense.id,
                payment=format_money(to_amount(amount), expense.currency),
                paid_amount=expense.formatted_paid_amount(),
                status=status.value,
                correlation_id=correlation_id,
            )
        return expense

    async def mark_paid(
        self,
        expense_id: UUID,
        paid_on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        expense = await self._load_expense(expense_id)
        status = mark_fully_paid(expense, paid_on)
        await self._persist(expense, correlation_id)
        await self._log_status(expense, "marked paid", status, correlation_id)
        return expense

    async def mark_unpaid(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        expense = await self._load_expense(expense_id)
        status = mark_unpaid(expense)
        await self._persist(expense, correlation_id)
        await self._log_status(expense, "marked unpaid", status, correlation_id)
        return expense

    async def mark_overdue(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        expense = await self._load_expense(expense_id)
        status = mark_overdue(expense)
        await self._persist(expense, correlation_id)
        await self._log_status(expense, "marked overdue", status, correlation_id)
        return expense

    async def advance_due_date(
        self,
        record_id: UUID,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[date]:
        """
        Step a recurring income or expense to its next due date and persist it.

        Non-recurring records are left alone and None is returned.
        """
        record = await self._load(record_id)
        next_due = advance_next_due_date(record, today)
        if next_due is None:
            return None

        await self._persist(record, correlation_id)
        if self._audit_logger:
            await self._audit_logger.log_next_due_date_advanced(
                entity_type=type(record).__name__.lower(),
                entity_id=record.id,
                next_due_date=next_due.isoformat(),
                correlation_id=correlation_id,
            )
        return next_due

    async def _log_status(
        self,
        expense: Expense,
        action: str,
        status: PaymentStatus,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_payment_status_updated(
                expense_id=expense.id,
                action=action,
                status=status.value,
                correlation_id=correlation_id,
            )
