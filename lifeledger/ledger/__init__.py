"""Ledger package: recurrence, payments, budgets and record entry."""

from lifeledger.ledger.budgets import (
    BudgetLedger,
    add_spending,
    apply_expense_to_budget,
    apply_expense_to_matching_budgets,
    budget_matches,
    close_budget,
    reopen_budget,
    reset_budget,
    restore_budget,
    soft_delete_budget,
)
from lifeledger.ledger.entries import EntryLedger
from lifeledger.ledger.payments import (
    PaymentLedger,
    apply_payment,
    mark_fully_paid,
    mark_overdue,
    mark_unpaid,
    refresh_paid_state,
    to_amount,
)
from lifeledger.ledger.recurrence import (
    advance_next_due_date,
    advance_next_reset_date,
    budgets_due_for_reset,
    compute_next_due_date,
    due_soon,
)

__all__ = [
    # Budgets
    "BudgetLedger",
    "add_spending",
    "apply_expense_to_budget",
    "apply_expense_to_matching_budgets",
    "budget_matches",
    "close_budget",
    "reopen_budget",
    "reset_budget",
    "restore_budget",
    "soft_delete_budget",
    # Entries
    "EntryLedger",
    # Payments
    "PaymentLedger",
    "apply_payment",
    "mark_fully_paid",
    "mark_overdue",
    "mark_unpaid",
    "refresh_paid_state",
    "to_amount",
    # Recurrence
    "advance_next_due_date",
    "advance_next_reset_date",
    "budgets_due_for_reset",
    "compute_next_due_date",
    "due_soon",
]
