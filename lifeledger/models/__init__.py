"""
Data Models Package

This package contains all Pydantic models used by Life Ledger.
All money records flowing through the system must conform to these schemas.
"""

from lifeledger.models.records import (
    Budget,
    BudgetCategory,
    BudgetStatus,
    Currency,
    Expense,
    ExpenseCategory,
    Frequency,
    Income,
    IncomeCategory,
    MoneyRecord,
    PaymentStatus,
    derive_payment_status,
    percentage_of,
)
from lifeledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Budget",
    "BudgetCategory",
    "BudgetStatus",
    "Currency",
    "Expense",
    "ExpenseCategory",
    "Frequency",
    "Income",
    "IncomeCategory",
    "MoneyRecord",
    "PaymentStatus",
    "derive_payment_status",
    "percentage_of",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
