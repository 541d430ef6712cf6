"""
Core Money Record Models for Life Ledger

These models define the strict schemas for income, expenses and budgets.
They are designed to:
1. Keep money in Decimal (never binary float)
2. Reject impossible records at construction time
3. Derive payment state on read instead of storing it twice
4. Be serializable for storage and logging

DESIGN DECISION: Currencies are a closed set and are never converted.
Every total in the system is keyed by currency.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """Supported currencies. Amounts in different currencies are never mixed."""
    USD = "USD"
    GBP = "GBP"
    EUR = "EUR"


class Frequency(str, Enum):
    """How often a recurring record repeats."""
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class ExpenseCategory(str, Enum):
    """
    Expense categories.

    DESIGN DECISION: Expense and income categories are disjoint sets.
    Budgets have their own set (they overlap with expenses so that
    spending can be attributed to a matching budget).
    """
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    AUTO_AND_TRANSPORT = "Auto & Transport"
    TRAVEL = "Travel"
    FEES_AND_CHARGES = "Fees & Charges"
    BUSINESS_SERVICES = "Business Services"
    PERSONAL_CARE = "Personal Care"
    EDUCATION = "Education"
    HEALTHCARE = "Healthcare"
    KIDS = "Kids"
    PETS = "Pets"
    GIFTS_AND_DONATIONS = "Gifts & Donations"
    INVESTMENTS = "Investments"
    TAXES = "Taxes"
    OTHER = "Other"


class IncomeCategory(str, Enum):
    """Income categories."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    BUSINESS = "Business"
    INVESTMENT = "Investment"
    RENTAL = "Rental"
    DIVIDEND = "Dividend"
    INTEREST = "Interest"
    BONUS = "Bonus"
    COMMISSION = "Commission"
    GIFT = "Gift"
    OTHER = "Other"


class BudgetCategory(str, Enum):
    """Budget categories."""
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    HEALTHCARE = "Healthcare"
    PERSONAL_CARE = "Personal Care"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    SAVINGS = "Savings"
    INVESTMENTS = "Investments"
    EMERGENCY_FUND = "Emergency Fund"
    DEBT_PAYMENT = "Debt Payment"
    HOUSING = "Housing"
    INSURANCE = "Insurance"
    OTHER = "Other"


class PaymentStatus(str, Enum):
    """Payment status for an expense."""
    UNPAID = "unpaid"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"


class BudgetStatus(str, Enum):
    """Lifecycle/spending status for a budget."""
    DELETED = "deleted"
    CLOSED = "closed"
    INACTIVE = "inactive"
    EXCEEDED = "exceeded"
    WARNING = "warning"
    ON_TRACK = "on-track"


# Positive, two-decimal money amount
PositiveAmount = Annotated[Decimal, Field(gt=0, decimal_places=2)]
NonNegativeAmount = Annotated[Decimal, Field(ge=0, decimal_places=2)]


# =============================================================================
# DERIVATION HELPERS
# =============================================================================

def percentage_of(part: Decimal, total: Decimal) -> int:
    """Whole-number percentage, rounding halves up. 0 when total is 0."""
    if total <= 0:
        return 0
    ratio = part / total * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def derive_payment_status(payment_percentage: int, is_overdue: bool) -> PaymentStatus:
    """
    Classify an expense's settlement state.

    Precedence is paid > partial > overdue > unpaid: a partially paid
    expense that is also overdue reports PARTIAL.
    """
    if payment_percentage == 100:
        return PaymentStatus.PAID
    if payment_percentage > 0:
        return PaymentStatus.PARTIAL
    if is_overdue:
        return PaymentStatus.OVERDUE
    return PaymentStatus.UNPAID


def _check_frequency(is_recurring: bool, frequency: Optional[Frequency]) -> None:
    if is_recurring and frequency is None:
        raise ValueError("Frequency is required for recurring records")
    if not is_recurring and frequency is not None:
        raise ValueError("Frequency is only allowed on recurring records")


# =============================================================================
# INCOME / EXPENSE
# =============================================================================

class MoneyRecord(BaseModel):
    """
    Shared shape of income and expense records.

    A record happens on ``date``. If it repeats, ``frequency`` says how
    often and ``next_due_date`` is kept by the recurrence scheduler.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of the record"
    )

    # Timestamps
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Short label, e.g. 'Rent' or 'Salary'"
    )
    description: str = Field(
        default="",
        max_length=255
    )

    amount: PositiveAmount
    currency: Currency = Field(
        default=Currency.GBP,
        description="Currency of the amount (never converted)"
    )
    date: dt.date = Field(
        default_factory=dt.date.today,
        description="Effective/occurrence date"
    )

    # Recurrence
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    next_due_date: Optional[dt.date] = None

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'MoneyRecord':
        """Frequency is required iff the record is recurring."""
        _check_frequency(self.is_recurring, self.frequency)
        return self

    def touch(self) -> None:
        """Bump ``updated_at`` after a mutation."""
        self.updated_at = _utcnow()

    def formatted_amount(self) -> str:
        from lifeledger.formatting import format_money
        return format_money(self.amount, self.currency)


class Income(MoneyRecord):
    """
    Money received.

    Income has no payment tracking: it is assumed received on ``date``.
    """
    category: IncomeCategory
    taxable: bool = Field(
        default=True,
        description="Whether this income counts towards taxable income"
    )


class Expense(MoneyRecord):
    """
    Money owed or spent, with partial payment tracking.

    ``paid_amount`` may be settled in several payments. Payment status
    is derived from the paid percentage and the overdue flag, never
    stored.
    """
    category: ExpenseCategory

    paid_amount: NonNegativeAmount = Field(
        default=Decimal("0"),
        description="Amount settled so far"
    )
    is_paid: bool = False
    paid_date: Optional[dt.date] = None
    is_overdue: bool = False

    @model_validator(mode='after')
    def validate_paid_amount(self) -> 'Expense':
        """Paid amount can never exceed the total."""
        if self.paid_amount > self.amount:
            raise ValueError("Paid amount cannot exceed total amount")
        return self

    @property
    def remaining_balance(self) -> Decimal:
        return max(Decimal("0"), self.amount - self.paid_amount)

    @property
    def payment_percentage(self) -> int:
        return percentage_of(self.paid_amount, self.amount)

    @property
    def payment_status(self) -> PaymentStatus:
        return derive_payment_status(self.payment_percentage, self.is_overdue)

    def formatted_paid_amount(self) -> str:
        from lifeledger.formatting import format_money
        return format_money(self.paid_amount, self.currency)

    def formatted_remaining_balance(self) -> str:
        from lifeledger.formatting import format_money
        return format_money(self.remaining_balance, self.currency)


# =============================================================================
# BUDGET
# =============================================================================

class Budget(BaseModel):
    """
    A spending allowance for one category and currency.

    ``current_spent`` is increased as expenses are attributed to the
    budget. Recurring budgets run from ``start_date`` and are reset on
    ``next_reset_date``; one-off budgets use ``date``.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=255)
    category: BudgetCategory

    amount: PositiveAmount
    currency: Currency = Currency.GBP
    current_spent: NonNegativeAmount = Decimal("0")

    # Schedule
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    date: Optional[dt.date] = Field(default_factory=dt.date.today)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    next_reset_date: Optional[dt.date] = None

    # Lifecycle
    is_active: bool = True
    is_closed: bool = False
    closed_date: Optional[dt.date] = None
    is_deleted: bool = False
    deleted_date: Optional[dt.date] = None

    alert_threshold: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Spent percentage at which the budget warns"
    )

    @model_validator(mode='after')
    def validate_schedule(self) -> 'Budget':
        """Validate recurrence and date relationships."""
        _check_frequency(self.is_recurring, self.frequency)

        if self.is_recurring and self.start_date is None:
            raise ValueError("Start date is required for recurring budgets")
        if not self.is_recurring and self.date is None:
            raise ValueError("Date is required for one-off budgets")

        if self.start_date and self.end_date:
            if self.end_date <= self.start_date:
                raise ValueError("End date must be after start date")

        return self

    @property
    def remaining(self) -> Decimal:
        return max(Decimal("0"), self.amount - self.current_spent)

    @property
    def spent_percentage(self) -> int:
        return percentage_of(self.current_spent, self.amount)

    @property
    def is_exceeded(self) -> bool:
        return self.current_spent >= self.amount

    @property
    def is_open(self) -> bool:
        """Active, not closed and not deleted: eligible for spending and totals."""
        return self.is_active and not self.is_closed and not self.is_deleted

    @property
    def status(self) -> BudgetStatus:
        if self.is_deleted:
            return BudgetStatus.DELETED
        if self.is_closed:
            return BudgetStatus.CLOSED
        if not self.is_active:
            return BudgetStatus.INACTIVE
        if self.spent_percentage >= 100:
            return BudgetStatus.EXCEEDED
        if self.spent_percentage >= self.alert_threshold:
            return BudgetStatus.WARNING
        return BudgetStatus.ON_TRACK

    @property
    def should_alert(self) -> bool:
        return self.is_open and self.spent_percentage >= self.alert_threshold

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def formatted_amount(self) -> str:
        from lifeledger.formatting import format_money
        return format_money(self.amount, self.currency)

    def formatted_remaining(self) -> str:
        from lifeledger.formatting import format_money
        return format_money(self.remaining, self.currency)
