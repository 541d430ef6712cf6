"""
Recurrence Scheduler

Computes the next due date of a recurring record from its frequency.

MONTH-END POLICY: calendar months and years are added with
``dateutil.relativedelta``, which clamps to the last valid day of the
target month (Jan 31 + 1 month = Feb 28, or Feb 29 in a leap year).
Chaining always re-anchors on the stored date, so once a date has been
clamped it stays on that day of the month.
"""

from datetime import date, timedelta
from typing import Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

from lifeledger.models.records import Budget, Expense, Frequency, Income, MoneyRecord

RecurringRecord = Union[Expense, Income, MoneyRecord]


def compute_next_due_date(anchor: date, frequency: Frequency) -> date:
    """Return the date one period after ``anchor``."""
    frequency = Frequency(frequency)
    if frequency is Frequency.WEEKLY:
        return anchor + timedelta(days=7)
    elif frequency is Frequency.BI_WEEKLY:
        return anchor + timedelta(days=14)
    elif frequency is Frequency.MONTHLY:
        return anchor + relativedelta(months=1)
    elif frequency is Frequency.QUARTERLY:
        return anchor + relativedelta(months=3)
    elif frequency is Frequency.YEARLY:
        return anchor + relativedelta(years=1)
    raise ValueError(f"Unsupported frequency: {frequency}")


def advance_next_due_date(
    record: RecurringRecord,
    today: Optional[date] = None,
) -> Optional[date]:
    """
    Move a recurring record's ``next_due_date`` forward by one period.

    The anchor is the current ``next_due_date`` if set, else the record's
    ``date``, else today, so repeated calls step forward one period each
    instead of restarting from now.

    Returns the new date, or None (leaving the record untouched) when
    the record is not recurring.
    """
    if not record.is_recurring or record.frequency is None:
        return None

    anchor = record.next_due_date or record.date or today or date.today()
    record.next_due_date = compute_next_due_date(anchor, record.frequency)
    record.touch()
    return record.next_due_date


def advance_next_reset_date(
    budget: Budget,
    today: Optional[date] = None,
) -> Optional[date]:
    """
    Move a recurring budget's ``next_reset_date`` forward by one period.

    Anchored on ``next_reset_date``, then ``start_date``, then today.
    """
    if not budget.is_recurring or budget.frequency is None:
        return None

    anchor = budget.next_reset_date or budget.start_date or today or date.today()
    budget.next_reset_date = compute_next_due_date(anchor, budget.frequency)
    budget.touch()
    return budget.next_reset_date


def due_soon(
    records: Iterable[RecurringRecord],
    days_ahead: int = 7,
    today: Optional[date] = None,
) -> list:
    """Recurring records whose next due date falls within ``days_ahead`` days, soonest first."""
    horizon = (today or date.today()) + timedelta(days=days_ahead)
    upcoming = [
        r for r in records
        if r.is_recurring and r.next_due_date is not None and r.next_due_date <= horizon
    ]
    upcoming.sort(key=lambda r: r.next_due_date)
    return upcoming


def budgets_due_for_reset(
    budgets: Iterable[Budget],
    today: Optional[date] = None,
) -> list[Budget]:
    """Open recurring budgets whose reset date has arrived."""
    now = today or date.today()
    due = [
        b for b in budgets
        if b.is_recurring and b.is_open
        and b.next_reset_date is not None and b.next_reset_date <= now
    ]
    due.sort(key=lambda b: b.next_reset_date)
    return due
