"""
Financial Health Scorer

Turns one currency's aggregated totals into a 0-100 health score.

DESIGN DECISION: Scoring is a pure function of ``FinancialTotals``.
Five ratios are mapped to sub-scores through fixed bands (no
interpolation), blended with fixed weights and mapped to a tier with
canned recommendations. Nothing here reads the clock or storage, so
the same totals always give the same report.

The emergency-fund ratio divides by the real number of months the
aggregation window covers instead of assuming six.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lifeledger.aggregation import (
    BudgetTotals,
    CurrencyTotals,
    aggregate_budgets_by_currency,
    filter_records,
)
from lifeledger.models.records import Budget, Currency, Expense, Income

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_WINDOW_MONTHS = 6


class HealthLevel(str, Enum):
    """Tier of the composite score."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    CRITICAL = "Critical"


# Composite weights; they sum to 1.
WEIGHTS = {
    "savings_rate": Decimal("0.25"),
    "budget_control": Decimal("0.20"),
    "payment_discipline": Decimal("0.20"),
    "emergency_fund": Decimal("0.20"),
    "cash_flow": Decimal("0.15"),
}

# Lowest composite score for each tier, best tier first.
TIER_FLOORS = [
    (85, HealthLevel.EXCELLENT),
    (70, HealthLevel.GOOD),
    (55, HealthLevel.FAIR),
    (40, HealthLevel.POOR),
]

RECOMMENDATIONS = {
    HealthLevel.EXCELLENT: [
        "Consider increasing investment portfolio",
        "Look into tax optimization strategies",
        "Review insurance coverage annually",
    ],
    HealthLevel.GOOD: [
        "Build emergency fund to 6 months",
        "Increase savings rate to 20%",
        "Consider debt consolidation",
    ],
    HealthLevel.FAIR: [
        "Create a strict budget plan",
        "Focus on paying off high-interest debt",
        "Build emergency fund to 3 months",
    ],
    HealthLevel.POOR: [
        "Review all expenses immediately",
        "Consider additional income sources",
        "Seek financial counseling",
    ],
    HealthLevel.CRITICAL: [
        "Create emergency budget plan",
        "Contact creditors about payment plans",
        "Seek professional financial help immediately",
    ],
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# TOTALS
# =============================================================================

class FinancialTotals(_CamelModel):
    """
    Aggregated amounts for one currency and the ratios derived from them.

    Build it with ``compute_totals`` from records, or with
    ``FinancialTotals.from_aggregates`` from aggregation results.
    """

    income_total: Decimal = ZERO
    income_recurring: Decimal = ZERO
    income_one_time: Decimal = ZERO

    expense_total: Decimal = ZERO
    expense_paid: Decimal = ZERO
    expense_remaining: Decimal = ZERO

    budget_total: Decimal = ZERO
    budget_spent: Decimal = ZERO
    budget_remaining: Decimal = ZERO

    net_balance: Decimal = ZERO
    savings_rate: float = 0.0
    budget_adherence_rate: float = 100.0
    expense_payment_rate: float = 100.0
    emergency_fund_months: float = 0.0
    window_months: int = Field(default=DEFAULT_WINDOW_MONTHS, ge=1)

    @classmethod
    def from_aggregates(
        cls,
        income: Optional[CurrencyTotals] = None,
        expenses: Optional[CurrencyTotals] = None,
        budgets: Optional[BudgetTotals] = None,
        income_recurring: Decimal = ZERO,
        window_months: int = DEFAULT_WINDOW_MONTHS,
    ) -> "FinancialTotals":
        """
        Derive the ratios from per-currency aggregation results.

        A missing aggregate counts as zero.
        """
        income_total = income.total_amount if income else ZERO
        expense_total = expenses.total_amount if expenses else ZERO
        expense_paid = (expenses.total_paid or ZERO) if expenses else ZERO
        budget_total = budgets.total_budgeted if budgets else ZERO
        budget_spent = budgets.total_spent if budgets else ZERO
        net_balance = income_total - expense_total

        return cls(
            income_total=income_total,
            income_recurring=income_recurring,
            income_one_time=income_total - income_recurring,
            expense_total=expense_total,
            expense_paid=expense_paid,
            expense_remaining=expense_total - expense_paid,
            budget_total=budget_total,
            budget_spent=budget_spent,
            budget_remaining=budgets.total_remaining if budgets else ZERO,
            net_balance=net_balance,
            savings_rate=_savings_rate(net_balance, income_total),
            budget_adherence_rate=_budget_adherence_rate(budget_spent, budget_total),
            expense_payment_rate=_expense_payment_rate(expense_paid, expense_total),
            emergency_fund_months=_emergency_fund_months(
                net_balance, expense_total, window_months
            ),
            window_months=window_months,
        )


def _savings_rate(net_balance: Decimal, income_total: Decimal) -> float:
    if income_total <= 0:
        return 0.0
    return float(net_balance / income_total * HUNDRED)


def _budget_adherence_rate(spent: Decimal, allocated: Decimal) -> float:
    if allocated <= 0:
        return 100.0
    return max(0.0, float(HUNDRED - spent / allocated * HUNDRED))


def _expense_payment_rate(paid: Decimal, total: Decimal) -> float:
    if total <= 0:
        return 100.0
    return float(paid / total * HUNDRED)


def _emergency_fund_months(
    net_balance: Decimal,
    expense_total: Decimal,
    window_months: int,
) -> float:
    """Months of average spending the net balance would cover."""
    if expense_total <= 0:
        return 0.0
    monthly_expenses = expense_total / Decimal(window_months)
    return float(net_balance / monthly_expenses)


def compute_totals(
    budgets: Iterable[Budget],
    expenses: Iterable[Expense],
    incomes: Iterable[Income],
    currency: Optional[Currency] = None,
    window_months: int = DEFAULT_WINDOW_MONTHS,
) -> FinancialTotals:
    """
    Sum records into ``FinancialTotals``.

    Pass ``currency`` to restrict the sums to one currency. Without it
    the records must all share one currency; amounts in different
    currencies are never added together.
    """
    budgets = list(budgets)
    expenses = list(expenses)
    incomes = list(incomes)

    if currency is None:
        codes = {r.currency for r in [*incomes, *expenses]}
        codes |= {b.currency for b in budgets if b.is_open}
        if len(codes) > 1:
            raise ValueError("Records span several currencies; pass a currency")
        currency = codes.pop() if codes else Currency.GBP

    incomes = filter_records(incomes, currency=currency)
    expenses = filter_records(expenses, currency=currency)

    income = CurrencyTotals(
        currency=currency,
        total_amount=sum((i.amount for i in incomes), ZERO),
        count=len(incomes),
    )
    expense_total = sum((e.amount for e in expenses), ZERO)
    expense_paid = sum((e.paid_amount for e in expenses), ZERO)
    expense = CurrencyTotals(
        currency=currency,
        total_amount=expense_total,
        total_paid=expense_paid,
        total_remaining=expense_total - expense_paid,
        count=len(expenses),
    )
    budget = aggregate_budgets_by_currency(budgets, currency).get(currency)

    return FinancialTotals.from_aggregates(
        income=income,
        expenses=expense,
        budgets=budget,
        income_recurring=sum((i.amount for i in incomes if i.is_recurring), ZERO),
        window_months=window_months,
    )


# =============================================================================
# SUB-SCORES
# =============================================================================

def score_savings_rate(rate: float) -> int:
    if rate >= 20:
        return 100
    if rate >= 15:
        return 85
    if rate >= 10:
        return 70
    if rate >= 5:
        return 50
    if rate > 0:
        return 30
    return 0


def score_budget_adherence(rate: float) -> int:
    if rate >= 90:
        return 100
    if rate >= 80:
        return 85
    if rate >= 70:
        return 70
    if rate >= 60:
        return 50
    if rate >= 50:
        return 30
    return 10


def score_payment_rate(rate: float) -> int:
    if rate >= 95:
        return 100
    if rate >= 85:
        return 85
    if rate >= 75:
        return 70
    if rate >= 65:
        return 50
    if rate >= 50:
        return 30
    return 10


def score_emergency_fund(months: float) -> int:
    if months >= 6:
        return 100
    if months >= 3:
        return 80
    if months >= 2:
        return 60
    if months >= 1:
        return 40
    if months > 0:
        return 20
    return 0


def score_cash_flow(net_balance: Decimal, income_total: Decimal) -> int:
    """Scores the share of income left over; a non-positive balance scores 0."""
    if net_balance <= 0 or income_total <= 0:
        return 0
    ratio = net_balance / income_total
    if ratio >= Decimal("0.3"):
        return 100
    if ratio >= Decimal("0.2"):
        return 85
    if ratio >= Decimal("0.1"):
        return 70
    if ratio >= Decimal("0.05"):
        return 50
    return 30


def classify_health(total_score: float) -> HealthLevel:
    for floor, level in TIER_FLOORS:
        if total_score >= floor:
            return level
    return HealthLevel.CRITICAL


# =============================================================================
# REPORT
# =============================================================================

class HealthScores(_CamelModel):
    """The five sub-scores, each 0-100."""
    savings_rate: int
    budget_control: int
    payment_discipline: int
    emergency_fund: int
    cash_flow: int


class HealthReport(_CamelModel):
    """Scored financial health for one currency."""
    total_score: float
    scores: HealthScores
    health_level: HealthLevel
    recommendations: list[str]
    totals: FinancialTotals

    def to_dict(self) -> dict:
        """Presentation shape: camelCase keys, tier as its display name."""
        data = self.model_dump(by_alias=True)
        data["healthLevel"] = self.health_level.value
        return data


def score(totals: FinancialTotals) -> HealthReport:
    """Score a set of totals."""
    scores = HealthScores(
        savings_rate=score_savings_rate(totals.savings_rate),
        budget_control=score_budget_adherence(totals.budget_adherence_rate),
        payment_discipline=score_payment_rate(totals.expense_payment_rate),
        emergency_fund=score_emergency_fund(totals.emergency_fund_months),
        cash_flow=score_cash_flow(totals.net_balance, totals.income_total),
    )

    composite = sum(
        (Decimal(getattr(scores, name)) * weight for name, weight in WEIGHTS.items()),
        ZERO,
    )
    total_score = float(composite)
    level = classify_health(total_score)

    return HealthReport(
        total_score=total_score,
        scores=scores,
        health_level=level,
        recommendations=list(RECOMMENDATIONS[level]),
        totals=totals,
    )
