"""Financial health scoring package."""

from lifeledger.health.scorer import (
    DEFAULT_WINDOW_MONTHS,
    RECOMMENDATIONS,
    WEIGHTS,
    FinancialTotals,
    HealthLevel,
    HealthReport,
    HealthScores,
    classify_health,
    compute_totals,
    score,
    score_budget_adherence,
    score_cash_flow,
    score_emergency_fund,
    score_payment_rate,
    score_savings_rate,
)

__all__ = [
    "DEFAULT_WINDOW_MONTHS",
    "RECOMMENDATIONS",
    "WEIGHTS",
    "FinancialTotals",
    "HealthLevel",
    "HealthReport",
    "HealthScores",
    "classify_health",
    "compute_totals",
    "score",
    "score_budget_adherence",
    "score_cash_flow",
    "score_emergency_fund",
    "score_payment_rate",
    "score_savings_rate",
]
