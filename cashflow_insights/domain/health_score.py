"""Cashflow health scoring - weighted 0-100 score from monthly aggregates"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from cashflow_insights.domain.models import (
    Category,
    FinancialAggregates,
    HealthScoreResult,
    ScoreBreakdown,
    Transaction,
    Trend,
)
from cashflow_insights.domain.policy import DEFAULT_POLICY, ScoringPolicy
from cashflow_insights.utils.date_utils import same_month

MAX_INCOME_SCORE = Decimal(25)

REDUCE_EXPENSES = "Reduce your monthly expenses to improve cashflow"
RAISE_SAVINGS = "Increase your savings rate to at least 20% of income"
REDUCE_DEBT = "Focus on reducing high-interest debt"
BUILD_EMERGENCY_FUND = "Build an emergency fund covering 3-6 months of expenses"


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def income_score(monthly_income: Decimal, reference_income: Decimal) -> Decimal:
    """Linear ramp to 25, reached at the reference income"""
    if monthly_income <= 0:
        return Decimal(0)
    return min(MAX_INCOME_SCORE, monthly_income / reference_income * MAX_INCOME_SCORE)


def expense_score(monthly_expenses: Decimal, monthly_income: Decimal) -> Decimal:
    """Four bands on expenses/income; no income falls in the worst band"""
    if monthly_income <= 0:
        return Decimal(10)
    ratio = monthly_expenses / monthly_income
    if ratio < Decimal("0.5"):
        return Decimal(25)
    elif ratio < Decimal("0.7"):
        return Decimal(20)
    elif ratio < Decimal("0.9"):
        return Decimal(15)
    return Decimal(10)


def savings_score(savings: Decimal, monthly_income: Decimal) -> Decimal:
    if monthly_income <= 0:
        return Decimal(5)
    ratio = savings / monthly_income
    if ratio > Decimal("0.3"):
        return Decimal(20)
    elif ratio > Decimal("0.2"):
        return Decimal(15)
    elif ratio > Decimal("0.1"):
        return Decimal(10)
    return Decimal(5)


def debt_score(debts: Decimal, monthly_income: Decimal) -> Decimal:
    if monthly_income <= 0:
        return Decimal(0)
    ratio = debts / monthly_income
    if ratio < Decimal("0.3"):
        return Decimal(15)
    elif ratio < Decimal("0.5"):
        return Decimal(10)
    elif ratio < 1:
        return Decimal(5)
    return Decimal(0)


def liquidity_score(liquidity: Decimal, monthly_expenses: Decimal) -> Decimal:
    """Months of expenses covered by liquid funds; no expenses falls in the worst band"""
    if monthly_expenses <= 0:
        return Decimal(3)
    months = liquidity / monthly_expenses
    if months > 6:
        return Decimal(15)
    elif months > 3:
        return Decimal(12)
    elif months > 1:
        return Decimal(8)
    return Decimal(3)


def determine_trend(score: int) -> Trend:
    """
    Map total score to a trend label.

    - score > 70: improving
    - score > 50: stable
    - otherwise:  declining
    """
    if score > 70:
        return Trend.IMPROVING
    elif score > 50:
        return Trend.STABLE
    return Trend.DECLINING


def calculate_health_score(
    aggregates: FinancialAggregates,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> HealthScoreResult:
    """
    Calculate cashflow health score from 0 (worst) to 100 (best).

    Weights:
    - 25: Income level (linear up to the reference income)
    - 25: Expense ratio
    - 20: Savings ratio
    - 15: Debt-to-income ratio
    - 15: Liquidity in months of expenses

    Total is rounded from the unrounded sub-scores; each sub-score is
    rounded independently for the breakdown.
    """
    income = income_score(aggregates.monthly_income, policy.reference_income)
    expense = expense_score(aggregates.monthly_expenses, aggregates.monthly_income)
    savings = savings_score(aggregates.savings, aggregates.monthly_income)
    debt = debt_score(aggregates.debts, aggregates.monthly_income)
    liquidity = liquidity_score(aggregates.liquidity, aggregates.monthly_expenses)

    total = _round(income + expense + savings + debt + liquidity)

    recommendations: List[str] = []
    if expense < 15:
        recommendations.append(REDUCE_EXPENSES)
    if savings < 10:
        recommendations.append(RAISE_SAVINGS)
    if debt < 10:
        recommendations.append(REDUCE_DEBT)
    if liquidity < 10:
        recommendations.append(BUILD_EMERGENCY_FUND)

    return HealthScoreResult(
        score=total,
        breakdown=ScoreBreakdown(
            income=_round(income),
            expense=_round(expense),
            savings=_round(savings),
            debt=_round(debt),
            liquidity=_round(liquidity),
        ),
        trend=determine_trend(total),
        recommendations=recommendations,
    )


def category_breakdown(
    transactions: Iterable[Transaction],
    as_of: Optional[date] = None,
) -> Dict[Category, Decimal]:
    """Total spend per category, limited to as_of's calendar month when given"""
    totals: Dict[Category, Decimal] = defaultdict(Decimal)
    for txn in transactions:
        if as_of is not None and not same_month(txn.date, as_of):
            continue
        totals[txn.category] += txn.amount
    return dict(totals)
