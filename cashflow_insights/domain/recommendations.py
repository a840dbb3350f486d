"""Recommendation engine - ranked, templated insights from budgets, goals and spending"""

from decimal import Decimal
from typing import List

from cashflow_insights.domain.health_score import category_breakdown
from cashflow_insights.domain.models import (
    AgentRecommendation,
    Budget,
    Goal,
    GoalStatus,
    Priority,
    RecommendationAction,
    RecommendationContext,
    RecommendationImpact,
    RecommendationType,
)
from cashflow_insights.domain.policy import DEFAULT_POLICY, ScoringPolicy
from cashflow_insights.utils.date_utils import days_between

HUNDRED = Decimal(100)
DAYS_PER_MONTH = Decimal(30)


def _money(value: Decimal, places: int = 2) -> str:
    return f"₹{value:.{places}f}"


def analyze_budgets(budgets: List[Budget], policy: ScoringPolicy = DEFAULT_POLICY) -> List[AgentRecommendation]:
    """Critical at >= 90% of budget spent, high at >= 80%"""
    recommendations = []

    for budget in budgets:
        if not budget.is_active:
            continue

        name = budget.category.value
        percentage = budget.spent / budget.amount * HUNDRED

        if percentage >= policy.budget_critical_pct:
            overage = budget.spent - budget.amount
            recommendations.append(
                AgentRecommendation(
                    type=RecommendationType.BUDGET,
                    priority=Priority.CRITICAL,
                    title=f"{name} Budget Exceeded",
                    message=f"You've spent {percentage:.0f}% of your {name} budget. Consider reducing spending.",
                    action=RecommendationAction(label="View Budget", url="/budget"),
                    impact=RecommendationImpact(
                        category=name,
                        value=overage,
                        description=f"{_money(overage)} over budget",
                    ),
                )
            )
        elif percentage >= policy.budget_alert_pct:
            remaining = budget.amount - budget.spent
            recommendations.append(
                AgentRecommendation(
                    type=RecommendationType.BUDGET,
                    priority=Priority.HIGH,
                    title=f"{name} Budget Alert",
                    message=f"You're at {percentage:.0f}% of your {name} budget. Be mindful of spending.",
                    action=RecommendationAction(label="View Budget", url="/budget"),
                    impact=RecommendationImpact(
                        category=name,
                        value=remaining,
                        description=f"{_money(remaining)} remaining",
                    ),
                )
            )

    return recommendations


def expected_progress(goal: Goal, as_of) -> Decimal:
    """Percent of the goal's timeline elapsed at as_of (linear pace)"""
    total_days = days_between(goal.created_at, goal.deadline)
    if total_days <= 0:
        return HUNDRED
    elapsed_days = days_between(goal.created_at, as_of)
    return Decimal(elapsed_days) / Decimal(total_days) * HUNDRED


def analyze_goals(goals: List[Goal], as_of, policy: ScoringPolicy = DEFAULT_POLICY) -> List[AgentRecommendation]:
    """Behind-schedule warnings and goal-achieved congratulations for active goals"""
    recommendations = []

    for goal in goals:
        if goal.status != GoalStatus.ACTIVE:
            continue

        days_remaining = days_between(as_of, goal.deadline)
        progress = goal.current_amount / goal.target_amount * HUNDRED
        expected = expected_progress(goal, as_of)

        if progress < expected - policy.goal_lag_tolerance and days_remaining > 0:
            remaining = goal.target_amount - goal.current_amount
            monthly_required = remaining / (Decimal(days_remaining) / DAYS_PER_MONTH)
            recommendations.append(
                AgentRecommendation(
                    type=RecommendationType.GOAL,
                    priority=Priority.HIGH,
                    title=f"{goal.title} - Behind Schedule",
                    message=(
                        f"Your goal is {expected - progress:.0f}% behind. "
                        f"Save {_money(monthly_required, 0)}/month to catch up."
                    ),
                    action=RecommendationAction(label="Adjust Goal", url="/goals"),
                    impact=RecommendationImpact(
                        category=goal.title,
                        value=monthly_required,
                        description=f"Increase monthly saving to {_money(monthly_required, 0)}",
                    ),
                )
            )
        elif progress >= HUNDRED:
            recommendations.append(
                AgentRecommendation(
                    type=RecommendationType.GOAL,
                    priority=Priority.LOW,
                    title=f"{goal.title} - Goal Achieved!",
                    message=f"Congratulations! You've reached your goal of {_money(goal.target_amount, 0)}.",
                    action=RecommendationAction(label="Set New Goal", url="/goals"),
                    impact=RecommendationImpact(
                        category=goal.title,
                        value=goal.current_amount,
                        description="Goal completed",
                    ),
                )
            )

    return recommendations


def analyze_savings_opportunities(
    context: RecommendationContext,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[AgentRecommendation]:
    """Suggest trimming the largest category when the savings rate is under the floor"""
    aggregates = context.aggregates

    # No income: treat the savings rate as zero
    if aggregates.monthly_income > 0:
        savings_rate = aggregates.savings / aggregates.monthly_income * HUNDRED
    else:
        savings_rate = Decimal(0)

    if savings_rate >= policy.savings_rate_floor or aggregates.monthly_expenses <= 0:
        return []

    spending = category_breakdown(context.recent_transactions, as_of=context.as_of)
    high_spending = sorted(
        (
            (category, amount)
            for category, amount in spending.items()
            if amount / aggregates.monthly_expenses > policy.high_spend_share
        ),
        key=lambda item: item[1],
        reverse=True,
    )
    if not high_spending:
        return []

    category, amount = high_spending[0]
    potential_savings = amount * policy.spend_reduction
    reduction_pct = policy.spend_reduction * HUNDRED

    return [
        AgentRecommendation(
            type=RecommendationType.SAVINGS,
            priority=Priority.MEDIUM,
            title="Optimize Your Spending",
            message=(
                f"Your {category.value} spending is high at {_money(amount, 0)}/month. "
                f"Reducing by {reduction_pct:.0f}% could save {_money(potential_savings, 0)}/month."
            ),
            action=RecommendationAction(label="View Analytics", url="/analytics"),
            impact=RecommendationImpact(
                category=category.value,
                value=potential_savings,
                description=f"Potential monthly savings: {_money(potential_savings, 0)}",
            ),
        )
    ]


def analyze_anomalies(context: RecommendationContext, policy: ScoringPolicy = DEFAULT_POLICY) -> List[AgentRecommendation]:
    """Surface already-flagged transactions among the most recent ones"""
    latest = sorted(context.recent_transactions, key=lambda t: t.date, reverse=True)
    recommendations = []

    for txn in latest[: policy.anomaly_lookback]:
        if not txn.is_anomaly:
            continue
        recommendations.append(
            AgentRecommendation(
                type=RecommendationType.RISK,
                priority=Priority.MEDIUM,
                title="Unusual Spending Detected",
                message=f"Your recent {txn.category.value} expense of {_money(txn.amount)} is unusually high.",
                action=RecommendationAction(label="Review Transaction", url="/analytics"),
                impact=RecommendationImpact(
                    category=txn.category.value,
                    value=txn.amount,
                    description="Anomalous transaction detected",
                ),
            )
        )

    return recommendations


def analyze_tax_opportunities(context: RecommendationContext, policy: ScoringPolicy = DEFAULT_POLICY) -> List[AgentRecommendation]:
    annual_income = context.aggregates.monthly_income * 12
    if annual_income <= policy.tax_income_threshold:
        return []

    potential_tax_savings = policy.tax_deduction_limit * policy.tax_marginal_rate
    return [
        AgentRecommendation(
            type=RecommendationType.TAX,
            priority=Priority.HIGH,
            title="Tax Saving Opportunity",
            message=f"You could save up to {_money(potential_tax_savings, 0)} in taxes with tax-saving investments.",
            action=RecommendationAction(label="Explore Tax Savings", url="/settings"),
            impact=RecommendationImpact(
                category="Tax",
                value=potential_tax_savings,
                description=f"Potential tax savings: {_money(potential_tax_savings, 0)}",
            ),
        )
    ]


def rank_recommendations(recommendations: List[AgentRecommendation]) -> List[AgentRecommendation]:
    """Sort by priority, critical first; equal priorities keep emission order"""
    return sorted(recommendations, key=lambda r: r.priority.rank, reverse=True)


def generate_recommendations(
    context: RecommendationContext,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[AgentRecommendation]:
    """
    Main entry point: run every check and return one ranked list.

    Check order (also the tie-break order within a priority):
    1. Budget health
    2. Goal pace
    3. Savings opportunity
    4. Anomaly surfacing
    5. Tax opportunity
    """
    recommendations: List[AgentRecommendation] = []
    recommendations.extend(analyze_budgets(context.budgets, policy))
    recommendations.extend(analyze_goals(context.goals, context.as_of, policy))
    recommendations.extend(analyze_savings_opportunities(context, policy))
    recommendations.extend(analyze_anomalies(context, policy))
    recommendations.extend(analyze_tax_opportunities(context, policy))

    return rank_recommendations(recommendations)
