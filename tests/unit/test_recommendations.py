"""Unit tests for the recommendation engine"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from cashflow_insights.domain.models import (
    AgentRecommendation,
    Budget,
    Category,
    FinancialAggregates,
    Goal,
    GoalStatus,
    Priority,
    RecommendationContext,
    RecommendationImpact,
    RecommendationType,
    Transaction,
)
from cashflow_insights.domain.policy import ScoringPolicy
from cashflow_insights.domain.recommendations import (
    analyze_anomalies,
    analyze_budgets,
    analyze_goals,
    analyze_savings_opportunities,
    analyze_tax_opportunities,
    expected_progress,
    generate_recommendations,
    rank_recommendations,
)

AS_OF = date(2024, 6, 28)


def aggregates(income=50000, expenses=20000) -> FinancialAggregates:
    return FinancialAggregates(
        monthly_income=income,
        monthly_expenses=expenses,
        savings=income - expenses,
        debts=0,
        liquidity=100000,
    )


def context(**overrides) -> RecommendationContext:
    values = {"aggregates": aggregates(), "as_of": AS_OF}
    values.update(overrides)
    return RecommendationContext(**values)


def behind_goal() -> Goal:
    return Goal(
        title="Vacation",
        target_amount=100000,
        current_amount=10000,
        created_at=date(2024, 1, 1),
        deadline=date(2024, 12, 31),
    )


def achieved_goal() -> Goal:
    return Goal(
        title="Emergency Fund",
        target_amount=50000,
        current_amount=50000,
        created_at=date(2024, 1, 1),
        deadline=date(2024, 12, 31),
    )


# Budgets


def test_budget_over_critical_threshold():
    recs = analyze_budgets([Budget(category=Category.FOOD, amount=10000, spent=9500)])

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type == RecommendationType.BUDGET
    assert rec.priority == Priority.CRITICAL
    assert rec.title == "food Budget Exceeded"
    assert rec.message == "You've spent 95% of your food budget. Consider reducing spending."
    assert rec.action.url == "/budget"
    assert rec.impact.category == "food"
    assert rec.impact.value == Decimal("-500")


def test_budget_overspent_impact():
    rec = analyze_budgets([Budget(category=Category.SHOPPING, amount=5000, spent=6000)])[0]

    assert rec.priority == Priority.CRITICAL
    assert rec.impact.value == Decimal("1000")
    assert rec.impact.description == "₹1000.00 over budget"


def test_budget_alert():
    rec = analyze_budgets([Budget(category=Category.FOOD, amount=10000, spent=8500)])[0]

    assert rec.priority == Priority.HIGH
    assert rec.title == "food Budget Alert"
    assert rec.message == "You're at 85% of your food budget. Be mindful of spending."
    assert rec.impact.value == Decimal("1500")
    assert rec.impact.description == "₹1500.00 remaining"


@pytest.mark.parametrize(
    "spent,expected",
    [(7999, None), (8000, Priority.HIGH), (8999, Priority.HIGH), (9000, Priority.CRITICAL)],
)
def test_budget_thresholds_inclusive(spent, expected):
    recs = analyze_budgets([Budget(category=Category.BILLS, amount=10000, spent=spent)])
    assert [r.priority for r in recs] == ([expected] if expected else [])


def test_inactive_budget_ignored():
    budget = Budget(category=Category.FOOD, amount=10000, spent=20000, is_active=False)
    assert analyze_budgets([budget]) == []


def test_budget_custom_policy():
    policy = ScoringPolicy(budget_alert_pct=Decimal("50"))
    recs = analyze_budgets([Budget(category=Category.FOOD, amount=10000, spent=6000)], policy)
    assert recs[0].priority == Priority.HIGH


# Goals


def test_goal_behind_schedule():
    recs = analyze_goals([behind_goal()], date(2024, 7, 1))

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type == RecommendationType.GOAL
    assert rec.priority == Priority.HIGH
    assert rec.title == "Vacation - Behind Schedule"
    assert rec.message.startswith("Your goal is 40% behind.")
    assert rec.action.url == "/goals"
    # 90000 remaining over 183 days
    assert float(rec.impact.value) == pytest.approx(90000 / (183 / 30))


def test_goal_on_pace_no_recommendation():
    goal = behind_goal()
    goal.current_amount = Decimal("45000")
    assert analyze_goals([goal], date(2024, 7, 1)) == []


def test_goal_within_tolerance_no_recommendation():
    """Expected ~49.9%, actual 40%: lag under ten points"""
    goal = behind_goal()
    goal.current_amount = Decimal("40000")
    assert analyze_goals([goal], date(2024, 7, 1)) == []


def test_goal_achieved():
    rec = analyze_goals([achieved_goal()], date(2024, 7, 1))[0]

    assert rec.priority == Priority.LOW
    assert rec.title == "Emergency Fund - Goal Achieved!"
    assert rec.message == "Congratulations! You've reached your goal of ₹50000."


def test_goal_past_deadline_not_nagged():
    goal = behind_goal()
    assert analyze_goals([goal], date(2025, 1, 15)) == []


def test_inactive_goals_skipped():
    goal = achieved_goal()
    goal.status = GoalStatus.COMPLETED
    assert analyze_goals([goal], date(2024, 7, 1)) == []


def test_expected_progress():
    goal = behind_goal()
    assert expected_progress(goal, goal.created_at) == 0
    assert expected_progress(goal, goal.deadline) == 100

    same_day = Goal(title="x", target_amount=1, current_amount=0, created_at=AS_OF, deadline=AS_OF)
    assert expected_progress(same_day, AS_OF) == 100


# Savings


def test_savings_opportunity_targets_largest_category(recent_transactions):
    ctx = context(aggregates=aggregates(income=20000, expenses=18000), recent_transactions=recent_transactions)
    recs = analyze_savings_opportunities(ctx)

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type == RecommendationType.SAVINGS
    assert rec.priority == Priority.MEDIUM
    assert rec.title == "Optimize Your Spending"
    assert rec.message == (
        "Your food spending is high at ₹8400/month. Reducing by 15% could save ₹1260/month."
    )
    assert rec.impact.category == "food"
    assert rec.impact.value == Decimal("1260")


def test_no_savings_opportunity_when_rate_healthy(recent_transactions):
    ctx = context(aggregates=aggregates(income=50000, expenses=20000), recent_transactions=recent_transactions)
    assert analyze_savings_opportunities(ctx) == []


def test_no_savings_opportunity_without_dominant_category(recent_transactions):
    # 8400 / 45000 is under a quarter of expenses
    ctx = context(aggregates=aggregates(income=50000, expenses=45000), recent_transactions=recent_transactions)
    assert analyze_savings_opportunities(ctx) == []


def test_savings_only_counts_current_month(recent_transactions):
    ctx = context(
        aggregates=aggregates(income=20000, expenses=18000),
        recent_transactions=recent_transactions,
        as_of=date(2024, 7, 2),
    )
    assert analyze_savings_opportunities(ctx) == []


def test_zero_income_savings_rate(recent_transactions):
    ctx = context(
        aggregates=FinancialAggregates(
            monthly_income=0, monthly_expenses=10000, savings=-10000, debts=0, liquidity=0
        ),
        recent_transactions=recent_transactions,
    )
    assert analyze_savings_opportunities(ctx)[0].impact.category == "food"


# Anomalies


def test_flagged_transactions_surfaced():
    txns = [
        Transaction(amount=Decimal("5000"), category=Category.SHOPPING, date=AS_OF, is_anomaly=True),
        Transaction(amount=Decimal("300"), category=Category.FOOD, date=AS_OF),
    ]
    recs = analyze_anomalies(context(recent_transactions=txns))

    assert len(recs) == 1
    assert recs[0].type == RecommendationType.RISK
    assert recs[0].title == "Unusual Spending Detected"
    assert recs[0].message == "Your recent shopping expense of ₹5000.00 is unusually high."


def test_only_latest_ten_considered():
    txns = [
        Transaction(
            amount=Decimal(1000 + i),
            category=Category.SHOPPING,
            date=AS_OF - timedelta(days=i),
            is_anomaly=True,
        )
        for i in range(15)
    ]
    recs = analyze_anomalies(context(recent_transactions=list(reversed(txns))))

    assert len(recs) == 10
    assert {r.impact.value for r in recs} == {Decimal(1000 + i) for i in range(10)}


def test_old_anomaly_not_surfaced():
    txns = [Transaction(amount=Decimal("100"), category=Category.FOOD, date=AS_OF - timedelta(days=i)) for i in range(10)]
    txns.append(Transaction(amount=Decimal("9000"), category=Category.FOOD, date=AS_OF - timedelta(days=30), is_anomaly=True))
    assert analyze_anomalies(context(recent_transactions=txns)) == []


# Tax


def test_tax_opportunity_for_high_earners():
    recs = analyze_tax_opportunities(context(aggregates=aggregates(income=90000)))

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type == RecommendationType.TAX
    assert rec.priority == Priority.HIGH
    assert rec.impact.value == Decimal("45000")
    assert rec.message == "You could save up to ₹45000 in taxes with tax-saving investments."


def test_no_tax_opportunity_below_threshold():
    assert analyze_tax_opportunities(context(aggregates=aggregates(income=80000))) == []


def test_tax_policy_configurable():
    policy = ScoringPolicy(tax_income_threshold=Decimal("500000"), tax_marginal_rate=Decimal("0.2"))
    recs = analyze_tax_opportunities(context(aggregates=aggregates(income=50000)), policy)
    assert recs[0].impact.value == Decimal("30000")


# Ranking


def rec(priority: Priority, title: str) -> AgentRecommendation:
    return AgentRecommendation(
        type=RecommendationType.RISK,
        priority=priority,
        title=title,
        message="",
        impact=RecommendationImpact(category="x", value=Decimal(0), description=""),
    )


def test_ranking_orders_by_priority():
    ranked = rank_recommendations(
        [rec(Priority.LOW, "a"), rec(Priority.CRITICAL, "b"), rec(Priority.MEDIUM, "c"), rec(Priority.HIGH, "d")]
    )
    assert [r.title for r in ranked] == ["b", "d", "c", "a"]


def test_ranking_is_stable():
    ranked = rank_recommendations(
        [rec(Priority.HIGH, "first"), rec(Priority.LOW, "low"), rec(Priority.HIGH, "second"), rec(Priority.HIGH, "third")]
    )
    assert [r.title for r in ranked] == ["first", "second", "third", "low"]


def test_generate_recommendations_end_to_end(recent_transactions):
    ctx = context(
        aggregates=aggregates(income=90000, expenses=85000),
        budgets=[
            Budget(category=Category.FOOD, amount=10000, spent=9500),
            Budget(category=Category.TRANSPORT, amount=2000, spent=1700),
        ],
        goals=[achieved_goal(), behind_goal()],
        recent_transactions=recent_transactions
        + [Transaction(amount=Decimal("7000"), category=Category.SHOPPING, date=AS_OF, is_anomaly=True)],
        as_of=date(2024, 6, 28),
    )
    recs = generate_recommendations(ctx)

    assert [r.title for r in recs] == [
        "food Budget Exceeded",
        "transport Budget Alert",
        "Vacation - Behind Schedule",
        "Tax Saving Opportunity",
        "Unusual Spending Detected",
        "Emergency Fund - Goal Achieved!",
    ]
    ranks = [r.priority.rank for r in recs]
    assert ranks == sorted(ranks, reverse=True)


def test_generate_recommendations_quiet_profile():
    assert generate_recommendations(context()) == []


def test_generate_recommendations_does_not_modify_context(recent_transactions):
    txns = list(recent_transactions)
    ctx = context(recent_transactions=txns, budgets=[Budget(category=Category.FOOD, amount=100, spent=95)])
    generate_recommendations(ctx)
    assert ctx.recent_transactions == recent_transactions
