"""Prometheus metrics for score distribution, anomaly rates, recommendations and streaks"""

from typing import List

from prometheus_client import Counter, Histogram

from cashflow_insights.domain.anomaly import INSUFFICIENT_DATA
from cashflow_insights.domain.models import AgentRecommendation, HealthScoreResult

# Scoring metrics
health_score_histogram = Histogram(
    "cashflow_health_score",
    "Distribution of computed health scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

health_trend_counter = Counter(
    "cashflow_health_trend_total",
    "Health scores by trend label",
    ["trend"],  # improving | stable | declining
)

# Expense insight metrics
categorization_counter = Counter(
    "cashflow_categorization_total",
    "Auto-categorized expenses",
    ["category"],
)

anomaly_check_counter = Counter(
    "cashflow_anomaly_checks_total",
    "Anomaly checks by outcome",
    ["outcome"],  # anomaly | normal | insufficient_data
)

insight_failures_counter = Counter(
    "cashflow_insight_failures_total",
    "Insight computations that degraded to an empty result",
    ["stage"],
)

# Recommendation metrics
recommendation_counter = Counter(
    "cashflow_recommendations_total",
    "Recommendations emitted by priority",
    ["priority"],
)

# Gamification metrics
streak_transition_counter = Counter(
    "cashflow_streak_transitions_total",
    "Streak state transitions",
    ["transition"],  # started | same_day | extended | reset | backdated
)

streak_conflict_counter = Counter(
    "cashflow_streak_conflicts_total",
    "Optimistic-lock conflicts on streak writes",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_health_score(result: HealthScoreResult) -> None:
    health_score_histogram.observe(result.score)
    health_trend_counter.labels(trend=result.trend.value).inc()


def record_recommendations(recommendations: List[AgentRecommendation]) -> None:
    for rec in recommendations:
        recommendation_counter.labels(priority=rec.priority.value).inc()


def record_anomaly_check(is_anomaly: bool, explanation: str) -> None:
    """Bucket anomaly outcomes, separating thin history from normal spend"""
    if is_anomaly:
        outcome = "anomaly"
    elif explanation == INSUFFICIENT_DATA:
        outcome = "insufficient_data"
    else:
        outcome = "normal"
    anomaly_check_counter.labels(outcome=outcome).inc()
