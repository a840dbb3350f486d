"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from cashflow_insights.config import Settings, settings
from cashflow_insights.domain.policy import ScoringPolicy


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def build_scoring_policy(config: Settings) -> ScoringPolicy:
    """Translate environment settings into the engine's policy object"""
    return ScoringPolicy(
        reference_income=config.reference_income,
        anomaly_z_threshold=config.anomaly_z_threshold,
        min_history=config.anomaly_min_history,
        history_window=config.history_window,
        budget_alert_pct=config.budget_alert_pct,
        budget_critical_pct=config.budget_critical_pct,
        goal_lag_tolerance=config.goal_lag_tolerance,
        savings_rate_floor=config.savings_rate_floor,
        high_spend_share=config.high_spend_share,
        spend_reduction=config.spend_reduction,
        tax_income_threshold=config.tax_income_threshold,
        tax_deduction_limit=config.tax_deduction_limit,
        tax_marginal_rate=config.tax_marginal_rate,
        streak_base_points=config.streak_base_points,
    )


def get_scoring_policy() -> ScoringPolicy:
    """Provide the scoring policy for the current settings"""
    return build_scoring_policy(settings)
