"""Tunable constants for scoring, anomaly detection and recommendations"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Immutable bundle of engine thresholds, owned by the caller.

    Defaults reproduce the production heuristics. The tax figures are
    illustrative region-specific values (annual income above 10L, an 80C-style
    deduction cap at a 30% marginal rate), not verified tax law.
    """

    # Health score
    reference_income: Decimal = Decimal("50000")

    # Anomaly detection
    anomaly_z_threshold: Decimal = Decimal("2")
    anomaly_score_scale: Decimal = Decimal("3")
    min_history: int = 10
    history_window: int = 50

    # Budgets (percent of budget spent)
    budget_alert_pct: Decimal = Decimal("80")
    budget_critical_pct: Decimal = Decimal("90")

    # Goals (percentage points behind linear pace)
    goal_lag_tolerance: Decimal = Decimal("10")

    # Savings opportunity
    savings_rate_floor: Decimal = Decimal("20")
    high_spend_share: Decimal = Decimal("0.25")
    spend_reduction: Decimal = Decimal("0.15")

    # Anomaly surfacing
    anomaly_lookback: int = 10

    # Tax
    tax_income_threshold: Decimal = Decimal("1000000")
    tax_deduction_limit: Decimal = Decimal("150000")
    tax_marginal_rate: Decimal = Decimal("0.3")

    # Streaks
    streak_base_points: int = 10


DEFAULT_POLICY = ScoringPolicy()
