"""Statistical anomaly detection for new expenses"""

from decimal import Decimal
from typing import Iterable

from cashflow_insights.domain.models import (
    AnomalyResult,
    TransactionFeatures,
    to_money,
)
from cashflow_insights.domain.policy import DEFAULT_POLICY, ScoringPolicy

INSUFFICIENT_DATA = "Insufficient historical data"
NORMAL_PATTERN = "Normal spending pattern"


def detect_anomaly(
    transaction: TransactionFeatures,
    historical_amounts: Iterable,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> AnomalyResult:
    """
    Flag a transaction whose amount sits far from its category's history.

    Method:
    - mean and population standard deviation of the supplied sample
    - z = |amount - mean| / std
    - anomalous when z > policy.anomaly_z_threshold (2)
    - score = min(z / 3, 1)

    Fewer than policy.min_history samples, or a zero-variance sample,
    is never anomalous.
    """
    amounts = [to_money(a, "historical_amounts") for a in historical_amounts]

    if len(amounts) < policy.min_history:
        return AnomalyResult(is_anomaly=False, score=0.0, explanation=INSUFFICIENT_DATA)

    count = Decimal(len(amounts))
    mean = sum(amounts, Decimal(0)) / count
    variance = sum(((a - mean) ** 2 for a in amounts), Decimal(0)) / count
    std_dev = variance.sqrt()

    # z-score undefined for a constant sample
    if std_dev == 0:
        return AnomalyResult(is_anomaly=False, score=0.0, explanation=NORMAL_PATTERN)

    z_score = abs(transaction.amount - mean) / std_dev
    is_anomaly = z_score > policy.anomaly_z_threshold
    score = min(z_score / policy.anomaly_score_scale, Decimal(1))

    if is_anomaly:
        multiple = transaction.amount / mean
        direction = "higher than" if transaction.amount > mean else "of"
        explanation = (
            f"This transaction is {multiple:.1f}x {direction} your usual "
            f"{transaction.category.value} spending"
        )
    else:
        explanation = NORMAL_PATTERN

    return AnomalyResult(
        is_anomaly=is_anomaly,
        score=round(float(score), 4),
        explanation=explanation,
    )
