"""Unit tests for expense anomaly detection"""

import pytest
from decimal import Decimal
from cashflow_insights.domain.anomaly import (
    INSUFFICIENT_DATA,
    NORMAL_PATTERN,
    detect_anomaly,
)
from cashflow_insights.domain.exceptions import InvalidInputError
from cashflow_insights.domain.models import Category, TransactionFeatures
from cashflow_insights.domain.policy import ScoringPolicy


def features(amount, category=Category.FOOD) -> TransactionFeatures:
    return TransactionFeatures(amount=amount, category=category, day_of_week=2, hour_of_day=13)


def test_large_expense_flagged(food_history):
    """Mean 500, std ~16.9: 2000 is far outside the usual range"""
    result = detect_anomaly(features(2000), food_history)

    assert result.is_anomaly is True
    assert result.score == 1.0
    assert result.explanation == "This transaction is 4.0x higher than your usual food spending"


def test_small_expense_flagged_below_mean(food_history):
    result = detect_anomaly(features(400), food_history)

    assert result.is_anomaly is True
    assert result.explanation == "This transaction is 0.8x of your usual food spending"


def test_typical_expense_not_flagged(food_history):
    result = detect_anomaly(features(520), food_history)

    assert result.is_anomaly is False
    assert result.explanation == NORMAL_PATTERN
    # z = 20 / sqrt(285) = 1.1847
    assert result.score == pytest.approx(0.3949, abs=1e-4)


def test_threshold_is_strict():
    """Mean 500, std exactly 100"""
    history = [400, 600] * 5

    at_threshold = detect_anomaly(features(700), history)
    assert at_threshold.is_anomaly is False
    assert at_threshold.score == pytest.approx(0.6667, abs=1e-4)

    past_threshold = detect_anomaly(features(701), history)
    assert past_threshold.is_anomaly is True


@pytest.mark.parametrize("size", [0, 1, 5, 9])
def test_insufficient_history(size):
    result = detect_anomaly(features(100000), [500] * size)

    assert result.is_anomaly is False
    assert result.score == 0.0
    assert result.explanation == INSUFFICIENT_DATA


def test_exactly_min_history_is_evaluated():
    history = [400, 600] * 5
    assert len(history) == 10
    assert detect_anomaly(features(5000), history).is_anomaly is True


def test_constant_history_never_anomalous():
    result = detect_anomaly(features(100000), [500] * 20)

    assert result.is_anomaly is False
    assert result.score == 0.0
    assert result.explanation == NORMAL_PATTERN


def test_score_bounded(food_history):
    for amount in [1, 100, 499, 500, 501, 800, 10**7]:
        result = detect_anomaly(features(amount), food_history)
        assert 0.0 <= result.score <= 1.0


def test_detection_is_repeatable(food_history):
    first = detect_anomaly(features(900), food_history)
    second = detect_anomaly(features(900), food_history)
    assert first == second


def test_history_not_modified(food_history):
    snapshot = list(food_history)
    detect_anomaly(features(2000), food_history)
    assert food_history == snapshot


def test_negative_history_rejected():
    with pytest.raises(InvalidInputError) as exc_info:
        detect_anomaly(features(500), [500] * 9 + [-1])
    assert exc_info.value.field == "historical_amounts"


def test_non_positive_amount_rejected():
    with pytest.raises(InvalidInputError) as exc_info:
        features(0)
    assert exc_info.value.field == "amount"


def test_custom_policy():
    history = [400, 600] * 5
    lenient = ScoringPolicy(anomaly_z_threshold=Decimal("3"))
    assert detect_anomaly(features(750), history, lenient).is_anomaly is False
    assert detect_anomaly(features(750), history).is_anomaly is True

    needs_more = ScoringPolicy(min_history=20)
    assert detect_anomaly(features(5000), history, needs_more).explanation == INSUFFICIENT_DATA

