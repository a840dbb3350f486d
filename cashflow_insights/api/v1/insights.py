"""POST /v1/insights/* - stateless scoring, classification, anomaly and recommendation endpoints"""

import time
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from cashflow_insights.api.dependencies import get_request_id, get_scoring_policy
from cashflow_insights.api.v1.schemas import (
    AnomalyRequest,
    AnomalyResponse,
    ClassifyRequest,
    ClassifyResponse,
    HealthScoreRequest,
    HealthScoreResponse,
    RecommendationSchema,
    RecommendationsRequest,
    RecommendationsResponse,
)
from cashflow_insights.domain.anomaly import detect_anomaly
from cashflow_insights.domain.classifier import classify_expense
from cashflow_insights.domain.exceptions import InvalidInputError
from cashflow_insights.domain.health_score import calculate_health_score
from cashflow_insights.domain.models import RecommendationContext
from cashflow_insights.domain.policy import ScoringPolicy
from cashflow_insights.domain.recommendations import generate_recommendations
from cashflow_insights.infrastructure.database.repositories import HealthScoreRepository
from cashflow_insights.infrastructure.database.session import get_db
from cashflow_insights.infrastructure.observability.logging import log_health_score
from cashflow_insights.infrastructure.observability.metrics import (
    categorization_counter,
    insight_failures_counter,
    record_anomaly_check,
    record_health_score,
    record_recommendations,
)

router = APIRouter()


def invalid_input(e: InvalidInputError) -> HTTPException:
    """422 carrying the offending field"""
    return HTTPException(status_code=422, detail={"message": str(e), "field": e.field})


@router.post("/insights/classify", response_model=ClassifyResponse)
def classify(request_body: ClassifyRequest):
    """Suggest a category for a free-text expense description"""
    prediction = classify_expense(request_body.description, request_body.amount)
    categorization_counter.labels(category=prediction.category.value).inc()
    return ClassifyResponse(category=prediction.category, confidence=prediction.confidence)


@router.post("/insights/anomaly", response_model=AnomalyResponse)
def anomaly(
    request_body: AnomalyRequest,
    policy: ScoringPolicy = Depends(get_scoring_policy),
):
    """Z-score test of one transaction against a caller-supplied history"""
    try:
        result = detect_anomaly(request_body.transaction.to_domain(), request_body.historical_amounts, policy)
    except InvalidInputError as e:
        raise invalid_input(e)

    record_anomaly_check(result.is_anomaly, result.explanation)
    return AnomalyResponse(is_anomaly=result.is_anomaly, score=result.score, explanation=result.explanation)


@router.post("/insights/health-score", response_model=HealthScoreResponse)
def health_score(
    request_body: HealthScoreRequest,
    request: Request,
    db: Session = Depends(get_db),
    policy: ScoringPolicy = Depends(get_scoring_policy),
):
    """
    Score current-period aggregates from 0 to 100.

    Flow:
    1. Validate aggregates (negative figures are rejected, never coerced)
    2. Compute score, breakdown, trend and recommendations
    3. Store a history snapshot when user_id is supplied
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = calculate_health_score(request_body.aggregates.to_domain(), policy)
    except InvalidInputError as e:
        raise invalid_input(e)

    if request_body.user_id:
        try:
            HealthScoreRepository(db).create_score(request_body.user_id, result, date.today())
            db.commit()
        except Exception as e:
            # History is a side record; the score itself is still returned
            db.rollback()
            insight_failures_counter.labels(stage="score_history").inc()
            logging.error(f"Failed to store score history: {e}", extra={"request_id": request_id})

    duration_ms = (time.time() - start_time) * 1000
    record_health_score(result)
    log_health_score(request_id, request_body.user_id, result, duration_ms)

    return HealthScoreResponse.from_domain(result)


@router.post("/insights/recommendations", response_model=RecommendationsResponse)
def recommendations(
    request_body: RecommendationsRequest,
    request: Request,
    policy: ScoringPolicy = Depends(get_scoring_policy),
):
    """
    Ranked recommendations from budgets, goals, recent transactions and aggregates.

    Invalid input is a 422. Any other failure degrades to available=False with
    an empty list, since recommendations never block the dashboard.
    """
    request_id = get_request_id(request)

    try:
        context = RecommendationContext(
            aggregates=request_body.aggregates.to_domain(),
            budgets=[b.to_domain() for b in request_body.budgets],
            goals=[g.to_domain() for g in request_body.goals],
            recent_transactions=[t.to_domain() for t in request_body.recent_transactions],
            as_of=request_body.as_of or date.today(),
        )
    except InvalidInputError as e:
        raise invalid_input(e)

    try:
        ranked = generate_recommendations(context, policy)
    except Exception as e:
        insight_failures_counter.labels(stage="recommendations").inc()
        logging.error(f"Recommendations unavailable: {e}", extra={"request_id": request_id})
        return RecommendationsResponse(available=False, recommendations=[])

    record_recommendations(ranked)
    return RecommendationsResponse(
        available=True,
        recommendations=[RecommendationSchema.from_domain(r) for r in ranked],
    )
