"""POST /v1/expenses - record an expense with categorization, anomaly flag and streak update"""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cashflow_insights.api.dependencies import get_request_id, get_scoring_policy
from cashflow_insights.api.v1.schemas import (
    ExpenseItem,
    ExpenseListResponse,
    ExpenseRequest,
    ExpenseResponse,
    StreakSchema,
)
from cashflow_insights.api.v1.streaks import record_activity
from cashflow_insights.config import settings
from cashflow_insights.domain.anomaly import detect_anomaly
from cashflow_insights.domain.classifier import classify_expense
from cashflow_insights.domain.exceptions import InvalidInputError
from cashflow_insights.domain.models import Transaction, TransactionFeatures
from cashflow_insights.domain.policy import ScoringPolicy
from cashflow_insights.infrastructure.database.repositories import ExpenseRepository
from cashflow_insights.infrastructure.database.session import get_db
from cashflow_insights.infrastructure.observability.logging import log_expense_recorded
from cashflow_insights.infrastructure.observability.metrics import (
    categorization_counter,
    insight_failures_counter,
    record_anomaly_check,
)

router = APIRouter()


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
def create_expense(
    request_body: ExpenseRequest,
    request: Request,
    db: Session = Depends(get_db),
    policy: ScoringPolicy = Depends(get_scoring_policy),
):
    """
    Record an expense the way the add-expense form does.

    Flow:
    1. Auto-categorize from the description when no category is given
    2. Test the amount against the user's recent same-category history
    3. Persist the expense with its anomaly flag and confidence
    4. Advance the user's activity streak

    Steps 2 and 4 are best-effort: failures are logged and the expense is
    still saved.
    """
    request_id = get_request_id(request)
    user_id = request_body.user_id
    expense_date = request_body.date or date.today()

    # 1. Categorize
    category = request_body.category
    confidence = None
    if category is None:
        prediction = classify_expense(request_body.description, request_body.amount)
        category = prediction.category
        confidence = prediction.confidence
        categorization_counter.labels(category=category.value).inc()

    expense_repo = ExpenseRepository(db)

    # 2. Anomaly check against history recorded before this expense
    anomaly = None
    try:
        history = expense_repo.get_recent_amounts(user_id, category, limit=policy.history_window)
        features = TransactionFeatures(
            amount=request_body.amount,
            category=category,
            day_of_week=expense_date.weekday(),
            hour_of_day=request_body.hour_of_day if request_body.hour_of_day is not None else datetime.now().hour,
        )
        anomaly = detect_anomaly(features, history, policy)
        record_anomaly_check(anomaly.is_anomaly, anomaly.explanation)
    except Exception as e:
        db.rollback()
        insight_failures_counter.labels(stage="anomaly").inc()
        logging.warning(f"Anomaly check unavailable: {e}", extra={"request_id": request_id})

    # 3. Persist
    try:
        transaction = Transaction(
            amount=request_body.amount,
            category=category,
            date=expense_date,
            description=request_body.description,
            is_anomaly=anomaly.is_anomaly if anomaly else False,
        )
        db_expense = expense_repo.create_expense(user_id, transaction, confidence, anomaly)
        expense_id = str(db_expense.id)
        db.commit()
    except InvalidInputError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail={"message": str(e), "field": e.field})
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to record expense: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    log_expense_recorded(request_id, user_id, category.value, confidence, transaction.is_anomaly)

    # 4. Streak counts the day the user was active, not the expense date
    streak = None
    try:
        streak = record_activity(db, user_id, date.today(), policy)
    except Exception as e:
        db.rollback()
        insight_failures_counter.labels(stage="streak").inc()
        logging.warning(f"Streak update failed: {e}", extra={"request_id": request_id})

    return ExpenseResponse(
        expense_id=expense_id,
        category=category,
        confidence=confidence,
        is_anomaly=transaction.is_anomaly,
        anomaly_score=anomaly.score if anomaly else None,
        anomaly_explanation=anomaly.explanation if anomaly else None,
        streak=StreakSchema.from_domain(streak) if streak else None,
    )


@router.get("/expenses", response_model=ExpenseListResponse)
def list_expenses(
    user_id: str = Query(..., description="User identifier"),
    limit: int = Query(settings.recent_expenses_limit, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Recent expenses for a user, newest first"""
    records = ExpenseRepository(db).get_expenses_by_user(user_id, limit=limit)

    return ExpenseListResponse(
        user_id=user_id,
        expenses=[
            ExpenseItem(
                expense_id=str(e.id),
                amount=float(e.amount),
                category=e.category,
                description=e.description,
                date=e.date,
                is_anomaly=e.is_anomaly,
                confidence_score=e.confidence_score,
            )
            for e in records
        ],
    )
