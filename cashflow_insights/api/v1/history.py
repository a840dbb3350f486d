"""GET /v1/insights/health-score/history - Fetch a user's score history"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cashflow_insights.api.v1.schemas import BreakdownSchema, ScoreHistoryItem, ScoreHistoryResponse
from cashflow_insights.config import settings
from cashflow_insights.infrastructure.database.session import get_db
from cashflow_insights.infrastructure.database.repositories import HealthScoreRepository

router = APIRouter()


@router.get("/insights/health-score/history", response_model=ScoreHistoryResponse)
def get_score_history(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    """
    Retrieve recent health scores for a user.

    Returns:
        Scores newest first, with their breakdown and trend
    """
    score_repo = HealthScoreRepository(db)
    scores = score_repo.get_scores_by_user(user_id, limit=settings.score_history_limit)

    history_items = [
        ScoreHistoryItem(
            score=s.score,
            trend=s.trend,
            score_date=s.score_date,
            breakdown=BreakdownSchema(
                income=s.income_score,
                expense=s.expense_score,
                savings=s.savings_score,
                debt=s.debt_score,
                liquidity=s.liquidity_score,
            ),
        )
        for s in scores
    ]

    return ScoreHistoryResponse(user_id=user_id, scores=history_items)
