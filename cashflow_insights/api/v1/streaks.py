"""Streak and points endpoints, plus the retrying read-advance-write cycle they share"""

import logging
from datetime import date
from typing import Callable, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cashflow_insights.api.dependencies import get_scoring_policy
from cashflow_insights.api.v1.schemas import ActivityRequest, PointsRequest, StreakSchema
from cashflow_insights.config import settings
from cashflow_insights.domain.exceptions import (
    ConcurrentUpdateError,
    InsufficientPointsError,
    InvalidInputError,
    StreakNotFoundError,
)
from cashflow_insights.domain.models import StreakState
from cashflow_insights.domain.policy import ScoringPolicy
from cashflow_insights.domain.streaks import (
    advance_streak,
    award_bonus_points,
    classify_transition,
    redeem_points,
)
from cashflow_insights.infrastructure.database.repositories import StreakRepository
from cashflow_insights.infrastructure.database.session import get_db
from cashflow_insights.infrastructure.observability.logging import log_streak_update
from cashflow_insights.infrastructure.observability.metrics import (
    streak_conflict_counter,
    streak_transition_counter,
)

router = APIRouter()


def apply_streak_change(
    db: Session,
    user_id: str,
    change: Callable[[Optional[StreakState]], StreakState],
    max_retries: int | None = None,
) -> Tuple[StreakState, int]:
    """
    Read the user's streak, apply `change`, and write it back optimistically.

    On a version conflict the session is rolled back and the cycle repeats
    with fresh state, so a same-day duplicate turns into a no-op instead of a
    second increment.

    Returns:
        (new state, attempts used)

    Raises:
        ConcurrentUpdateError: still conflicting after max_retries attempts
    """
    max_retries = max_retries or settings.streak_max_retries
    repo = StreakRepository(db)
    attempt = 0

    while True:
        attempt += 1
        state, version = repo.get_streak(user_id)
        new_state = change(state)

        if new_state == state:
            return new_state, attempt

        try:
            repo.save_streak(new_state, version)
            db.commit()
            return new_state, attempt

        except ConcurrentUpdateError:
            db.rollback()
            streak_conflict_counter.inc()
            if attempt >= max_retries:
                raise
            logging.info(f"Streak write conflict for {user_id}, retrying (attempt {attempt})")


def record_activity(
    db: Session,
    user_id: str,
    activity_date: date,
    policy: ScoringPolicy,
) -> StreakState:
    """Advance the user's streak for one qualifying activity"""
    transitions = []

    def change(state: Optional[StreakState]) -> StreakState:
        transitions.append(classify_transition(state, activity_date))
        return advance_streak(state, activity_date, user_id=user_id, policy=policy)

    new_state, attempts = apply_streak_change(db, user_id, change)

    transition = transitions[-1]
    streak_transition_counter.labels(transition=transition).inc()
    log_streak_update(user_id, transition, new_state, attempts)
    return new_state


def require_streak(state: Optional[StreakState], user_id: str) -> StreakState:
    if state is None:
        raise StreakNotFoundError(f"No streak record for {user_id}")
    return state


@router.get("/streaks/{user_id}", response_model=StreakSchema)
def get_streak(user_id: str, db: Session = Depends(get_db)):
    """Current streak, longest streak and points balance"""
    state, _ = StreakRepository(db).get_streak(user_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Streak not found")
    return StreakSchema.from_domain(state)


@router.post("/streaks/{user_id}/activity", response_model=StreakSchema)
def post_activity(
    user_id: str,
    request_body: ActivityRequest,
    db: Session = Depends(get_db),
    policy: ScoringPolicy = Depends(get_scoring_policy),
):
    """
    Register a qualifying activity (defaults to today).

    Same-day and backdated activity leave the record unchanged.
    """
    activity_date = request_body.activity_date or date.today()
    try:
        state = record_activity(db, user_id, activity_date, policy)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StreakSchema.from_domain(state)


@router.post("/streaks/{user_id}/bonus", response_model=StreakSchema)
def post_bonus(user_id: str, request_body: PointsRequest, db: Session = Depends(get_db)):
    """Award achievement points"""
    try:
        state, _ = apply_streak_change(
            db, user_id, lambda s: award_bonus_points(require_streak(s, user_id), request_body.points)
        )
    except StreakNotFoundError:
        raise HTTPException(status_code=404, detail="Streak not found")
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "field": e.field})
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StreakSchema.from_domain(state)


@router.post("/streaks/{user_id}/redeem", response_model=StreakSchema)
def post_redeem(user_id: str, request_body: PointsRequest, db: Session = Depends(get_db)):
    """Spend points on a reward"""
    try:
        state, _ = apply_streak_change(
            db, user_id, lambda s: redeem_points(require_streak(s, user_id), request_body.points)
        )
    except StreakNotFoundError:
        raise HTTPException(status_code=404, detail="Streak not found")
    except InsufficientPointsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "field": e.field})
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StreakSchema.from_domain(state)
