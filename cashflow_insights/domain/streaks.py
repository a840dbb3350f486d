"""Streak and points state machine for daily activity"""

from dataclasses import replace
from datetime import date
from typing import Optional

from cashflow_insights.domain.exceptions import InsufficientPointsError, InvalidInputError
from cashflow_insights.domain.models import StreakState
from cashflow_insights.domain.policy import DEFAULT_POLICY, ScoringPolicy
from cashflow_insights.utils.date_utils import days_between

# Transition labels, used for metrics and logs
STARTED = "started"
SAME_DAY = "same_day"
EXTENDED = "extended"
RESET = "reset"
BACKDATED = "backdated"


def classify_transition(state: Optional[StreakState], activity_date: date) -> str:
    """Name the transition an activity on activity_date would cause"""
    if state is None or state.last_activity_date is None:
        return STARTED

    diff_days = days_between(state.last_activity_date, activity_date)
    if diff_days == 0:
        return SAME_DAY
    elif diff_days == 1:
        return EXTENDED
    elif diff_days > 1:
        return RESET
    return BACKDATED


def advance_streak(
    state: Optional[StreakState],
    activity_date: date,
    user_id: Optional[str] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> StreakState:
    """
    Apply one qualifying activity and return the new state.

    Transitions (diff = activity_date - last_activity_date in days):
    - no record / no last date: streak 1, longest 1, +10 points
    - diff == 0: unchanged (same-day activity is idempotent)
    - diff == 1: streak + 1, +streak*10 points, longest = max(longest, streak)
    - diff > 1:  streak reset to 1, +10 points, longest kept
    - diff < 0:  unchanged (backdated activity never rewinds or rewards)

    The input state is never mutated.
    """
    base = policy.streak_base_points
    transition = classify_transition(state, activity_date)

    if transition == STARTED:
        owner = state.user_id if state is not None else user_id
        if not owner:
            raise InvalidInputError("user_id", "'user_id' is required to start a streak")
        return StreakState(
            user_id=owner,
            current_streak=1,
            longest_streak=1,
            total_points=base,
            last_activity_date=activity_date,
        )

    if transition in (SAME_DAY, BACKDATED):
        return replace(state)

    if transition == EXTENDED:
        streak = state.current_streak + 1
        return replace(
            state,
            current_streak=streak,
            longest_streak=max(state.longest_streak, streak),
            total_points=state.total_points + streak * base,
            last_activity_date=activity_date,
        )

    return replace(
        state,
        current_streak=1,
        total_points=state.total_points + base,
        last_activity_date=activity_date,
    )


def award_bonus_points(state: StreakState, points: int) -> StreakState:
    """Add achievement points without touching the streak"""
    if points <= 0:
        raise InvalidInputError("points", "'points' must be greater than zero")
    return replace(state, total_points=state.total_points + points)


def redeem_points(state: StreakState, cost: int) -> StreakState:
    """Spend points on a reward; the balance never goes negative"""
    if cost <= 0:
        raise InvalidInputError("points", "'points' must be greater than zero")
    if cost > state.total_points:
        raise InsufficientPointsError(
            f"Need {cost - state.total_points} more points to redeem {cost}"
        )
    return replace(state, total_points=state.total_points - cost)
