"""Data access layer for expenses, streaks and score history"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cashflow_insights.domain.exceptions import ConcurrentUpdateError
from cashflow_insights.domain.models import (
    AnomalyResult,
    Category,
    HealthScoreResult,
    StreakState,
    Transaction,
)
from cashflow_insights.infrastructure.database.models import ExpenseRecord, HealthScoreRecord, StreakRecord


class ExpenseRepository:
    """Repository for logged expenses"""

    def __init__(self, db: Session):
        self.db = db

    def create_expense(
        self,
        user_id: str,
        transaction: Transaction,
        confidence: Optional[float],
        anomaly: Optional[AnomalyResult],
    ) -> ExpenseRecord:
        """Persist expense with its insight annotations"""
        db_expense = ExpenseRecord(
            user_id=user_id,
            amount=transaction.amount,
            category=transaction.category.value,
            description=transaction.description,
            date=transaction.date,
            is_anomaly=anomaly.is_anomaly if anomaly else False,
            anomaly_score=anomaly.score if anomaly else None,
            confidence_score=confidence,
        )
        self.db.add(db_expense)
        self.db.flush()  # Get ID without committing
        return db_expense

    def get_recent_amounts(self, user_id: str, category: Category, limit: int = 50) -> List[Decimal]:
        """Most recent same-category amounts, the anomaly detector's sample"""
        rows = (
            self.db.query(ExpenseRecord.amount)
            .filter(ExpenseRecord.user_id == user_id)
            .filter(ExpenseRecord.category == category.value)
            .order_by(ExpenseRecord.date.desc(), ExpenseRecord.created_at.desc())
            .limit(limit)
            .all()
        )
        return [Decimal(row.amount) for row in rows]

    def get_expenses_by_user(self, user_id: str, limit: int = 50) -> List[ExpenseRecord]:
        return (
            self.db.query(ExpenseRecord)
            .filter(ExpenseRecord.user_id == user_id)
            .order_by(ExpenseRecord.date.desc(), ExpenseRecord.created_at.desc())
            .limit(limit)
            .all()
        )


class StreakRepository:
    """
    Repository for per-user streak state.

    Writes are optimistic: every row carries a version, and an update only
    lands when the version read alongside the state is still current.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_streak(self, user_id: str) -> Tuple[Optional[StreakState], Optional[int]]:
        """Return (state, version), or (None, None) when the user has no record"""
        record = self.db.get(StreakRecord, user_id, populate_existing=True)
        if record is None:
            return None, None
        state = StreakState(
            user_id=record.user_id,
            current_streak=record.current_streak,
            longest_streak=record.longest_streak,
            total_points=record.total_points,
            last_activity_date=record.last_activity_date,
        )
        return state, record.version

    def save_streak(self, state: StreakState, expected_version: Optional[int]) -> int:
        """
        Insert (expected_version None) or conditionally update the record.

        Raises:
            ConcurrentUpdateError: another writer created or changed the record first
        """
        if expected_version is None:
            self.db.add(
                StreakRecord(
                    user_id=state.user_id,
                    current_streak=state.current_streak,
                    longest_streak=state.longest_streak,
                    total_points=state.total_points,
                    last_activity_date=state.last_activity_date,
                    version=1,
                )
            )
            try:
                self.db.flush()
            except IntegrityError as e:
                raise ConcurrentUpdateError(f"Streak for {state.user_id} created concurrently") from e
            return 1

        result = self.db.execute(
            update(StreakRecord)
            .where(StreakRecord.user_id == state.user_id)
            .where(StreakRecord.version == expected_version)
            .values(
                current_streak=state.current_streak,
                longest_streak=state.longest_streak,
                total_points=state.total_points,
                last_activity_date=state.last_activity_date,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrentUpdateError(f"Streak for {state.user_id} changed since version {expected_version}")
        return expected_version + 1


class HealthScoreRepository:
    """Repository for health score history"""

    def __init__(self, db: Session):
        self.db = db

    def create_score(self, user_id: str, result: HealthScoreResult, score_date: date) -> HealthScoreRecord:
        db_score = HealthScoreRecord(
            user_id=user_id,
            score=result.score,
            income_score=result.breakdown.income,
            expense_score=result.breakdown.expense,
            savings_score=result.breakdown.savings,
            debt_score=result.breakdown.debt,
            liquidity_score=result.breakdown.liquidity,
            trend=result.trend.value,
            recommendations=list(result.recommendations),
            score_date=score_date,
        )
        self.db.add(db_score)
        self.db.flush()
        return db_score

    def get_scores_by_user(self, user_id: str, limit: int = 30) -> List[HealthScoreRecord]:
        """Fetch recent scores, newest first"""
        return (
            self.db.query(HealthScoreRecord)
            .filter(HealthScoreRecord.user_id == user_id)
            .order_by(HealthScoreRecord.score_date.desc(), HealthScoreRecord.created_at.desc())
            .limit(limit)
            .all()
        )
