"""SQLAlchemy ORM models for the records this service owns"""

import uuid
from sqlalchemy import Column, Boolean, Date, DateTime, Float, Integer, JSON, Numeric, Text, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ExpenseRecord(Base):
    """Logged expense with categorization confidence and anomaly flag"""

    __tablename__ = "expenses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    is_anomaly = Column(Boolean, nullable=False, default=False)
    anomaly_score = Column(Float, nullable=True)
    confidence_score = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StreakRecord(Base):
    """One row per user; version guards concurrent read-modify-write"""

    __tablename__ = "streaks"

    user_id = Column(Text, primary_key=True)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    total_points = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class HealthScoreRecord(Base):
    """Point-in-time health score snapshot"""

    __tablename__ = "cashflow_scores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    score = Column(Integer, nullable=False)
    income_score = Column(Integer, nullable=False)
    expense_score = Column(Integer, nullable=False)
    savings_score = Column(Integer, nullable=False)
    debt_score = Column(Integer, nullable=False)
    liquidity_score = Column(Integer, nullable=False)
    trend = Column(Text, nullable=False)
    recommendations = Column(JSON, nullable=True)
    score_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
