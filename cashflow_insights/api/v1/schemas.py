"""Pydantic schemas for API request/response validation"""

import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cashflow_insights.domain.models import (
    AgentRecommendation,
    Budget,
    Category,
    FinancialAggregates,
    Goal,
    GoalStatus,
    HealthScoreResult,
    StreakState,
    Transaction,
    TransactionFeatures,
)


class AggregatesSchema(BaseModel):
    """Current-period rollup computed by the caller"""

    monthly_income: Decimal = Field(..., ge=0)
    monthly_expenses: Decimal = Field(..., ge=0)
    savings: Decimal = Field(..., description="Income minus expenses, may be negative")
    debts: Decimal = Field(..., ge=0, description="Outstanding loan/EMI balance")
    liquidity: Decimal = Field(..., ge=0, description="Readily available funds")

    def to_domain(self) -> FinancialAggregates:
        return FinancialAggregates(**self.model_dump())


class HealthScoreRequest(BaseModel):
    """Request body for POST /v1/insights/health-score"""

    user_id: Optional[str] = Field(None, min_length=1, description="Record score history when set")
    aggregates: AggregatesSchema


class BreakdownSchema(BaseModel):
    income: int
    expense: int
    savings: int
    debt: int
    liquidity: int


class HealthScoreResponse(BaseModel):
    score: int
    breakdown: BreakdownSchema
    trend: str
    recommendations: List[str]

    @classmethod
    def from_domain(cls, result: HealthScoreResult) -> "HealthScoreResponse":
        b = result.breakdown
        return cls(
            score=result.score,
            breakdown=BreakdownSchema(
                income=b.income, expense=b.expense, savings=b.savings, debt=b.debt, liquidity=b.liquidity
            ),
            trend=result.trend.value,
            recommendations=list(result.recommendations),
        )


class ScoreHistoryItem(BaseModel):
    score: int
    trend: str
    score_date: datetime.date
    breakdown: BreakdownSchema


class ScoreHistoryResponse(BaseModel):
    """Response for GET /v1/insights/health-score/history"""

    user_id: str
    scores: List[ScoreHistoryItem]


class ClassifyRequest(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(Decimal(0), ge=0)


class ClassifyResponse(BaseModel):
    category: Category
    confidence: float


class TransactionFeaturesSchema(BaseModel):
    amount: Decimal = Field(..., gt=0)
    category: Category
    day_of_week: int = Field(0, ge=0, le=6, description="0 = Monday")
    hour_of_day: int = Field(0, ge=0, le=23)

    def to_domain(self) -> TransactionFeatures:
        return TransactionFeatures(**self.model_dump())


class AnomalyRequest(BaseModel):
    """Request body for POST /v1/insights/anomaly"""

    transaction: TransactionFeaturesSchema
    historical_amounts: List[Decimal] = Field(default_factory=list)


class AnomalyResponse(BaseModel):
    is_anomaly: bool
    score: float
    explanation: str


class BudgetSchema(BaseModel):
    category: Category
    amount: Decimal = Field(..., gt=0)
    spent: Decimal = Field(Decimal(0), ge=0)
    is_active: bool = True

    def to_domain(self) -> Budget:
        return Budget(**self.model_dump())


class GoalSchema(BaseModel):
    title: str = Field(..., min_length=1)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(Decimal(0), ge=0)
    deadline: datetime.date
    created_at: datetime.date
    status: GoalStatus = GoalStatus.ACTIVE

    def to_domain(self) -> Goal:
        return Goal(**self.model_dump())


class TransactionSchema(BaseModel):
    amount: Decimal = Field(..., gt=0)
    category: Category
    date: datetime.date
    description: Optional[str] = None
    is_anomaly: bool = False

    def to_domain(self) -> Transaction:
        return Transaction(**self.model_dump())


class RecommendationsRequest(BaseModel):
    """Request body for POST /v1/insights/recommendations"""

    aggregates: AggregatesSchema
    budgets: List[BudgetSchema] = Field(default_factory=list)
    goals: List[GoalSchema] = Field(default_factory=list)
    recent_transactions: List[TransactionSchema] = Field(default_factory=list, max_length=500)
    as_of: Optional[datetime.date] = None


class ActionSchema(BaseModel):
    label: str
    url: str


class ImpactSchema(BaseModel):
    category: str
    value: float
    description: str


class RecommendationSchema(BaseModel):
    type: str
    priority: str
    title: str
    message: str
    action: Optional[ActionSchema] = None
    impact: ImpactSchema

    @classmethod
    def from_domain(cls, rec: AgentRecommendation) -> "RecommendationSchema":
        return cls(
            type=rec.type.value,
            priority=rec.priority.value,
            title=rec.title,
            message=rec.message,
            action=ActionSchema(label=rec.action.label, url=rec.action.url) if rec.action else None,
            impact=ImpactSchema(
                category=rec.impact.category,
                value=round(float(rec.impact.value), 2),
                description=rec.impact.description,
            ),
        )


class RecommendationsResponse(BaseModel):
    """available=False means insights degraded to an empty list"""

    available: bool = True
    recommendations: List[RecommendationSchema]


class StreakSchema(BaseModel):
    user_id: str
    current_streak: int
    longest_streak: int
    total_points: int
    last_activity_date: Optional[datetime.date] = None

    @classmethod
    def from_domain(cls, state: StreakState) -> "StreakSchema":
        return cls(
            user_id=state.user_id,
            current_streak=state.current_streak,
            longest_streak=state.longest_streak,
            total_points=state.total_points,
            last_activity_date=state.last_activity_date,
        )


class ActivityRequest(BaseModel):
    activity_date: Optional[datetime.date] = Field(None, description="Defaults to today")

    @field_validator("activity_date")
    @classmethod
    def not_in_future(cls, value: Optional[datetime.date]) -> Optional[datetime.date]:
        # last_activity_date must never run ahead of the real calendar
        if value is not None and value > datetime.date.today():
            raise ValueError("activity_date cannot be in the future")
        return value


class PointsRequest(BaseModel):
    points: int = Field(..., gt=0)


class ExpenseRequest(BaseModel):
    """Request body for POST /v1/expenses"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Whole cents, as stored")
    category: Optional[Category] = Field(None, description="Auto-categorized from description when omitted")
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    hour_of_day: Optional[int] = Field(None, ge=0, le=23)

    @model_validator(mode="after")
    def require_category_or_description(self) -> "ExpenseRequest":
        if self.category is None and not (self.description and self.description.strip()):
            raise ValueError("Either category or description is required")
        return self


class ExpenseResponse(BaseModel):
    """Response for POST /v1/expenses"""

    expense_id: str
    category: Category
    confidence: Optional[float] = None
    is_anomaly: bool
    anomaly_score: Optional[float] = None
    anomaly_explanation: Optional[str] = None
    streak: Optional[StreakSchema] = None


class ExpenseItem(BaseModel):
    expense_id: str
    amount: float
    category: str
    description: Optional[str] = None
    date: datetime.date
    is_anomaly: bool
    confidence_score: Optional[float] = None


class ExpenseListResponse(BaseModel):
    user_id: str
    expenses: List[ExpenseItem]
