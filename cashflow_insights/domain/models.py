"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional

from cashflow_insights.domain.exceptions import InvalidInputError


class Category(str, Enum):
    """Closed set of expense categories (declaration order is the classifier's scan order)"""

    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    BILLS = "bills"
    HEALTH = "health"
    GROCERIES = "groceries"
    EDUCATION = "education"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "Category | str", field_name: str = "category") -> "Category":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInputError(field_name, f"Unknown category '{value}'") from None


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class RecommendationType(str, Enum):
    SAVINGS = "savings"
    BUDGET = "budget"
    GOAL = "goal"
    RISK = "risk"
    OPPORTUNITY = "opportunity"
    TAX = "tax"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


def to_money(value, field_name: str, allow_negative: bool = False) -> Decimal:
    """
    Convert a caller-supplied figure to Decimal.

    Floats go through str() so 0.1 stays 0.1. Missing, non-numeric, non-finite
    or (unless allowed) negative values raise InvalidInputError naming the field.
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError(field_name, f"'{field_name}' is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputError(field_name, f"'{field_name}' must be numeric") from None
    if not amount.is_finite():
        raise InvalidInputError(field_name, f"'{field_name}' must be finite")
    if not allow_negative and amount < 0:
        raise InvalidInputError(field_name, f"'{field_name}' must not be negative")
    return amount


@dataclass
class FinancialAggregates:
    """Period-level rollup supplied by the caller for scoring"""

    monthly_income: Decimal
    monthly_expenses: Decimal
    savings: Decimal  # income - expenses, may be negative
    debts: Decimal
    liquidity: Decimal

    def __post_init__(self) -> None:
        self.monthly_income = to_money(self.monthly_income, "monthly_income")
        self.monthly_expenses = to_money(self.monthly_expenses, "monthly_expenses")
        self.savings = to_money(self.savings, "savings", allow_negative=True)
        self.debts = to_money(self.debts, "debts")
        self.liquidity = to_money(self.liquidity, "liquidity")


@dataclass
class ScoreBreakdown:
    """Five bounded sub-scores summing to the health score"""

    income: int
    expense: int
    savings: int
    debt: int
    liquidity: int


@dataclass
class HealthScoreResult:
    """Output of cashflow health scoring"""

    score: int
    breakdown: ScoreBreakdown
    trend: Trend
    recommendations: List[str]


@dataclass
class Transaction:
    """Recorded expense, read-only to the engine"""

    amount: Decimal
    category: Category
    date: date
    description: Optional[str] = None
    is_anomaly: bool = False

    def __post_init__(self) -> None:
        self.amount = to_money(self.amount, "amount")
        if self.amount == 0:
            raise InvalidInputError("amount", "'amount' must be greater than zero")
        self.category = Category.parse(self.category)


@dataclass
class TransactionFeatures:
    """Transaction under test for anomaly detection"""

    amount: Decimal
    category: Category
    day_of_week: int = 0  # 0 = Monday
    hour_of_day: int = 0

    def __post_init__(self) -> None:
        self.amount = to_money(self.amount, "amount")
        if self.amount == 0:
            raise InvalidInputError("amount", "'amount' must be greater than zero")
        self.category = Category.parse(self.category)
        if not 0 <= self.day_of_week <= 6:
            raise InvalidInputError("day_of_week", "'day_of_week' must be between 0 and 6")
        if not 0 <= self.hour_of_day <= 23:
            raise InvalidInputError("hour_of_day", "'hour_of_day' must be between 0 and 23")


@dataclass
class AnomalyResult:
    """Z-score verdict for a single transaction"""

    is_anomaly: bool
    score: float
    explanation: str


@dataclass
class CategoryPrediction:
    category: Category
    confidence: float


@dataclass
class Budget:
    """Spending limit for a category over its period"""

    category: Category
    amount: Decimal
    spent: Decimal
    is_active: bool = True

    def __post_init__(self) -> None:
        self.category = Category.parse(self.category)
        self.amount = to_money(self.amount, "amount")
        if self.amount == 0:
            raise InvalidInputError("amount", "Budget 'amount' must be greater than zero")
        self.spent = to_money(self.spent, "spent")


@dataclass
class Goal:
    """Savings goal with a deadline"""

    title: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: date
    created_at: date
    status: GoalStatus = GoalStatus.ACTIVE

    def __post_init__(self) -> None:
        self.target_amount = to_money(self.target_amount, "target_amount")
        if self.target_amount == 0:
            raise InvalidInputError("target_amount", "'target_amount' must be greater than zero")
        self.current_amount = to_money(self.current_amount, "current_amount")
        try:
            self.status = GoalStatus(self.status)
        except ValueError:
            raise InvalidInputError("status", f"Unknown goal status '{self.status}'") from None


@dataclass
class RecommendationAction:
    label: str
    url: str


@dataclass
class RecommendationImpact:
    category: str
    value: Decimal
    description: str


@dataclass
class AgentRecommendation:
    """Single ranked insight for the dashboard"""

    type: RecommendationType
    priority: Priority
    title: str
    message: str
    impact: RecommendationImpact
    action: Optional[RecommendationAction] = None


@dataclass
class RecommendationContext:
    """Everything the recommendation engine reads, assembled by the caller"""

    aggregates: FinancialAggregates
    budgets: List[Budget] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    recent_transactions: List[Transaction] = field(default_factory=list)
    as_of: date = field(default_factory=date.today)


@dataclass
class StreakState:
    """Per-user consecutive-activity streak and points balance"""

    user_id: str
    current_streak: int = 0
    longest_streak: int = 0
    total_points: int = 0
    last_activity_date: Optional[date] = None

    def __post_init__(self) -> None:
        for name in ("current_streak", "longest_streak", "total_points"):
            if getattr(self, name) < 0:
                raise InvalidInputError(name, f"'{name}' must not be negative")
