"""Pytest fixtures for testing"""

import os

# Must be set before the app (and its engine) is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from cashflow_insights.api.main import create_app
from cashflow_insights.infrastructure.database.models import Base
from cashflow_insights.infrastructure.database.session import get_db
from cashflow_insights.domain.models import Category, FinancialAggregates, Transaction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def healthy_aggregates() -> FinancialAggregates:
    """Reference-income earner saving 60% with 4.5 months of liquidity"""
    return FinancialAggregates(
        monthly_income=Decimal("50000"),
        monthly_expenses=Decimal("20000"),
        savings=Decimal("30000"),
        debts=Decimal("0"),
        liquidity=Decimal("90000"),
    )


@pytest.fixture
def stretched_aggregates() -> FinancialAggregates:
    """Spending most of a modest income, some debt, thin buffer"""
    return FinancialAggregates(
        monthly_income=Decimal("40000"),
        monthly_expenses=Decimal("36000"),
        savings=Decimal("4000"),
        debts=Decimal("30000"),
        liquidity=Decimal("12000"),
    )


@pytest.fixture
def food_history() -> list[Decimal]:
    """Twenty food expenses hovering around 500"""
    return [Decimal(v) for v in [480, 520, 500, 510, 490, 470, 530, 505, 495, 500] * 2]


@pytest.fixture
def recent_transactions() -> list[Transaction]:
    """A month of mixed spending, newest last"""
    today = date(2024, 6, 28)
    transactions = []

    for day in range(0, 28, 2):
        transactions.append(
            Transaction(
                amount=Decimal("600"),
                category=Category.FOOD,
                date=today - timedelta(days=day),
                description="Swiggy order",
            )
        )

    transactions.append(
        Transaction(
            amount=Decimal("1500"),
            category=Category.TRANSPORT,
            date=today - timedelta(days=3),
            description="Uber rides",
        )
    )
    return transactions
