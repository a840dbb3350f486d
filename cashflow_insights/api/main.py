"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cashflow_insights.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cashflow_insights.api.v1 import expenses, history, insights, streaks
from cashflow_insights.infrastructure.database.models import Base
from cashflow_insights.infrastructure.database.session import engine
from cashflow_insights.infrastructure.observability.logging import setup_logging
from cashflow_insights.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create owned tables (expenses, streaks, cashflow_scores) if missing
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Cashflow Insights",
        description="Health scoring, anomaly flags, categorization, recommendations and streaks",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(insights.router, prefix="/v1", tags=["insights"])
    app.include_router(history.router, prefix="/v1", tags=["history"])
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(streaks.router, prefix="/v1", tags=["streaks"])

    return app


app = create_app()
