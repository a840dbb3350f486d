"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from cashflow_insights.domain.models import HealthScoreResult, StreakState


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "cashflow-insights"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_health_score(request_id: str, user_id: str | None, result: HealthScoreResult, duration_ms: float) -> None:
    """Log structured scoring outcome for analysis"""
    logging.info(
        "Health score computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "health_score",
            "score": result.score,
            "trend": result.trend.value,
            "recommendation_count": len(result.recommendations),
            "duration_ms": duration_ms,
        },
    )


def log_expense_recorded(
    request_id: str,
    user_id: str,
    category: str,
    confidence: float,
    is_anomaly: bool,
) -> None:
    logging.info(
        "Expense recorded",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "expense_recorded",
            "category": category,
            "confidence": confidence,
            "is_anomaly": is_anomaly,
        },
    )


def log_streak_update(user_id: str, transition: str, state: StreakState, attempts: int) -> None:
    logging.info(
        "Streak updated",
        extra={
            "user_id": user_id,
            "step": "streak_update",
            "transition": transition,
            "current_streak": state.current_streak,
            "longest_streak": state.longest_streak,
            "total_points": state.total_points,
            "attempts": attempts,
        },
    )
