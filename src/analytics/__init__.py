"""Journal Analytics & Predictive Insights Engine.

Turns a user's raw daily journal records into derived time series,
food/symptom correlations, a menstrual cycle forecast, a per-record health
score and a short list of insights.

Core modules:
    base             — DailyRecord input model and derived result types
    config_loader    — Load/validate/hot-reload analytics_config.yaml
    calories         — Calorie estimation from free-text food names
    aggregator       — Date-keyed series and summary tables
    correlation      — Food ↔ symptom correlation
    cycle_predictor  — Next period / ovulation forecast
    health_score     — Per-record banded health score
    insights         — Threshold-gated insight statements
    engine           — AnalyticsEngine entry point
    stores           — In-memory record/profile stores
"""

from src.analytics.base import DailyRecord, Granularity, UserProfile
from src.analytics.config_loader import AnalyticsConfig, get_analytics_config
from src.analytics.engine import AnalyticsEngine, AnalyticsResult, InvalidDateRangeError

__all__ = [
    "AnalyticsEngine",
    "AnalyticsResult",
    "InvalidDateRangeError",
    "DailyRecord",
    "UserProfile",
    "Granularity",
    "AnalyticsConfig",
    "get_analytics_config",
]
