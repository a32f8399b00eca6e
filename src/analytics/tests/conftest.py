"""Shared fixtures and record builders for analytics engine tests."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

import pytest

from src.analytics.base import (
    CycleSettings,
    DailyRecord,
    HydrationEntry,
    Meals,
    NutritionEntry,
    PeriodEntry,
    SleepEntry,
    UserProfile,
)
from src.analytics.config_loader import AnalyticsConfig, load_analytics_config
from src.analytics.stores import InMemoryProfileStore, InMemoryRecordStore

TEST_USER_ID = "user_2abcDEF"
TEST_DATE = date(2024, 1, 15)
AS_OF = date(2024, 6, 1)


def make_record(
    day: str | date,
    *,
    symptoms: list[str] | None = None,
    morning: str = "",
    afternoon: str = "",
    evening: str = "",
    snack: str = "",
    period: bool | None = None,
    sleep_hours: float | None = None,
    activity: list[str] | None = None,
    activity_minutes: float | None = None,
    calories: float | None = None,
    hydration: int | None = None,
) -> DailyRecord:
    """Build a DailyRecord with only the given sections populated."""
    has_meals = any([morning, afternoon, evening, snack])
    return DailyRecord(
        date=day.isoformat() if isinstance(day, date) else day,
        sleep=SleepEntry(sleep_duration=sleep_hours) if sleep_hours is not None else None,
        meals=Meals(morning=morning, afternoon=afternoon, evening=evening, snack=snack)
        if has_meals
        else None,
        activity=tuple(activity or ()),
        activity_minutes=activity_minutes,
        symptoms=tuple(symptoms or ()),
        period=PeriodEntry(active=period) if period is not None else None,
        nutrition=NutritionEntry(total_calories=calories) if calories is not None else None,
        hydration=HydrationEntry(count=hydration) if hydration is not None else None,
    )


def consecutive_days(start: date, n: int) -> list[str]:
    return [(start + timedelta(days=i)).isoformat() for i in range(n)]


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    """Load the real analytics config for tests."""
    return load_analytics_config()


# ---------------------------------------------------------------------------
# Record fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def regular_period_records() -> list[DailyRecord]:
    """Period days on 2024-01-01, 2024-01-29 and 2024-02-26 (28-day gaps)."""
    return [
        make_record("2024-01-01", period=True, symptoms=["Cramps"]),
        make_record("2024-01-10", period=False, symptoms=["Headache"]),
        make_record("2024-01-29", period=True),
        make_record("2024-02-26", period=True, symptoms=["Cramps", "Fatigue"]),
    ]


@pytest.fixture
def pizza_records() -> list[DailyRecord]:
    """Pizza on 4 days, 3 of them with bloating."""
    return [
        make_record("2024-03-01", evening="Pizza", symptoms=["Bloating"]),
        make_record("2024-03-02", afternoon="pizza, Salad", symptoms=["Bloating", "Headache"]),
        make_record("2024-03-03", evening="Pizza", symptoms=["Bloating"]),
        make_record("2024-03-04", evening="Pizza, Soda"),
        make_record("2024-03-05", morning="Oatmeal", afternoon="Salad"),
    ]


@pytest.fixture
def journal_payload() -> dict[str, Any]:
    """A seed export in the mobile client's camelCase shape."""
    return {
        "records": {
            TEST_USER_ID: [
                {
                    "date": "2024-01-14",
                    "sleep": {"bedTime": "23:00", "wakeTime": "07:00", "sleepQuality": 4, "sleepDuration": 8},
                    "meals": {"morning": "Oatmeal, Coffee", "afternoon": "Salad", "evening": "Pasta", "snack": ""},
                    "activity": ["Yoga", "Walk"],
                    "activityMinutes": 45,
                    "symptoms": [],
                    "hydration": {"count": 8},
                },
                {
                    "date": "2024-01-15",
                    "sleep": {"sleepDuration": 6.5},
                    "meals": {"morning": "Fasting", "afternoon": "Pizza", "evening": "Pizza, Soda"},
                    "activity": ["Walk"],
                    "symptoms": ["Bloating", "Headache"],
                    "period": {"active": True},
                    "hydration": {"count": 5},
                },
                {"date": "not-a-date", "symptoms": ["Bloating"]},
            ]
        },
        "profiles": {
            TEST_USER_ID: {"cycle": {"averageCycleLengthDays": 30, "isOnContinuousPill": False}},
        },
    }


@pytest.fixture
def stores(journal_payload: dict[str, Any]) -> tuple[InMemoryRecordStore, InMemoryProfileStore]:
    from src.analytics.stores import stores_from_payload

    return stores_from_payload(journal_payload)


@pytest.fixture
def pill_profile() -> UserProfile:
    return UserProfile(cycle=CycleSettings(average_cycle_length_days=91, is_on_continuous_pill=True))
