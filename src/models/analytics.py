"""Pydantic request/response schemas for the analytics endpoints.

Request models accept the camelCase keys the mobile client sends
(``sleepDuration``, ``totalCalories`` ...) as well as snake_case.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import Field

from src.analytics.base import DailyRecord, Granularity, UserProfile
from src.models.base import JournalBase


# ---------- Requests ----------

class SleepIn(JournalBase):
    bed_time: str | None = Field(default=None, alias="bedTime")
    wake_time: str | None = Field(default=None, alias="wakeTime")
    sleep_quality: float | None = Field(default=None, alias="sleepQuality")
    sleep_duration: float | None = Field(default=None, alias="sleepDuration")


class MealsIn(JournalBase):
    morning: str = ""
    afternoon: str = ""
    evening: str = ""
    snack: str = ""


class PeriodIn(JournalBase):
    active: bool = False


class NutritionIn(JournalBase):
    total_calories: float | None = Field(default=None, alias="totalCalories")


class HydrationIn(JournalBase):
    count: int = Field(default=0, ge=0)


class DailyRecordIn(JournalBase):
    # Kept as a plain string: records with malformed dates are skipped, not rejected
    date: str = ""
    sleep: SleepIn | None = None
    meals: MealsIn | None = None
    activity: list[str] = Field(default_factory=list)
    activity_minutes: float | None = Field(default=None, alias="activityMinutes")
    symptoms: list[str] = Field(default_factory=list)
    period: PeriodIn | None = None
    nutrition: NutritionIn | None = None
    hydration: HydrationIn | None = None

    def to_record(self) -> DailyRecord:
        return DailyRecord.from_dict(self.model_dump())


class CycleSettingsIn(JournalBase):
    average_cycle_length_days: int = Field(default=28, alias="averageCycleLengthDays")
    is_on_continuous_pill: bool = Field(default=False, alias="isOnContinuousPill")


class ProfileIn(JournalBase):
    cycle: CycleSettingsIn = Field(default_factory=CycleSettingsIn)

    def to_profile(self) -> UserProfile:
        return UserProfile.from_dict(self.model_dump())


class AnalyticsRequest(JournalBase):
    records: list[DailyRecordIn] = Field(default_factory=list)
    profile: ProfileIn | None = None
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    granularity: Granularity = Granularity.daily


# ---------- Responses ----------

class TimeSeriesPointRead(JournalBase):
    date: str
    value: float


class PeriodSymptomsSeriesRead(JournalBase):
    dates: list[str]
    with_period: list[int]
    without_period: list[int]


class CountRead(JournalBase):
    name: str
    count: int


class FoodCorrelationRead(JournalBase):
    name: str
    correlation_pct: int = Field(ge=0, le=100)
    total_days: int
    digestive_days: int
    risk: str


class FoodSymptomDetailRead(JournalBase):
    food: str
    symptoms: list[CountRead]


class FoodSymptomMatrixRead(JournalBase):
    foods: list[str]
    symptoms: list[str]
    counts: list[list[int]]


class CyclePredictionRead(JournalBase):
    last_period_date: date | None = None
    next_period_date: date
    next_ovulation_date: date
    cycle_length_days: int = Field(gt=0)
    lateness_days: int | None = None
    source: str
    gaps_used: int


class InsightRead(JournalBase):
    insight_id: str
    title: str
    text: str


class TrackingKpisRead(JournalBase):
    days_tracked: int
    avg_sleep_hours: float
    avg_activity_minutes: float
    avg_symptoms_per_day: float
    sleep_days: int
    activity_days: int


class AlertRead(JournalBase):
    alert_id: str
    text: str


class SleepSummaryRead(JournalBase):
    average_hours: float
    nights_logged: int
    series: list[TimeSeriesPointRead]


class SleepBucketRead(JournalBase):
    bucket: str
    label: str
    days: int
    symptoms: int
    avg_symptoms: float


class SymptomRecurrenceRead(JournalBase):
    symptom: str
    months: list[TimeSeriesPointRead]
    periodic: bool


class AnalyticsResponse(JournalBase):
    start_date: str
    end_date: str
    granularity: Granularity
    symptoms_data: list[CountRead]
    calories_data: list[TimeSeriesPointRead]
    foods_data: list[CountRead]
    food_symptom_matrix: FoodSymptomMatrixRead
    symptoms_over_time: list[TimeSeriesPointRead]
    digestive_issues_trend: list[TimeSeriesPointRead]
    digestive_rolling_average: list[TimeSeriesPointRead]
    period_symptoms_series: PeriodSymptomsSeriesRead
    cycle_prediction: CyclePredictionRead
    food_digestive_correlation: list[FoodCorrelationRead]
    food_symptom_details: dict[str, FoodSymptomDetailRead]
    kpis: TrackingKpisRead
    insights: list[InsightRead]
    alerts: list[AlertRead]
    sleep_data: SleepSummaryRead
    sleep_symptom_link: list[SleepBucketRead]
    symptom_recurrence: list[SymptomRecurrenceRead]


class HealthScoreRead(JournalBase):
    date: str
    total: float = Field(ge=0, le=1)
    breakdown: dict[str, float]

    @classmethod
    def build(cls, target_date: str, score: Any) -> "HealthScoreRead":
        return cls(date=target_date, total=score.total, breakdown=score.breakdown)
