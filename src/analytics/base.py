"""Canonical data models for the journal analytics engine.

Input records are frozen dataclasses: the engine never mutates a record it is
handed.  Every derived type below is rebuilt from the current record snapshot on
each call and discarded afterwards; nothing here is cached or persisted.

``DailyRecord.from_dict`` accepts the camelCase payload the mobile client stores
as well as snake_case keys, so records can be loaded from either source.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable, Mapping

logger = logging.getLogger("journal.analytics")

MEAL_SLOTS = ("morning", "afternoon", "evening", "snack")


class Granularity(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


def parse_iso_date(value: Any) -> date | None:
    """Parse a ``YYYY-MM-DD`` string, returning None when it is malformed."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) != 10:
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return None
    # fromisoformat also takes week dates such as 2024-W01-1
    return parsed if parsed.isoformat() == value else None


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero, matching the client's ``Math.round`` on positives."""
    factor = 10**ndigits
    magnitude = math.floor(abs(value) * factor + 0.5) / factor
    return magnitude if value >= 0 else -magnitude


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_float(value: Any) -> float | None:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(result) else result


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SleepEntry:
    """One night of sleep as logged by the user.

    Attributes:
        bed_time:       Bed time as entered (``HH:MM``).
        wake_time:      Wake time as entered (``HH:MM``).
        sleep_quality:  Self-rated quality (client scale, usually 1-5).
        sleep_duration: Hours slept.
    """

    bed_time: str | None = None
    wake_time: str | None = None
    sleep_quality: float | None = None
    sleep_duration: float | None = None


@dataclass(frozen=True)
class Meals:
    """Comma-joined free-text food names per meal slot."""

    morning: str = ""
    afternoon: str = ""
    evening: str = ""
    snack: str = ""

    def slots(self) -> list[str]:
        return [self.morning, self.afternoon, self.evening, self.snack]


@dataclass(frozen=True)
class PeriodEntry:
    active: bool = False


@dataclass(frozen=True)
class NutritionEntry:
    total_calories: float | None = None


@dataclass(frozen=True)
class HydrationEntry:
    count: int = 0


@dataclass(frozen=True)
class DailyRecord:
    """A single day of journal data.

    Attributes:
        date:             ISO ``YYYY-MM-DD`` key.  Records whose date does not
                          parse are skipped by date-keyed aggregations.
        sleep:            Sleep entry, if logged.
        meals:            Meal slots, if logged.
        activity:         Names of logged activities.
        activity_minutes: Total minutes of activity.
        symptoms:         Free-text symptom tags.
        period:           Period flag, if logged.
        nutrition:        Explicit calorie total, overriding the estimate.
        hydration:        Glasses of water.
    """

    date: str
    sleep: SleepEntry | None = None
    meals: Meals | None = None
    activity: tuple[str, ...] = ()
    activity_minutes: float | None = None
    symptoms: tuple[str, ...] = ()
    period: PeriodEntry | None = None
    nutrition: NutritionEntry | None = None
    hydration: HydrationEntry | None = None

    @property
    def day(self) -> date | None:
        return parse_iso_date(self.date)

    @property
    def period_active(self) -> bool:
        return bool(self.period and self.period.active)

    @property
    def sleep_hours(self) -> float | None:
        return self.sleep.sleep_duration if self.sleep else None

    def is_empty(self) -> bool:
        """True when the record carries no data besides its date."""
        return not (
            (self.sleep and self.sleep.sleep_duration is not None)
            or (self.meals and any(s.strip() for s in self.meals.slots()))
            or self.activity
            or self.activity_minutes
            or self.symptoms
            or self.period is not None
            or (self.nutrition and self.nutrition.total_calories is not None)
            or self.hydration is not None
        )

    def food_items(self, fasting_token: str = "fasting") -> list[str]:
        """Return every food item of the day, lowercased, in slot order.

        Slots are split on commas; empty pieces and the fasting marker are dropped.
        Duplicates are kept (multiset).
        """
        if self.meals is None:
            return []
        items: list[str] = []
        for slot in self.meals.slots():
            for piece in split_meal_slot(slot):
                name = piece.lower()
                if name != fasting_token:
                    items.append(name)
        return items

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DailyRecord":
        """Build a record from a client payload (camelCase or snake_case keys)."""
        sleep = None
        sleep_raw = data.get("sleep")
        if isinstance(sleep_raw, Mapping):
            sleep = SleepEntry(
                bed_time=_pick(sleep_raw, "bedTime", "bed_time"),
                wake_time=_pick(sleep_raw, "wakeTime", "wake_time"),
                sleep_quality=_as_float(_pick(sleep_raw, "sleepQuality", "sleep_quality")),
                sleep_duration=_as_float(
                    _pick(sleep_raw, "sleepDuration", "sleep_duration", "duration")
                ),
            )

        meals = None
        meals_raw = data.get("meals")
        if isinstance(meals_raw, Mapping):
            meals = Meals(**{slot: str(meals_raw.get(slot) or "") for slot in MEAL_SLOTS})

        period = None
        period_raw = data.get("period")
        if isinstance(period_raw, Mapping):
            period = PeriodEntry(active=bool(period_raw.get("active", False)))

        nutrition = None
        nutrition_raw = data.get("nutrition")
        if isinstance(nutrition_raw, Mapping):
            nutrition = NutritionEntry(
                total_calories=_as_float(_pick(nutrition_raw, "totalCalories", "total_calories"))
            )

        hydration = None
        hydration_raw = data.get("hydration")
        if isinstance(hydration_raw, Mapping):
            hydration = HydrationEntry(count=int(_as_float(hydration_raw.get("count")) or 0))

        activity_raw = data.get("activity")
        activity = (
            tuple(str(a) for a in activity_raw if a)
            if isinstance(activity_raw, (list, tuple))
            else ()
        )

        return cls(
            date=str(data.get("date") or ""),
            sleep=sleep,
            meals=meals,
            activity=activity,
            activity_minutes=_as_float(_pick(data, "activityMinutes", "activity_minutes")),
            symptoms=tuple(str(s) for s in (data.get("symptoms") or []) if s),
            period=period,
            nutrition=nutrition,
            hydration=hydration,
        )


def split_meal_slot(slot: str | None) -> list[str]:
    """Split a comma-joined meal slot into trimmed, non-empty item names."""
    if not slot:
        return []
    return [p.strip() for p in slot.split(",") if p.strip()]


def valid_records(records: Iterable[DailyRecord]) -> list[DailyRecord]:
    """Drop records whose date does not parse, logging each one skipped."""
    kept = []
    for record in records:
        if record.day is None:
            logger.warning("Skipping record with malformed date %r", record.date)
            continue
        kept.append(record)
    return kept


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CycleSettings:
    average_cycle_length_days: int = 28
    is_on_continuous_pill: bool = False


@dataclass(frozen=True)
class UserProfile:
    """Read-only profile data the predictor consults."""

    cycle: CycleSettings = field(default_factory=CycleSettings)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        cycle_raw = data.get("cycle") or {}
        length = _as_float(
            _pick(cycle_raw, "averageCycleLengthDays", "average_cycle_length_days")
        )
        return cls(
            cycle=CycleSettings(
                average_cycle_length_days=int(length) if length is not None else 28,
                is_on_continuous_pill=bool(
                    _pick(cycle_raw, "isOnContinuousPill", "is_on_continuous_pill") or False
                ),
            )
        )


# ---------------------------------------------------------------------------
# Derived entities
# ---------------------------------------------------------------------------


@dataclass
class TimeSeriesPoint:
    """One point of a date-keyed series.  For grouped series ``date`` holds the bucket label."""

    date: str
    value: float


@dataclass
class PeriodSymptomsSeries:
    """Symptom counts split by period-active days, aligned on ``dates``."""

    dates: list[str] = field(default_factory=list)
    with_period: list[int] = field(default_factory=list)
    without_period: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.with_period) + sum(self.without_period)


@dataclass
class SymptomCount:
    name: str
    count: int


@dataclass
class FoodCount:
    name: str
    count: int


@dataclass
class FoodCorrelation:
    """Share of a food's days that also logged a digestive symptom.

    Attributes:
        name:            Normalized (lowercased) food name.
        correlation_pct: 0-100, rounded to an integer.
        total_days:      Days the food was eaten.
        digestive_days:  Of those, days with at least one digestive symptom.
        risk:            'high', 'medium' or 'low' band of ``correlation_pct``.
    """

    name: str
    correlation_pct: int
    total_days: int = 0
    digestive_days: int = 0
    risk: str = "low"


@dataclass
class FoodSymptomDetail:
    food: str
    symptoms: list[SymptomCount] = field(default_factory=list)


@dataclass
class FoodSymptomMatrix:
    """Co-occurrence grid: ``counts[i][j]`` = days with ``foods[i]`` and ``symptoms[j]``."""

    foods: list[str] = field(default_factory=list)
    symptoms: list[str] = field(default_factory=list)
    counts: list[list[int]] = field(default_factory=list)


@dataclass
class CyclePrediction:
    """Forecast of the next period and ovulation.

    Attributes:
        last_period_date:    Most recent period-active day, or None without history.
        next_period_date:    Forecast start of the next period.
        next_ovulation_date: ``next_period_date`` minus the luteal phase length.
        cycle_length_days:   Cycle length used for the forecast (always > 0).
        lateness_days:       Signed lateness of the last period relative to the
                             previous one; None with fewer than two period days.
        source:              'continuous_pill', 'observed_gaps' or 'profile_default'.
        gaps_used:           Number of observed gaps averaged.
    """

    next_period_date: date
    next_ovulation_date: date
    cycle_length_days: int
    last_period_date: date | None = None
    lateness_days: int | None = None
    source: str = "profile_default"
    gaps_used: int = 0


@dataclass
class HealthScore:
    """Banded sub-scores for one record and their mean."""

    total: float = 0.0
    breakdown: dict[str, float] = field(default_factory=dict)


@dataclass
class Insight:
    insight_id: str
    title: str
    text: str


@dataclass
class Alert:
    alert_id: str
    text: str


@dataclass
class TrackingKpis:
    """Headline averages; ``sleep_days`` / ``activity_days`` count the records behind them."""

    days_tracked: int = 0
    avg_sleep_hours: float = 0.0
    avg_activity_minutes: float = 0.0
    avg_symptoms_per_day: float = 0.0
    sleep_days: int = 0
    activity_days: int = 0


@dataclass
class SleepSummary:
    """Average hours over nights with a logged duration, plus the nightly series."""

    average_hours: float = 0.0
    nights_logged: int = 0
    series: list[TimeSeriesPoint] = field(default_factory=list)


@dataclass
class SleepBucket:
    """Symptoms logged after nights of one sleep-length bucket.

    Attributes:
        bucket:       'short', 'mid' or 'long'.
        label:        Human readable hour range, e.g. '<6h'.
        days:         Records whose sleep fell in the bucket.
        symptoms:     Total symptoms on those records.
        avg_symptoms: ``symptoms / days`` rounded to 1 decimal (0 without days).
    """

    bucket: str
    label: str
    days: int = 0
    symptoms: int = 0
    avg_symptoms: float = 0.0


@dataclass
class SymptomRecurrence:
    """Days per month a symptom was logged; ``periodic`` when it spans several months."""

    symptom: str
    months: list[TimeSeriesPoint] = field(default_factory=list)
    periodic: bool = False
