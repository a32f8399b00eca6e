"""Date-keyed aggregation of daily journal records.

Turns a record snapshot into numeric series (symptom counts, digestive symptom
counts, calories, period vs non-period symptom counts) plus the summary tables
the dashboard shows next to them (symptom frequencies, most eaten foods,
tracking KPIs, sleep per night and per sleep-length bucket, monthly symptom
recurrence).

Every series is rebuilt as an ordered list of ``TimeSeriesPoint`` on each call.
Records sharing a date accumulate (their values are summed); records whose date
does not parse are skipped.
"""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from src.analytics.base import (
    DailyRecord,
    FoodCount,
    Granularity,
    PeriodSymptomsSeries,
    SleepBucket,
    SleepSummary,
    SymptomCount,
    SymptomRecurrence,
    TimeSeriesPoint,
    TrackingKpis,
    round_half_up,
    valid_records,
)
from src.analytics.calories import CaloriesEstimator
from src.analytics.config_loader import AnalyticsConfig, get_analytics_config

logger = logging.getLogger("journal.analytics.aggregator")


@dataclass
class Aggregates:
    """Daily series derived from one record snapshot."""

    symptoms_over_time: list[TimeSeriesPoint] = field(default_factory=list)
    digestive_issues_trend: list[TimeSeriesPoint] = field(default_factory=list)
    period_symptoms_series: PeriodSymptomsSeries = field(default_factory=PeriodSymptomsSeries)
    calories_per_day: list[TimeSeriesPoint] = field(default_factory=list)


def _to_series(values: dict[str, float]) -> list[TimeSeriesPoint]:
    return [TimeSeriesPoint(date=d, value=values[d]) for d in sorted(values)]


def _fmt_hours(hours: float) -> str:
    return f"{hours:g}"


def bucket_key(day: date, granularity: Granularity) -> str:
    """Return the bucket label of ``day``: ``YYYY-MM-DD``, ``YYYY-Www`` or ``YYYY-MM``."""
    if granularity == Granularity.weekly:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if granularity == Granularity.monthly:
        return f"{day.year:04d}-{day.month:02d}"
    return day.isoformat()


def group_series(
    points: list[TimeSeriesPoint], granularity: Granularity | str = Granularity.daily
) -> list[TimeSeriesPoint]:
    """Group daily points into weekly or monthly buckets.

    Each bucket's value is the arithmetic mean of its points rounded to one
    decimal; the point's ``date`` carries the bucket label.  Daily granularity
    returns the points unchanged.

    Raises:
        ValueError: If ``granularity`` is not a known granularity.
    """
    granularity = Granularity(granularity)
    if granularity == Granularity.daily:
        return list(points)

    buckets: dict[str, list[float]] = {}
    for point in points:
        day = date.fromisoformat(point.date)
        buckets.setdefault(bucket_key(day, granularity), []).append(point.value)

    return [
        TimeSeriesPoint(date=key, value=round_half_up(statistics.mean(buckets[key]), 1))
        for key in sorted(buckets)
    ]


def rolling_average(points: list[TimeSeriesPoint], window: int = 7) -> list[TimeSeriesPoint]:
    """Trailing mean over the last ``window`` points (fewer at the start), 2 decimals."""
    result = []
    for i, point in enumerate(points):
        chunk = points[max(0, i - window + 1): i + 1]
        mean = sum(p.value for p in chunk) / len(chunk)
        result.append(TimeSeriesPoint(date=point.date, value=round_half_up(mean, 2)))
    return result


class TimeSeriesAggregator:
    """Bucket records by date into numeric series.

    Usage::

        aggregator = TimeSeriesAggregator()
        aggregates = aggregator.aggregate(records)
        weekly = group_series(aggregates.calories_per_day, "weekly")
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        estimator: CaloriesEstimator | None = None,
    ) -> None:
        self._config = config or get_analytics_config()
        self._estimator = estimator or CaloriesEstimator(self._config)

    def digestive_count(self, symptoms: Iterable[str]) -> int:
        """Number of symptom tags matching the digestive keyword list."""
        return sum(1 for s in symptoms if self._config.digestive.is_digestive(s))

    def calories_for(self, record: DailyRecord) -> float:
        """Explicit nutrition total when logged, otherwise the estimate from meals."""
        if record.nutrition and record.nutrition.total_calories is not None:
            return max(0.0, record.nutrition.total_calories)
        return float(self._estimator.estimate_record(record))

    def aggregate(self, records: Iterable[DailyRecord]) -> Aggregates:
        """Build the daily series for ``records``.

        Args:
            records: Record snapshot in any order; duplicates by date are summed.

        Returns:
            Aggregates with all series ascending by date.
        """
        symptoms: dict[str, float] = {}
        digestive: dict[str, float] = {}
        calories: dict[str, float] = {}
        with_period: dict[str, int] = {}
        without_period: dict[str, int] = {}

        for record in valid_records(records):
            d = record.day.isoformat()
            count = len(record.symptoms)
            symptoms[d] = symptoms.get(d, 0) + count
            digestive[d] = digestive.get(d, 0) + self.digestive_count(record.symptoms)
            calories[d] = calories.get(d, 0) + self.calories_for(record)
            with_period.setdefault(d, 0)
            without_period.setdefault(d, 0)
            if record.period_active:
                with_period[d] += count
            else:
                without_period[d] += count

        dates = sorted(with_period)
        period_series = PeriodSymptomsSeries(
            dates=dates,
            with_period=[with_period[d] for d in dates],
            without_period=[without_period[d] for d in dates],
        )

        logger.debug("Aggregated %d day(s)", len(dates))

        return Aggregates(
            symptoms_over_time=_to_series(symptoms),
            digestive_issues_trend=_to_series(digestive),
            period_symptoms_series=period_series,
            calories_per_day=_to_series(calories),
        )

    # ------------------------------------------------------------------
    # Summary tables
    # ------------------------------------------------------------------

    def symptom_frequencies(self, records: Iterable[DailyRecord]) -> list[SymptomCount]:
        """Every distinct symptom with its occurrence count, most frequent first."""
        counts: Counter[str] = Counter()
        for record in sorted(valid_records(records), key=lambda r: r.date):
            counts.update(s.strip() for s in record.symptoms if s.strip())
        # Counter preserves first-seen order, so ties stay in date order
        return [SymptomCount(name=n, count=c) for n, c in counts.most_common()]

    def top_foods(
        self, records: Iterable[DailyRecord], limit: int | None = None
    ) -> list[FoodCount]:
        """Most frequently logged food items (each mention counts)."""
        limit = limit or self._config.correlation.top_foods_by_frequency
        fasting = self._config.calories.fasting_token
        counts: Counter[str] = Counter()
        for record in sorted(valid_records(records), key=lambda r: r.date):
            counts.update(record.food_items(fasting))
        return [FoodCount(name=n, count=c) for n, c in counts.most_common(limit)]

    def tracking_kpis(self, records: Iterable[DailyRecord]) -> TrackingKpis:
        """Headline averages for the dashboard cards; zeros for an empty snapshot."""
        kept = valid_records(records)
        days = {r.date for r in kept}
        if not days:
            return TrackingKpis()

        sleep = [r.sleep_hours for r in kept if r.sleep_hours is not None]
        minutes = [r.activity_minutes for r in kept if r.activity_minutes is not None]
        symptom_total = sum(len(r.symptoms) for r in kept)

        return TrackingKpis(
            days_tracked=len(days),
            avg_sleep_hours=round_half_up(statistics.mean(sleep), 1) if sleep else 0.0,
            avg_activity_minutes=round_half_up(statistics.mean(minutes), 1) if minutes else 0.0,
            avg_symptoms_per_day=round_half_up(symptom_total / max(1, len(days)), 1),
            sleep_days=len(sleep),
            activity_days=len(minutes),
        )

    def sleep_summary(self, records: Iterable[DailyRecord]) -> SleepSummary:
        """Nightly hours per date (0 when not logged) and their average.

        The average only covers nights with a positive duration.  When a date
        holds several records the longest logged night is kept.
        """
        kept = valid_records(records)
        per_day: dict[str, float] = {}
        for record in kept:
            per_day[record.date] = max(per_day.get(record.date, 0.0), record.sleep_hours or 0.0)

        nights = [r.sleep_hours for r in kept if r.sleep_hours]
        return SleepSummary(
            average_hours=round_half_up(statistics.mean(nights), 1) if nights else 0.0,
            nights_logged=len(nights),
            series=_to_series(per_day),
        )

    def sleep_symptom_link(self, records: Iterable[DailyRecord]) -> list[SleepBucket]:
        """Symptom load per sleep-length bucket, always short, mid, long in that order."""
        limits = self._config.sleep_buckets
        buckets = {
            "short": SleepBucket(bucket="short", label=f"<{_fmt_hours(limits.short_below_hours)}h"),
            "mid": SleepBucket(
                bucket="mid",
                label=f"{_fmt_hours(limits.short_below_hours)}-{_fmt_hours(limits.long_above_hours)}h",
            ),
            "long": SleepBucket(bucket="long", label=f">{_fmt_hours(limits.long_above_hours)}h"),
        }
        for record in valid_records(records):
            hours = record.sleep_hours
            if hours is None:
                continue
            if hours < limits.short_below_hours:
                key = "short"
            elif hours <= limits.long_above_hours:
                key = "mid"
            else:
                key = "long"
            buckets[key].days += 1
            buckets[key].symptoms += len(record.symptoms)

        for bucket in buckets.values():
            bucket.avg_symptoms = round_half_up(bucket.symptoms / max(1, bucket.days), 1)
        return list(buckets.values())

    def symptom_monthly_recurrence(
        self, records: Iterable[DailyRecord], symptom: str
    ) -> list[TimeSeriesPoint]:
        """Days per ``YYYY-MM`` on which ``symptom`` was logged (case-insensitive)."""
        target = symptom.strip().lower()
        months: dict[str, set[str]] = {}
        for record in valid_records(records):
            if any(s.strip().lower() == target for s in record.symptoms):
                months.setdefault(record.date[:7], set()).add(record.date)
        return [TimeSeriesPoint(date=m, value=len(months[m])) for m in sorted(months)]

    def symptom_recurrence(self, records: Iterable[DailyRecord]) -> list[SymptomRecurrence]:
        """Monthly recurrence of every logged symptom, most frequent symptom first.

        A symptom is ``periodic`` when it shows up in at least
        ``recurrence_min_months`` distinct months.
        """
        kept = valid_records(records)
        min_months = self._config.insights.recurrence_min_months
        result = []
        seen: set[str] = set()
        for entry in self.symptom_frequencies(kept):
            # spellings differing only in case share one recurrence row
            if entry.name.lower() in seen:
                continue
            seen.add(entry.name.lower())
            months = self.symptom_monthly_recurrence(kept, entry.name)
            periodic = sum(1 for m in months if m.value > 0) >= min_months
            result.append(SymptomRecurrence(symptom=entry.name, months=months, periodic=periodic))
        return result
