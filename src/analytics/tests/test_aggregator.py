"""Tests for the time-series aggregator and series grouping."""

from __future__ import annotations

from datetime import date

import pytest

from src.analytics.aggregator import (
    TimeSeriesAggregator,
    bucket_key,
    group_series,
    rolling_average,
)
from src.analytics.base import Granularity, TimeSeriesPoint
from src.analytics.config_loader import AnalyticsConfig
from src.analytics.tests.conftest import consecutive_days, make_record


def points(values: dict[str, float]) -> list[TimeSeriesPoint]:
    return [TimeSeriesPoint(date=d, value=v) for d, v in values.items()]


class TestAggregate:
    def test_symptoms_over_time_sorted_by_date(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-03", symptoms=["Headache"]),
            make_record("2024-01-01", symptoms=["Bloating", "Fatigue"]),
            make_record("2024-01-02"),
        ]
        result = TimeSeriesAggregator(analytics_config).aggregate(records)
        assert [(p.date, p.value) for p in result.symptoms_over_time] == [
            ("2024-01-01", 2),
            ("2024-01-02", 0),
            ("2024-01-03", 1),
        ]

    def test_duplicate_dates_accumulate(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-01", symptoms=["Bloating"], calories=500),
            make_record("2024-01-01", symptoms=["Gas", "Headache"], calories=700),
        ]
        result = TimeSeriesAggregator(analytics_config).aggregate(records)
        assert len(result.symptoms_over_time) == 1
        assert result.symptoms_over_time[0].value == 3
        assert result.digestive_issues_trend[0].value == 2
        assert result.calories_per_day[0].value == 1200

    def test_digestive_keywords_case_insensitive_substring(
        self, analytics_config: AnalyticsConfig
    ) -> None:
        record = make_record(
            "2024-01-01",
            symptoms=["BLOATING", "Stomach ache", "Heartburn", "Headache", "Acid reflux", "Menstrual cramps"],
        )
        result = TimeSeriesAggregator(analytics_config).aggregate([record])
        assert result.digestive_issues_trend[0].value == 5

    def test_period_series_aligned_on_union_of_dates(
        self, analytics_config: AnalyticsConfig
    ) -> None:
        records = [
            make_record("2024-01-02", period=True, symptoms=["Cramps", "Fatigue"]),
            make_record("2024-01-01", symptoms=["Headache"]),
            make_record("2024-01-03", period=False),
        ]
        series = TimeSeriesAggregator(analytics_config).aggregate(records).period_symptoms_series
        assert series.dates == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert series.with_period == [0, 2, 0]
        assert series.without_period == [1, 0, 0]
        assert len(series.dates) == len(series.with_period) == len(series.without_period)

    def test_explicit_calories_override_estimate(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-01", evening="Pizza", calories=1800),
            make_record("2024-01-02", evening="Pizza"),
        ]
        result = TimeSeriesAggregator(analytics_config).aggregate(records)
        assert [p.value for p in result.calories_per_day] == [1800, 285]

    def test_malformed_dates_skipped(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-13-01", symptoms=["Bloating"]),
            make_record("", symptoms=["Bloating"]),
            make_record("2024-W01-1", symptoms=["Bloating"]),
            make_record("2024-01-01", symptoms=["Headache"]),
        ]
        result = TimeSeriesAggregator(analytics_config).aggregate(records)
        assert [p.date for p in result.symptoms_over_time] == ["2024-01-01"]

    def test_empty_input(self, analytics_config: AnalyticsConfig) -> None:
        result = TimeSeriesAggregator(analytics_config).aggregate([])
        assert result.symptoms_over_time == []
        assert result.digestive_issues_trend == []
        assert result.calories_per_day == []
        assert result.period_symptoms_series.dates == []

    def test_all_values_non_negative(self, analytics_config: AnalyticsConfig) -> None:
        records = [make_record("2024-01-01", calories=-50)]
        result = TimeSeriesAggregator(analytics_config).aggregate(records)
        assert all(p.value >= 0 for p in result.calories_per_day)


class TestGroupSeries:
    def test_daily_returns_points_unchanged(self) -> None:
        series = points({"2024-01-01": 1, "2024-01-02": 2})
        assert group_series(series, "daily") == series

    def test_weekly_mean_rounded(self) -> None:
        # 2024-01-01 is a Monday (ISO week 1); 2024-01-08 starts week 2
        series = points({"2024-01-01": 1, "2024-01-02": 2, "2024-01-03": 2, "2024-01-08": 5})
        grouped = group_series(series, Granularity.weekly)
        assert [(p.date, p.value) for p in grouped] == [("2024-W01", 1.7), ("2024-W02", 5.0)]

    def test_monthly_buckets(self) -> None:
        series = points({"2024-01-30": 100, "2024-01-31": 200, "2024-02-01": 50})
        grouped = group_series(series, "monthly")
        assert [(p.date, p.value) for p in grouped] == [("2024-01", 150.0), ("2024-02", 50.0)]

    def test_iso_week_spans_year_boundary(self) -> None:
        assert bucket_key(date(2024, 12, 30), Granularity.weekly) == "2025-W01"
        assert bucket_key(date(2021, 1, 3), Granularity.weekly) == "2020-W53"

    def test_unknown_granularity_raises(self) -> None:
        with pytest.raises(ValueError):
            group_series([], "hourly")


class TestRollingAverage:
    def test_trailing_window(self) -> None:
        series = points({d: v for d, v in zip(consecutive_days(date(2024, 1, 1), 4), [1, 0, 0, 1])})
        avg = rolling_average(series, window=2)
        assert [p.value for p in avg] == [1.0, 0.5, 0.0, 0.5]

    def test_short_history_uses_available_points(self) -> None:
        series = points({"2024-01-01": 3, "2024-01-02": 0})
        assert [p.value for p in rolling_average(series, window=7)] == [3.0, 1.5]


class TestSummaryTables:
    def test_symptom_frequencies_descending(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-01", symptoms=["Headache", "Bloating"]),
            make_record("2024-01-02", symptoms=["Bloating"]),
            make_record("2024-01-03", symptoms=["Fatigue"]),
        ]
        freqs = TimeSeriesAggregator(analytics_config).symptom_frequencies(records)
        assert [(f.name, f.count) for f in freqs] == [("Bloating", 2), ("Headache", 1), ("Fatigue", 1)]

    def test_top_foods_counts_every_mention(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-01", morning="Coffee", afternoon="Coffee, Salad", evening="Fasting"),
            make_record("2024-01-02", morning="coffee"),
        ]
        foods = TimeSeriesAggregator(analytics_config).top_foods(records)
        assert [(f.name, f.count) for f in foods] == [("coffee", 3), ("salad", 1)]

    def test_tracking_kpis(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-01", sleep_hours=8, activity_minutes=30, symptoms=["Headache"]),
            make_record("2024-01-02", sleep_hours=6, symptoms=["Bloating", "Gas"]),
            make_record("2024-01-03"),
        ]
        kpis = TimeSeriesAggregator(analytics_config).tracking_kpis(records)
        assert kpis.days_tracked == 3
        assert kpis.avg_sleep_hours == 7.0
        assert kpis.avg_activity_minutes == 30.0
        assert kpis.avg_symptoms_per_day == 1.0
        assert kpis.sleep_days == 2
        assert kpis.activity_days == 1

    def test_tracking_kpis_empty(self, analytics_config: AnalyticsConfig) -> None:
        kpis = TimeSeriesAggregator(analytics_config).tracking_kpis([])
        assert kpis.days_tracked == 0
        assert kpis.avg_sleep_hours == 0

    def test_monthly_recurrence(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-05", symptoms=["Headache"]),
            make_record("2024-01-20", symptoms=["headache"]),
            make_record("2024-03-02", symptoms=["Headache", "Fatigue"]),
            make_record("2024-02-02", symptoms=["Fatigue"]),
        ]
        recur = TimeSeriesAggregator(analytics_config).symptom_monthly_recurrence(records, "Headache")
        assert [(p.date, p.value) for p in recur] == [("2024-01", 2), ("2024-03", 1)]

    def test_symptom_recurrence_flags_periodic(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-05", symptoms=["Headache", "Nausea"]),
            make_record("2024-01-20", symptoms=["headache"]),
            make_record("2024-03-02", symptoms=["Headache"]),
        ]
        recur = TimeSeriesAggregator(analytics_config).symptom_recurrence(records)
        assert [r.symptom for r in recur] == ["Headache", "Nausea"]
        headache, nausea = recur
        assert [(p.date, p.value) for p in headache.months] == [("2024-01", 2), ("2024-03", 1)]
        assert headache.periodic is True
        assert [(p.date, p.value) for p in nausea.months] == [("2024-01", 1)]
        assert nausea.periodic is False

    def test_symptom_recurrence_empty(self, analytics_config: AnalyticsConfig) -> None:
        assert TimeSeriesAggregator(analytics_config).symptom_recurrence([]) == []


class TestSleep:
    def test_summary_series_and_average(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-02", sleep_hours=6),
            make_record("2024-01-01", sleep_hours=7.5),
            make_record("2024-01-03", symptoms=["Headache"]),
            make_record("2024-01-02", sleep_hours=8),
        ]
        summary = TimeSeriesAggregator(analytics_config).sleep_summary(records)
        assert [(p.date, p.value) for p in summary.series] == [
            ("2024-01-01", 7.5),
            ("2024-01-02", 8),
            ("2024-01-03", 0),
        ]
        assert summary.nights_logged == 3
        assert summary.average_hours == 7.2

    def test_summary_without_sleep(self, analytics_config: AnalyticsConfig) -> None:
        summary = TimeSeriesAggregator(analytics_config).sleep_summary([make_record("2024-01-01")])
        assert summary.average_hours == 0.0
        assert summary.nights_logged == 0

    def test_symptom_link_buckets(self, analytics_config: AnalyticsConfig) -> None:
        records = [
            make_record("2024-01-01", sleep_hours=5, symptoms=["Headache", "Fatigue"]),
            make_record("2024-01-02", sleep_hours=5.9, symptoms=["Headache"]),
            make_record("2024-01-03", sleep_hours=6, symptoms=["Bloating"]),
            make_record("2024-01-04", sleep_hours=8),
            make_record("2024-01-05", sleep_hours=9.5),
            make_record("2024-01-06", symptoms=["Gas"]),
        ]
        buckets = TimeSeriesAggregator(analytics_config).sleep_symptom_link(records)
        assert [(b.bucket, b.label, b.days, b.symptoms, b.avg_symptoms) for b in buckets] == [
            ("short", "<6h", 2, 3, 1.5),
            ("mid", "6-8h", 2, 1, 0.5),
            ("long", ">8h", 1, 0, 0.0),
        ]

    def test_symptom_link_always_three_buckets(self, analytics_config: AnalyticsConfig) -> None:
        buckets = TimeSeriesAggregator(analytics_config).sleep_symptom_link([])
        assert [b.bucket for b in buckets] == ["short", "mid", "long"]
        assert all(b.days == 0 and b.avg_symptoms == 0 for b in buckets)
