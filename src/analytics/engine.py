"""Analytics engine: the single entry point combining every analytics component.

The only asynchronous step is fetching the user's records and profile from the
collaborating stores.  Everything after that (``analyze``) is a synchronous,
pure function of the fetched snapshot: it performs no I/O, keeps no state
between calls, and returns equal results for equal input.

Data flow::

    RecordStore ──► records ──► [start, end] window ──► Aggregator
                        │                          ├─► CorrelationEngine
                        │                          └─► CaloriesEstimator
                        └──────── full history ────► CyclePredictor
                                                         │
                               all outputs ─────────► InsightComposer
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Protocol

from src.analytics.aggregator import TimeSeriesAggregator, group_series, rolling_average
from src.analytics.base import (
    Alert,
    CyclePrediction,
    DailyRecord,
    FoodCorrelation,
    FoodCount,
    FoodSymptomDetail,
    FoodSymptomMatrix,
    Granularity,
    HealthScore,
    Insight,
    PeriodSymptomsSeries,
    SleepBucket,
    SleepSummary,
    SymptomCount,
    SymptomRecurrence,
    TimeSeriesPoint,
    TrackingKpis,
    UserProfile,
    parse_iso_date,
    valid_records,
)
from src.analytics.calories import CaloriesEstimator
from src.analytics.config_loader import AnalyticsConfig, get_analytics_config
from src.analytics.correlation import CorrelationEngine
from src.analytics.cycle_predictor import CyclePredictor
from src.analytics.health_score import HealthScoreCalculator
from src.analytics.insights import InsightComposer, InsightInputs

logger = logging.getLogger("journal.analytics.engine")


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------


class RecordStore(Protocol):
    async def get_records_by_user(self, user_id: str) -> list[DailyRecord]:
        """All records of a user, unordered, possibly with duplicate dates."""
        ...


class ProfileStore(Protocol):
    async def get_profile(self, user_id: str) -> UserProfile | None:
        ...


class InvalidDateRangeError(ValueError):
    """Raised when a requested date window is malformed or inverted."""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class AnalyticsResult:
    """Everything the dashboard and reports consume for one date window.

    ``symptoms_over_time``, ``digestive_issues_trend`` and ``calories_data`` are
    grouped at ``granularity``; ``period_symptoms_series`` and
    ``digestive_rolling_average`` stay daily.  ``cycle_prediction`` is built from
    the full history regardless of the window.  ``alerts`` look at the daily
    digestive series, not the grouped one.
    """

    start_date: str
    end_date: str
    granularity: Granularity
    cycle_prediction: CyclePrediction
    symptoms_data: list[SymptomCount] = field(default_factory=list)
    calories_data: list[TimeSeriesPoint] = field(default_factory=list)
    foods_data: list[FoodCount] = field(default_factory=list)
    food_symptom_matrix: FoodSymptomMatrix = field(default_factory=FoodSymptomMatrix)
    symptoms_over_time: list[TimeSeriesPoint] = field(default_factory=list)
    digestive_issues_trend: list[TimeSeriesPoint] = field(default_factory=list)
    digestive_rolling_average: list[TimeSeriesPoint] = field(default_factory=list)
    period_symptoms_series: PeriodSymptomsSeries = field(default_factory=PeriodSymptomsSeries)
    food_digestive_correlation: list[FoodCorrelation] = field(default_factory=list)
    food_symptom_details: dict[str, FoodSymptomDetail] = field(default_factory=dict)
    kpis: TrackingKpis = field(default_factory=TrackingKpis)
    insights: list[Insight] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    sleep_data: SleepSummary = field(default_factory=SleepSummary)
    sleep_symptom_link: list[SleepBucket] = field(default_factory=list)
    symptom_recurrence: list[SymptomRecurrence] = field(default_factory=list)


def _check_range(start_date: str, end_date: str) -> None:
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    if start is None or end is None:
        raise InvalidDateRangeError(
            f"start_date and end_date must be YYYY-MM-DD, got {start_date!r}..{end_date!r}"
        )
    if start > end:
        raise InvalidDateRangeError(f"start_date {start_date} is after end_date {end_date}")


class AnalyticsEngine:
    """Compute analytics and health scores for a user.

    Usage::

        engine = AnalyticsEngine(record_store, profile_store)
        result = await engine.compute_analytics("user-1", "2024-01-01", "2024-01-31")
        score = await engine.compute_health_score("user-1", "2024-01-31")

    For a snapshot already in memory, call ``analyze()`` directly.
    """

    def __init__(
        self,
        record_store: RecordStore | None = None,
        profile_store: ProfileStore | None = None,
        config: AnalyticsConfig | None = None,
    ) -> None:
        self._records = record_store
        self._profiles = profile_store
        self._config = config or get_analytics_config()
        self._estimator = CaloriesEstimator(self._config)
        self._aggregator = TimeSeriesAggregator(self._config, self._estimator)
        self._correlation = CorrelationEngine(self._config)
        self._predictor = CyclePredictor(self._config)
        self._scorer = HealthScoreCalculator()
        self._composer = InsightComposer(self._config)

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    async def _fetch(self, user_id: str) -> tuple[list[DailyRecord], UserProfile | None]:
        if self._records is None:
            raise RuntimeError("AnalyticsEngine has no record store configured")
        records = await self._records.get_records_by_user(user_id)
        profile = await self._profiles.get_profile(user_id) if self._profiles else None
        return list(records or []), profile

    async def compute_analytics(
        self,
        user_id: str,
        start_date: str,
        end_date: str,
        granularity: Granularity | str = Granularity.daily,
        as_of: date | None = None,
    ) -> AnalyticsResult:
        """Fetch the user's data and run ``analyze`` over it.

        Raises:
            InvalidDateRangeError: If the window is malformed or inverted.
            ValueError:            If ``granularity`` is unknown.
        """
        _check_range(start_date, end_date)
        granularity = Granularity(granularity)
        records, profile = await self._fetch(user_id)
        logger.info(
            "Computing analytics for %s over %s..%s (%d record(s), %s)",
            user_id, start_date, end_date, len(records), granularity.value,
        )
        return self.analyze(records, profile, start_date, end_date, granularity, as_of)

    async def compute_health_score(self, user_id: str, target_date: str) -> HealthScore:
        """Score the user's record for ``target_date``; the sentinel when none exists."""
        if parse_iso_date(target_date) is None:
            raise InvalidDateRangeError(f"date must be YYYY-MM-DD, got {target_date!r}")
        records, _ = await self._fetch(user_id)
        matching = [r for r in records if r.date == target_date]
        # With duplicates the last stored record wins
        return self._scorer.score(matching[-1] if matching else None)

    def score(self, record: DailyRecord | None) -> HealthScore:
        return self._scorer.score(record)

    def analyze(
        self,
        records: Iterable[DailyRecord],
        profile: UserProfile | None,
        start_date: str,
        end_date: str,
        granularity: Granularity | str = Granularity.daily,
        as_of: date | None = None,
    ) -> AnalyticsResult:
        """Pure analytics over an in-memory snapshot.

        Args:
            records:     Full record history of the user.
            profile:     Profile cycle settings, or None.
            start_date:  Inclusive ISO start of the display window.
            end_date:    Inclusive ISO end of the display window.
            granularity: Grouping applied to the headline series.
            as_of:       Reference date for a forecast without history.
        """
        _check_range(start_date, end_date)
        granularity = Granularity(granularity)

        history = valid_records(records)
        window = [r for r in history if start_date <= r.date <= end_date]

        aggregates = self._aggregator.aggregate(window)
        correlations = self._correlation.correlate(window)
        cycle = self._predictor.predict(history, profile, as_of=as_of)

        kpis = self._aggregator.tracking_kpis(window)
        calories = group_series(aggregates.calories_per_day, granularity)
        digestive = group_series(aggregates.digestive_issues_trend, granularity)

        insights = self._composer.compose(
            InsightInputs(
                correlations=correlations,
                calories=calories,
                digestive_trend=digestive,
                period_series=aggregates.period_symptoms_series,
                cycle=cycle,
                history_days=len({r.date for r in history}),
            )
        )

        return AnalyticsResult(
            start_date=start_date,
            end_date=end_date,
            granularity=granularity,
            cycle_prediction=cycle,
            symptoms_data=self._aggregator.symptom_frequencies(window),
            calories_data=calories,
            foods_data=self._aggregator.top_foods(window),
            food_symptom_matrix=self._correlation.matrix(window, correlations),
            symptoms_over_time=group_series(aggregates.symptoms_over_time, granularity),
            digestive_issues_trend=digestive,
            digestive_rolling_average=rolling_average(
                aggregates.digestive_issues_trend,
                self._config.insights.rolling_average_window,
            ),
            period_symptoms_series=aggregates.period_symptoms_series,
            food_digestive_correlation=correlations,
            food_symptom_details=self._correlation.detail(window),
            kpis=kpis,
            insights=insights,
            alerts=self._composer.alerts(kpis, correlations, aggregates.digestive_issues_trend),
            sleep_data=self._aggregator.sleep_summary(window),
            sleep_symptom_link=self._aggregator.sleep_symptom_link(window),
            symptom_recurrence=self._aggregator.symptom_recurrence(window),
        )
