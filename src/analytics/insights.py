"""Threshold-gated natural-language insights.

Each rule inspects one aggregated output and emits at most one insight when its
significance threshold is met.  Rules are evaluated independently and always in
declaration order, so the output order is stable:

    1. food_correlation     foods frequently followed by digestive symptoms
    2. calorie_trend        direction of calorie intake over the window
    3. digestive_frequency  average digestive symptoms per day
    4. period_symptoms      symptoms on period days vs other days
    5. cycle_prediction     next period / ovulation forecast

Dashboard alerts are a separate, shorter list of warnings about the tracked
habits themselves (sleep, activity, trigger foods, symptom load); see
``InsightComposer.alerts``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from src.analytics.base import (
    Alert,
    CyclePrediction,
    FoodCorrelation,
    Insight,
    PeriodSymptomsSeries,
    TimeSeriesPoint,
    TrackingKpis,
    round_half_up,
)
from src.analytics.config_loader import AnalyticsConfig, InsightConfig, get_analytics_config

logger = logging.getLogger("journal.analytics.insights")


@dataclass
class InsightInputs:
    """Everything the rules look at.

    Attributes:
        correlations:    Food/digestive correlation rows.
        calories:        Calories series (daily or grouped).
        digestive_trend: Digestive symptom series (daily or grouped).
        period_series:   Period vs non-period symptom counts.
        cycle:           Cycle forecast, if one was computed.
        history_days:    Distinct days in the history the forecast was built from.
    """

    correlations: list[FoodCorrelation] = field(default_factory=list)
    calories: list[TimeSeriesPoint] = field(default_factory=list)
    digestive_trend: list[TimeSeriesPoint] = field(default_factory=list)
    period_series: PeriodSymptomsSeries = field(default_factory=PeriodSymptomsSeries)
    cycle: CyclePrediction | None = None
    history_days: int = 0


def _fmt(value: float) -> str:
    """Render a number without a trailing ``.0``."""
    return f"{value:g}"


class InsightComposer:
    """Turn aggregated analytics into a short list of insight statements.

    Usage::

        insights = InsightComposer().compose(InsightInputs(correlations=rows, ...))
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()
        self._rules: list[Callable[[InsightInputs], Insight | None]] = [
            self._food_correlation,
            self._calorie_trend,
            self._digestive_frequency,
            self._period_symptoms,
            self._cycle_prediction,
        ]

    @property
    def _in_config(self) -> InsightConfig:
        return self._config.insights

    def compose(self, inputs: InsightInputs) -> list[Insight]:
        insights = []
        for rule in self._rules:
            insight = rule(inputs)
            if insight is not None:
                insights.append(insight)
        logger.debug("Composed %d insight(s)", len(insights))
        return insights

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _food_correlation(self, inputs: InsightInputs) -> Insight | None:
        cfg = self._in_config
        strong = [c for c in inputs.correlations if c.correlation_pct >= cfg.food_correlation_min_pct]
        if len(strong) < cfg.food_correlation_min_foods:
            return None

        listed = ", ".join(f'"{c.name}" ({c.correlation_pct}%)' for c in strong[:3])
        return Insight(
            insight_id="food_correlation",
            title="Foods linked to digestive symptoms",
            text=(
                f"{len(strong)} foods often coincide with digestive symptoms: {listed}. "
                "Consider reducing them for a while and watch the trend."
            ),
        )

    def _calorie_trend(self, inputs: InsightInputs) -> Insight | None:
        cfg = self._in_config
        series = inputs.calories
        if len(series) < cfg.calorie_trend_min_points:
            return None

        delta = round_half_up(series[-1].value - series[0].value)
        if abs(series[-1].value - series[0].value) < cfg.calorie_stable_delta_kcal:
            text = f"Your calorie intake is stable ({delta:+g} kcal from {series[0].date} to {series[-1].date})."
        else:
            direction = "up" if delta > 0 else "down"
            text = (
                f"Your calorie intake is trending {direction} "
                f"({delta:+g} kcal from {series[0].date} to {series[-1].date})."
            )
        return Insight(insight_id="calorie_trend", title="Calorie trend", text=text)

    def _digestive_frequency(self, inputs: InsightInputs) -> Insight | None:
        cfg = self._in_config
        series = inputs.digestive_trend
        if len(series) < cfg.digestive_frequency_min_points:
            return None

        mean = round_half_up(sum(p.value for p in series) / max(1, len(series)), 1)
        return Insight(
            insight_id="digestive_frequency",
            title="Digestive symptoms",
            text=f"On average you logged {_fmt(mean)} symptom(s) per day related to digestion.",
        )

    def _period_symptoms(self, inputs: InsightInputs) -> Insight | None:
        series = inputs.period_series
        if series.total < self._in_config.period_symptoms_min_total:
            return None

        on_period = sum(series.with_period)
        off_period = sum(series.without_period)
        if on_period > off_period:
            text = f"You logged more symptoms on period days ({on_period}) than on other days ({off_period})."
        elif off_period > on_period:
            text = f"You logged more symptoms outside your period ({off_period}) than on period days ({on_period})."
        else:
            text = f"You logged as many symptoms on period days as on other days ({on_period} each)."
        return Insight(insight_id="period_symptoms", title="Symptoms and your period", text=text)

    def _cycle_prediction(self, inputs: InsightInputs) -> Insight | None:
        cycle = inputs.cycle
        if cycle is None or inputs.history_days < self._in_config.cycle_prediction_min_days:
            return None

        text = (
            f"Your next period is expected around {cycle.next_period_date.isoformat()} "
            f"(cycle length {cycle.cycle_length_days} days); "
            f"estimated ovulation on {cycle.next_ovulation_date.isoformat()}."
        )
        if cycle.lateness_days:
            when = "late" if cycle.lateness_days > 0 else "early"
            text += f" Your last period came {abs(cycle.lateness_days)} day(s) {when}."
        return Insight(insight_id="cycle_prediction", title="Cycle forecast", text=text)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def alerts(
        self,
        kpis: TrackingKpis,
        correlations: list[FoodCorrelation],
        daily_digestive: list[TimeSeriesPoint],
    ) -> list[Alert]:
        """Warnings shown on top of the dashboard, in a fixed order.

        Sleep and activity alerts only fire when that data was logged at all.
        Nothing fires for an empty window.

        Args:
            kpis:            Tracking KPIs of the window.
            correlations:    Correlation rows, highest percentage first.
            daily_digestive: Daily (ungrouped) digestive symptom series.
        """
        if kpis.days_tracked == 0:
            return []

        cfg = self._config.alerts
        alerts = []
        if kpis.sleep_days and kpis.avg_sleep_hours < cfg.min_avg_sleep_hours:
            alerts.append(Alert(
                alert_id="low_sleep",
                text=(
                    f"You sleep {_fmt(kpis.avg_sleep_hours)}h on average, "
                    f"below {_fmt(cfg.min_avg_sleep_hours)}h."
                ),
            ))
        if kpis.activity_days and kpis.avg_activity_minutes < cfg.min_avg_activity_minutes:
            alerts.append(Alert(
                alert_id="low_activity",
                text=(
                    f"You are active {_fmt(kpis.avg_activity_minutes)} min per day on average, "
                    f"below {_fmt(cfg.min_avg_activity_minutes)} min."
                ),
            ))
        high = self._config.correlation.high_risk_pct
        if correlations and correlations[0].correlation_pct > high:
            top = correlations[0]
            alerts.append(Alert(
                alert_id="high_risk_food",
                text=f'"{top.name}" comes with digestive symptoms on {top.correlation_pct}% of its days.',
            ))
        if kpis.avg_symptoms_per_day > cfg.max_avg_symptoms_per_day:
            alerts.append(Alert(
                alert_id="high_symptom_load",
                text=f"You log {_fmt(kpis.avg_symptoms_per_day)} symptoms per day on average.",
            ))
        recent = daily_digestive[-cfg.recent_window_days:]
        bad_days = sum(1 for p in recent if p.value > 0)
        if bad_days >= cfg.recent_digestive_min_days:
            alerts.append(Alert(
                alert_id="recent_digestive",
                text=f"Digestive symptoms on {bad_days} of your last {len(recent)} tracked days.",
            ))

        if alerts:
            logger.debug("Raised %d alert(s): %s", len(alerts), [a.alert_id for a in alerts])
        return alerts
