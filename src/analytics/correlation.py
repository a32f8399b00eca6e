"""Food ↔ symptom correlation engine.

Surfaces patterns like:
- "On 75% of the days you ate pizza you also logged a digestive symptom"
- "Bloating and headache are the symptoms most often logged alongside yogurt"

Foods are counted once per day (set semantics), so a food eaten at breakfast
and dinner contributes one occurrence for that day.  Records sharing a date are
merged into a single day.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from src.analytics.base import (
    DailyRecord,
    FoodCorrelation,
    FoodSymptomDetail,
    FoodSymptomMatrix,
    SymptomCount,
    round_half_up,
    valid_records,
)
from src.analytics.config_loader import AnalyticsConfig, CorrelationConfig, get_analytics_config

logger = logging.getLogger("journal.analytics.correlation")


@dataclass
class _Day:
    """Foods and symptoms of one calendar day, in first-appearance order."""

    date: str
    foods: dict[str, None] = field(default_factory=dict)
    symptoms: dict[str, None] = field(default_factory=dict)
    has_digestive: bool = False


class CorrelationEngine:
    """Correlate logged foods with digestive and raw symptoms.

    Usage::

        engine = CorrelationEngine()
        for row in engine.correlate(records):
            print(row.name, row.correlation_pct)
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()

    @property
    def _corr_config(self) -> CorrelationConfig:
        return self._config.correlation

    def _days(self, records: Iterable[DailyRecord]) -> list[_Day]:
        """Merge records into per-day food and symptom sets, ascending by date."""
        fasting = self._config.calories.fasting_token
        days: dict[str, _Day] = {}
        for record in sorted(valid_records(records), key=lambda r: r.date):
            day = days.setdefault(record.date, _Day(date=record.date))
            for food in record.food_items(fasting):
                day.foods[food] = None
            for symptom in record.symptoms:
                name = symptom.strip()
                if not name:
                    continue
                day.symptoms[name] = None
                if self._config.digestive.is_digestive(name):
                    day.has_digestive = True
        return list(days.values())

    def correlate(self, records: Iterable[DailyRecord]) -> list[FoodCorrelation]:
        """Percentage of each food's days that co-occur with a digestive symptom.

        Records are ordered by date before counting, so ties keep the order in
        which foods first appear over ascending dates, whatever the input order.

        Returns:
            Up to ``top_foods`` rows, highest percentage first, each tagged with
            its risk band.
        """
        totals: Counter[str] = Counter()
        digestive: Counter[str] = Counter()
        for day in self._days(records):
            for food in day.foods:
                totals[food] += 1
                if day.has_digestive:
                    digestive[food] += 1

        rows = []
        for food, total in totals.items():
            pct = int(round_half_up(100 * digestive[food] / max(1, total)))
            rows.append(
                FoodCorrelation(
                    name=food,
                    correlation_pct=pct,
                    total_days=total,
                    digestive_days=digestive[food],
                    risk=self._corr_config.risk_band(pct),
                )
            )
        rows.sort(key=lambda r: r.correlation_pct, reverse=True)
        return rows[: self._corr_config.top_foods]

    def detail(self, records: Iterable[DailyRecord]) -> dict[str, FoodSymptomDetail]:
        """Most frequent raw symptoms logged on each food's days."""
        per_food: dict[str, Counter[str]] = {}
        for day in self._days(records):
            for food in day.foods:
                tally = per_food.setdefault(food, Counter())
                tally.update(day.symptoms.keys())

        limit = self._corr_config.top_symptoms_per_food
        return {
            food: FoodSymptomDetail(
                food=food,
                symptoms=[SymptomCount(name=n, count=c) for n, c in tally.most_common(limit)],
            )
            for food, tally in per_food.items()
        }

    def matrix(
        self,
        records: Iterable[DailyRecord],
        correlations: list[FoodCorrelation] | None = None,
    ) -> FoodSymptomMatrix:
        """Food × symptom co-occurrence grid.

        Rows are the top correlated foods (at most ``matrix_max_foods``), columns
        the first ``matrix_max_symptoms`` distinct symptoms in order of appearance.

        Args:
            records:      Record snapshot.
            correlations: Precomputed ``correlate()`` output for the same records.
        """
        records = list(records)
        days = self._days(records)
        if correlations is None:
            correlations = self.correlate(records)

        foods = [c.name for c in correlations[: self._corr_config.matrix_max_foods]]
        symptoms: dict[str, None] = {}
        for day in days:
            for symptom in day.symptoms:
                if len(symptoms) >= self._corr_config.matrix_max_symptoms:
                    break
                symptoms.setdefault(symptom, None)
        symptom_list = list(symptoms)

        counts = [[0] * len(symptom_list) for _ in foods]
        food_index = {f: i for i, f in enumerate(foods)}
        symptom_index = {s: j for j, s in enumerate(symptom_list)}
        for day in days:
            for food in day.foods:
                i = food_index.get(food)
                if i is None:
                    continue
                for symptom in day.symptoms:
                    j = symptom_index.get(symptom)
                    if j is not None:
                        counts[i][j] += 1

        return FoodSymptomMatrix(foods=foods, symptoms=symptom_list, counts=counts)
