"""Offline calorie estimation from free-text food names.

A small, extendable kcal-per-serving table (``calories`` section of
analytics_config.yaml) covers common breakfast, main-meal, snack and drink
items.  Names are normalized before lookup; anything unknown falls back to
the configured default serving value.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from src.analytics.base import DailyRecord, round_half_up, split_meal_slot
from src.analytics.config_loader import AnalyticsConfig, CaloriesConfig, get_analytics_config

logger = logging.getLogger("journal.analytics.calories")


@dataclass(frozen=True)
class FoodItem:
    name: str
    quantity: float = 1.0


class CaloriesEstimator:
    """Estimate calories for food items or a whole daily record.

    Usage::

        estimator = CaloriesEstimator()
        estimator.estimate([FoodItem("Pancakes", 2), FoodItem("coffee")])  # 182
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()

    @property
    def _cal_config(self) -> CaloriesConfig:
        return self._config.calories

    def normalize(self, name: str) -> str:
        """Lowercase, trim, map plurals via the synonym table, then apply compound rules."""
        cfg = self._cal_config
        n = (name or "").lower().strip()
        n = cfg.synonyms.get(n, n)
        if n in cfg.servings:
            return n
        for rule in cfg.compound_rules:
            if rule.matches(n):
                return rule.target
        return n

    def kcal_per_serving(self, name: str) -> int:
        return self._cal_config.kcal_for(self.normalize(name))

    def estimate(self, items: list[FoodItem]) -> int:
        """Total kcal for ``items``; quantity multiplies the per-serving value.

        A missing, zero, negative or NaN quantity counts as one serving.
        """
        total = 0.0
        for item in items:
            qty = item.quantity
            if qty is None or math.isnan(qty) or qty <= 0:
                qty = 1.0
            total += self.kcal_per_serving(item.name) * qty
        return int(round_half_up(total))

    def estimate_record(self, record: DailyRecord) -> int:
        """Estimate one serving per logged item across all meal slots.

        Any slot containing the fasting marker contributes nothing.
        """
        if record.meals is None:
            return 0
        fasting = self._cal_config.fasting_token
        items: list[FoodItem] = []
        for slot in record.meals.slots():
            pieces = split_meal_slot(slot)
            if any(p.lower() == fasting for p in pieces):
                continue
            items.extend(FoodItem(p) for p in pieces)
        return self.estimate(items)
