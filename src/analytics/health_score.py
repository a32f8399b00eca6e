"""Per-record health score.

Converts one daily record into four banded sub-scores and their unweighted
mean:

    - sleep      hours slept         (1.0 in [7, 9] h)
    - symptoms   number of symptoms  (1.0 with none)
    - activity   logged activities   (1.0 with 2 or more)
    - hydration  glasses of water    (1.0 with 8 or more)

A missing record, or a record without any data, yields the empty sentinel
``HealthScore(total=0, breakdown={})`` so callers can tell "nothing logged"
apart from a day that scored low.
"""

from __future__ import annotations

import logging
import statistics

from src.analytics.base import DailyRecord, HealthScore, round_half_up

logger = logging.getLogger("journal.analytics.health_score")

# Sleep bands (hours, inclusive)
_OPTIMAL_SLEEP_HOURS = (7.0, 9.0)
_ACCEPTABLE_SLEEP_HOURS = (6.0, 10.0)


def _score_sleep(record: DailyRecord) -> float:
    hours = record.sleep_hours
    if not hours:
        # Nothing logged contributes nothing
        return 0.0
    if _OPTIMAL_SLEEP_HOURS[0] <= hours <= _OPTIMAL_SLEEP_HOURS[1]:
        return 1.0
    if _ACCEPTABLE_SLEEP_HOURS[0] <= hours <= _ACCEPTABLE_SLEEP_HOURS[1]:
        return 0.7
    return 0.3


def _score_symptoms(record: DailyRecord) -> float:
    count = len(record.symptoms)
    if count == 0:
        return 1.0
    if count <= 2:
        return 0.7
    if count <= 4:
        return 0.4
    return 0.2


def _score_activity(record: DailyRecord) -> float:
    count = len(record.activity)
    if count >= 2:
        return 1.0
    if count >= 1:
        return 0.7
    return 0.3


def _score_hydration(record: DailyRecord) -> float:
    count = record.hydration.count if record.hydration else 0
    if count >= 8:
        return 1.0
    if count >= 6:
        return 0.7
    if count >= 4:
        return 0.4
    return 0.2


class HealthScoreCalculator:
    """Score a single daily record.

    Usage::

        score = HealthScoreCalculator().score(record)
        print(score.total, score.breakdown["sleep"])
    """

    def score(self, record: DailyRecord | None) -> HealthScore:
        if record is None or record.is_empty():
            return HealthScore(total=0, breakdown={})

        breakdown = {
            "sleep": _score_sleep(record),
            "symptoms": _score_symptoms(record),
            "activity": _score_activity(record),
            "hydration": _score_hydration(record),
        }
        total = round_half_up(statistics.mean(breakdown.values()), 2)

        logger.debug("Health score for %s: %.2f %s", record.date, total, breakdown)
        return HealthScore(total=total, breakdown=breakdown)
