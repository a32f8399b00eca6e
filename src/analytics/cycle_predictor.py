"""Menstrual cycle prediction from logged period days.

Estimates the cycle length from gaps between period-active days and forecasts:
- Next period start date
- Next ovulation date (a fixed luteal phase before the next period)
- Lateness of the most recent period relative to the one before it

Runs over the user's entire history, not the display window: cycle inference
needs more data than a week or month of records.

Policy (preserved exactly, see ``cycle`` in analytics_config.yaml):
- Users on a continuous pill always get their profile cycle length.
- Otherwise the last 3 gaps in (0, 60] days are averaged; with no valid gap the
  profile length (or 28 days) is used.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

from src.analytics.base import CyclePrediction, DailyRecord, UserProfile, round_half_up, valid_records
from src.analytics.config_loader import AnalyticsConfig, CycleConfig, get_analytics_config

logger = logging.getLogger("journal.analytics.cycle_predictor")


class CyclePredictor:
    """Predict the next period and ovulation from the full record history.

    Usage::

        predictor = CyclePredictor()
        prediction = predictor.predict(all_records, profile)
        print(prediction.next_period_date, prediction.lateness_days)
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()

    @property
    def _cycle_config(self) -> CycleConfig:
        return self._config.cycle

    @staticmethod
    def period_days(records: Iterable[DailyRecord]) -> list[date]:
        """Sorted distinct dates on which a period was logged active."""
        return sorted({r.day for r in valid_records(records) if r.period_active})

    def valid_gaps(self, period_days: list[date]) -> list[int]:
        """Day gaps between consecutive period days within ``(0, max_gap_days]``."""
        max_gap = self._cycle_config.max_gap_days
        gaps = [(b - a).days for a, b in zip(period_days, period_days[1:])]
        return [g for g in gaps if 0 < g <= max_gap]

    def profile_cycle_length(self, profile: UserProfile | None) -> int:
        default = self._cycle_config.default_cycle_length_days
        if profile is None:
            return default
        length = profile.cycle.average_cycle_length_days
        if length is None or length <= 0:
            logger.warning("Ignoring non-positive profile cycle length %r", length)
            return default
        return int(length)

    def predict(
        self,
        all_records: Iterable[DailyRecord],
        profile: UserProfile | None = None,
        as_of: date | None = None,
    ) -> CyclePrediction:
        """Forecast the next period from the full history.

        Args:
            all_records: Every record of the user, unfiltered.
            profile:     Profile cycle settings; defaults apply when None.
            as_of:       Anchor used when no period was ever logged (defaults to today).

        Returns:
            CyclePrediction; ``lateness_days`` is None with fewer than two period days.
        """
        cc = self._cycle_config
        days = self.period_days(all_records)
        gaps_used = 0

        if profile is not None and profile.cycle.is_on_continuous_pill:
            cycle_length = self.profile_cycle_length(profile)
            source = "continuous_pill"
        else:
            recent = self.valid_gaps(days)[-cc.gap_window:]
            if recent:
                cycle_length = int(round_half_up(sum(recent) / len(recent)))
                gaps_used = len(recent)
                source = "observed_gaps"
            else:
                cycle_length = self.profile_cycle_length(profile)
                source = "profile_default"

        last_period = days[-1] if days else None
        anchor = last_period or as_of or date.today()
        next_period = anchor + timedelta(days=cycle_length)
        next_ovulation = next_period - timedelta(days=cc.luteal_phase_days)

        lateness = None
        if len(days) >= 2:
            expected = days[-2] + timedelta(days=cycle_length)
            lateness = (days[-1] - expected).days

        logger.debug(
            "Cycle prediction: length=%d (%s, %d gaps) last=%s next=%s lateness=%s",
            cycle_length, source, gaps_used, last_period, next_period, lateness,
        )

        return CyclePrediction(
            next_period_date=next_period,
            next_ovulation_date=next_ovulation,
            cycle_length_days=cycle_length,
            last_period_date=last_period,
            lateness_days=lateness,
            source=source,
            gaps_used=gaps_used,
        )
