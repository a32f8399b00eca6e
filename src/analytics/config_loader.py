"""Load, validate, and hot-reload the analytics engine configuration.

The config lives in ``analytics_config.yaml`` alongside this module.  It holds
the data the engine treats as policy rather than code: the calorie table, the
digestive keyword list, cycle prediction knobs, correlation limits, dashboard
alert limits, and the significance thresholds of the insight rules.

Usage::

    from src.analytics.config_loader import get_analytics_config

    config = get_analytics_config()
    config.digestive.keywords          # ['bloat', 'gas', ...]
    config.calories.kcal_for("pizza")  # 285
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("journal.analytics.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "analytics_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class CompoundRule:
    """Maps any food name containing all ``words`` to ``target``."""

    words: list[str]
    target: str

    def matches(self, name: str) -> bool:
        return all(w in name for w in self.words)


@dataclass
class CaloriesConfig:
    """Static calorie lookup used by the CaloriesEstimator."""

    default_kcal_per_serving: int
    fasting_token: str
    servings: dict[str, int]
    synonyms: dict[str, str] = field(default_factory=dict)
    compound_rules: list[CompoundRule] = field(default_factory=list)

    def kcal_for(self, normalized_name: str) -> int:
        return self.servings.get(normalized_name, self.default_kcal_per_serving)


@dataclass
class DigestiveConfig:
    """Keywords that mark a symptom tag as digestive."""

    keywords: list[str]

    def is_digestive(self, symptom: str) -> bool:
        """Case-insensitive substring match against the keyword list."""
        text = (symptom or "").lower()
        return any(k in text for k in self.keywords)


@dataclass
class CycleConfig:
    """Menstrual cycle prediction policy."""

    default_cycle_length_days: int = 28
    max_gap_days: int = 60
    gap_window: int = 3
    luteal_phase_days: int = 14


@dataclass
class CorrelationConfig:
    """Output limits and risk bands for food/symptom correlation."""

    top_foods: int = 10
    top_symptoms_per_food: int = 5
    matrix_max_foods: int = 10
    matrix_max_symptoms: int = 12
    top_foods_by_frequency: int = 10
    high_risk_pct: int = 60
    medium_risk_pct: int = 30

    def risk_band(self, correlation_pct: int) -> str:
        """'high' above ``high_risk_pct``, 'medium' above ``medium_risk_pct``, else 'low'."""
        if correlation_pct > self.high_risk_pct:
            return "high"
        if correlation_pct > self.medium_risk_pct:
            return "medium"
        return "low"


@dataclass
class InsightConfig:
    """Significance thresholds for the insight rules."""

    food_correlation_min_pct: int = 40
    food_correlation_min_foods: int = 2
    calorie_trend_min_points: int = 5
    calorie_stable_delta_kcal: float = 20.0
    digestive_frequency_min_points: int = 5
    period_symptoms_min_total: int = 3
    cycle_prediction_min_days: int = 3
    rolling_average_window: int = 7
    recurrence_min_months: int = 2


@dataclass
class AlertConfig:
    """Limits behind the dashboard alerts."""

    min_avg_sleep_hours: float = 6.0
    min_avg_activity_minutes: float = 20.0
    max_avg_symptoms_per_day: float = 3.0
    recent_window_days: int = 7
    recent_digestive_min_days: int = 3


@dataclass
class SleepBucketConfig:
    """Hour limits of the short / mid / long sleep buckets."""

    short_below_hours: float = 6.0
    long_above_hours: float = 8.0


@dataclass
class AnalyticsConfig:
    """Complete, validated analytics configuration.

    Attributes:
        version:       Config schema version string.
        calories:      Calorie table, synonyms and compound rules.
        digestive:     Digestive symptom keyword list.
        cycle:         Cycle prediction policy.
        correlation:   Correlation output limits and risk bands.
        insights:      Insight rule thresholds.
        alerts:        Dashboard alert limits.
        sleep_buckets: Sleep bucket limits for the sleep / symptom link.
    """

    version: str
    calories: CaloriesConfig
    digestive: DigestiveConfig
    cycle: CycleConfig
    correlation: CorrelationConfig
    insights: InsightConfig
    alerts: AlertConfig = field(default_factory=AlertConfig)
    sleep_buckets: SleepBucketConfig = field(default_factory=SleepBucketConfig)
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when analytics_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Analytics config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _positive_ints(section: dict, name: str, defaults: dict[str, int], errors: list[str]) -> dict[str, Any]:
    """Read integer settings from ``section``, recording non-positive values as errors."""
    values: dict[str, Any] = {}
    for key, default in defaults.items():
        raw = section.get(key, default)
        try:
            value = int(raw)
        except (TypeError, ValueError):
            errors.append(f"{name}.{key} must be an integer, got {raw!r}")
            continue
        if value <= 0:
            errors.append(f"{name}.{key} must be positive, got {value}")
        values[key] = value
    return values


def _positive_floats(section: dict, name: str, defaults: dict[str, float], errors: list[str]) -> dict[str, Any]:
    """Like ``_positive_ints`` for settings that may be fractional."""
    values: dict[str, Any] = {}
    for key, default in defaults.items():
        raw = section.get(key, default)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            errors.append(f"{name}.{key} must be a number, got {raw!r}")
            continue
        if value <= 0:
            errors.append(f"{name}.{key} must be positive, got {value}")
        values[key] = value
    return values


def _validate_and_build(raw: dict) -> AnalyticsConfig:
    """Validate the raw YAML dict and construct an AnalyticsConfig.

    All problems are collected and reported together.

    Raises:
        ConfigValidationError: If required fields are missing or invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Calories ──
    cal_raw = raw.get("calories") or {}
    servings: dict[str, int] = {}
    servings_raw = cal_raw.get("servings") or {}
    if not servings_raw:
        errors.append("'calories.servings' section is missing or empty")
    for name, kcal in servings_raw.items():
        try:
            value = int(kcal)
        except (TypeError, ValueError):
            errors.append(f"calories.servings.{name} must be a number, got {kcal!r}")
            continue
        if value < 0:
            errors.append(f"calories.servings.{name} = {value} must not be negative")
        servings[str(name).lower().strip()] = value

    synonyms = {
        str(k).lower().strip(): str(v).lower().strip()
        for k, v in (cal_raw.get("synonyms") or {}).items()
    }
    for alias, target in synonyms.items():
        if target not in servings:
            errors.append(f"calories.synonyms.{alias} points to unknown food '{target}'")

    compound_rules: list[CompoundRule] = []
    for i, rule in enumerate(cal_raw.get("compound_rules") or []):
        if not isinstance(rule, dict) or not rule.get("words") or not rule.get("target"):
            errors.append(f"calories.compound_rules[{i}] needs 'words' and 'target'")
            continue
        compound_rules.append(
            CompoundRule(
                words=[str(w).lower() for w in rule["words"]],
                target=str(rule["target"]).lower(),
            )
        )

    try:
        default_kcal = int(cal_raw.get("default_kcal_per_serving", 200))
    except (TypeError, ValueError):
        errors.append("calories.default_kcal_per_serving must be a number")
        default_kcal = 200

    calories = CaloriesConfig(
        default_kcal_per_serving=default_kcal,
        fasting_token=str(cal_raw.get("fasting_token", "fasting")).lower(),
        servings=servings,
        synonyms=synonyms,
        compound_rules=compound_rules,
    )

    # ── Digestive keywords ──
    dg_raw = raw.get("digestive") or {}
    keywords = [str(k).lower().strip() for k in (dg_raw.get("keywords") or []) if str(k).strip()]
    if not keywords:
        errors.append("'digestive.keywords' must list at least one keyword")
    digestive = DigestiveConfig(keywords=keywords)

    # ── Cycle ──
    cycle = CycleConfig(
        **_positive_ints(
            raw.get("cycle") or {},
            "cycle",
            {
                "default_cycle_length_days": 28,
                "max_gap_days": 60,
                "gap_window": 3,
                "luteal_phase_days": 14,
            },
            errors,
        )
    )

    # ── Correlation ──
    correlation = CorrelationConfig(
        **_positive_ints(
            raw.get("correlation") or {},
            "correlation",
            {
                "top_foods": 10,
                "top_symptoms_per_food": 5,
                "matrix_max_foods": 10,
                "matrix_max_symptoms": 12,
                "top_foods_by_frequency": 10,
                "high_risk_pct": 60,
                "medium_risk_pct": 30,
            },
            errors,
        )
    )
    if correlation.medium_risk_pct >= correlation.high_risk_pct:
        errors.append("correlation.medium_risk_pct must be below correlation.high_risk_pct")

    # ── Insights ──
    in_raw = raw.get("insights") or {}
    try:
        stable_delta = float(in_raw.get("calorie_stable_delta_kcal", 20))
    except (TypeError, ValueError):
        errors.append("insights.calorie_stable_delta_kcal must be a number")
        stable_delta = 20.0
    insights = InsightConfig(
        calorie_stable_delta_kcal=stable_delta,
        **_positive_ints(
            in_raw,
            "insights",
            {
                "food_correlation_min_pct": 40,
                "food_correlation_min_foods": 2,
                "calorie_trend_min_points": 5,
                "digestive_frequency_min_points": 5,
                "period_symptoms_min_total": 3,
                "cycle_prediction_min_days": 3,
                "rolling_average_window": 7,
                "recurrence_min_months": 2,
            },
            errors,
        ),
    )
    if insights.food_correlation_min_pct > 100:
        errors.append("insights.food_correlation_min_pct must be within [0, 100]")

    # ── Dashboard alerts ──
    al_raw = raw.get("alerts") or {}
    alerts = AlertConfig(
        **_positive_floats(
            al_raw,
            "alerts",
            {
                "min_avg_sleep_hours": 6.0,
                "min_avg_activity_minutes": 20.0,
                "max_avg_symptoms_per_day": 3.0,
            },
            errors,
        ),
        **_positive_ints(
            al_raw,
            "alerts",
            {"recent_window_days": 7, "recent_digestive_min_days": 3},
            errors,
        ),
    )

    # ── Sleep buckets ──
    sleep_buckets = SleepBucketConfig(
        **_positive_floats(
            raw.get("sleep_buckets") or {},
            "sleep_buckets",
            {"short_below_hours": 6.0, "long_above_hours": 8.0},
            errors,
        )
    )
    if sleep_buckets.short_below_hours > sleep_buckets.long_above_hours:
        errors.append("sleep_buckets.short_below_hours must not exceed long_above_hours")

    if errors:
        raise ConfigValidationError(
            f"analytics_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return AnalyticsConfig(
        version=version,
        calories=calories,
        digestive=digestive,
        cycle=cycle,
        correlation=correlation,
        insights=insights,
        alerts=alerts,
        sleep_buckets=sleep_buckets,
        _raw=raw,
    )


def load_analytics_config(path: Path | None = None) -> AnalyticsConfig:
    """Load and validate the analytics config from disk.

    Args:
        path: Override path to YAML. Uses the bundled analytics_config.yaml by default.

    Returns:
        Validated AnalyticsConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded analytics config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: AnalyticsConfig | None = None
_config_lock = threading.Lock()


def get_analytics_config() -> AnalyticsConfig:
    """Return the global AnalyticsConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_analytics_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_analytics_config()
    return _config


def reload_analytics_config(path: Path | None = None) -> AnalyticsConfig:
    """Reload the analytics config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_analytics_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info(
        "Reloaded analytics config: %s → %s",
        old_version,
        new_config.version,
    )
    return new_config
