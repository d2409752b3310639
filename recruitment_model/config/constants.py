# recruitment_model/config/constants.py
"""
Calibration constants for the estimation engines.

These values were tuned against historical operations data rather than derived
from a statistical model. They are kept here as replaceable calibration data;
the engines read them as defaults and most can be overridden through the
pydantic config models in ``recruitment_model.config.models``.
"""

from typing import Dict, List, Tuple

# --- Time conversions ---

DAYS_PER_MONTH = 30.44  # Mean Gregorian month length, used for tenure in months
EFFECTIVE_DAYS_PER_MONTH = 25  # Operating days per month used for monthly ceilings

# --- Capacity guardrails ---

# Minimum (months covered, days with data) for each data quality tier, best tier first
CAPACITY_QUALITY_THRESHOLDS: List[Tuple[str, int, int]] = [
    ("excellent", 12, 300),
    ("good", 6, 150),
    ("fair", 3, 60),
]

# Allowed stretch over the historical daily maximum, keyed by data quality.
# Thinner history gets more headroom because its maximum is less reliable.
OPTIMISTIC_STRETCH_FACTORS: Dict[str, float] = {
    "excellent": 1.15,
    "good": 1.20,
}
DEFAULT_OPTIMISTIC_STRETCH_FACTOR = 1.30
PESSIMISTIC_FLOOR_FACTOR = 0.60

# Pace above stretched_max * this multiplier is classified as impossible
IMPOSSIBLE_PACE_MULTIPLIER = 1.5

# Snapshot returned when the history window holds no observations
DEFAULT_CAPACITY_METRICS: Dict[str, float] = {
    "max_daily_count": 50,
    "avg_daily_count": 33.6,
    "max_daily_value": 520000.0,
    "avg_daily_value": 288000.0,
    "max_monthly_count": 1100,
    "avg_monthly_count": 850.0,
    "max_monthly_value": 9500000.0,
    "avg_monthly_value": 7200000.0,
}
DEFAULT_CAPACITY_GUARDRAILS: Dict[str, float] = {
    "max_daily_count": 50,
    "max_daily_value": 520000.0,
    "max_monthly_count": 1100,
    "max_monthly_value": 9500000.0,
    "realistic_max_daily_count": 45,
    "realistic_max_daily_value": 450000.0,
    "realistic_max_monthly_count": 1000,
    "realistic_max_monthly_value": 8500000.0,
    "avg_daily_count": 33.6,
    "avg_daily_value": 288000.0,
}

# --- Retention ---

# Month-of-year retention adjustment, January first. Observed pattern: turnover
# peaks after the December holidays and around the July/August vacation period.
SEASONAL_RETENTION_FACTORS: List[float] = [
    1.05,  # January
    0.95,  # February
    0.98,  # March
    1.02,  # April
    0.92,  # May
    0.94,  # June
    1.08,  # July
    1.06,  # August
    0.96,  # September
    0.98,  # October
    1.04,  # November
    1.12,  # December
]

TREND_FACTOR_BOUNDS: Tuple[float, float] = (0.7, 1.3)
RECENT_TREND_MONTHS = 3
HISTORICAL_TREND_MONTHS = 9

# adjusted = base * (BASE + TREND * trend + SEASONAL * seasonal)
RETENTION_BLEND_BASE = 0.7
RETENTION_BLEND_TREND = 0.2
RETENTION_BLEND_SEASONAL = 0.1
ADJUSTED_TENURE_BOUNDS: Tuple[float, float] = (1.0, 15.0)

# (upper bound on qualifying entities, confidence); the last entry is the ceiling
RETENTION_CONFIDENCE_STEPS: List[Tuple[float, float]] = [
    (10, 0.3),
    (25, 0.5),
    (50, 0.7),
    (100, 0.85),
    (float("inf"), 0.95),
]

DEFAULT_RETENTION_METRICS: Dict[str, float] = {
    "mean_tenure_months": 5.4,
    "median_tenure_months": 4.8,
    "trend_factor": 1.0,
    "seasonal_factor": 1.0,
    "confidence": 0.3,
}

# --- Cohort permanence ---

COHORT_CONFIDENCE_STEPS: List[Tuple[float, float]] = [
    (10, 0.2),
    (30, 0.4),
    (50, 0.6),
    (100, 0.75),
    (200, 0.85),
    (float("inf"), 0.95),
]

DEFAULT_COHORT_METRICS: Dict[str, float] = {
    "median": 4.83,
    "mean": 6.89,
    "p10": 0.68,
    "p25": 2.09,
    "p75": 9.50,
    "p90": 16.93,
    "confidence": 0.2,
}

# --- Forecast diagnostics and monitoring ---

MAPE_ALERT_THRESHOLD = 25.0
MAPE_HIGH_SEVERITY_THRESHOLD = 40.0
DIVERGENCE_ALERT_THRESHOLD = 0.30
ALERT_TTL_HOURS = 24
DEFAULT_MAPE = 50.0  # Reported when no backtest window is available

FORECAST_CONFIDENCE_BOUNDS: Tuple[float, float] = (0.2, 0.95)
DEGRADED_FORECAST_CONFIDENCE = 0.2
# Confidence above these scores is labelled high / medium; anything else is low
HIGH_CONFIDENCE_THRESHOLD = 0.8
MEDIUM_CONFIDENCE_THRESHOLD = 0.6

# Holt-Winters grid searched when parameter optimisation is enabled
HOLT_WINTERS_GRID: Dict[str, List[float]] = {
    "alpha": [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9],
    "beta": [0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5],
    "gamma": [0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5],
}
SEASONAL_INDEX_BOUNDS: Tuple[float, float] = (0.5, 2.0)
