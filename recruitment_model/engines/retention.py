# recruitment_model/engines/retention.py
"""
Dynamic retention (permanence) estimate adjusted by trend and season.

Pipeline:
    1. Permanence records for every entity with enough observations.
    2. Base mean and median tenure.
    3. Trend factor: mean monthly retention rate over the last 3 completed months
       against the prior 9, clamped to damp outliers.
    4. Seasonal factor from the month-of-year calibration table.
    5. adjusted = base * (0.7 + 0.2 * trend + 0.1 * seasonal), clamped.

``RetentionEstimator`` wraps the pipeline with a TTL cache and an injected
observation loader so a cache hit skips both the load and the computation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

import numpy as np

from recruitment_model.config import constants
from recruitment_model.config.models import RetentionConfig
from recruitment_model.state.observations import ObservationInput, observations_to_frame
from recruitment_model.state.schema import ENTITY_ID, TENURE_MONTHS, TIMESTAMP
from recruitment_model.state.tenure import permanence_frame
from recruitment_model.stats.primitives import clamp, mean, percentile
from recruitment_model.utils.cache import Clock, TTLCache, system_clock
from recruitment_model.utils.date_utils import DateLike, completed_month_keys, to_timestamp

logger = logging.getLogger(__name__)

CACHE_KEY = "dynamic_retention"
METHODOLOGY = "dynamic_empirical_v1"
FALLBACK_METHODOLOGY = "default_fallback"


@dataclass(frozen=True)
class DynamicRetentionMetrics:
    mean_tenure_months: float  # adjusted by trend and season
    median_tenure_months: float
    base_mean_tenure_months: float
    trend_factor: float
    seasonal_factor: float
    confidence: float
    entities_analyzed: int
    computed_at: datetime
    methodology: str

    @property
    def is_fallback(self) -> bool:
        return self.methodology == FALLBACK_METHODOLOGY


@dataclass(frozen=True)
class MonthlyRetentionRate:
    year_month: str
    retention_rate: float  # share in [0, 1]
    prior_active: int
    retained: int


@dataclass(frozen=True)
class RetentionTrendPoint:
    period: str
    retention_rate_pct: float
    estimated_tenure_months: float
    entities_analyzed: int
    confidence: float


def confidence_for(entity_count: int, steps=constants.RETENTION_CONFIDENCE_STEPS) -> float:
    """Step-function confidence: the first band whose upper bound exceeds entity_count."""
    for upper, confidence in steps:
        if entity_count < upper:
            return confidence
    return steps[-1][1]


def seasonal_factor_for(as_of: DateLike) -> float:
    return constants.SEASONAL_RETENTION_FACTORS[to_timestamp(as_of).month - 1]


def _active_by_month(observations: ObservationInput) -> Dict[str, Set[str]]:
    df = observations_to_frame(observations)
    if df.empty:
        return {}
    keys = df[TIMESTAMP].dt.strftime("%Y-%m")
    return {month: set(group) for month, group in df[ENTITY_ID].groupby(keys)}


def monthly_retention_rates(
    observations: ObservationInput, as_of: DateLike, months: int = 12
) -> List[MonthlyRetentionRate]:
    """
    Month-over-month retention for the ``months`` completed months before as_of.

    The rate for month m is the share of entities active in m-1 that are
    active again in m. Months whose previous month had no active entities are
    omitted. Oldest first.
    """
    active = _active_by_month(observations)
    keys = completed_month_keys(as_of, months + 1)
    rates = []
    for prev_key, key in zip(keys, keys[1:]):
        prior = active.get(prev_key, set())
        if not prior:
            continue
        retained = len(prior & active.get(key, set()))
        rates.append(
            MonthlyRetentionRate(
                year_month=key,
                retention_rate=retained / len(prior),
                prior_active=len(prior),
                retained=retained,
            )
        )
    return rates


def trend_factor_from_rates(rates: List[MonthlyRetentionRate], as_of: DateLike) -> float:
    """
    Recent (last 3 completed months) over historical (prior 9) mean retention rate.

    Neutral 1.0 when either window is empty or the historical mean is zero.
    """
    recent_keys = set(completed_month_keys(as_of, constants.RECENT_TREND_MONTHS))
    recent = [r.retention_rate for r in rates if r.year_month in recent_keys]
    historical = [r.retention_rate for r in rates if r.year_month not in recent_keys]
    if not recent or not historical:
        return 1.0
    historical_avg = mean(historical)
    if historical_avg == 0:
        return 1.0
    lo, hi = constants.TREND_FACTOR_BOUNDS
    return clamp(mean(recent) / historical_avg, lo, hi)


def apply_dynamic_factors(base: float, trend_factor: float, seasonal_factor: float) -> float:
    adjusted = base * (
        constants.RETENTION_BLEND_BASE
        + constants.RETENTION_BLEND_TREND * trend_factor
        + constants.RETENTION_BLEND_SEASONAL * seasonal_factor
    )
    lo, hi = constants.ADJUSTED_TENURE_BOUNDS
    return clamp(adjusted, lo, hi)


def default_retention_metrics(computed_at: datetime, entities_analyzed: int = 0) -> DynamicRetentionMetrics:
    d = constants.DEFAULT_RETENTION_METRICS
    return DynamicRetentionMetrics(
        mean_tenure_months=d["mean_tenure_months"],
        median_tenure_months=d["median_tenure_months"],
        base_mean_tenure_months=d["mean_tenure_months"],
        trend_factor=d["trend_factor"],
        seasonal_factor=d["seasonal_factor"],
        confidence=d["confidence"],
        entities_analyzed=entities_analyzed,
        computed_at=computed_at,
        methodology=FALLBACK_METHODOLOGY,
    )


def compute_dynamic_retention(
    observations: ObservationInput,
    as_of: datetime,
    config: Optional[RetentionConfig] = None,
) -> DynamicRetentionMetrics:
    """Run the retention pipeline once, without caching."""
    config = config or RetentionConfig()
    records = permanence_frame(
        observations,
        as_of,
        min_observations=config.min_observations_per_entity,
        inactivity_threshold_days=config.inactivity_threshold_days,
    )
    n = len(records)
    if n < config.min_entities_for_analysis:
        logger.warning(
            f"Only {n} qualifying entities (minimum {config.min_entities_for_analysis}); "
            "using default retention metrics"
        )
        return default_retention_metrics(as_of, entities_analyzed=n)

    tenures = np.sort(records[TENURE_MONTHS].to_numpy(dtype=float))
    base_mean = mean(tenures)
    base_median = percentile(tenures, 0.5)

    rates = monthly_retention_rates(
        observations, as_of, constants.RECENT_TREND_MONTHS + constants.HISTORICAL_TREND_MONTHS
    )
    trend = trend_factor_from_rates(rates, as_of)
    seasonal = seasonal_factor_for(as_of)
    adjusted = apply_dynamic_factors(base_mean, trend, seasonal)

    metrics = DynamicRetentionMetrics(
        mean_tenure_months=adjusted,
        median_tenure_months=base_median,
        base_mean_tenure_months=base_mean,
        trend_factor=trend,
        seasonal_factor=seasonal,
        confidence=confidence_for(n),
        entities_analyzed=n,
        computed_at=as_of,
        methodology=METHODOLOGY,
    )
    logger.info(
        f"Dynamic retention: base={base_mean:.2f}m, adjusted={adjusted:.2f}m, "
        f"trend={trend:.3f}, seasonal={seasonal:.2f}, entities={n}"
    )
    return metrics


def retention_trend(
    observations: ObservationInput, as_of: DateLike, months: int = 12
) -> List[RetentionTrendPoint]:
    """
    Last ``months`` monthly retention points for charting, most recent first.

    The tenure estimate scales the default mean tenure by the retention rate.
    """
    points = []
    for r in reversed(monthly_retention_rates(observations, as_of, months)):
        points.append(
            RetentionTrendPoint(
                period=r.year_month,
                retention_rate_pct=r.retention_rate * 100.0,
                estimated_tenure_months=r.retention_rate
                * constants.DEFAULT_RETENTION_METRICS["mean_tenure_months"],
                entities_analyzed=r.prior_active,
                confidence=0.8 if r.prior_active > 20 else 0.5,
            )
        )
    return points


class RetentionEstimator:
    """
    Memoized retention estimate over observations supplied by ``loader``.

    Fallback results (too few entities) are returned but not cached, so new
    data is picked up on the next call.
    """

    def __init__(
        self,
        loader: Callable[[], ObservationInput],
        config: Optional[RetentionConfig] = None,
        cache: Optional[TTLCache] = None,
        clock: Optional[Clock] = None,
    ):
        self.loader = loader
        self.config = config or RetentionConfig()
        self.clock = clock or (cache.clock if cache is not None else system_clock)
        self.cache = cache or TTLCache(timedelta(hours=self.config.cache_ttl_hours), self.clock)

    def estimate(self) -> DynamicRetentionMetrics:
        cached = self.cache.get(CACHE_KEY)
        if cached is not None:
            logger.debug("Returning cached retention metrics")
            return cached

        logger.info("Calculating dynamic retention")
        metrics = compute_dynamic_retention(self.loader(), self.clock(), self.config)
        if not metrics.is_fallback:
            self.cache.set(CACHE_KEY, metrics)
        return metrics

    def force_recalculation(self) -> None:
        self.cache.invalidate(CACHE_KEY)
        logger.info("Retention cache cleared; next estimate will recompute")


__all__ = [
    "DynamicRetentionMetrics",
    "MonthlyRetentionRate",
    "RetentionTrendPoint",
    "confidence_for",
    "seasonal_factor_for",
    "monthly_retention_rates",
    "trend_factor_from_rates",
    "apply_dynamic_factors",
    "default_retention_metrics",
    "compute_dynamic_retention",
    "retention_trend",
    "RetentionEstimator",
]
