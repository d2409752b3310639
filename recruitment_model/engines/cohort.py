# recruitment_model/engines/cohort.py
"""Percentile-based permanence distributions, overall and per first-activity cohort."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd

from recruitment_model.config import constants
from recruitment_model.config.models import CohortConfig, RetentionConfig
from recruitment_model.engines.retention import confidence_for
from recruitment_model.state.observations import (
    ObservationInput,
    filter_window,
    observations_to_frame,
)
from recruitment_model.state.schema import COHORT_ID, STATUS, TENURE_MONTHS
from recruitment_model.state.tenure import permanence_frame
from recruitment_model.stats.primitives import mean, percentile
from recruitment_model.utils.cache import Clock, TTLCache, system_clock
from recruitment_model.utils.status_enums import EntityStatus

logger = logging.getLogger(__name__)

CACHE_KEY = "cohort_analysis"
METHODOLOGY = "cohort_percentile_analysis_v1"
FALLBACK_METHODOLOGY = "default_values"


@dataclass(frozen=True)
class CohortPermanenceMetrics:
    median: float
    mean: float
    p10: float
    p25: float
    p75: float
    p90: float
    sample_size: int
    confidence: float
    computed_at: datetime
    methodology: str = METHODOLOGY

    @property
    def interquartile_range(self) -> Tuple[float, float]:
        return (self.p25, self.p75)


@dataclass(frozen=True)
class CohortSummary:
    cohort_id: str  # 'YYYY-MM' of first activity
    entity_count: int
    median_tenure: float
    mean_tenure: float
    active_share: float


@dataclass(frozen=True)
class CohortAnalysis:
    metrics: CohortPermanenceMetrics
    cohorts: List[CohortSummary] = field(default_factory=list)


def default_cohort_metrics(computed_at: datetime) -> CohortPermanenceMetrics:
    d = constants.DEFAULT_COHORT_METRICS
    return CohortPermanenceMetrics(
        median=d["median"],
        mean=d["mean"],
        p10=d["p10"],
        p25=d["p25"],
        p75=d["p75"],
        p90=d["p90"],
        sample_size=0,
        confidence=d["confidence"],
        computed_at=computed_at,
        methodology=FALLBACK_METHODOLOGY,
    )


def _summarise(tenures: np.ndarray, computed_at: datetime) -> CohortPermanenceMetrics:
    ordered = np.sort(tenures)
    return CohortPermanenceMetrics(
        median=percentile(ordered, 0.5),
        mean=mean(ordered),
        p10=percentile(ordered, 0.10),
        p25=percentile(ordered, 0.25),
        p75=percentile(ordered, 0.75),
        p90=percentile(ordered, 0.90),
        sample_size=int(ordered.size),
        confidence=confidence_for(int(ordered.size), constants.COHORT_CONFIDENCE_STEPS),
        computed_at=computed_at,
    )


def analyze_cohorts(
    observations: ObservationInput,
    as_of: datetime,
    config: Optional[CohortConfig] = None,
    inactivity_threshold_days: int = RetentionConfig().inactivity_threshold_days,
) -> CohortAnalysis:
    """
    Cross-cohort permanence percentiles plus a per-cohort breakdown.

    Entities below the minimum observation count are excluded from both.
    With no qualifying entity the calibrated defaults are returned with an
    empty breakdown.
    """
    config = config or CohortConfig()
    df = observations_to_frame(observations)
    if config.analysis_start_date is not None:
        df = filter_window(df, pd.Timestamp(config.analysis_start_date), None)

    records = permanence_frame(
        df,
        as_of,
        min_observations=config.min_observations_per_entity,
        inactivity_threshold_days=inactivity_threshold_days,
    )
    if records.empty:
        logger.warning("No qualifying entities for cohort analysis; using default cohort metrics")
        return CohortAnalysis(metrics=default_cohort_metrics(as_of), cohorts=[])

    metrics = _summarise(records[TENURE_MONTHS].to_numpy(dtype=float), as_of)

    cohorts = []
    for cohort_id, group in records.groupby(COHORT_ID):
        tenures = np.sort(group[TENURE_MONTHS].to_numpy(dtype=float))
        active = sum(1 for s in group[STATUS] if s == EntityStatus.ACTIVE)
        cohorts.append(
            CohortSummary(
                cohort_id=str(cohort_id),
                entity_count=len(group),
                median_tenure=percentile(tenures, 0.5),
                mean_tenure=mean(tenures),
                active_share=active / len(group),
            )
        )
    cohorts.sort(key=lambda c: c.cohort_id, reverse=True)

    logger.info(
        f"Cohort analysis: {metrics.sample_size} entities across {len(cohorts)} cohorts, "
        f"median={metrics.median:.2f}m, p10-p90=[{metrics.p10:.2f}, {metrics.p90:.2f}]"
    )
    return CohortAnalysis(metrics=metrics, cohorts=cohorts)


class CohortPercentileAnalyzer:
    """Memoized cohort analysis over observations supplied by ``loader``."""

    def __init__(
        self,
        loader: Callable[[], ObservationInput],
        config: Optional[CohortConfig] = None,
        cache: Optional[TTLCache] = None,
        clock: Optional[Clock] = None,
    ):
        self.loader = loader
        self.config = config or CohortConfig()
        self.clock = clock or (cache.clock if cache is not None else system_clock)
        self.cache = cache or TTLCache(timedelta(minutes=self.config.cache_ttl_minutes), self.clock)

    def analyze(self) -> CohortAnalysis:
        return self.cache.get_or_compute(
            CACHE_KEY, lambda: analyze_cohorts(self.loader(), self.clock(), self.config)
        )

    def metrics(self) -> CohortPermanenceMetrics:
        return self.analyze().metrics

    def cohorts(self) -> List[CohortSummary]:
        return self.analyze().cohorts

    def force_recalculation(self) -> None:
        self.cache.invalidate(CACHE_KEY)
        logger.info("Cohort cache cleared")


__all__ = [
    "CohortPermanenceMetrics",
    "CohortSummary",
    "CohortAnalysis",
    "default_cohort_metrics",
    "analyze_cohorts",
    "CohortPercentileAnalyzer",
]
