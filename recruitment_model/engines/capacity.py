# recruitment_model/engines/capacity.py
"""
Physical capacity guardrails derived from historical daily throughput.

The engine looks at a trailing window of observations, aggregates them by day
and month, and turns the resulting maxima, means and 95th percentile into
ceilings and floors. ``validate_projection`` then classifies how far a proposed
end-of-period count exceeds what history says is achievable.

An empty window is not an error: the engine returns the calibrated default
snapshot tagged ``data_quality=POOR`` and callers are expected to branch on
that tag.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from recruitment_model.config import constants
from recruitment_model.config.models import CapacityGuardrailConfig
from recruitment_model.errors import InvalidInput
from recruitment_model.state.observations import (
    ObservationInput,
    daily_frame,
    filter_window,
    monthly_frame,
    observations_to_frame,
)
from recruitment_model.state.schema import COUNT, TOTAL_VALUE
from recruitment_model.stats.primitives import percentile
from recruitment_model.utils.cache import system_clock
from recruitment_model.utils.date_utils import to_timestamp, window_start
from recruitment_model.utils.status_enums import CapacityDataQuality, ProjectionRealism

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityMetrics:
    max_daily_count: float
    avg_daily_count: float
    max_daily_value: float
    avg_daily_value: float
    max_monthly_count: float
    avg_monthly_count: float
    max_monthly_value: float
    avg_monthly_value: float
    months_analyzed: int
    days_with_data: int
    data_quality: CapacityDataQuality


@dataclass(frozen=True)
class CapacityGuardrails:
    """
    Ceilings and stretch factors for projection checks.

    Only ``max_daily_count`` is required; a missing realistic daily ceiling
    defaults to the raw maximum.
    """

    max_daily_count: float
    max_daily_value: float = 0.0
    realistic_max_daily_count: Optional[float] = None
    avg_daily_count: float = 0.0
    optimistic_stretch_factor: float = constants.DEFAULT_OPTIMISTIC_STRETCH_FACTOR
    pessimistic_floor_factor: float = constants.PESSIMISTIC_FLOOR_FACTOR
    realistic_max_daily_value: float = 0.0
    max_monthly_count: float = 0.0
    max_monthly_value: float = 0.0
    realistic_max_monthly_count: float = 0.0
    realistic_max_monthly_value: float = 0.0

    def __post_init__(self):
        if self.realistic_max_daily_count is None:
            object.__setattr__(self, "realistic_max_daily_count", self.max_daily_count)
        if self.realistic_max_daily_count > self.max_daily_count:
            raise InvalidInput(
                f"realistic_max_daily_count ({self.realistic_max_daily_count}) "
                f"exceeds max_daily_count ({self.max_daily_count})"
            )
        if not self.pessimistic_floor_factor < 1.0 <= self.optimistic_stretch_factor:
            raise InvalidInput(
                "Stretch factors must satisfy pessimistic_floor_factor < 1 <= optimistic_stretch_factor, "
                f"got {self.pessimistic_floor_factor} and {self.optimistic_stretch_factor}"
            )

    @property
    def max_possible_daily_count(self) -> float:
        return self.max_daily_count

    @property
    def stretched_max_daily_count(self) -> float:
        return self.max_daily_count * self.optimistic_stretch_factor


@dataclass(frozen=True)
class CapacitySnapshot:
    metrics: CapacityMetrics
    guardrails: CapacityGuardrails
    computed_at: datetime

    @property
    def data_quality(self) -> CapacityDataQuality:
        return self.metrics.data_quality


@dataclass(frozen=True)
class IrrealismWarning:
    kind: ProjectionRealism
    message: str
    required_daily_pace: float
    historical_max_daily_pace: float
    excess_factor: float


def classify_data_quality(months_analyzed: int, days_with_data: int) -> CapacityDataQuality:
    for tier, min_months, min_days in constants.CAPACITY_QUALITY_THRESHOLDS:
        if months_analyzed >= min_months and days_with_data >= min_days:
            return CapacityDataQuality(tier)
    return CapacityDataQuality.POOR


def stretch_factor_for(quality: CapacityDataQuality) -> float:
    return constants.OPTIMISTIC_STRETCH_FACTORS.get(
        quality.value, constants.DEFAULT_OPTIMISTIC_STRETCH_FACTOR
    )


def default_snapshot(computed_at: datetime) -> CapacitySnapshot:
    """Calibrated fallback returned when the history window is empty."""
    m = constants.DEFAULT_CAPACITY_METRICS
    g = constants.DEFAULT_CAPACITY_GUARDRAILS
    metrics = CapacityMetrics(
        max_daily_count=m["max_daily_count"],
        avg_daily_count=m["avg_daily_count"],
        max_daily_value=m["max_daily_value"],
        avg_daily_value=m["avg_daily_value"],
        max_monthly_count=m["max_monthly_count"],
        avg_monthly_count=m["avg_monthly_count"],
        max_monthly_value=m["max_monthly_value"],
        avg_monthly_value=m["avg_monthly_value"],
        months_analyzed=0,
        days_with_data=0,
        data_quality=CapacityDataQuality.POOR,
    )
    guardrails = CapacityGuardrails(
        max_daily_count=g["max_daily_count"],
        max_daily_value=g["max_daily_value"],
        realistic_max_daily_count=g["realistic_max_daily_count"],
        avg_daily_count=g["avg_daily_count"],
        optimistic_stretch_factor=stretch_factor_for(CapacityDataQuality.POOR),
        pessimistic_floor_factor=constants.PESSIMISTIC_FLOOR_FACTOR,
        realistic_max_daily_value=g["realistic_max_daily_value"],
        max_monthly_count=g["max_monthly_count"],
        max_monthly_value=g["max_monthly_value"],
        realistic_max_monthly_count=g["realistic_max_monthly_count"],
        realistic_max_monthly_value=g["realistic_max_monthly_value"],
    )
    return CapacitySnapshot(metrics=metrics, guardrails=guardrails, computed_at=computed_at)


class CapacityGuardrailEngine:
    """Builds CapacityGuardrails from the trailing history window."""

    def __init__(
        self,
        config: Optional[CapacityGuardrailConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or CapacityGuardrailConfig()
        self.clock = clock or system_clock

    def compute(
        self, observations: ObservationInput, as_of: Optional[datetime] = None
    ) -> CapacitySnapshot:
        now = self.clock()
        as_of_ts = to_timestamp(as_of if as_of is not None else now)
        start = window_start(as_of_ts, self.config.history_window_months)

        df = filter_window(observations_to_frame(observations), start, as_of_ts)
        if df.empty:
            logger.warning(
                f"No observations between {start.date()} and {as_of_ts.date()}; "
                "returning default capacity guardrails (data_quality=poor)"
            )
            return default_snapshot(now)

        daily = daily_frame(df)
        monthly = monthly_frame(df)
        daily_counts = daily[COUNT].to_numpy(dtype=float)
        daily_values = daily[TOTAL_VALUE].to_numpy(dtype=float)
        monthly_counts = monthly[COUNT].to_numpy(dtype=float)
        monthly_values = monthly[TOTAL_VALUE].to_numpy(dtype=float)

        months_analyzed = len(monthly)
        days_with_data = len(daily)
        quality = classify_data_quality(months_analyzed, days_with_data)

        metrics = CapacityMetrics(
            max_daily_count=float(daily_counts.max()),
            avg_daily_count=float(daily_counts.mean()),
            max_daily_value=float(daily_values.max()),
            avg_daily_value=float(daily_values.mean()),
            max_monthly_count=float(monthly_counts.max()),
            avg_monthly_count=float(monthly_counts.mean()),
            max_monthly_value=float(monthly_values.max()),
            avg_monthly_value=float(monthly_values.mean()),
            months_analyzed=months_analyzed,
            days_with_data=days_with_data,
            data_quality=quality,
        )

        q = self.config.p95_window
        realistic_daily_count = percentile(np.sort(daily_counts), q)
        realistic_daily_value = percentile(np.sort(daily_values), q)
        effective_days = self.config.effective_days_per_month

        guardrails = CapacityGuardrails(
            max_daily_count=metrics.max_daily_count,
            max_daily_value=metrics.max_daily_value,
            realistic_max_daily_count=realistic_daily_count,
            avg_daily_count=metrics.avg_daily_count,
            optimistic_stretch_factor=stretch_factor_for(quality),
            pessimistic_floor_factor=constants.PESSIMISTIC_FLOOR_FACTOR,
            realistic_max_daily_value=realistic_daily_value,
            max_monthly_count=metrics.max_monthly_count,
            max_monthly_value=metrics.max_monthly_value,
            realistic_max_monthly_count=float(round(realistic_daily_count * effective_days)),
            realistic_max_monthly_value=realistic_daily_value * effective_days,
        )

        logger.info(
            f"Capacity guardrails: max_daily={metrics.max_daily_count:.0f}, "
            f"avg_daily={metrics.avg_daily_count:.1f}, p{q * 100:.0f}={realistic_daily_count:.1f}, "
            f"months={months_analyzed}, days={days_with_data}, quality={quality.value}"
        )
        return CapacitySnapshot(metrics=metrics, guardrails=guardrails, computed_at=now)


def validate_projection(
    proposed_end_count: float,
    current_count: float,
    days_remaining: float,
    guardrails: CapacityGuardrails,
) -> Optional[IrrealismWarning]:
    """
    Classify whether reaching proposed_end_count in days_remaining is achievable.

    Returns None when the required daily pace is within the historical maximum
    (or when no days remain). Comparisons are strict, so a pace exactly on a
    threshold gets the lower severity.
    """
    if days_remaining <= 0:
        return None

    required = (proposed_end_count - current_count) / days_remaining
    max_historical = guardrails.max_daily_count
    stretched_max = guardrails.stretched_max_daily_count
    excess_factor = required / max_historical if max_historical > 0 else 0.0

    if required > stretched_max * constants.IMPOSSIBLE_PACE_MULTIPLIER:
        kind = ProjectionRealism.IMPOSSIBLE
        message = (
            f"Requires {required:.0f} per day but the historical maximum is "
            f"{max_historical:.0f}. Physically impossible."
        )
    elif required > stretched_max:
        kind = ProjectionRealism.HIGHLY_UNLIKELY
        message = (
            f"Requires {required:.0f} per day ({excess_factor * 100:.0f}% of the "
            f"historical maximum). Highly unlikely."
        )
    elif required > max_historical:
        kind = ProjectionRealism.OPTIMISTIC_BUT_POSSIBLE
        message = (
            f"Requires exceeding the historical maximum of {max_historical:.0f} per day. "
            f"Possible but optimistic."
        )
    else:
        return None

    logger.debug(f"Projection classified as {kind.value}: pace={required:.2f}, max={max_historical}")
    return IrrealismWarning(
        kind=kind,
        message=message,
        required_daily_pace=required,
        historical_max_daily_pace=max_historical,
        excess_factor=excess_factor,
    )


def physical_ceiling(
    current_count: float, days_remaining: float, guardrails: CapacityGuardrails
) -> int:
    """Highest end count reachable at the stretched historical daily maximum; never below current."""
    days = max(0.0, days_remaining)
    reachable = round(current_count + days * guardrails.stretched_max_daily_count)
    return int(max(math.ceil(current_count), reachable))


def physical_floor(
    current_count: float,
    avg_daily_count: float,
    days_remaining: float,
    guardrails: CapacityGuardrails,
) -> int:
    """Lowest expected end count at a pessimistic share of the average pace; never below current."""
    days = max(0.0, days_remaining)
    expected = current_count + days * avg_daily_count * guardrails.pessimistic_floor_factor
    # never round below the count already reached
    return int(max(math.ceil(current_count), round(expected)))


__all__ = [
    "CapacityMetrics",
    "CapacityGuardrails",
    "CapacitySnapshot",
    "IrrealismWarning",
    "classify_data_quality",
    "stretch_factor_for",
    "default_snapshot",
    "CapacityGuardrailEngine",
    "validate_projection",
    "physical_ceiling",
    "physical_floor",
]
