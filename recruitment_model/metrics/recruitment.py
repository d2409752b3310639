# recruitment_model/metrics/recruitment.py
"""
Recruitment KPIs built on the statistical primitives.

Acquisition cost, lifetime value, ROI with a risk haircut, demand projection,
channel quality scoring, multi-variable correlation, metric consistency
checks and cyclical seasonal analysis.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

import numpy as np

from recruitment_model.errors import InvalidInput
from recruitment_model.stats.primitives import (
    clamp,
    exponential_moving_average,
    linear_regression,
    pearson_correlation_xy,
)

logger = logging.getLogger(__name__)

# Weights of the channel quality factors; they sum to 1.0
CHANNEL_QUALITY_WEIGHTS: Dict[str, float] = {
    "conversion": 0.25,
    "retention": 0.25,
    "speed": 0.15,
    "performance": 0.15,
    "cost_efficiency": 0.15,
    "volume": 0.05,
}
CHANNEL_VOLUME_NORMALISER = 100.0

# Cross-validation thresholds
MAX_CPA_TO_LTV_RATIO = 0.5
MAX_ROI_DEVIATION_POINTS = 20.0
HIGH_VOLUME_THRESHOLD = 100
LOW_CPA_THRESHOLD = 1000.0
INCONSISTENCY_PENALTY = 0.25

TREND_BAND = 0.05  # +/-5% between half-series means counts as stable


@dataclass(frozen=True)
class ROIResult:
    roi: float  # percent
    adjusted_roi: float
    confidence: float


@dataclass(frozen=True)
class DemandPeriod:
    demand: float
    seasonality: float = 0.0  # relative uplift, e.g. 0.1 for +10%


@dataclass(frozen=True)
class DemandProjection:
    projection: float
    confidence: float


@dataclass(frozen=True)
class ChannelPerformance:
    conversion_rate: float
    retention_rate: float
    avg_time_to_hire: float
    performance: float
    cpa: float
    volume: float


@dataclass(frozen=True)
class ChannelBenchmarks:
    target_conversion: float
    target_retention: float
    max_time_to_hire: float
    target_performance: float
    target_cpa: float


@dataclass(frozen=True)
class ChannelQuality:
    quality_score: float
    factors: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CorrelationSet:
    primary_correlation: float
    secondary_correlations: Dict[str, float] = field(default_factory=dict)
    reliability_index: float = 0.0


@dataclass(frozen=True)
class MetricValidation:
    is_valid: bool
    inconsistencies: List[str]
    confidence_score: float


@dataclass(frozen=True)
class SeasonalPrediction:
    period: int
    predicted: float
    confidence: float


@dataclass(frozen=True)
class SeasonalAnalysis:
    seasonal_factors: List[float]
    trend_direction: str  # up | down | stable
    cyclical_strength: float
    predictions: List[SeasonalPrediction] = field(default_factory=list)


def calculate_real_cpa(total_investment: float, acquired: int) -> float:
    """Cost per acquisition; 0 when nothing was acquired."""
    if acquired == 0:
        return 0.0
    return total_investment / acquired


def calculate_ltv(avg_monthly_revenue: float, avg_retention_months: float, acquisition_cost: float) -> float:
    """Net lifetime value: revenue over the expected tenure minus acquisition cost."""
    return avg_monthly_revenue * avg_retention_months - acquisition_cost


def roi_with_sensitivity(
    investment: float, revenue: float, timeframe_days: float, risk_factor: float = 0.1
) -> ROIResult:
    """
    ROI in percent, the same ROI reduced by risk_factor, and a confidence that
    grows with the observation timeframe (a full year at zero risk is 1.0).
    """
    if investment == 0:
        raise InvalidInput("investment must be non-zero to compute ROI")
    roi = (revenue - investment) / investment * 100.0
    return ROIResult(
        roi=roi,
        adjusted_roi=roi * (1 - risk_factor),
        confidence=clamp(timeframe_days / 365.0 * (1 - risk_factor), 0.0, 1.0),
    )


def project_demand(history: Sequence[DemandPeriod]) -> DemandProjection:
    """
    Next-period demand from a linear trend scaled by mean seasonality.

    Confidence is the trend fit's R-squared. Fewer than three periods give a
    zero projection with zero confidence.
    """
    if len(history) < 3:
        return DemandProjection(projection=0.0, confidence=0.0)
    fit = linear_regression([p.demand for p in history])
    base = fit.predict(len(history))
    avg_seasonality = float(np.mean([p.seasonality for p in history]))
    return DemandProjection(
        projection=max(0.0, base * (1 + avg_seasonality)),
        confidence=clamp(fit.r_squared, 0.0, 1.0),
    )


def channel_quality(channel: ChannelPerformance, benchmarks: ChannelBenchmarks) -> ChannelQuality:
    factors = {
        "conversion": min(1.0, channel.conversion_rate / benchmarks.target_conversion),
        "retention": min(1.0, channel.retention_rate / benchmarks.target_retention),
        "speed": max(0.0, 1.0 - channel.avg_time_to_hire / benchmarks.max_time_to_hire),
        "performance": min(1.0, channel.performance / benchmarks.target_performance),
        "cost_efficiency": min(1.0, benchmarks.target_cpa / max(channel.cpa, 0.01)),
        "volume": min(1.0, channel.volume / CHANNEL_VOLUME_NORMALISER),
    }
    score = sum(factors[name] * weight for name, weight in CHANNEL_QUALITY_WEIGHTS.items())
    return ChannelQuality(quality_score=clamp(score, 0.0, 1.0), factors=factors)


def multiple_correlation(variables: Mapping[str, Sequence[float]]) -> CorrelationSet:
    """
    Pairwise Pearson correlations between named series.

    The first pair (in mapping order) is the primary correlation; the
    reliability index is the mean absolute correlation over all pairs.
    Fewer than three observations give an empty result.
    """
    names = list(variables)
    lengths = {len(variables[n]) for n in names}
    if len(lengths) > 1:
        raise InvalidInput(f"All series must have the same length, got {sorted(lengths)}")
    if len(names) < 2 or lengths.pop() < 3:
        return CorrelationSet(primary_correlation=0.0)

    correlations = {}
    for i, a in enumerate(names):
        for b in names[i + 1:]:
            correlations[f"{a}_{b}"] = pearson_correlation_xy(variables[a], variables[b])
    reliability = float(np.mean([abs(c) for c in correlations.values()]))
    return CorrelationSet(
        primary_correlation=next(iter(correlations.values())),
        secondary_correlations=correlations,
        reliability_index=reliability,
    )


def cross_validate_metrics(cpa: float, retention: float, ltv: float, roi: float, volume: float) -> MetricValidation:
    """Flag combinations of KPIs that cannot all be right at once."""
    inconsistencies = []
    if cpa > ltv * MAX_CPA_TO_LTV_RATIO:
        inconsistencies.append("CPA too high relative to LTV")
    if cpa > 0:
        expected_roi = (ltv / cpa - 1) * 100.0
        if abs(roi - expected_roi) > MAX_ROI_DEVIATION_POINTS:
            inconsistencies.append("ROI inconsistent with the LTV/CPA ratio")
    if volume > HIGH_VOLUME_THRESHOLD and cpa < LOW_CPA_THRESHOLD:
        inconsistencies.append("High volume with very low CPA, possible data error")
    if not 0.0 <= retention <= 1.0:
        inconsistencies.append("Retention rate outside [0, 1]")

    if inconsistencies:
        logger.warning(f"Metric cross-validation found: {inconsistencies}")
    return MetricValidation(
        is_valid=not inconsistencies,
        inconsistencies=inconsistencies,
        confidence_score=max(0.0, 1.0 - len(inconsistencies) * INCONSISTENCY_PENALTY),
    )


def seasonal_analysis(values: Sequence[float], cycles: int = 12) -> SeasonalAnalysis:
    """
    Seasonal factors per cycle position, half-over-half trend direction,
    cyclical strength and one cycle of predictions.

    Needs two full cycles; shorter input returns neutral factors and no
    predictions.
    """
    if cycles < 1:
        raise InvalidInput(f"cycles must be positive, got {cycles}")
    data = np.asarray(values, dtype=float)
    if data.size < cycles * 2:
        return SeasonalAnalysis(
            seasonal_factors=[1.0] * cycles, trend_direction="stable", cyclical_strength=0.0
        )

    overall = float(data.mean())
    factors = [
        float(data[i::cycles].mean()) / overall if overall != 0 else 1.0 for i in range(cycles)
    ]

    half = data.size // 2
    first_avg = float(data[:half].mean())
    second_avg = float(data[half:].mean())
    if second_avg > first_avg * (1 + TREND_BAND):
        direction = "up"
    elif second_avg < first_avg * (1 - TREND_BAND):
        direction = "down"
    else:
        direction = "stable"

    seasonal_variance = float(np.mean([(f - 1) ** 2 for f in factors]))
    strength = min(1.0, seasonal_variance * 2)

    level = exponential_moving_average(data).prediction
    predictions = [
        SeasonalPrediction(
            period=int(data.size + i),
            predicted=level * factors[(data.size + i) % cycles],
            confidence=max(0.3, strength),
        )
        for i in range(cycles)
    ]
    return SeasonalAnalysis(
        seasonal_factors=factors,
        trend_direction=direction,
        cyclical_strength=strength,
        predictions=predictions,
    )


__all__ = [
    "ROIResult",
    "DemandPeriod",
    "DemandProjection",
    "ChannelPerformance",
    "ChannelBenchmarks",
    "ChannelQuality",
    "CorrelationSet",
    "MetricValidation",
    "SeasonalPrediction",
    "SeasonalAnalysis",
    "calculate_real_cpa",
    "calculate_ltv",
    "roi_with_sensitivity",
    "project_demand",
    "channel_quality",
    "multiple_correlation",
    "cross_validate_metrics",
    "seasonal_analysis",
]
