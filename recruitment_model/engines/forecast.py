# recruitment_model/engines/forecast.py
"""
Blended monthly forecast with backtest-based confidence.

A single computation walks through the stages in ``ForecastStage``:

- collect_history: monthly totals (gaps zero-filled) plus the current
  partial period, if any.
- compute_components: Holt-Winters seasonal estimate, linear-trend
  extrapolation and intra-period pacing. Each may be unavailable.
- blend: configured weights renormalised over the available components,
  never below what has already been observed this period.
- diagnose: rolling one-step backtest (MAPE), residual anomalies, data
  quality and component divergence feed the confidence score.

Empty history yields a ``DegradedForecastResult`` instead of an error.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from recruitment_model.config import constants
from recruitment_model.config.models import ForecastConfig
from recruitment_model.errors import InvalidInput
from recruitment_model.logging_config import FORECAST_LOGGER, PERFORMANCE_LOGGER
from recruitment_model.state.observations import (
    MonthlyAggregate,
    ObservationInput,
    aggregate_monthly,
    check_finite,
    missing_months,
    monthly_series,
    observations_to_frame,
)
from recruitment_model.state.schema import COUNT, TIMESTAMP, TOTAL_VALUE, VALUE
from recruitment_model.stats.primitives import clamp, linear_regression, z_scores
from recruitment_model.utils.cache import system_clock
from recruitment_model.utils.date_utils import fraction_of_month_elapsed, month_key, to_timestamp
from recruitment_model.utils.status_enums import ConfidenceLevel, ForecastDataQuality, ForecastStage

logger = logging.getLogger(__name__)
event_logger = logging.getLogger(FORECAST_LOGGER)
perf_logger = logging.getLogger(PERFORMANCE_LOGGER)

COMPONENT_NAMES = ("trend", "seasonal_adjusted", "intra_period_pace")


@dataclass(frozen=True)
class CurrentPeriod:
    """The in-progress period: what has been observed and how much of it has elapsed."""

    year_month: str
    observed_so_far: float
    fraction_elapsed: float

    def __post_init__(self):
        if not 0.0 <= self.fraction_elapsed <= 1.0:
            raise InvalidInput(f"fraction_elapsed must be within [0, 1], got {self.fraction_elapsed}")
        if not np.isfinite(self.observed_so_far):
            raise InvalidInput("observed_so_far must be finite")


@dataclass(frozen=True)
class ComponentEstimates:
    trend: Optional[float] = None
    seasonal_adjusted: Optional[float] = None
    intra_period_pace: Optional[float] = None

    def available(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in COMPONENT_NAMES if getattr(self, name) is not None}


@dataclass(frozen=True)
class BacktestPoint:
    period: str
    actual: float
    predicted: float
    ape: Optional[float]  # absolute percentage error; None when actual is zero


@dataclass(frozen=True)
class ForecastDiagnostics:
    error_rate: float
    mape: float
    anomaly_flag: bool
    data_quality: ForecastDataQuality
    divergence: float
    backtest: List[BacktestPoint] = field(default_factory=list)
    anomaly_periods: List[str] = field(default_factory=list)
    floor_applied: bool = False
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class HoltWintersFit:
    forecast: List[float]
    level: float
    trend: float
    seasonal: List[float]
    alpha: float
    beta: float
    gamma: float
    method: str  # holt_winters | holt | last_value


@dataclass(frozen=True)
class ForecastResult:
    point_estimate: float
    components: ComponentEstimates
    confidence: float
    diagnostics: ForecastDiagnostics
    computed_at: datetime
    stages: Tuple[ForecastStage, ...] = ()
    smoothing: Optional[HoltWintersFit] = None

    @property
    def is_degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class DegradedForecastResult(ForecastResult):
    """Best-effort result when there is no usable history."""

    reason: str = ""

    @property
    def is_degraded(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Smoothing
# ---------------------------------------------------------------------------

def _initial_seasonal(data: np.ndarray, season_length: int) -> List[float]:
    lo, hi = constants.SEASONAL_INDEX_BOUNDS
    positive = data[data > 0]
    global_avg = float(positive.mean()) if positive.size else 0.0
    seasonal = []
    for i in range(season_length):
        values = data[i::season_length]
        values = values[values > 0]
        if values.size and global_avg > 0:
            seasonal.append(clamp(float(values.mean()) / global_avg, lo, hi))
        else:
            seasonal.append(1.0)
    return seasonal


def holt_winters(
    data: Sequence[float],
    season_length: int,
    forecast_periods: int,
    alpha: float,
    beta: float,
    gamma: float,
) -> HoltWintersFit:
    """
    Multiplicative Holt-Winters with additive trend.

    Level and trend are initialised from the first two seasons, seasonal
    indices from per-position averages of positive values. Non-positive
    observations carry level, trend and season forward unchanged.

    Raises:
        InvalidInput: If fewer than two full seasons are given.
    """
    x = np.asarray(data, dtype=float)
    n = x.size
    if n < season_length * 2:
        raise InvalidInput(
            f"Holt-Winters needs at least {season_length * 2} periods, got {n}"
        )

    seasonal = _initial_seasonal(x, season_length)
    first_avg = float(x[:season_length].mean())
    second_avg = float(x[season_length:2 * season_length].mean())
    level = first_avg
    trend = (second_avg - first_avg) / season_length

    for i in range(n):
        s_idx = i % season_length
        s = seasonal[s_idx]
        if x[i] > 0 and s > 0:
            prev_level = level
            level = alpha * (x[i] / s) + (1 - alpha) * (prev_level + trend)
            trend = beta * (level - prev_level) + (1 - beta) * trend
            if level > 0:
                seasonal[s_idx] = gamma * (x[i] / level) + (1 - gamma) * s
        else:
            level = level + trend

    forecast = [
        max(0.0, (level + h * trend) * seasonal[(n + h - 1) % season_length])
        for h in range(1, forecast_periods + 1)
    ]
    return HoltWintersFit(
        forecast=forecast,
        level=level,
        trend=trend,
        seasonal=list(seasonal),
        alpha=alpha,
        beta=beta,
        gamma=gamma,
        method="holt_winters",
    )


def holt_linear(data: Sequence[float], forecast_periods: int, alpha: float, beta: float) -> HoltWintersFit:
    """Holt double exponential smoothing for series too short for a seasonal fit."""
    x = np.asarray(data, dtype=float)
    if x.size < 2:
        raise InvalidInput("Holt smoothing needs at least 2 periods")
    level = float(x[0])
    trend = float(x[1] - x[0])
    for value in x[1:]:
        prev_level = level
        level = alpha * float(value) + (1 - alpha) * (prev_level + trend)
        trend = beta * (level - prev_level) + (1 - beta) * trend
    forecast = [max(0.0, level + h * trend) for h in range(1, forecast_periods + 1)]
    return HoltWintersFit(forecast, level, trend, [], alpha, beta, 0.0, "holt")


def optimize_holt_winters(
    data: Sequence[float],
    season_length: int,
    forecast_periods: int,
    default: Tuple[float, float, float],
    grid: Optional[Dict[str, List[float]]] = None,
) -> HoltWintersFit:
    """
    Grid-search alpha/beta/gamma by mean absolute error on a hold-out tail.

    The hold-out is min(3, 20% of the series). When the training part is too
    short for a seasonal fit, the default parameters are used.
    """
    grid = grid or constants.HOLT_WINTERS_GRID
    x = np.asarray(data, dtype=float)
    test_size = min(3, int(x.size * 0.2))
    if test_size == 0 or x.size - test_size < season_length * 2:
        logger.debug("Hold-out too short for parameter search; using configured smoothing parameters")
        return holt_winters(x, season_length, forecast_periods, *default)
    train, test = x[:-test_size], x[-test_size:]

    best_params = default
    best_error = float("inf")
    for alpha in grid["alpha"]:
        for beta in grid["beta"]:
            for gamma in grid["gamma"]:
                fit = holt_winters(train, season_length, test_size, alpha, beta, gamma)
                mae = float(np.mean(np.abs(test - np.asarray(fit.forecast))))
                if mae < best_error:
                    best_error = mae
                    best_params = (alpha, beta, gamma)
    logger.debug(f"Best smoothing parameters {best_params} with hold-out MAE {best_error:.3f}")
    return holt_winters(x, season_length, forecast_periods, *best_params)


def smooth_next(
    history: Sequence[float], config: ForecastConfig, optimize: Optional[bool] = None
) -> Optional[HoltWintersFit]:
    """One-step smoothed estimate, degrading from Holt-Winters to Holt to last value."""
    n = len(history)
    if n == 0:
        return None
    optimize = config.optimize_parameters if optimize is None else optimize
    if n >= config.season_length * 2:
        params = (config.alpha, config.beta, config.gamma)
        if optimize:
            return optimize_holt_winters(history, config.season_length, 1, params)
        return holt_winters(history, config.season_length, 1, *params)
    if n >= 2:
        return holt_linear(history, 1, config.alpha, config.beta)
    last = float(history[-1])
    return HoltWintersFit([max(0.0, last)], last, 0.0, [], config.alpha, 0.0, 0.0, "last_value")


def linear_trend_next(history: Sequence[float]) -> Optional[float]:
    if len(history) == 0:
        return None
    fit = linear_regression(history)
    return max(0.0, fit.predict(len(history)))


def pacing_estimate(current: Optional[CurrentPeriod]) -> Optional[float]:
    """observed / fraction_elapsed, or None when nothing of the period has elapsed."""
    if current is None or current.fraction_elapsed <= 0:
        return None
    return current.observed_so_far / current.fraction_elapsed


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def blend_components(components: ComponentEstimates, weights: Dict[str, float]) -> Optional[float]:
    """Weighted mean over available components; equal weights if all available ones weigh zero."""
    available = components.available()
    if not available:
        return None
    total = sum(weights.get(name, 0.0) for name in available)
    if total <= 0:
        return float(np.mean(list(available.values())))
    return sum(weights.get(name, 0.0) * value for name, value in available.items()) / total


def component_divergence(components: ComponentEstimates) -> float:
    """(max - min) / |mean| over available components; 0 with fewer than two."""
    values = list(components.available().values())
    if len(values) < 2:
        return 0.0
    centre = float(np.mean(values))
    if centre == 0:
        return 0.0
    return (max(values) - min(values)) / abs(centre)


def assess_data_quality(n_periods: int, gaps: int) -> ForecastDataQuality:
    if n_periods == 0:
        return ForecastDataQuality.LOW
    gap_ratio = gaps / n_periods
    if n_periods >= 24 and gaps == 0:
        return ForecastDataQuality.HIGH
    if n_periods >= 12 and gap_ratio <= 0.1:
        return ForecastDataQuality.MEDIUM
    return ForecastDataQuality.LOW


def residual_anomalies(history: Sequence[float], threshold: float) -> List[int]:
    """Indices whose residual against the linear trend line has |z| above threshold."""
    if len(history) < 3:
        return []
    fit = linear_regression(history)
    values = np.asarray(history, dtype=float)
    residuals = values - np.array([fit.predict(i) for i in range(len(history))])
    # Rounding noise on an exact line is not an anomaly
    if np.allclose(residuals, 0.0, atol=1e-9 * max(1.0, float(np.abs(values).max()))):
        return []
    z = z_scores(residuals)
    return [int(i) for i in np.flatnonzero(np.abs(z) > threshold)]


def score_confidence(mape: float, quality: ForecastDataQuality, anomaly: bool) -> float:
    confidence = 1.0 - mape / 100.0
    if quality == ForecastDataQuality.HIGH:
        confidence += 0.1
    elif quality == ForecastDataQuality.LOW:
        confidence -= 0.15
    if anomaly:
        confidence -= 0.1
    lo, hi = constants.FORECAST_CONFIDENCE_BOUNDS
    return clamp(confidence, lo, hi)


def confidence_level_for(confidence: float) -> ConfidenceLevel:
    if confidence > constants.HIGH_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.HIGH
    if confidence > constants.MEDIUM_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def forecast_recommendations(
    mape: float,
    quality: ForecastDataQuality,
    anomaly: bool,
    divergence: float,
    level: ConfidenceLevel,
) -> List[str]:
    """
    Plain-language follow-ups for a forecast, in a fixed order.

    A forecast that trips none of the checks gets a single all-clear line.
    """
    recommendations = []
    if mape > constants.MAPE_ALERT_THRESHOLD:
        recommendations.append("Consider adding external drivers such as marketing spend or seasonality")
    if quality == ForecastDataQuality.LOW:
        recommendations.append("Collect a longer monthly history without gaps")
    if anomaly:
        recommendations.append("Investigate the causes of the outlying periods")
    if divergence > constants.DIVERGENCE_ALERT_THRESHOLD:
        recommendations.append("Review trend, seasonal and pacing inputs; the components disagree")
    if level == ConfidenceLevel.LOW:
        recommendations.append("Recalibrate the model more frequently")
    if not recommendations:
        recommendations.append("Model is operating within acceptable parameters")
    return recommendations


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

HistoryInput = Union[pd.Series, Sequence[MonthlyAggregate]]


class ForecastEngine:
    """Runs the forecast stages for one history at a time."""

    def __init__(
        self,
        config: Optional[ForecastConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or ForecastConfig()
        self.clock = clock or system_clock
        self.stage: Optional[ForecastStage] = None

    @property
    def weights(self) -> Dict[str, float]:
        return self.config.weights.model_dump()

    def _enter(self, stage: ForecastStage, visited: List[ForecastStage]) -> None:
        self.stage = stage
        visited.append(stage)
        event_logger.debug(f"Forecast stage: {stage.value}")

    def _collect_history(self, history: HistoryInput, value_field: str) -> Tuple[pd.Series, int]:
        if isinstance(history, pd.Series):
            series = history.astype(float)
            gaps = 0
        else:
            aggregates = list(history)
            series = monthly_series(aggregates, value_field)
            gaps = missing_months(aggregates)
        check_finite(series.to_numpy(), "history")
        return series, gaps

    def _components(
        self, values: np.ndarray, current: Optional[CurrentPeriod], optimize: Optional[bool] = None
    ) -> Tuple[ComponentEstimates, Optional[HoltWintersFit]]:
        fit = smooth_next(values, self.config, optimize)
        components = ComponentEstimates(
            trend=linear_trend_next(values),
            seasonal_adjusted=fit.forecast[0] if fit is not None else None,
            intra_period_pace=pacing_estimate(current),
        )
        return components, fit

    def backtest(self, series: pd.Series, optimize: bool = False) -> List[BacktestPoint]:
        """
        Rolling one-step backtest over the last ``backtest_periods`` periods.

        Each step refits on the periods before it (without pacing) and needs
        at least ``min_training_periods`` of them.
        """
        values = series.to_numpy(dtype=float)
        n = values.size
        points = []
        for t in range(max(0, n - self.config.backtest_periods), n):
            if t < self.config.min_training_periods:
                continue
            components, _ = self._components(values[:t], None, optimize)
            predicted = blend_components(components, self.weights)
            if predicted is None:
                continue
            actual = float(values[t])
            ape = abs(actual - predicted) / abs(actual) * 100.0 if actual != 0 else None
            points.append(BacktestPoint(str(series.index[t]), actual, predicted, ape))
        return points

    def forecast(
        self,
        history: HistoryInput,
        current: Optional[CurrentPeriod] = None,
        value_field: str = COUNT,
    ) -> ForecastResult:
        """
        Forecast the total for the current (or next) period.

        Args:
            history: Completed monthly totals, oldest first, either as
                MonthlyAggregate records or a Series indexed by 'YYYY-MM'.
            current: The in-progress period, used for pacing and as a floor.
            value_field: Aggregate field forecast from MonthlyAggregate
                records, 'count' or 'total_value'.

        Raises:
            InvalidInput: If the history contains non-finite values.
        """
        started = time.perf_counter()
        now = self.clock()
        visited: List[ForecastStage] = []

        self._enter(ForecastStage.COLLECT_HISTORY, visited)
        series, gaps = self._collect_history(history, value_field)
        values = series.to_numpy(dtype=float)

        if values.size == 0:
            return self._degraded(current, now, visited)

        self._enter(ForecastStage.COMPUTE_COMPONENTS, visited)
        components, fit = self._components(values, current)

        self._enter(ForecastStage.BLEND, visited)
        point = blend_components(components, self.weights)
        floor_applied = False
        if current is not None:
            floor = current.observed_so_far * self.config.observed_floor_factor
            if point < floor:
                logger.warning(
                    f"Blended forecast {point:.1f} below observed floor {floor:.1f}; lifting to floor"
                )
                point = floor
                floor_applied = True

        self._enter(ForecastStage.DIAGNOSE, visited)
        backtest = self.backtest(series)
        apes = [p.ape for p in backtest if p.ape is not None]
        mape = float(np.mean(apes)) if apes else self.config.default_mape
        anomaly_idx = residual_anomalies(values, self.config.anomaly_z_threshold)
        quality = assess_data_quality(values.size, gaps)
        anomaly = bool(anomaly_idx) or floor_applied
        divergence = component_divergence(components)
        confidence = score_confidence(mape, quality, anomaly)
        level = confidence_level_for(confidence)
        diagnostics = ForecastDiagnostics(
            error_rate=mape / 100.0,
            mape=mape,
            anomaly_flag=anomaly,
            data_quality=quality,
            divergence=divergence,
            backtest=backtest,
            anomaly_periods=[str(series.index[i]) for i in anomaly_idx],
            floor_applied=floor_applied,
            confidence_level=level,
            recommendations=forecast_recommendations(mape, quality, anomaly, divergence, level),
        )

        self._enter(ForecastStage.DONE, visited)
        elapsed = time.perf_counter() - started
        perf_logger.info(f"Forecast over {values.size} periods computed in {elapsed:.3f}s")
        event_logger.info(
            f"Forecast {point:.1f} (confidence {confidence:.2f} {level.value}, MAPE {mape:.1f}%, "
            f"quality {quality.value}, divergence {diagnostics.divergence:.2f})"
        )
        return ForecastResult(
            point_estimate=float(point),
            components=components,
            confidence=confidence,
            diagnostics=diagnostics,
            computed_at=now,
            stages=tuple(visited),
            smoothing=fit,
        )

    def _degraded(
        self, current: Optional[CurrentPeriod], now: datetime, visited: List[ForecastStage]
    ) -> DegradedForecastResult:
        pace = pacing_estimate(current)
        if pace is not None:
            point = pace
        elif current is not None:
            point = current.observed_so_far
        else:
            point = 0.0
        logger.warning("No forecast history available; returning degraded forecast")
        self._enter(ForecastStage.DONE, visited)
        return DegradedForecastResult(
            point_estimate=float(point),
            components=ComponentEstimates(intra_period_pace=pace),
            confidence=constants.DEGRADED_FORECAST_CONFIDENCE,
            diagnostics=ForecastDiagnostics(
                error_rate=self.config.default_mape / 100.0,
                mape=self.config.default_mape,
                anomaly_flag=False,
                data_quality=ForecastDataQuality.LOW,
                divergence=0.0,
                recommendations=forecast_recommendations(
                    self.config.default_mape, ForecastDataQuality.LOW, False, 0.0, ConfidenceLevel.LOW
                ),
            ),
            computed_at=now,
            stages=tuple(visited),
            reason="empty_history",
        )

    def forecast_from_observations(
        self,
        observations: ObservationInput,
        as_of: Optional[datetime] = None,
        value_field: str = COUNT,
    ) -> ForecastResult:
        """
        Forecast the month containing as_of from a raw observation log.

        Months before as_of's month form the history; observations in as_of's
        month up to as_of form the current period. value_field 'count'
        forecasts the number of observations, 'total_value' their summed value.
        """
        if value_field not in (COUNT, TOTAL_VALUE):
            raise InvalidInput(f"value_field must be '{COUNT}' or '{TOTAL_VALUE}', got {value_field!r}")
        as_of_ts = to_timestamp(as_of if as_of is not None else self.clock())
        df = observations_to_frame(observations)
        current_key = month_key(as_of_ts)
        keys = df[TIMESTAMP].dt.strftime("%Y-%m")

        past = df.loc[keys < current_key]
        in_period = df.loc[(keys == current_key) & (df[TIMESTAMP] <= as_of_ts)]
        observed = float(len(in_period)) if value_field == COUNT else float(in_period[VALUE].sum())

        current = CurrentPeriod(
            year_month=current_key,
            observed_so_far=observed,
            fraction_elapsed=fraction_of_month_elapsed(as_of_ts),
        )
        return self.forecast(aggregate_monthly(past), current, value_field)


__all__ = [
    "CurrentPeriod",
    "ComponentEstimates",
    "BacktestPoint",
    "ForecastDiagnostics",
    "HoltWintersFit",
    "ForecastResult",
    "DegradedForecastResult",
    "holt_winters",
    "holt_linear",
    "optimize_holt_winters",
    "smooth_next",
    "linear_trend_next",
    "pacing_estimate",
    "blend_components",
    "component_divergence",
    "assess_data_quality",
    "residual_anomalies",
    "score_confidence",
    "confidence_level_for",
    "forecast_recommendations",
    "ForecastEngine",
]
