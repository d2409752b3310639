# recruitment_model/stats/primitives.py
"""
Statistical primitives shared by every estimator.

All functions are pure. Randomness comes only from an injected
``numpy.random.Generator``; nothing here touches a global RNG.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from recruitment_model.errors import InvalidInput


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class EMAResult:
    trend: List[float] = field(default_factory=list)
    prediction: float = 0.0


def _as_array(values: Sequence[float], name: str = "values") -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise InvalidInput(f"{name} must be one-dimensional")
    if arr.size == 0:
        raise InvalidInput(f"{name} must not be empty")
    return arr


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Linear-interpolation percentile over an already sorted sequence.

    The fractional index is ``p * (n - 1)``; the result interpolates between
    the values at its floor and ceiling, so it always lies within
    ``[sorted_values[0], sorted_values[-1]]``.

    Args:
        sorted_values: Values in non-decreasing order.
        p: Quantile in [0, 1].

    Raises:
        InvalidInput: If sorted_values is empty or p is outside [0, 1].
    """
    arr = _as_array(sorted_values, "sorted_values")
    if not 0.0 <= p <= 1.0:
        raise InvalidInput(f"Percentile must be within [0, 1], got {p}")
    index = p * (arr.size - 1)
    lower = int(math.floor(index))
    upper = int(math.ceil(index))
    if lower == upper:
        return float(arr[lower])
    weight = index - lower
    return float(arr[lower] + (arr[upper] - arr[lower]) * weight)


def mean(values: Sequence[float]) -> float:
    return float(np.mean(_as_array(values)))


def median(values: Sequence[float]) -> float:
    return percentile(np.sort(_as_array(values)), 0.5)


def pearson_correlation_xy(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation of two equally long series.

    Returns exactly 0.0 when fewer than two pairs are given or when either
    series is constant. The result is clamped to [-1, 1] to absorb rounding.
    """
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    if xa.shape != ya.shape:
        raise InvalidInput(f"Series lengths differ: {xa.size} vs {ya.size}")
    if xa.size < 2:
        return 0.0
    if np.ptp(xa) == 0 or np.ptp(ya) == 0:
        return 0.0
    dx = xa - xa.mean()
    dy = ya - ya.mean()
    denominator = math.sqrt(float(np.dot(dx, dx)) * float(np.dot(dy, dy)))
    if denominator == 0:
        return 0.0
    return clamp(float(np.dot(dx, dy)) / denominator, -1.0, 1.0)


def pearson_correlation(pairs: Sequence[Tuple[float, float]]) -> float:
    """Pearson correlation over (x, y) pairs; see pearson_correlation_xy."""
    if len(pairs) == 0:
        return 0.0
    xs, ys = zip(*pairs)
    return pearson_correlation_xy(xs, ys)


def linear_regression(series: Sequence[float]) -> RegressionResult:
    """
    Least-squares fit of series against its index (x = 0, 1, ..., n-1).

    ``r_squared`` is explained over total variation, 0 when the series is
    constant. A single point yields a flat line through it.
    """
    y = _as_array(series, "series")
    n = y.size
    x = np.arange(n, dtype=float)
    if n == 1:
        return RegressionResult(slope=0.0, intercept=float(y[0]), r_squared=0.0)

    x_mean = x.mean()
    y_mean = y.mean()
    sxx = float(np.sum((x - x_mean) ** 2))
    slope = float(np.sum((x - x_mean) * (y - y_mean))) / sxx
    intercept = float(y_mean - slope * x_mean)

    predicted = slope * x + intercept
    total = float(np.sum((y - y_mean) ** 2))
    explained = float(np.sum((predicted - y_mean) ** 2))
    r_squared = 0.0 if total == 0 else clamp(explained / total, 0.0, 1.0)
    return RegressionResult(slope=slope, intercept=intercept, r_squared=r_squared)


def exponential_moving_average(series: Sequence[float], alpha: float = 0.3) -> EMAResult:
    """
    EMA seeded with the first value: ``ema[i] = alpha*x[i] + (1-alpha)*ema[i-1]``.

    The prediction for the next period is the last smoothed value.

    Raises:
        InvalidInput: If series is empty or alpha is outside (0, 1].
    """
    values = _as_array(series, "series")
    if not 0.0 < alpha <= 1.0:
        raise InvalidInput(f"alpha must be within (0, 1], got {alpha}")
    trend = [float(values[0])]
    for x in values[1:]:
        trend.append(alpha * float(x) + (1 - alpha) * trend[-1])
    return EMAResult(trend=trend, prediction=trend[-1])


def box_muller(u1: float, u2: float) -> float:
    """
    Standard normal draw from two independent uniforms.

    u1 must lie in (0, 1]; u2 in [0, 1).
    """
    if not 0.0 < u1 <= 1.0:
        raise InvalidInput(f"u1 must be within (0, 1], got {u1}")
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def normal_random(mean: float, variance: float, rng: np.random.Generator) -> float:
    """Normal draw with the given mean and variance using Box-Muller on rng uniforms."""
    if variance < 0:
        raise InvalidInput(f"Variance must be non-negative, got {variance}")
    # random() is in [0, 1); flip it so log() never sees zero
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    return mean + math.sqrt(variance) * box_muller(u1, u2)


def normal_samples(mean: float, variance: float, size: int, rng: np.random.Generator) -> np.ndarray:
    """
    ``size`` normal draws in one batch, Box-Muller applied elementwise.

    Consumes all u1 uniforms before the u2 uniforms, so the stream differs
    from ``size`` successive normal_random calls on the same generator.
    """
    if variance < 0:
        raise InvalidInput(f"Variance must be non-negative, got {variance}")
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
    return mean + math.sqrt(variance) * z


def mape(actual: Sequence[float], predicted: Sequence[float]) -> Optional[float]:
    """
    Mean absolute percentage error in percent.

    Periods whose actual value is zero are skipped; returns None when no
    period is usable.
    """
    a = np.asarray(actual, dtype=float)
    p = np.asarray(predicted, dtype=float)
    if a.shape != p.shape:
        raise InvalidInput(f"Series lengths differ: {a.size} vs {p.size}")
    mask = a != 0
    if not mask.any():
        return None
    return float(np.mean(np.abs((a[mask] - p[mask]) / a[mask])) * 100.0)


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation over the mean; 0 when the mean is 0."""
    arr = _as_array(values)
    m = float(arr.mean())
    if m == 0:
        return 0.0
    return float(arr.std() / abs(m))


def z_scores(values: Sequence[float]) -> np.ndarray:
    """Population z-scores; all zeros for a constant series."""
    arr = _as_array(values)
    sd = arr.std()
    if sd == 0:
        return np.zeros_like(arr)
    return (arr - arr.mean()) / sd


__all__ = [
    "RegressionResult",
    "EMAResult",
    "clamp",
    "percentile",
    "mean",
    "median",
    "pearson_correlation",
    "pearson_correlation_xy",
    "linear_regression",
    "exponential_moving_average",
    "box_muller",
    "normal_random",
    "normal_samples",
    "mape",
    "coefficient_of_variation",
    "z_scores",
]
