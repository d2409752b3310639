from .primitives import (
    linear_regression,
    mean,
    median,
    pearson_correlation,
    percentile,
)

__all__ = ["percentile", "mean", "median", "pearson_correlation", "linear_regression"]
