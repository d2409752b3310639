"""
Estimation engines: capacity guardrails, retention, cohorts, forecasting,
monitoring, budget allocation and Monte Carlo simulation.
"""

from .capacity import CapacityGuardrailEngine, validate_projection
from .cohort import CohortPercentileAnalyzer
from .forecast import ForecastEngine
from .monitoring import ForecastMonitor
from .retention import RetentionEstimator

__all__ = [
    "CapacityGuardrailEngine",
    "validate_projection",
    "CohortPercentileAnalyzer",
    "ForecastEngine",
    "ForecastMonitor",
    "RetentionEstimator",
]
