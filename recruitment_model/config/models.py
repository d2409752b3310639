# recruitment_model/config/models.py
"""
Pydantic models for validating the structure and types of the configuration
loaded from YAML files (e.g., config.yaml).

Every section is optional; a missing section falls back to the calibrated
defaults in ``recruitment_model.config.constants``.
"""

import logging
from datetime import date
from typing import Optional

import numpy as np
from pydantic import BaseModel, Field, model_validator

from . import constants

logger = logging.getLogger(__name__)


class CapacityGuardrailConfig(BaseModel):
    """Options for deriving capacity ceilings from the observation log."""

    history_window_months: int = Field(
        12, ge=1, description="Trailing months of history used to build guardrails"
    )
    p95_window: float = Field(
        0.95,
        gt=0.0,
        le=1.0,
        description="Quantile of the daily-count distribution used as the realistic ceiling",
    )
    effective_days_per_month: int = Field(
        constants.EFFECTIVE_DAYS_PER_MONTH,
        ge=1,
        le=31,
        description="Operating days per month used for realistic monthly ceilings",
    )


class RetentionConfig(BaseModel):
    """Options for the dynamic retention estimator."""

    min_observations_per_entity: int = Field(3, ge=1)
    inactivity_threshold_days: int = Field(60, ge=0)
    cache_ttl_hours: float = Field(24.0, ge=0.0)
    min_entities_for_analysis: int = Field(
        10,
        ge=1,
        description="Below this many qualifying entities the estimator returns defaults",
    )


class CohortConfig(BaseModel):
    """Options for cohort permanence analysis."""

    min_observations_per_entity: int = Field(3, ge=1)
    analysis_start_date: Optional[date] = Field(
        None, description="Ignore observations before this date"
    )
    cache_ttl_minutes: float = Field(5.0, ge=0.0)


class ForecastWeights(BaseModel):
    """Blend weights for the three forecast components."""

    trend: float = Field(0.20, ge=0.0)
    seasonal_adjusted: float = Field(0.35, ge=0.0)
    intra_period_pace: float = Field(0.45, ge=0.0)

    @model_validator(mode='after')
    def check_weights_positive(self) -> 'ForecastWeights':
        """At least one component must carry weight."""
        total = self.trend + self.seasonal_adjusted + self.intra_period_pace
        if total <= 0:
            raise ValueError("Forecast weights must not all be zero")
        if not np.isclose(total, 1.0):
            logger.warning(
                f"Forecast weights sum to {total:.4f}, not 1.0. They will be normalised."
            )
        return self


class ForecastConfig(BaseModel):
    """Options for the blended monthly forecast."""

    season_length: int = Field(12, ge=2)
    alpha: float = Field(0.3, gt=0.0, le=1.0)
    beta: float = Field(0.2, ge=0.0, le=1.0)
    gamma: float = Field(0.2, ge=0.0, le=1.0)
    optimize_parameters: bool = Field(
        True, description="Grid-search alpha/beta/gamma on a hold-out window"
    )
    weights: ForecastWeights = Field(default_factory=ForecastWeights)
    backtest_periods: int = Field(3, ge=1)
    min_training_periods: int = Field(3, ge=2)
    anomaly_z_threshold: float = Field(2.0, gt=0.0)
    observed_floor_factor: float = Field(
        1.0,
        ge=0.0,
        description="The forecast is never below observed_so_far times this factor",
    )
    default_mape: float = Field(constants.DEFAULT_MAPE, ge=0.0)


class MonitoringConfig(BaseModel):
    """Thresholds for forecast monitoring alerts."""

    mape_alert_threshold: float = Field(constants.MAPE_ALERT_THRESHOLD, ge=0.0)
    mape_high_threshold: float = Field(constants.MAPE_HIGH_SEVERITY_THRESHOLD, ge=0.0)
    divergence_threshold: float = Field(constants.DIVERGENCE_ALERT_THRESHOLD, ge=0.0)
    alert_ttl_hours: float = Field(constants.ALERT_TTL_HOURS, gt=0.0)

    @model_validator(mode='after')
    def check_mape_thresholds(self) -> 'MonitoringConfig':
        if self.mape_high_threshold < self.mape_alert_threshold:
            raise ValueError(
                "mape_high_threshold must be greater than or equal to mape_alert_threshold"
            )
        return self


class MonteCarloConfig(BaseModel):
    iterations: int = Field(1000, ge=1)
    random_seed: Optional[int] = Field(
        42, description="Seed for the default generator; None draws fresh OS entropy"
    )


class MainConfig(BaseModel):
    """The root model for the entire configuration file."""

    capacity: CapacityGuardrailConfig = Field(default_factory=CapacityGuardrailConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    cohort: CohortConfig = Field(default_factory=CohortConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    monte_carlo: MonteCarloConfig = Field(default_factory=MonteCarloConfig)


__all__ = [
    "CapacityGuardrailConfig",
    "RetentionConfig",
    "CohortConfig",
    "ForecastWeights",
    "ForecastConfig",
    "MonitoringConfig",
    "MonteCarloConfig",
    "MainConfig",
]
