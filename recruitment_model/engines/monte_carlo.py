# recruitment_model/engines/monte_carlo.py
"""
Monte Carlo simulation of recruitment outcomes.

Every iteration perturbs budget, cost per acquisition, conversion and retention
with independent normal draws and computes ``budget / cpa * conversion *
retention``. Randomness comes from an injected ``numpy.random.Generator`` so
runs are exactly reproducible.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from recruitment_model.config.models import MonteCarloConfig
from recruitment_model.errors import InvalidInput
from recruitment_model.stats.primitives import normal_samples, percentile

logger = logging.getLogger(__name__)

__all__ = [
    'BaseScenario',
    'Variability',
    'MonteCarloResult',
    'simulate_outcome',
    'simulate_outcomes',
    'monte_carlo_simulation',
    'run_scenarios',
]


@dataclass(frozen=True)
class BaseScenario:
    budget: float
    expected_cpa: float
    conversion_rate: float
    retention_rate: float


@dataclass(frozen=True)
class Variability:
    """Variances (not standard deviations) of the normal perturbations."""

    budget_variance: float = 0.0
    cpa_variance: float = 0.0
    conversion_variance: float = 0.0
    retention_variance: float = 0.0


@dataclass(frozen=True)
class MonteCarloResult:
    mean: float
    confidence_95: Tuple[float, float]
    success_probability: float
    iterations: int

    @property
    def lower(self) -> float:
        return self.confidence_95[0]

    @property
    def upper(self) -> float:
        return self.confidence_95[1]


def simulate_outcome(budget: float, cpa: float, conversion: float, retention: float) -> float:
    """Retained units for one draw; zero when the drawn CPA is not positive."""
    if cpa <= 0:
        return 0.0
    return budget / cpa * conversion * retention


def simulate_outcomes(
    budget: np.ndarray, cpa: np.ndarray, conversion: np.ndarray, retention: np.ndarray
) -> np.ndarray:
    """Elementwise simulate_outcome over arrays of draws."""
    outcomes = np.zeros(np.shape(cpa), dtype=float)
    positive = cpa > 0
    outcomes[positive] = (
        budget[positive] / cpa[positive] * conversion[positive] * retention[positive]
    )
    return outcomes


def monte_carlo_simulation(
    base: BaseScenario,
    variability: Variability,
    iterations: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    config: Optional[MonteCarloConfig] = None,
) -> MonteCarloResult:
    """
    Simulate outcomes and summarise them.

    Args:
        base: Central values of the scenario.
        variability: Variances of the perturbations.
        iterations: Number of draws; defaults to config.iterations (1000).
        rng: Random source; defaults to a generator seeded with config.random_seed.
        config: Simulation defaults.

    Returns:
        Mean outcome, the 2.5th/97.5th percentile interval and the share of
        iterations with a positive outcome.

    Raises:
        InvalidInput: If iterations < 1 or any variance is negative.
    """
    config = config or MonteCarloConfig()
    iterations = config.iterations if iterations is None else iterations
    if iterations < 1:
        raise InvalidInput(f"iterations must be at least 1, got {iterations}")
    if rng is None:
        rng = np.random.default_rng(config.random_seed)

    budget = normal_samples(base.budget, variability.budget_variance, iterations, rng)
    cpa = normal_samples(base.expected_cpa, variability.cpa_variance, iterations, rng)
    conversion = np.clip(
        normal_samples(base.conversion_rate, variability.conversion_variance, iterations, rng), 0.0, 1.0
    )
    retention = np.clip(
        normal_samples(base.retention_rate, variability.retention_variance, iterations, rng), 0.0, 1.0
    )
    results = simulate_outcomes(budget, cpa, conversion, retention)

    ordered = np.sort(results)
    result = MonteCarloResult(
        mean=float(ordered.mean()),
        confidence_95=(percentile(ordered, 0.025), percentile(ordered, 0.975)),
        success_probability=float(np.count_nonzero(ordered > 0)) / iterations,
        iterations=iterations,
    )
    logger.debug(
        f"Monte Carlo ({iterations} runs): mean={result.mean:.2f}, "
        f"95% CI=[{result.lower:.2f}, {result.upper:.2f}], P(success)={result.success_probability:.2f}"
    )
    return result


def run_scenarios(
    scenarios: Mapping[str, Tuple[BaseScenario, Variability]],
    iterations: Optional[int] = None,
    base_seed: Optional[int] = None,
    config: Optional[MonteCarloConfig] = None,
) -> Dict[str, MonteCarloResult]:
    """
    Simulate several named scenarios, each with its own generator.

    Scenario i (in mapping order) is seeded with base_seed + i, so adding a
    scenario at the end leaves earlier results unchanged.
    """
    config = config or MonteCarloConfig()
    seed = config.random_seed if base_seed is None else base_seed
    results: Dict[str, MonteCarloResult] = {}
    for i, (name, (base, variability)) in enumerate(scenarios.items()):
        rng = np.random.default_rng(None if seed is None else seed + i)
        results[name] = monte_carlo_simulation(base, variability, iterations, rng, config)
        logger.info(f"Scenario '{name}': mean outcome {results[name].mean:.2f}")
    return results
