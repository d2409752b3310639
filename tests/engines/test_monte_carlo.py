"""
Tests for Monte Carlo recruitment outcome simulation.
"""
import numpy as np
import pytest

from recruitment_model.config.models import MonteCarloConfig
from recruitment_model.engines.monte_carlo import (
    BaseScenario,
    Variability,
    monte_carlo_simulation,
    run_scenarios,
    simulate_outcome,
    simulate_outcomes,
)
from recruitment_model.errors import InvalidInput

BASE = BaseScenario(budget=10_000, expected_cpa=100, conversion_rate=0.5, retention_rate=0.8)
NOISY = Variability(budget_variance=250_000, cpa_variance=100, conversion_variance=0.001, retention_variance=0.001)


def test_simulate_outcome():
    assert simulate_outcome(10_000, 100, 0.5, 0.8) == pytest.approx(40.0)
    assert simulate_outcome(10_000, 0, 0.5, 0.8) == 0.0
    assert simulate_outcome(10_000, -5, 0.5, 0.8) == 0.0


def test_simulate_outcomes_matches_scalar_rule():
    budget = np.array([10_000.0, 10_000.0, 10_000.0, 500.0])
    cpa = np.array([100.0, 0.0, -5.0, 50.0])
    conversion = np.array([0.5, 0.5, 0.5, 1.0])
    retention = np.array([0.8, 0.8, 0.8, 0.5])
    expected = [simulate_outcome(*args) for args in zip(budget, cpa, conversion, retention)]
    assert simulate_outcomes(budget, cpa, conversion, retention) == pytest.approx(expected)


def test_zero_variance_is_deterministic():
    result = monte_carlo_simulation(BASE, Variability(), iterations=100_000)
    assert result.mean == pytest.approx(40.0)
    assert result.confidence_95 == pytest.approx((40.0, 40.0))
    assert result.success_probability == 1.0
    assert result.iterations == 100_000


def test_same_seed_same_result():
    a = monte_carlo_simulation(BASE, NOISY, iterations=500, rng=np.random.default_rng(3))
    b = monte_carlo_simulation(BASE, NOISY, iterations=500, rng=np.random.default_rng(3))
    assert a == b


def test_default_generator_is_seeded():
    assert monte_carlo_simulation(BASE, NOISY, iterations=200) == monte_carlo_simulation(
        BASE, NOISY, iterations=200
    )


def test_interval_brackets_mean():
    result = monte_carlo_simulation(BASE, NOISY, iterations=2000, rng=np.random.default_rng(9))
    assert result.lower <= result.mean <= result.upper
    assert result.mean == pytest.approx(40.0, rel=0.05)


def test_non_positive_cpa_counts_as_failure():
    result = monte_carlo_simulation(
        BaseScenario(1000, 0, 0.5, 0.8), Variability(), iterations=50
    )
    assert result.mean == 0.0
    assert result.success_probability == 0.0


def test_rates_are_clamped():
    result = monte_carlo_simulation(BaseScenario(1000, 10, 1.5, 2.0), Variability(), iterations=10)
    assert result.mean == pytest.approx(100.0)


def test_iterations_from_config():
    result = monte_carlo_simulation(BASE, Variability(), config=MonteCarloConfig(iterations=7))
    assert result.iterations == 7


@pytest.mark.parametrize("iterations", [0, -10])
def test_invalid_iterations(iterations):
    with pytest.raises(InvalidInput):
        monte_carlo_simulation(BASE, Variability(), iterations=iterations)


def test_negative_variance_raises():
    with pytest.raises(InvalidInput):
        monte_carlo_simulation(BASE, Variability(cpa_variance=-1), iterations=5)


def test_run_scenarios_seeds_each_scenario():
    scenarios = {"base": (BASE, NOISY), "lean": (BaseScenario(5_000, 100, 0.5, 0.8), NOISY)}
    results = run_scenarios(scenarios, iterations=300, base_seed=100)
    assert results["base"] == monte_carlo_simulation(
        BASE, NOISY, iterations=300, rng=np.random.default_rng(100)
    )
    assert results["lean"] == monte_carlo_simulation(
        scenarios["lean"][0], NOISY, iterations=300, rng=np.random.default_rng(101)
    )
    assert results["lean"].mean < results["base"].mean


def test_million_iterations_with_noise():
    result = monte_carlo_simulation(BASE, NOISY, iterations=1_000_000, rng=np.random.default_rng(5))
    assert result.iterations == 1_000_000
    assert result.mean == pytest.approx(40.0, rel=0.02)
    assert result.lower < result.mean < result.upper
