"""
Tests for capacity guardrails: snapshot construction, data quality tiers,
projection realism classification and physical ceiling/floor.
"""
from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from recruitment_model.config.models import CapacityGuardrailConfig
from recruitment_model.engines.capacity import (
    CapacityGuardrailEngine,
    CapacityGuardrails,
    classify_data_quality,
    physical_ceiling,
    physical_floor,
    validate_projection,
)
from recruitment_model.errors import InvalidInput
from recruitment_model.utils.status_enums import CapacityDataQuality, ProjectionRealism


def test_thirty_identical_days(thirty_identical_days, clock):
    snapshot = CapacityGuardrailEngine(clock=clock).compute(thirty_identical_days)
    g = snapshot.guardrails
    assert g.max_daily_count == 10
    assert g.avg_daily_count == pytest.approx(10)
    assert g.realistic_max_daily_count == pytest.approx(10)
    assert snapshot.metrics.days_with_data == 30
    assert snapshot.metrics.months_analyzed == 1
    assert snapshot.data_quality == CapacityDataQuality.POOR
    assert g.optimistic_stretch_factor == pytest.approx(1.30)
    assert g.realistic_max_monthly_count == 250
    assert g.max_daily_value == pytest.approx(1000.0)


def test_empty_window_returns_default_snapshot(clock):
    snapshot = CapacityGuardrailEngine(clock=clock).compute([])
    assert snapshot.data_quality == CapacityDataQuality.POOR
    assert snapshot.guardrails.max_daily_count == 50
    assert snapshot.guardrails.realistic_max_daily_count == 45
    assert snapshot.metrics.months_analyzed == 0
    assert snapshot.computed_at == clock.now


def test_observations_outside_window_are_ignored(make_daily_log, clock):
    old = make_daily_log("2022-01-01", days=5, per_day=40)
    recent = make_daily_log("2024-06-01", days=5, per_day=4)
    snapshot = CapacityGuardrailEngine(clock=clock).compute(pd.concat([old, recent]))
    assert snapshot.guardrails.max_daily_count == 4


def test_full_year_is_excellent(make_daily_log, clock):
    log = make_daily_log("2023-06-16", days=365, per_day=1)
    snapshot = CapacityGuardrailEngine(clock=clock).compute(log)
    assert snapshot.metrics.days_with_data == 365
    assert snapshot.data_quality == CapacityDataQuality.EXCELLENT
    assert snapshot.guardrails.optimistic_stretch_factor == pytest.approx(1.15)


@pytest.mark.parametrize(
    "months,days,expected",
    [
        (12, 300, CapacityDataQuality.EXCELLENT),
        (12, 299, CapacityDataQuality.GOOD),
        (6, 150, CapacityDataQuality.GOOD),
        (5, 200, CapacityDataQuality.FAIR),
        (3, 60, CapacityDataQuality.FAIR),
        (2, 60, CapacityDataQuality.POOR),
    ],
)
def test_quality_tiers(months, days, expected):
    assert classify_data_quality(months, days) == expected


def test_guardrail_invariants_hold_for_random_histories(clock):
    rng = np.random.default_rng(5)
    for _ in range(5):
        rows = []
        for d in range(90):
            day = pd.Timestamp("2024-03-01") + pd.Timedelta(days=d)
            for k in range(int(rng.integers(1, 30))):
                rows.append((day, float(rng.uniform(50, 500)), f"e{k}"))
        df = pd.DataFrame(rows, columns=["timestamp", "value", "entity_id"])
        g = CapacityGuardrailEngine(clock=clock).compute(df).guardrails
        assert g.realistic_max_daily_count <= g.max_possible_daily_count
        assert g.pessimistic_floor_factor < 1.0 <= g.optimistic_stretch_factor


def test_p95_window_is_configurable(make_daily_log, clock):
    low = make_daily_log("2024-05-01", days=9, per_day=1)
    peak = make_daily_log("2024-05-20", days=1, per_day=11)
    engine = CapacityGuardrailEngine(CapacityGuardrailConfig(p95_window=0.5), clock=clock)
    g = engine.compute(pd.concat([low, peak])).guardrails
    assert g.max_daily_count == 11
    assert g.realistic_max_daily_count == pytest.approx(1.0)


def test_guardrails_reject_broken_invariants():
    with pytest.raises(InvalidInput):
        CapacityGuardrails(max_daily_count=10, realistic_max_daily_count=12)
    with pytest.raises(InvalidInput):
        CapacityGuardrails(max_daily_count=10, optimistic_stretch_factor=0.9)
    with pytest.raises(InvalidInput):
        CapacityGuardrails(max_daily_count=10, pessimistic_floor_factor=1.0)


class TestValidateProjection:
    guardrails = CapacityGuardrails(max_daily_count=50, optimistic_stretch_factor=1.2)

    def test_impossible_projection(self):
        warning = validate_projection(1000, 0, 10, self.guardrails)
        assert warning.kind == ProjectionRealism.IMPOSSIBLE
        assert warning.required_daily_pace == pytest.approx(100)
        assert warning.historical_max_daily_pace == 50
        assert warning.excess_factor == pytest.approx(2.0)

    @pytest.mark.parametrize(
        "pace,expected",
        [
            (40, None),
            (50, None),
            (55, ProjectionRealism.OPTIMISTIC_BUT_POSSIBLE),
            (60, ProjectionRealism.OPTIMISTIC_BUT_POSSIBLE),
            (70, ProjectionRealism.HIGHLY_UNLIKELY),
            (90, ProjectionRealism.HIGHLY_UNLIKELY),
            (91, ProjectionRealism.IMPOSSIBLE),
        ],
    )
    def test_thresholds_are_strict(self, pace, expected):
        warning = validate_projection(pace * 10, 0, 10, self.guardrails)
        assert (warning.kind if warning else None) == expected

    def test_classification_never_regresses(self):
        order = [None, *ProjectionRealism]
        ranks = []
        for pace in np.linspace(0, 200, 401):
            warning = validate_projection(pace * 4, 0, 4, self.guardrails)
            ranks.append(order.index(warning.kind if warning else None))
        assert ranks == sorted(ranks)
        assert ranks[-1] == order.index(ProjectionRealism.IMPOSSIBLE)

    @pytest.mark.parametrize("days", [0, -3])
    def test_no_days_remaining_is_not_a_finding(self, days):
        assert validate_projection(10_000, 0, days, self.guardrails) is None

    def test_zero_historical_max_reports_zero_excess(self):
        g = CapacityGuardrails(max_daily_count=0)
        warning = validate_projection(10, 0, 1, g)
        assert warning.kind == ProjectionRealism.IMPOSSIBLE
        assert warning.excess_factor == 0.0


def test_physical_ceiling_and_floor():
    g = CapacityGuardrails(max_daily_count=50, optimistic_stretch_factor=1.2)
    assert physical_ceiling(100, 10, g) == 700
    assert physical_floor(100, 30, 10, g) == 280
    assert physical_floor(100, 0, 10, g) == 100
    assert physical_floor(100, 30, -5, g) == 100
    assert physical_ceiling(100, -5, g) == 100


def test_fractional_current_count_is_never_rounded_down():
    g = CapacityGuardrails(max_daily_count=50, optimistic_stretch_factor=1.2)
    assert physical_floor(10.4, 0, 5, g) == 11
    assert physical_floor(10.4, 0.01, 5, g) >= 10.4
    assert physical_ceiling(10.4, 0, g) == 11
    assert physical_floor(10.6, 30, 10, g) == 191


def test_as_of_overrides_clock(thirty_identical_days, clock):
    engine = CapacityGuardrailEngine(clock=clock)
    snapshot = engine.compute(thirty_identical_days, as_of=datetime(2026, 1, 1))
    assert snapshot.data_quality == CapacityDataQuality.POOR
    assert snapshot.guardrails.max_daily_count == 50
