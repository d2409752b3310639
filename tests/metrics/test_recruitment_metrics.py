"""
Tests for recruitment KPIs: CPA, LTV, ROI, demand, channel quality,
correlations, cross-validation and seasonal analysis.
"""
import pytest

from recruitment_model.errors import InvalidInput
from recruitment_model.metrics.recruitment import (
    ChannelBenchmarks,
    ChannelPerformance,
    DemandPeriod,
    calculate_ltv,
    calculate_real_cpa,
    channel_quality,
    cross_validate_metrics,
    multiple_correlation,
    project_demand,
    roi_with_sensitivity,
    seasonal_analysis,
)

BENCHMARKS = ChannelBenchmarks(
    target_conversion=0.2,
    target_retention=0.8,
    max_time_to_hire=30,
    target_performance=4.0,
    target_cpa=500,
)


def test_cpa_and_ltv():
    assert calculate_real_cpa(1000, 10) == pytest.approx(100)
    assert calculate_real_cpa(1000, 0) == 0.0
    assert calculate_ltv(500, 12, 1000) == pytest.approx(5000)


def test_roi_with_sensitivity():
    result = roi_with_sensitivity(1000, 1500, 365, risk_factor=0.1)
    assert result.roi == pytest.approx(50.0)
    assert result.adjusted_roi == pytest.approx(45.0)
    assert result.confidence == pytest.approx(0.9)
    assert roi_with_sensitivity(1000, 1500, 730, risk_factor=0.0).confidence == 1.0
    with pytest.raises(InvalidInput):
        roi_with_sensitivity(0, 100, 30)


class TestProjectDemand:
    def test_linear_trend(self):
        result = project_demand([DemandPeriod(10), DemandPeriod(20), DemandPeriod(30)])
        assert result.projection == pytest.approx(40.0)
        assert result.confidence == pytest.approx(1.0)

    def test_seasonality_uplift(self):
        history = [DemandPeriod(d, seasonality=0.1) for d in (10, 20, 30)]
        assert project_demand(history).projection == pytest.approx(44.0)

    def test_short_history(self):
        result = project_demand([DemandPeriod(10), DemandPeriod(20)])
        assert (result.projection, result.confidence) == (0.0, 0.0)

    def test_never_negative(self):
        assert project_demand([DemandPeriod(d) for d in (30, 15, 1)]).projection == 0.0


class TestChannelQuality:
    def test_channel_meeting_every_target_scores_one(self):
        channel = ChannelPerformance(
            conversion_rate=0.2, retention_rate=0.8, avg_time_to_hire=0, performance=4.0, cpa=400, volume=150
        )
        result = channel_quality(channel, BENCHMARKS)
        assert result.quality_score == pytest.approx(1.0)
        assert result.factors["cost_efficiency"] == 1.0

    def test_factors(self):
        channel = ChannelPerformance(
            conversion_rate=0.1, retention_rate=0.4, avg_time_to_hire=45, performance=2.0, cpa=1000, volume=50
        )
        result = channel_quality(channel, BENCHMARKS)
        assert result.factors == pytest.approx({
            "conversion": 0.5,
            "retention": 0.5,
            "speed": 0.0,
            "performance": 0.5,
            "cost_efficiency": 0.5,
            "volume": 0.5,
        })
        assert result.quality_score == pytest.approx(0.425)


class TestMultipleCorrelation:
    def test_pairs(self):
        result = multiple_correlation({"a": [1, 2, 3], "b": [2, 4, 6], "c": [3, 2, 1]})
        assert result.primary_correlation == pytest.approx(1.0)
        assert result.secondary_correlations == pytest.approx({"a_b": 1.0, "a_c": -1.0, "b_c": -1.0})
        assert result.reliability_index == pytest.approx(1.0)

    def test_too_few_observations(self):
        result = multiple_correlation({"a": [1, 2], "b": [2, 4]})
        assert result.primary_correlation == 0.0
        assert result.secondary_correlations == {}

    def test_unequal_lengths(self):
        with pytest.raises(InvalidInput):
            multiple_correlation({"a": [1, 2, 3], "b": [1, 2]})


class TestCrossValidate:
    def test_consistent_metrics(self):
        result = cross_validate_metrics(cpa=100, retention=0.8, ltv=1000, roi=900, volume=10)
        assert result.is_valid
        assert result.inconsistencies == []
        assert result.confidence_score == 1.0

    def test_every_check_can_fire(self):
        result = cross_validate_metrics(cpa=600, retention=1.2, ltv=1000, roi=0, volume=200)
        assert not result.is_valid
        assert len(result.inconsistencies) == 4
        assert result.confidence_score == 0.0


class TestSeasonalAnalysis:
    def test_factors_and_predictions(self):
        values = ([200.0] + [100.0] * 11) * 2
        result = seasonal_analysis(values)
        assert result.seasonal_factors[0] == pytest.approx(200 / (1300 / 12))
        assert result.trend_direction == "stable"
        assert len(result.predictions) == 12
        assert result.predictions[0].period == 24
        ratio = result.predictions[0].predicted / result.predictions[1].predicted
        assert ratio == pytest.approx(2.0)

    def test_trend_direction(self):
        assert seasonal_analysis([10.0] * 12 + [20.0] * 12).trend_direction == "up"
        assert seasonal_analysis([20.0] * 12 + [10.0] * 12).trend_direction == "down"

    def test_short_series_is_neutral(self):
        result = seasonal_analysis([1.0, 2.0, 3.0], cycles=4)
        assert result.seasonal_factors == [1.0] * 4
        assert result.predictions == []

    def test_invalid_cycles(self):
        with pytest.raises(InvalidInput):
            seasonal_analysis([1.0], cycles=0)
