"""
Tests for forecast monitoring alerts, expiry and recalibration.
"""
import pandas as pd
import pytest

from recruitment_model.config.models import ForecastConfig, MonitoringConfig
from recruitment_model.engines.forecast import (
    ComponentEstimates,
    ForecastDiagnostics,
    ForecastEngine,
    ForecastResult,
)
from recruitment_model.engines.monitoring import ForecastMonitor
from recruitment_model.utils.status_enums import AlertKind, AlertSeverity, ForecastDataQuality


def result(mape=10.0, anomaly=False, quality=ForecastDataQuality.HIGH, divergence=0.0, clock_time=None):
    return ForecastResult(
        point_estimate=100.0,
        components=ComponentEstimates(trend=100.0),
        confidence=0.8,
        diagnostics=ForecastDiagnostics(
            error_rate=mape / 100,
            mape=mape,
            anomaly_flag=anomaly,
            data_quality=quality,
            divergence=divergence,
        ),
        computed_at=clock_time,
    )


@pytest.fixture
def monitor(clock):
    return ForecastMonitor(clock=clock)


def test_healthy_forecast_raises_nothing(monitor):
    assert monitor.observe(result()) == []
    assert monitor.active_alerts() == []


@pytest.mark.parametrize(
    "mape,expected",
    [
        (25.0, None),
        (25.1, AlertSeverity.MEDIUM),
        (40.0, AlertSeverity.MEDIUM),
        (40.1, AlertSeverity.HIGH),
    ],
)
def test_accuracy_alert_severity(monitor, mape, expected):
    alerts = monitor.observe(result(mape=mape))
    severities = [a.severity for a in alerts if a.kind == AlertKind.ACCURACY]
    assert severities == ([] if expected is None else [expected])


def test_each_condition_raises_its_own_alert(monitor, clock):
    alerts = monitor.observe(
        result(mape=50.0, anomaly=True, quality=ForecastDataQuality.LOW, divergence=0.31)
    )
    assert [a.kind for a in alerts] == [
        AlertKind.ACCURACY,
        AlertKind.ANOMALY,
        AlertKind.DATA_QUALITY,
        AlertKind.DIVERGENCE,
    ]
    assert all(a.created_at == clock.now for a in alerts)
    assert len({a.alert_id for a in alerts}) == 4


def test_divergence_threshold_is_strict(monitor):
    assert monitor.observe(result(divergence=0.30)) == []


def test_alerts_expire_after_window(monitor, clock):
    monitor.observe(result(anomaly=True))
    clock.advance(hours=23, minutes=59)
    assert len(monitor.active_alerts()) == 1
    clock.advance(minutes=1)
    assert monitor.active_alerts() == []


def test_configurable_thresholds(clock):
    monitor = ForecastMonitor(MonitoringConfig(mape_alert_threshold=5, mape_high_threshold=8), clock)
    (alert,) = monitor.observe(result(mape=9.0))
    assert alert.severity == AlertSeverity.HIGH


def test_resolve(monitor, clock):
    (alert,) = monitor.observe(result(anomaly=True))
    assert monitor.resolve(alert.alert_id)
    assert monitor.active_alerts() == []
    (resolved,) = monitor.active_alerts(include_resolved=True)
    assert resolved.resolved
    assert not monitor.resolve("unknown")

    clock.advance(hours=25)
    assert not monitor.resolve(alert.alert_id)


def test_trigger_recalibration(monitor, clock):
    engine = ForecastEngine(ForecastConfig(optimize_parameters=False), clock=clock)
    history = pd.Series([10.0] * 24, index=[str(p) for p in pd.period_range("2022-01", periods=24, freq="M")])
    fresh = monitor.trigger_recalibration(engine, history)
    assert fresh.point_estimate == pytest.approx(10.0)
    alerts = monitor.active_alerts()
    assert alerts[-1].kind == AlertKind.ACCURACY
    assert alerts[-1].severity == AlertSeverity.LOW
    assert "Recalibration" in alerts[-1].message
