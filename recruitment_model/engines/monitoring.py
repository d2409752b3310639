# recruitment_model/engines/monitoring.py
"""
In-memory monitoring of forecast diagnostics.

The monitor never blocks a forecast. It inspects each result after the fact
and records ``MonitoringAlert`` entries, keeping only those created within the
rolling alert window (24 hours by default).
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import List, Optional

from recruitment_model.config.models import MonitoringConfig
from recruitment_model.engines.forecast import (
    CurrentPeriod,
    ForecastEngine,
    ForecastResult,
    HistoryInput,
)
from recruitment_model.logging_config import MONITORING_LOGGER
from recruitment_model.utils.cache import Clock, system_clock
from recruitment_model.utils.status_enums import AlertKind, AlertSeverity, ForecastDataQuality

logger = logging.getLogger(MONITORING_LOGGER)


@dataclass(frozen=True)
class MonitoringAlert:
    alert_id: str
    kind: AlertKind
    severity: AlertSeverity
    message: str
    created_at: datetime
    resolved: bool = False


class ForecastMonitor:
    def __init__(self, config: Optional[MonitoringConfig] = None, clock: Optional[Clock] = None):
        self.config = config or MonitoringConfig()
        self.clock = clock or system_clock
        self._alerts: List[MonitoringAlert] = []

    @property
    def window(self) -> timedelta:
        return timedelta(hours=self.config.alert_ttl_hours)

    def _prune(self) -> None:
        cutoff = self.clock() - self.window
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.created_at > cutoff]
        expired = before - len(self._alerts)
        if expired:
            logger.debug(f"Expired {expired} alerts older than {self.window}")

    def _emit(self, kind: AlertKind, severity: AlertSeverity, message: str) -> MonitoringAlert:
        alert = MonitoringAlert(
            alert_id=str(uuid.uuid4()),
            kind=kind,
            severity=severity,
            message=message,
            created_at=self.clock(),
        )
        self._alerts.append(alert)
        log = logger.warning if severity == AlertSeverity.HIGH else logger.info
        log(f"[{severity.value}] {kind.value}: {message}")
        return alert

    def observe(self, result: ForecastResult) -> List[MonitoringAlert]:
        """Check a forecast's diagnostics and return the alerts it raised."""
        self._prune()
        d = result.diagnostics
        raised = []

        if d.mape > self.config.mape_alert_threshold:
            severity = (
                AlertSeverity.HIGH if d.mape > self.config.mape_high_threshold else AlertSeverity.MEDIUM
            )
            raised.append(self._emit(
                AlertKind.ACCURACY,
                severity,
                f"Backtest MAPE {d.mape:.1f}% exceeds {self.config.mape_alert_threshold:.0f}%",
            ))

        if d.anomaly_flag:
            detail = ", ".join(d.anomaly_periods) if d.anomaly_periods else "observed floor applied"
            raised.append(self._emit(
                AlertKind.ANOMALY, AlertSeverity.MEDIUM, f"Anomalies detected ({detail})"
            ))

        if d.data_quality == ForecastDataQuality.LOW:
            raised.append(self._emit(
                AlertKind.DATA_QUALITY,
                AlertSeverity.MEDIUM,
                "Forecast history is short or has gaps; data quality is low",
            ))

        if d.divergence > self.config.divergence_threshold:
            raised.append(self._emit(
                AlertKind.DIVERGENCE,
                AlertSeverity.MEDIUM,
                f"Component estimates diverge by {d.divergence * 100:.0f}% "
                f"(threshold {self.config.divergence_threshold * 100:.0f}%)",
            ))

        return raised

    def active_alerts(self, include_resolved: bool = False) -> List[MonitoringAlert]:
        self._prune()
        if include_resolved:
            return list(self._alerts)
        return [a for a in self._alerts if not a.resolved]

    def resolve(self, alert_id: str) -> bool:
        """Mark an alert resolved; False if it is unknown or already expired."""
        self._prune()
        for i, alert in enumerate(self._alerts):
            if alert.alert_id == alert_id:
                self._alerts[i] = replace(alert, resolved=True)
                logger.info(f"Alert {alert_id} resolved")
                return True
        return False

    def trigger_recalibration(
        self,
        engine: ForecastEngine,
        history: HistoryInput,
        current: Optional[CurrentPeriod] = None,
    ) -> ForecastResult:
        """
        Re-run the forecast pipeline, observe the fresh result and record a
        low-severity confirmation. No model parameters are persisted.
        """
        logger.info("Manual recalibration requested")
        result = engine.forecast(history, current)
        self.observe(result)
        self._emit(
            AlertKind.ACCURACY,
            AlertSeverity.LOW,
            f"Recalibration completed: forecast {result.point_estimate:.1f}, "
            f"confidence {result.confidence:.2f}",
        )
        return result


__all__ = ["MonitoringAlert", "ForecastMonitor"]
