# utils/status_enums.py

from enum import Enum


class CapacityDataQuality(Enum):
    """Quality tiers for a capacity history window."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ForecastDataQuality(Enum):
    """Quality tiers for a monthly forecast history."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EntityStatus(Enum):
    """Activity status of a tracked entity."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class ProjectionRealism(Enum):
    """Severity of a projection that exceeds historical capacity."""

    OPTIMISTIC_BUT_POSSIBLE = "optimistic_but_possible"
    HIGHLY_UNLIKELY = "highly_unlikely"
    IMPOSSIBLE = "impossible"


class ConfidenceLevel(Enum):
    """Label attached to a forecast confidence score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertKind(Enum):
    """Categories of monitoring alerts."""

    ACCURACY = "accuracy"
    ANOMALY = "anomaly"
    DIVERGENCE = "divergence"
    DATA_QUALITY = "data_quality"


class AlertSeverity(Enum):
    """Severity levels of monitoring alerts."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ForecastStage(Enum):
    """Stages of a single forecast computation."""

    COLLECT_HISTORY = "collect_history"
    COMPUTE_COMPONENTS = "compute_components"
    BLEND = "blend"
    DIAGNOSE = "diagnose"
    DONE = "done"


# Explicit exports
__all__ = [
    "CapacityDataQuality",
    "ForecastDataQuality",
    "ConfidenceLevel",
    "EntityStatus",
    "ProjectionRealism",
    "AlertKind",
    "AlertSeverity",
    "ForecastStage",
]
