from .cache import TTLCache, system_clock
from .status_enums import (
    AlertKind,
    AlertSeverity,
    CapacityDataQuality,
    EntityStatus,
    ForecastDataQuality,
)

__all__ = [
    "TTLCache",
    "system_clock",
    "AlertKind",
    "AlertSeverity",
    "CapacityDataQuality",
    "EntityStatus",
    "ForecastDataQuality",
]
