"""
Shared fixtures for recruitment_model tests.
"""
from datetime import datetime, timedelta

import pandas as pd
import pytest

from recruitment_model.state.observations import Observation


class FakeClock:
    """Manually advanced clock for cache and alert expiry tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 15, 12, 0, 0))


def make_frame(rows):
    """rows: iterable of (timestamp, value, entity_id)."""
    return pd.DataFrame(rows, columns=["timestamp", "value", "entity_id"])


def daily_log(start: str, days: int, per_day: int, value: float = 100.0, entity: str = "e"):
    """per_day observations on each of ``days`` consecutive days."""
    base = pd.Timestamp(start)
    rows = []
    for d in range(days):
        for k in range(per_day):
            rows.append((base + pd.Timedelta(days=d, hours=k % 12), value, f"{entity}{k}"))
    return make_frame(rows)


def entity_log(entity_id: str, first: str, days_between, value: float = 1.0):
    """Observations for one entity at offsets (days) from ``first``."""
    base = pd.Timestamp(first)
    return [Observation(base + pd.Timedelta(days=d), value, entity_id) for d in days_between]


@pytest.fixture
def make_daily_log():
    return daily_log


@pytest.fixture
def make_entity_log():
    return entity_log


@pytest.fixture
def thirty_identical_days():
    return daily_log("2024-05-01", days=30, per_day=10)


@pytest.fixture
def workforce_log():
    """
    Twelve entities with three activities each, tenures 1..12 months
    (in 30.44-day units), all starting January 2024.
    """
    observations = []
    for i in range(1, 13):
        span = round(30.44 * i)
        observations.extend(entity_log(f"w{i}", "2024-01-02", [0, span // 2, span]))
    return observations
