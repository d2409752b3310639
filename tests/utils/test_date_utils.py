from datetime import date, datetime

import pandas as pd
import pytest

from recruitment_model.utils.date_utils import (
    completed_month_keys,
    days_in_month,
    fraction_of_month_elapsed,
    month_key,
    previous_month_keys,
    tenure_in_months,
    to_timestamp,
    window_start,
)


def test_to_timestamp_drops_timezone():
    ts = to_timestamp(pd.Timestamp("2024-06-15 12:00", tz="UTC"))
    assert ts.tzinfo is None
    assert ts == pd.Timestamp("2024-06-15 12:00")


def test_window_start_clamps_month_end():
    assert window_start("2024-03-31", 1) == pd.Timestamp("2024-02-29")
    assert window_start(datetime(2024, 6, 15, 12), 12) == pd.Timestamp("2023-06-15 12:00")


def test_month_keys():
    assert month_key(date(2024, 2, 10)) == "2024-02"
    assert previous_month_keys("2024-02-10", 3) == ["2023-12", "2024-01", "2024-02"]
    assert previous_month_keys("2024-02-10", 0) == []


def test_completed_month_keys_exclude_current_month():
    assert completed_month_keys("2024-02-10", 3) == ["2023-11", "2023-12", "2024-01"]
    assert completed_month_keys("2024-03-31 23:00", 1) == ["2024-02"]
    assert completed_month_keys("2024-03-01", 0) == []


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-02-01", 0.0),
        ("2024-02-15", 14 / 29),
        ("2023-02-15", 14 / 28),
        ("2024-06-30", 29 / 30),
        ("2024-03-01 12:00", 0.5 / 31),
        ("2024-03-02 23:00", (1 + 23 / 24) / 31),
        ("2024-06-30 23:59:59", (30 - 1 / 86400) / 30),
    ],
)
def test_fraction_of_month_elapsed(value, expected):
    assert fraction_of_month_elapsed(value) == pytest.approx(expected)


def test_fraction_of_month_elapsed_counts_hours_on_first_day():
    assert fraction_of_month_elapsed(datetime(2024, 3, 1, 23)) > 0.0


def test_days_and_tenure():
    assert days_in_month("2024-02-03") == 29
    assert tenure_in_months("2024-01-01", pd.Timestamp("2024-01-01") + pd.Timedelta(days=30.44)) == pytest.approx(1.0)
