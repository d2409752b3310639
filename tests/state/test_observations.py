"""
Tests for observation normalisation, aggregation and permanence records.
"""
from datetime import date, datetime

import pandas as pd
import pytest

from recruitment_model.errors import InvalidInput
from recruitment_model.state.observations import (
    MonthlyAggregate,
    Observation,
    aggregate_daily,
    aggregate_monthly,
    missing_months,
    monthly_series,
    observations_to_frame,
)
from recruitment_model.state.tenure import build_permanence_records, permanence_frame
from recruitment_model.utils.status_enums import EntityStatus


class TestObservationsToFrame:
    def test_from_records(self):
        df = observations_to_frame([Observation(datetime(2024, 1, 1), 5.0, "a")])
        assert list(df.columns) == ["timestamp", "value", "entity_id"]
        assert df.loc[0, "value"] == 5.0

    def test_missing_value_column_counts_once(self):
        df = observations_to_frame(pd.DataFrame({"timestamp": ["2024-01-01"], "entity_id": [7]}))
        assert df.loc[0, "value"] == 1.0
        assert df.loc[0, "entity_id"] == "7"

    def test_missing_required_column(self):
        with pytest.raises(InvalidInput):
            observations_to_frame(pd.DataFrame({"timestamp": ["2024-01-01"]}))

    def test_unparseable_timestamps_are_dropped(self):
        frame = pd.DataFrame({"timestamp": ["2024-01-01", "not a date"], "entity_id": ["a", "b"]})
        assert len(observations_to_frame(frame)) == 1

    def test_none_is_empty(self):
        assert observations_to_frame(None).empty


def test_daily_and_monthly_aggregates(make_daily_log):
    log = pd.concat([
        make_daily_log("2024-01-30", days=2, per_day=3, value=10.0),
        make_daily_log("2024-03-05", days=1, per_day=1, value=4.0),
    ])
    daily = aggregate_daily(log)
    assert [(d.date, d.count, d.total_value) for d in daily] == [
        (date(2024, 1, 30), 3, 30.0),
        (date(2024, 1, 31), 3, 30.0),
        (date(2024, 3, 5), 1, 4.0),
    ]
    monthly = aggregate_monthly(log)
    assert monthly == [MonthlyAggregate("2024-01", 6, 60.0), MonthlyAggregate("2024-03", 1, 4.0)]
    assert missing_months(monthly) == 1

    series = monthly_series(monthly)
    assert list(series.index) == ["2024-01", "2024-02", "2024-03"]
    assert list(series) == [6.0, 0.0, 1.0]
    assert list(monthly_series(monthly, "total_value")) == [60.0, 0.0, 4.0]


def test_empty_aggregates():
    assert aggregate_monthly([]) == []
    assert monthly_series([]).empty
    assert missing_months([]) == 0


class TestPermanence:
    def test_status_and_exclusion(self, make_entity_log):
        observations = (
            make_entity_log("old", "2024-01-01", [0, 10, 20])
            + make_entity_log("recent", "2024-05-01", [0, 20, 40])
            + make_entity_log("short", "2024-05-01", [0, 5])
        )
        frame = permanence_frame(observations, "2024-06-15")
        assert sorted(frame["entity_id"]) == ["old", "recent"]
        status = dict(zip(frame["entity_id"], frame["status"]))
        assert status == {"old": EntityStatus.INACTIVE, "recent": EntityStatus.ACTIVE}

    def test_records(self, make_entity_log):
        (record,) = build_permanence_records(make_entity_log("a", "2024-02-10", [0, 30.44, 60.88]), "2024-06-15")
        assert record.tenure_months == pytest.approx(2.0)
        assert record.activity_count == 3
        assert record.cohort_id == "2024-02"

    def test_threshold_boundary(self, make_entity_log):
        observations = make_entity_log("a", "2024-04-01", [0, 1, 2])
        # last activity 2024-04-03, exactly 60 days before the reference date
        frame = permanence_frame(observations, "2024-06-02")
        assert frame.loc[0, "status"] == EntityStatus.ACTIVE
        frame = permanence_frame(observations, "2024-06-03")
        assert frame.loc[0, "status"] == EntityStatus.INACTIVE

    def test_empty(self):
        assert permanence_frame([], "2024-06-15").empty
