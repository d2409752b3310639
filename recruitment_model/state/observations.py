# recruitment_model/state/observations.py
"""
Observation records and their daily/monthly aggregates.

Engines accept either a sequence of ``Observation`` records or a pandas
DataFrame with the columns in ``recruitment_model.state.schema``; both are
normalised through ``observations_to_frame`` before any grouping.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from recruitment_model.errors import InvalidInput
from recruitment_model.state.schema import (
    COUNT,
    DATE,
    ENTITY_ID,
    OBSERVATION_COLUMNS,
    TIMESTAMP,
    TOTAL_VALUE,
    VALUE,
    YEAR_MONTH,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Observation:
    """A single timestamped fact from the operational log."""

    timestamp: datetime
    value: float
    entity_id: str


@dataclass(frozen=True)
class DailyAggregate:
    date: date
    count: int
    total_value: float


@dataclass(frozen=True)
class MonthlyAggregate:
    year_month: str  # 'YYYY-MM'
    count: int
    total_value: float


ObservationInput = Union[pd.DataFrame, Sequence[Observation], None]


def observations_to_frame(observations: ObservationInput) -> pd.DataFrame:
    """
    Normalise observations into a DataFrame with timestamp, value and entity_id.

    Timestamps are coerced to datetime64; rows whose timestamp cannot be parsed
    are dropped with a warning. Missing values default to 1.0 so a bare
    activity log counts each row once.

    Raises:
        InvalidInput: If a DataFrame lacks the timestamp or entity_id column.
    """
    if observations is None:
        return pd.DataFrame({
            TIMESTAMP: pd.Series(dtype="datetime64[ns]"),
            VALUE: pd.Series(dtype=float),
            ENTITY_ID: pd.Series(dtype=object),
        })

    if isinstance(observations, pd.DataFrame):
        missing = [c for c in (TIMESTAMP, ENTITY_ID) if c not in observations.columns]
        if missing:
            raise InvalidInput(f"Observation frame is missing required columns: {missing}")
        df = observations.copy()
        if VALUE not in df.columns:
            df[VALUE] = 1.0
    else:
        df = pd.DataFrame(
            [(o.timestamp, o.value, o.entity_id) for o in observations],
            columns=OBSERVATION_COLUMNS,
        )

    df[TIMESTAMP] = pd.to_datetime(df[TIMESTAMP], errors="coerce")
    if getattr(df[TIMESTAMP].dt, "tz", None) is not None:
        df[TIMESTAMP] = df[TIMESTAMP].dt.tz_convert(None)
    df[VALUE] = pd.to_numeric(df[VALUE], errors="coerce").fillna(1.0).astype(float)

    bad = df[TIMESTAMP].isna()
    if bad.any():
        logger.warning(f"Dropping {int(bad.sum())} observations with unparseable timestamps")
        df = df.loc[~bad]

    df[ENTITY_ID] = df[ENTITY_ID].astype(str)
    return df[OBSERVATION_COLUMNS].reset_index(drop=True)


def filter_window(
    df: pd.DataFrame, start: Optional[pd.Timestamp], end: Optional[pd.Timestamp]
) -> pd.DataFrame:
    """Rows with start <= timestamp <= end; either bound may be None."""
    mask = pd.Series(True, index=df.index)
    if start is not None:
        mask &= df[TIMESTAMP] >= start
    if end is not None:
        mask &= df[TIMESTAMP] <= end
    return df.loc[mask]


def daily_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Group observations by calendar day into count and total_value columns."""
    if df.empty:
        return pd.DataFrame(columns=[DATE, COUNT, TOTAL_VALUE])
    grouped = (
        df.assign(**{DATE: df[TIMESTAMP].dt.normalize()})
        .groupby(DATE)[VALUE]
        .agg(["size", "sum"])
        .rename(columns={"size": COUNT, "sum": TOTAL_VALUE})
        .reset_index()
    )
    return grouped.sort_values(DATE).reset_index(drop=True)


def monthly_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Group observations by calendar month into count and total_value columns."""
    if df.empty:
        return pd.DataFrame(columns=[YEAR_MONTH, COUNT, TOTAL_VALUE])
    grouped = (
        df.assign(**{YEAR_MONTH: df[TIMESTAMP].dt.strftime("%Y-%m")})
        .groupby(YEAR_MONTH)[VALUE]
        .agg(["size", "sum"])
        .rename(columns={"size": COUNT, "sum": TOTAL_VALUE})
        .reset_index()
    )
    return grouped.sort_values(YEAR_MONTH).reset_index(drop=True)


def aggregate_daily(observations: ObservationInput) -> List[DailyAggregate]:
    daily = daily_frame(observations_to_frame(observations))
    return [
        DailyAggregate(date=row[DATE].date(), count=int(row[COUNT]), total_value=float(row[TOTAL_VALUE]))
        for _, row in daily.iterrows()
    ]


def aggregate_monthly(observations: ObservationInput) -> List[MonthlyAggregate]:
    monthly = monthly_frame(observations_to_frame(observations))
    return [
        MonthlyAggregate(year_month=row[YEAR_MONTH], count=int(row[COUNT]), total_value=float(row[TOTAL_VALUE]))
        for _, row in monthly.iterrows()
    ]


def monthly_series(
    aggregates: Iterable[MonthlyAggregate], field: str = COUNT
) -> pd.Series:
    """
    Continuous monthly series indexed by 'YYYY-MM', oldest first.

    Months between the first and last aggregate that have no data are filled
    with zero so downstream smoothing sees an evenly spaced series.
    """
    data = {a.year_month: float(getattr(a, field)) for a in aggregates}
    if not data:
        return pd.Series(dtype=float)
    periods = pd.period_range(min(data), max(data), freq="M")
    keys = [str(p) for p in periods]
    return pd.Series([data.get(k, 0.0) for k in keys], index=keys, dtype=float)


def missing_months(aggregates: Iterable[MonthlyAggregate]) -> int:
    """Number of months absent between the first and last aggregate."""
    keys = sorted(a.year_month for a in aggregates)
    if not keys:
        return 0
    span = len(pd.period_range(keys[0], keys[-1], freq="M"))
    return span - len(set(keys))


def check_finite(values: Iterable[float], name: str) -> np.ndarray:
    arr = np.asarray(list(values), dtype=float)
    if not np.all(np.isfinite(arr)):
        raise InvalidInput(f"{name} contains non-finite values")
    return arr


__all__ = [
    "Observation",
    "DailyAggregate",
    "MonthlyAggregate",
    "ObservationInput",
    "observations_to_frame",
    "filter_window",
    "daily_frame",
    "monthly_frame",
    "aggregate_daily",
    "aggregate_monthly",
    "monthly_series",
    "missing_months",
    "check_finite",
]
