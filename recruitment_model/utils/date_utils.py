# recruitment_model/utils/date_utils.py

"""Date utility functions shared by the estimation engines."""

from datetime import date, datetime
from typing import Union

import pandas as pd
from dateutil.relativedelta import relativedelta

from recruitment_model.config.constants import DAYS_PER_MONTH

DateLike = Union[date, datetime, pd.Timestamp, str]


def to_timestamp(value: DateLike) -> pd.Timestamp:
    """Coerce a date-like value to a timezone-naive pandas Timestamp."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


def window_start(as_of: DateLike, months: int) -> pd.Timestamp:
    """
    Start of a trailing window of ``months`` calendar months ending at as_of.

    Month arithmetic goes through relativedelta so month ends clamp correctly
    (e.g. 31 March minus one month is 28/29 February).
    """
    ts = to_timestamp(as_of)
    return pd.Timestamp(ts.to_pydatetime() - relativedelta(months=months))


def month_key(value: DateLike) -> str:
    """Return the 'YYYY-MM' key of the calendar month containing value."""
    return to_timestamp(value).strftime("%Y-%m")


def previous_month_keys(as_of: DateLike, count: int) -> list:
    """
    The ``count`` month keys ending with the month of as_of, oldest first.
    """
    ts = to_timestamp(as_of).to_pydatetime()
    return [
        (ts - relativedelta(months=offset)).strftime("%Y-%m")
        for offset in range(count - 1, -1, -1)
    ]


def completed_month_keys(as_of: DateLike, count: int) -> list:
    """
    The ``count`` month keys ending with the last full month before as_of.

    The month containing as_of is still in progress and is never included.
    """
    ts = to_timestamp(as_of).to_pydatetime()
    return previous_month_keys(ts - relativedelta(months=1), count)


def days_in_month(value: DateLike) -> int:
    return to_timestamp(value).days_in_month


def fraction_of_month_elapsed(as_of: DateLike) -> float:
    """
    Share of the calendar month that has elapsed at as_of, in [0, 1].

    Measured in wall-clock time from midnight on the 1st, so an as_of late on
    the first day already counts most of that day.
    """
    ts = to_timestamp(as_of)
    month_start = ts.normalize() - pd.Timedelta(days=ts.day - 1)
    elapsed = (ts - month_start) / pd.Timedelta(days=ts.days_in_month)
    return min(1.0, max(0.0, float(elapsed)))


def tenure_in_months(first: DateLike, last: DateLike) -> float:
    """Elapsed time between two dates in mean-length months."""
    delta = to_timestamp(last) - to_timestamp(first)
    return delta / pd.Timedelta(days=1) / DAYS_PER_MONTH


__all__ = [
    "to_timestamp",
    "window_start",
    "month_key",
    "previous_month_keys",
    "completed_month_keys",
    "days_in_month",
    "fraction_of_month_elapsed",
    "tenure_in_months",
]
