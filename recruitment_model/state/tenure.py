# recruitment_model/state/tenure.py
"""Per-entity permanence (tenure) derived from an observation log.

An entity's tenure is the elapsed time between its first and last observed
activity, measured in mean-length months (30.44 days). Entities with fewer
than ``min_observations`` activities are not analysable and are excluded
rather than imputed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

import pandas as pd

from recruitment_model.config.constants import DAYS_PER_MONTH
from recruitment_model.state.observations import ObservationInput, observations_to_frame
from recruitment_model.state.schema import (
    ACTIVITY_COUNT,
    COHORT_ID,
    ENTITY_ID,
    FIRST_ACTIVITY,
    LAST_ACTIVITY,
    STATUS,
    TENURE_MONTHS,
    TIMESTAMP,
)
from recruitment_model.utils.date_utils import DateLike, to_timestamp
from recruitment_model.utils.status_enums import EntityStatus

logger = logging.getLogger(__name__)

DEFAULT_INACTIVITY_THRESHOLD_DAYS = 60


@dataclass(frozen=True)
class EntityPermanenceRecord:
    entity_id: str
    first_activity: datetime
    last_activity: datetime
    activity_count: int
    tenure_months: float
    status: EntityStatus

    @property
    def cohort_id(self) -> str:
        """Calendar month of the first activity, 'YYYY-MM'."""
        return self.first_activity.strftime("%Y-%m")


def permanence_frame(
    observations: ObservationInput,
    as_of: DateLike,
    min_observations: int = 3,
    inactivity_threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS,
) -> pd.DataFrame:
    """
    Vectorised permanence calculation, one row per qualifying entity.

    Columns: entity_id, first_activity, last_activity, activity_count,
    tenure_months, status (EntityStatus value) and cohort_id.
    """
    df = observations_to_frame(observations)
    columns = [ENTITY_ID, FIRST_ACTIVITY, LAST_ACTIVITY, ACTIVITY_COUNT, TENURE_MONTHS, STATUS, COHORT_ID]
    if df.empty:
        return pd.DataFrame(columns=columns)

    spans = df.groupby(ENTITY_ID)[TIMESTAMP].agg(["min", "max", "size"]).reset_index()
    spans.columns = [ENTITY_ID, FIRST_ACTIVITY, LAST_ACTIVITY, ACTIVITY_COUNT]

    excluded = int((spans[ACTIVITY_COUNT] < min_observations).sum())
    spans = spans.loc[spans[ACTIVITY_COUNT] >= min_observations].copy()
    if excluded:
        logger.debug(
            f"Excluded {excluded} entities with fewer than {min_observations} observations"
        )
    if spans.empty:
        return pd.DataFrame(columns=columns)

    as_of_ts = to_timestamp(as_of)
    elapsed = spans[LAST_ACTIVITY] - spans[FIRST_ACTIVITY]
    spans[TENURE_MONTHS] = elapsed / pd.Timedelta(days=1) / DAYS_PER_MONTH
    idle_days = (as_of_ts - spans[LAST_ACTIVITY]) / pd.Timedelta(days=1)
    spans[STATUS] = [
        EntityStatus.INACTIVE if idle > inactivity_threshold_days else EntityStatus.ACTIVE
        for idle in idle_days
    ]
    spans[COHORT_ID] = spans[FIRST_ACTIVITY].dt.strftime("%Y-%m")
    return spans[columns].reset_index(drop=True)


def build_permanence_records(
    observations: ObservationInput,
    as_of: DateLike,
    min_observations: int = 3,
    inactivity_threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS,
) -> List[EntityPermanenceRecord]:
    """EntityPermanenceRecord for every entity with at least min_observations activities."""
    frame = permanence_frame(observations, as_of, min_observations, inactivity_threshold_days)
    return [
        EntityPermanenceRecord(
            entity_id=row[ENTITY_ID],
            first_activity=row[FIRST_ACTIVITY].to_pydatetime(),
            last_activity=row[LAST_ACTIVITY].to_pydatetime(),
            activity_count=int(row[ACTIVITY_COUNT]),
            tenure_months=float(row[TENURE_MONTHS]),
            status=row[STATUS],
        )
        for _, row in frame.iterrows()
    ]


__all__ = [
    "DEFAULT_INACTIVITY_THRESHOLD_DAYS",
    "EntityPermanenceRecord",
    "permanence_frame",
    "build_permanence_records",
]
