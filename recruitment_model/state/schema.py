# recruitment_model/state/schema.py
"""Centralized column names for observation logs and derived frames.

All other modules should import from here for consistency.
"""

# Observation log columns
TIMESTAMP = "timestamp"
VALUE = "value"
ENTITY_ID = "entity_id"

OBSERVATION_COLUMNS = [TIMESTAMP, VALUE, ENTITY_ID]

# Derived aggregate columns
DATE = "date"
YEAR_MONTH = "year_month"
COUNT = "count"
TOTAL_VALUE = "total_value"

# Entity permanence columns
FIRST_ACTIVITY = "first_activity"
LAST_ACTIVITY = "last_activity"
ACTIVITY_COUNT = "activity_count"
TENURE_MONTHS = "tenure_months"
STATUS = "status"
COHORT_ID = "cohort_id"

__all__ = [
    "TIMESTAMP",
    "VALUE",
    "ENTITY_ID",
    "OBSERVATION_COLUMNS",
    "DATE",
    "YEAR_MONTH",
    "COUNT",
    "TOTAL_VALUE",
    "FIRST_ACTIVITY",
    "LAST_ACTIVITY",
    "ACTIVITY_COUNT",
    "TENURE_MONTHS",
    "STATUS",
    "COHORT_ID",
]
