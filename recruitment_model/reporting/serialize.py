# recruitment_model/reporting/serialize.py
"""Convert result value objects into JSON-ready structures."""

import dataclasses
import json
from datetime import date, datetime
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd


def to_serializable(obj: Any) -> Any:
    """
    Recursively convert dataclasses, enums, dates and numpy scalars into
    plain dicts, lists, strings and numbers.

    Dataclass properties are not included, only declared fields plus an
    ``is_degraded`` flag on forecast results so consumers can branch on it.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        data = {f.name: to_serializable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
        if hasattr(obj, "is_degraded"):
            data["is_degraded"] = obj.is_degraded
        return data
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (pd.Timestamp, datetime, date)):
        return obj.isoformat()
    if isinstance(obj, np.generic):
        return to_serializable(obj.item())
    if isinstance(obj, dict):
        return {str(k): to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_serializable(v) for v in obj]
    if isinstance(obj, float) and not np.isfinite(obj):
        return None
    return obj


def to_json(obj: Any, indent: int = 2) -> str:
    return json.dumps(to_serializable(obj), indent=indent)


__all__ = ["to_serializable", "to_json"]
