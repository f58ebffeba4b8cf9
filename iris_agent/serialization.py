"""JSON helpers for observations and HTTP payloads."""

import json
import math
from dataclasses import asdict, is_dataclass
from typing import Any

import numpy as np
import pandas as pd


def to_jsonable(obj: Any) -> Any:
    """
    Recursively convert tool results into plain JSON-compatible values.

    DataFrames become lists of record dicts, dataclasses become dicts, numpy
    scalars become Python scalars and NaN becomes None.
    """
    if isinstance(obj, pd.DataFrame):
        return [to_jsonable(r) for r in obj.to_dict(orient="records")]
    if isinstance(obj, pd.Series):
        return to_jsonable(obj.tolist())
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, np.ndarray)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        f = float(obj)
        return None if math.isnan(f) or math.isinf(f) else f
    if obj is pd.NA or obj is pd.NaT:
        return None
    return obj


def safe_json(obj: Any) -> str:  # fallback for json.dumps(default=...)
    return str(obj)


def dumps(obj: Any) -> str:
    return json.dumps(to_jsonable(obj), default=safe_json)
