# iris_analysis/shared/data_access.py
"""
Shared data-access utilities for the Iris tools.

These functions abstract away the details of loading and validating the
fixed Iris record set that every statistical tool works on.

Included:
- load_iris(path)
- require_column(df, column)
- numeric_values(df, column)
- stringify_value(value)

They're intentionally lightweight: these helpers don't compute stats,
only ensure the data going into the tools is well-formed.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from iris_analysis.errors import DataLoadError, InvalidArgumentError

logger = logging.getLogger(__name__)

ID_COLUMN = "Id"
SPECIES_COLUMN = "Species"
NUMERIC_COLUMNS: List[str] = ["SepalLengthCm", "SepalWidthCm", "PetalLengthCm", "PetalWidthCm"]
REQUIRED_COLUMNS: List[str] = [ID_COLUMN, *NUMERIC_COLUMNS, SPECIES_COLUMN]
SPECIES: List[str] = ["Iris-setosa", "Iris-versicolor", "Iris-virginica"]

DEFAULT_CSV_PATH = Path(__file__).resolve().parent.parent / "data" / "Iris.csv"


# -----------------------------------------------------
# Load the record set
# -----------------------------------------------------

def load_iris(path: Optional[str] = None) -> pd.DataFrame:
    """
    Load the Iris record set.

    Priority for the source file:
      1. the explicit ``path`` argument
      2. the ``IRIS_CSV_PATH`` environment variable
      3. the CSV bundled with this package

    The parsed frame is cached per path; every call returns a fresh copy so
    callers can never alter the cached snapshot.
    """
    resolved = path or os.getenv("IRIS_CSV_PATH") or str(DEFAULT_CSV_PATH)
    return _load_cached(str(resolved)).copy()


@lru_cache(maxsize=4)
def _load_cached(path: str) -> pd.DataFrame:
    # rows with too many fields are skipped by the parser and counted here
    malformed: List[List[str]] = []

    def _skip_bad_line(fields: List[str]) -> None:
        malformed.append(fields)
        return None

    try:
        raw = pd.read_csv(path, skipinitialspace=True, engine="python", on_bad_lines=_skip_bad_line)
    except FileNotFoundError as e:
        raise DataLoadError(f"Iris dataset not found at '{path}'.") from e
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Iris dataset at '{path}' could not be parsed: {e}") from e

    missing = [c for c in REQUIRED_COLUMNS if c not in raw.columns]
    if missing:
        raise DataLoadError(f"Iris dataset at '{path}' is missing required columns: {missing}")

    df = raw[REQUIRED_COLUMNS].copy()
    for c in [ID_COLUMN, *NUMERIC_COLUMNS]:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    df[SPECIES_COLUMN] = df[SPECIES_COLUMN].astype("string").str.strip()

    # Rows with an unparseable field or an unknown species are corrupt
    valid = df[REQUIRED_COLUMNS].notna().all(axis=1) & df[SPECIES_COLUMN].isin(SPECIES)
    dropped = int((~valid).sum()) + len(malformed)
    df = df[valid].reset_index(drop=True)

    if df.empty:
        raise DataLoadError(f"Iris dataset at '{path}' has no valid rows.")

    df[ID_COLUMN] = df[ID_COLUMN].astype(int)
    df[NUMERIC_COLUMNS] = df[NUMERIC_COLUMNS].astype(float)
    df[SPECIES_COLUMN] = df[SPECIES_COLUMN].astype(object)
    df.attrs["dropped_rows"] = dropped

    if dropped:
        logger.warning("Dropped %d corrupt row(s) while loading %s", dropped, path)
    logger.info("Loaded %d Iris records from %s", len(df), path)
    return df


# -----------------------------------------------------
# Column validation
# -----------------------------------------------------

def require_column(df: pd.DataFrame, column: str) -> str:
    """Return ``column`` if it exists in ``df``; raise InvalidArgumentError otherwise."""
    if not column or column not in df.columns:
        raise InvalidArgumentError(
            f"Column '{column}' not found. Available columns: {list(df.columns)}"
        )
    return column


def numeric_values(df: pd.DataFrame, column: str) -> np.ndarray:
    """
    Return the values of a numeric column as a float array (NaNs removed).

    Raises InvalidArgumentError for unknown or non-numeric columns.
    """
    require_column(df, column)
    if column not in NUMERIC_COLUMNS and not pd.api.types.is_numeric_dtype(df[column]):
        raise InvalidArgumentError(f"Column '{column}' is not numeric.")
    values = pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=float)
    return values[~np.isnan(values)]


def stringify_value(value: Any) -> str:
    """
    Canonical text form of a cell, used for grouping keys and equality counts.

    Integral numbers drop the fractional part so 5, 5.0 and "5.0" all map to "5".
    """
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        f = float(value)
        return str(int(f)) if f.is_integer() else str(f)
    if isinstance(value, str):
        try:
            f = float(value)
        except ValueError:
            return value
        return str(int(f)) if f.is_integer() else str(f)
    return str(value)
