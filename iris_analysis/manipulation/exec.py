# iris_analysis/manipulation/exec.py
"""
Record-set manipulation: filter, sort, group, project, introspect.

Every function returns a new object; the input frame is never modified.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from iris_analysis.errors import InvalidArgumentError
from iris_analysis.shared.data_access import SPECIES, SPECIES_COLUMN, numeric_values, require_column, stringify_value
from iris_analysis.shared.metadata import extract_metadata

ASCENDING = {"ascending", "asc"}
DESCENDING = {"descending", "desc"}


def normalize_species(species: str) -> str:
    """Map short names ("setosa", "Setosa") onto the dataset labels ("Iris-setosa")."""
    if species in SPECIES:
        return species
    candidate = species.strip().lower()
    if candidate.startswith("iris-"):
        candidate = candidate[len("iris-"):]
    for label in SPECIES:
        if label.lower() == f"iris-{candidate}":
            return label
    return species


def filter_records(
    df: pd.DataFrame,
    species: Optional[str] = None,
    column: str = "SepalLengthCm",
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> pd.DataFrame:
    """
    Keep rows matching a species and/or an inclusive numeric range on ``column``.

    An empty result is valid. Applying the same filter twice is a no-op.
    """
    mask = pd.Series(True, index=df.index)

    if species:
        require_column(df, SPECIES_COLUMN)
        mask &= df[SPECIES_COLUMN] == normalize_species(species)

    if min_value is not None or max_value is not None:
        numeric_values(df, column)  # validates the column
        values = pd.to_numeric(df[column], errors="coerce")
        if min_value is not None:
            mask &= values >= min_value
        if max_value is not None:
            mask &= values <= max_value

    return df[mask].reset_index(drop=True)


def sort_records(df: pd.DataFrame, column: str, order: str = "ascending") -> pd.DataFrame:
    """
    Stable sort on one column.

    Numeric columns compare numerically; all others by case-sensitive string
    order. Descending order is exactly the reverse of ascending order.
    """
    require_column(df, column)
    direction = (order or "ascending").strip().lower()
    if direction not in ASCENDING | DESCENDING:
        raise InvalidArgumentError(f"Sort order must be 'ascending' or 'descending', got '{order}'.")

    if pd.api.types.is_numeric_dtype(df[column]):
        ordered = df.sort_values(column, kind="stable")
    else:
        ordered = df.sort_values(column, kind="stable", key=lambda s: s.astype(str))

    if direction in DESCENDING:
        ordered = ordered.iloc[::-1]
    return ordered.reset_index(drop=True)


def group_by(df: pd.DataFrame, column: str) -> Dict[str, pd.DataFrame]:
    """
    Partition rows by the stringified value of ``column``.

    Groups appear in first-seen order and keep the original row order.
    """
    require_column(df, column)
    keys = df[column].map(stringify_value)
    return {
        str(key): group.reset_index(drop=True)
        for key, group in df.groupby(keys, sort=False, dropna=False)
    }


def unique_values(df: pd.DataFrame, column: str) -> List[Any]:
    """Distinct values of ``column`` in first-occurrence order."""
    require_column(df, column)
    return pd.unique(df[column]).tolist()


def select_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """
    Project onto the named columns.

    Unknown column names are silently skipped so that a partially wrong
    request still returns the columns that exist.
    """
    keep = [c for c in dict.fromkeys(columns or []) if c in df.columns]
    return df[keep].copy()


def data_info(df: pd.DataFrame) -> Optional[Dict[str, Any]]:
    """Row count, columns, column types and species summary; ``None`` when empty."""
    if df.empty:
        return None

    species = unique_values(df, SPECIES_COLUMN) if SPECIES_COLUMN in df.columns else []
    return {
        "total_rows": int(len(df)),
        "columns": list(df.columns),
        "column_types": extract_metadata(df),
        "species_count": len(species),
        "unique_species": species,
    }
