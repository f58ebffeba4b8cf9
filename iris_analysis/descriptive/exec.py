# iris_analysis/descriptive/exec.py
"""
Descriptive statistics over one numeric column of a record set.

Conventions shared by every function here:
- Standard deviation and variance are sample statistics (ddof=1).
- An empty column yields ``None`` (the "no data" result) instead of NaN,
  so a missing value never silently propagates into a comparison.
- Unknown or non-numeric columns raise InvalidArgumentError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from iris_analysis.errors import InvalidArgumentError
from iris_analysis.shared.data_access import NUMERIC_COLUMNS, numeric_values, require_column, stringify_value


@dataclass(frozen=True)
class DescriptiveStats:
    """Summary bundle for one numeric column over one record set."""

    count: int
    mean: float
    median: float
    standard_deviation: Optional[float]
    variance: Optional[float]
    min: float
    max: float
    q25: float
    q75: float


# -----------------------------
# Scalar statistics
# -----------------------------

def mean(df: pd.DataFrame, column: str) -> Optional[float]:
    x = numeric_values(df, column)
    return float(np.mean(x)) if x.size else None


def median(df: pd.DataFrame, column: str) -> Optional[float]:
    x = numeric_values(df, column)
    return float(np.median(x)) if x.size else None


def standard_deviation(df: pd.DataFrame, column: str) -> Optional[float]:
    """Sample standard deviation; ``None`` with fewer than two values."""
    x = numeric_values(df, column)
    return float(np.std(x, ddof=1)) if x.size >= 2 else None


def variance(df: pd.DataFrame, column: str) -> Optional[float]:
    """Sample variance; ``None`` with fewer than two values."""
    x = numeric_values(df, column)
    return float(np.var(x, ddof=1)) if x.size >= 2 else None


def minimum(df: pd.DataFrame, column: str) -> Optional[float]:
    x = numeric_values(df, column)
    return float(np.min(x)) if x.size else None


def maximum(df: pd.DataFrame, column: str) -> Optional[float]:
    x = numeric_values(df, column)
    return float(np.max(x)) if x.size else None


def percentile(df: pd.DataFrame, column: str, p: float) -> Optional[float]:
    """
    Linear-interpolation percentile of a numeric column.

    ``p`` is on the 0-100 scale; anything outside it raises InvalidArgumentError.
    """
    if p is None or not np.isfinite(p) or p < 0 or p > 100:
        raise InvalidArgumentError(f"Percentile must be between 0 and 100, got {p}.")
    x = numeric_values(df, column)
    if x.size == 0:
        return None
    return float(np.percentile(x, p, method="linear"))


def count_value(df: pd.DataFrame, column: str, value: Any) -> int:
    """Number of rows whose ``column`` value equals ``value`` once both are stringified."""
    require_column(df, column)
    if df.empty:
        return 0
    target = stringify_value(value)
    return int(df[column].map(stringify_value).eq(target).sum())


# -----------------------------
# Correlation
# -----------------------------

def correlation(df: pd.DataFrame, column1: str, column2: str) -> Optional[float]:
    """
    Pearson product-moment correlation between two numeric columns.

    Returns 0.0 when either column has zero variance and ``None`` on an empty
    record set. Rows where either value is missing are ignored pairwise.
    """
    numeric_values(df, column1)
    numeric_values(df, column2)

    pair = df[[column1, column2]].apply(pd.to_numeric, errors="coerce").dropna()
    x = pair[column1].to_numpy(dtype=float)
    y = pair[column2].to_numpy(dtype=float)
    if x.size == 0:
        return None

    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sqrt(np.sum(dx * dx) * np.sum(dy * dy))
    if denominator == 0:
        return 0.0
    r = float(np.sum(dx * dy) / denominator)
    return max(-1.0, min(1.0, r))


def correlation_matrix(df: pd.DataFrame) -> Dict[str, Dict[str, Optional[float]]]:
    """Pairwise Pearson correlations across the four numeric features present in ``df``."""
    columns = [c for c in NUMERIC_COLUMNS if c in df.columns]
    if not columns:
        raise InvalidArgumentError("No numeric feature columns available for a correlation matrix.")
    return {a: {b: correlation(df, a, b) for b in columns} for a in columns}


# -----------------------------
# Bundle
# -----------------------------

def descriptive_stats(df: pd.DataFrame, column: str) -> Optional[DescriptiveStats]:
    """
    Count, mean, median, sample std/variance, min, max and quartiles of a column.

    Returns ``None`` when the column has no values.
    """
    x = numeric_values(df, column)
    if x.size == 0:
        return None

    q25, q50, q75 = np.percentile(x, [25, 50, 75], method="linear")
    return DescriptiveStats(
        count=int(x.size),
        mean=float(np.mean(x)),
        median=float(q50),
        standard_deviation=float(np.std(x, ddof=1)) if x.size >= 2 else None,
        variance=float(np.var(x, ddof=1)) if x.size >= 2 else None,
        min=float(np.min(x)),
        max=float(np.max(x)),
        q25=float(q25),
        q75=float(q75),
    )
