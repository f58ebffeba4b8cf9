# iris_analysis/comparison/exec.py
"""
Group comparisons built from the descriptive and manipulation tools.

Flow:
- cross_tabulation / frequency_table count stringified values, keeping
  first-seen order.
- compare_groups computes a DescriptiveStats bundle per group.
- feature_importance ranks the four features by how far apart the species
  means sit (variance of per-species means around the overall mean),
  normalized to percentages.
- detailed_species_comparison bundles stats + a 95% confidence interval for
  every feature of every species.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from iris_analysis.confidence.exec import confidence_interval
from iris_analysis.descriptive.exec import DescriptiveStats, descriptive_stats, mean
from iris_analysis.errors import InvalidArgumentError
from iris_analysis.manipulation.exec import group_by
from iris_analysis.shared.data_access import NUMERIC_COLUMNS, SPECIES, SPECIES_COLUMN, require_column, stringify_value


# -----------------------------
# Counting
# -----------------------------

def cross_tabulation(df: pd.DataFrame, column1: str, column2: str) -> Dict[str, Dict[str, int]]:
    """Nested counts: column1 value -> column2 value -> number of rows."""
    require_column(df, column1)
    require_column(df, column2)

    counts = df.groupby([df[column1].map(stringify_value), df[column2].map(stringify_value)], sort=False).size()
    table: Dict[str, Dict[str, int]] = {}
    for (k1, k2), n in counts.items():
        table.setdefault(k1, {})[k2] = int(n)
    return table


def frequency_table(df: pd.DataFrame, column: str) -> Dict[str, int]:
    """Value -> number of rows, in first-seen order."""
    require_column(df, column)
    counts = df.groupby(df[column].map(stringify_value), sort=False).size()
    return {str(k): int(v) for k, v in counts.items()}


# -----------------------------
# Group statistics
# -----------------------------

def compare_groups(
    df: pd.DataFrame,
    group_column: str,
    measure_column: str,
) -> Dict[str, Optional[DescriptiveStats]]:
    """Descriptive statistics of ``measure_column`` for every value of ``group_column``."""
    require_column(df, measure_column)
    return {
        key: descriptive_stats(group, measure_column)
        for key, group in group_by(df, group_column).items()
    }


def feature_importance(df: pd.DataFrame) -> Dict[str, float]:
    """
    Share (in %) of between-species separation carried by each numeric feature.

    Requires every species to be present with at least one record.
    """
    require_column(df, SPECIES_COLUMN)
    counts = df[SPECIES_COLUMN].value_counts()
    absent = [sp for sp in SPECIES if counts.get(sp, 0) == 0]
    if absent:
        raise InvalidArgumentError(f"Feature importance needs all three species; missing {absent}.")

    raw: Dict[str, float] = {}
    for column in NUMERIC_COLUMNS:
        require_column(df, column)
        overall = mean(df, column)
        species_means = np.array([mean(df[df[SPECIES_COLUMN] == sp], column) for sp in SPECIES])
        raw[column] = float(np.mean((species_means - overall) ** 2))

    total = sum(raw.values())
    if total == 0:
        return {column: 0.0 for column in raw}
    return {column: value / total * 100 for column, value in raw.items()}


def detailed_species_comparison(df: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
    """Per species: record count and, per feature, descriptive stats with a 95% interval."""
    require_column(df, SPECIES_COLUMN)

    comparison: Dict[str, Dict[str, Any]] = {}
    for sp in SPECIES:
        subset = df[df[SPECIES_COLUMN] == sp]
        statistics: Dict[str, Any] = {}
        for column in NUMERIC_COLUMNS:
            if column not in subset.columns:
                continue
            bundle = descriptive_stats(subset, column)
            ci = confidence_interval(subset, column)
            entry: Dict[str, Any] = asdict(bundle) if bundle is not None else {"count": 0}
            entry["confidence_interval"] = asdict(ci) if ci is not None else None
            statistics[column] = entry
        comparison[sp] = {"count": int(len(subset)), "statistics": statistics}
    return comparison
