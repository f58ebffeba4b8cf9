# iris_analysis/confidence/exec.py
"""
Normal-approximation confidence interval for the mean of a numeric column.

bounds = mean ± z · (s / √n), with s the sample standard deviation and z
taken from a fixed table of supported confidence levels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import pandas as pd

from iris_analysis.errors import InvalidArgumentError
from iris_analysis.shared.data_access import numeric_values

Z_VALUES: Dict[float, float] = {0.90: 1.645, 0.95: 1.96, 0.99: 2.576}


@dataclass(frozen=True)
class ConfidenceInterval:
    mean: float
    lower_bound: float
    upper_bound: float
    confidence: float
    sample_size: int


def z_value(confidence: float) -> float:
    """Look up z for a supported level (0.90, 0.95, 0.99)."""
    for level, z in Z_VALUES.items():
        if confidence is not None and np.isclose(confidence, level):
            return z
    raise InvalidArgumentError(
        f"Unsupported confidence level {confidence}; use one of {sorted(Z_VALUES)}."
    )


def confidence_interval(
    df: pd.DataFrame,
    column: str,
    confidence: float = 0.95,
) -> Optional[ConfidenceInterval]:
    """Interval around the mean of ``column``; ``None`` with fewer than two values."""
    z = z_value(confidence)
    x = numeric_values(df, column)
    n = int(x.size)
    if n < 2:
        return None

    m = float(np.mean(x))
    margin = z * float(np.std(x, ddof=1)) / np.sqrt(n)
    return ConfidenceInterval(
        mean=m,
        lower_bound=float(m - margin),
        upper_bound=float(m + margin),
        confidence=float(confidence),
        sample_size=n,
    )
