# iris_analysis/outliers/exec.py
"""
Outlier detection on one numeric column.

Methods:
- "iqr":    flag values outside [Q1 - 1.5·IQR, Q3 + 1.5·IQR];
            rows are annotated with outlier_reason = below_q1 | above_q3.
- "zscore": flag values with |z| > 2 using the sample mean and sample std;
            rows are annotated with z_score.

No outliers is a normal outcome and yields an empty frame.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy import stats

from iris_analysis.errors import InvalidArgumentError
from iris_analysis.shared.data_access import numeric_values

IQR_FACTOR = 1.5
Z_THRESHOLD = 2.0


def find_outliers(df: pd.DataFrame, column: str, method: str = "iqr") -> pd.DataFrame:
    method = (method or "iqr").strip().lower()
    if method not in {"iqr", "zscore"}:
        raise InvalidArgumentError(f"Outlier method must be 'iqr' or 'zscore', got '{method}'.")

    x = numeric_values(df, column)
    if x.size == 0:
        return df.iloc[0:0].copy()

    values = pd.to_numeric(df[column], errors="coerce")

    if method == "iqr":
        q1, q3 = np.percentile(x, [25, 75], method="linear")
        iqr = q3 - q1
        lower, upper = q1 - IQR_FACTOR * iqr, q3 + IQR_FACTOR * iqr
        flagged = df[(values < lower) | (values > upper)].copy()
        flagged["outlier_reason"] = np.where(flagged[column] < lower, "below_q1", "above_q3")
        return flagged.reset_index(drop=True)

    # zscore: undefined spread (n < 2 or constant column) means nothing stands out
    if x.size < 2 or np.std(x, ddof=1) == 0:
        return df.iloc[0:0].copy()
    z = pd.Series(stats.zscore(values.to_numpy(dtype=float), ddof=1, nan_policy="omit"), index=df.index)
    flagged = df[z.abs() > Z_THRESHOLD].copy()
    flagged["z_score"] = z[z.abs() > Z_THRESHOLD].astype(float)
    return flagged.reset_index(drop=True)
