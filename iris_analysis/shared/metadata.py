"""
Metadata Extraction and Dataset Summary Utilities

This module provides functions for describing the Iris record set: column
types for the tools, and the dataset context the language model sees in its
system prompt.
"""

from typing import Dict, Any
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from iris_analysis.shared.data_access import NUMERIC_COLUMNS, SPECIES_COLUMN


def extract_metadata(df: pd.DataFrame) -> Dict[str, str]:
    """
    Detect column types for the tools.

    Categorizes columns as:
    - "number": int and float columns
    - "string": everything else (species label, stringified values)

    Args:
        df: record set to analyze

    Returns:
        Dictionary mapping column names to their detected types
    """
    metadata = {}
    for col in df.columns:
        s = df[col]
        if is_numeric_dtype(s) and not is_bool_dtype(s):
            metadata[col] = "number"
        else:
            metadata[col] = "string"
    return metadata


def create_dataset_summary(df: pd.DataFrame, n_rows: int = 5) -> str:
    """
    Build the dataset summary text appended to the system prompt.

    This informs the LLM about:
    - Column names and types
    - A short preview of the rows
    - Species balance
    """
    metadata = extract_metadata(df)
    schema_text = "\n".join(f"- {col}: {col_type}" for col, col_type in metadata.items())

    with pd.option_context("display.max_colwidth", 20, "display.max_columns", 10):
        preview = df.head(n_rows).to_string(index=False)

    species_counts: Dict[str, Any] = {}
    if SPECIES_COLUMN in df.columns:
        species_counts = {str(k): int(v) for k, v in df[SPECIES_COLUMN].value_counts(sort=False).items()}

    numeric = [c for c in NUMERIC_COLUMNS if c in df.columns]

    return (
        "Dataset Summary\n\n"
        f"Schema:\n{schema_text}\n\n"
        f"Sample data (first {n_rows} rows):\n{preview}\n\n"
        f"Total rows: {len(df):,}\n"
        f"Numeric feature columns: {numeric}\n"
        f"Species counts: {species_counts}\n"
    )
