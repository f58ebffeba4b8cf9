"""
Tool Registry

This module defines the tools the model can call and the typed input each one
accepts. The model sees the tool names, descriptions and JSON schemas in its
system prompt; the dispatcher uses the same pydantic models to validate the
``input`` of every action before the tool runs.

Every input accepts a ``data`` field: "iris" (the full dataset, default),
"lastResult" (the most recent record-set result) or an inline list of records.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from iris_analysis.comparison.exec import (
    compare_groups,
    cross_tabulation,
    detailed_species_comparison,
    feature_importance,
    frequency_table,
)
from iris_analysis.confidence.exec import confidence_interval
from iris_analysis.descriptive.exec import (
    correlation,
    correlation_matrix,
    count_value,
    descriptive_stats,
    maximum,
    mean,
    median,
    minimum,
    percentile,
    standard_deviation,
    variance,
)
from iris_analysis.manipulation.exec import (
    data_info,
    filter_records,
    group_by,
    select_columns,
    sort_records,
    unique_values,
)
from iris_analysis.outliers.exec import find_outliers

DataReference = Union[str, List[Dict[str, Any]]]

DATA_MANIPULATION = "DATA MANIPULATION"
STATISTICAL_ANALYSIS = "STATISTICAL ANALYSIS"
ANALYSIS_TOOLS = "ANALYSIS TOOLS"


# ----------------------------
# Input models
# ----------------------------

class ToolInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    data: DataReference = Field(
        default="iris",
        description='"iris" for the full dataset, "lastResult" for the previous record-set result.',
    )

    def kwargs(self) -> Dict[str, Any]:
        """Arguments passed to the tool implementation (everything but ``data``)."""
        return self.model_dump(exclude={"data"})


class ColumnInput(ToolInput):
    column: str


class PercentileInput(ToolInput):
    column: str
    p: float = Field(alias="percentile", description="Percentile between 0 and 100.")


class CountInput(ToolInput):
    column: str
    value: Union[float, str]


class ColumnPairInput(ToolInput):
    column1: str
    column2: str


class SortInput(ToolInput):
    column: str
    order: str = Field(default="ascending", description='"ascending" or "descending".')


class SelectColumnsInput(ToolInput):
    columns: List[str]


class FilterInput(ToolInput):
    species: Optional[str] = None
    column: str = Field(default="SepalLengthCm", description="Numeric column the range applies to.")
    min_value: Optional[float] = Field(default=None, alias="minValue")
    max_value: Optional[float] = Field(default=None, alias="maxValue")
    min_sepal_length: Optional[float] = Field(default=None, alias="minSepalLength")
    max_sepal_length: Optional[float] = Field(default=None, alias="maxSepalLength")

    @model_validator(mode="after")
    def _sepal_length_shorthand(self) -> "FilterInput":
        if self.min_sepal_length is None and self.max_sepal_length is None:
            return self
        if self.min_value is not None or self.max_value is not None:
            raise ValueError("Use either minValue/maxValue or minSepalLength/maxSepalLength, not both.")
        self.column = "SepalLengthCm"
        self.min_value = self.min_sepal_length
        self.max_value = self.max_sepal_length
        return self

    def kwargs(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"data", "min_sepal_length", "max_sepal_length"})


class CompareGroupsInput(ToolInput):
    group_column: str = Field(alias="groupColumn")
    measure_column: str = Field(alias="measureColumn")


class OutliersInput(ToolInput):
    column: str
    method: str = Field(default="iqr", description='"iqr" or "zscore".')


class ConfidenceInput(ToolInput):
    column: str
    confidence: float = Field(default=0.95, description="0.90, 0.95 or 0.99.")


# ----------------------------
# Registry
# ----------------------------

@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[ToolInput]
    handler: Callable[..., Any]
    category: str


class ToolRegistry:
    """Explicit name -> ToolSpec table handed to the dispatcher and the prompt builder."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        self._tools[spec.name] = spec

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)


def _spec(name, description, input_model, handler, category) -> ToolSpec:
    return ToolSpec(name=name, description=description, input_model=input_model, handler=handler, category=category)


ALL_TOOLS: List[ToolSpec] = [
    # Data manipulation
    _spec("filterIrisData",
          "Filter rows by species and/or an inclusive numeric range (minValue/maxValue) on one column.",
          FilterInput, filter_records, DATA_MANIPULATION),
    _spec("sortData", "Stable sort by a column, ascending or descending.",
          SortInput, sort_records, DATA_MANIPULATION),
    _spec("groupBy", "Group rows by the values of a column.",
          ColumnInput, group_by, DATA_MANIPULATION),
    _spec("getUniqueValues", "Distinct values of a column in first-occurrence order.",
          ColumnInput, unique_values, DATA_MANIPULATION),
    _spec("selectColumns", "Keep only the named columns (unknown names are ignored).",
          SelectColumnsInput, select_columns, DATA_MANIPULATION),
    _spec("getDataInfo", "Row count, columns, column types and species summary.",
          ToolInput, data_info, DATA_MANIPULATION),

    # Statistical analysis
    _spec("calculateMean", "Mean of a numeric column.", ColumnInput, mean, STATISTICAL_ANALYSIS),
    _spec("calculateMedian", "Median of a numeric column.", ColumnInput, median, STATISTICAL_ANALYSIS),
    _spec("calculateStandardDeviation", "Sample standard deviation of a numeric column.",
          ColumnInput, standard_deviation, STATISTICAL_ANALYSIS),
    _spec("calculateVariance", "Sample variance of a numeric column.",
          ColumnInput, variance, STATISTICAL_ANALYSIS),
    _spec("calculateCount", "Number of rows where a column equals a value.",
          CountInput, count_value, STATISTICAL_ANALYSIS),
    _spec("calculateCorrelation", "Pearson correlation between two numeric columns.",
          ColumnPairInput, correlation, STATISTICAL_ANALYSIS),
    _spec("calculateMin", "Minimum of a numeric column.", ColumnInput, minimum, STATISTICAL_ANALYSIS),
    _spec("calculateMax", "Maximum of a numeric column.", ColumnInput, maximum, STATISTICAL_ANALYSIS),
    _spec("calculatePercentile", "Percentile (0-100) of a numeric column, linear interpolation.",
          PercentileInput, percentile, STATISTICAL_ANALYSIS),
    _spec("getDescriptiveStats",
          "Count, mean, median, standard deviation, variance, min, max, 25th and 75th percentiles.",
          ColumnInput, descriptive_stats, STATISTICAL_ANALYSIS),
    _spec("generateCorrelationMatrix", "Pearson correlations between all numeric features.",
          ToolInput, correlation_matrix, STATISTICAL_ANALYSIS),

    # Analysis tools
    _spec("createCrossTabulation", "Counts for every combination of two columns.",
          ColumnPairInput, cross_tabulation, ANALYSIS_TOOLS),
    _spec("createFrequencyTable", "Counts of each value of a column.",
          ColumnInput, frequency_table, ANALYSIS_TOOLS),
    _spec("compareGroups", "Descriptive statistics of measureColumn for each value of groupColumn.",
          CompareGroupsInput, compare_groups, ANALYSIS_TOOLS),
    _spec("findOutliers", "Rows whose value is an outlier by the IQR rule or |z| > 2.",
          OutliersInput, find_outliers, ANALYSIS_TOOLS),
    _spec("calculateConfidenceInterval", "Confidence interval for the mean of a numeric column.",
          ConfidenceInput, confidence_interval, ANALYSIS_TOOLS),
    _spec("calculateFeatureImportance",
          "Percentage of species separation carried by each numeric feature.",
          ToolInput, feature_importance, ANALYSIS_TOOLS),
    _spec("performDetailedSpeciesComparison",
          "Per species: count, descriptive statistics and 95% confidence interval for every feature.",
          ToolInput, detailed_species_comparison, ANALYSIS_TOOLS),
]


def build_default_registry() -> ToolRegistry:
    """Create a registry holding every Iris tool."""
    registry = ToolRegistry()
    for spec in ALL_TOOLS:
        registry.register(spec)
    return registry
