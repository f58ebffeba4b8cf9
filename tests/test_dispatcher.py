import pytest

from iris_agent.dispatcher import FunctionDispatcher
from iris_agent.errors import DatasetReferenceError, ExecutionError, UnknownFunctionError
from iris_agent.prompts import build_system_prompt
from iris_agent.tools import ALL_TOOLS, ToolInput, ToolRegistry, ToolSpec, build_default_registry

EXPECTED_TOOLS = {
    "filterIrisData", "sortData", "groupBy", "getUniqueValues", "selectColumns", "getDataInfo",
    "calculateMean", "calculateMedian", "calculateStandardDeviation", "calculateVariance",
    "calculateCount", "calculateCorrelation", "calculateMin", "calculateMax", "calculatePercentile",
    "getDescriptiveStats", "generateCorrelationMatrix", "createCrossTabulation",
    "createFrequencyTable", "compareGroups", "findOutliers", "calculateConfidenceInterval",
    "calculateFeatureImportance", "performDetailedSpeciesComparison",
}


@pytest.fixture
def dispatcher():
    return FunctionDispatcher()


def test_registry_holds_every_tool():
    registry = build_default_registry()
    assert set(registry.names()) == EXPECTED_TOOLS
    assert len(registry) == len(ALL_TOOLS)


def test_registry_rejects_duplicates():
    registry = ToolRegistry()
    spec = ToolSpec("noop", "Does nothing.", ToolInput, lambda df: None, "TEST")
    registry.register(spec)
    with pytest.raises(ValueError, match="already registered"):
        registry.register(spec)


def test_unknown_function(dispatcher, context):
    with pytest.raises(UnknownFunctionError, match="Available functions"):
        dispatcher.dispatch("calculateMode", {"data": "iris"}, context)


def test_last_result_before_any_record_set(dispatcher, context):
    with pytest.raises(DatasetReferenceError, match="lastResult"):
        dispatcher.dispatch("calculateMean", {"data": "lastResult", "column": "SepalLengthCm"}, context)


def test_unknown_dataset_reference(dispatcher, context):
    with pytest.raises(DatasetReferenceError):
        dispatcher.dispatch("calculateMean", {"data": "roses", "column": "SepalLengthCm"}, context)


def test_record_sets_become_last_result(dispatcher, context):
    filtered = dispatcher.dispatch("filterIrisData", {"data": "iris", "species": "setosa"}, context)
    assert len(filtered) == 50
    assert context.last_result is filtered

    chained = dispatcher.dispatch("calculateMean", {"data": "lastResult", "column": "SepalLengthCm"}, context)
    assert chained == pytest.approx(5.006)

    # scalar results leave the cache alone; the primary set is never replaced
    assert context.last_result is filtered
    assert len(context.primary) == 150


def test_last_result_is_overwritten(dispatcher, context):
    dispatcher.dispatch("filterIrisData", {"species": "setosa"}, context)
    sorted_ = dispatcher.dispatch("sortData", {"data": "lastResult", "column": "PetalLengthCm", "order": "desc"}, context)
    assert context.last_result is sorted_
    assert sorted_["PetalLengthCm"].is_monotonic_decreasing


def test_filter_sepal_length_shorthand(dispatcher, context):
    result = dispatcher.dispatch("filterIrisData", {"minSepalLength": 7.0}, context)
    assert (result["SepalLengthCm"] >= 7.0).all()
    assert len(result) == 13


def test_aliased_inputs(dispatcher, context):
    assert dispatcher.dispatch("calculatePercentile", {"column": "SepalLengthCm", "percentile": 100}, context) == 7.9
    groups = dispatcher.dispatch(
        "compareGroups", {"groupColumn": "Species", "measureColumn": "PetalWidthCm"}, context
    )
    assert set(groups) == {"Iris-setosa", "Iris-versicolor", "Iris-virginica"}


def test_inline_records(dispatcher, context):
    records = [{"SepalLengthCm": 1.0}, {"SepalLengthCm": 3.0}]
    assert dispatcher.dispatch("calculateMean", {"data": records, "column": "SepalLengthCm"}, context) == 2.0


def test_invalid_input_is_an_execution_error(dispatcher, context):
    with pytest.raises(ExecutionError, match="Invalid input"):
        dispatcher.dispatch("calculateMean", {"data": "iris"}, context)
    with pytest.raises(ExecutionError, match="Invalid input"):
        dispatcher.dispatch("calculateMean", {"column": "SepalLengthCm", "colour": "red"}, context)


def test_tool_failure_is_an_execution_error(dispatcher, context):
    with pytest.raises(ExecutionError, match="calculatePercentile failed") as info:
        dispatcher.dispatch("calculatePercentile", {"column": "SepalLengthCm", "percentile": 150}, context)
    assert info.value.__cause__ is not None


def test_system_prompt_lists_tools_and_dataset(iris):
    prompt = build_system_prompt(build_default_registry(), iris)
    for name in EXPECTED_TOOLS:
        assert name in prompt
    assert "DATA MANIPULATION" in prompt
    assert "Total rows: 150" in prompt
