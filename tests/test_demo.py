import json

import pytest

from iris_agent.demo import DEMO_ANALYSES, FALLBACK_REPLY, find_demo_analysis, run_demo
from iris_agent.dispatcher import FunctionDispatcher
from iris_agent.tools import ToolRegistry


@pytest.mark.parametrize(
    "query, function",
    [
        ("Show me basic statistics for sepal length", "getDescriptiveStats"),
        ("Compare the species by petal width", "compareGroups"),
        ("What is the correlation between sepal and petal length?", "calculateCorrelation"),
        ("What does the species distribution look like?", "createFrequencyTable"),
    ],
)
def test_queries_match_by_keywords(query, function):
    assert find_demo_analysis(query).function == function


def test_single_keyword_is_not_enough():
    assert find_demo_analysis("tell me about species") is None


def test_every_demo_action_is_a_registered_tool():
    registry = FunctionDispatcher().registry
    assert all(analysis.function in registry for analysis in DEMO_ANALYSES.values())


def test_unmatched_query_gets_the_hint():
    result = run_demo("what's the weather?")
    assert result.reply == FALLBACK_REPLY
    assert result.steps == [{"type": "output", "output": FALLBACK_REPLY}]


def test_reply_is_built_from_the_real_result(context):
    result = run_demo("correlation sepal petal length", context=context)
    assert result.steps[2]["observation"] == pytest.approx(0.8718, abs=1e-3)
    assert result.reply.startswith("The correlation between sepal length and petal length is 0.872")
    assert "strong positive" in result.reply


def test_frequency_reply(context):
    result = run_demo("species distribution", context=context)
    assert "50 Iris-setosa, 50 Iris-versicolor, 50 Iris-virginica" in result.reply
    assert "total of 150 samples" in result.reply


def test_correlation_matrix_reply(context):
    result = run_demo("show the correlation matrix", context=context)
    assert "PetalLengthCm vs PetalWidthCm: 0.96" in result.reply


def test_failed_action_falls_back_to_canned_reply(context):
    empty = FunctionDispatcher(ToolRegistry())
    analysis = find_demo_analysis("compare species petal width")
    result = run_demo("compare species petal width", context=context, dispatcher=empty)

    assert result.reply == analysis.fallback
    assert [s["type"] for s in result.steps] == ["plan", "action", "output"]
    assert json.loads(result.transcript[0]["content"]) == {"type": "user", "user": "compare species petal width"}
