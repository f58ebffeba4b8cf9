"""
Demo mode: canned analyses answered without a language model.

The query is matched against a small keyword table. The matching entry's
action runs through the real dispatcher, so the reply is built from actual
results; only the plan text and the reply template are fixed.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from iris_analysis.shared.data_access import load_iris

from .dispatcher import FunctionDispatcher
from .errors import DispatchError
from .runner import AgentResult
from .serialization import safe_json, to_jsonable
from .state import SessionContext

logger = logging.getLogger(__name__)

MIN_KEYWORD_MATCHES = 2

FALLBACK_REPLY = (
    "I understand you want to analyze the Iris dataset. Currently, I'm running in demo mode. "
    "Please try asking about: basic statistics for sepal length, comparing species by petal width, "
    "correlation analysis, or species distribution."
)


@dataclass(frozen=True)
class DemoAnalysis:
    plan: str
    function: str
    input: Dict[str, Any]
    render: Callable[[Any], str]
    fallback: str


# ----------------------------
# Reply templates
# ----------------------------

def _fmt(value: Any, digits: int = 2) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def _render_stats(obs: Dict[str, Any]) -> str:
    return (
        f"Here are the basic statistics for sepal length: The mean is {_fmt(obs['mean'])} cm "
        f"with a standard deviation of {_fmt(obs['standard_deviation'])} cm. "
        f"The minimum value is {_fmt(obs['min'])} cm and the maximum is {_fmt(obs['max'])} cm. "
        f"The median is {_fmt(obs['median'])} cm."
    )


def _render_groups(obs: Dict[str, Any]) -> str:
    means = ", ".join(f"{species}: {_fmt((stats or {}).get('mean'))} cm" for species, stats in obs.items())
    return f"Here's the comparison of mean petal width across species: {means}. This shows clear differences between the species."


def _render_correlation(r: Optional[float]) -> str:
    if r is None:
        return "There is not enough data to compute the correlation between sepal length and petal length."
    strength = "strong" if abs(r) > 0.7 else "moderate"
    direction = "positive" if r > 0 else "negative"
    return (
        f"The correlation between sepal length and petal length is {_fmt(r, 3)}, "
        f"indicating a {strength} {direction} correlation."
    )


def _render_frequencies(obs: Dict[str, int]) -> str:
    total = sum(obs.values())
    distribution = ", ".join(f"{count} {species}" for species, count in obs.items())
    balance = "balanced" if len(set(obs.values())) == 1 else "varied"
    return f"The dataset contains: {distribution}, for a total of {total} samples. This provides a {balance} distribution across species."


def _render_matrix(obs: Dict[str, Dict[str, Optional[float]]]) -> str:
    columns = list(obs)
    pairs = ", ".join(
        f"{a} vs {b}: {_fmt(obs[a][b])}"
        for i, a in enumerate(columns)
        for b in columns[i + 1:]
    )
    return f"Here's the correlation matrix for all numerical features: {pairs}."


DEMO_ANALYSES: Dict[str, DemoAnalysis] = {
    "basic statistics sepal length": DemoAnalysis(
        plan="I will use getDescriptiveStats to calculate comprehensive statistics for SepalLengthCm.",
        function="getDescriptiveStats",
        input={"data": "iris", "column": "SepalLengthCm"},
        render=_render_stats,
        fallback="The mean sepal length is 5.84 cm with a standard deviation of 0.83 cm, ranging from 4.30 cm to 7.90 cm.",
    ),
    "compare species petal width": DemoAnalysis(
        plan="I will use compareGroups to compare petal width statistics across different species.",
        function="compareGroups",
        input={"data": "iris", "groupColumn": "Species", "measureColumn": "PetalWidthCm"},
        render=_render_groups,
        fallback="Setosa has the smallest mean petal width, followed by Versicolor, and Virginica has the largest.",
    ),
    "correlation sepal petal length": DemoAnalysis(
        plan="I will use calculateCorrelation to find the relationship between sepal length and petal length.",
        function="calculateCorrelation",
        input={"data": "iris", "column1": "SepalLengthCm", "column2": "PetalLengthCm"},
        render=_render_correlation,
        fallback="Sepal length and petal length are strongly positively correlated (about 0.87).",
    ),
    "species distribution": DemoAnalysis(
        plan="I will use createFrequencyTable to show the distribution of species in the dataset.",
        function="createFrequencyTable",
        input={"data": "iris", "column": "Species"},
        render=_render_frequencies,
        fallback="The dataset contains 50 samples each of Iris-setosa, Iris-versicolor and Iris-virginica.",
    ),
    "correlation matrix": DemoAnalysis(
        plan="I will generate a correlation matrix for all numerical features.",
        function="generateCorrelationMatrix",
        input={"data": "iris"},
        render=_render_matrix,
        fallback="Petal length and petal width are very strongly correlated; sepal width correlates weakly with the rest.",
    ),
}


def find_demo_analysis(query: str) -> Optional[DemoAnalysis]:
    """Table entry sharing the most keywords with the query (at least two; ties go to the earlier entry)."""
    query_lower = query.lower()
    best, best_hits = None, MIN_KEYWORD_MATCHES - 1
    for key, analysis in DEMO_ANALYSES.items():
        hits = sum(keyword in query_lower for keyword in key.split())
        if hits > best_hits:
            best, best_hits = analysis, hits
    return best


def _message(role: str, step: Dict[str, Any]) -> Dict[str, str]:
    return {"role": role, "content": json.dumps(step, default=safe_json)}


def run_demo(
    query: str,
    *,
    context: Optional[SessionContext] = None,
    dispatcher: Optional[FunctionDispatcher] = None,
) -> AgentResult:
    """
    Answer ``query`` from the demo table.

    Unmatched queries get a fixed hint listing the supported questions. When
    the matched action fails, the canned reply is returned without an
    observation step.
    """
    user = {"role": "user", "content": json.dumps({"type": "user", "user": query})}
    analysis = find_demo_analysis(query)
    if analysis is None:
        logger.info("Demo query matched no canned analysis")
        output = {"type": "output", "output": FALLBACK_REPLY}
        return AgentResult(reply=FALLBACK_REPLY, steps=[output], transcript=[user, _message("assistant", output)])

    context = context or SessionContext(primary=load_iris())
    dispatcher = dispatcher or FunctionDispatcher()

    plan = {"type": "plan", "plan": analysis.plan}
    action = {"type": "action", "function": analysis.function, "input": analysis.input}
    steps: List[Dict[str, Any]] = [plan, action]
    transcript = [user, _message("assistant", plan), _message("assistant", action)]

    try:
        observation = to_jsonable(dispatcher.dispatch(analysis.function, dict(analysis.input), context))
    except DispatchError as e:
        logger.warning("Demo action %s failed: %s", analysis.function, e)
        reply = analysis.fallback
    else:
        observed = {"type": "observation", "observation": observation}
        steps.append(observed)
        transcript.append(_message("user", observed))
        reply = analysis.render(observation)

    output = {"type": "output", "output": reply}
    steps.append(output)
    transcript.append(_message("assistant", output))
    return AgentResult(reply=reply, steps=steps, transcript=transcript)
