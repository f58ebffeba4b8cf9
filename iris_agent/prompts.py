"""System prompt for the plan / action / observation / output protocol."""

import json
from typing import Dict, List

import pandas as pd

from iris_analysis.shared.metadata import create_dataset_summary

from .tools import ToolRegistry, ToolSpec

PROTOCOL = """You are a data analysis assistant for the Iris flower dataset, working in PLAN, ACTION, OBSERVATION and OUTPUT states.
Wait for the user prompt and first PLAN using the available tools.
After planning, take an ACTION with the appropriate tool and wait for the OBSERVATION.
Once you have the observations you need, return the final OUTPUT to the user.

Respond with exactly one JSON object per turn, using one of these shapes:
{ "type": "plan", "plan": "<what you will do next>" }
{ "type": "action", "function": "<tool name>", "input": { "data": "iris", ... } }
{ "type": "output", "output": "<final answer for the user>" }
Never write observation objects yourself; they are sent to you after each action.

Use "iris" as the data parameter for the full dataset and "lastResult" to chain on the
records returned by the previous filter / sort / select / outlier action.
Observations starting with "Error:" describe a failed action; fix the input and try again.

Example:
{ "type": "user", "user": "What is the mean SepalLengthCm for each species?" }
{ "type": "plan", "plan": "I will use compareGroups with groupColumn Species and measureColumn SepalLengthCm." }
{ "type": "action", "function": "compareGroups", "input": { "data": "iris", "groupColumn": "Species", "measureColumn": "SepalLengthCm" } }
{ "type": "observation", "observation": { "Iris-setosa": { "mean": 5.006 } } }
{ "type": "output", "output": "Mean sepal length: setosa 5.01 cm, versicolor 5.94 cm, virginica 6.59 cm." }
"""


def _describe_tool(spec: ToolSpec) -> str:
    schema = spec.input_model.model_json_schema(by_alias=True)
    params = {
        name: prop.get("description") or prop.get("type") or "value"
        for name, prop in schema.get("properties", {}).items()
    }
    required = schema.get("required", [])
    return f"- {spec.name}: {spec.description}\n  input: {json.dumps(params)} required: {required}"


def render_tool_catalogue(registry: ToolRegistry) -> str:
    sections: Dict[str, List[str]] = {}
    for spec in registry:
        sections.setdefault(spec.category, []).append(_describe_tool(spec))
    return "\n\n".join(f"{category}:\n" + "\n".join(lines) for category, lines in sections.items())


def build_system_prompt(registry: ToolRegistry, df: pd.DataFrame) -> str:
    return (
        f"{PROTOCOL}\n"
        f"Available Tools:\n{render_tool_catalogue(registry)}\n\n"
        f"{create_dataset_summary(df)}\n"
        "Always respond with a valid JSON object."
    )
