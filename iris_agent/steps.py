"""
Typed steps of the plan / action / observation / output protocol.

The model answers every turn with one JSON object whose ``type`` field picks
the step kind. Only the loop itself produces observation steps.
"""

import json
import re
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .errors import ModelProtocolError


class PlanStep(BaseModel):
    type: Literal["plan"]
    plan: str


class ActionStep(BaseModel):
    type: Literal["action"]
    function: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ObservationStep(BaseModel):
    type: Literal["observation"]
    observation: Any


class OutputStep(BaseModel):
    type: Literal["output"]
    output: Any


Step = Annotated[
    Union[PlanStep, ActionStep, ObservationStep, OutputStep],
    Field(discriminator="type"),
]
STEP_ADAPTER = TypeAdapter(Step)


def clean_json_response(response_str: str) -> str:
    """Strip ```json fences some models wrap around their reply."""
    cleaned = re.sub(r"^```(?:json)?\s*", "", response_str.strip(), flags=re.IGNORECASE)
    return re.sub(r"\s*```$", "", cleaned.strip())


def parse_model_reply(content: str) -> Union[PlanStep, ActionStep, OutputStep]:
    """
    Parse one model reply into a typed step.

    Raises ModelProtocolError for invalid JSON, an unknown ``type``, missing
    fields, or an observation step (those are reserved for the loop).
    """
    try:
        payload = json.loads(clean_json_response(content))
    except json.JSONDecodeError as e:
        raise ModelProtocolError(f"Invalid JSON response from model: {content}") from e

    try:
        step = STEP_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise ModelProtocolError(f"Model reply does not match the step protocol: {e}") from e

    if isinstance(step, ObservationStep):
        raise ModelProtocolError("Model replied with an observation step; only the agent loop emits those.")
    return step
