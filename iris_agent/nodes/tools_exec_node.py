"""
Tools Execution Node

This module executes the action chosen by the LLM. It bridges the action step
(what the model asked for) and the dispatcher (what actually runs), and feeds
the result back to the model as an observation message.
"""

import json
import logging
from typing import Any, Callable, Dict

from ..dispatcher import FunctionDispatcher
from ..errors import DispatchError
from ..serialization import safe_json, to_jsonable
from ..state import AgentState

logger = logging.getLogger(__name__)


def make_tools_node(dispatcher: FunctionDispatcher) -> Callable[[AgentState], Dict[str, Any]]:
    """Build the tools node around a dispatcher."""

    def execute_tools_node(state: AgentState) -> Dict[str, Any]:
        """
        Dispatch the last action step and append its observation.

        Dispatch failures (unknown function, bad dataset reference, invalid
        input, tool errors) are returned to the model as an "Error: ..."
        observation; the run continues.

        Returns:
            State update with the observation step and its user-role message
        """
        action = state["steps"][-1]

        try:
            result = dispatcher.dispatch(action["function"], action.get("input"), state["context"])
            observation: Any = to_jsonable(result)
        except DispatchError as e:
            logger.warning("Function execution error: %s", e)
            observation = f"Error: {e}"

        step = {"type": "observation", "observation": observation}
        message = {"role": "user", "content": json.dumps(step, default=safe_json)}
        return {"transcript": [message], "steps": [step]}

    return execute_tools_node
