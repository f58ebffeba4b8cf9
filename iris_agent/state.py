"""
Agent State Definition

This module defines the state structure for the Iris chat LangGraph agent.
The state carries the running transcript, the parsed steps, the iteration
counter and the per-session dataset context through the workflow.
"""

import operator
from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Optional, TypedDict

import pandas as pd


@dataclass
class SessionContext:
    """
    Dataset bindings for one chat session.

    ``primary`` is the full Iris record set and is never replaced.
    ``last_result`` holds the most recent record-set result of a dispatched
    tool; it is overwritten (never merged) each time a tool returns records.
    """

    primary: pd.DataFrame
    last_result: Optional[pd.DataFrame] = None


class AgentState(TypedDict):
    """
    State structure for the Iris chat agent.

    ``transcript`` and ``steps`` use an additive reducer: nodes return only
    the new entries, so both lists grow append-only for the whole run.
    """

    # Role-tagged chat messages sent to the model ({"role", "content"})
    transcript: Annotated[List[Dict[str, str]], operator.add]

    # Parsed plan/action/observation/output steps, in order
    steps: Annotated[List[Dict[str, Any]], operator.add]

    # Model invocations so far, and the ceiling for this run
    iterations: int
    max_iterations: int

    # Set once an output step is seen
    final_output: Optional[Any]

    # Dataset bindings (iris / lastResult)
    context: SessionContext
