"""
LangGraph Workflow Definition

This module defines the Iris chat agent workflow:
- Node definitions and connections
- Routing on the type of the last parsed step
- The iteration ceiling
"""

from typing import Optional

from langchain_core.runnables import Runnable
from langgraph.graph import END, START, StateGraph

from .dispatcher import FunctionDispatcher
from .llm import get_json_llm
from .nodes.llm_node import make_llm_node
from .nodes.tools_exec_node import make_tools_node
from .state import AgentState


def route_after_llm(state: AgentState) -> str:
    """
    Decide where to go after the LLM runs:
      - output step                      → 'end'
      - action step                      → 'tools'
      - plan step, ceiling not reached   → 'llm'
      - plan step, ceiling reached       → 'end'
    """
    last = state["steps"][-1]
    if last["type"] == "output":
        return "end"
    if last["type"] == "action":
        return "tools"
    if state["iterations"] >= state["max_iterations"]:
        return "end"
    return "llm"


def route_after_tools(state: AgentState) -> str:
    """Return to the LLM with the new observation unless the ceiling is reached."""
    return "end" if state["iterations"] >= state["max_iterations"] else "llm"


def compile_iris_agent(
    llm: Optional[Runnable] = None,
    dispatcher: Optional[FunctionDispatcher] = None,
):
    """
    Compile the Iris chat LangGraph agent.

    Nodes:
      - 'llm'   : one model invocation, reply parsed into a step
      - 'tools' : dispatches the action step, appends the observation

    Flow:
      START → llm → (llm | tools | END)
      tools → (llm | END)
    """
    graph = StateGraph(AgentState)

    # Nodes
    graph.add_node("llm", make_llm_node(llm if llm is not None else get_json_llm()))
    graph.add_node("tools", make_tools_node(dispatcher or FunctionDispatcher()))

    # Edges
    graph.add_edge(START, "llm")

    graph.add_conditional_edges(
        "llm",
        route_after_llm,
        {"llm": "llm", "tools": "tools", "end": END},
    )

    graph.add_conditional_edges(
        "tools",
        route_after_tools,
        {"llm": "llm", "end": END},
    )

    return graph.compile()
