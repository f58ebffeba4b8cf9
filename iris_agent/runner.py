"""
Entry point for one agent run: user message in, answer and steps out.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from langchain_core.runnables import Runnable

from iris_analysis.shared.data_access import load_iris

from .config import AgentSettings
from .dispatcher import FunctionDispatcher
from .errors import MaxIterationsError
from .graph import compile_iris_agent
from .llm import get_json_llm
from .prompts import build_system_prompt
from .state import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class AgentResult:
    reply: Any
    steps: List[Dict[str, Any]]
    transcript: List[Dict[str, str]]

    @property
    def history(self) -> List[Dict[str, str]]:
        """Transcript without the system prompt, ready to send back as conversation history."""
        return [m for m in self.transcript if m["role"] != "system"]


def build_transcript(
    message: str,
    history: Optional[List[Dict[str, str]]],
    system_prompt: str,
) -> List[Dict[str, str]]:
    """System prompt + prior turns (any system entries dropped) + the new user query."""
    transcript = [{"role": "system", "content": system_prompt}]
    transcript += [
        {"role": m["role"], "content": m["content"]}
        for m in history or []
        if m.get("role") != "system"
    ]
    transcript.append({"role": "user", "content": json.dumps({"type": "user", "user": message})})
    return transcript


def run_agent(
    message: str,
    history: Optional[List[Dict[str, str]]] = None,
    *,
    llm: Optional[Runnable] = None,
    context: Optional[SessionContext] = None,
    dispatcher: Optional[FunctionDispatcher] = None,
    settings: Optional[AgentSettings] = None,
) -> AgentResult:
    """
    Answer one user message.

    Pass ``context`` to keep ``lastResult`` across turns of the same session;
    by default each run gets a fresh context over the full dataset.

    Raises:
        DataLoadError: the dataset cannot be loaded
        ModelProtocolError: the model returned nothing or an invalid reply
        MaxIterationsError: no output step within ``settings.max_iterations``
    """
    settings = settings or AgentSettings()
    context = context or SessionContext(primary=load_iris(settings.iris_csv_path))
    dispatcher = dispatcher or FunctionDispatcher()
    llm = llm if llm is not None else get_json_llm(settings)

    agent = compile_iris_agent(llm, dispatcher)
    transcript = build_transcript(message, history, build_system_prompt(dispatcher.registry, context.primary))

    logger.info("Starting agent execution loop (history: %d message(s))", len(transcript) - 2)
    final = agent.invoke(
        {
            "transcript": transcript,
            "steps": [],
            "iterations": 0,
            "max_iterations": settings.max_iterations,
            "final_output": None,
            "context": context,
        },
        config={"recursion_limit": 2 * settings.max_iterations + 5},
    )

    steps = final["steps"]
    if not steps or steps[-1]["type"] != "output":
        logger.error("Agent loop exceeded maximum iterations (%d)", settings.max_iterations)
        raise MaxIterationsError(
            f"Agent did not produce an output within {settings.max_iterations} iterations",
            steps=steps,
            transcript=final["transcript"],
        )

    logger.info("Agent execution completed in %d iteration(s)", final["iterations"])
    return AgentResult(reply=final["final_output"], steps=steps, transcript=final["transcript"])
