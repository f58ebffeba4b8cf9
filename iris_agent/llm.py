"""
LLM Configuration and Factory Functions

This module creates the language model used by the agent loop. The model is
bound to OpenAI's JSON response format so that every reply is a single JSON
object following the plan / action / output protocol.
"""

from typing import Optional

from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from .config import AgentSettings


def get_json_llm(settings: Optional[AgentSettings] = None) -> Runnable:
    """
    Create a JSON-mode chat model.

    Args:
        settings: Model name, temperature and per-call timeout (default: from environment)

    Returns:
        Runnable that maps a message list to an AIMessage whose content is a JSON object
    """
    settings = settings or AgentSettings()

    llm = ChatOpenAI(
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.request_timeout,
        max_retries=1,
    )
    return llm.bind(response_format={"type": "json_object"})
