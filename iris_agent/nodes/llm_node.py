"""
LLM Node Implementation

This module contains the LLM node: one model invocation per visit. The reply
is appended to the transcript and parsed into a typed step, which the graph
router uses to decide whether to plan again, dispatch a tool, or stop.
"""

import logging
from typing import Any, Callable, Dict

from langchain_core.messages import BaseMessage, convert_to_messages
from langchain_core.runnables import Runnable

from ..errors import ModelProtocolError
from ..state import AgentState
from ..steps import OutputStep, parse_model_reply

logger = logging.getLogger(__name__)


def _reply_text(response: Any) -> str:
    content = response.content if isinstance(response, BaseMessage) else response
    if isinstance(content, list):
        # content blocks: keep the text parts only
        content = "".join(
            block if isinstance(block, str) else block.get("text", "")
            for block in content
        )
    return content or ""


def make_llm_node(llm: Runnable) -> Callable[[AgentState], Dict[str, Any]]:
    """Build the LLM node around a chat model (real or fake)."""

    def llm_node(state: AgentState) -> Dict[str, Any]:
        """
        Invoke the model with the full transcript and record its reply.

        The raw reply is appended to the transcript before it is parsed, so a
        malformed reply is still visible in the transcript carried by the
        ModelProtocolError.

        Returns:
            State update with the new assistant message, the parsed step, the
            incremented iteration counter and, for output steps, the final answer
        """
        iteration = state["iterations"] + 1
        logger.info("Agent loop iteration %d/%d", iteration, state["max_iterations"])

        response = llm.invoke(convert_to_messages(state["transcript"]))
        content = _reply_text(response)
        if not content.strip():
            raise ModelProtocolError(
                "No response from the model", steps=state["steps"], transcript=state["transcript"]
            )

        reply = {"role": "assistant", "content": content}
        logger.debug("Agent step: %s", content)

        try:
            step = parse_model_reply(content)
        except ModelProtocolError as e:
            raise ModelProtocolError(
                str(e), steps=state["steps"], transcript=state["transcript"] + [reply]
            ) from e

        update: Dict[str, Any] = {
            "transcript": [reply],
            "steps": [step.model_dump()],
            "iterations": iteration,
        }
        if isinstance(step, OutputStep):
            logger.info("Found output, ending loop")
            update["final_output"] = step.output
        return update

    return llm_node
