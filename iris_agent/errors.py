"""
Agent and dispatcher exceptions.

DispatchError subclasses are recovered inside the loop and fed back to the
model as "Error: ..." observations. AgentRunError subclasses end the run and
carry the steps and transcript collected so far for diagnostics.
"""

from typing import Any, Dict, List, Optional


class DispatchError(Exception):
    """Base class for failures raised by the function dispatcher."""


class DatasetReferenceError(DispatchError):
    """A symbolic dataset name cannot be resolved (unknown, or lastResult not set yet)."""


class UnknownFunctionError(DispatchError):
    """The requested function is not in the tool registry."""


class ExecutionError(DispatchError):
    """The tool input was invalid or the tool itself failed."""


class AgentRunError(Exception):
    """Base class for errors that terminate an agent run."""

    def __init__(
        self,
        message: str,
        steps: Optional[List[Dict[str, Any]]] = None,
        transcript: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message)
        self.steps = list(steps or [])
        self.transcript = list(transcript or [])


class ModelProtocolError(AgentRunError):
    """The model returned nothing, invalid JSON, or a reply of the wrong shape."""


class MaxIterationsError(AgentRunError):
    """The model never produced an output step within the iteration ceiling."""
