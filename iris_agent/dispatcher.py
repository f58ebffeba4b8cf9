"""
Function Dispatcher

Bridges an ``action`` step (function name + input object) to the tool
implementations in ``iris_analysis``. The dispatcher:

1. looks the function up in the registry it was constructed with
2. validates the input against the tool's pydantic model
3. resolves the ``data`` reference against the session context
4. runs the tool and caches record-set results as ``lastResult``

Every failure leaves as a DispatchError subclass so the agent loop can turn
it into an observation.
"""

import logging
from typing import Any, Dict, Optional

import pandas as pd
from pydantic import ValidationError

from .errors import DatasetReferenceError, ExecutionError, UnknownFunctionError
from .state import SessionContext
from .tools import DataReference, ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)

PRIMARY_REFERENCE = "iris"
LAST_RESULT_REFERENCE = "lastResult"


class FunctionDispatcher:
    def __init__(self, registry: Optional[ToolRegistry] = None):
        self.registry = registry if registry is not None else build_default_registry()

    @staticmethod
    def resolve_dataset(reference: DataReference, context: SessionContext) -> pd.DataFrame:
        """Map "iris" / "lastResult" (or inline records) to a record set."""
        if isinstance(reference, list):
            return pd.DataFrame.from_records(reference)
        if reference == PRIMARY_REFERENCE:
            return context.primary
        if reference == LAST_RESULT_REFERENCE:
            if context.last_result is None:
                raise DatasetReferenceError("lastResult is not available yet: no tool has returned records.")
            return context.last_result
        raise DatasetReferenceError(
            f"Unknown dataset reference: {reference!r}. Use '{PRIMARY_REFERENCE}' or '{LAST_RESULT_REFERENCE}'."
        )

    def dispatch(self, function_name: str, tool_input: Optional[Dict[str, Any]], context: SessionContext) -> Any:
        logger.info("Executing function %s with input %s", function_name, tool_input)

        spec = self.registry.get(function_name)
        if spec is None:
            logger.warning("Unknown function requested: %s", function_name)
            raise UnknownFunctionError(
                f"Unknown function: {function_name}. Available functions: {', '.join(self.registry.names())}"
            )

        try:
            args = spec.input_model.model_validate(tool_input or {})
        except ValidationError as e:
            logger.warning("Invalid input for %s: %s", function_name, e)
            raise ExecutionError(f"Invalid input for {function_name}: {e}") from e

        df = self.resolve_dataset(args.data, context)

        try:
            result = spec.handler(df, **args.kwargs())
        except Exception as e:
            logger.warning("Function %s failed: %s", function_name, e)
            raise ExecutionError(f"{function_name} failed: {e}") from e

        if isinstance(result, pd.DataFrame):
            context.last_result = result
            logger.info("Function %s returned %d record(s); stored as lastResult", function_name, len(result))
        else:
            logger.info("Function %s completed", function_name)
        return result
