"""
Runtime configuration.

Values come from the environment (a local .env file is loaded first), with
defaults suitable for the hosted OpenAI models.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class AgentSettings:
    """
    Parameters for one agent run.

    Parameters
    ----------
    model : str
        Chat model used for every loop iteration (``OPENAI_MODEL``).
    temperature : float
        Sampling temperature (``OPENAI_TEMPERATURE``); low for consistent tool use.
    max_iterations : int
        Ceiling on model invocations per run (``AGENT_MAX_ITERATIONS``).
    request_timeout : float
        Deadline in seconds for a single model invocation (``OPENAI_TIMEOUT``).
    iris_csv_path : str, optional
        Alternative location of the Iris CSV (``IRIS_CSV_PATH``).
    """

    model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
    temperature: float = field(default_factory=lambda: float(os.getenv("OPENAI_TEMPERATURE", "0.1")))
    max_iterations: int = field(default_factory=lambda: int(os.getenv("AGENT_MAX_ITERATIONS", "10")))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("OPENAI_TIMEOUT", "60")))
    iris_csv_path: Optional[str] = field(default_factory=lambda: os.getenv("IRIS_CSV_PATH") or None)

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the server and UI entry points."""
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
