"""
Iris Chat Server - HTTP surface for the Iris data analysis agent.

POST /api/chat   one user message (+ prior conversation) in, answer and steps out
POST /api/demo   keyword-matched canned analyses, no language model needed
GET  /api/health liveness check
"""

import logging
import os
from typing import Annotated, Any, Callable, Dict, List, Optional

import openai
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from iris_agent.config import configure_logging
from iris_agent.demo import run_demo
from iris_agent.errors import AgentRunError, MaxIterationsError
from iris_agent.runner import AgentResult, run_agent
from iris_agent.serialization import to_jsonable
from iris_analysis.errors import DataLoadError

logger = logging.getLogger(__name__)

SERVER_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("SERVER_PORT", "3000"))

RunFn = Callable[[str, List[Dict[str, str]]], AgentResult]
DemoFn = Callable[[str], AgentResult]


# ---------------------
# Request / response models
# ---------------------

class HistoryMessage(BaseModel):
    role: str
    content: str


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must be a non-empty string")
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: NonBlankStr
    conversation_history: List[HistoryMessage] = Field(default_factory=list, alias="conversationHistory")


class DemoRequest(BaseModel):
    query: NonBlankStr


def error_response(status_code: int, error: str, code: str, details: Any = None, **extra: Any) -> JSONResponse:
    """Standard failure envelope: {error, code, details, success: false}."""
    content = {"error": error, "code": code, "details": details, "success": False}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=to_jsonable(content))


# ---------------------
# App factory
# ---------------------

def create_app(run: Optional[RunFn] = None, demo: Optional[DemoFn] = None) -> FastAPI:
    """
    Build the FastAPI app.

    ``run`` answers one message given the prior history; it defaults to
    ``run_agent`` with a fresh session context per request. ``demo`` answers
    a demo query and defaults to ``run_demo``.
    """
    run = run or (lambda message, history: run_agent(message, history))
    demo = demo or run_demo
    app = FastAPI(title="Iris Chat Agent")

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
            for err in exc.errors()
        ]
        logger.warning("Rejected request: %s", errors)
        return error_response(400, "Invalid request body", "INVALID_REQUEST", errors)

    @app.exception_handler(openai.AuthenticationError)
    async def _auth_failed(request: Request, exc: openai.AuthenticationError):
        logger.error("Model authentication failed: %s", exc)
        return error_response(401, "Invalid API key", "INVALID_API_KEY", "Check the OPENAI_API_KEY setting")

    @app.exception_handler(openai.RateLimitError)
    async def _rate_limited(request: Request, exc: openai.RateLimitError):
        logger.error("Model rate limit exceeded: %s", exc)
        return error_response(429, "Rate limit exceeded", "RATE_LIMIT_EXCEEDED", "Please try again later")

    @app.exception_handler(openai.OpenAIError)
    async def _model_unavailable(request: Request, exc: openai.OpenAIError):
        logger.error("Model unavailable: %s", exc)
        return error_response(
            500, "Language model is not available", "MODEL_UNAVAILABLE",
            "Check the OPENAI_API_KEY setting, or use /api/demo",
        )

    @app.exception_handler(AgentRunError)
    async def _agent_failed(request: Request, exc: AgentRunError):
        code = "MAX_ITERATIONS_EXCEEDED" if isinstance(exc, MaxIterationsError) else "MODEL_PROTOCOL_ERROR"
        logger.error("Agent run failed (%s): %s", code, exc)
        return error_response(500, "Agent failed to produce an answer", code, str(exc), steps=exc.steps)

    @app.exception_handler(DataLoadError)
    async def _data_unavailable(request: Request, exc: DataLoadError):
        logger.error("Dataset unavailable: %s", exc)
        return error_response(500, "Dataset could not be loaded", "DATA_LOAD_ERROR", str(exc))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error while processing chat request")
        return error_response(500, "Internal server error", "INTERNAL_ERROR", "An unexpected error occurred")

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/chat")
    def chat(request: ChatRequest) -> Dict[str, Any]:
        logger.info("Processing message: %s", request.message)
        history = [m.model_dump() for m in request.conversation_history]
        result = run(request.message, history)
        return to_jsonable({
            "reply": result.reply,
            "steps": result.steps,
            "conversationHistory": result.history,
            "success": True,
        })

    @app.post("/api/demo")
    def demo_chat(request: DemoRequest) -> Dict[str, Any]:
        logger.info("Processing demo query: %s", request.query)
        result = demo(request.query)
        return to_jsonable({
            "reply": result.reply,
            "steps": result.steps,
            "conversationHistory": result.history,
            "demoMode": True,
            "success": True,
        })

    return app


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    logger.info("Starting Iris chat server at http://%s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(create_app(), host=SERVER_HOST, port=SERVER_PORT)
