"""FastAPI route definitions for the MatchDesk agent API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Generator, Iterator

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from matchdesk.agent import AgentError, AgentResult, AgentTimeoutError, MatchAgent
from matchdesk.api.schemas import ChatRequest, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()

EMPTY_MESSAGE_REPLY = "Please enter a message."
GENERIC_ERROR_REPLY = "An internal error occurred. Please try again."
TIMEOUT_REPLY = "The request took too long to complete. Please try again."
DEFAULT_REQUEST_TIMEOUT_SECONDS = 120.0

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Content-Type-Options": "nosniff",
    "X-Accel-Buffering": "no",
}

_END = object()


def _get_agent(request: Request) -> MatchAgent:
    """Retrieve the agent built during the FastAPI lifespan."""
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(
            status_code=503,
            detail="The agent is still starting up. Please try again in a moment.",
        )
    return agent


def _request_timeout(request: Request) -> float:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return DEFAULT_REQUEST_TIMEOUT_SECONDS
    return settings.request_timeout_seconds


def _error_response(exc: Exception, request_id: str) -> PlainTextResponse:
    """Map a failure that happened before any output to a 5xx reply.

    Agent errors carry a message meant for users; anything else is logged
    with its traceback and answered generically.
    """
    if isinstance(exc, AgentTimeoutError):
        logger.error("[%s] Request deadline passed: %s", request_id, exc)
        return PlainTextResponse(TIMEOUT_REPLY, status_code=504)
    if isinstance(exc, AgentError):
        logger.error("[%s] Agent error: %s", request_id, exc)
        return PlainTextResponse(str(exc), status_code=500)
    logger.error("[%s] Error processing chat request", request_id, exc_info=exc)
    return PlainTextResponse(GENERIC_ERROR_REPLY, status_code=500)


def _fragments(events: Iterator[str | AgentResult]) -> Generator[str, None, None]:
    """Keep the text fragments of an agent stream, dropping the final result."""
    for event in events:
        if isinstance(event, AgentResult):
            logger.debug("Stream finished after %d tool round(s)", event.tool_rounds)
            continue
        yield event


def _close_when_done(worker: asyncio.Future, fragments: Generator[str, None, None]) -> None:
    """Close *fragments* once the thread still pulling from it returns.

    The agent stops itself at its deadline; a fragment it produced after the
    client was answered is discarded here.
    """

    def _done(task: asyncio.Future) -> None:
        if task.cancelled():
            return
        if task.exception() is None:
            fragments.close()

    worker.add_done_callback(_done)


def _relay(
    first: object,
    fragments: Generator[str, None, None],
    deadline: float,
    request_id: str,
) -> Iterator[str]:
    """Yield the response body once headers are committed.

    Failures from here on can only end the stream early.
    """
    if first is _END:
        return
    try:
        yield first
        for fragment in fragments:
            yield fragment
            if time.monotonic() > deadline:
                logger.warning("[%s] Request deadline reached mid-stream; closing", request_id)
                break
    except AgentTimeoutError:
        logger.warning("[%s] Request deadline reached mid-stream; closing", request_id)
    except Exception:
        logger.exception("[%s] Agent failed after streaming began; closing stream", request_id)
    finally:
        fragments.close()


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/chat", response_class=PlainTextResponse)
async def chat(http_request: Request, payload: ChatRequest | None = None):
    """Answer a question and return the whole reply as plain text.

    ``agent.run()`` blocks on the model and the backend, so it runs in a
    worker thread.  The request deadline is handed to the agent, which stops
    its loop once it passes, and also bounds the wait here.
    """
    message = payload.message() if payload else ""
    if not message:
        return PlainTextResponse(EMPTY_MESSAGE_REPLY)

    agent = _get_agent(http_request)
    request_id = getattr(http_request.state, "request_id", "?")
    timeout = _request_timeout(http_request)
    deadline = time.monotonic() + timeout

    try:
        result = await asyncio.wait_for(
            asyncio.to_thread(agent.run, message, deadline=deadline),
            timeout=timeout,
        )
    except TimeoutError:
        logger.error("[%s] Chat request timed out", request_id)
        return PlainTextResponse(TIMEOUT_REPLY, status_code=504)
    except Exception as exc:
        return _error_response(exc, request_id)

    return PlainTextResponse(result.answer)


@router.post("/chat/stream")
async def chat_stream(http_request: Request, payload: ChatRequest | None = None):
    """Answer a question, streaming the reply as plain-text chunks.

    The first fragment is produced before the response starts, so a failure
    up to that point is still reported with a 5xx status.
    """
    message = payload.message() if payload else ""
    if not message:
        return PlainTextResponse(EMPTY_MESSAGE_REPLY)

    agent = _get_agent(http_request)
    request_id = getattr(http_request.state, "request_id", "?")
    timeout = _request_timeout(http_request)
    deadline = time.monotonic() + timeout

    fragments = _fragments(agent.stream(message, deadline=deadline))
    worker = asyncio.ensure_future(asyncio.to_thread(next, fragments, _END))
    try:
        first = await asyncio.wait_for(asyncio.shield(worker), timeout=timeout)
    except TimeoutError:
        logger.error("[%s] Timed out before the first fragment", request_id)
        _close_when_done(worker, fragments)
        return PlainTextResponse(TIMEOUT_REPLY, status_code=504)
    except Exception as exc:
        return _error_response(exc, request_id)

    return StreamingResponse(
        _relay(first, fragments, deadline, request_id),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )
