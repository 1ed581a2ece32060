"""FastAPI server for the MatchDesk agent.

Run with:
    uv run uvicorn matchdesk.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from matchdesk.agent import create_match_agent
from matchdesk.api.routes import router
from matchdesk.config import get_cors_origins, load_settings

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: load settings, build the agent once and keep both in app state.

    Shutdown: release the backend connection pool.
    """
    settings = load_settings()
    logger.info("Building MatchDesk agent (model %s)…", settings.model_name)
    application.state.settings = settings
    agent = create_match_agent(settings)
    application.state.agent = agent
    logger.info("Agent ready.")
    yield
    application.state.agent = None
    agent.close()
    logger.info("Agent closed.")


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="MatchDesk Agent",
    description="Ask questions about football matches, players and match events.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation.

    The ID is echoed in the ``X-Request-ID`` response header and prefixes
    the route's log lines.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "MatchDesk Agent",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
        "chat": "/api/chat",
        "stream": "/api/chat/stream",
    }


# ── CLI entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    _settings = load_settings()
    logger.info("Starting MatchDesk API server on %s:%d", _settings.server_host, _settings.server_port)
    uvicorn.run(
        "matchdesk.server:app",
        host=_settings.server_host,
        port=_settings.server_port,
        reload=True,
    )
