"""Centralized configuration for the MatchDesk agent.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/matchdesk/<VARIABLE_NAME>``.

Nothing is read at import time beyond ``.env``: call :func:`load_settings`
once at start-up and pass the resulting :class:`Settings` to whatever needs it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SSM_PREFIX = "/matchdesk"

DEFAULT_MODEL_NAME = "claude-sonnet-4-5-20250929"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


# ── Secret resolution ────────────────────────────────────────────────

def _on_aws() -> bool:
    return bool(os.getenv("AWS_EXECUTION_ENV"))


def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415 - lazy import to avoid boto3 dep in tests

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"{SSM_PREFIX}/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value
    if _on_aws():
        return _get_ssm_parameter(name)
    return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = _optional_env(name)
    if value:
        return value
    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store {SSM_PREFIX}/{name} (AWS)."
    )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise OSError(f"Configuration {name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise OSError(f"Configuration {name} must be a number, got {raw!r}") from exc


# ── Settings ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    """Everything the service needs to talk to the model and the backend."""

    anthropic_api_key: str
    graphql_endpoint: str
    graphql_token: str | None = None
    model_name: str = DEFAULT_MODEL_NAME
    max_tokens: int = 1024
    temperature: float = 0.2
    graphql_timeout_seconds: float = 15.0
    max_tool_rounds: int = 8
    request_timeout_seconds: float = 120.0
    server_host: str = "0.0.0.0"
    server_port: int = 8000


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment (and SSM on AWS)."""
    settings = Settings(
        # ── LLM ──────────────────────────────────────────────────────
        anthropic_api_key=_require_env("ANTHROPIC_API_KEY"),
        model_name=os.getenv("MODEL_NAME", DEFAULT_MODEL_NAME),
        max_tokens=_int_env("MAX_TOKENS", 1024),
        temperature=_float_env("TEMPERATURE", 0.2),
        # ── GraphQL backend ──────────────────────────────────────────
        graphql_endpoint=_require_env("GRAPHQL_ENDPOINT"),
        graphql_token=_optional_env("GRAPHQL_TOKEN"),
        graphql_timeout_seconds=_float_env("GRAPHQL_TIMEOUT_SECONDS", 15.0),
        # ── Agent loop ───────────────────────────────────────────────
        max_tool_rounds=_int_env("MAX_TOOL_ROUNDS", 8),
        request_timeout_seconds=_float_env("REQUEST_TIMEOUT_SECONDS", 120.0),
        # ── Server ───────────────────────────────────────────────────
        server_host=os.getenv("SERVER_HOST", "0.0.0.0"),
        server_port=_int_env("SERVER_PORT", 8000),
    )
    if settings.max_tool_rounds < 1:
        raise OSError("Configuration MAX_TOOL_ROUNDS must be at least 1")
    logger.debug(
        "Settings loaded - model: %s, backend: %s, max tool rounds: %d",
        settings.model_name, settings.graphql_endpoint, settings.max_tool_rounds,
    )
    return settings


def get_cors_origins() -> list[str]:
    """Origins allowed by the CORS middleware (no secrets needed)."""
    raw = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
