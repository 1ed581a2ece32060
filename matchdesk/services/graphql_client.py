"""HTTP client for the match-data GraphQL service.

Every call is a single ``POST`` of ``{"query", "variables", "operationName"}``
to the configured endpoint.  No caching and no retries happen at this
layer: a failed round trip surfaces as :class:`GraphQLError` and the
agent decides what to do with it.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from matchdesk.services.metrics import metrics

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


class GraphQLError(Exception):
    """Raised when the backend cannot be reached or rejects a query."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(message)


class GraphQLClient:
    """Thin wrapper around ``httpx.Client`` speaking the GraphQL-over-HTTP
    convention.

    The endpoint and optional bearer token are supplied by the caller
    (normally from :class:`matchdesk.config.Settings`).
    """

    def __init__(
        self,
        endpoint: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._endpoint = endpoint
        self._client = httpx.Client(headers=headers, timeout=timeout, transport=transport)

    def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        operation_name: str | None = None,
    ) -> dict[str, Any]:
        """Run *query* and return its ``data`` object.

        Raises:
            GraphQLError: on network failures, non-2xx responses, bodies that
                are not JSON, or a response carrying GraphQL ``errors``.
        """
        payload: dict[str, Any] = {"query": query, "variables": variables or {}}
        if operation_name:
            payload["operationName"] = operation_name

        label = operation_name or "anonymous"
        with metrics.track("graphql", label):
            try:
                response = self._client.post(self._endpoint, json=payload)
            except httpx.HTTPError as exc:
                logger.warning("GraphQL %s request failed: %s", label, exc)
                raise GraphQLError(f"Could not reach the match data service: {exc}") from exc

            if response.status_code >= 400:
                raise GraphQLError(
                    f"Match data service returned HTTP {response.status_code}: "
                    f"{response.text[:200]}",
                    status_code=response.status_code,
                )

            try:
                body = response.json()
            except ValueError as exc:
                raise GraphQLError(
                    "Match data service returned a non-JSON response",
                    status_code=response.status_code,
                ) from exc

            errors = body.get("errors") or []
            if errors:
                messages = "; ".join(str(e.get("message", e)) for e in errors)
                raise GraphQLError(
                    f"Query {label} failed: {messages}",
                    status_code=response.status_code,
                    errors=errors,
                )

        data = body.get("data")
        if data is None:
            raise GraphQLError(f"Query {label} returned no data", status_code=response.status_code)
        logger.debug("GraphQL %s returned keys %s", label, sorted(data))
        return data

    def close(self) -> None:
        self._client.close()
