"""Runs catalog tools against the match data service.

:meth:`QueryExecutor.execute` never raises for problems the model can fix
(an unknown tool name, missing or malformed arguments); those come back as a
:class:`QueryFailure`.  Backend failures do raise :class:`GraphQLError` so
the caller sees them, and the agent turns them into a failure payload for
the model.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from matchdesk.services.graphql_client import GraphQLClient
from matchdesk.tools.catalog import TOOL_CATALOG, ToolArgs, ToolDescriptor

logger = logging.getLogger(__name__)


# ── Outcomes ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class QuerySuccess:
    data: Any

    def to_payload(self) -> Any:
        return self.data

    def serialize(self) -> str:
        return json.dumps(self.to_payload(), default=str)


@dataclass(frozen=True)
class QueryFailure:
    message: str

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message}

    def serialize(self) -> str:
        return json.dumps(self.to_payload())


QueryOutcome = QuerySuccess | QueryFailure

Handler = Callable[[ToolDescriptor, ToolArgs], QueryOutcome]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{location}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


# ── Executor ─────────────────────────────────────────────────────────


class QueryExecutor:
    """Dispatches tool names to handlers that query the backend.

    The dispatch table is checked against the catalog at construction, so a
    tool the model is told about always has exactly one handler.
    """

    def __init__(
        self,
        client: GraphQLClient,
        catalog: tuple[ToolDescriptor, ...] = TOOL_CATALOG,
    ):
        self._client = client
        self._descriptors = {d.name: d for d in catalog}
        self._handlers: dict[str, Handler] = {
            "list_matches": self._fetch_list,
            "get_match": self._fetch_one,
            "list_players": self._fetch_list,
            "get_player": self._fetch_one,
            "list_events_by_type": self._fetch_list,
            "list_events_by_player": self._fetch_list,
        }

        missing = sorted(set(self._descriptors) - set(self._handlers))
        orphaned = sorted(set(self._handlers) - set(self._descriptors))
        if missing or orphaned:
            raise ValueError(
                f"Tool catalog and handlers disagree: "
                f"no handler for {missing}, no catalog entry for {orphaned}"
            )

    @property
    def tool_names(self) -> list[str]:
        return list(self._descriptors)

    def execute(self, name: str, arguments: Mapping[str, Any] | None = None) -> QueryOutcome:
        """Run tool *name* with the model-supplied *arguments*.

        Raises:
            GraphQLError: if the backend round trip fails.
        """
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            logger.warning("Model requested unknown tool %r", name)
            return QueryFailure(f"Unknown tool: {name}")

        if arguments is not None and not isinstance(arguments, Mapping):
            return QueryFailure(f"Invalid arguments for {name}: expected an object")

        try:
            args = descriptor.args_schema.model_validate(dict(arguments or {}))
        except ValidationError as exc:
            message = _format_validation_error(exc)
            logger.info("Rejected arguments for %s: %s", name, message)
            return QueryFailure(f"Invalid arguments for {name}: {message}")

        logger.debug("Executing %s with %s", name, args.to_variables())
        return self._handlers[name](descriptor, args)

    def close(self) -> None:
        self._client.close()

    # ── Handlers ─────────────────────────────────────────────────────

    def _query(self, descriptor: ToolDescriptor, args: ToolArgs) -> Any:
        data = self._client.execute(
            descriptor.query,
            args.to_variables(),
            operation_name=_operation_name(descriptor.name),
        )
        return data.get(descriptor.result_field)

    def _fetch_list(self, descriptor: ToolDescriptor, args: ToolArgs) -> QueryOutcome:
        return QuerySuccess(self._query(descriptor, args) or [])

    def _fetch_one(self, descriptor: ToolDescriptor, args: ToolArgs) -> QueryOutcome:
        record = self._query(descriptor, args)
        if record is None:
            return QueryFailure(
                f"No {descriptor.result_field} found with id {getattr(args, 'id', '?')}"
            )
        return QuerySuccess(record)


def _operation_name(tool_name: str) -> str:
    """``list_events_by_type`` -> ``ListEventsByType`` (matches the query docs)."""
    return "".join(part.capitalize() for part in tool_name.split("_"))
