"""The fixed set of data-retrieval tools offered to the model.

Each :class:`ToolDescriptor` pairs the text the model sees (name, description,
parameter schema) with the GraphQL document the executor runs for it.  The
parameter schema is generated from a pydantic model, so the same class both
documents the arguments to the model and validates what the model sends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from matchdesk.tools import queries

MAX_LIST_LIMIT = 100


# ── Argument models ──────────────────────────────────────────────────


class ToolArgs(BaseModel):
    """Base for tool arguments; unknown keys from the model are ignored."""

    model_config = ConfigDict(extra="ignore")

    def to_variables(self) -> dict[str, Any]:
        """GraphQL variables for this call (unset optionals are left out)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ListArgs(ToolArgs):
    limit: int | None = Field(
        default=None,
        ge=1,
        le=MAX_LIST_LIMIT,
        description=f"Maximum number of items to return (1-{MAX_LIST_LIMIT}).",
    )


class EntityIdArgs(ToolArgs):
    id: str | int = Field(..., description="The unique identifier of the record.")


class EventsByTypeArgs(ListArgs):
    type: str = Field(
        ...,
        description='Event type, e.g. "goal", "yellow_card", "red_card", "substitution".',
    )


class EventsByPlayerArgs(ListArgs):
    player_id: str = Field(
        ...,
        serialization_alias="playerId",
        description="The id of the player whose events should be listed.",
    )


# ── Descriptors ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool the model may call, and how to answer it."""

    name: str
    description: str
    args_schema: type[ToolArgs]
    query: str
    result_field: str

    def input_schema(self) -> dict[str, Any]:
        schema = self.args_schema.model_json_schema()
        schema.pop("title", None)
        return schema

    def to_anthropic(self) -> dict[str, Any]:
        """Render as an Anthropic tool definition for ``bind_tools``."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
        }


TOOL_CATALOG: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="list_matches",
        description=(
            "List football matches with teams, kickoff time, venue, status and score. "
            "Use this for questions about fixtures, results or which matches exist."
        ),
        args_schema=ListArgs,
        query=queries.LIST_MATCHES,
        result_field="matches",
    ),
    ToolDescriptor(
        name="get_match",
        description=(
            "Get one match by its id, including the players involved and every "
            "recorded event (goals, cards, substitutions). Obtain ids from list_matches."
        ),
        args_schema=EntityIdArgs,
        query=queries.GET_MATCH,
        result_field="match",
    ),
    ToolDescriptor(
        name="list_players",
        description="List players with their team, position and shirt number.",
        args_schema=ListArgs,
        query=queries.LIST_PLAYERS,
        result_field="players",
    ),
    ToolDescriptor(
        name="get_player",
        description=(
            "Get one player by id, including the matches they played in. "
            "Obtain ids from list_players or from match details."
        ),
        args_schema=EntityIdArgs,
        query=queries.GET_PLAYER,
        result_field="player",
    ),
    ToolDescriptor(
        name="list_events_by_type",
        description=(
            "List timestamped match events of one type across all matches, "
            "for example every goal or every red card."
        ),
        args_schema=EventsByTypeArgs,
        query=queries.LIST_EVENTS_BY_TYPE,
        result_field="events",
    ),
    ToolDescriptor(
        name="list_events_by_player",
        description="List every recorded match event involving one player.",
        args_schema=EventsByPlayerArgs,
        query=queries.LIST_EVENTS_BY_PLAYER,
        result_field="events",
    ),
)


def _check_unique(catalog: tuple[ToolDescriptor, ...]) -> None:
    seen: set[str] = set()
    for descriptor in catalog:
        if descriptor.name in seen:
            raise ValueError(f"Duplicate tool name in catalog: {descriptor.name}")
        seen.add(descriptor.name)


_check_unique(TOOL_CATALOG)


def tool_names(catalog: tuple[ToolDescriptor, ...] = TOOL_CATALOG) -> list[str]:
    return [d.name for d in catalog]


def anthropic_tool_specs(catalog: tuple[ToolDescriptor, ...] = TOOL_CATALOG) -> list[dict[str, Any]]:
    """All catalog entries as Anthropic tool definitions."""
    return [d.to_anthropic() for d in catalog]
