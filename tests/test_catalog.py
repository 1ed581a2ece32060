"""Tests for the tool catalog."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from matchdesk.tools.catalog import (
    TOOL_CATALOG,
    EventsByPlayerArgs,
    ListArgs,
    _check_unique,
    anthropic_tool_specs,
    tool_names,
)


class TestCatalogContents:
    def test_catalog_lists_the_six_retrieval_tools(self):
        assert tool_names() == [
            "list_matches",
            "get_match",
            "list_players",
            "get_player",
            "list_events_by_type",
            "list_events_by_player",
        ]

    def test_names_are_unique(self):
        names = tool_names()
        assert len(names) == len(set(names))

    def test_duplicate_names_are_rejected(self):
        with pytest.raises(ValueError, match="Duplicate tool name"):
            _check_unique((TOOL_CATALOG[0], TOOL_CATALOG[0]))

    def test_every_query_selects_its_result_field(self):
        for descriptor in TOOL_CATALOG:
            assert f"{descriptor.result_field}(" in descriptor.query


class TestAnthropicSpecs:
    def test_specs_have_name_description_and_schema(self):
        for spec in anthropic_tool_specs():
            assert set(spec) == {"name", "description", "input_schema"}
            assert spec["description"]
            assert spec["input_schema"]["type"] == "object"

    def test_id_tools_require_an_id(self):
        specs = {s["name"]: s for s in anthropic_tool_specs()}
        assert specs["get_match"]["input_schema"]["required"] == ["id"]
        assert specs["get_player"]["input_schema"]["required"] == ["id"]

    def test_list_tools_take_no_required_arguments(self):
        specs = {s["name"]: s for s in anthropic_tool_specs()}
        for name in ("list_matches", "list_players"):
            assert "required" not in specs[name]["input_schema"]
            assert "limit" in specs[name]["input_schema"]["properties"]

    def test_event_tools_require_their_filter(self):
        specs = {s["name"]: s for s in anthropic_tool_specs()}
        assert "type" in specs["list_events_by_type"]["input_schema"]["required"]
        assert "player_id" in specs["list_events_by_player"]["input_schema"]["required"]


class TestArgumentModels:
    def test_unset_limit_is_left_out_of_variables(self):
        assert ListArgs().to_variables() == {}

    def test_limit_is_bounded(self):
        with pytest.raises(ValidationError):
            ListArgs(limit=0)
        with pytest.raises(ValidationError):
            ListArgs(limit=1000)

    def test_player_id_is_sent_as_graphql_variable_name(self):
        args = EventsByPlayerArgs.model_validate({"player_id": "p-7", "limit": 5})
        assert args.to_variables() == {"playerId": "p-7", "limit": 5}

    def test_extra_arguments_are_ignored(self):
        args = ListArgs.model_validate({"limit": 3, "sort": "desc"})
        assert args.to_variables() == {"limit": 3}
