"""Tests for the system prompt."""

from __future__ import annotations

from matchdesk.prompts import get_system_prompt
from matchdesk.tools.catalog import tool_names


def test_prompt_lists_every_tool():
    prompt = get_system_prompt()
    for name in tool_names():
        assert f"`{name}`" in prompt


def test_prompt_has_no_unfilled_placeholders():
    prompt = get_system_prompt()
    assert "{" not in prompt
    assert "UTC" in prompt
