"""Shared test fixtures for the MatchDesk test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts."""
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("GRAPHQL_ENDPOINT", "https://data.example.test/graphql")


@pytest.fixture
def make_llm():
    """Factory for a fake tool-bound model.

    ``make_llm(invoke=[...])`` returns the messages in order from ``invoke``;
    ``make_llm(stream=[[chunks], ...])`` yields one chunk list per ``stream`` call.
    """

    def _make(invoke: list | None = None, stream: list[list] | None = None):
        llm = MagicMock()
        if invoke is not None:
            llm.invoke.side_effect = list(invoke)
        if stream is not None:
            llm.stream.side_effect = [iter(chunks) for chunks in stream]
        return llm

    return _make


@pytest.fixture
def graphql_client():
    """A GraphQL client double; set ``execute.return_value`` / ``side_effect``."""
    return MagicMock()
