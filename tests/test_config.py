"""Tests for settings loading."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from matchdesk import config
from matchdesk.config import get_cors_origins, load_settings


@pytest.fixture
def env(monkeypatch):
    """A clean, minimal environment for load_settings()."""
    for name in (
        "AWS_EXECUTION_ENV", "GRAPHQL_TOKEN", "MODEL_NAME", "MAX_TOOL_ROUNDS",
        "REQUEST_TIMEOUT_SECONDS", "CORS_ORIGINS", "SERVER_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setenv("GRAPHQL_ENDPOINT", "https://data.example.test/graphql")
    return monkeypatch


class TestLoadSettings:
    def test_defaults(self, env):
        settings = load_settings()
        assert settings.anthropic_api_key == "test-key"
        assert settings.graphql_endpoint == "https://data.example.test/graphql"
        assert settings.graphql_token is None
        assert settings.model_name == config.DEFAULT_MODEL_NAME
        assert settings.max_tool_rounds == 8
        assert settings.request_timeout_seconds == 120.0

    def test_overrides(self, env):
        env.setenv("MAX_TOOL_ROUNDS", "3")
        env.setenv("REQUEST_TIMEOUT_SECONDS", "30.5")
        env.setenv("GRAPHQL_TOKEN", "backend-token")
        settings = load_settings()
        assert settings.max_tool_rounds == 3
        assert settings.request_timeout_seconds == 30.5
        assert settings.graphql_token == "backend-token"

    def test_missing_required_value_raises(self, env):
        env.delenv("GRAPHQL_ENDPOINT")
        with pytest.raises(OSError, match="GRAPHQL_ENDPOINT"):
            load_settings()

    def test_placeholder_value_counts_as_missing(self, env):
        env.setenv("ANTHROPIC_API_KEY", "your_api_key_here")
        with pytest.raises(OSError, match="ANTHROPIC_API_KEY"):
            load_settings()

    def test_non_numeric_value_raises(self, env):
        env.setenv("MAX_TOOL_ROUNDS", "many")
        with pytest.raises(OSError, match="MAX_TOOL_ROUNDS"):
            load_settings()

    def test_round_limit_must_be_positive(self, env):
        env.setenv("MAX_TOOL_ROUNDS", "0")
        with pytest.raises(OSError, match="at least 1"):
            load_settings()

    def test_falls_back_to_ssm_on_aws(self, env):
        env.delenv("GRAPHQL_ENDPOINT")
        env.setenv("AWS_EXECUTION_ENV", "AWS_Lambda_python3.12")
        ssm = MagicMock()
        ssm.get_parameter.return_value = {"Parameter": {"Value": "https://ssm.example.test/graphql"}}

        with patch("boto3.client", return_value=ssm):
            settings = load_settings()

        assert settings.graphql_endpoint == "https://ssm.example.test/graphql"
        ssm.get_parameter.assert_any_call(Name="/matchdesk/GRAPHQL_ENDPOINT", WithDecryption=True)


class TestCorsOrigins:
    def test_default_origins(self, env):
        assert get_cors_origins() == ["http://localhost:3000", "http://localhost:5173"]

    def test_blank_entries_are_dropped(self, env):
        env.setenv("CORS_ORIGINS", "https://a.example, ,https://b.example")
        assert get_cors_origins() == ["https://a.example", "https://b.example"]
