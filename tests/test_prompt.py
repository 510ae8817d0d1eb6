"""
Tests for PromptBuilder and CapturedError (prompt.py).

Tests cover:
- Debug prompt with captured error context
- Integration prompt with SDK configuration and truncation
- General prompt fallback
- Tool listing
- CapturedError parsing and timestamps
"""

from __future__ import annotations

from datetime import datetime

import pytest

from chatturn.prompt import (
    DEBUG_INSTRUCTIONS,
    DEBUG_RESPONSE_GUIDE,
    INTEGRATION_INSTRUCTIONS,
    CapturedError,
    PromptBuilder,
)
from chatturn.tools import Tool, ToolParameter
from chatturn.types import ChatMode


@pytest.fixture
def simple_tool() -> Tool:
    """A minimal tool for testing prompt building."""

    def greet(name: str) -> str:
        return f"Hello, {name}!"

    return Tool(
        name="greet",
        description="Greet someone by name\n\nLonger explanation that is not listed.",
        parameters=[ToolParameter(name="name", param_type=str, description="Person's name")],
        function=greet,
    )


@pytest.fixture
def error() -> CapturedError:
    return CapturedError(
        id=3,
        type="ReferenceError",
        message="foo is not defined",
        stack="ReferenceError: foo is not defined\n    at main.js:4:1",
        filename="https://example.com/main.js",
        lineno=4,
        timestamp=1700000000000,
        url="https://example.com/",
    )


class TestDebugPrompt:
    def test_contains_error_context(self, error, simple_tool):
        prompt = PromptBuilder().build(ChatMode.DEBUG, error=error, tools=[simple_tool])

        assert prompt.startswith(DEBUG_INSTRUCTIONS)
        assert "## CURRENT ERROR CONTEXT" in prompt
        assert "**Error Type:** ReferenceError" in prompt
        assert "**Error Message:** foo is not defined" in prompt
        assert "**Line Number:** 4" in prompt
        assert "**Page URL:** https://example.com/" in prompt
        assert "```\nReferenceError: foo is not defined\n    at main.js:4:1\n```" in prompt
        assert prompt.endswith(DEBUG_RESPONSE_GUIDE)

    def test_without_error_falls_back_to_general(self):
        prompt = PromptBuilder().build("debug")
        assert "You are a helpful AI assistant for developers." in prompt
        assert "CURRENT ERROR CONTEXT" not in prompt

    def test_error_ignored_in_other_modes(self, error):
        assert "CURRENT ERROR CONTEXT" not in PromptBuilder().build(ChatMode.GENERAL, error=error)


class TestIntegrationPrompt:
    def test_embeds_configuration_json(self):
        prompt = PromptBuilder().build(ChatMode.INTEGRATION, sdk_config={"siteId": "abc-123"})

        assert prompt.startswith(INTEGRATION_INSTRUCTIONS)
        assert "## SDK CONFIGURATION DATA" in prompt
        assert '```json\n{\n  "siteId": "abc-123"\n}\n```' in prompt
        assert "get_subscription_details" in prompt

    def test_large_configuration_truncated(self):
        builder = PromptBuilder(max_sdk_config_chars=50)
        prompt = builder.build(ChatMode.INTEGRATION, sdk_config={"segments": ["x" * 10] * 20})
        assert "\n... (truncated)\n```" in prompt

    def test_empty_configuration_falls_back_to_general(self):
        prompt = PromptBuilder().build(ChatMode.INTEGRATION, sdk_config={})
        assert "SDK CONFIGURATION DATA" not in prompt


class TestToolListing:
    def test_lists_first_description_line(self, simple_tool):
        text = PromptBuilder.describe_tools([simple_tool])
        assert text.splitlines()[0] == "You have access to the following tools:"
        assert "- greet: Greet someone by name" in text
        assert "Longer explanation" not in text

    def test_no_tools(self):
        text = PromptBuilder.describe_tools([])
        assert text == "You have no tools available; answer from the provided context."

    def test_general_prompt_includes_tools(self, simple_tool):
        prompt = PromptBuilder().build(ChatMode.GENERAL, tools=[simple_tool])
        assert "- greet:" in prompt
        assert "{tools}" not in prompt


class TestCapturedError:
    def test_from_dict(self):
        error = CapturedError.from_dict(
            {"id": "5", "type": "TypeError", "message": "x is null", "lineno": "12", "stack": None}
        )
        assert error.id == 5
        assert error.lineno == 12
        assert error.stack == ""
        assert error.to_dict()["message"] == "x is null"

    def test_millisecond_and_second_timestamps_agree(self):
        in_ms = CapturedError(id=1, type="E", message="m", timestamp=1700000000000)
        in_s = CapturedError(id=1, type="E", message="m", timestamp=1700000000)
        assert in_ms.captured_at == in_s.captured_at
        assert in_s.captured_at == datetime.fromtimestamp(1700000000).strftime("%Y-%m-%d %H:%M:%S")
