"""
Tests for Tool definition checks, argument validation and the @tool decorator.

Tests cover:
- Empty names and descriptions
- Duplicate and unsupported parameters
- Parameter/function signature mismatches
- Runtime type, enum and typo validation
- Defaults, injected kwargs and config injection
- Sync and async execution
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, List, Optional

import pytest

from chatturn.exceptions import ToolExecutionError, ToolValidationError
from chatturn.tools import Tool, ToolParameter, tool

# =============================================================================
# Definition checks
# =============================================================================


class TestToolDefinition:
    def test_empty_tool_name(self):
        with pytest.raises(ToolValidationError, match="Tool name cannot be empty"):
            Tool(name="  ", description="A tool", parameters=[], function=lambda: "result")

    def test_empty_description(self):
        with pytest.raises(ToolValidationError, match="description cannot be empty"):
            Tool(name="my_tool", description="", parameters=[], function=lambda: "result")

    def test_duplicate_parameter_names(self):
        with pytest.raises(ToolValidationError, match="Duplicate parameter"):
            Tool(
                name="dup",
                description="Duplicate",
                parameters=[
                    ToolParameter(name="x", param_type=str, description="first"),
                    ToolParameter(name="x", param_type=str, description="second"),
                ],
                function=lambda x: x,
            )

    def test_unsupported_parameter_type(self):
        with pytest.raises(ToolValidationError, match="Unsupported parameter type"):
            Tool(
                name="bad_type",
                description="Bad type",
                parameters=[ToolParameter(name="x", param_type=set, description="a set")],
                function=lambda x: x,
            )

    def test_parameter_missing_from_signature(self):
        def func(a: str) -> str:
            return a

        with pytest.raises(ToolValidationError) as exc_info:
            Tool(
                name="mismatch",
                description="Mismatch",
                parameters=[ToolParameter(name="b", param_type=str, description="b")],
                function=func,
            )
        assert "not found in function signature" in exc_info.value.issue
        assert "a" in exc_info.value.suggestion

    def test_var_kwargs_accepts_any_parameter(self):
        Tool(
            name="flexible",
            description="Takes anything",
            parameters=[ToolParameter(name="anything", param_type=str, description="x")],
            function=lambda **kwargs: kwargs,
        )

    def test_required_parameter_with_function_default(self):
        def func(a: str = "x") -> str:
            return a

        with pytest.raises(ToolValidationError, match="required but has default"):
            Tool(
                name="conflict",
                description="Conflict",
                parameters=[ToolParameter(name="a", param_type=str, description="a")],
                function=func,
            )

    def test_default_outside_enum(self):
        with pytest.raises(ToolValidationError, match="not one of the allowed values"):
            Tool(
                name="enum_default",
                description="Enum default",
                parameters=[
                    ToolParameter(
                        name="level",
                        param_type=str,
                        description="level",
                        required=False,
                        enum=["low", "high"],
                        default="medium",
                    )
                ],
                function=lambda level="medium": level,
            )


# =============================================================================
# Runtime validation
# =============================================================================


@pytest.fixture
def notify_tool() -> Tool:
    def notify(message: str, level: str = "info", count: int = 1, ratio: float = 1.0) -> str:
        return f"{level}:{message}x{count}@{ratio}"

    return Tool(
        name="notify",
        description="Send a notification",
        parameters=[
            ToolParameter(name="message", param_type=str, description="Text"),
            ToolParameter(
                name="level",
                param_type=str,
                description="Severity",
                required=False,
                enum=["info", "warning"],
                default="info",
            ),
            ToolParameter(name="count", param_type=int, description="Repeat", required=False, default=1),
            ToolParameter(name="ratio", param_type=float, description="Ratio", required=False, default=1.0),
        ],
        function=notify,
    )


class TestValidation:
    def test_valid_call_fills_defaults(self, notify_tool):
        assert notify_tool.execute({"message": "hi"}) == "info:hix1@1.0"

    def test_missing_required(self, notify_tool):
        with pytest.raises(ToolValidationError) as exc_info:
            notify_tool.validate({})
        assert exc_info.value.param_name == "message"
        assert exc_info.value.issue == "Missing required parameter"

    def test_typo_suggests_real_name(self, notify_tool):
        with pytest.raises(ToolValidationError) as exc_info:
            notify_tool.validate({"message": "hi", "levle": "info"})
        assert "Did you mean 'level'" in exc_info.value.suggestion

    def test_wrong_type(self, notify_tool):
        with pytest.raises(ToolValidationError) as exc_info:
            notify_tool.validate({"message": "hi", "count": "3"})
        assert "must be of type int, got str" in exc_info.value.issue
        assert "int('3')" in exc_info.value.suggestion

    def test_bool_is_not_an_int(self, notify_tool):
        with pytest.raises(ToolValidationError, match="got bool"):
            notify_tool.validate({"message": "hi", "count": True})

    def test_int_accepted_for_float(self, notify_tool):
        notify_tool.validate({"message": "hi", "ratio": 2})

    def test_enum_enforced(self, notify_tool):
        with pytest.raises(ToolValidationError) as exc_info:
            notify_tool.validate({"message": "hi", "level": "panic"})
        assert "must be one of: info, warning" in exc_info.value.issue

    def test_none_allowed_for_optional(self, notify_tool):
        notify_tool.validate({"message": "hi", "count": None})

    def test_none_rejected_for_required(self, notify_tool):
        with pytest.raises(ToolValidationError, match="is None"):
            notify_tool.validate({"message": None})

    def test_schema_marks_defaults_and_enum(self, notify_tool):
        params = notify_tool.schema()["parameters"]
        assert params["required"] == ["message"]
        assert params["properties"]["level"]["enum"] == ["info", "warning"]
        assert params["properties"]["level"]["description"] == "Severity (default: 'info')"
        assert params["properties"]["ratio"]["type"] == "number"


# =============================================================================
# @tool decorator
# =============================================================================


class TestToolDecorator:
    def test_infers_parameters_from_signature(self):
        @tool()
        def search(query: str, limit: int = 10, tags: Optional[List[str]] = None) -> List[str]:
            """Search the index."""
            return []

        assert search.name == "search"
        assert search.description == "Search the index."
        by_name = {p.name: p for p in search.parameters}
        assert by_name["query"].required
        assert not by_name["limit"].required and by_name["limit"].default == 10
        assert by_name["tags"].param_type is list
        assert by_name["tags"].default is None

    def test_custom_name_and_metadata(self):
        @tool(
            name="set_mode",
            description="Switch mode",
            param_metadata={"mode": {"description": "Target mode", "enum": ["a", "b"]}},
        )
        def _set(mode: str) -> str:
            return mode

        prop = _set.schema()["parameters"]["properties"]["mode"]
        assert _set.name == "set_mode"
        assert prop == {"type": "string", "description": "Target mode", "enum": ["a", "b"]}

    def test_injected_kwargs_hidden_from_schema(self):
        seen: Dict[str, Any] = {}

        def record(key: str, sink: Optional[Dict[str, Any]] = None) -> bool:
            sink[key] = True
            return True

        recorder = tool(description="Record a key", injected_kwargs={"sink": seen})(record)

        assert [p.name for p in recorder.parameters] == ["key"]
        assert "sink" not in recorder.schema()["parameters"]["properties"]
        assert recorder.execute({"key": "k"}) is True
        assert seen == {"k": True}

    def test_model_cannot_pass_injected_name(self):
        recorder = tool(description="Record", injected_kwargs={"sink": {}})(
            lambda key, sink=None: key
        )
        with pytest.raises(ToolValidationError, match="Unexpected parameter"):
            recorder.validate({"key": "k", "sink": "mine"})

    def test_config_injector_called_at_execution(self):
        calls = []

        def with_config(x: int, **kwargs: Any) -> Dict[str, Any]:
            return {"x": x, **kwargs}

        def config() -> Dict[str, Any]:
            calls.append(1)
            return {"region": "eu"}

        configured = tool(description="Configured", config_injector=config)(with_config)

        assert configured.execute({"x": 1}) == {"x": 1, "region": "eu"}
        assert configured.execute({"x": 2}) == {"x": 2, "region": "eu"}
        assert len(calls) == 2


# =============================================================================
# Execution
# =============================================================================


class TestExecution:
    def test_sync_failure_wrapped(self):
        @tool(description="Divide")
        def divide(a: int, b: int) -> float:
            return a / b

        with pytest.raises(ToolExecutionError) as exc_info:
            divide.execute({"a": 1, "b": 0})
        assert isinstance(exc_info.value.error, ZeroDivisionError)
        assert exc_info.value.params == {"a": 1, "b": 0}

    @pytest.mark.asyncio
    async def test_async_tool_awaited(self):
        @tool(description="Slow double")
        async def double(n: int) -> int:
            await asyncio.sleep(0)
            return n * 2

        assert double.is_async
        assert await double.aexecute({"n": 4}) == 8

    @pytest.mark.asyncio
    async def test_sync_tool_runs_off_the_event_loop(self):
        main_thread = threading.get_ident()

        @tool(description="Report thread")
        def where() -> int:
            return threading.get_ident()

        assert await where.aexecute({}) != main_thread

    @pytest.mark.asyncio
    async def test_async_failure_wrapped(self):
        @tool(description="Async failure")
        async def fail() -> None:
            raise ValueError("nope")

        with pytest.raises(ToolExecutionError) as exc_info:
            await fail.aexecute({})
        assert str(exc_info.value.error) == "nope"
