"""
Registry for managing, describing and executing tools.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import ToolExecutionError, ToolValidationError
from ..types import ToolCall, ToolResult
from .base import JsonSchema, ParamMetadata, Tool
from .decorators import tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Central registry mapping tool names to executable tools.

    Execution never raises: unknown names, undecodable arguments, validation
    failures and faults inside the tool all come back as an error
    ``ToolResult`` so the model can be told what went wrong.
    """

    def __init__(self, tools: Optional[List[Tool]] = None) -> None:
        self._tools: Dict[str, Tool] = {}
        for tool_instance in tools or []:
            self.register(tool_instance)

    def register(self, tool_instance: Tool) -> None:
        """Register a Tool instance, replacing any tool with the same name."""
        if tool_instance.name in self._tools:
            logger.warning("Replacing already registered tool %r", tool_instance.name)
        self._tools[tool_instance.name] = tool_instance

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> List[Tool]:
        """Return all registered tools in registration order."""
        return list(self._tools.values())

    def schemas(self) -> List[JsonSchema]:
        """Descriptors ``{name, description, parameters}`` handed to provider adapters."""
        return [tool_instance.schema() for tool_instance in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def tool(
        self,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        param_metadata: Optional[Dict[str, ParamMetadata]] = None,
        injected_kwargs: Optional[Dict[str, Any]] = None,
        config_injector: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> Callable[[Callable[..., Any]], Tool]:
        """
        Decorator to register a function as a tool in this registry.

        Returns:
            Decorator that returns the registered Tool instance.
        """

        def decorator(func: Callable[..., Any]) -> Tool:
            tool_instance = tool(
                name=name,
                description=description,
                param_metadata=param_metadata,
                injected_kwargs=injected_kwargs,
                config_injector=config_injector,
            )(func)
            self.register(tool_instance)
            return tool_instance

        return decorator

    async def execute(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        """Run the named tool with already-decoded arguments."""
        tool_instance = self._tools.get(name)
        if tool_instance is None:
            return ToolResult.failure(f"Unknown tool: {name}")

        try:
            value = await tool_instance.aexecute(arguments)
        except ToolValidationError as exc:
            logger.debug("Tool %r rejected arguments: %s", name, exc.issue)
            return ToolResult.failure(
                f"Invalid arguments for tool '{name}': {exc.issue} (parameter: {exc.param_name})"
            )
        except ToolExecutionError as exc:
            logger.debug("Tool %r failed", name, exc_info=exc.error)
            return ToolResult.failure(
                f"Tool '{name}' failed: {type(exc.error).__name__}: {exc.error}"
            )
        except Exception as exc:
            logger.debug("Tool %r raised outside its function", name, exc_info=True)
            return ToolResult.failure(f"Tool '{name}' failed: {type(exc).__name__}: {exc}")
        return ToolResult.success(value)

    async def execute_call(self, call: ToolCall) -> ToolResult:
        """Run a finalized ``ToolCall`` and store the result on it."""
        if not call.name:
            result = ToolResult.failure("Unknown tool: <missing name>")
        elif call.parse_error is not None:
            if call.name in self._tools:
                result = ToolResult.failure(
                    f"Invalid arguments for tool '{call.name}': {call.parse_error}"
                )
            else:
                result = ToolResult.failure(f"Unknown tool: {call.name}")
        else:
            result = await self.execute(call.name, call.parsed_arguments or {})
        call.result = result
        return result


__all__ = ["ToolRegistry"]
