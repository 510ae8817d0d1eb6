"""
Tool metadata, schemas, and runtime validation.
"""

from __future__ import annotations

import asyncio
import contextvars
import difflib
import functools
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from ..exceptions import ToolExecutionError, ToolValidationError

JsonSchema = Dict[str, Any]
ParameterValue = Union[str, int, float, bool, dict, list]
ParamMetadata = Dict[str, Any]

_MISSING = object()


def _python_type_to_json(param_type: type) -> str:
    """Map a Python type to a JSON schema type string."""
    type_map = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        list: "array",
        dict: "object",
    }
    return type_map.get(param_type, "string")


@dataclass
class ToolParameter:
    """
    Schema definition for a single tool parameter.

    Attributes:
        name: Parameter name (should match the function parameter name).
        param_type: Python type (str, int, float, bool, list, dict).
        description: Human-readable description shown to the model.
        required: Whether this parameter must be provided (default: True).
        enum: Optional list of allowed string values.
        default: Value used when an optional parameter is omitted.

    Example:
        >>> param = ToolParameter(
        ...     name="type",
        ...     param_type=str,
        ...     description="Kind of notification",
        ...     required=False,
        ...     enum=["info", "success", "warning", "error"],
        ...     default="info",
        ... )
    """

    name: str
    param_type: type
    description: str
    required: bool = True
    enum: Optional[List[str]] = None
    default: Any = _MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING

    def to_schema(self) -> JsonSchema:
        """Convert the parameter definition to JSON Schema format."""
        description = self.description
        if self.has_default and self.default is not None:
            description = f"{description} (default: {self.default!r})"
        schema: JsonSchema = {
            "type": _python_type_to_json(self.param_type),
            "description": description,
        }
        if self.enum:
            schema["enum"] = self.enum
        return schema


class Tool:
    """
    Encapsulates a callable tool with validation and schema generation.

    Tools can be sync or async functions and may return any JSON-serializable
    value. Sync functions are run in a worker thread by ``aexecute`` so they
    never block the event loop.

    Attributes:
        name: Unique identifier for the tool.
        description: What the tool does (shown to the model).
        parameters: ToolParameter definitions for the model-visible inputs.
        function: The underlying Python function to execute.
        injected_kwargs: Additional kwargs passed to the function, hidden from the model.
        config_injector: Optional callable returning extra kwargs at execution time.
        is_async: Whether the underlying function is a coroutine function.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: List[ToolParameter],
        function: Callable[..., Any],
        *,
        injected_kwargs: Optional[Dict[str, Any]] = None,
        config_injector: Optional[Callable[[], Dict[str, Any]]] = None,
    ):
        """
        Initialize a new Tool.

        Raises:
            ToolValidationError: If the tool definition is invalid.
        """
        self.name = name
        self.description = description
        self.parameters = parameters
        self.function = function
        self.injected_kwargs = injected_kwargs or {}
        self.config_injector = config_injector
        self.is_async = inspect.iscoroutinefunction(function)

        self._validate_tool_definition()

    def _validate_tool_definition(self) -> None:
        if not self.name or not self.name.strip():
            raise ToolValidationError(
                tool_name="<unnamed>",
                param_name="name",
                issue="Tool name cannot be empty",
                suggestion="Provide a descriptive name for the tool",
            )

        if not self.description or not self.description.strip():
            raise ToolValidationError(
                tool_name=self.name,
                param_name="description",
                issue="Tool description cannot be empty",
                suggestion="Provide a clear description explaining what the tool does",
            )

        param_names = [p.name for p in self.parameters]
        duplicates = [name for name in param_names if param_names.count(name) > 1]
        if duplicates:
            raise ToolValidationError(
                tool_name=self.name,
                param_name=", ".join(sorted(set(duplicates))),
                issue="Duplicate parameter name(s)",
                suggestion="Each parameter must have a unique name",
            )

        supported_types = {str, int, float, bool, list, dict}
        for param in self.parameters:
            if param.param_type not in supported_types:
                type_list = ", ".join(t.__name__ for t in (str, int, float, bool, list, dict))
                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue=f"Unsupported parameter type: {param.param_type}",
                    suggestion=f"Use one of: {type_list}",
                )
            default = param.default if param.has_default else None
            if param.enum and default is not None and default not in param.enum:
                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue=f"Default value {param.default!r} is not one of the allowed values",
                    suggestion=f"Allowed values: {', '.join(param.enum)}",
                )

        try:
            sig = inspect.signature(self.function)
        except (ValueError, TypeError):
            # Built-ins and some C callables have no inspectable signature.
            return

        func_params = sig.parameters
        accepts_var_kwargs = any(
            p.kind == inspect.Parameter.VAR_KEYWORD for p in func_params.values()
        )
        injected_names = set(self.injected_kwargs.keys())

        for param in self.parameters:
            if param.name not in func_params and not accepts_var_kwargs:
                func_param_names = [p for p in func_params.keys() if p not in injected_names]
                suggestion = f"Available function parameters: {', '.join(func_param_names)}"
                if not func_param_names:
                    suggestion = "Function has no parameters"
                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue=f"Parameter '{param.name}' not found in function signature",
                    suggestion=suggestion,
                )

        for param in self.parameters:
            if param.required and param.name in func_params:
                func_param = func_params[param.name]
                if func_param.default != inspect.Parameter.empty:
                    raise ToolValidationError(
                        tool_name=self.name,
                        param_name=param.name,
                        issue=(
                            f"Parameter marked as required but has default value "
                            f"in function: {func_param.default!r}"
                        ),
                        suggestion="Either mark as optional (required=False) or remove default from function",
                    )

    def schema(self) -> JsonSchema:
        """Return the provider-neutral descriptor ``{name, description, parameters}``."""
        properties = {param.name: param.to_schema() for param in self.parameters}
        required = [param.name for param in self.parameters if param.required]

        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }

    def _validate_single(self, param: ToolParameter, value: ParameterValue) -> Optional[str]:
        """Validate a single parameter, returning an error message if invalid."""
        if value is None:
            if not param.required:
                return None
            return f"Parameter '{param.name}' is None"

        if param.param_type is float:
            if isinstance(value, bool) or not isinstance(value, (float, int)):
                return f"Parameter '{param.name}' must be a number"
            return None

        if param.param_type is int and isinstance(value, bool):
            return f"Parameter '{param.name}' must be of type int, got bool"

        if not isinstance(value, param.param_type):
            return f"Parameter '{param.name}' must be of type {param.param_type.__name__}, got {type(value).__name__}"

        if param.enum and value not in param.enum:
            return f"Parameter '{param.name}' must be one of: {', '.join(param.enum)}"
        return None

    def validate(self, params: Dict[str, ParameterValue]) -> None:
        """
        Validate a parameter dictionary against this tool's schema.

        Raises ToolValidationError if validation fails with helpful suggestions.
        """
        expected_params = {p.name for p in self.parameters}
        extra_params = set(params.keys()) - expected_params

        # Unexpected names are usually typos of real ones.
        if extra_params:
            suggestions = []
            for extra in sorted(extra_params):
                matches = difflib.get_close_matches(extra, expected_params, n=1, cutoff=0.6)
                if matches:
                    suggestions.append(f"'{extra}' -> Did you mean '{matches[0]}'?")
                else:
                    suggestions.append(f"'{extra}' is not a valid parameter")

            expected_list = ", ".join(f"'{p}'" for p in sorted(expected_params))
            raise ToolValidationError(
                tool_name=self.name,
                param_name=", ".join(sorted(extra_params)),
                issue="Unexpected parameter(s)",
                suggestion=f"{'; '.join(suggestions)}\nExpected parameters: {expected_list}",
            )

        for param in self.parameters:
            if param.required and param.name not in params:
                expected_list = ", ".join(f"'{p.name}'" for p in self.parameters if p.required)
                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue="Missing required parameter",
                    suggestion=f"Required parameters: {expected_list}",
                )

            if param.name not in params:
                continue

            error = self._validate_single(param, params[param.name])
            if error:
                value = params[param.name]
                type_hint = ""
                if param.param_type is int and isinstance(value, str):
                    type_hint = f"Try: {param.name}=int('{value}')"
                elif param.param_type is float and isinstance(value, str):
                    type_hint = f"Try: {param.name}=float({repr(value)})"
                elif param.enum:
                    type_hint = f"Allowed values: {', '.join(param.enum)}"

                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue=error,
                    suggestion=(
                        type_hint if type_hint else f"Expected type: {param.param_type.__name__}"
                    ),
                )

    def _build_call_args(self, params: Dict[str, ParameterValue]) -> Dict[str, Any]:
        call_args: Dict[str, Any] = {}
        for param in self.parameters:
            if param.name in params:
                call_args[param.name] = params[param.name]
            elif param.has_default:
                call_args[param.name] = param.default
        call_args.update(self.injected_kwargs)
        if self.config_injector:
            call_args.update(self.config_injector() or {})
        return call_args

    def execute(self, params: Dict[str, ParameterValue]) -> Any:
        """
        Validate parameters then execute the underlying callable synchronously.

        Async tools must go through ``aexecute``.
        """
        self.validate(params)
        call_args = self._build_call_args(params)

        try:
            return self.function(**call_args)
        except Exception as exc:
            raise ToolExecutionError(tool_name=self.name, error=exc, params=params) from exc

    async def aexecute(self, params: Dict[str, ParameterValue]) -> Any:
        """
        Async version of execute().

        If the tool function is async, it is awaited. If it's sync, it runs in
        the loop's default executor to avoid blocking.
        """
        self.validate(params)
        call_args = self._build_call_args(params)

        try:
            if self.is_async:
                return await self.function(**call_args)

            loop = asyncio.get_running_loop()
            context = contextvars.copy_context()
            func_with_args = functools.partial(self.function, **call_args)
            return await loop.run_in_executor(None, context.run, func_with_args)
        except Exception as exc:
            raise ToolExecutionError(tool_name=self.name, error=exc, params=params) from exc

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r}, parameters={[p.name for p in self.parameters]})"


__all__ = ["Tool", "ToolParameter", "JsonSchema", "ParameterValue", "ParamMetadata"]
