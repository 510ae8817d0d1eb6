"""
Decorators for tool definition and registration.
"""

from __future__ import annotations

import inspect
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .base import ParamMetadata, Tool, ToolParameter


def _unwrap_type(type_hint: Any) -> Any:
    """Unwrap Optional[T] to T and List[T]/Dict[K, V] to list/dict."""
    origin = get_origin(type_hint)
    if origin is Union:
        non_none_args = [a for a in get_args(type_hint) if a is not type(None)]
        if len(non_none_args) == 1:
            return _unwrap_type(non_none_args[0])
    if origin in (list, dict):
        return origin
    return type_hint


def _infer_parameters_from_callable(
    func: Callable[..., Any],
    param_metadata: Optional[Dict[str, ParamMetadata]] = None,
    hidden: Iterable[str] = (),
) -> List[ToolParameter]:
    """
    Inspect a function signature to create ToolParameter objects.

    Args:
        func: The function to inspect.
        param_metadata: Optional overrides for parameter descriptions/enums.
        hidden: Parameter names supplied by injection, never shown to the model.
    """
    type_hints = get_type_hints(func)
    sig = inspect.signature(func)
    parameters = []
    param_metadata = param_metadata or {}
    hidden = set(hidden)

    for name, param in sig.parameters.items():
        if name in ("self", "cls") or name in hidden:
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        param_type = _unwrap_type(type_hints.get(name, str))

        meta = param_metadata.get(name, {})
        description = meta.get("description", f"Parameter {name}")
        has_default = param.default is not inspect.Parameter.empty

        tool_param = ToolParameter(
            name=name,
            param_type=param_type,
            description=description,
            required=not has_default,
            enum=meta.get("enum"),
        )
        if has_default:
            tool_param.default = param.default
        parameters.append(tool_param)

    return parameters


def tool(
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    param_metadata: Optional[Dict[str, ParamMetadata]] = None,
    injected_kwargs: Optional[Dict[str, Any]] = None,
    config_injector: Optional[Callable[[], Dict[str, Any]]] = None,
) -> Callable[[Callable[..., Any]], Tool]:
    """
    Decorator to convert a function into a Tool.

    Introspects the function signature and type hints to generate the tool
    parameters. Names listed in ``injected_kwargs`` are filled in at call time
    and left out of the schema.

    Args:
        name: Optional custom name (defaults to function name).
        description: Optional description (defaults to docstring).
        param_metadata: Dict mapping parameter names to metadata (description, enum).
        injected_kwargs: Kwargs injected at runtime (hidden from the model).
        config_injector: Callable returning kwargs to inject at runtime.

    Example:
        >>> @tool(description="Calculate sum")
        ... def add(a: int, b: int) -> int:
        ...     return a + b
        >>>
        >>> add.name
        'add'
    """

    def decorator(func: Callable[..., Any]) -> Tool:
        tool_name = name or func.__name__
        tool_description = description or inspect.getdoc(func) or f"Tool {tool_name}"
        parameters = _infer_parameters_from_callable(
            func, param_metadata, hidden=(injected_kwargs or {}).keys()
        )

        return Tool(
            name=tool_name,
            description=tool_description,
            parameters=parameters,
            function=func,
            injected_kwargs=injected_kwargs,
            config_injector=config_injector,
        )

    return decorator


__all__ = ["tool"]
