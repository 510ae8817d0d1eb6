"""
Built-in tools offered to the model.

- ``update_ui``: show a notification through the attached UI
- ``save_to_storage``: persist a key/value pair
- ``analyze_error``: look up a captured console error by id
- ``get_subscription_details``: read the detected SDK configuration
- ``scrape_website``: fetch a page and extract text, headings and links

Usage:
    from chatturn.toolbox import build_default_registry, NotificationChannel

    channel = NotificationChannel()
    channel.register(lambda message, type, duration: print(message))
    registry = build_default_registry(channel=channel)
"""

from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..prompt import CapturedError
from ..tools import Tool, ToolRegistry
from . import debug_tools, storage_tools, ui_tools, web_tools
from .debug_tools import analyze_error_tool, subscription_details_tool
from .storage_tools import KeyValueStore, save_to_storage_tool
from .ui_tools import NotificationChannel, update_ui_tool
from .web_tools import scrape_website

__all__ = [
    "ui_tools",
    "storage_tools",
    "debug_tools",
    "web_tools",
    "NotificationChannel",
    "KeyValueStore",
    "get_all_tools",
    "build_default_registry",
]


def get_all_tools(
    channel: Optional[NotificationChannel] = None,
    storage: Optional[KeyValueStore] = None,
    errors: Optional[Callable[[], Sequence[CapturedError]]] = None,
    sdk_config: Optional[Callable[[], Optional[Mapping[str, Any]]]] = None,
) -> List[Tool]:
    """
    Build every built-in tool, wired to the given collaborators.

    Missing collaborators are replaced by empty ones: a channel with no UI
    attached, an in-memory store, no captured errors and no SDK configuration.
    """
    return [
        subscription_details_tool(sdk_config or (lambda: None)),
        scrape_website,
        update_ui_tool(channel or NotificationChannel()),
        save_to_storage_tool(storage or KeyValueStore()),
        analyze_error_tool(errors or (lambda: [])),
    ]


def build_default_registry(
    channel: Optional[NotificationChannel] = None,
    storage: Optional[KeyValueStore] = None,
    errors: Optional[Callable[[], Sequence[CapturedError]]] = None,
    sdk_config: Optional[Callable[[], Optional[Mapping[str, Any]]]] = None,
) -> ToolRegistry:
    """Return a ``ToolRegistry`` holding all built-in tools."""
    return ToolRegistry(
        get_all_tools(channel=channel, storage=storage, errors=errors, sdk_config=sdk_config)
    )
