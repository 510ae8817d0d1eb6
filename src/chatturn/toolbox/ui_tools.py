"""
UI notification tool.

The hosting UI registers a callback on a ``NotificationChannel``; the
``update_ui`` tool lets the model show a short message through it.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..tools import Tool, tool

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[str, str, int], None]

NOTIFICATION_TYPES = ["success", "error", "info", "warning"]


class NotificationChannel:
    """
    Side channel from tools to whatever UI is attached.

    At most one callback is registered at a time; registering replaces the
    previous one. With no callback the message is only logged.
    """

    def __init__(self) -> None:
        self._callback: Optional[NotificationCallback] = None

    @property
    def registered(self) -> bool:
        return self._callback is not None

    def register(self, callback: NotificationCallback) -> None:
        self._callback = callback

    def unregister(self) -> None:
        self._callback = None

    def notify(self, message: str, type: str = "info", duration: int = 3000) -> bool:
        """Deliver a notification. Returns True if a UI callback displayed it."""
        if self._callback is None:
            logger.info("[%s] %s", type.upper(), message)
            return False
        self._callback(message, type, duration)
        return True


def _update_ui(
    message: str,
    type: str,
    duration: int = 3000,
    channel: Optional[NotificationChannel] = None,
) -> Dict[str, object]:
    if channel is None:
        logger.info("[%s] %s", type.upper(), message)
        return {"success": True, "displayed": False}
    try:
        displayed = channel.notify(message, type, duration)
    except Exception as exc:  # noqa: BLE001
        logger.warning("UI notification callback failed: %s", exc)
        return {"success": False, "displayed": False, "error": str(exc)}
    return {"success": True, "displayed": displayed}


def update_ui_tool(channel: NotificationChannel) -> Tool:
    """Build the ``update_ui`` tool bound to ``channel``."""
    return tool(
        name="update_ui",
        description="Display a notification or message in the extension popup UI",
        param_metadata={
            "message": {"description": "Message to display to the user"},
            "type": {
                "description": "Type of message (affects styling)",
                "enum": NOTIFICATION_TYPES,
            },
            "duration": {"description": "How long to show the message in milliseconds"},
        },
        injected_kwargs={"channel": channel},
    )(_update_ui)


__all__ = ["NotificationChannel", "NotificationCallback", "update_ui_tool"]
