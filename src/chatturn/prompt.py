"""
System prompt templating per conversation mode.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .tools import Tool
from .types import ChatMode

MAX_SDK_CONFIG_CHARS = 12000

DEBUG_INSTRUCTIONS = (
    "You are an expert JavaScript debugger and developer assistant. Your role is to "
    "analyze console errors and provide clear, actionable solutions."
)

DEBUG_RESPONSE_GUIDE = """## YOUR RESPONSE SHOULD INCLUDE:

1. **Root Cause Analysis** - Explain what's causing this error in simple terms
2. **Step-by-Step Solution** - Provide clear steps to fix the issue
3. **Code Example** - Show corrected code when applicable
4. **Prevention Tips** - Suggest how to avoid this error in the future

Use markdown formatting for code blocks and be concise but thorough."""

INTEGRATION_INSTRUCTIONS = (
    "You are a helpful assistant specialized in the configuration and management of "
    "the push notification SDK detected on the current page."
)

INTEGRATION_RESPONSE_GUIDE = """## RESPONSE GUIDELINES:

1. Answer questions based on the configuration data provided above
2. Use the get_subscription_details tool to fetch fresh data if needed
3. Use the scrape_website tool to fetch documentation pages if needed
4. Be concise, accurate, and helpful
5. Use markdown formatting for better readability
6. When listing campaigns or settings, format them clearly"""

GENERAL_INSTRUCTIONS = """You are a helpful AI assistant for developers.

{tools}

Provide clear, concise answers with code examples when appropriate. Use markdown formatting."""


@dataclass
class CapturedError:
    """
    A console error captured from the inspected page.

    Produced by the hosting UI's error-capture script; the prompt builder and
    the ``analyze_error`` tool only read it.
    """

    id: int
    type: str
    message: str
    stack: str = ""
    filename: str = ""
    lineno: int = 0
    timestamp: float = 0.0
    url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CapturedError":
        return cls(
            id=int(data.get("id", 0)),
            type=str(data.get("type", "error")),
            message=str(data.get("message", "")),
            stack=str(data.get("stack") or ""),
            filename=str(data.get("filename") or ""),
            lineno=int(data.get("lineno") or 0),
            timestamp=float(data.get("timestamp") or 0),
            url=str(data.get("url") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def captured_at(self) -> str:
        # Capture scripts report milliseconds since the epoch.
        seconds = self.timestamp / 1000 if self.timestamp > 1e11 else self.timestamp
        return datetime.fromtimestamp(seconds).strftime("%Y-%m-%d %H:%M:%S")


class PromptBuilder:
    """
    Render the system prompt for a conversation mode.

    Debug mode with a captured error and integration mode with an SDK
    configuration get specialised prompts; everything else falls back to the
    general developer-assistant prompt. All prompts list the available tools.
    """

    def __init__(self, max_sdk_config_chars: int = MAX_SDK_CONFIG_CHARS):
        self.max_sdk_config_chars = max_sdk_config_chars

    def build(
        self,
        mode: Union[ChatMode, str],
        error: Optional[CapturedError] = None,
        sdk_config: Optional[Mapping[str, Any]] = None,
        tools: Sequence[Tool] = (),
    ) -> str:
        mode = ChatMode(mode)
        tools_text = self.describe_tools(tools)

        if mode == ChatMode.DEBUG and error is not None:
            return "\n\n".join(
                [DEBUG_INSTRUCTIONS, tools_text, self._error_context(error), DEBUG_RESPONSE_GUIDE]
            )

        if mode == ChatMode.INTEGRATION and sdk_config:
            return "\n\n".join(
                [
                    INTEGRATION_INSTRUCTIONS,
                    tools_text,
                    "## SDK CONFIGURATION DATA\n\n" + self._sdk_context(sdk_config),
                    INTEGRATION_RESPONSE_GUIDE,
                ]
            )

        return GENERAL_INSTRUCTIONS.format(tools=tools_text)

    @staticmethod
    def describe_tools(tools: Sequence[Tool]) -> str:
        if not tools:
            return "You have no tools available; answer from the provided context."
        lines: List[str] = ["You have access to the following tools:"]
        for tool in tools:
            summary = tool.description.strip().splitlines()[0]
            lines.append(f"- {tool.name}: {summary}")
        lines.append("")
        lines.append("When appropriate, use these tools to help answer questions.")
        return "\n".join(lines)

    @staticmethod
    def _error_context(error: CapturedError) -> str:
        return (
            "## CURRENT ERROR CONTEXT\n\n"
            f"**Error Type:** {error.type}\n"
            f"**Error Message:** {error.message}\n"
            f"**Source File:** {error.filename}\n"
            f"**Line Number:** {error.lineno}\n"
            f"**Page URL:** {error.url}\n"
            f"**Timestamp:** {error.captured_at}\n\n"
            f"**Stack Trace:**\n```\n{error.stack}\n```"
        )

    def _sdk_context(self, sdk_config: Mapping[str, Any]) -> str:
        text = json.dumps(sdk_config, indent=2, default=str, ensure_ascii=False)
        if len(text) > self.max_sdk_config_chars:
            text = text[: self.max_sdk_config_chars] + "\n... (truncated)"
        return f"```json\n{text}\n```"


__all__ = ["PromptBuilder", "CapturedError"]
