"""
Core message, tool-call and stream-event types.

These primitives are provider-agnostic and are reused across adapters,
the turn orchestrator, the conversation store, and tests.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class Role(str, Enum):
    """Conversation role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMode(str, Enum):
    """Logical conversation mode. Each mode keeps its own message history."""

    DEBUG = "debug"
    INTEGRATION = "integration"
    GENERAL = "general"


@dataclass
class Message:
    """
    Conversation message.

    A message with ``finalized=False`` is the streaming placeholder of the
    turn that is currently writing into it; its content may still change.
    """

    role: Role
    content: str
    finalized: bool = True
    timestamp: float = field(default_factory=time.time)

    @property
    def is_placeholder(self) -> bool:
        return self.role == Role.ASSISTANT and not self.finalized

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain-JSON-safe representation for logging or debugging."""
        return {
            "role": self.role.value,
            "content": self.content,
            "finalized": self.finalized,
            "timestamp": self.timestamp,
        }


@dataclass
class ToolResult:
    """Outcome of one tool execution: either a value or an error text."""

    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "ToolResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {"ok": self.value}


@dataclass
class ToolCall:
    """
    A tool invocation reconstructed from streamed fragments.

    ``argument_buffer`` holds the raw concatenated argument text. Once the call
    is finalized ``parsed_arguments`` is set when the buffer is a JSON object,
    otherwise ``parse_error`` explains why it could not be decoded.
    """

    id: str
    name: str = ""
    argument_buffer: str = ""
    parsed_arguments: Optional[Dict[str, Any]] = None
    parse_error: Optional[str] = None
    result: Optional[ToolResult] = None

    def parse_arguments(self) -> None:
        """Decode ``argument_buffer`` into ``parsed_arguments`` or ``parse_error``."""
        text = self.argument_buffer.strip()
        if not text:
            self.parsed_arguments = {}
            return
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            self.parse_error = f"arguments are not valid JSON ({exc.msg})"
            return
        if not isinstance(data, dict):
            self.parse_error = f"arguments must be a JSON object, got {type(data).__name__}"
            return
        self.parsed_arguments = data


# ---------------------------------------------------------------------------
# Canonical stream events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextDelta:
    """A fragment of assistant text."""

    content: str


@dataclass(frozen=True)
class ToolCallDelta:
    """A fragment of a tool call. ``name`` is usually only set on the first one."""

    id: str
    name: Optional[str] = None
    arguments_fragment: str = ""


@dataclass(frozen=True)
class End:
    """The provider signalled completion of the response."""


ProviderEvent = Union[TextDelta, ToolCallDelta, End]


__all__ = [
    "Role",
    "ChatMode",
    "Message",
    "ToolResult",
    "ToolCall",
    "TextDelta",
    "ToolCallDelta",
    "End",
    "ProviderEvent",
]
