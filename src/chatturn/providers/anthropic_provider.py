"""
Anthropic provider adapter (Messages streaming API).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..models import ANTHROPIC
from ..types import Message, ProviderEvent, TextDelta, ToolCallDelta
from .base import FrameParser, HTTPStreamProvider, ToolDescriptor
from .wire import WireFrame

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicFrameParser(FrameParser):
    """
    Follows the content-block protocol.

    ``content_block_start`` announces a ``tool_use`` block with its id and
    name; ``input_json_delta`` fragments reference the block by index only.
    """

    def __init__(self) -> None:
        super().__init__()
        self._ids_by_block: Dict[int, str] = {}

    def parse(self, payload: Any, frame: WireFrame) -> List[ProviderEvent]:
        if not isinstance(payload, dict):
            return []
        kind = payload.get("type")
        index = payload.get("index", 0)

        if kind == "content_block_start":
            block = payload.get("content_block") or {}
            if block.get("type") != "tool_use":
                return []
            call_id = block.get("id") or f"toolu_{index}"
            self._ids_by_block[index] = call_id
            return [ToolCallDelta(id=call_id, name=block.get("name") or None)]

        if kind == "content_block_delta":
            delta = payload.get("delta") or {}
            delta_type = delta.get("type")
            if delta_type == "input_json_delta":
                call_id = self._ids_by_block.get(index, f"toolu_{index}")
                return [
                    ToolCallDelta(id=call_id, arguments_fragment=delta.get("partial_json") or "")
                ]
            text = delta.get("text")
            if text and delta_type in (None, "text_delta"):
                return [TextDelta(content=text)]
            return []

        if kind == "message_stop":
            self.finished = True
        return []


class AnthropicProvider(HTTPStreamProvider):
    """Anthropic Messages API adapter."""

    name = "anthropic"
    info = ANTHROPIC
    parser_class = AnthropicFrameParser

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def _build_payload(
        self,
        *,
        model: str,
        system_prompt: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDescriptor]],
        max_tokens: int,
        temperature: Optional[float],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "system": system_prompt,
            "messages": [
                {"role": message.role.value, "content": message.content}
                for message in self._chat_messages(messages)
            ],
            "stream": True,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = [
                {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "input_schema": tool.get("parameters")
                    or {"type": "object", "properties": {}},
                }
                for tool in tools
            ]
        return payload


__all__ = ["AnthropicProvider", "AnthropicFrameParser", "ANTHROPIC_VERSION"]
