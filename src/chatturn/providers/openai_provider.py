"""
OpenAI provider adapter (Chat Completions streaming API).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..models import OPENAI
from ..types import Message, ProviderEvent, TextDelta, ToolCallDelta
from .base import FrameParser, HTTPStreamProvider, ToolDescriptor
from .wire import WireFrame


class OpenAIFrameParser(FrameParser):
    """
    Reads ``choices[0].delta``.

    Only the first fragment of a tool call carries its ``id``; later fragments
    are attributed through their ``index``.
    """

    def __init__(self) -> None:
        super().__init__()
        self._ids_by_index: Dict[int, str] = {}

    def parse(self, payload: Any, frame: WireFrame) -> List[ProviderEvent]:
        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not choices:
            return []
        delta = choices[0].get("delta") or {}
        events: List[ProviderEvent] = []

        content = delta.get("content")
        if isinstance(content, list):
            content = "".join(part.get("text", "") for part in content if isinstance(part, dict))
        if content:
            events.append(TextDelta(content=content))

        for fragment in delta.get("tool_calls") or []:
            index = fragment.get("index", 0)
            call_id = fragment.get("id")
            if call_id:
                self._ids_by_index[index] = call_id
            else:
                call_id = self._ids_by_index.get(index, f"call_{index}")
            function = fragment.get("function") or {}
            events.append(
                ToolCallDelta(
                    id=call_id,
                    name=function.get("name") or None,
                    arguments_fragment=function.get("arguments") or "",
                )
            )
        return events


class OpenAIProvider(HTTPStreamProvider):
    """Adapter that speaks to OpenAI's Chat Completions API."""

    name = "openai"
    info = OPENAI
    parser_class = OpenAIFrameParser

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
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
            "messages": self._format_messages(system_prompt, messages),
            "stream": True,
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = self._format_tools(tools)
        return payload

    def _format_messages(self, system_prompt: str, messages: Sequence[Message]):
        payload = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        for message in self._chat_messages(messages):
            payload.append({"role": message.role.value, "content": message.content})
        return payload

    @staticmethod
    def _format_tools(tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "parameters": tool.get("parameters") or {"type": "object", "properties": {}},
                },
            }
            for tool in tools
        ]


__all__ = ["OpenAIProvider", "OpenAIFrameParser"]
