"""
Google Gemini provider adapter (``streamGenerateContent`` with ``alt=sse``).

Gemini delivers each function call whole, with structured ``args`` rather
than argument text, and does not assign call ids. The parser serializes the
arguments and numbers the calls itself so they look like every other
provider's tool-call deltas.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from ..models import GEMINI
from ..types import Message, ProviderEvent, Role, TextDelta, ToolCallDelta
from .base import FrameParser, HTTPStreamProvider, ToolDescriptor
from .wire import WireFrame

DEFAULT_TEMPERATURE = 0.7


class GeminiFrameParser(FrameParser):
    """Reads ``candidates[0].content.parts``."""

    def __init__(self) -> None:
        super().__init__()
        self._call_count = 0

    def parse(self, payload: Any, frame: WireFrame) -> List[ProviderEvent]:
        if not isinstance(payload, dict):
            return []
        candidates = payload.get("candidates") or []
        if not candidates:
            return []
        content = candidates[0].get("content") or {}
        events: List[ProviderEvent] = []
        for part in content.get("parts") or []:
            text = part.get("text")
            if text and not part.get("thought"):
                events.append(TextDelta(content=text))
            function_call = part.get("functionCall")
            if function_call:
                self._call_count += 1
                call_id = function_call.get("id") or f"gemini_call_{self._call_count}"
                events.append(
                    ToolCallDelta(
                        id=call_id,
                        name=function_call.get("name") or None,
                        arguments_fragment=json.dumps(function_call.get("args") or {}),
                    )
                )
        return events


class GeminiProvider(HTTPStreamProvider):
    """Google Gemini adapter speaking the REST streaming endpoint directly."""

    name = "gemini"
    info = GEMINI
    parser_class = GeminiFrameParser

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url.rstrip('/')}/{model}:streamGenerateContent?alt=sse"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key or "",
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
            "contents": self._format_contents(messages),
            "generationConfig": {
                "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if tools:
            payload["tools"] = [
                {"functionDeclarations": [self._format_declaration(tool) for tool in tools]}
            ]
        return payload

    def _format_contents(self, messages: Sequence[Message]) -> List[Dict[str, Any]]:
        return [
            {
                "role": "model" if message.role == Role.ASSISTANT else "user",
                "parts": [{"text": message.content}],
            }
            for message in self._chat_messages(messages)
        ]

    @staticmethod
    def _format_declaration(tool: ToolDescriptor) -> Dict[str, Any]:
        declaration: Dict[str, Any] = {
            "name": tool["name"],
            "description": tool.get("description", ""),
        }
        parameters = tool.get("parameters") or {}
        # Gemini rejects object schemas without properties.
        if parameters.get("properties"):
            declaration["parameters"] = parameters
        return declaration


__all__ = ["GeminiProvider", "GeminiFrameParser"]
