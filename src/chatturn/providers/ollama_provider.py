"""
Ollama provider adapter for local LLM inference.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..models import OLLAMA
from ..types import Message, ProviderEvent, TextDelta, ToolCallDelta
from .base import FrameParser, HTTPStreamProvider, ToolDescriptor
from .openai_provider import OpenAIProvider
from .wire import JSONLinesDecoder, WireDecoder, WireFrame


class OllamaFrameParser(FrameParser):
    """
    Reads ``message`` from each NDJSON line; ``done: true`` ends the stream.

    Tool calls arrive whole with structured arguments, like Gemini's.
    """

    def __init__(self) -> None:
        super().__init__()
        self._call_count = 0

    def parse(self, payload: Any, frame: WireFrame) -> List[ProviderEvent]:
        if not isinstance(payload, dict):
            return []
        message = payload.get("message") or {}
        events: List[ProviderEvent] = []
        content = message.get("content")
        if content:
            events.append(TextDelta(content=content))
        for call in message.get("tool_calls") or []:
            function = call.get("function") or {}
            arguments = function.get("arguments")
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments or {})
            self._call_count += 1
            events.append(
                ToolCallDelta(
                    id=call.get("id") or f"ollama_call_{self._call_count}",
                    name=function.get("name") or None,
                    arguments_fragment=arguments,
                )
            )
        if payload.get("done"):
            self.finished = True
        return events


class OllamaProvider(HTTPStreamProvider):
    """
    Adapter for a local Ollama server using its native ``/api/chat`` endpoint.

    No API key is required. Start the server with ``ollama serve`` and pull the
    model first (``ollama pull llama3.2``).
    """

    name = "ollama"
    info = OLLAMA
    parser_class = OllamaFrameParser

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url.rstrip('/')}/api/chat"

    def _new_decoder(self) -> WireDecoder:
        return JSONLinesDecoder()

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
        options: Dict[str, Any] = {"num_predict": max_tokens}
        if temperature is not None:
            options["temperature"] = temperature
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": message.role.value, "content": message.content}
                for message in self._chat_messages(messages)
            ],
            "stream": True,
            "options": options,
        }
        if system_prompt:
            payload["messages"].insert(0, {"role": "system", "content": system_prompt})
        if tools:
            payload["tools"] = OpenAIProvider._format_tools(tools)
        return payload

    async def _error_from_response(self, response: httpx.Response):
        error = await super()._error_from_response(response)
        if response.status_code == 404 and "not found" in error.message.lower():
            error.message = (
                f"{error.message}. Pull the model first (try: ollama pull {self.default_model})."
            )
            error.args = (error.message,)
        return error


__all__ = ["OllamaProvider", "OllamaFrameParser"]
