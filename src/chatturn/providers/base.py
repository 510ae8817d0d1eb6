"""
Provider abstraction for model-agnostic streaming.

Every adapter turns its provider's wire format into the canonical
``ProviderEvent`` sequence (``TextDelta``, ``ToolCallDelta``, ``End``).
Nothing outside this package needs to know which provider is in use.
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    AsyncIterator,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

import httpx

from ..cancellation import CancellationToken, iterate_until_cancelled
from ..env import find_api_key
from ..exceptions import ProviderConfigurationError, ProviderError
from ..models import ProviderInfo
from ..types import End, Message, ProviderEvent, Role
from .wire import SSEDecoder, WireDecoder, WireFrame

logger = logging.getLogger(__name__)

ToolDescriptor = Dict[str, Any]


@runtime_checkable
class Provider(Protocol):
    """
    Interface every provider adapter must satisfy.

    ``stream`` issues one request and returns a lazy, finite, non-restartable
    async sequence of canonical events. Natural completion ends with exactly
    one ``End``; cancellation through ``cancel_token`` ends the sequence
    without further events. A failed request raises ``ProviderError`` instead
    of yielding anything.
    """

    name: str
    default_model: str

    def stream(
        self,
        *,
        messages: Sequence[Message],
        system_prompt: str = "",
        tools: Optional[Sequence[ToolDescriptor]] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[ProviderEvent]:
        ...

    async def aclose(self) -> None:
        ...


def error_message_from_payload(payload: Any) -> Optional[str]:
    """Pull ``error.message`` (or an error string) out of a decoded error body."""
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str) and error:
        return error
    return None


class FrameParser:
    """
    Per-stream translation of decoded frames into canonical events.

    Parsers hold whatever state a provider needs to attribute fragments to a
    tool call (for example a block index → call id map). Set ``finished``
    once the provider signals the end of the response.
    """

    provider_label = "Provider"

    def __init__(self) -> None:
        self.finished = False

    def feed(self, frame: WireFrame) -> List[ProviderEvent]:
        if self.finished:
            return []
        if frame.data.strip() == "[DONE]":
            self.finished = True
            return []
        try:
            payload = frame.json()
        except ValueError:
            logger.debug("Skipping malformed %s frame: %r", self.provider_label, frame.data[:200])
            return []
        if isinstance(payload, dict) and "error" in payload:
            message = error_message_from_payload(payload) or f"{self.provider_label} stream error"
            raise ProviderError(message, provider=self.provider_label)
        return self.parse(payload, frame)

    def parse(self, payload: Any, frame: WireFrame) -> List[ProviderEvent]:
        raise NotImplementedError


class HTTPStreamProvider:
    """
    Shared machinery for providers reached over a streaming HTTP POST.

    Subclasses supply the request envelope (``_endpoint``, ``_headers``,
    ``_build_payload``), the framing (``_new_decoder``) and the field paths
    (``parser_class``).
    """

    name = "http"
    info: ProviderInfo
    parser_class = FrameParser

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str | None = None,
        base_url: str | None = None,
        request_timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = self._resolve_api_key(api_key)
        self.default_model = default_model or self.info.default_model
        self.base_url = base_url or self.info.endpoint
        self.request_timeout = request_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def label(self) -> str:
        return self.info.name.split(" ")[0]

    def _resolve_api_key(self, api_key: str | None) -> str | None:
        if api_key or not self.info.requires_api_key:
            return api_key
        value = find_api_key(self.info.env_vars)
        if value:
            return value
        raise ProviderConfigurationError(
            provider_name=self.label,
            missing_config="API key",
            env_var=self.info.env_vars[0] if self.info.env_vars else "",
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.request_timeout))
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # -- hooks ----------------------------------------------------------

    def _endpoint(self, model: str) -> str:
        return self.base_url

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

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
        raise NotImplementedError

    def _new_decoder(self) -> WireDecoder:
        return SSEDecoder()

    def _new_parser(self) -> FrameParser:
        parser = self.parser_class()
        parser.provider_label = self.label
        return parser

    @staticmethod
    def _chat_messages(messages: Sequence[Message]) -> List[Message]:
        """History without system-role entries; the system prompt travels separately."""
        return [m for m in messages if m.role in (Role.USER, Role.ASSISTANT)]

    # -- streaming ------------------------------------------------------

    async def stream(
        self,
        *,
        messages: Sequence[Message],
        system_prompt: str = "",
        tools: Optional[Sequence[ToolDescriptor]] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[ProviderEvent]:
        model_name = model or self.default_model
        payload = self._build_payload(
            model=model_name,
            system_prompt=system_prompt,
            messages=messages,
            tools=tools or None,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        decoder = self._new_decoder()
        parser = self._new_parser()
        client = self._get_client()

        try:
            async with client.stream(
                "POST", self._endpoint(model_name), headers=self._headers(), json=payload
            ) as response:
                if not response.is_success:
                    raise await self._error_from_response(response)

                chunks = iterate_until_cancelled(response.aiter_bytes(), cancel_token)
                try:
                    async for chunk in chunks:
                        for frame in decoder.feed(chunk):
                            for event in parser.feed(frame):
                                yield event
                        if parser.finished:
                            break
                finally:
                    await chunks.aclose()

                if cancel_token is not None and cancel_token.cancelled:
                    return
                for frame in decoder.flush():
                    for event in parser.feed(frame):
                        yield event
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"{self.label} request failed: {exc}", provider=self.name
            ) from exc

        if cancel_token is not None and cancel_token.cancelled:
            return
        yield End()

    async def _error_from_response(self, response: httpx.Response) -> ProviderError:
        await response.aread()
        try:
            body = response.json()
        except ValueError:
            body = None
        message = error_message_from_payload(body)
        if not message:
            message = f"{self.label} API error: {response.status_code}"
        logger.warning("%s request failed with status %s", self.label, response.status_code)
        return ProviderError(message, status_code=response.status_code, provider=self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.default_model!r})"


__all__ = [
    "Provider",
    "ProviderError",
    "ToolDescriptor",
    "FrameParser",
    "HTTPStreamProvider",
    "error_message_from_payload",
]
