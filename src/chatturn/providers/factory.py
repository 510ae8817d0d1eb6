"""
Build provider adapters from configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import httpx

from ..exceptions import ProviderError
from ..models import get_provider_info
from ..types import End, Message, Role
from .anthropic_provider import AnthropicProvider
from .base import Provider
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider
from .stubs import LocalProvider

logger = logging.getLogger(__name__)

CONNECTION_CHECK_PROMPT = 'Say "OK" and nothing else.'


@dataclass
class ProviderSettings:
    """
    User-selected provider configuration.

    Attributes:
        provider_id: Catalog id or alias ("openai", "anthropic", "gemini"/"google", ...).
        api_key: Explicit API key. None falls back to the provider's environment variables.
        model: Model name. None uses the provider's default model.
        base_url: Override for the streaming endpoint (proxies, self-hosted gateways).
        request_timeout: httpx timeout in seconds. None = no timeout.
    """

    provider_id: str = "openai"
    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    request_timeout: Optional[float] = None


def _local(**kwargs) -> Provider:
    return LocalProvider(default_model=kwargs.get("default_model") or "echo")


_FACTORIES: Dict[str, Callable[..., Provider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
    "ollama": OllamaProvider,
    "local": _local,
}


def create_provider(
    provider_id: str,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    *,
    base_url: Optional[str] = None,
    request_timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Provider:
    """
    Instantiate the adapter for ``provider_id``.

    Raises:
        ValueError: If the provider is unknown.
        ProviderConfigurationError: If the provider needs an API key and none is available.
    """
    info = get_provider_info(provider_id)
    return _FACTORIES[info.id](
        api_key=api_key,
        default_model=model,
        base_url=base_url,
        request_timeout=request_timeout,
        client=client,
    )


def provider_from_settings(
    settings: ProviderSettings, client: Optional[httpx.AsyncClient] = None
) -> Provider:
    return create_provider(
        settings.provider_id,
        api_key=settings.api_key,
        model=settings.model,
        base_url=settings.base_url,
        request_timeout=settings.request_timeout,
        client=client,
    )


async def check_connection(
    provider: Provider, model: Optional[str] = None
) -> Tuple[bool, Optional[str]]:
    """
    Send a one-line prompt and report whether the provider answers.

    Succeeds as soon as the first text or tool-call fragment arrives; the rest
    of the reply is not read.

    Returns:
        ``(True, None)`` on success, else ``(False, message)`` carrying the
        provider's error message.
    """
    stream = provider.stream(
        messages=[Message(role=Role.USER, content=CONNECTION_CHECK_PROMPT)],
        model=model,
        max_tokens=16,
    )
    try:
        async for event in stream:
            if not isinstance(event, End):
                return True, None
    except ProviderError as exc:
        logger.info("Connection check failed: %s", exc)
        return False, str(exc)
    finally:
        await stream.aclose()
    return False, "No response from provider"


__all__ = [
    "CONNECTION_CHECK_PROMPT",
    "ProviderSettings",
    "check_connection",
    "create_provider",
    "provider_from_settings",
]
