"""Provider implementations for various LLM backends."""

from .anthropic_provider import AnthropicProvider
from .base import HTTPStreamProvider, Provider, ProviderError
from .factory import ProviderSettings, check_connection, create_provider, provider_from_settings
from .gemini_provider import GeminiProvider
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider
from .stubs import LocalProvider

__all__ = [
    "Provider",
    "ProviderError",
    "HTTPStreamProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OllamaProvider",
    "LocalProvider",
    "ProviderSettings",
    "check_connection",
    "create_provider",
    "provider_from_settings",
]
