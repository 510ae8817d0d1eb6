"""
Catalog of supported LLM providers.

Single source of truth for provider display names, selectable models,
defaults, streaming endpoints and the environment variables that hold their
API keys.

Example:
    >>> from chatturn.models import get_provider_info
    >>> info = get_provider_info("anthropic")
    >>> print(info.default_model, info.env_vars)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class ProviderInfo:
    """
    Static metadata for one provider.

    Attributes:
        id: Provider identifier used in configuration ("openai", "anthropic", ...)
        name: Human-readable provider name
        models: Models offered for selection, newest first
        default_model: Model used when none is configured
        api_key_url: Where users obtain an API key
        endpoint: Streaming chat endpoint (base URL for per-model endpoints)
        env_vars: Environment variables checked for the API key, in order
        requires_api_key: False for local servers
    """

    id: str
    name: str
    models: Tuple[str, ...]
    default_model: str
    api_key_url: str
    endpoint: str
    env_vars: Tuple[str, ...] = ()
    requires_api_key: bool = True


OPENAI = ProviderInfo(
    id="openai",
    name="OpenAI",
    models=("gpt-4o", "gpt-4-turbo", "gpt-4", "gpt-3.5-turbo"),
    default_model="gpt-4o",
    api_key_url="https://platform.openai.com/api-keys",
    endpoint="https://api.openai.com/v1/chat/completions",
    env_vars=("OPENAI_API_KEY",),
)

ANTHROPIC = ProviderInfo(
    id="anthropic",
    name="Anthropic Claude",
    models=(
        "claude-3-5-sonnet-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
    ),
    default_model="claude-3-5-sonnet-20241022",
    api_key_url="https://console.anthropic.com/settings/keys",
    endpoint="https://api.anthropic.com/v1/messages",
    env_vars=("ANTHROPIC_API_KEY",),
)

GEMINI = ProviderInfo(
    id="gemini",
    name="Google Gemini",
    models=("gemini-2.5-pro", "gemini-2.5-flash", "gemini-pro"),
    default_model="gemini-2.5-pro",
    api_key_url="https://makersuite.google.com/app/apikey",
    endpoint="https://generativelanguage.googleapis.com/v1beta/models",
    env_vars=("GEMINI_API_KEY", "GOOGLE_API_KEY"),
)

OLLAMA = ProviderInfo(
    id="ollama",
    name="Ollama (local)",
    models=("llama3.2", "mistral", "qwen2.5"),
    default_model="llama3.2",
    api_key_url="https://ollama.com/download",
    endpoint="http://localhost:11434",
    requires_api_key=False,
)

LOCAL = ProviderInfo(
    id="local",
    name="Local echo (offline)",
    models=("echo",),
    default_model="echo",
    api_key_url="",
    endpoint="",
    requires_api_key=False,
)

PROVIDERS: Dict[str, ProviderInfo] = {
    info.id: info for info in (OPENAI, ANTHROPIC, GEMINI, OLLAMA, LOCAL)
}

# Alternative spellings accepted in configuration.
PROVIDER_ALIASES: Dict[str, str] = {"google": "gemini", "claude": "anthropic"}


def normalize_provider_id(provider_id: str) -> str:
    key = (provider_id or "").strip().lower()
    return PROVIDER_ALIASES.get(key, key)


def get_provider_info(provider_id: str) -> ProviderInfo:
    """Look up a provider, raising ValueError with the known ids if missing."""
    key = normalize_provider_id(provider_id)
    try:
        return PROVIDERS[key]
    except KeyError:
        known = ", ".join(sorted(PROVIDERS))
        raise ValueError(f"Unknown provider '{provider_id}'. Known providers: {known}") from None


def get_provider_models(provider_id: str) -> List[str]:
    return list(get_provider_info(provider_id).models)


def get_default_model(provider_id: str) -> str:
    return get_provider_info(provider_id).default_model


def get_provider_name(provider_id: str) -> str:
    return get_provider_info(provider_id).name


__all__ = [
    "ProviderInfo",
    "PROVIDERS",
    "PROVIDER_ALIASES",
    "OPENAI",
    "ANTHROPIC",
    "GEMINI",
    "OLLAMA",
    "LOCAL",
    "normalize_provider_id",
    "get_provider_info",
    "get_provider_models",
    "get_default_model",
    "get_provider_name",
]
