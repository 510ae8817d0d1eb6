"""
Tests for the provider catalog (models.py) and the provider factory.
"""

from __future__ import annotations

import json

import pytest
from conftest import WireServer, sse

from chatturn.exceptions import ProviderConfigurationError
from chatturn.models import (
    PROVIDERS,
    get_default_model,
    get_provider_info,
    get_provider_models,
    get_provider_name,
    normalize_provider_id,
)
from chatturn.providers import (
    AnthropicProvider,
    GeminiProvider,
    LocalProvider,
    OllamaProvider,
    OpenAIProvider,
    ProviderSettings,
    check_connection,
    create_provider,
    provider_from_settings,
)
from chatturn.providers.factory import CONNECTION_CHECK_PROMPT


class TestCatalog:
    def test_every_provider_has_its_default_among_models(self):
        for info in PROVIDERS.values():
            assert info.default_model in info.models, info.id

    def test_hosted_providers_declare_api_key_variables(self):
        for provider_id in ("openai", "anthropic", "gemini"):
            info = get_provider_info(provider_id)
            assert info.requires_api_key
            assert info.env_vars

    def test_local_servers_need_no_key(self):
        assert not get_provider_info("ollama").requires_api_key
        assert not get_provider_info("local").requires_api_key

    @pytest.mark.parametrize(
        "alias, expected",
        [("google", "gemini"), ("Claude", "anthropic"), ("  OpenAI ", "openai"), ("gemini", "gemini")],
    )
    def test_aliases_normalize(self, alias, expected):
        assert normalize_provider_id(alias) == expected
        assert get_provider_info(alias).id == expected

    def test_unknown_provider_lists_known_ids(self):
        with pytest.raises(ValueError) as exc_info:
            get_provider_info("mistral-cloud")
        message = str(exc_info.value)
        assert "mistral-cloud" in message
        assert "anthropic" in message and "openai" in message

    def test_lookup_helpers(self):
        assert get_default_model("openai") == "gpt-4o"
        assert get_provider_name("anthropic") == "Anthropic Claude"
        assert get_provider_models("gemini")[0] == "gemini-2.5-pro"


class TestFactory:
    @pytest.mark.parametrize(
        "provider_id, provider_class",
        [
            ("openai", OpenAIProvider),
            ("anthropic", AnthropicProvider),
            ("google", GeminiProvider),
            ("gemini", GeminiProvider),
        ],
    )
    def test_hosted_providers_with_explicit_key(self, provider_id, provider_class):
        provider = create_provider(provider_id, api_key="sk-test")
        assert isinstance(provider, provider_class)
        assert provider.api_key == "sk-test"
        assert provider.default_model == get_provider_info(provider_id).default_model

    def test_model_and_base_url_overrides(self):
        provider = create_provider(
            "openai",
            api_key="sk-test",
            model="gpt-4-turbo",
            base_url="https://proxy.example.com/v1/chat/completions",
            request_timeout=30.0,
        )
        assert provider.default_model == "gpt-4-turbo"
        assert provider.base_url == "https://proxy.example.com/v1/chat/completions"
        assert provider.request_timeout == 30.0

    def test_ollama_without_key(self, monkeypatch):
        monkeypatch.delenv("OLLAMA_API_KEY", raising=False)
        provider = create_provider("ollama")
        assert isinstance(provider, OllamaProvider)
        assert provider.base_url == "http://localhost:11434"

    def test_local_provider(self):
        provider = create_provider("local", model="echo")
        assert isinstance(provider, LocalProvider)
        assert provider.default_model == "echo"

    def test_missing_key_raises_configuration_error(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ProviderConfigurationError) as exc_info:
            create_provider("anthropic")
        assert exc_info.value.env_var == "ANTHROPIC_API_KEY"
        assert exc_info.value.provider_name == "Anthropic"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_provider("nope")

    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        provider = provider_from_settings(ProviderSettings(provider_id="openai", model="gpt-4"))
        assert isinstance(provider, OpenAIProvider)
        assert provider.api_key == "sk-env"
        assert provider.default_model == "gpt-4"

    def test_settings_defaults(self):
        settings = ProviderSettings()
        assert settings.provider_id == "openai"
        assert settings.api_key is None and settings.model is None


class TestCheckConnection:
    @pytest.mark.asyncio
    async def test_success_on_first_event(self):
        server = WireServer(
            [sse({"choices": [{"delta": {"content": "OK"}}]}, "[DONE]")]
        )
        provider = OpenAIProvider(api_key="test-key", client=server.client())

        assert await check_connection(provider) == (True, None)

        body = server.last_json
        assert body["messages"] == [{"role": "user", "content": CONNECTION_CHECK_PROMPT}]
        assert body["max_tokens"] == 16

    @pytest.mark.asyncio
    async def test_invalid_key_reports_provider_message(self):
        body = json.dumps({"error": {"message": "Incorrect API key provided"}}).encode()
        server = WireServer([body], status_code=401, content_type="application/json")
        provider = OpenAIProvider(api_key="bad-key", client=server.client())

        assert await check_connection(provider) == (False, "Incorrect API key provided")

    @pytest.mark.asyncio
    async def test_bad_request_reports_provider_message(self):
        body = json.dumps([{"error": {"code": 400, "message": "API key not valid"}}]).encode()
        server = WireServer([body], status_code=400, content_type="application/json")
        provider = GeminiProvider(api_key="bad-key", client=server.client())

        assert await check_connection(provider) == (False, "API key not valid")

    @pytest.mark.asyncio
    async def test_empty_stream_is_a_failure(self):
        provider = OpenAIProvider(api_key="test-key", client=WireServer([]).client())

        ok, error = await check_connection(provider)

        assert ok is False
        assert error == "No response from provider"

    @pytest.mark.asyncio
    async def test_local_provider(self):
        assert await check_connection(LocalProvider()) == (True, None)
