"""Tests for LLMClient provider abstraction."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from cricket_agent.common.config import LLMConfig
from cricket_agent.common.llm_client import LLMClient, build_llm_client


class TestLLMClientInit:
    @pytest.mark.parametrize("provider", ["openrouter", "openai", "anthropic", "google"])
    def test_missing_key_logs_info(self, provider, caplog):
        with caplog.at_level(logging.INFO, logger="cricket_agent.common.llm_client"):
            client = LLMClient(provider=provider)
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cricket_agent.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz", api_key="k")
        assert not client.is_available
        assert "Unsupported" in caplog.text

    def test_openrouter_uses_base_url_and_headers(self):
        with patch("openai.OpenAI") as openai_cls:
            client = LLMClient(provider="openrouter", model="m", api_key="sk-or")
        assert client.is_available
        kwargs = openai_cls.call_args.kwargs
        assert kwargs["base_url"] == "https://openrouter.ai/api/v1"
        assert kwargs["default_headers"]["X-Title"] == "Cricket Data Agent"


class TestLLMClientGenerate:
    def test_generate_raises_when_unavailable(self):
        client = LLMClient(provider="anthropic")
        with pytest.raises(RuntimeError, match="not available"):
            client.generate("test")

    def test_openai_generate_passes_timeout(self):
        with patch("openai.OpenAI") as openai_cls:
            client = LLMClient(provider="openai", model="gpt-4o-mini", api_key="sk", timeout=7.5)
        completion = MagicMock()
        completion.choices[0].message.content = "  true \n"
        openai_cls.return_value.chat.completions.create.return_value = completion

        assert client.generate("is this cricket?", max_tokens=10) == "true"
        kwargs = openai_cls.return_value.chat.completions.create.call_args.kwargs
        assert kwargs["timeout"] == 7.5
        assert kwargs["max_tokens"] == 10
        assert kwargs["temperature"] == 0

    def test_anthropic_generate(self):
        with patch("anthropic.Anthropic") as anthropic_cls:
            client = LLMClient(provider="anthropic", model="claude", api_key="sk-ant")
        message = MagicMock()
        message.content[0].text = '{"type": "find"}'
        anthropic_cls.return_value.messages.create.return_value = message

        assert client.generate("q") == '{"type": "find"}'
        kwargs = anthropic_cls.return_value.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "q"}]
        assert "system" not in kwargs


class TestBuildLLMClient:
    def test_none_without_credentials(self):
        assert build_llm_client(LLMConfig()) is None

    def test_none_for_unknown_provider(self):
        assert build_llm_client(LLMConfig(provider="mystery", openai_api_key="sk")) is None

    def test_client_when_configured(self):
        with patch("openai.OpenAI"):
            client = build_llm_client(LLMConfig(provider="openai", openai_api_key="sk"))
        assert client is not None
        assert client.model == "gpt-4o-mini"

    def test_google_model_built_once(self):
        with patch("google.generativeai.configure"):
            client = LLMClient(provider="google", model="gemini-2.0-flash", api_key="g-key")
        genai = MagicMock()
        genai.GenerativeModel.return_value.generate_content.return_value.text = " false "
        client._client = genai

        assert client.generate("a") == "false"
        assert client.generate("b") == "false"
        genai.GenerativeModel.assert_called_once_with(model_name="gemini-2.0-flash")
