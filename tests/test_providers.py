"""Tests for the HTTP AI providers and the provider manager."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from Providers.AnthropicProvider import AnthropicProvider
from Providers.GeminiProvider import GeminiProvider
from Providers.GroqProvider import GroqProvider
from Providers.InitAIProvider import AIProviderManager, ProviderConfig, ProviderType
from Providers.OpenAIProvider import OpenAIProvider


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _chat(content):
    return {"choices": [{"message": {"content": content}}]}


def test_openai_parses_json_answer():
    provider = OpenAIProvider("key", timeout=7)
    with patch("requests.post", return_value=_response(_chat('{"category": "learning", "confidence": 0.82}'))) as post:
        result = provider.classify("some page text")
    assert result.category == "Learning"
    assert result.confidence == pytest.approx(0.82)
    assert post.call_args.kwargs["timeout"] == 7
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer key"


def test_bare_label_gets_zero_confidence():
    provider = GroqProvider("key")
    with patch("requests.post", return_value=_response(_chat("Social"))):
        result = provider.classify("feed")
    assert result.category == "Social"
    assert result.confidence == 0.0


def test_unknown_label_is_none():
    provider = OpenAIProvider("key")
    with patch("requests.post", return_value=_response(_chat('{"category": "Gardening", "confidence": 1}'))):
        assert provider.classify("text") is None


def test_confidence_clamped():
    provider = OpenAIProvider("key")
    with patch("requests.post", return_value=_response(_chat('{"category": "Work", "confidence": 3}'))):
        assert provider.classify("text").confidence == 1.0


def test_http_error_returns_none():
    provider = AnthropicProvider("key")
    with patch("requests.post", side_effect=requests.ConnectionError("down")):
        assert provider.classify("text") is None


def test_malformed_body_returns_none():
    provider = GeminiProvider("key")
    with patch("requests.post", return_value=_response({"unexpected": True})):
        assert provider.classify("text") is None


def test_anthropic_and_gemini_payloads():
    anthropic = AnthropicProvider("key")
    with patch("requests.post", return_value=_response({"content": [{"text": '{"category": "Work", "confidence": 0.9}'}]})):
        assert anthropic.classify("text").category == "Work"

    gemini = GeminiProvider("key", model_name="gemini-test")
    body = {"candidates": [{"content": {"parts": [{"text": '```json\n{"category": "Shopping", "confidence": 0.75}\n```'}]}}]}
    with patch("requests.post", return_value=_response(body)) as post:
        assert gemini.classify("text").category == "Shopping"
    assert "gemini-test" in post.call_args.args[0]


def test_manager_requires_api_key():
    with pytest.raises(ValueError, match="API key is required"):
        AIProviderManager().create_provider(ProviderConfig(ProviderType.OPENAI, ""))


def test_manager_from_environment(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "test-key-123")
    manager = AIProviderManager.from_environment(ProviderType.GROQ)
    provider = manager.get_default_provider()
    assert isinstance(provider, GroqProvider)
    assert provider.api_key == "test-key-123"


def test_manager_from_environment_missing(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        AIProviderManager.from_environment(ProviderType.GEMINI)


def test_save_and_restore(tmp_path):
    manager = AIProviderManager(config_file=tmp_path / "config" / "provider.json")
    manager.save_provider(ProviderConfig(ProviderType.ANTHROPIC, "secret", model_name="m", timeout=12))

    restored = AIProviderManager(config_file=tmp_path / "config" / "provider.json")
    provider = restored.restore()
    assert isinstance(provider, AnthropicProvider)
    assert provider.model_name == "m"
    assert provider.timeout == 12


def test_restore_without_file(tmp_path):
    assert AIProviderManager(config_file=tmp_path / "none.json").restore() is None


def test_corrupt_config_ignored(tmp_path):
    path = tmp_path / "provider.json"
    path.write_text("{not json", encoding="utf-8")
    assert AIProviderManager(config_file=path).load_provider() is None
