"""
Tests for translation providers.

The OpenAI provider is exercised against a fake client so no network calls
are made.
"""

import json
from types import SimpleNamespace

import pytest

from babelframe.errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from babelframe.providers import (
    EchoTranslationProvider,
    OpenAITranslationProvider,
    build_provider,
)
from babelframe.structures import TextLeaf, TranslationResult

LEAVES = [TextLeaf("1:2", "Save", "Button"), TextLeaf("1:3", "Cancel", "Button")]


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_provider(monkeypatch, content):
    completions = FakeCompletions(content)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(
        OpenAITranslationProvider,
        "_build_client",
        lambda self: (client, "gpt-test"),
    )
    return OpenAITranslationProvider(settings=None), completions


class TestEchoProvider:
    def test_returns_original_text(self):
        results = EchoTranslationProvider().translate(LEAVES, target_language="French")
        assert results == [
            TranslationResult("1:2", "Save"),
            TranslationResult("1:3", "Cancel"),
        ]


class TestParseTranslations:
    """Tests for reading model replies."""

    def test_fenced_array(self):
        content = '```json\n[{"id": "1:2", "translated": "Guardar"}]\n```'
        assert OpenAITranslationProvider.parse_translations(content) == [
            {"id": "1:2", "translated": "Guardar"}
        ]

    def test_wrapped_object(self):
        content = '{"translations": [{"id": "1:2", "translated": "Sichern"}]}'
        assert OpenAITranslationProvider.parse_translations(content)[0]["translated"] == (
            "Sichern"
        )

    def test_invalid_json(self):
        with pytest.raises(TranslationProviderError, match="Failed to parse"):
            OpenAITranslationProvider.parse_translations("Sure! Here you go")

    def test_object_without_list(self):
        with pytest.raises(TranslationProviderError):
            OpenAITranslationProvider.parse_translations('{"id": "1:2"}')

    def test_strip_code_fence_plain_text(self):
        assert OpenAITranslationProvider.strip_code_fence("  [1]  ") == "[1]"


class TestOpenAIProvider:
    """Tests for the chat completion flow."""

    def test_translate(self, monkeypatch):
        reply = json.dumps(
            [
                {"id": "1:2", "translated": "Guardar"},
                {"id": "1:3", "translated": "Cancelar"},
            ]
        )
        provider, completions = fake_provider(monkeypatch, reply)

        results = provider.translate(
            LEAVES, target_language="Spanish", context="Checkout screen"
        )

        assert results == [
            TranslationResult("1:2", "Guardar"),
            TranslationResult("1:3", "Cancelar"),
        ]
        call = completions.calls[0]
        assert call["model"] == "gpt-test"
        assert call["temperature"] == 0.3
        assert call["max_tokens"] == 4000
        user_prompt = call["messages"][1]["content"]
        assert "Translate the following UI texts to Spanish." in user_prompt
        assert "Context: Checkout screen" in user_prompt
        assert '"text": "Save"' in user_prompt

    def test_model_override(self, monkeypatch):
        provider, completions = fake_provider(monkeypatch, "[]")
        provider.translate(LEAVES, target_language="Dutch", model="gpt-4o")
        assert completions.calls[0]["model"] == "gpt-4o"

    def test_no_leaves_skips_call(self, monkeypatch):
        provider, completions = fake_provider(monkeypatch, "[]")
        assert provider.translate([], target_language="Dutch") == []
        assert completions.calls == []

    def test_malformed_items(self, monkeypatch):
        provider, _ = fake_provider(monkeypatch, '[{"id": "1:2"}]')
        with pytest.raises(TranslationProviderError, match="missing fields"):
            provider.translate(LEAVES, target_language="Polish")

    def test_empty_reply(self, monkeypatch):
        provider, _ = fake_provider(monkeypatch, "")
        with pytest.raises(TranslationProviderError, match="empty"):
            provider.translate(LEAVES, target_language="Polish")

    def test_debug_logs_to_stderr(self, monkeypatch, capsys):
        provider, _ = fake_provider(monkeypatch, "[]")
        provider.debug = True
        provider.translate(LEAVES, target_language="Hindi")
        assert "[babelframe][provider-debug] provider.request.payload" in (
            capsys.readouterr().err
        )


class TestBuildProvider:
    """Tests for the provider factory."""

    def test_echo(self):
        assert isinstance(build_provider("echo"), EchoTranslationProvider)

    def test_unknown(self):
        with pytest.raises(TranslationProviderConfigurationError):
            build_provider("babelfish")

    def test_openai_requires_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        with pytest.raises(TranslationProviderConfigurationError, match="OPENAI_API_KEY"):
            build_provider("openai")

    def test_azure_reports_missing_settings(self, monkeypatch):
        monkeypatch.delenv("AZURE_OPENAI_ENDPOINT", raising=False)
        monkeypatch.delenv("AZURE_OPENAI_API_VERSION", raising=False)
        settings = SimpleNamespace(
            LLM_PROVIDER="azure-openai",
            AZURE_OPENAI_API_KEY="key",
            AZURE_OPENAI_ENDPOINT=None,
            AZURE_OPENAI_API_VERSION=None,
            AZURE_OPENAI_DEPLOYMENT_NAME="deployment",
        )
        with pytest.raises(TranslationProviderConfigurationError) as excinfo:
            build_provider("openai", settings=settings)
        message = str(excinfo.value)
        assert "AZURE_OPENAI_ENDPOINT" in message
        assert "AZURE_OPENAI_DEPLOYMENT_NAME" not in message
