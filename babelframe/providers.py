"""Translation provider abstractions."""

from __future__ import annotations

import json
import os
import sys
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from .errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from .structures import TextLeaf, TranslationResult

DEFAULT_CONTEXT = "General app content"

SYSTEM_PROMPT = (
    "You are a professional translator and localization expert. "
    "Always respond with valid JSON only."
)

USER_PROMPT_TEMPLATE = """You are a professional app localization expert. Translate the following UI texts to {target_language}.

Context: {context}

CRITICAL guidelines for app/UI localization:
- Keep translations SHORT and CONCISE - UI space is limited
- Match or reduce the original character count when possible
- Use common, everyday words that users understand instantly
- Adapt culturally - don't translate literally, localize naturally
- Preserve line breaks and formatting exactly
- Keep brand names, product names, and proper nouns unchanged
- Use the standard UI terminology for the target language
- For action buttons, use imperative verbs (e.g., "Save", "Send", "Next")

Texts to translate (JSON format):
{texts_json}

Respond with ONLY a JSON array in this exact format (no markdown, no explanation):
[{{"id": "original_id", "translated": "translated text"}}, ...]"""


class TranslationProvider(ABC):
    """Abstract adapter for translation providers."""

    @abstractmethod
    def translate(
        self,
        leaves: Sequence[TextLeaf],
        *,
        target_language: str,
        context: str = DEFAULT_CONTEXT,
        model: str | None = None,
    ) -> List[TranslationResult]:
        """Translate the provided leaves and return one result per leaf id."""


class EchoTranslationProvider(TranslationProvider):
    """A provider that returns the original text (useful for testing)."""

    def translate(
        self,
        leaves: Sequence[TextLeaf],
        *,
        target_language: str,
        context: str = DEFAULT_CONTEXT,
        model: str | None = None,
    ) -> List[TranslationResult]:
        return [
            TranslationResult(original_id=leaf.id, translated_text=leaf.content)
            for leaf in leaves
        ]


class OpenAITranslationProvider(TranslationProvider):
    """Translation provider that uses OpenAI (or Azure OpenAI) chat models."""

    DEFAULT_MODEL = "gpt-4o-mini"
    TEMPERATURE = 0.3
    MAX_TOKENS = 4000

    def __init__(self, *, settings: Any = None, debug: bool = False) -> None:
        self.settings = settings
        self.debug = debug
        provider_value = self._setting("LLM_PROVIDER") or "openai"
        normalized = provider_value.strip().lower().replace("-", "_")
        if normalized in {"azure_open_ai", "azureopenai"}:
            normalized = "azure_openai"
        if normalized not in {"openai", "azure_openai"}:
            normalized = "openai"

        self.provider_kind = normalized
        self._client, self._default_model = self._build_client()

    def _setting(self, name: str) -> str | None:
        value = getattr(self.settings, name, None) if self.settings is not None else None
        if value is None:
            value = os.getenv(name)
        return value

    def _build_client(self) -> tuple[Any, str]:
        if self.provider_kind == "azure_openai":
            return self._build_azure_client()

        return self._build_openai_client()

    def _build_openai_client(self) -> tuple[Any, str]:
        api_key = self._setting("OPENAI_API_KEY")
        if not api_key:
            raise TranslationProviderConfigurationError(
                "OpenAI configuration missing. Set OPENAI_API_KEY or choose a "
                "different provider."
            )
        from openai import OpenAI

        model = self._setting("BABELFRAME_MODEL") or self.DEFAULT_MODEL
        return OpenAI(api_key=api_key), model

    def _build_azure_client(self) -> tuple[Any, str]:
        api_key = self._setting("AZURE_OPENAI_API_KEY")
        endpoint = self._setting("AZURE_OPENAI_ENDPOINT")
        api_version = self._setting("AZURE_OPENAI_API_VERSION")
        deployment_name = self._setting("AZURE_OPENAI_DEPLOYMENT_NAME")

        missing = [
            name
            for name, value in {
                "AZURE_OPENAI_API_KEY": api_key,
                "AZURE_OPENAI_ENDPOINT": endpoint,
                "AZURE_OPENAI_API_VERSION": api_version,
                "AZURE_OPENAI_DEPLOYMENT_NAME": deployment_name,
            }.items()
            if not value
        ]
        if missing:
            raise TranslationProviderConfigurationError(
                "Azure OpenAI configuration incomplete. Please set: "
                + ", ".join(missing)
                + "."
            )

        from openai import AzureOpenAI

        client = AzureOpenAI(
            api_key=api_key,
            api_version=api_version,
            azure_endpoint=endpoint,
        )
        return client, deployment_name  # type: ignore[return-value]

    def translate(
        self,
        leaves: Sequence[TextLeaf],
        *,
        target_language: str,
        context: str = DEFAULT_CONTEXT,
        model: str | None = None,
    ) -> List[TranslationResult]:
        if not leaves:
            return []

        payload = [{"id": leaf.id, "text": leaf.content} for leaf in leaves]
        user_prompt = USER_PROMPT_TEMPLATE.format(
            target_language=target_language,
            context=context or DEFAULT_CONTEXT,
            texts_json=json.dumps(payload, ensure_ascii=False, indent=2),
        )
        self._log_debug("provider.request.payload", payload)

        content = self._invoke_model(
            user_prompt=user_prompt,
            model=model or self._default_model,
        )
        items = self.parse_translations(content)
        self._log_debug("provider.response.items", items)

        results: List[TranslationResult] = []
        for item in items:
            if not isinstance(item, dict):
                raise TranslationProviderError(
                    "Translation provider response malformed: expected objects."
                )
            leaf_id = item.get("id")
            translated = item.get("translated")
            if not isinstance(leaf_id, str) or not isinstance(translated, str):
                raise TranslationProviderError(
                    "Translation provider response malformed: missing fields."
                )
            results.append(TranslationResult(original_id=leaf_id, translated_text=translated))
        return results

    def _invoke_model(self, *, user_prompt: str, model: str) -> str:
        """Call the Chat Completions API and return the message text."""

        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise TranslationProviderError(
                f"Translation service unavailable: {exc}"
            ) from exc
        self._log_debug("provider.response.raw", self._safe_dump_response(response))

        choices = getattr(response, "choices", None) or []
        for choice in choices:
            message = getattr(choice, "message", None)
            message_content = getattr(message, "content", None)
            if message_content:
                return str(message_content)

        raise TranslationProviderError(
            "Translation provider response empty or unrecognised."
        )

    def _log_debug(self, label: str, payload: Any) -> None:
        """Emit structured debug information when enabled."""

        if not self.debug:
            return
        try:
            if isinstance(payload, (dict, list)):
                message = json.dumps(payload, ensure_ascii=False, indent=2)
            else:
                message = str(payload)
        except (TypeError, ValueError):
            message = repr(payload)
        print(f"[babelframe][provider-debug] {label}:\n{message}", file=sys.stderr)

    def _safe_dump_response(self, response: Any) -> Any:
        """Best-effort conversion of SDK response objects into JSON-friendly data."""

        model_dump = getattr(response, "model_dump", None)
        if callable(model_dump):
            try:
                return model_dump()
            except Exception:  # pragma: no cover - SDK specific
                pass
        return str(response)

    @staticmethod
    def strip_code_fence(text: str) -> str:
        """Remove leading/trailing markdown code fences if present."""

        stripped = text.strip()
        if not stripped.startswith("```"):
            return stripped

        # Drop opening fence and optional language hint.
        first_newline = stripped.find("\n")
        if first_newline == -1:
            return stripped.strip("`")
        body = stripped[first_newline + 1 :]
        closing_index = body.rfind("```")
        if closing_index != -1:
            body = body[:closing_index]
        return body.strip()

    @classmethod
    def parse_translations(cls, content: str) -> list[Any]:
        """Parse the model's reply into a list of translation dictionaries."""

        try:
            payload = json.loads(cls.strip_code_fence(content))
        except json.JSONDecodeError as exc:
            raise TranslationProviderError(
                "Failed to parse translation response."
            ) from exc

        if isinstance(payload, dict):
            translations = payload.get("translations")
            if isinstance(translations, list):
                return translations
        if isinstance(payload, list):
            return payload

        raise TranslationProviderError(
            "Translation provider response malformed: could not find translations list."
        )


def build_provider(
    name: str | None,
    *,
    settings: Any = None,
    debug: bool = False,
) -> TranslationProvider:
    """Factory to create providers by name."""

    normalized = (name or "openai").strip().lower()
    if normalized in {"openai", "gpt", "default"}:
        return OpenAITranslationProvider(settings=settings, debug=debug)
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    raise TranslationProviderConfigurationError(
        f"Unknown translation provider '{name}'."
    )
