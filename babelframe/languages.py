"""Supported target languages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .errors import UnknownLanguageError


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    flag: str


LANGUAGES: List[Language] = [
    Language("es", "Spanish", "🇪🇸"),
    Language("fr", "French", "🇫🇷"),
    Language("de", "German", "🇩🇪"),
    Language("it", "Italian", "🇮🇹"),
    Language("pt", "Portuguese", "🇵🇹"),
    Language("nl", "Dutch", "🇳🇱"),
    Language("pl", "Polish", "🇵🇱"),
    Language("ru", "Russian", "🇷🇺"),
    Language("ja", "Japanese", "🇯🇵"),
    Language("ko", "Korean", "🇰🇷"),
    Language("zh", "Chinese", "🇨🇳"),
    Language("ar", "Arabic", "🇸🇦"),
    Language("tr", "Turkish", "🇹🇷"),
    Language("hi", "Hindi", "🇮🇳"),
    Language("sv", "Swedish", "🇸🇪"),
    Language("no", "Norwegian", "🇳🇴"),
    Language("da", "Danish", "🇩🇰"),
    Language("fi", "Finnish", "🇫🇮"),
]


def resolve_language(value: str) -> Language:
    """Find a language by code or English name, ignoring case."""

    normalized = value.strip().lower()
    for language in LANGUAGES:
        if normalized in {language.code, language.name.lower()}:
            return language
    raise UnknownLanguageError(
        f"Unsupported language '{value}'. Choose one of: "
        + ", ".join(language.code for language in LANGUAGES)
        + "."
    )
