"""Messages exchanged between the plugin host and its caller.

Every message is a dataclass with a ``type`` tag. ``encode_message`` turns a
message into a JSON-ready dict with camelCase keys and ``decode_message``
reverses it, rejecting unknown tags. Inbound messages are sent by the caller
to the host; outbound messages travel the other way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type, Union

from .errors import UnknownMessageError
from .structures import LanguageTranslation, TextLeaf, TranslationResult


def _flag(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise UnknownMessageError(f"'{key}' must be true or false.")
    return value


def _count(payload: Mapping[str, Any], key: str, default: Optional[int] = None) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise UnknownMessageError(f"'{key}' must be a non-negative integer.")
    return value


def _results_from_payload(raw: Any) -> List[TranslationResult]:
    if not isinstance(raw, list):
        raise UnknownMessageError("Translation texts must be a list.")
    results: List[TranslationResult] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise UnknownMessageError("Translation entries must be objects.")
        item_id = item.get("id")
        translated = item.get("translated")
        if not isinstance(item_id, str) or not isinstance(translated, str):
            raise UnknownMessageError(
                "Translation entries need string 'id' and 'translated' fields."
            )
        results.append(TranslationResult(original_id=item_id, translated_text=translated))
    return results


def _results_to_payload(results: List[TranslationResult]) -> List[Dict[str, str]]:
    return [
        {"id": result.original_id, "translated": result.translated_text}
        for result in results
    ]


def _language_from_payload(raw: Any) -> LanguageTranslation:
    if not isinstance(raw, Mapping):
        raise UnknownMessageError("Translations must be objects.")
    return LanguageTranslation(
        language=str(raw.get("language") or ""),
        language_code=str(raw.get("languageCode") or ""),
        texts=_results_from_payload(raw.get("texts", [])),
    )


def _language_to_payload(translation: LanguageTranslation) -> Dict[str, Any]:
    return {
        "language": translation.language,
        "languageCode": translation.language_code,
        "texts": _results_to_payload(translation.texts),
    }


# --- Inbound ---------------------------------------------------------------


@dataclass
class StartSession:
    type: ClassVar[str] = "start-session"

    total_languages: int = 0
    create_copies: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StartSession":
        return cls(
            total_languages=_count(payload, "totalLanguages", 0),
            create_copies=_flag(payload, "createCopies"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "totalLanguages": self.total_languages,
            "createCopies": self.create_copies,
        }


@dataclass
class ApplySingleTranslation:
    type: ClassVar[str] = "apply-single-translation"

    translation: LanguageTranslation
    create_copies: bool = False
    index: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ApplySingleTranslation":
        # Accept both the nested {"translation": {...}} form and flat fields.
        nested = payload.get("translation")
        translation = _language_from_payload(nested if nested is not None else payload)
        return cls(
            translation=translation,
            create_copies=_flag(payload, "createCopies"),
            index=_count(payload, "index"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = _language_to_payload(self.translation)
        payload["createCopies"] = self.create_copies
        if self.index is not None:
            payload["index"] = self.index
        return payload


@dataclass
class ApplyTranslations:
    type: ClassVar[str] = "apply-translations"

    translations: List[LanguageTranslation] = field(default_factory=list)
    create_copies: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ApplyTranslations":
        raw = payload.get("translations", [])
        if not isinstance(raw, list):
            raise UnknownMessageError("'translations' must be a list.")
        return cls(
            translations=[_language_from_payload(item) for item in raw],
            create_copies=_flag(payload, "createCopies"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "translations": [_language_to_payload(item) for item in self.translations],
            "createCopies": self.create_copies,
        }


@dataclass
class SessionComplete:
    type: ClassVar[str] = "session-complete"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SessionComplete":
        return cls()

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass
class Cancel:
    type: ClassVar[str] = "cancel"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Cancel":
        return cls()

    def to_payload(self) -> Dict[str, Any]:
        return {}


# --- Outbound --------------------------------------------------------------


@dataclass
class Extracted:
    type: ClassVar[str] = "extracted"

    texts: List[TextLeaf] = field(default_factory=list)
    container_id: Optional[str] = None
    container_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Extracted":
        raw = payload.get("texts", [])
        if not isinstance(raw, list):
            raise UnknownMessageError("Extracted texts must be a list.")
        texts: List[TextLeaf] = []
        for item in raw:
            if not isinstance(item, Mapping) or not isinstance(item.get("id"), str):
                raise UnknownMessageError("Extracted entries need a string 'id'.")
            texts.append(
                TextLeaf(
                    id=item["id"],
                    content=str(item.get("characters") or ""),
                    display_name=str(item.get("name") or ""),
                )
            )
        return cls(
            texts=texts,
            container_id=payload.get("containerId"),
            container_name=payload.get("containerName"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "texts": [
                {"id": leaf.id, "characters": leaf.content, "name": leaf.display_name}
                for leaf in self.texts
            ],
            "containerId": self.container_id,
            "containerName": self.container_name,
        }


@dataclass
class NoSelection:
    type: ClassVar[str] = "no-selection"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NoSelection":
        return cls()

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass
class NoText:
    type: ClassVar[str] = "no-text"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NoText":
        return cls()

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass
class Success:
    type: ClassVar[str] = "success"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Success":
        return cls()

    def to_payload(self) -> Dict[str, Any]:
        return {}


@dataclass
class Error:
    type: ClassVar[str] = "error"

    message: str = "Unknown error"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Error":
        return cls(message=str(payload.get("message") or "Unknown error"))

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message}


InboundMessage = Union[
    StartSession, ApplySingleTranslation, ApplyTranslations, SessionComplete, Cancel
]
OutboundMessage = Union[Extracted, NoSelection, NoText, Success, Error]
Message = Union[InboundMessage, OutboundMessage]

INBOUND_TYPES: tuple = (
    StartSession,
    ApplySingleTranslation,
    ApplyTranslations,
    SessionComplete,
    Cancel,
)
OUTBOUND_TYPES: tuple = (Extracted, NoSelection, NoText, Success, Error)

_REGISTRY: Dict[str, Type[Any]] = {
    message_cls.type: message_cls for message_cls in INBOUND_TYPES + OUTBOUND_TYPES
}


def decode_message(payload: Any) -> Message:
    """Decode a JSON-ready dict into its message dataclass."""

    if not isinstance(payload, Mapping):
        raise UnknownMessageError("Messages must be objects with a 'type' field.")
    tag = payload.get("type")
    message_cls = _REGISTRY.get(tag) if isinstance(tag, str) else None
    if message_cls is None:
        raise UnknownMessageError(f"Unknown message type '{tag}'.")
    return message_cls.from_payload(payload)


def encode_message(message: Message) -> Dict[str, Any]:
    """Encode a message dataclass into a JSON-ready dict."""

    if not isinstance(message, INBOUND_TYPES + OUTBOUND_TYPES):
        raise UnknownMessageError(f"Cannot encode {type(message).__name__}.")
    payload: Dict[str, Any] = {"type": message.type}
    payload.update(message.to_payload())
    return payload
