"""
Tests for the message codec.
"""

import pytest

from babelframe.errors import UnknownMessageError
from babelframe.messages import (
    ApplySingleTranslation,
    ApplyTranslations,
    Cancel,
    Error,
    Extracted,
    StartSession,
    decode_message,
    encode_message,
)
from babelframe.structures import LanguageTranslation, TextLeaf, TranslationResult


class TestDecodeMessage:
    """Tests for decoding caller payloads."""

    def test_start_session(self):
        message = decode_message(
            {"type": "start-session", "totalLanguages": 3, "createCopies": True}
        )
        assert message == StartSession(total_languages=3, create_copies=True)

    def test_apply_single_translation_flat(self):
        """The flat field layout is accepted."""
        message = decode_message(
            {
                "type": "apply-single-translation",
                "language": "Spanish",
                "languageCode": "es",
                "texts": [{"id": "1:2", "translated": "Hola"}],
                "createCopies": True,
                "index": 0,
            }
        )
        assert isinstance(message, ApplySingleTranslation)
        assert message.translation.language_code == "es"
        assert message.translation.texts == [TranslationResult("1:2", "Hola")]
        assert message.create_copies is True
        assert message.index == 0

    def test_apply_single_translation_nested(self):
        """A nested translation object is accepted too."""
        message = decode_message(
            {
                "type": "apply-single-translation",
                "translation": {
                    "language": "French",
                    "languageCode": "fr",
                    "texts": [{"id": "1:2", "translated": "Bonjour"}],
                },
            }
        )
        assert message.translation.language == "French"
        assert message.create_copies is False
        assert message.index is None

    def test_apply_translations(self):
        message = decode_message(
            {
                "type": "apply-translations",
                "createCopies": True,
                "translations": [
                    {"language": "German", "languageCode": "de", "texts": []},
                    {"language": "Italian", "languageCode": "it", "texts": []},
                ],
            }
        )
        assert isinstance(message, ApplyTranslations)
        assert [t.language_code for t in message.translations] == ["de", "it"]

    def test_cancel(self):
        assert decode_message({"type": "cancel"}) == Cancel()

    def test_unknown_type(self):
        with pytest.raises(UnknownMessageError, match="resize"):
            decode_message({"type": "resize", "width": 300})

    def test_missing_type(self):
        with pytest.raises(UnknownMessageError):
            decode_message({"texts": []})

    def test_not_an_object(self):
        with pytest.raises(UnknownMessageError):
            decode_message(["start-session"])

    def test_counts_must_be_integers(self):
        with pytest.raises(UnknownMessageError, match="totalLanguages"):
            decode_message({"type": "start-session", "totalLanguages": "two"})
        with pytest.raises(UnknownMessageError, match="index"):
            decode_message(
                {"type": "apply-single-translation", "texts": [], "index": True}
            )

    def test_flags_must_be_booleans(self):
        with pytest.raises(UnknownMessageError, match="createCopies"):
            decode_message({"type": "start-session", "createCopies": "false"})

    def test_extracted_entry_without_id(self):
        with pytest.raises(UnknownMessageError):
            decode_message({"type": "extracted", "texts": [{"characters": "Hi"}]})

    def test_malformed_texts(self):
        with pytest.raises(UnknownMessageError):
            decode_message(
                {
                    "type": "apply-single-translation",
                    "languageCode": "es",
                    "texts": [{"id": 3, "translated": "Hola"}],
                }
            )


class TestEncodeMessage:
    """Tests for encoding host replies."""

    def test_extracted_shape(self):
        payload = encode_message(
            Extracted(
                texts=[TextLeaf("1:2", "Hello", "Title")],
                container_id="1:1",
                container_name="Card",
            )
        )
        assert payload == {
            "type": "extracted",
            "texts": [{"id": "1:2", "characters": "Hello", "name": "Title"}],
            "containerId": "1:1",
            "containerName": "Card",
        }

    def test_error(self):
        assert encode_message(Error(message="Boom")) == {"type": "error", "message": "Boom"}

    def test_apply_single_translation_is_flat(self):
        payload = encode_message(
            ApplySingleTranslation(
                translation=LanguageTranslation(
                    "Spanish", "es", [TranslationResult("1:2", "Hola")]
                ),
                create_copies=True,
                index=2,
            )
        )
        assert payload["type"] == "apply-single-translation"
        assert payload["languageCode"] == "es"
        assert payload["texts"] == [{"id": "1:2", "translated": "Hola"}]
        assert payload["index"] == 2

    def test_reject_foreign_objects(self):
        with pytest.raises(UnknownMessageError):
            encode_message({"type": "success"})
