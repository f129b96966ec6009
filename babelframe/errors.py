"""Error definitions for the Babelframe translator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises runtime errors for reporting."""

    TRANSLATION = auto()
    RESOURCE = auto()
    REINSERTION = auto()


class BabelframeError(Exception):
    """Base exception for all custom errors."""


class SceneFormatError(BabelframeError):
    """Raised when a scene document cannot be parsed."""


class OverwriteRefusedError(BabelframeError):
    """Raised when attempting to overwrite an output without consent."""


class UnknownLanguageError(BabelframeError):
    """Raised when a language code or name is not in the catalogue."""


class UnknownMessageError(BabelframeError):
    """Raised when a message has an unrecognised type tag or malformed fields."""


class ResourceResolutionError(BabelframeError):
    """Raised when a font required for a text write cannot be loaded."""


class ConfigurationError(BabelframeError):
    """Raised when settings cannot be loaded or hold invalid values."""


class TranslationProviderConfigurationError(ConfigurationError):
    """Raised when the translation provider is misconfigured."""


class TranslationProviderError(BabelframeError):
    """Raised when the translation provider fails or returns malformed output."""


class SessionCancelledError(BabelframeError):
    """Raised when a cycle is requested on a cancelled session."""


class LanguageApplyError(BabelframeError):
    """Raised when applying one language's translations fails part way."""

    def __init__(
        self,
        message: str,
        *,
        language_code: str,
        applied_count: int,
        category: ErrorCategory = ErrorCategory.REINSERTION,
    ) -> None:
        super().__init__(message)
        self.language_code = language_code
        self.applied_count = applied_count
        self.category = category


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None
