"""Core data structures for the Babelframe translator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class NodeKind(Enum):
    """Closed classification of scene nodes."""

    TEXT = "text"
    CONTAINER = "container"
    OTHER = "other"


CONTAINER_TYPES = frozenset(
    {"FRAME", "GROUP", "COMPONENT", "COMPONENT_SET", "INSTANCE", "SECTION"}
)


def kind_for_type(type_name: str | None) -> NodeKind:
    """Map a design-tool type tag such as ``FRAME`` onto a ``NodeKind``."""

    normalized = (type_name or "").strip().upper()
    if normalized == "TEXT":
        return NodeKind.TEXT
    if normalized in CONTAINER_TYPES:
        return NodeKind.CONTAINER
    return NodeKind.OTHER


@dataclass(frozen=True)
class FontName:
    """A font family and style pair."""

    family: str
    style: str = "Regular"

    def __str__(self) -> str:
        return f"{self.family} {self.style}"


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle; both intervals are half-open."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def moved_to(self, y: float) -> "Box":
        return Box(x=self.x, y=y, width=self.width, height=self.height)


@dataclass(frozen=True)
class TextLeaf:
    """Snapshot of a text-bearing node taken at collection time."""

    id: str
    content: str
    display_name: str


@dataclass(frozen=True)
class TranslationResult:
    """A translated string keyed by the id of a leaf in the original tree."""

    original_id: str
    translated_text: str


@dataclass
class LanguageTranslation:
    """All translated strings for one target language."""

    language: str
    language_code: str
    texts: List[TranslationResult] = field(default_factory=list)
