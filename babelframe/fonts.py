"""Font resolution performed before every text write."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, List, Set

from .errors import ResourceResolutionError
from .scene import SceneNode
from .structures import FontName


def fonts_for_node(node: SceneNode) -> List[FontName]:
    """Return the distinct fonts used across the node's character range."""

    if not node.has_mixed_fonts:
        return [node.font_name] if node.font_name is not None else []

    fonts: List[FontName] = []
    length = len(node.characters or "")
    for index in range(length):
        font = node.range_font(index, index + 1)
        if font is not None and font not in fonts:
            fonts.append(font)
    return fonts


class FontLoader(ABC):
    """Resolves the fonts a text node needs before its content is written."""

    @abstractmethod
    async def ensure_fonts_loaded(self, node: SceneNode) -> None:
        """Load every font used by ``node`` or raise ResourceResolutionError."""


class FontRegistry(FontLoader):
    """Font loader backed by a set of installed fonts.

    ``available=None`` treats every font as installed. Loaded fonts are cached
    so repeated writes with the same font do not load it again.
    """

    def __init__(self, available: Iterable[FontName] | None = None) -> None:
        self.available: Set[FontName] | None = (
            set(available) if available is not None else None
        )
        self.loaded: Set[FontName] = set()
        self.load_count = 0

    async def ensure_fonts_loaded(self, node: SceneNode) -> None:
        for font in fonts_for_node(node):
            if font in self.loaded:
                continue
            await self._load(font, node=node)

    async def _load(self, font: FontName, *, node: SceneNode) -> None:
        # Yield to the loop the way a host font request would.
        await asyncio.sleep(0)
        if self.available is not None and font not in self.available:
            raise ResourceResolutionError(
                f"Font '{font}' used by node {node.id} is not available."
            )
        self.loaded.add(font)
        self.load_count += 1
