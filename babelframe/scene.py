"""In-memory scene graph with JSON load and save."""

from __future__ import annotations

import copy
import json
import pathlib
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from .errors import SceneFormatError
from .structures import Box, FontName, kind_for_type

ID_PATTERN = re.compile(r"^(?P<major>\d+):(?P<minor>\d+)$")

# Keys read into typed attributes; everything else is kept verbatim.
_KNOWN_KEYS = frozenset(
    {
        "id",
        "type",
        "name",
        "x",
        "y",
        "width",
        "height",
        "characters",
        "fontName",
        "characterFonts",
        "children",
        "selection",
    }
)


class SceneNode:
    """A node in the scene graph."""

    def __init__(
        self,
        *,
        node_id: str,
        type_name: str,
        name: str = "",
        x: float = 0,
        y: float = 0,
        width: float = 0,
        height: float = 0,
        characters: str | None = None,
        font_name: FontName | None = None,
        character_fonts: Sequence[FontName] | None = None,
        children: Sequence["SceneNode"] | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        self.id = node_id
        self.type_name = type_name
        self.kind = kind_for_type(type_name)
        self.name = name
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.font_name = font_name
        self.character_fonts: List[FontName] | None = (
            list(character_fonts) if character_fonts else None
        )
        self._characters = characters
        self.children: List[SceneNode] = []
        self.parent: SceneNode | None = None
        self.graph: SceneGraph | None = None
        self.extra: Dict[str, Any] = dict(extra or {})
        for child in children or ():
            self.append_child(child)

    def __repr__(self) -> str:
        return f"SceneNode(id={self.id!r}, type={self.type_name!r}, name={self.name!r})"

    @property
    def characters(self) -> str | None:
        return self._characters

    @characters.setter
    def characters(self, value: str) -> None:
        # A rewritten mixed-font run takes the font of its first character.
        if self.character_fonts:
            self.font_name = self.character_fonts[0]
            self.character_fonts = None
        self._characters = value

    @property
    def box(self) -> Box:
        return Box(x=self.x, y=self.y, width=self.width, height=self.height)

    @property
    def has_mixed_fonts(self) -> bool:
        return bool(self.character_fonts)

    def range_font(self, start: int, end: int) -> FontName | None:
        """Return the font of a character range, or None when the range is mixed."""

        if not self.character_fonts:
            return self.font_name
        fonts = set(self.character_fonts[start:end])
        if len(fonts) == 1:
            return fonts.pop()
        return None

    def append_child(self, child: "SceneNode") -> None:
        child.parent = self
        self.children.append(child)
        if self.graph is not None:
            self.graph.register(child)

    def walk(self) -> Iterator["SceneNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def clone(self) -> "SceneNode":
        """Deep-copy this node with fresh ids and insert it after the original."""

        if self.graph is None:
            raise SceneFormatError(f"Node {self.id} is not attached to a scene graph.")
        duplicate = self.graph._copy_subtree(self)
        if self.parent is not None:
            siblings = self.parent.children
            siblings.insert(siblings.index(self) + 1, duplicate)
            duplicate.parent = self.parent
        self.graph.register(duplicate)
        return duplicate


class SceneGraph:
    """Registry of pages and nodes with id lookup and selection state."""

    def __init__(self, *, name: str = "", pages: Sequence[SceneNode] | None = None) -> None:
        self.name = name
        self.pages: List[SceneNode] = []
        self.selection: List[SceneNode] = []
        self._nodes: Dict[str, SceneNode] = {}
        self._clone_major = 0
        self._clone_minor = 0
        for page in pages or ():
            self.add_page(page)

    def add_page(self, page: SceneNode) -> None:
        self.pages.append(page)
        self.register(page)

    def register(self, node: SceneNode) -> None:
        for member in node.walk():
            if member.id in self._nodes and self._nodes[member.id] is not member:
                raise SceneFormatError(f"Duplicate node id '{member.id}'.")
            member.graph = self
            self._nodes[member.id] = member
            match = ID_PATTERN.match(member.id)
            if match:
                self._clone_major = max(self._clone_major, int(match.group("major")))

    def get_node_by_id(self, node_id: str) -> Optional[SceneNode]:
        return self._nodes.get(node_id)

    @property
    def current_page(self) -> SceneNode | None:
        return self.pages[0] if self.pages else None

    def select(self, node_ids: Sequence[str]) -> List[SceneNode]:
        selection: List[SceneNode] = []
        for node_id in node_ids:
            node = self.get_node_by_id(node_id)
            if node is None:
                raise SceneFormatError(f"Selected node '{node_id}' does not exist.")
            selection.append(node)
        self.selection = selection
        return selection

    def siblings_of(self, node: SceneNode) -> List[Box]:
        """Boxes of the other nodes sharing ``node``'s parent."""

        if node.parent is None:
            return []
        return [child.box for child in node.parent.children if child is not node]

    def _allocate_id(self) -> str:
        if self._clone_minor == 0:
            self._clone_major += 1
        while True:
            self._clone_minor += 1
            candidate = f"{self._clone_major}:{self._clone_minor}"
            if candidate not in self._nodes:
                return candidate

    def _copy_subtree(self, node: SceneNode) -> SceneNode:
        duplicate = SceneNode(
            node_id=self._allocate_id(),
            type_name=node.type_name,
            name=node.name,
            x=node.x,
            y=node.y,
            width=node.width,
            height=node.height,
            characters=node.characters,
            font_name=node.font_name,
            character_fonts=node.character_fonts,
            extra=copy.deepcopy(node.extra),
        )
        for child in node.children:
            duplicate.append_child(self._copy_subtree(child))
        return duplicate


def _parse_font(raw: Any, *, node_id: str) -> FontName:
    if isinstance(raw, str):
        return FontName(family=raw)
    if isinstance(raw, Mapping) and isinstance(raw.get("family"), str):
        return FontName(family=raw["family"], style=str(raw.get("style") or "Regular"))
    raise SceneFormatError(f"Node {node_id} has an invalid font entry: {raw!r}.")


def _number(raw: Mapping[str, Any], key: str, *, node_id: str) -> float:
    value = raw.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneFormatError(f"Node {node_id} has a non-numeric '{key}'.")
    return value


def node_from_dict(raw: Any) -> SceneNode:
    """Build a node (and its subtree) from an exported JSON mapping."""

    if not isinstance(raw, Mapping):
        raise SceneFormatError("Scene nodes must be JSON objects.")
    node_id = raw.get("id")
    type_name = raw.get("type")
    if not isinstance(node_id, str) or not node_id:
        raise SceneFormatError("Every scene node needs a string 'id'.")
    if not isinstance(type_name, str):
        raise SceneFormatError(f"Node {node_id} is missing its 'type'.")

    characters = raw.get("characters")
    if characters is not None and not isinstance(characters, str):
        raise SceneFormatError(f"Node {node_id} has non-string 'characters'.")

    font_name = None
    if raw.get("fontName") is not None:
        font_name = _parse_font(raw["fontName"], node_id=node_id)
    character_fonts = None
    if raw.get("characterFonts"):
        character_fonts = [
            _parse_font(entry, node_id=node_id) for entry in raw["characterFonts"]
        ]
        if characters is None or len(character_fonts) != len(characters):
            raise SceneFormatError(
                f"Node {node_id} must list one character font per character."
            )

    children_raw = raw.get("children") or []
    if not isinstance(children_raw, list):
        raise SceneFormatError(f"Node {node_id} has non-list 'children'.")

    return SceneNode(
        node_id=node_id,
        type_name=type_name,
        name=str(raw.get("name") or ""),
        x=_number(raw, "x", node_id=node_id),
        y=_number(raw, "y", node_id=node_id),
        width=_number(raw, "width", node_id=node_id),
        height=_number(raw, "height", node_id=node_id),
        characters=characters,
        font_name=font_name,
        character_fonts=character_fonts,
        children=[node_from_dict(child) for child in children_raw],
        extra={key: value for key, value in raw.items() if key not in _KNOWN_KEYS},
    )


def _font_to_dict(font: FontName) -> Dict[str, str]:
    return {"family": font.family, "style": font.style}


def node_to_dict(node: SceneNode) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(node.extra)
    data.update(
        {
            "id": node.id,
            "type": node.type_name,
            "name": node.name,
            "x": node.x,
            "y": node.y,
            "width": node.width,
            "height": node.height,
        }
    )
    if node.characters is not None:
        data["characters"] = node.characters
    if node.font_name is not None:
        data["fontName"] = _font_to_dict(node.font_name)
    if node.character_fonts:
        data["characterFonts"] = [_font_to_dict(font) for font in node.character_fonts]
    if node.children:
        data["children"] = [node_to_dict(child) for child in node.children]
    return data


def scene_from_dict(data: Any) -> SceneGraph:
    """Build a scene graph from ``{"name": ..., "pages": [...]}``."""

    if not isinstance(data, Mapping):
        raise SceneFormatError("Scene documents must be JSON objects.")
    pages_raw = data.get("pages")
    if not isinstance(pages_raw, list) or not pages_raw:
        raise SceneFormatError("Scene documents need a non-empty 'pages' list.")

    graph = SceneGraph(name=str(data.get("name") or ""))
    for page_raw in pages_raw:
        page_raw = dict(page_raw) if isinstance(page_raw, Mapping) else page_raw
        if isinstance(page_raw, dict):
            page_raw.setdefault("type", "PAGE")
        graph.add_page(node_from_dict(page_raw))

    first_page = pages_raw[0]
    selection_ids = first_page.get("selection") if isinstance(first_page, Mapping) else None
    if selection_ids:
        if not isinstance(selection_ids, list):
            raise SceneFormatError("Page 'selection' must be a list of node ids.")
        graph.select([str(node_id) for node_id in selection_ids])
    return graph


def scene_to_dict(graph: SceneGraph) -> Dict[str, Any]:
    pages: List[Dict[str, Any]] = []
    for index, page in enumerate(graph.pages):
        page_data = node_to_dict(page)
        if index == 0 and graph.selection:
            page_data["selection"] = [node.id for node in graph.selection]
        pages.append(page_data)
    return {"name": graph.name, "pages": pages}


def load_scene(path: pathlib.Path) -> SceneGraph:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SceneFormatError(f"Scene file could not be read: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SceneFormatError(f"Scene file is not valid JSON: {exc}") from exc
    return scene_from_dict(data)


def save_scene(graph: SceneGraph, path: pathlib.Path) -> None:
    path.write_text(
        json.dumps(scene_to_dict(graph), ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
