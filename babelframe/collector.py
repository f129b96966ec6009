"""Text leaf extraction from scene node trees."""

from __future__ import annotations

from typing import Any, Iterable, List, Sequence

from .structures import NodeKind, TextLeaf


def _children_of(node: Any) -> Sequence[Any]:
    children = getattr(node, "children", None)
    if isinstance(children, (list, tuple)):
        return children
    return ()


def _leaf_for(node: Any) -> TextLeaf | None:
    node_id = getattr(node, "id", None)
    content = getattr(node, "characters", None)
    if not isinstance(node_id, str) or not node_id:
        return None
    if not isinstance(content, str):
        return None
    name = getattr(node, "name", None)
    return TextLeaf(
        id=node_id,
        content=content,
        display_name=name if isinstance(name, str) else "",
    )


def collect_text_leaves(root: Any) -> List[TextLeaf]:
    """Return the text leaves under ``root`` in pre-order.

    A text node is emitted before its children are visited, and children are
    visited in their given order whatever the parent's kind. Nodes with
    unusable data contribute nothing. The result is recomputed on every call.
    """

    leaves: List[TextLeaf] = []
    if root is None:
        return leaves

    stack: List[Any] = [root]
    while stack:
        node = stack.pop()
        if node is None:
            continue
        if getattr(node, "kind", None) is NodeKind.TEXT:
            leaf = _leaf_for(node)
            if leaf is not None:
                leaves.append(leaf)
        stack.extend(reversed(_children_of(node)))
    return leaves


def collect_selection(nodes: Iterable[Any]) -> List[TextLeaf]:
    """Concatenate the text leaves of every selected node in selection order."""

    leaves: List[TextLeaf] = []
    for node in nodes:
        leaves.extend(collect_text_leaves(node))
    return leaves
