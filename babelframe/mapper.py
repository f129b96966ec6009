"""Correspondence between original and cloned text leaves."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

from .collector import collect_text_leaves
from .structures import TextLeaf, TranslationResult


def _first_match_index(translations: Iterable[TranslationResult]) -> Dict[str, str]:
    """Index translations by original id; the first entry for an id wins."""

    index: Dict[str, str] = {}
    for result in translations:
        index.setdefault(result.original_id, result.translated_text)
    return index


def build_id_mapping(
    original: Any,
    clone: Any,
    translations: Sequence[TranslationResult],
) -> Dict[str, str]:
    """Map clone leaf ids to translated text by traversal position.

    Leaf *i* of the original corresponds to leaf *i* of the clone, up to the
    shorter of the two sequences. The clone is assumed to be a faithful copy;
    kinds and counts are not checked. Original leaves without a translation
    produce no entry.
    """

    original_leaves = collect_text_leaves(original)
    clone_leaves = collect_text_leaves(clone)
    index = _first_match_index(translations)

    mapping: Dict[str, str] = {}
    for original_leaf, clone_leaf in zip(original_leaves, clone_leaves):
        translated = index.get(original_leaf.id)
        if translated is not None:
            mapping[clone_leaf.id] = translated
    return mapping


def build_identity_mapping(
    leaves: Sequence[TextLeaf],
    translations: Sequence[TranslationResult],
) -> Dict[str, str]:
    """Map leaf ids to translated text for in-place application."""

    index = _first_match_index(translations)
    mapping: Dict[str, str] = {}
    for leaf in leaves:
        translated = index.get(leaf.id)
        if translated is not None:
            mapping[leaf.id] = translated
    return mapping
